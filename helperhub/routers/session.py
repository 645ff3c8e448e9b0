from typing import Optional

from fastapi import APIRouter, Depends, Query

from helperhub.models.schemas import AccountSummary, Identity, ServiceType, SessionInfo
from helperhub.routers.deps import get_business_info_store, get_current_identity, get_role_resolver
from helperhub.services.profiles import BusinessInfoStore
from helperhub.services.roles import RoleResolver

router = APIRouter(prefix="/session", tags=["session"])


@router.get("", response_model=SessionInfo)
async def get_session(
    service_type: Optional[ServiceType] = Query(None, description="Service card the user picked"),
    identity: Identity = Depends(get_current_identity),
    resolver: RoleResolver = Depends(get_role_resolver),
):
    """Role, profile completeness and where a service query should lead"""
    return await resolver.describe_session(identity, service_type)


@router.get("/account", response_model=AccountSummary)
async def get_account(
    identity: Identity = Depends(get_current_identity),
    resolver: RoleResolver = Depends(get_role_resolver),
    business: BusinessInfoStore = Depends(get_business_info_store),
):
    """Signup record from the caller's role bucket plus any business information"""
    role, _ = await resolver.resolve_role_or_default(identity.user_id)
    return AccountSummary(
        account=await resolver.load_account(identity.user_id, role),
        business_info=await business.get(identity.user_id),
    )
