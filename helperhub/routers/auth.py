from fastapi import APIRouter, Depends

from helperhub.models.schemas import Identity, LoginPayload, SignupPayload, TokenResponse
from helperhub.routers.deps import (
    get_current_identity,
    get_identity_provider,
    get_role_resolver,
    get_token,
)
from helperhub.services.identity import IdentityProvider
from helperhub.services.roles import RoleResolver

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=TokenResponse)
async def signup(
    payload: SignupPayload,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    """Create an employer or job seeker account"""
    identity, token = await provider.sign_up(payload)
    return TokenResponse(access_token=token, user_id=identity.user_id, role=payload.role)


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginPayload,
    provider: IdentityProvider = Depends(get_identity_provider),
    resolver: RoleResolver = Depends(get_role_resolver),
):
    identity, token = await provider.sign_in(payload.email, payload.password)
    role, _ = await resolver.resolve_role_or_default(identity.user_id)
    return TokenResponse(access_token=token, user_id=identity.user_id, role=role)


@router.post("/logout")
async def logout(
    identity: Identity = Depends(get_current_identity),
    token: str = Depends(get_token),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    await provider.sign_out(token)
    return {"message": "Signed out", "user_id": identity.user_id}
