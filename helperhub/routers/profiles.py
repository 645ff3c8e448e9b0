from fastapi import APIRouter, Depends, File, UploadFile

from helperhub.models.schemas import BusinessInfoInput, BusinessInfoModel, ProfileModel, ProfileUpdate
from helperhub.routers.deps import (
    get_business_info_store,
    get_current_identity,
    get_profile_store,
    get_session_context,
)
from helperhub.services.profiles import BusinessInfoStore, ProfileStore
from helperhub.services.roles import SessionContext
from helperhub.utils.exceptions import NotFoundError
from helperhub.utils.logging_config import get_logger

router = APIRouter(tags=["profiles"])
logger = get_logger(__name__)


@router.get("/profile", response_model=ProfileModel)
async def get_own_profile(
    context: SessionContext = Depends(get_session_context),
):
    """Caller's profile; an empty one prefilled from the identity if none is saved yet"""
    if context.profile:
        return context.profile
    logger.info(f"No existing profile found for {context.user_id}")
    return ProfileModel(
        user_id=context.user_id,
        email=context.identity.email,
        phone=context.identity.phone or "",
        user_type=context.role,
    )


@router.put("/profile", response_model=ProfileModel)
async def save_own_profile(
    update: ProfileUpdate,
    context: SessionContext = Depends(get_session_context),
    profiles: ProfileStore = Depends(get_profile_store),
):
    """Merge the given fields into the caller's profile"""
    return await profiles.save(context, update)


@router.post("/profile/image", response_model=ProfileModel)
async def upload_profile_image(
    file: UploadFile = File(...),
    context: SessionContext = Depends(get_session_context),
    profiles: ProfileStore = Depends(get_profile_store),
):
    data = await file.read()
    return await profiles.attach_image(context, data, file.content_type)


@router.get("/profiles/{user_id}", response_model=ProfileModel)
async def get_profile(
    user_id: str,
    _=Depends(get_current_identity),
    profiles: ProfileStore = Depends(get_profile_store),
):
    profile = await profiles.get(user_id)
    if not profile:
        raise NotFoundError("Profile not found", resource="profile", resource_id=user_id)
    return profile


@router.get("/business-info", response_model=BusinessInfoModel)
async def get_business_info(
    context: SessionContext = Depends(get_session_context),
    business: BusinessInfoStore = Depends(get_business_info_store),
):
    info = await business.get(context.user_id)
    if not info:
        raise NotFoundError("No business information saved", resource="business_info", resource_id=context.user_id)
    return info


@router.put("/business-info", response_model=BusinessInfoModel)
async def save_business_info(
    info: BusinessInfoInput,
    context: SessionContext = Depends(get_session_context),
    business: BusinessInfoStore = Depends(get_business_info_store),
):
    """Replace the caller's business information"""
    return await business.save(context, info)
