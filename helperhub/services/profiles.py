from datetime import datetime
from typing import Any, Dict, Optional

from helperhub.models.schemas import (
    BusinessInfoInput,
    BusinessInfoModel,
    ProfileModel,
    ProfileUpdate,
    Role,
)
from helperhub.services.blob_store import BlobStore, MAX_IMAGE_BYTES, profile_image_key
from helperhub.services.roles import SessionContext, is_profile_complete, require_resolved_role, require_role
from helperhub.services.store import DocumentStore
from helperhub.utils.exceptions import ValidationFailedError
from helperhub.utils.logging_config import get_logger, log_function_call

logger = get_logger(__name__)

REQUIRED_PROFILE_FIELDS = ("first_name", "last_name", "phone")


def validate_profile(profile: Dict[str, Any]) -> None:
    """Reject a merged profile that is missing required fields."""
    if not is_profile_complete(profile):
        missing = [f for f in REQUIRED_PROFILE_FIELDS if not str(profile.get(f) or "").strip()]
        raise ValidationFailedError(
            "Please fill in all required fields",
            field=",".join(missing),
        )
    if profile.get("user_type") == Role.JOB_SEEKER and not profile.get("selected_categories"):
        raise ValidationFailedError(
            "Please select at least one service category",
            field="selected_categories",
        )


class ProfileStore:
    """Per-user profiles; saves merge into the stored record"""

    def __init__(self, profiles: DocumentStore, blobs: BlobStore):
        self.profiles = profiles
        self.blobs = blobs

    async def get(self, user_id: str) -> Optional[ProfileModel]:
        doc = await self.profiles.read(user_id)
        return ProfileModel(**doc) if doc else None

    @log_function_call
    async def save(self, context: SessionContext, update: ProfileUpdate) -> ProfileModel:
        require_resolved_role(context, "update your profile")
        changes = update.model_dump(exclude_unset=True, mode="json")
        if context.role != Role.JOB_SEEKER:
            changes.pop("selected_categories", None)
            changes.pop("experience_level", None)

        # Identity-owned fields always win over client input
        changes["email"] = context.identity.email
        changes["user_type"] = context.role.value
        changes["updated_at"] = datetime.utcnow()

        stored = await self.profiles.read(context.user_id) or {}
        merged = {**stored, **changes, "user_id": context.user_id}
        validate_profile(merged)

        await self.profiles.merge(context.user_id, changes)
        logger.info(f"Profile updated successfully for {context.user_id}")
        return ProfileModel(**merged)

    @log_function_call
    async def attach_image(self, context: SessionContext, data: bytes, content_type: Optional[str]) -> ProfileModel:
        require_resolved_role(context, "update your profile")
        if not data:
            raise ValidationFailedError("Uploaded image is empty", field="file")
        if len(data) > MAX_IMAGE_BYTES:
            raise ValidationFailedError(
                f"Image exceeds {MAX_IMAGE_BYTES // (1024 * 1024)}MB limit", field="file", value=len(data)
            )
        if content_type and not content_type.startswith("image/"):
            raise ValidationFailedError("Only image uploads are accepted", field="file", value=content_type)

        url = await self.blobs.upload(profile_image_key(context.user_id), data)
        await self.profiles.merge(context.user_id, {
            "profile_image": url,
            "email": context.identity.email,
            "user_type": context.role.value,
            "updated_at": datetime.utcnow(),
        })
        logger.info(f"Image uploaded successfully for {context.user_id}: {url}")
        return await self.get(context.user_id)


class BusinessInfoStore:
    """Employer business metadata; every save replaces the whole record"""

    def __init__(self, business_info: DocumentStore):
        self.business_info = business_info

    async def get(self, user_id: str) -> Optional[BusinessInfoModel]:
        doc = await self.business_info.read(user_id)
        return BusinessInfoModel(**doc) if doc else None

    @log_function_call
    async def save(self, context: SessionContext, info: BusinessInfoInput) -> BusinessInfoModel:
        require_role(context, Role.EMPLOYER, "save business information")

        existing = await self.business_info.read(context.user_id)
        now = datetime.utcnow()
        record = BusinessInfoModel(
            **info.model_dump(),
            user_id=context.user_id,
            created_at=existing.get("created_at", now) if existing else now,
            updated_at=now,
        )
        await self.business_info.write(context.user_id, record.model_dump())
        logger.info(f"Business information saved for {context.user_id}")
        return record
