"""
Session / role resolution.

Role is looked up in the two role buckets written at signup, employer
first.  The result is carried in an explicit ``SessionContext`` that every
service call receives; nothing here keeps per-user state between calls.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from helperhub.models.schemas import AccountRecord, Identity, ProfileModel, Role, ServiceType, SessionInfo
from helperhub.services.store import DocumentStore
from helperhub.utils.exceptions import (
    ForbiddenError,
    HelperHubError,
    ProfileIncompleteError,
    RoleUnresolvedError,
)
from helperhub.utils.logging_config import get_logger

logger = get_logger(__name__)

DESTINATION_PROVIDERS = "providers"
DESTINATION_PROFILE = "profile_completion"

# Conservative fallback when no role bucket exists for an identity
DEFAULT_ROLE = Role.EMPLOYER


@dataclass
class SessionContext:
    identity: Identity
    role: Role
    role_resolved: bool = True
    profile: Optional[ProfileModel] = None

    @property
    def user_id(self) -> str:
        return self.identity.user_id

    @property
    def is_employer(self) -> bool:
        return self.role == Role.EMPLOYER

    @property
    def is_job_seeker(self) -> bool:
        return self.role == Role.JOB_SEEKER


def is_profile_complete(profile) -> bool:
    """First name, last name and phone all non-empty."""
    if profile is None:
        return False
    if isinstance(profile, dict):
        values = [profile.get("first_name"), profile.get("last_name"), profile.get("phone")]
    else:
        values = [profile.first_name, profile.last_name, profile.phone]
    return all(v and str(v).strip() for v in values)


def require_resolved_role(context: SessionContext, action: str) -> None:
    """Writes never run under the fallback role."""
    if not context.role_resolved:
        raise ForbiddenError(
            f"Your account type could not be confirmed, so you cannot {action} right now. Please try again.",
            resource=action,
        )


def require_role(context: SessionContext, role: Role, action: str) -> None:
    require_resolved_role(context, action)
    if context.role != role:
        raise ForbiddenError(
            f"Only {'employers' if role == Role.EMPLOYER else 'job seekers'} can {action}",
            resource=action,
        )


def check_query_access(context: SessionContext) -> None:
    """Employers may always query providers; job seekers need a complete profile."""
    if context.is_employer:
        return
    if not is_profile_complete(context.profile):
        raise ProfileIncompleteError(
            "Please complete your profile (first name, last name and phone) first",
            redirect_to=DESTINATION_PROFILE,
        )


class RoleResolver:
    def __init__(self, employers: DocumentStore, job_seekers: DocumentStore, profiles: DocumentStore):
        self.employers = employers
        self.job_seekers = job_seekers
        self.profiles = profiles

    async def resolve_role(self, user_id: str) -> Role:
        if await self.employers.exists(user_id):
            return Role.EMPLOYER
        if await self.job_seekers.exists(user_id):
            return Role.JOB_SEEKER
        raise RoleUnresolvedError(f"No role record found for user {user_id}", user_id=user_id)

    async def resolve_role_or_default(self, user_id: str) -> Tuple[Role, bool]:
        """Never fails: resolution errors are logged and the default role is used."""
        try:
            return await self.resolve_role(user_id), True
        except HelperHubError as e:
            logger.error(f"Error checking user type for {user_id}: {e.message}; defaulting to {DEFAULT_ROLE.value}")
            return DEFAULT_ROLE, False

    async def load_profile(self, user_id: str) -> Optional[ProfileModel]:
        doc = await self.profiles.read(user_id)
        return ProfileModel(**doc) if doc else None

    async def load_account(self, user_id: str, role: Role) -> Optional[AccountRecord]:
        bucket = self.employers if role == Role.EMPLOYER else self.job_seekers
        doc = await bucket.read(user_id)
        return AccountRecord(**doc) if doc else None

    async def build_context(self, identity: Identity) -> SessionContext:
        role, resolved = await self.resolve_role_or_default(identity.user_id)
        profile = await self.load_profile(identity.user_id)
        return SessionContext(identity=identity, role=role, role_resolved=resolved, profile=profile)

    async def describe_session(self, identity: Identity, service_type: Optional[ServiceType] = None) -> SessionInfo:
        """Where a service-card click leads: the provider list or profile completion."""
        role, resolved = await self.resolve_role_or_default(identity.user_id)

        complete = False
        destination = DESTINATION_PROVIDERS
        try:
            profile = await self.profiles.read(identity.user_id)
            complete = is_profile_complete(profile)
        except HelperHubError as e:
            logger.error(f"Error checking profile for {identity.user_id}: {e.message}")

        if role == Role.JOB_SEEKER and not complete:
            destination = DESTINATION_PROFILE

        return SessionInfo(
            user_id=identity.user_id,
            email=identity.email,
            display_name=identity.display_name,
            role=role,
            role_resolved=resolved,
            profile_complete=complete,
            destination=destination,
            service_type=service_type,
        )
