"""
FastAPI dependencies: service wiring and the per-request session context.
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from helperhub.models.schemas import Identity
from helperhub.services import db
from helperhub.services.blob_store import blob_store
from helperhub.services.identity import IdentityProvider
from helperhub.services.ledger import RequestLedger
from helperhub.services.matching import MatchingEngine
from helperhub.services.profiles import BusinessInfoStore, ProfileStore
from helperhub.services.reviews import ReviewStore
from helperhub.services.roles import RoleResolver, SessionContext
from helperhub.services.store import DocumentStore
from helperhub.utils.exceptions import UnauthorizedError
from helperhub.utils.logging_config import get_logger

logger = get_logger(__name__)

bearer = HTTPBearer(auto_error=False)

identities_store = DocumentStore(db.identities_coll, "user_id")
tokens_store = DocumentStore(db.tokens_coll, "token")
employers_store = DocumentStore(db.employers_coll, "user_id")
job_seekers_store = DocumentStore(db.job_seekers_coll, "user_id")
profiles_store = DocumentStore(db.profiles_coll, "user_id")
business_info_store = DocumentStore(db.business_info_coll, "user_id")
requests_store = DocumentStore(db.requests_coll, "request_id")
reviews_store = DocumentStore(db.reviews_coll, "review_id")

identity_provider = IdentityProvider(identities_store, tokens_store, employers_store, job_seekers_store)


def get_identity_provider() -> IdentityProvider:
    return identity_provider


def get_role_resolver() -> RoleResolver:
    return RoleResolver(employers_store, job_seekers_store, profiles_store)


def get_profile_store() -> ProfileStore:
    return ProfileStore(profiles_store, blob_store)


def get_business_info_store() -> BusinessInfoStore:
    return BusinessInfoStore(business_info_store)


def get_review_store() -> ReviewStore:
    return ReviewStore(reviews_store, requests_store, profiles_store)


def get_matching_engine(reviews: ReviewStore = Depends(get_review_store)) -> MatchingEngine:
    return MatchingEngine(profiles_store, reviews)


def get_request_ledger() -> RequestLedger:
    return RequestLedger(requests_store, profiles_store)


def get_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> Optional[str]:
    return credentials.credentials if credentials else None


async def get_current_identity(
    request: Request,
    token: Optional[str] = Depends(get_token),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity:
    identity = await provider.current_identity(token)
    if identity is None:
        logger.info(
            f"Unauthenticated request to {request.url.path}",
            extra={"request_id": getattr(request.state, "request_id", "unknown")}
        )
        raise UnauthorizedError("You must be logged in")
    return identity


async def get_session_context(
    identity: Identity = Depends(get_current_identity),
    resolver: RoleResolver = Depends(get_role_resolver),
) -> SessionContext:
    return await resolver.build_context(identity)
