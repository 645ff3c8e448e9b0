"""
Append-only provider reviews.

An employer may review a job seeker once a service request between them has
been accepted.  Reviews are never edited or removed; the aggregate rating is
derived from them at query time by the matching engine.
"""
from datetime import datetime
from typing import Dict, List

from helperhub.models.schemas import RequestStatus, ReviewInput, ReviewModel, Role
from helperhub.services.roles import SessionContext, require_role
from helperhub.services.store import DocumentStore
from helperhub.utils.exceptions import ForbiddenError, NotFoundError
from helperhub.utils.logging_config import get_logger

logger = get_logger(__name__)


class ReviewStore:
    def __init__(self, reviews: DocumentStore, requests: DocumentStore = None, profiles: DocumentStore = None):
        self.reviews = reviews
        self.requests = requests
        self.profiles = profiles

    async def add(self, context: SessionContext, provider_id: str, review: ReviewInput) -> ReviewModel:
        require_role(context, Role.EMPLOYER, "review providers")

        provider = await self.profiles.read(provider_id)
        if not provider or provider.get("user_type") != Role.JOB_SEEKER:
            raise NotFoundError("Service provider not found", resource="provider", resource_id=provider_id)

        accepted = await self.requests.find({
            "employer_id": context.user_id,
            "job_seeker_id": provider_id,
            "status": RequestStatus.ACCEPTED.value,
        })
        if not accepted:
            raise ForbiddenError(
                "You can only review providers who accepted one of your requests",
                resource="review",
            )

        author = context.profile.full_name if context.profile else ""
        record = {
            "provider_id": provider_id,
            "author_id": context.user_id,
            "author_name": author or context.identity.display_name or "Employer",
            "rating": review.rating,
            "comment": review.comment,
            "created_at": datetime.utcnow(),
        }
        review_id = await self.reviews.append(record)
        logger.info(f"Review {review_id} added for provider {provider_id} by {context.user_id}")
        return ReviewModel(**record, review_id=review_id)

    async def list_for_provider(self, provider_id: str) -> List[ReviewModel]:
        docs = await self.reviews.find({"provider_id": provider_id}, sort=[("created_at", -1)])
        return [ReviewModel(**d) for d in docs]

    async def list_for_providers(self, provider_ids: List[str], failure_message: str = None) -> Dict[str, List[ReviewModel]]:
        if not provider_ids:
            return {}
        docs = await self.reviews.find(
            {"provider_id": {"$in": list(provider_ids)}},
            sort=[("created_at", -1)],
            failure_message=failure_message,
        )
        grouped: Dict[str, List[ReviewModel]] = {}
        for d in docs:
            grouped.setdefault(d["provider_id"], []).append(ReviewModel(**d))
        return grouped
