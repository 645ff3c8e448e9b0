from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from helperhub.models.schemas import (
    ALL_CATEGORIES,
    Category,
    ProviderModel,
    ReviewModel,
    Role,
    ServiceType,
)
from helperhub.services.reviews import ReviewStore
from helperhub.services.store import DocumentStore
from helperhub.utils.exceptions import ValidationFailedError
from helperhub.utils.logging_config import get_logger, PerformanceMonitor

logger = get_logger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load service providers. Please try again."


def average_rating(reviews: Iterable) -> float:
    """Mean rating rounded half-up to one decimal; 0 when there are no reviews."""
    ratings = [r["rating"] if isinstance(r, dict) else r.rating for r in reviews or []]
    if not ratings:
        return 0
    mean = Decimal(sum(ratings)) / Decimal(len(ratings))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def is_eligible_provider(profile: dict, service_type: ServiceType) -> bool:
    # Same predicate for every service type: a job seeker with at least one category
    if profile.get("user_type") != Role.JOB_SEEKER:
        return False
    return bool(profile.get("selected_categories"))


def matches_category(profile: dict, category: str) -> bool:
    if category == ALL_CATEGORIES:
        return True
    return category in (profile.get("selected_categories") or [])


def parse_service_type(service_type) -> ServiceType:
    try:
        return ServiceType(service_type)
    except ValueError:
        raise ValidationFailedError(f"Unknown service type: {service_type}", field="service_type", value=service_type)


def parse_category_filter(category: Optional[str]) -> str:
    if not category or category == ALL_CATEGORIES:
        return ALL_CATEGORIES
    try:
        return Category(category).value
    except ValueError:
        raise ValidationFailedError(f"Unknown category: {category}", field="category", value=category)


def match_providers(
    profiles: Iterable[dict],
    service_type: ServiceType,
    category: str,
    reviews_by_provider: Dict[str, List[ReviewModel]],
) -> List[ProviderModel]:
    """Filter profiles to eligible providers, in scan order, with their ratings attached."""
    out = []
    for profile in profiles:
        if not is_eligible_provider(profile, service_type):
            continue
        if not matches_category(profile, category):
            continue

        provider_id = profile["user_id"]
        reviews = reviews_by_provider.get(provider_id, [])
        fields = {k: v for k, v in profile.items() if k in ProviderModel.model_fields}
        out.append(ProviderModel(
            **fields,
            id=provider_id,
            reviews=reviews,
            review_count=len(reviews),
            average_rating=average_rating(reviews),
        ))
    return out


class MatchingEngine:
    def __init__(self, profiles: DocumentStore, reviews: ReviewStore):
        self.profiles = profiles
        self.reviews = reviews

    async def find_providers(self, service_type: ServiceType, category: Optional[str] = ALL_CATEGORIES) -> List[ProviderModel]:
        service_type = parse_service_type(service_type)
        category = parse_category_filter(category)

        with PerformanceMonitor(f"find_providers[{service_type.value}/{category}]", logger):
            profiles = await self.profiles.find(
                {"user_type": Role.JOB_SEEKER.value},
                failure_message=LOAD_FAILED_MESSAGE,
            )
            candidate_ids = [p["user_id"] for p in profiles if p.get("selected_categories")]
            reviews_by_provider = await self.reviews.list_for_providers(
                candidate_ids, failure_message=LOAD_FAILED_MESSAGE
            )
            providers = match_providers(profiles, service_type, category, reviews_by_provider)

        if not providers:
            logger.info(f"No service providers found for {service_type.value}/{category}")
        return providers
