from typing import List

from fastapi import APIRouter, Depends, Query

from helperhub.models.schemas import (
    ALL_CATEGORIES,
    BUSINESS_TYPE_LABELS,
    CATEGORY_LABELS,
    EXPERIENCE_LABELS,
    SERVICE_TITLES,
    ProviderModel,
    ReviewInput,
    ReviewModel,
    ServiceType,
)
from helperhub.routers.deps import (
    get_current_identity,
    get_matching_engine,
    get_review_store,
    get_session_context,
)
from helperhub.services.matching import MatchingEngine
from helperhub.services.reviews import ReviewStore
from helperhub.services.roles import SessionContext, check_query_access
from helperhub.utils.logging_config import get_logger

router = APIRouter(tags=["providers"])
logger = get_logger(__name__)


@router.get("/catalog")
async def get_catalog():
    """Category, experience level, service type and business type labels"""
    return {
        "categories": [{"id": ALL_CATEGORIES, "name": "All Categories"}]
        + [{"id": k, "name": v} for k, v in CATEGORY_LABELS.items()],
        "experience_levels": [{"id": k, "name": v} for k, v in EXPERIENCE_LABELS.items()],
        "service_types": [{"id": k, "title": v} for k, v in SERVICE_TITLES.items()],
        "business_types": [{"id": k, "name": v} for k, v in BUSINESS_TYPE_LABELS.items()],
    }


@router.get("/providers/{service_type}", response_model=List[ProviderModel])
async def list_providers(
    service_type: ServiceType,
    category: str = Query(ALL_CATEGORIES, description="Category id or 'all'"),
    context: SessionContext = Depends(get_session_context),
    engine: MatchingEngine = Depends(get_matching_engine),
):
    """Eligible providers for a service type, optionally narrowed to one category"""
    check_query_access(context)
    providers = await engine.find_providers(service_type, category)
    logger.info(
        f"Found {len(providers)} providers for {service_type.value}/{category}",
        extra={"user_id": context.user_id, "provider_count": len(providers)}
    )
    return providers


@router.get("/providers/{provider_id}/reviews", response_model=List[ReviewModel])
async def list_reviews(
    provider_id: str,
    _=Depends(get_current_identity),
    reviews: ReviewStore = Depends(get_review_store),
):
    return await reviews.list_for_provider(provider_id)


@router.post("/providers/{provider_id}/reviews", response_model=ReviewModel)
async def add_review(
    provider_id: str,
    review: ReviewInput,
    context: SessionContext = Depends(get_session_context),
    reviews: ReviewStore = Depends(get_review_store),
):
    return await reviews.add(context, provider_id, review)
