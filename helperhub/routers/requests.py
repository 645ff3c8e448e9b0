from typing import List

from fastapi import APIRouter, Depends, Request

from helperhub.models.schemas import RespondPayload, ServiceRequestModel, SubmitRequestPayload
from helperhub.routers.deps import get_request_ledger, get_session_context
from helperhub.services.ledger import RequestLedger
from helperhub.services.roles import SessionContext
from helperhub.utils.logging_config import get_logger

router = APIRouter(prefix="/requests", tags=["requests"])
logger = get_logger(__name__)


@router.post("", response_model=ServiceRequestModel)
async def submit_request(
    payload: SubmitRequestPayload,
    request: Request,
    context: SessionContext = Depends(get_session_context),
    ledger: RequestLedger = Depends(get_request_ledger),
):
    """Send a service request to a provider.

    Every call creates a new pending request; clients should disable their
    submit control until the response arrives.
    """
    logger.info(
        f"Sending request to provider {payload.provider_id}",
        extra={"request_id": getattr(request.state, "request_id", "unknown"), "user_id": context.user_id}
    )
    return await ledger.submit(context, payload.provider_id, payload.service_type)


@router.get("", response_model=List[ServiceRequestModel])
async def list_requests(
    context: SessionContext = Depends(get_session_context),
    ledger: RequestLedger = Depends(get_request_ledger),
):
    """Sent requests for employers, received requests for job seekers"""
    return await ledger.list_for(context.user_id, context.role)


@router.get("/{request_id}", response_model=ServiceRequestModel)
async def get_request(
    request_id: str,
    context: SessionContext = Depends(get_session_context),
    ledger: RequestLedger = Depends(get_request_ledger),
):
    return await ledger.get(request_id, context.user_id)


@router.post("/{request_id}/respond", response_model=ServiceRequestModel)
async def respond_to_request(
    request_id: str,
    payload: RespondPayload,
    context: SessionContext = Depends(get_session_context),
    ledger: RequestLedger = Depends(get_request_ledger),
):
    """Accept or decline a pending request"""
    return await ledger.respond(context, request_id, payload.decision)
