"""
Service Request Ledger

Lifecycle of a request:

    pending --accept--> accepted   (terminal)
    pending --decline--> declined  (terminal)

Requests are created by employers, read by either party filtered by their
own id, and transitioned exactly once by the job seeker they were sent to.
Submissions are not deduplicated: every call appends a new record.
"""
from datetime import datetime
from typing import List

from helperhub.models.schemas import (
    Decision,
    RequestStatus,
    Role,
    ServiceRequestModel,
    ServiceType,
)
from helperhub.services.roles import SessionContext, require_role
from helperhub.services.store import DocumentStore
from helperhub.utils.exceptions import InvalidTransitionError, NotFoundError
from helperhub.utils.logging_config import get_logger, log_function_call

logger = get_logger(__name__)

TRANSITIONS = {
    (RequestStatus.PENDING, Decision.ACCEPT): RequestStatus.ACCEPTED,
    (RequestStatus.PENDING, Decision.DECLINE): RequestStatus.DECLINED,
}

OWNER_FIELDS = {
    Role.EMPLOYER: "employer_id",
    Role.JOB_SEEKER: "job_seeker_id",
}


def next_status(current: RequestStatus, decision: Decision) -> RequestStatus:
    try:
        return TRANSITIONS[(RequestStatus(current), Decision(decision))]
    except KeyError:
        raise InvalidTransitionError(
            f"Cannot {Decision(decision).value} a request that is already {RequestStatus(current).value}",
            current_status=RequestStatus(current).value,
            requested=Decision(decision).value,
        )


class RequestLedger:
    def __init__(self, requests: DocumentStore, profiles: DocumentStore):
        self.requests = requests
        self.profiles = profiles

    async def _employer_snapshot(self, context: SessionContext) -> dict:
        profile = await self.profiles.read(context.user_id)
        if profile:
            first, last = profile.get("first_name", ""), profile.get("last_name", "")
            email, phone = profile.get("email"), profile.get("phone")
        else:
            identity = context.identity
            first, last = identity.display_name or "Employer", ""
            email, phone = identity.email, identity.phone or "Not provided"
        return {
            "employer_name": f"{first} {last}".strip(),
            "employer_email": email,
            "employer_phone": phone,
        }

    @log_function_call
    async def submit(self, context: SessionContext, provider_id: str, service_type: ServiceType) -> ServiceRequestModel:
        require_role(context, Role.EMPLOYER, "send service requests")

        provider = await self.profiles.read(provider_id)
        if not provider or provider.get("user_type") != Role.JOB_SEEKER:
            raise NotFoundError("Service provider not found", resource="provider", resource_id=provider_id)

        record = {
            "employer_id": context.user_id,
            "job_seeker_id": provider_id,
            "service_type": ServiceType(service_type).value,
            **await self._employer_snapshot(context),
            "job_seeker_name": f"{provider.get('first_name', '')} {provider.get('last_name', '')}".strip(),
            "job_seeker_categories": list(provider.get("selected_categories") or []),
            "status": RequestStatus.PENDING.value,
            "created_at": datetime.utcnow(),
            "responded_at": None,
        }
        request_id = await self.requests.append(record)
        logger.info(f"Request {request_id} sent from {context.user_id} to {provider_id} ({record['service_type']})")
        return ServiceRequestModel(**record, request_id=request_id)

    async def list_for(self, user_id: str, role: Role) -> List[ServiceRequestModel]:
        owner_field = OWNER_FIELDS[Role(role)]
        docs = await self.requests.find({owner_field: user_id}, sort=[("created_at", 1)])
        return [ServiceRequestModel(**d) for d in docs]

    async def get(self, request_id: str, user_id: str) -> ServiceRequestModel:
        doc = await self.requests.read(request_id)
        if not doc or user_id not in (doc.get("employer_id"), doc.get("job_seeker_id")):
            raise NotFoundError("Request not found", resource="request", resource_id=request_id)
        return ServiceRequestModel(**doc)

    @log_function_call
    async def respond(self, context: SessionContext, request_id: str, decision: Decision) -> ServiceRequestModel:
        require_role(context, Role.JOB_SEEKER, "respond to service requests")
        decision = Decision(decision)
        target = next_status(RequestStatus.PENDING, decision)

        # Single conditional write; a second response finds no pending record
        updated = await self.requests.update_where(
            {
                "request_id": request_id,
                "job_seeker_id": context.user_id,
                "status": RequestStatus.PENDING.value,
            },
            {"status": target.value, "responded_at": datetime.utcnow()},
        )
        if updated:
            logger.info(f"Request {request_id} {target.value} by {context.user_id}")
            return ServiceRequestModel(**updated)

        current = await self.requests.read(request_id)
        if not current or current.get("job_seeker_id") != context.user_id:
            raise NotFoundError("Request not found", resource="request", resource_id=request_id)

        logger.warning(f"Rejected {decision.value} on request {request_id} in status {current.get('status')}")
        next_status(current["status"], decision)
        # Still pending, yet the conditional write missed it
        raise InvalidTransitionError(
            f"Request {request_id} changed while responding",
            current_status=current.get("status"),
            requested=decision.value,
        )
