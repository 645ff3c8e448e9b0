"""
Error envelope and request middlewares for the HelperHub API.

Every failed request is answered with the same JSON shape::

    {"success": false, "timestamp": ..., "request_id": ..., "status_code": ...,
     "error": {...}, "message": "..."}

``HelperHubError`` and anything unexpected are caught by
``ExceptionHandlerMiddleware``; request-body validation is rejected inside
FastAPI before the middleware sees it, so it gets its own handler that
renders the same envelope.
"""
import time
import uuid
from datetime import datetime
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware

from helperhub.utils.exceptions import HelperHubError, map_to_http_exception
from helperhub.utils.logging_config import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def request_id_of(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def error_envelope(request_id: str, status_code: int, body: Dict[str, Any]) -> JSONResponse:
    content = {
        "success": False,
        "timestamp": datetime.utcnow().isoformat(),
        "request_id": request_id,
        "status_code": status_code,
        **body,
    }
    return JSONResponse(status_code=status_code, content=content, headers={REQUEST_ID_HEADER: request_id})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    request_id = request_id_of(request)
    logger.info(
        f"Rejected request body for {request.method} {request.url.path}",
        extra={"request_id": request_id, "error_count": len(exc.errors())}
    )
    return error_envelope(request_id, 422, {
        "error": {"error_code": "REQUEST_INVALID", "validation_errors": jsonable_encoder(exc.errors())},
        "message": "Request data validation failed",
    })


def install_error_handling(app: FastAPI) -> None:
    """Register the envelope for both middleware-caught and FastAPI-caught errors."""
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_middleware(ExceptionHandlerMiddleware)


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and turns raised errors into the envelope"""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        route = f"{request.method} {request.url.path}"

        try:
            response = await call_next(request)
        except HelperHubError as exc:
            http_exc = map_to_http_exception(exc)
            # 4xx are caller mistakes; only server-side failures are errors
            log = logger.error if http_exc.status_code >= 500 else logger.info
            log(
                f"{route} -> {http_exc.status_code} {exc.error_code}: {exc.message}",
                extra={"request_id": request_id, "details": exc.details}
            )
            return error_envelope(request_id, http_exc.status_code, http_exc.detail)
        except ValidationError as exc:
            # A stored document that no longer fits its model
            logger.error(
                f"{route} -> 500 stored data failed validation: {exc.error_count()} error(s)",
                extra={"request_id": request_id}
            )
            return error_envelope(request_id, 500, {
                "error": {
                    "error_code": "DATA_INVALID",
                    "validation_errors": exc.errors(include_url=False, include_context=False),
                },
                "message": "Stored data is in an unexpected format",
            })
        except Exception as exc:
            logger.exception(f"{route} -> 500 unhandled {exc.__class__.__name__}", extra={"request_id": request_id})
            return error_envelope(request_id, 500, {
                "error": {"error_code": "INTERNAL_ERROR"},
                "message": "An unexpected error occurred. Please try again later.",
            })

        logger.debug(f"{route} -> {response.status_code}", extra={"request_id": request_id})
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Adds X-Processing-Time and warns about slow requests"""

    def __init__(self, app, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        if elapsed > self.slow_request_threshold:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} took {elapsed:.3f}s",
                extra={"request_id": request_id_of(request), "threshold": self.slow_request_threshold}
            )

        response.headers["X-Processing-Time"] = f"{elapsed:.3f}"
        return response
