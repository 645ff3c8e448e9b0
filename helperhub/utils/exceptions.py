"""
Custom Exception Classes for the HelperHub API
"""
from typing import Dict, Any

from fastapi import HTTPException
from pymongo.errors import PyMongoError


class HelperHubError(Exception):
    """Base exception for the HelperHub core"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        cause: Exception = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/response"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class UnauthorizedError(HelperHubError):
    """Raised when no identity can be resolved for the caller"""

    def __init__(self, message: str = "Authentication required", **kwargs):
        super().__init__(message, error_code="UNAUTHORIZED", **kwargs)


class ValidationFailedError(HelperHubError):
    """Raised when input is rejected before the operation is attempted"""

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if field:
            details['field'] = field
        if value is not None:
            details['invalid_value'] = str(value)
        super().__init__(message, error_code="VALIDATION_FAILED", details=details, **kwargs)


class ForbiddenError(HelperHubError):
    """Raised when the caller's role or relation to a record does not permit the operation"""

    def __init__(self, message: str = "Insufficient permissions", resource: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if resource:
            details['resource'] = resource
        super().__init__(message, error_code="FORBIDDEN", details=details, **kwargs)


class ProfileIncompleteError(HelperHubError):
    """Raised when a job seeker must complete their profile before querying providers"""

    def __init__(self, message: str = "Please complete your profile first", redirect_to: str = "profile_completion", **kwargs):
        details = kwargs.pop('details', {})
        details['redirect_to'] = redirect_to
        super().__init__(message, error_code="PROFILE_INCOMPLETE", details=details, **kwargs)


class NotFoundError(HelperHubError):
    """Raised when a referenced provider, profile or request is absent"""

    def __init__(self, message: str, resource: str = None, resource_id: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if resource:
            details['resource'] = resource
        if resource_id:
            details['resource_id'] = resource_id
        super().__init__(message, error_code="NOT_FOUND", details=details, **kwargs)


class InvalidTransitionError(HelperHubError):
    """Raised when a request status change is attempted from a terminal state"""

    def __init__(self, message: str, current_status: str = None, requested: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if current_status:
            details['current_status'] = current_status
        if requested:
            details['requested'] = requested
        super().__init__(message, error_code="INVALID_TRANSITION", details=details, **kwargs)


class StoreUnavailableError(HelperHubError):
    """Raised when the backing store or blob store fails; the caller may retry"""

    def __init__(self, message: str, operation: str = None, collection: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if operation:
            details['operation'] = operation
        if collection:
            details['collection'] = collection
        details['retryable'] = True
        super().__init__(message, error_code="STORE_UNAVAILABLE", details=details, **kwargs)


class RoleUnresolvedError(HelperHubError):
    """Raised when neither role bucket holds a record for the identity"""

    def __init__(self, message: str, user_id: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if user_id:
            details['user_id'] = user_id
        super().__init__(message, error_code="ROLE_UNRESOLVED", details=details, **kwargs)


def map_to_http_exception(exc: HelperHubError) -> HTTPException:
    """Map custom exceptions to HTTP exceptions"""

    status_code_mapping = {
        UnauthorizedError: 401,
        ValidationFailedError: 400,
        ForbiddenError: 403,
        ProfileIncompleteError: 403,
        NotFoundError: 404,
        InvalidTransitionError: 409,
        StoreUnavailableError: 503,
        RoleUnresolvedError: 500,
    }

    status_code = status_code_mapping.get(type(exc), 500)

    detail = {
        "error": exc.to_dict(),
        "message": exc.message
    }

    return HTTPException(status_code=status_code, detail=detail)


class ExceptionContext:
    """Context manager that converts store-layer failures at an operation boundary"""

    def __init__(self, operation: str, logger=None, failure_message: str = None, **context):
        self.operation = operation
        self.logger = logger
        self.failure_message = failure_message
        self.context = context

    def __enter__(self):
        if self.logger:
            self.logger.debug(f"Starting operation: {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            if self.logger:
                self.logger.debug(f"Operation completed: {self.operation}", extra=self.context)
            return False

        if isinstance(exc_val, HelperHubError):
            return False

        if self.logger:
            self.logger.error(
                f"Operation failed: {self.operation} - {exc_val}",
                extra={**self.context, "exception_type": exc_type.__name__}
            )

        if isinstance(exc_val, (PyMongoError, OSError)):
            raise StoreUnavailableError(
                self.failure_message or f"Store error in {self.operation}. Please try again.",
                operation=self.operation,
                collection=self.context.get("collection"),
                cause=exc_val
            ) from exc_val

        return False
