"""
HTTP exceptions carrying machine-readable error codes.

Every exception renders as `{"success": false, "error": {"message", "code"}}`
through the application's APIException handler. Subclasses only pick a
status code and defaults.

Example:
    from common.utils import NotFoundException

    @router.get("/circles/{circle_id}")
    async def get_circle(circle_id: str):
        circle = await membership_service.get_circle(circle_id)
        if not circle:
            raise NotFoundException("Circle not found", code="CIRCLE_NOT_FOUND")
        return success_response(format_circle(circle))
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException

from common.utils.responses import error_response


class APIException(HTTPException):
    """
    Base API exception with error code support.

    The `detail` handed to FastAPI holds the same message and code, so the
    error stays readable even where the custom handler is not installed.
    """

    status = 500
    default_message = "Internal server error"
    default_code = "INTERNAL_ERROR"
    default_headers: Optional[Dict[str, str]] = None

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details

        detail: Dict[str, Any] = {"message": self.message, "code": self.code}
        if details is not None:
            detail["details"] = details

        super().__init__(
            status_code=self.status,
            detail=detail,
            headers=headers or self.default_headers,
        )

    def to_response(self) -> Dict[str, Any]:
        """Body for the JSON error response."""
        return error_response(self.message, code=self.code, details=self.details)


class UnauthorizedException(APIException):
    """401 - No valid bearer token."""

    status = 401
    default_message = "Unauthorized"
    default_code = "UNAUTHORIZED"
    default_headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenException(APIException):
    """403 - Authenticated, but not allowed to do this."""

    status = 403
    default_message = "Forbidden"
    default_code = "FORBIDDEN"


class NotFoundException(APIException):
    """404 - The addressed record does not exist or is hidden from the caller."""

    status = 404
    default_message = "Not found"
    default_code = "NOT_FOUND"


class ConflictException(APIException):
    """409 - Row already exists, e.g. a repeated join."""

    status = 409
    default_message = "Conflict"
    default_code = "CONFLICT"


class ValidationException(APIException):
    """422 - Input failed a domain check the request schema cannot express."""

    status = 422
    default_message = "Validation error"
    default_code = "VALIDATION_ERROR"


class InternalServerException(APIException):
    """500 - Unexpected failure, including an aborted circle creation."""


class ServiceUnavailableException(APIException):
    """503 - The document store is temporarily unreachable."""

    status = 503
    default_message = "Service temporarily unavailable, please try again"
    default_code = "SERVICE_UNAVAILABLE"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        retry_after: Optional[int] = None,
    ):
        headers = {"Retry-After": str(retry_after)} if retry_after else None
        super().__init__(
            message=message,
            code=code,
            details={"retryAfter": retry_after} if retry_after else None,
            headers=headers,
        )
