"""
Shared error handling for DayOrg services.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from shared.logging import get_request_id


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ServiceException(Exception):
    """Base exception for DayOrg services."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, message: Optional[str] = None) -> ErrorResponse:
        """Convert to error response, optionally replacing the message."""
        return ErrorResponse(
            request_id=get_request_id(),
            code=self.code,
            message=self.message if message is None else message,
            details=self.details
        )


class RequestError(ServiceException):
    """Client-caused errors: malformed body or missing parameters."""

    status_code = 400

    def __init__(self, message: str = "Bad request", details: Optional[Dict[str, Any]] = None):
        super().__init__("REQUEST_ERROR", message, details)


class StoreError(ServiceException):
    """Backend storage errors: connection or query failure."""

    status_code = 500

    def __init__(self, message: str = "Store error", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_ERROR", message, details)


def internal_error(request_id: Optional[str] = None) -> ErrorResponse:
    """Error body for a failure no handler accounted for."""
    return ErrorResponse(
        request_id=request_id,
        code="INTERNAL_ERROR",
        message="Internal server error"
    )
