"""
Shared error handling for the HTTP interceptors.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import get_request_id


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class InterceptorException(Exception):
    """Base exception for the HTTP interceptors."""

    status_code: int = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=get_request_id(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(InterceptorException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class ConfigurationError(InterceptorException):
    """Misconfigured interceptor or missing request context."""

    status_code = 500

    def __init__(self, message: str = "Configuration error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class ExternalServiceError(InterceptorException):
    """External service errors."""

    status_code = 502

    def __init__(self, service: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        super().__init__("EXTERNAL_SERVICE_ERROR", f"{service}: {message}", details)


class OperationTooFrequentError(InterceptorException):
    """The same operation was repeated inside its anti-replay window."""

    status_code = 429

    def __init__(self, operation: str, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.operation = operation
        details = dict(details or {})
        details.setdefault("operation", operation)
        super().__init__(
            "OPERATION_TOO_FREQUENT",
            message or f"Operation too frequent: {operation}",
            details
        )
