"""
Custom exceptions for TeleStack service.

Provides structured error handling with appropriate HTTP status codes
and error details for API responses and diagnostics.
"""

from typing import Any, Dict, Optional


class TeleStackException(Exception):
    """Base exception for TeleStack service."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "internal_error",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class ConfigurationError(TeleStackException):
    """Raised when an action, location or matcher declaration is invalid."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="configuration_error",
            details=details,
        )


class ExpressionError(TeleStackException):
    """Raised when a query expression cannot be compiled or evaluated."""

    def __init__(self, message: str, expression: Optional[str] = None) -> None:
        details = {}
        if expression is not None:
            details["expression"] = expression

        super().__init__(
            message=message,
            status_code=422,
            error_code="expression_error",
            details=details,
        )


class DeliveryError(TeleStackException):
    """Raised when a consumer fails to process or deliver an event."""

    def __init__(
        self,
        message: str,
        consumer_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = dict(details or {})
        if consumer_id is not None:
            details["consumer_id"] = consumer_id

        super().__init__(
            message=message,
            status_code=502,
            error_code="delivery_error",
            details=details,
        )


class TransportFailure(DeliveryError):
    """Raised when a host cannot be reached or answers with a 5xx status."""

    def __init__(
        self,
        message: str,
        host: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        details: Dict[str, Any] = {}
        if host is not None:
            details["host"] = host
        if status is not None:
            details["status"] = status

        super().__init__(message=message, details=details)
        self.error_code = "transport_failure"
        self.host = host
        self.status = status


class HTTPStatusError(DeliveryError):
    """Raised for a non-retryable error status when error codes are not allowed."""

    def __init__(self, message: str, host: str, status: int) -> None:
        super().__init__(message=message, details={"host": host, "status": status})
        self.error_code = "http_status_error"
        self.host = host
        self.status = status
