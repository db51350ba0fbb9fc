"""
Shared error handling for the Music Access Gateway.

Every error raised inside a request is a ``GatewayError`` subclass that knows
its HTTP status; the service boundary renders it into the JSON envelope
``{"success": false, "message": ...}``.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    success: bool = False
    message: str


class GatewayError(Exception):
    """Base exception for gateway services."""

    status_code: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(message=self.message)


class ValidationError(GatewayError):
    """Bad or missing caller input."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class UnsupportedError(GatewayError):
    """Source or function outside the supported enums."""

    status_code = 400

    def __init__(self, message: str = "Unsupported value", details: Optional[Dict[str, Any]] = None):
        super().__init__("UNSUPPORTED_ERROR", message, details)


class NotFoundError(GatewayError):
    """Unknown route."""

    status_code = 404

    def __init__(self, message: str = "Endpoint not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class MethodNotAllowedError(GatewayError):
    """HTTP method not accepted on a known route."""

    status_code = 405

    def __init__(self, message: str = "Method not allowed", details: Optional[Dict[str, Any]] = None):
        super().__init__("METHOD_NOT_ALLOWED", message, details)


class RateLimitError(GatewayError):
    """Rate limiting errors."""

    status_code = 429

    def __init__(self, message: str = "Too many requests, please retry later", details: Optional[Dict[str, Any]] = None):
        super().__init__("RATE_LIMIT_ERROR", message, details)


class ConfigError(GatewayError):
    """Required process configuration is missing."""

    status_code = 500

    def __init__(self, message: str = "Gateway is misconfigured", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIG_ERROR", message, details)


class UpstreamError(GatewayError):
    """Upstream returned a non-2xx status or a body that is not JSON."""

    status_code = 502

    def __init__(self, service: str, message: str = "Upstream request failed", details: Optional[Dict[str, Any]] = None):
        self.service = service
        super().__init__("UPSTREAM_ERROR", message, details)
