"""
Shared error handling for the Brokerage Bridge.

Errors raised here are resolved locally: they never reach the upstream
brokerage. Upstream failures are relayed through
``service_bridge.app.upstream.failures`` instead.
"""

import math
from typing import Dict, Any, List, Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    """Standard error response format."""

    model_config = ConfigDict(extra="allow")

    error: str
    message: str


class BridgeException(Exception):
    """Base exception for bridge services."""

    status_code: int = 400

    def __init__(self, error: str, message: str, status_code: Optional[int] = None,
                 extra: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None):
        self.error = error
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}
        self.headers = headers or {}
        super().__init__(message)

    def to_response(self) -> JSONResponse:
        """Convert to a JSON response."""
        body = ErrorResponse(error=self.error, message=self.message, **self.extra)
        return JSONResponse(
            status_code=self.status_code,
            content=body.model_dump(),
            headers=self.headers or None,
        )


class ValidationError(BridgeException):
    """Caller input failed schema or cross-field validation."""

    status_code = 400

    def __init__(self, issues: Dict[str, List[str]], message: str = "Validation failed"):
        self.issues = issues
        super().__init__("validation_error", message, extra={"issues": issues})


class InvalidJsonError(BridgeException):
    """Request body could not be parsed as JSON."""

    status_code = 400

    def __init__(self, message: str = "Unable to parse request body"):
        super().__init__("invalid_json", message)


class AuthenticationError(BridgeException):
    """Caller failed the shared-secret check."""

    status_code = 401

    def __init__(self, message: str = "Missing or invalid shared secret."):
        super().__init__("unauthorized", message)


class AdmissionDenied(BridgeException):
    """Per-key admission control rejected the operation."""

    status_code = 429

    def __init__(self, retry_after_ms: int, message: str = "Rate limit exceeded"):
        self.retry_after_ms = retry_after_ms
        # Retry-After is whole seconds, rounded up, never below one.
        retry_after_seconds = max(1, math.ceil(retry_after_ms / 1000))
        super().__init__(
            "rate_limited",
            message,
            extra={"retryAfterMs": retry_after_ms},
            headers={"Retry-After": str(retry_after_seconds)},
        )
