"""
Success-path normalization of brokerage client results.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from .headers import (
    RATE_LIMIT_LIMIT_HEADER,
    RATE_LIMIT_REMAINING_HEADER,
    RATE_LIMIT_RESET_HEADER,
    REQUEST_ID_HEADER,
    read_header,
)


@dataclass(frozen=True)
class RateLimitInfo:
    """Partner-level throttling counters reported by the brokerage."""

    limit: Optional[str] = None
    remaining: Optional[str] = None
    reset: Optional[str] = None


@dataclass(frozen=True)
class UnwrappedResponse:
    payload: Any
    correlation_id: Optional[str] = None
    headers: Any = None


def extract_rate_limit(headers: Any) -> RateLimitInfo:
    """Read the rate-limit counters from ``headers``; missing ones stay ``None``."""
    return RateLimitInfo(
        limit=read_header(headers, RATE_LIMIT_LIMIT_HEADER),
        remaining=read_header(headers, RATE_LIMIT_REMAINING_HEADER),
        reset=read_header(headers, RATE_LIMIT_RESET_HEADER),
    )


def unwrap_response(result: Any) -> UnwrappedResponse:
    """
    Split a brokerage client result into payload, correlation id and headers.

    The client either returns the bare payload or an envelope carrying ``data``
    and ``headers`` (a mapping, or an SDK response object with those
    attributes). Anything that is not an envelope is the payload itself.
    """
    if isinstance(result, Mapping):
        if "data" not in result:
            return UnwrappedResponse(payload=result)
        headers = result.get("headers")
        return UnwrappedResponse(
            payload=result["data"],
            correlation_id=read_header(headers, REQUEST_ID_HEADER),
            headers=headers,
        )

    if result is not None and not isinstance(result, (str, bytes, list, tuple)):
        try:
            payload = result.data
            headers = getattr(result, "headers", None)
        except Exception:
            # No usable ``data`` attribute: the object is the payload.
            return UnwrappedResponse(payload=result)
        return UnwrappedResponse(
            payload=payload,
            correlation_id=read_header(headers, REQUEST_ID_HEADER),
            headers=headers,
        )

    return UnwrappedResponse(payload=result)
