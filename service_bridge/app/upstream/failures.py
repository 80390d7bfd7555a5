"""
Classification and normalization of brokerage client failures.

The brokerage client fails in structurally different ways depending on which
layer raised: HTTP client errors wrap a response object (``error.response``
with its own status, headers and body) while the SDK's API exceptions carry
``status``/``body``/``headers`` directly. Both are recognised by the fields
they expose rather than by type, and projected onto one
:class:`NormalizedFailure`.

The downstream error mapper reads nested fields (``code``, ``raw_error``
remediation details) out of the brokerage's native error JSON, so structured
payloads are relayed exactly as received together with the upstream status.
Only failures of unknown shape are masked behind a generic 500.
"""

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from shared.logging import get_logger

from .headers import REQUEST_ID_HEADER, RETRY_AFTER_HEADER, read_header
from .responses import RateLimitInfo, extract_rate_limit

logger = get_logger("bridge.failures")

DEFAULT_UPSTREAM_STATUS = 502
UNKNOWN_FAILURE_STATUS = 500
FALLBACK_ERROR_CODE = "SNAPTRADE_ERROR"
INTERNAL_ERROR_PAYLOAD = {
    "error": "internal_error",
    "message": "Failed to process brokerage request",
}

_MISSING = object()


class FailureShape(str, Enum):
    """Recognised failure layouts, in the order they are tested."""

    ENVELOPED = "enveloped"  # error.response carries status/headers/body
    FLAT = "flat"            # status/body/headers live on the error itself
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class NormalizedFailure:
    status_code: int
    raw_payload: Any
    correlation_id: Optional[str] = None
    rate_limit: RateLimitInfo = field(default_factory=RateLimitInfo)
    retry_after: Optional[str] = None
    shape: FailureShape = FailureShape.UNKNOWN

    @property
    def is_classified(self) -> bool:
        """True when the upstream's own status and payload are being relayed."""
        return self.shape is not FailureShape.UNKNOWN


@dataclass(frozen=True)
class _Located:
    """The parts of a failure that extraction works from."""

    status: Any
    headers: Any
    payload: Any


def _field(source: Any, name: str) -> Any:
    """Read ``name`` as a mapping key or attribute; ``None`` when absent or unreadable."""
    if isinstance(source, Mapping):
        return source.get(name)
    try:
        return getattr(source, name, None)
    except Exception:
        # Properties such as an unread streaming body raise on access.
        return None


def _first(source: Any, *names: str) -> Any:
    for name in names:
        value = _field(source, name)
        if value is not None:
            return value
    return None


def _as_status(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return int(value)


def _locate_enveloped(error: Any) -> Optional[_Located]:
    response = _field(error, "response")
    if response is None:
        return None
    return _Located(
        status=_first(response, "status_code", "status"),
        headers=_field(response, "headers"),
        payload=_first(response, "data", "body", "text"),
    )


def _locate_flat(error: Any) -> Optional[_Located]:
    status = None
    for name in ("status", "status_code"):
        status = _as_status(_field(error, name))
        if status is not None:
            break
    if status is None:
        return None

    payload = _first(error, "response_body", "body")
    headers = _field(error, "headers")
    if payload is None and headers is None:
        return None
    return _Located(status=status, headers=headers, payload=payload)


_SHAPE_DETECTORS: Tuple[Tuple[FailureShape, Callable[[Any], Optional[_Located]]], ...] = (
    (FailureShape.ENVELOPED, _locate_enveloped),
    (FailureShape.FLAT, _locate_flat),
)


def _locate(error: Any) -> Tuple[FailureShape, Optional[_Located]]:
    for shape, detector in _SHAPE_DETECTORS:
        located = detector(error)
        if located is not None:
            return shape, located
    return FailureShape.UNKNOWN, None


def classify_failure(error: Any) -> FailureShape:
    """Which recognised layout ``error`` has."""
    shape, _ = _locate(error)
    return shape


def _status_code(value: Any) -> int:
    status = _as_status(value)
    # No usable status means the brokerage was effectively unavailable; never
    # fall back to a caller-side 4xx.
    if status is None or not 100 <= status <= 599:
        return DEFAULT_UPSTREAM_STATUS
    return status


def _failure_message(error: Any) -> str:
    message = _field(error, "message")
    if isinstance(message, str) and message:
        return message
    text = str(error) if isinstance(error, BaseException) else ""
    return text or type(error).__name__


def _reject_constant(name: str) -> Any:
    # Relayed bodies must stay strict JSON.
    raise ValueError(f"non-standard JSON constant {name}")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"non-finite JSON number {text}")
    return value


def _fallback_payload(detail: str) -> dict:
    return {"code": FALLBACK_ERROR_CODE, "detail": detail}


def normalize_payload(raw: Any, error: Any) -> Any:
    """Structured payloads pass through untouched; strings are parsed when they hold JSON."""
    if isinstance(raw, (dict, list)):
        return raw
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, tuple):
        return list(raw)
    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw).decode("utf-8", errors="replace")
    if isinstance(raw, str):
        try:
            parsed = json.loads(
                raw, parse_constant=_reject_constant, parse_float=_finite_float
            )
        except ValueError:
            parsed = None
        if isinstance(parsed, (dict, list)):
            return parsed
        return _fallback_payload(raw)
    return _fallback_payload(_failure_message(error))


def normalize_failure(error: Any) -> NormalizedFailure:
    """Project a caught brokerage failure onto a :class:`NormalizedFailure`."""
    shape, located = _locate(error)

    if located is None:
        logger.error(
            "Unhandled brokerage failure",
            error_type=type(error).__name__,
            error=_failure_message(error),
            exc_info=error if isinstance(error, BaseException) else None,
        )
        return NormalizedFailure(
            status_code=UNKNOWN_FAILURE_STATUS,
            raw_payload=dict(INTERNAL_ERROR_PAYLOAD),
            shape=FailureShape.UNKNOWN,
        )

    return NormalizedFailure(
        status_code=_status_code(located.status),
        raw_payload=normalize_payload(located.payload, error),
        correlation_id=read_header(located.headers, REQUEST_ID_HEADER),
        rate_limit=extract_rate_limit(located.headers),
        retry_after=read_header(located.headers, RETRY_AFTER_HEADER),
        shape=shape,
    )
