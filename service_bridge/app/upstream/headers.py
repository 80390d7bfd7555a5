"""
Header lookup across the carrier shapes the brokerage SDK and HTTP clients produce.

Response and error objects surface headers as ``httpx.Headers``, plain dicts,
raw ASGI ``(bytes, bytes)`` lists, or bespoke SDK objects. Each shape gets a
small adapter exposing ``lookup(name)``; ``read_header`` tries the adapters
that fit a carrier in order of precision and returns the first hit.

Header names are compared case-insensitively. A carrier that blows up while
being read is logged and treated as missing the header, never raised.
"""

import json
from typing import Any, Iterable, List, Optional, Protocol, Tuple

from shared.logging import get_logger

logger = get_logger("bridge.headers")

REQUEST_ID_HEADER = "x-request-id"
RETRY_AFTER_HEADER = "retry-after"
RATE_LIMIT_LIMIT_HEADER = "x-ratelimit-limit"
RATE_LIMIT_REMAINING_HEADER = "x-ratelimit-remaining"
RATE_LIMIT_RESET_HEADER = "x-ratelimit-reset"

_SCALARS = (str, bytes, bytearray, int, float, bool)
_SNAPSHOT_LIMIT = 512


class HeaderLookup(Protocol):
    """Single-key, case-insensitive header read."""

    def lookup(self, name: str) -> Optional[str]:
        ...


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("latin-1")
    if isinstance(value, (list, tuple)):
        return ", ".join(_as_text(item) or "" for item in value)
    return str(value)


class GetterHeaders:
    """Carrier exposing ``get(name)``: httpx/starlette headers, dicts, SDK objects."""

    def __init__(self, carrier: Any):
        self.carrier = carrier

    def lookup(self, name: str) -> Optional[str]:
        value = self.carrier.get(name)
        if value is None:
            value = self.carrier.get(name.lower())
        return _as_text(value)


class EnumeratedHeaders:
    """Carrier enumerable as key/value pairs, via ``items()`` or as a list of pairs."""

    def __init__(self, carrier: Any):
        self.carrier = carrier

    def _entries(self) -> Iterable[Tuple[Any, Any]]:
        items = getattr(self.carrier, "items", None)
        if callable(items):
            return items()
        return self.carrier

    def lookup(self, name: str) -> Optional[str]:
        target = name.lower()
        for key, value in self._entries():
            if (_as_text(key) or "").lower() == target:
                return _as_text(value)
        return None


class AttributeHeaders:
    """Plain object whose own attributes are the header names."""

    def __init__(self, carrier: Any):
        self.carrier = carrier

    def lookup(self, name: str) -> Optional[str]:
        target = name.lower()
        for key, value in vars(self.carrier).items():
            if key.lower() == target:
                return _as_text(value)
        return None


def header_lookups(carrier: Any) -> List[HeaderLookup]:
    """Adapters applicable to ``carrier``, most precise first."""
    lookups: List[HeaderLookup] = []
    if callable(getattr(carrier, "get", None)):
        lookups.append(GetterHeaders(carrier))
    if callable(getattr(carrier, "items", None)) or isinstance(carrier, (list, tuple)):
        lookups.append(EnumeratedHeaders(carrier))
    if hasattr(carrier, "__dict__"):
        lookups.append(AttributeHeaders(carrier))
    return lookups


def read_header(carrier: Any, name: str) -> Optional[str]:
    """Return the value of header ``name`` from ``carrier``, or ``None``."""
    if carrier is None or isinstance(carrier, _SCALARS):
        return None

    try:
        lookups = header_lookups(carrier)
    except Exception as exc:
        _log_parse_error(name, carrier, exc)
        return None

    for adapter in lookups:
        try:
            value = adapter.lookup(name)
        except Exception as exc:
            _log_parse_error(name, carrier, exc)
            continue
        if value is not None:
            return value

    return None


def _log_parse_error(header_name: str, carrier: Any, error: Exception) -> None:
    logger.warning(
        "upstream.headers.parse_error",
        header_name=header_name,
        headers_snapshot=_safe_snapshot(carrier),
        carrier_type=type(carrier).__name__,
        error=str(error) or type(error).__name__,
    )


def _safe_snapshot(value: Any) -> str:
    try:
        snapshot = json.dumps(value, default=str)
    except (TypeError, ValueError):
        try:
            snapshot = repr(value)
        except Exception:
            snapshot = object.__repr__(value)
    return snapshot[:_SNAPSHOT_LIMIT]
