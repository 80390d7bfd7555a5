"""
Unit tests for header lookup across carrier shapes.
"""

from unittest.mock import patch

import httpx
import pytest
from fastapi.datastructures import Headers

from service_bridge.app.upstream.headers import header_lookups, read_header


class SdkHeaders:
    """Bespoke SDK header object exposing attributes only."""

    def __init__(self):
        self.X_Custom = "ignored"
        setattr(self, "X-Request-ID", "attr-id")


class ExplodingHeaders:
    def get(self, name):
        raise RuntimeError("boom")

    def items(self):
        return [("x-request-id", "from-items")]


class BrokenHeaders:
    def get(self, name):
        raise RuntimeError("boom")


class TestReadHeader:
    """Test cases for read_header."""

    @pytest.mark.parametrize("carrier", [
        {"X-Request-ID": "abc"},
        {"x-request-id": "abc"},
        {"X-REQUEST-ID": "abc"},
        httpx.Headers({"X-Request-Id": "abc"}),
        Headers(raw=[(b"x-request-id", b"abc")]),
        [(b"X-Request-ID", b"abc")],
        [("x-request-id", "abc")],
        (("X-Request-Id", "abc"),),
    ])
    def test_case_insensitive_across_shapes(self, carrier):
        """Test case-insensitive lookup on every carrier shape."""
        assert read_header(carrier, "x-request-id") == "abc"
        assert read_header(carrier, "X-REQUEST-ID") == "abc"

    def test_attribute_carrier(self):
        """Test attribute-only SDK header objects."""
        assert read_header(SdkHeaders(), "x-request-id") == "attr-id"

    @pytest.mark.parametrize("carrier", [None, "x-request-id", b"x-request-id", 42, 1.5, True])
    def test_non_carriers(self, carrier):
        """Test scalars are never treated as header carriers."""
        assert read_header(carrier, "x-request-id") is None

    def test_missing_header(self):
        """Test absent headers return None."""
        assert read_header({"other": "1"}, "x-request-id") is None
        assert read_header([], "x-request-id") is None

    def test_non_string_values_are_stringified(self):
        """Test numeric and bytes values come back as strings."""
        assert read_header({"x-ratelimit-limit": 250}, "x-ratelimit-limit") == "250"
        assert read_header({"x-ratelimit-limit": b"250"}, "x-ratelimit-limit") == "250"

    def test_falls_through_after_getter_error(self):
        """A failing adapter is logged and the next one is tried."""
        with patch("service_bridge.app.upstream.headers.logger") as logger:
            assert read_header(ExplodingHeaders(), "X-Request-ID") == "from-items"
        logger.warning.assert_called_once()
        assert logger.warning.call_args.args[0] == "upstream.headers.parse_error"

    def test_parse_error_returns_none(self):
        """Test a carrier failing every lookup gives None."""
        with patch("service_bridge.app.upstream.headers.logger") as logger:
            assert read_header(BrokenHeaders(), "x-request-id") is None
        kwargs = logger.warning.call_args.kwargs
        assert kwargs["header_name"] == "x-request-id"
        assert kwargs["error"] == "boom"

    def test_lookup_order(self):
        """Test adapters are tried getter first, then enumeration."""
        kinds = [type(adapter).__name__ for adapter in header_lookups({"a": "b"})]
        assert kinds[:2] == ["GetterHeaders", "EnumeratedHeaders"]
