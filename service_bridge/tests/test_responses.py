"""
Unit tests for success-path unwrapping and rate-limit extraction.
"""

import httpx

from service_bridge.app.upstream import RateLimitInfo, extract_rate_limit, unwrap_response


class SdkResponse:
    def __init__(self, data, headers=None):
        self.data = data
        self.headers = headers


class ExplodingData:
    @property
    def data(self):
        raise RuntimeError("stream already consumed")


def test_envelope_mapping():
    """Test mapping envelopes yield payload, headers and request id."""
    headers = {"X-Request-ID": "req-1"}
    result = unwrap_response({"data": {"id": 1}, "headers": headers})

    assert result.payload == {"id": 1}
    assert result.correlation_id == "req-1"
    assert result.headers is headers


def test_envelope_without_headers():
    """Test envelopes without headers."""
    result = unwrap_response({"data": [1, 2]})

    assert result.payload == [1, 2]
    assert result.correlation_id is None
    assert result.headers is None


def test_sdk_response_object():
    """Test SDK response objects with a data attribute."""
    result = unwrap_response(SdkResponse({"ok": True}, httpx.Headers({"x-request-id": "req-2"})))

    assert result.payload == {"ok": True}
    assert result.correlation_id == "req-2"


def test_bare_payloads():
    """Test non-envelope values are returned as the payload."""
    payload = {"symbol": "BTC-USD"}
    assert unwrap_response(payload).payload is payload
    assert unwrap_response([1]).payload == [1]
    assert unwrap_response("text").payload == "text"
    assert unwrap_response(None).payload is None


def test_unreadable_data_attribute_is_payload():
    """Test an unreadable data attribute leaves the value as payload."""
    value = ExplodingData()
    result = unwrap_response(value)

    assert result.payload is value
    assert result.correlation_id is None


def test_extract_rate_limit():
    """Test rate-limit headers are read."""
    headers = httpx.Headers({
        "X-RateLimit-Limit": "250",
        "X-RateLimit-Remaining": "10",
        "X-RateLimit-Reset": "30",
    })
    assert extract_rate_limit(headers) == RateLimitInfo(limit="250", remaining="10", reset="30")


def test_extract_rate_limit_absent():
    """Test absent rate-limit headers stay None."""
    assert extract_rate_limit({"x-ratelimit-limit": "5"}) == RateLimitInfo(limit="5")
    assert extract_rate_limit(None) == RateLimitInfo()
