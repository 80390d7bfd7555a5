"""
Unit tests for brokerage failure classification and normalization.
"""

import json
from types import SimpleNamespace
from unittest.mock import patch

import httpx
import pytest

from service_bridge.app.upstream import FailureShape, classify_failure, normalize_failure
from service_bridge.app.upstream.failures import normalize_payload


class ApiException(Exception):
    def __init__(self, status=None, body=None, headers=None, reason="error"):
        super().__init__(reason)
        self.status = status
        self.body = body
        self.headers = headers


def status_error(status, body, headers=None):
    request = httpx.Request("POST", "https://api.snaptrade.com/api/v1/trade/place")
    response = httpx.Response(status, content=body, headers=headers or {}, request=request)
    return httpx.HTTPStatusError("failed", request=request, response=response)


class TestClassifyFailure:
    """Test cases for failure shape detection."""

    def test_enveloped(self):
        """Test errors carrying a nested response."""
        assert classify_failure(status_error(400, b"{}")) is FailureShape.ENVELOPED
        assert classify_failure({"response": {"status": 400}}) is FailureShape.ENVELOPED

    def test_flat(self):
        """Test SDK-style errors with status and body on the error itself."""
        assert classify_failure(ApiException(400, body="{}")) is FailureShape.FLAT
        assert classify_failure(ApiException(400, headers={})) is FailureShape.FLAT
        assert classify_failure({"status_code": 409, "response_body": {}}) is FailureShape.FLAT

    def test_flat_requires_payload_or_headers(self):
        assert classify_failure(ApiException(400)) is FailureShape.UNKNOWN

    def test_boolean_status_is_not_numeric(self):
        assert classify_failure(ApiException(True, body="{}")) is FailureShape.UNKNOWN

    def test_unknown(self):
        """Test values matching no known shape."""
        assert classify_failure(RuntimeError("boom")) is FailureShape.UNKNOWN
        assert classify_failure("boom") is FailureShape.UNKNOWN
        assert classify_failure(None) is FailureShape.UNKNOWN


class TestNormalizeFailure:
    """Test cases for failure normalization."""

    def test_enveloped_object_payload_is_preserved(self):
        """Test object payloads are passed through untouched."""
        payload = {"code": "1076", "raw_error": {"message": "no funds"}}
        error = SimpleNamespace(response=SimpleNamespace(status=422, data=payload, headers={}))

        failure = normalize_failure(error)

        assert failure.status_code == 422
        assert failure.raw_payload is payload
        assert failure.shape is FailureShape.ENVELOPED

    def test_flat_object_payload_is_preserved(self):
        payload = [{"code": "1"}]
        failure = normalize_failure(ApiException(400, body=payload))

        assert failure.status_code == 400
        assert failure.raw_payload is payload
        assert failure.shape is FailureShape.FLAT

    def test_http_status_error_with_headers(self):
        """Test correlation and rate-limit headers are read from the response."""
        error = status_error(
            429,
            json.dumps({"code": "RATE"}).encode(),
            headers={
                "X-Request-ID": "req-9",
                "Retry-After": "7",
                "X-RateLimit-Limit": "250",
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": "45",
            },
        )

        failure = normalize_failure(error)

        assert failure.status_code == 429
        assert failure.raw_payload == {"code": "RATE"}
        assert failure.correlation_id == "req-9"
        assert failure.retry_after == "7"
        assert failure.rate_limit.limit == "250"
        assert failure.rate_limit.remaining == "0"
        assert failure.rate_limit.reset == "45"

    def test_non_json_string_payload_uses_fallback(self):
        """Test plain-text bodies are wrapped in the fallback payload."""
        failure = normalize_failure(ApiException(503, body="Service Unavailable"))

        assert failure.status_code == 503
        assert failure.raw_payload == {"code": "SNAPTRADE_ERROR", "detail": "Service Unavailable"}

    def test_json_scalar_string_uses_fallback(self):
        failure = normalize_failure(ApiException(400, body="42"))
        assert failure.raw_payload == {"code": "SNAPTRADE_ERROR", "detail": "42"}

    @pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity", "1e999"])
    def test_non_standard_json_constants_use_fallback(self, constant):
        """Test bodies with non-finite numbers are not parsed."""
        body = '{"code": "1", "detail": %s}' % constant
        failure = normalize_failure(ApiException(400, body=body))

        assert failure.status_code == 400
        assert failure.raw_payload == {"code": "SNAPTRADE_ERROR", "detail": body}
        json.dumps(failure.raw_payload, allow_nan=False)

    def test_missing_payload_uses_error_message(self):
        failure = normalize_failure(ApiException(400, headers={}, reason="Bad Request"))
        assert failure.raw_payload == {"code": "SNAPTRADE_ERROR", "detail": "Bad Request"}

    @pytest.mark.parametrize(
        "status", [None, "abc", 0, -1, 1000, float("nan"), float("inf"), float("-inf")]
    )
    def test_unusable_status_defaults_to_502(self, status):
        """Test absent, non-numeric, non-finite and out-of-range statuses."""
        error = SimpleNamespace(response=SimpleNamespace(status=status, data={}, headers={}))
        assert normalize_failure(error).status_code == 502

    def test_float_status_is_truncated(self):
        error = SimpleNamespace(response=SimpleNamespace(status=404.0, data={}, headers={}))
        assert normalize_failure(error).status_code == 404

    def test_unknown_failure_is_masked_and_logged(self):
        """Test unknown failures hide their detail and are logged."""
        with patch("service_bridge.app.upstream.failures.logger") as logger:
            failure = normalize_failure(RuntimeError("leaky detail"))

        assert failure.status_code == 500
        assert failure.raw_payload == {
            "error": "internal_error",
            "message": "Failed to process brokerage request",
        }
        assert failure.correlation_id is None
        assert failure.retry_after is None
        assert failure.rate_limit.limit is None
        assert not failure.is_classified
        logger.error.assert_called_once()

    def test_connection_error_is_unknown(self):
        request = httpx.Request("GET", "https://api.snaptrade.com/api/v1/accounts")
        failure = normalize_failure(httpx.ConnectError("refused", request=request))
        assert failure.status_code == 500
        assert failure.shape is FailureShape.UNKNOWN


class TestNormalizePayload:
    """Test cases for raw payload normalization."""

    def test_bytes_are_decoded(self):
        assert normalize_payload(b'{"a": 1}', None) == {"a": 1}

    def test_tuple_becomes_list(self):
        assert normalize_payload(("a",), None) == ["a"]

    def test_non_standard_constant_in_bytes_uses_fallback(self):
        assert normalize_payload(b"[NaN]", None) == {"code": "SNAPTRADE_ERROR", "detail": "[NaN]"}

    def test_other_types_fall_back_to_message(self):
        """Test unsupported payload types fall back to the error message."""
        assert normalize_payload(12, RuntimeError("boom")) == {"code": "SNAPTRADE_ERROR", "detail": "boom"}
        assert normalize_payload(None, RuntimeError()) == {
            "code": "SNAPTRADE_ERROR",
            "detail": "RuntimeError",
        }
