"""
Unit tests for the brokerage HTTP client.
"""

import base64
import hashlib
import hmac
import json

import httpx
import pytest

from service_bridge.app.adapters import HttpBrokerageClient
from service_bridge.app.upstream import FailureShape, normalize_failure

BASE_URL = "https://api.snaptrade.com/api/v1"
ACCOUNT_ID = "8d5f0b3c-2a4e-4c1f-9b7a-1e2d3c4b5a6f"


def make_client(handler):
    return HttpBrokerageClient(
        base_url=BASE_URL,
        client_id="partner-id",
        consumer_key="consumer-key",
        transport=httpx.MockTransport(handler),
    )


def expected_signature(request: httpx.Request) -> str:
    content = json.loads(request.content) if request.content else None
    message = json.dumps(
        {"content": content, "path": request.url.path, "query": request.url.query.decode()},
        separators=(",", ":"),
        sort_keys=True,
    )
    digest = hmac.new(b"consumer-key", message.encode(), hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


class TestHttpBrokerageClient:
    """Test cases for HttpBrokerageClient."""

    @pytest.mark.asyncio
    async def test_signed_get_with_envelope(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[{"symbol": "BTC-USD"}], headers={"X-Request-ID": "req-1"})

        client = make_client(handler)
        result = await client.search_crypto_pairs(
            account_id=ACCOUNT_ID, user_id="user-1", user_secret="secret", base="BTC"
        )
        await client.aclose()

        assert result["data"] == [{"symbol": "BTC-USD"}]
        assert result["headers"]["x-request-id"] == "req-1"

        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == (
            f"/api/v1/accounts/{ACCOUNT_ID}/trading/instruments/cryptocurrencyPairs"
        )
        params = request.url.params
        assert params["clientId"] == "partner-id"
        assert params["userId"] == "user-1"
        assert params["userSecret"] == "secret"
        assert params["base"] == "BTC"
        assert "quote" not in params
        assert params["timestamp"].isdigit()
        assert request.headers["Signature"] == expected_signature(request)

    @pytest.mark.asyncio
    async def test_quote_symbol_is_path_escaped(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"bid": "1"})

        client = make_client(handler)
        await client.get_crypto_quote(
            account_id=ACCOUNT_ID, user_id="u", user_secret="s", instrument_symbol="BTC/USD"
        )
        await client.aclose()

        assert seen[0].url.raw_path.startswith(
            f"/api/v1/accounts/{ACCOUNT_ID}/trading/instruments/cryptocurrencyPairs/BTC%2FUSD/quote".encode()
        )

    @pytest.mark.asyncio
    async def test_post_body_is_signed(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"trade": {"id": "t-1"}})

        form = {"account_id": ACCOUNT_ID, "action": "BUY", "symbol": "AAPL", "units": 1}
        client = make_client(handler)
        result = await client.get_order_impact(user_id="u", user_secret="s", form=form)
        await client.aclose()

        request = seen[0]
        assert request.url.path == "/api/v1/trade/impact"
        assert json.loads(request.content) == form
        assert request.headers["Signature"] == expected_signature(request)
        assert result["data"] == {"trade": {"id": "t-1"}}

    @pytest.mark.asyncio
    async def test_checked_order_body(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"status": "EXECUTED"})

        client = make_client(handler)
        await client.place_checked_order(user_id="u", user_secret="s", trade_id="abc", wait_to_confirm=False)
        await client.aclose()

        assert seen[0].url.path == "/api/v1/trade/abc"
        assert json.loads(seen[0].content) == {"wait_to_confirm": False}

    @pytest.mark.asyncio
    async def test_order_detail_request(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"status": "FILLED"})

        client = make_client(handler)
        await client.get_order_detail(
            account_id=ACCOUNT_ID, user_id="u", user_secret="s", brokerage_order_id="ord-1"
        )
        await client.aclose()

        assert seen[0].url.path == f"/api/v1/accounts/{ACCOUNT_ID}/orders/details"
        assert json.loads(seen[0].content) == {"brokerage_order_id": "ord-1"}

    @pytest.mark.asyncio
    async def test_error_status_raises_enveloped_failure(self):
        body = {"code": "1076", "detail": "Insufficient buying power"}

        def handler(request):
            return httpx.Response(400, json=body, headers={"X-Request-ID": "req-400"})

        client = make_client(handler)
        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await client.place_crypto_order(
                account_id=ACCOUNT_ID, user_id="u", user_secret="s", order={"side": "BUY"}
            )
        await client.aclose()

        failure = normalize_failure(exc_info.value)
        assert failure.shape is FailureShape.ENVELOPED
        assert failure.status_code == 400
        assert failure.raw_payload == body
        assert failure.correlation_id == "req-400"

    @pytest.mark.asyncio
    async def test_no_retry_on_failure(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503, text="unavailable")

        client = make_client(handler)
        with pytest.raises(httpx.HTTPStatusError):
            await client.place_force_order(user_id="u", user_secret="s", form={})
        await client.aclose()

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_empty_success_body(self):
        client = make_client(lambda request: httpx.Response(204))
        result = await client.preview_crypto_order(
            account_id=ACCOUNT_ID, user_id="u", user_secret="s", order={}
        )
        await client.aclose()

        assert result["data"] is None
