"""
Brokerage API client for the Bridge.
"""

import base64
import hashlib
import hmac
import json
import time
from typing import Any, Dict, Optional
from urllib.parse import quote as quote_path

import httpx
from typing_extensions import Protocol

from shared.logging import get_logger


class BrokerageClient(Protocol):
    """Upstream operations the bridge relays; one coroutine per operation."""

    async def search_crypto_pairs(self, *, account_id: str, user_id: str, user_secret: str,
                                  base: Optional[str] = None,
                                  quote: Optional[str] = None) -> Any: ...

    async def get_crypto_quote(self, *, account_id: str, user_id: str, user_secret: str,
                               instrument_symbol: str) -> Any: ...

    async def preview_crypto_order(self, *, account_id: str, user_id: str, user_secret: str,
                                   order: Dict[str, Any]) -> Any: ...

    async def place_crypto_order(self, *, account_id: str, user_id: str, user_secret: str,
                                 order: Dict[str, Any]) -> Any: ...

    async def get_order_impact(self, *, user_id: str, user_secret: str,
                               form: Dict[str, Any]) -> Any: ...

    async def place_force_order(self, *, user_id: str, user_secret: str,
                                form: Dict[str, Any]) -> Any: ...

    async def place_checked_order(self, *, user_id: str, user_secret: str, trade_id: str,
                                  wait_to_confirm: Optional[bool] = None) -> Any: ...

    async def get_order_detail(self, *, account_id: str, user_id: str, user_secret: str,
                               brokerage_order_id: str) -> Any: ...

    async def aclose(self) -> None: ...


class HttpBrokerageClient:
    """
    Signed HTTP client for the SnapTrade API.

    One instance is built per process and shared by every request. Non-2xx
    responses raise :class:`httpx.HTTPStatusError` with the response attached;
    successful calls return ``{"data": <json>, "headers": <httpx.Headers>}``.
    No retries are attempted.
    """

    def __init__(self, base_url: str, client_id: str, consumer_key: str,
                 timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.client_id = client_id
        self._consumer_key = consumer_key.encode("utf-8")
        self.logger = get_logger("bridge.brokerage_client")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def search_crypto_pairs(self, *, account_id: str, user_id: str, user_secret: str,
                                  base: Optional[str] = None,
                                  quote: Optional[str] = None) -> Dict[str, Any]:
        params = {"base": base, "quote": quote}
        return await self._request(
            "GET",
            f"/accounts/{account_id}/trading/instruments/cryptocurrencyPairs",
            user_id, user_secret, params=params,
        )

    async def get_crypto_quote(self, *, account_id: str, user_id: str, user_secret: str,
                               instrument_symbol: str) -> Dict[str, Any]:
        symbol = quote_path(instrument_symbol, safe="")
        return await self._request(
            "GET",
            f"/accounts/{account_id}/trading/instruments/cryptocurrencyPairs/{symbol}/quote",
            user_id, user_secret,
        )

    async def preview_crypto_order(self, *, account_id: str, user_id: str, user_secret: str,
                                   order: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "POST", f"/accounts/{account_id}/trading/crypto/preview",
            user_id, user_secret, body=order,
        )

    async def place_crypto_order(self, *, account_id: str, user_id: str, user_secret: str,
                                 order: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "POST", f"/accounts/{account_id}/trading/crypto",
            user_id, user_secret, body=order,
        )

    async def get_order_impact(self, *, user_id: str, user_secret: str,
                               form: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/trade/impact", user_id, user_secret, body=form)

    async def place_force_order(self, *, user_id: str, user_secret: str,
                                form: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/trade/place", user_id, user_secret, body=form)

    async def place_checked_order(self, *, user_id: str, user_secret: str, trade_id: str,
                                  wait_to_confirm: Optional[bool] = None) -> Dict[str, Any]:
        body = {} if wait_to_confirm is None else {"wait_to_confirm": wait_to_confirm}
        return await self._request("POST", f"/trade/{trade_id}", user_id, user_secret, body=body)

    async def get_order_detail(self, *, account_id: str, user_id: str, user_secret: str,
                               brokerage_order_id: str) -> Dict[str, Any]:
        return await self._request(
            "POST", f"/accounts/{account_id}/orders/details",
            user_id, user_secret, body={"brokerage_order_id": brokerage_order_id},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def sign(self, request: httpx.Request, body: Optional[Dict[str, Any]]) -> str:
        """Base64 HMAC-SHA256 over the request's content, path and query."""
        signed = {
            "content": body,
            "path": request.url.path,
            "query": request.url.query.decode("ascii"),
        }
        message = json.dumps(signed, separators=(",", ":"), sort_keys=True)
        digest = hmac.new(self._consumer_key, message.encode("utf-8"), hashlib.sha256).digest()
        return base64.b64encode(digest).decode("ascii")

    async def _request(self, method: str, path: str, user_id: str, user_secret: str,
                       params: Optional[Dict[str, Any]] = None,
                       body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        query = {
            "clientId": self.client_id,
            "timestamp": str(int(time.time())),
            "userId": user_id,
            "userSecret": user_secret,
        }
        for key, value in (params or {}).items():
            if value is not None:
                query[key] = value

        request = self._client.build_request(method, path, params=query, json=body)
        request.headers["Signature"] = self.sign(request, body)

        response = await self._client.send(request)
        self.logger.debug(
            "Brokerage call completed",
            method=method,
            status_code=response.status_code,
        )
        response.raise_for_status()

        data = response.json() if response.content else None
        return {"data": data, "headers": response.headers}
