"""
Brokerage Bridge service.

Validates trading requests from the backend, relays each one to the brokerage
and returns the brokerage's response with its diagnostic headers intact.
"""

from typing import Any, Dict, Optional

from fastapi import Depends, Request

from shared.base_service import BaseService
from shared.config import BridgeConfig, get_config
from shared.errors import AdmissionDenied, InvalidJsonError
from shared.logging import account_snippet, set_account_context, user_snippet

from service_bridge.app.adapters import BrokerageClient, HttpBrokerageClient
from service_bridge.app.domain import SharedSecretGuard, relay
from service_bridge.app.ratelimit import PerKeyAdmissionLimiter
from service_bridge.app.schemas import (
    BrokerageRequest,
    CheckedTradeRequest,
    CryptoOrder,
    CryptoPairQuery,
    CryptoQuoteQuery,
    EquityOrder,
    OrderDetailRequest,
    parse_payload,
)

PLACEMENT_LIMITED_MESSAGE = "Crypto order placement is limited to one request per second per account."


class BridgeService(BaseService):
    """Brokerage Bridge service implementation."""

    def __init__(self, config: Optional[BridgeConfig] = None,
                 brokerage_client: Optional[BrokerageClient] = None,
                 placement_limiter: Optional[PerKeyAdmissionLimiter] = None):
        config = config or get_config()
        super().__init__(config.service_name, config)

        self.brokerage = brokerage_client or HttpBrokerageClient(
            base_url=self.config.brokerage_base_url,
            client_id=self.config.brokerage_client_id,
            consumer_key=self.config.brokerage_consumer_key,
            timeout=self.config.upstream_timeout_seconds,
        )
        self.placement_limiter = placement_limiter or PerKeyAdmissionLimiter(
            min_interval_ms=self.config.placement_min_interval_ms,
            max_keys=self.config.throttle_max_keys,
        )
        self.guard = SharedSecretGuard(self.config.shared_secret, self.config.shared_secret_header)
        if not self.guard.enabled:
            self.logger.warning("Shared secret not configured; trading routes are unauthenticated")

        self._setup_crypto_routes()
        self._setup_equity_routes()
        self._setup_order_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.bridge_service = self

    async def shutdown(self):
        await self.brokerage.aclose()

    async def _read_json(self, request: Request) -> Any:
        try:
            return await request.json()
        except ValueError:
            raise InvalidJsonError() from None

    @staticmethod
    def _read_query(request: Request) -> Dict[str, str]:
        """First value of each query parameter."""
        query: Dict[str, str] = {}
        for key, value in request.query_params.multi_items():
            query.setdefault(key, value)
        return query

    def _log_received(self, operation: str, payload: BrokerageRequest, **extra: Any) -> None:
        set_account_context(account_snippet(payload.account_id))
        self.logger.info(
            "Brokerage request received",
            operation=operation,
            user=user_snippet(payload.user_id),
            account=account_snippet(payload.account_id),
            **extra,
        )

    def _setup_crypto_routes(self):
        """Crypto pair search, quotes, preview and placement."""
        guarded = [Depends(self.guard)]

        @self.app.get("/crypto/pairs", dependencies=guarded)
        async def search_crypto_pairs(request: Request):
            query = parse_payload(CryptoPairQuery, self._read_query(request))
            self._log_received("search_crypto_pairs", query, base=query.base, quote=query.quote)
            return await relay(
                "search_crypto_pairs",
                lambda: self.brokerage.search_crypto_pairs(
                    account_id=query.account_id,
                    user_id=query.user_id,
                    user_secret=query.user_secret,
                    base=query.base,
                    quote=query.quote,
                ),
                self.metrics,
                no_store=True,
            )

        @self.app.get("/crypto/quote", dependencies=guarded)
        async def get_crypto_quote(request: Request):
            query = parse_payload(CryptoQuoteQuery, self._read_query(request))
            self._log_received("get_crypto_quote", query, instrument_symbol=query.instrument_symbol)
            return await relay(
                "get_crypto_quote",
                lambda: self.brokerage.get_crypto_quote(
                    account_id=query.account_id,
                    user_id=query.user_id,
                    user_secret=query.user_secret,
                    instrument_symbol=query.instrument_symbol,
                ),
                self.metrics,
                no_store=True,
            )

        @self.app.post("/crypto/preview", dependencies=guarded)
        async def preview_crypto_order(request: Request):
            order = parse_payload(CryptoOrder, await self._read_json(request))
            self._log_received("preview_crypto_order", order, symbol=order.instrument.symbol,
                               side=order.side, order_type=order.type)
            return await relay(
                "preview_crypto_order",
                lambda: self.brokerage.preview_crypto_order(
                    account_id=order.account_id,
                    user_id=order.user_id,
                    user_secret=order.user_secret,
                    order=order.to_upstream(),
                ),
                self.metrics,
                no_store=True,
            )

        @self.app.post("/crypto/place", dependencies=guarded)
        async def place_crypto_order(request: Request):
            order = parse_payload(CryptoOrder, await self._read_json(request))
            self._log_received("place_crypto_order", order, symbol=order.instrument.symbol,
                               side=order.side, order_type=order.type)

            admission = self.placement_limiter.try_acquire(order.limiter_key)
            if not admission.allowed:
                self.metrics.increment_counter("admission_denied_total", operation="place_crypto_order")
                raise AdmissionDenied(admission.retry_after_ms, PLACEMENT_LIMITED_MESSAGE)

            return await relay(
                "place_crypto_order",
                lambda: self.brokerage.place_crypto_order(
                    account_id=order.account_id,
                    user_id=order.user_id,
                    user_secret=order.user_secret,
                    order=order.to_upstream(),
                ),
                self.metrics,
                no_store=True,
            )

    def _setup_equity_routes(self):
        """Equity impact checks and order placement."""
        guarded = [Depends(self.guard)]

        @self.app.post("/equity/impact", dependencies=guarded)
        async def get_order_impact(request: Request):
            order = parse_payload(EquityOrder, await self._read_json(request))
            self._log_received("get_order_impact", order, action=order.action, order_type=order.order_type)
            return await relay(
                "get_order_impact",
                lambda: self.brokerage.get_order_impact(
                    user_id=order.user_id,
                    user_secret=order.user_secret,
                    form=order.to_manual_trade_form(),
                ),
                self.metrics,
            )

        @self.app.post("/equity/place", dependencies=guarded)
        async def place_force_order(request: Request):
            order = parse_payload(EquityOrder, await self._read_json(request))
            self._log_received("place_force_order", order, action=order.action, order_type=order.order_type)
            return await relay(
                "place_force_order",
                lambda: self.brokerage.place_force_order(
                    user_id=order.user_id,
                    user_secret=order.user_secret,
                    form=order.to_manual_trade_form(),
                ),
                self.metrics,
            )

        @self.app.post("/equity/trade", dependencies=guarded)
        async def place_checked_order(request: Request):
            trade = parse_payload(CheckedTradeRequest, await self._read_json(request))
            self._log_received("place_checked_order", trade)
            return await relay(
                "place_checked_order",
                lambda: self.brokerage.place_checked_order(
                    user_id=trade.user_id,
                    user_secret=trade.user_secret,
                    trade_id=trade.trade_id,
                    wait_to_confirm=trade.wait_to_confirm,
                ),
                self.metrics,
            )

    def _setup_order_routes(self):
        guarded = [Depends(self.guard)]

        @self.app.post("/orders/detail", dependencies=guarded)
        async def get_order_detail(request: Request):
            lookup = parse_payload(OrderDetailRequest, await self._read_json(request))
            self._log_received("get_order_detail", lookup)
            return await relay(
                "get_order_detail",
                lambda: self.brokerage.get_order_detail(
                    account_id=lookup.account_id,
                    user_id=lookup.user_id,
                    user_secret=lookup.user_secret,
                    brokerage_order_id=lookup.brokerage_order_id,
                ),
                self.metrics,
                no_store=True,
            )


def create_app(config: Optional[BridgeConfig] = None,
               brokerage_client: Optional[BrokerageClient] = None,
               placement_limiter: Optional[PerKeyAdmissionLimiter] = None):
    """Create the FastAPI application."""
    service = BridgeService(config, brokerage_client, placement_limiter)
    return service.app


if __name__ == "__main__":
    BridgeService().run()
