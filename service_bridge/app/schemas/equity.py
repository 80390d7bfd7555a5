"""
Equity trading request schemas.
"""

from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from .validation import (
    BrokerageRequest,
    NonEmptyStr,
    NonNegativeAmount,
    NonNegativeNumber,
    PositiveAmount,
    Uuid,
)


def _as_number(value: Union[int, float, str, None]) -> Optional[float]:
    if isinstance(value, str):
        return float(value)
    return value


class EquityOrder(BrokerageRequest):
    """Equity order body shared by impact and forced placement."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    action: Literal["BUY", "SELL"]
    order_type: Literal["Market", "Limit", "Stop", "StopLimit"]
    time_in_force: Literal["Day", "GTC", "FOK", "IOC"]
    trading_session: Optional[Literal["REGULAR", "EXTENDED"]] = None
    universal_symbol_id: Optional[Uuid] = None
    symbol: Optional[NonEmptyStr] = None
    units: Optional[NonNegativeNumber] = None
    notional_value: Optional[NonNegativeAmount] = None
    price: Optional[PositiveAmount] = None
    stop: Optional[PositiveAmount] = None
    client_event_id: Optional[NonEmptyStr] = None

    def cross_field_issues(self) -> List[Tuple[str, str]]:
        issues = []
        if (self.symbol is None) == (self.universal_symbol_id is None):
            issues.append(("symbol", "Provide exactly one of symbol or universalSymbolId"))
        if (self.units is None) == (self.notional_value is None):
            issues.append(("units", "Provide exactly one of units or notionalValue"))
        if self.order_type in ("Limit", "StopLimit") and self.price is None:
            issues.append(("price", "price is required for Limit and StopLimit orders"))
        if self.order_type in ("Stop", "StopLimit") and self.stop is None:
            issues.append(("stop", "stop is required for Stop and StopLimit orders"))
        if self.notional_value is not None and (
            self.order_type != "Market" or self.time_in_force != "Day"
        ):
            issues.append(("notionalValue", "notionalValue requires orderType=Market and timeInForce=Day"))
        return issues

    def to_manual_trade_form(self) -> Dict[str, Any]:
        """Upstream trade form: snake_case keys, numbers for amounts, unset fields dropped."""
        form = {
            "account_id": self.account_id,
            "action": self.action,
            "order_type": self.order_type,
            "time_in_force": self.time_in_force,
            "trading_session": self.trading_session,
            "universal_symbol_id": self.universal_symbol_id,
            "symbol": self.symbol,
            "units": self.units,
            "notional_value": _as_number(self.notional_value),
            "price": _as_number(self.price),
            "stop": _as_number(self.stop),
        }
        return {key: value for key, value in form.items() if value is not None}
