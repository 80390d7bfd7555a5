"""
Crypto trading request schemas.
"""

from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictBool

from .validation import BrokerageRequest, DecimalStr, NonEmptyStr, OffsetTimestamp

LIMIT_TYPES = {"LIMIT", "STOP_LOSS_LIMIT", "TAKE_PROFIT_LIMIT"}
STOP_TYPES = {"STOP_LOSS_MARKET", "STOP_LOSS_LIMIT", "TAKE_PROFIT_MARKET", "TAKE_PROFIT_LIMIT"}

CryptoOrderType = Literal[
    "MARKET",
    "LIMIT",
    "STOP_LOSS_MARKET",
    "STOP_LOSS_LIMIT",
    "TAKE_PROFIT_MARKET",
    "TAKE_PROFIT_LIMIT",
]


class CryptoPairQuery(BrokerageRequest):
    base: Optional[NonEmptyStr] = None
    quote: Optional[NonEmptyStr] = None


class CryptoQuoteQuery(BrokerageRequest):
    instrument_symbol: NonEmptyStr = Field(alias="instrumentSymbol")


class CryptoInstrument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    symbol: NonEmptyStr
    type: Literal["CRYPTOCURRENCY_PAIR"]


class CryptoOrder(BrokerageRequest):
    """Crypto order body shared by preview and placement."""

    instrument: CryptoInstrument
    side: Literal["BUY", "SELL"]
    type: CryptoOrderType
    time_in_force: Literal["GTC", "FOK", "IOC", "GTD"]
    amount: DecimalStr
    limit_price: Optional[DecimalStr] = None
    stop_price: Optional[DecimalStr] = None
    post_only: Optional[StrictBool] = None
    expiration_date: Optional[OffsetTimestamp] = None

    def cross_field_issues(self) -> List[Tuple[str, str]]:
        issues = []
        if self.type in LIMIT_TYPES and self.limit_price is None:
            issues.append(("limit_price", "limit_price is required for LIMIT and *_LIMIT orders"))
        if self.type in STOP_TYPES and self.stop_price is None:
            issues.append(("stop_price", "stop_price is required for STOP_* and TAKE_PROFIT_* orders"))
        if self.post_only is not None and self.type != "LIMIT":
            issues.append(("post_only", "post_only is only valid for LIMIT orders"))
        if self.time_in_force == "GTD" and self.expiration_date is None:
            issues.append(("expiration_date", "expiration_date is required when time_in_force=GTD"))
        return issues

    def to_upstream(self) -> Dict[str, Any]:
        """Order body in the brokerage's field names, unset fields dropped."""
        order = {
            "instrument": {"symbol": self.instrument.symbol, "type": self.instrument.type},
            "side": self.side,
            "type": self.type,
            "time_in_force": self.time_in_force,
            "amount": self.amount,
            "limit_price": self.limit_price,
            "stop_price": self.stop_price,
            "post_only": self.post_only,
            "expiration_time": self.expiration_date,
        }
        return {key: value for key, value in order.items() if value is not None}
