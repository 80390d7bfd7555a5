"""
Order lookup and checked-trade schemas.
"""

from typing import Optional

from pydantic import Field, StrictBool

from .validation import BrokerageRequest, NonEmptyStr, Uuid


class CheckedTradeRequest(BrokerageRequest):
    """Places a trade previously returned by an impact check."""

    trade_id: Uuid = Field(alias="tradeId")
    wait_to_confirm: Optional[StrictBool] = Field(default=None, alias="waitToConfirm")


class OrderDetailRequest(BrokerageRequest):
    brokerage_order_id: NonEmptyStr
