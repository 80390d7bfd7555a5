"""
Request schemas for the Bridge.

Each model validates one inbound operation and maps it onto the brokerage's
outbound field names.
"""

from .validation import BrokerageRequest, issues_from_errors, parse_payload
from .crypto import CryptoInstrument, CryptoOrder, CryptoPairQuery, CryptoQuoteQuery
from .equity import EquityOrder
from .orders import CheckedTradeRequest, OrderDetailRequest

__all__ = [
    "BrokerageRequest",
    "issues_from_errors",
    "parse_payload",
    "CryptoInstrument",
    "CryptoOrder",
    "CryptoPairQuery",
    "CryptoQuoteQuery",
    "EquityOrder",
    "CheckedTradeRequest",
    "OrderDetailRequest",
]
