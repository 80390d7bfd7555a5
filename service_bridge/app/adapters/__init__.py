"""
Adapters package for the Bridge.

Wraps the brokerage API behind the ``BrokerageClient`` protocol so handlers
can be exercised against fakes. Adapters do not retry and do not translate
upstream failures; those propagate to the relay for normalization.
"""

from .brokerage_client import BrokerageClient, HttpBrokerageClient

__all__ = ["BrokerageClient", "HttpBrokerageClient"]
