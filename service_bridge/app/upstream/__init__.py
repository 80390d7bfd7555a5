"""
Brokerage response bridging.

- headers: case-insensitive header reads across heterogeneous carriers
- responses: success-path unwrapping and rate-limit counters
- failures: failure shape classification and normalization
"""

from .headers import read_header
from .responses import RateLimitInfo, UnwrappedResponse, extract_rate_limit, unwrap_response
from .failures import FailureShape, NormalizedFailure, classify_failure, normalize_failure

__all__ = [
    "read_header",
    "RateLimitInfo",
    "UnwrappedResponse",
    "extract_rate_limit",
    "unwrap_response",
    "FailureShape",
    "NormalizedFailure",
    "classify_failure",
    "normalize_failure",
]
