"""
Relays a single brokerage call and renders its outcome.

Success responses carry the upstream payload verbatim. Failures are
normalized and rendered with the upstream's own status and body so the
downstream error mapper sees exactly what the brokerage returned.
"""

from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi.responses import JSONResponse

from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..upstream import (
    NormalizedFailure,
    RateLimitInfo,
    extract_rate_limit,
    normalize_failure,
    unwrap_response,
)

logger = get_logger("bridge.relay")

CORRELATION_HEADER = "X-SnapTrade-Request-ID"
CORRELATION_ALIAS_HEADER = "X-Request-ID"
RATE_LIMIT_LIMIT_HEADER = "X-SnapTrade-RateLimit-Limit"
RATE_LIMIT_REMAINING_HEADER = "X-SnapTrade-RateLimit-Remaining"
RATE_LIMIT_RESET_HEADER = "X-SnapTrade-RateLimit-Reset"
NO_STORE = "no-store"


def rate_limit_headers(rate_limit: RateLimitInfo) -> Dict[str, str]:
    headers = {}
    if rate_limit.limit is not None:
        headers[RATE_LIMIT_LIMIT_HEADER] = rate_limit.limit
    if rate_limit.remaining is not None:
        headers[RATE_LIMIT_REMAINING_HEADER] = rate_limit.remaining
    if rate_limit.reset is not None:
        headers[RATE_LIMIT_RESET_HEADER] = rate_limit.reset
    return headers


def render_success(payload: Any, correlation_id: Optional[str], upstream_headers: Any,
                   no_store: bool = False) -> JSONResponse:
    headers = rate_limit_headers(extract_rate_limit(upstream_headers))
    if correlation_id:
        headers[CORRELATION_HEADER] = correlation_id
    if no_store:
        headers["Cache-Control"] = NO_STORE
    return JSONResponse(status_code=200, content=payload, headers=headers)


def render_failure(failure: NormalizedFailure) -> JSONResponse:
    """Upstream status and raw payload, with correlation and throttling hints."""
    headers = rate_limit_headers(failure.rate_limit)
    if failure.correlation_id:
        headers[CORRELATION_HEADER] = failure.correlation_id
        headers[CORRELATION_ALIAS_HEADER] = failure.correlation_id
    if failure.retry_after:
        headers["Retry-After"] = failure.retry_after
    return JSONResponse(status_code=failure.status_code, content=failure.raw_payload, headers=headers)


async def relay(operation: str, call: Callable[[], Awaitable[Any]],
                metrics: MetricsCollector, no_store: bool = False) -> JSONResponse:
    """
    Invoke ``call`` exactly once and turn its outcome into a response.

    ``no_store`` adds ``Cache-Control: no-store`` to a successful response.
    """
    try:
        with metrics.time_operation("upstream_call_duration_seconds", operation=operation):
            result = await call()
    except Exception as exc:
        failure = normalize_failure(exc)
        metrics.increment_counter("upstream_calls_total", operation=operation, outcome="failure")
        metrics.increment_counter(
            "upstream_failures_total",
            operation=operation,
            shape=failure.shape.value,
            status_code=str(failure.status_code),
        )
        logger.warning(
            "Brokerage call failed",
            operation=operation,
            status_code=failure.status_code,
            shape=failure.shape.value,
            upstream_request_id=failure.correlation_id,
        )
        return render_failure(failure)

    unwrapped = unwrap_response(result)
    metrics.increment_counter("upstream_calls_total", operation=operation, outcome="success")
    logger.info(
        "Brokerage call succeeded",
        operation=operation,
        upstream_request_id=unwrapped.correlation_id,
    )
    return render_success(unwrapped.payload, unwrapped.correlation_id, unwrapped.headers,
                          no_store=no_store)
