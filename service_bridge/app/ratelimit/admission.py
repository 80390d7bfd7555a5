"""
Per-key admission control for order placement.
"""

import math
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from shared.logging import get_logger


@dataclass(frozen=True)
class AdmissionResult:
    """Outcome of an admission attempt."""

    allowed: bool
    retry_after_ms: int = 0

    @classmethod
    def granted(cls) -> "AdmissionResult":
        return cls(allowed=True)

    @classmethod
    def denied(cls, retry_after_ms: int) -> "AdmissionResult":
        return cls(allowed=False, retry_after_ms=retry_after_ms)


class PerKeyAdmissionLimiter:
    """
    Single-slot gate per key: at most one grant per ``min_interval_ms``.

    This is deliberately not a token bucket. The brokerage's guidance is a
    strict per-second ceiling per account with no burst allowance.

    Grants are remembered in least-recently-granted order and the oldest are
    evicted once more than ``max_keys`` keys are tracked.
    """

    def __init__(self, min_interval_ms: int = 1000, max_keys: int = 10000,
                 clock: Callable[[], float] = time.monotonic):
        self.min_interval_ms = min_interval_ms
        self.max_keys = max_keys
        self._clock = clock
        self._last_granted: "OrderedDict[str, float]" = OrderedDict()
        self._lock = threading.Lock()
        self.logger = get_logger("bridge.admission")

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def try_acquire(self, key: str) -> AdmissionResult:
        """Grant ``key`` a slot, or say how long to wait for the next one."""
        # Read, compare and record under one lock so racing callers for the
        # same key cannot both be granted.
        with self._lock:
            now = self._now_ms()
            last = self._last_granted.get(key)

            if last is None or now - last >= self.min_interval_ms:
                self._last_granted[key] = now
                self._last_granted.move_to_end(key)
                self._evict()
                return AdmissionResult.granted()

            retry_after_ms = max(1, math.ceil(self.min_interval_ms - (now - last)))

        self.logger.warning(
            "Admission denied",
            retry_after_ms=retry_after_ms,
            min_interval_ms=self.min_interval_ms,
        )
        return AdmissionResult.denied(retry_after_ms)

    def _evict(self) -> None:
        while len(self._last_granted) > self.max_keys:
            self._last_granted.popitem(last=False)

    def tracked_keys(self) -> int:
        """Number of keys currently remembered."""
        return len(self._last_granted)

    def reset(self) -> None:
        """Forget every grant. Used by tests."""
        with self._lock:
            self._last_granted.clear()
