"""
Per-item and overall rate limiters used by :class:`RateLimitingQueue`.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Hashable, Optional

from hpaannotator.config.policy import (
    DEFAULT_BASE_DELAY,
    DEFAULT_BURST,
    DEFAULT_MAX_DELAY,
    DEFAULT_QPS,
)

logger = logging.getLogger(__name__)


class RateLimiter(ABC):
    """Decides how long an item has to wait before it is requeued."""

    @abstractmethod
    def when(self, item: Hashable) -> float:
        """Return the delay in seconds and record one more failure for ``item``."""

    @abstractmethod
    def forget(self, item: Hashable) -> None:
        """Stop tracking ``item``; its failure count drops back to zero."""

    @abstractmethod
    def num_requeues(self, item: Hashable) -> int:
        ...


class ItemExponentialFailureRateLimiter(RateLimiter):
    """
    Exponential per-item backoff: ``base_delay * 2 ** failures``, capped at ``max_delay``.

    With the defaults (5ms, 1000s) the sequence is 5ms, 10ms, 20ms, ... 41s, 82s
    for the first 15 failures.
    """

    def __init__(self, base_delay: float = DEFAULT_BASE_DELAY, max_delay: float = DEFAULT_MAX_DELAY):
        if base_delay <= 0:
            raise ValueError("base_delay must be positive")
        self._base_delay = base_delay
        self._max_delay = max(max_delay, base_delay)
        self._failures: Dict[Hashable, int] = {}
        self._lock = threading.Lock()

    def when(self, item: Hashable) -> float:
        with self._lock:
            exp = self._failures.get(item, 0)
            self._failures[item] = exp + 1

        # 指数过大时直接返回上限，避免浮点溢出
        if exp >= 1024:
            return self._max_delay
        backoff = self._base_delay * (2 ** exp)
        return min(backoff, self._max_delay)

    def forget(self, item: Hashable) -> None:
        with self._lock:
            self._failures.pop(item, None)

    def num_requeues(self, item: Hashable) -> int:
        with self._lock:
            return self._failures.get(item, 0)


class BucketRateLimiter(RateLimiter):
    """
    Overall token bucket shared by every item.

    Each call reserves one token; when the bucket is empty the returned delay is
    the time until the reserved token becomes available.
    """

    def __init__(
        self,
        qps: float = DEFAULT_QPS,
        burst: int = DEFAULT_BURST,
        *,
        clock: Optional[Callable[[], float]] = None,
    ):
        if qps <= 0:
            raise ValueError("qps must be positive")
        if burst < 1:
            raise ValueError("burst must be >= 1")
        self._qps = float(qps)
        self._burst = float(burst)
        self._clock = clock or time.monotonic
        self._tokens = float(burst)
        self._last = self._clock()
        self._lock = threading.Lock()

    def when(self, item: Hashable) -> float:
        with self._lock:
            now = self._clock()
            elapsed = max(0.0, now - self._last)
            self._last = now
            self._tokens = min(self._burst, self._tokens + elapsed * self._qps)
            self._tokens -= 1.0
            if self._tokens >= 0:
                return 0.0
            return -self._tokens / self._qps

    def forget(self, item: Hashable) -> None:
        return None

    def num_requeues(self, item: Hashable) -> int:
        return 0


class MaxOfRateLimiter(RateLimiter):
    """Combines limiters: the delay is the worst (largest) of all of them."""

    def __init__(self, *limiters: RateLimiter):
        if not limiters:
            raise ValueError("MaxOfRateLimiter requires at least one limiter")
        self._limiters = limiters

    def when(self, item: Hashable) -> float:
        return max(limiter.when(item) for limiter in self._limiters)

    def forget(self, item: Hashable) -> None:
        for limiter in self._limiters:
            limiter.forget(item)

    def num_requeues(self, item: Hashable) -> int:
        return max(limiter.num_requeues(item) for limiter in self._limiters)


def default_controller_rate_limiter(
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    qps: float = DEFAULT_QPS,
    burst: int = DEFAULT_BURST,
) -> RateLimiter:
    """Per-item exponential backoff combined with an overall 10 qps / 100 burst bucket."""
    logger.debug(
        "Building controller rate limiter base_delay=%.3fs max_delay=%.1fs qps=%.1f burst=%d",
        base_delay,
        max_delay,
        qps,
        burst,
    )
    return MaxOfRateLimiter(
        ItemExponentialFailureRateLimiter(base_delay, max_delay),
        BucketRateLimiter(qps, burst),
    )
