"""Counter backends built on the ``limits`` strategies.

Each backend wraps one ``limits.aio`` strategy over an async storage.
``hit()`` is the atomic check-and-record; the storage expires counters
once their window has passed, so idle identifiers do not accumulate.

    MovingWindowCounter — exact per-attempt window, the primary tier.
    FixedWindowCounter  — one counter per window, the legacy tier.

Both default to ``limits.aio.storage.MemoryStorage``.  Multi-process
deployments hand in a shared store, e.g.
``storage_from_string("async+redis://localhost:6379")``.
"""

from __future__ import annotations

import math
import time

from limits import RateLimitItemPerMinute
from limits.aio.storage import MemoryStorage, Storage
from limits.aio.strategies import FixedWindowRateLimiter, MovingWindowRateLimiter, RateLimiter

from authrisk.domain.enums import AuthAction
from authrisk.domain.rate_limit import CounterResult
from authrisk.ratelimit.base import RateLimitBackend


def _minutes_until(reset_time: float) -> int:
    return max(0, math.ceil((reset_time - time.time()) / 60))


class LimitsCounter(RateLimitBackend):
    """Adapts a ``limits`` strategy to the RateLimitBackend contract."""

    strategy_class: type[RateLimiter]
    backend_name: str

    def __init__(self, storage: Storage | None = None) -> None:
        self._storage = storage if storage is not None else MemoryStorage()
        self._limiter = self.strategy_class(self._storage)

    @property
    def name(self) -> str:
        return self.backend_name

    @property
    def storage(self) -> Storage:
        return self._storage

    async def check(
        self,
        identifier: str,
        action: AuthAction,
        max_attempts: int,
        window_minutes: int,
    ) -> CounterResult:
        item = RateLimitItemPerMinute(max_attempts, window_minutes)
        if await self._limiter.hit(item, identifier, action.value):
            return CounterResult(allowed=True, remaining_minutes=0)

        stats = await self._limiter.get_window_stats(item, identifier, action.value)
        return CounterResult(allowed=False, remaining_minutes=_minutes_until(stats.reset_time))

    async def reset(
        self,
        identifier: str,
        action: AuthAction,
        max_attempts: int,
        window_minutes: int,
    ) -> None:
        """Forget every attempt for *identifier* under the given policy."""
        item = RateLimitItemPerMinute(max_attempts, window_minutes)
        await self._limiter.clear(item, identifier, action.value)


class MovingWindowCounter(LimitsCounter):
    """Counts every admitted attempt inside the trailing window."""

    strategy_class = MovingWindowRateLimiter
    backend_name = "moving_window"


class FixedWindowCounter(LimitsCounter):
    """Counts attempts in a window opened by the first attempt."""

    strategy_class = FixedWindowRateLimiter
    backend_name = "fixed_window"
