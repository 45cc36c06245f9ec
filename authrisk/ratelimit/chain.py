"""RateLimiterChain — ordered fallback over counter backends.

The chain holds an ordered list of RateLimitBackends.  For each check it
asks them in registration order and takes the first answer:

    - the first backend answering → verdict as reported (degraded only if
      the backend itself says it answered from a degraded path)
    - any later backend answering  → verdict marked degraded
    - nobody answering              → fail open, degraded

A backend "does not answer" when it raises, exceeds the timeout, or
returns None.  There is no retry beyond moving to the next tier.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping

from authrisk.domain.enums import AuthAction
from authrisk.domain.rate_limit import CounterResult, RateLimitPolicy, RateLimitVerdict
from authrisk.ratelimit.base import RateLimitBackend

logger = logging.getLogger(__name__)

DEFAULT_POLICIES: dict[AuthAction, RateLimitPolicy] = {
    AuthAction.LOGIN: RateLimitPolicy(max_attempts=40, window_minutes=5),
    AuthAction.REGISTER: RateLimitPolicy(max_attempts=15, window_minutes=15),
}


class BackendStats:
    """Per-backend outcome counters for observability."""

    __slots__ = ("backend_name", "answered_count", "empty_count", "failed_count", "timeout_count")

    def __init__(self, backend_name: str) -> None:
        self.backend_name = backend_name
        self.answered_count: int = 0
        self.empty_count: int = 0
        self.failed_count: int = 0
        self.timeout_count: int = 0

    def to_dict(self) -> dict:
        return {
            "backend_name": self.backend_name,
            "answered_count": self.answered_count,
            "empty_count": self.empty_count,
            "failed_count": self.failed_count,
            "timeout_count": self.timeout_count,
        }


class RateLimiterChain:
    """Multi-tier rate limiter that degrades instead of failing.

    Usage:
        chain = RateLimiterChain([MovingWindowCounter(), FixedWindowCounter()])
        verdict = await chain.check(identifier, AuthAction.LOGIN)
    """

    def __init__(
        self,
        backends: list[RateLimitBackend] | None = None,
        policies: Mapping[AuthAction, RateLimitPolicy] | None = None,
        timeout_seconds: float = 1.5,
    ) -> None:
        self._backends: list[RateLimitBackend] = []
        self._stats: dict[str, BackendStats] = {}
        self._policies = dict(policies or DEFAULT_POLICIES)
        self._timeout = timeout_seconds
        self.fail_open_count: int = 0
        for backend in backends or []:
            self.register(backend)

    def register(self, backend: RateLimitBackend) -> None:
        """Append a backend as the next fallback tier.

        Raises:
            ValueError: If a backend with the same name is already registered.
        """
        if backend.name in self._stats:
            raise ValueError(f"Rate-limit backend '{backend.name}' is already registered")
        self._backends.append(backend)
        self._stats[backend.name] = BackendStats(backend.name)
        logger.info("Registered rate-limit backend tier %d: %s", len(self._backends), backend.name)

    def policy_for(self, action: AuthAction) -> RateLimitPolicy:
        return self._policies[action]

    async def check(self, identifier: str, action: AuthAction) -> RateLimitVerdict:
        """Ask each tier in order; the first answer wins."""
        policy = self.policy_for(action)

        for tier, backend in enumerate(self._backends):
            result = await self._ask(backend, identifier, action, policy)
            if result is None:
                continue

            degraded = tier > 0 or result.degraded_mode
            if tier > 0:
                logger.warning(
                    "Rate limit for %s answered by fallback tier %d (%s)",
                    action.value, tier + 1, backend.name,
                )
            remaining = result.remaining_minutes
            return RateLimitVerdict(
                allowed=result.allowed,
                remaining_minutes=max(0, remaining) if remaining is not None else None,
                degraded=degraded,
            )

        self.fail_open_count += 1
        logger.error(
            "All %d rate-limit backend(s) unavailable for %s; failing open",
            len(self._backends), action.value,
        )
        return RateLimitVerdict.fail_open()

    async def _ask(
        self,
        backend: RateLimitBackend,
        identifier: str,
        action: AuthAction,
        policy: RateLimitPolicy,
    ) -> CounterResult | None:
        stats = self._stats[backend.name]
        try:
            result = await asyncio.wait_for(
                backend.check(identifier, action, policy.max_attempts, policy.window_minutes),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            stats.timeout_count += 1
            logger.warning("Rate-limit backend '%s' timed out after %.2fs", backend.name, self._timeout)
            return None
        except Exception as exc:
            stats.failed_count += 1
            logger.warning("Rate-limit backend '%s' failed: %s", backend.name, exc)
            return None

        if result is None:
            stats.empty_count += 1
            logger.warning("Rate-limit backend '%s' returned no data", backend.name)
            return None

        stats.answered_count += 1
        return result

    @property
    def backend_names(self) -> list[str]:
        """Backend names in fallback order."""
        return [b.name for b in self._backends]

    @property
    def stats(self) -> list[dict]:
        return [s.to_dict() for s in self._stats.values()]
