"""Abstract base for rate-limit counter backends.

Backends are strategies tried in order by the RateLimiterChain.  Each one
answers "may *identifier* attempt *action* again" for the policy it is
handed.

Architectural rules:
    1. check() must be atomic: check and record happen as one operation, so
       two concurrent attempts at the boundary cannot both be admitted.
    2. check() returns None when it has no data, raises on failure.
    3. Backends know nothing about risk scoring or about each other.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from authrisk.domain.enums import AuthAction
from authrisk.domain.rate_limit import CounterResult


class BackendUnavailableError(Exception):
    """Raised when a counter backend cannot answer."""

    def __init__(self, backend_name: str, reason: str) -> None:
        self.backend_name = backend_name
        self.reason = reason
        super().__init__(f"Rate-limit backend '{backend_name}' unavailable: {reason}")


class RateLimitBackend(ABC):
    """Base class for counter stores keyed by identifier + action."""

    @abstractmethod
    async def check(
        self,
        identifier: str,
        action: AuthAction,
        max_attempts: int,
        window_minutes: int,
    ) -> Optional[CounterResult]:
        """Record one attempt and report whether it is within the limit.

        Raises:
            BackendUnavailableError: If the store cannot be reached.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name used in logs and stats."""
        ...
