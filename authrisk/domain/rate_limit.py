"""Rate-limit domain models.

A RateLimitVerdict is the only thing the scoring engine learns about the
counter store.  ``degraded=True`` means the primary backend did not answer
and a less-trusted tier (or fail-open) did.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class RateLimitPolicy(BaseModel):
    """Attempts allowed per identifier within a rolling window."""

    max_attempts: int = Field(..., ge=1)
    window_minutes: int = Field(..., ge=1)

    model_config = {"frozen": True}


class CounterResult(BaseModel):
    """Raw answer from a single counter backend."""

    allowed: bool
    remaining_minutes: Optional[int] = Field(
        None, description="Minutes until the identifier may retry; None if unknown",
    )
    degraded_mode: bool = Field(
        False, description="Backend answered from its own degraded path",
    )

    model_config = {"frozen": True}


class RateLimitVerdict(BaseModel):
    """Final answer of the fallback chain."""

    allowed: bool
    remaining_minutes: Optional[int] = Field(None, ge=0)
    degraded: bool = False

    model_config = {"frozen": True}

    @classmethod
    def fail_open(cls) -> "RateLimitVerdict":
        """Verdict used when every backend tier failed."""
        return cls(allowed=True, remaining_minutes=None, degraded=True)
