"""Clock utilities.

All wall-clock timestamps in auth-risk are UTC-aware.  This module is the
single source of "now" so tests can monkey-patch it trivially.  Gesture and
form-fill timing uses a monotonic millisecond clock instead.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def monotonic_ms() -> float:
    """Milliseconds from an arbitrary, monotonically increasing origin."""
    return time.monotonic() * 1000.0
