"""Request correlation ids."""

from __future__ import annotations

from uuid import uuid4


def new_request_id() -> str:
    """Generate a random UUID v4 string used to correlate a request with logs."""
    return str(uuid4())
