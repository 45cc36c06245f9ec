"""Audit sinks — where AuditEvents end up.

A sink is anything with ``async record(event)`` that raises on failure.
Sinks never see raw IPs or user agents; the event carries digests only.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Protocol

from authrisk.domain.audit import AuditEvent

AUDIT_LOGGER_NAME = "authrisk.audit"


class AuditSink(Protocol):
    async def record(self, event: AuditEvent) -> None:
        """Persist *event*; raise on failure."""
        ...


class MemoryAuditSink:
    """Bounded in-process buffer of the most recent events."""

    def __init__(self, max_events: int = 1000) -> None:
        self._events: deque[AuditEvent] = deque(maxlen=max_events)

    async def record(self, event: AuditEvent) -> None:
        self._events.append(event)

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)


class LogAuditSink:
    """Writes each event as one JSON line on the ``authrisk.audit`` logger."""

    def __init__(self, audit_logger: logging.Logger | None = None) -> None:
        self._logger = audit_logger or logging.getLogger(AUDIT_LOGGER_NAME)

    async def record(self, event: AuditEvent) -> None:
        self._logger.info(event.model_dump_json())
