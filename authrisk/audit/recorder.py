"""AuditRecorder — best-effort, at-most-once persistence of risk decisions.

record() never raises and never waits longer than the configured timeout.
A failed or slow write is logged and counted as dropped; it is not retried.
"""

from __future__ import annotations

import asyncio
import logging

from authrisk.audit.sinks import AuditSink
from authrisk.domain.audit import AuditEvent

logger = logging.getLogger(__name__)


class AuditRecorder:
    def __init__(self, sink: AuditSink, timeout_seconds: float = 2.0) -> None:
        self._sink = sink
        self._timeout = timeout_seconds
        self.recorded_count: int = 0
        self.dropped_count: int = 0

    async def record(self, event: AuditEvent) -> bool:
        """Write *event* to the sink.  Returns False when the write was dropped."""
        try:
            await asyncio.wait_for(self._sink.record(event), timeout=self._timeout)
        except asyncio.TimeoutError:
            self.dropped_count += 1
            logger.warning(
                "Audit write timed out after %.2fs (request %s)", self._timeout, event.request_id,
            )
            return False
        except Exception as exc:
            self.dropped_count += 1
            logger.warning("Audit write failed (request %s): %s", event.request_id, exc)
            return False

        self.recorded_count += 1
        return True

    def to_dict(self) -> dict:
        return {
            "recorded_count": self.recorded_count,
            "dropped_count": self.dropped_count,
        }
