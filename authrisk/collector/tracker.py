"""SessionTracker — behavioral telemetry for a single form-fill attempt.

One tracker is constructed when the form renders and closed when the attempt
ends.  Nothing is shared between trackers, so no session can leak pointer or
keystroke history into another.

Design notes:
    - The clock is injected (monotonic milliseconds) so tests drive time.
    - Events arrive either through the ``record_*`` methods or through an
      injected EventSource; close() unsubscribes from the source.
    - A closed tracker ignores further events.
    - snapshot() routes its own output through normalize_signals(), so a
      locally built snapshot obeys exactly the same clamps as a remote one.
"""

from __future__ import annotations

import logging
import math
import sys
from collections import deque
from typing import Any, Callable

from authrisk.collector.events import EventSource, Unsubscribe
from authrisk.collector.normalize import normalize_signals
from authrisk.domain.signals import SignalSnapshot, SliderSignal
from authrisk.foundation.clock import monotonic_ms

logger = logging.getLogger(__name__)

# Fingerprint reported when no browser environment is available.
SERVER_FINGERPRINT = "server"

MOUSE_SAMPLE_INTERVAL_MS = 100
MOUSE_PATH_LIMIT = 50
MIN_MOUSE_SAMPLES = 5
MIN_PATH_POINTS = 10
DIRECTION_CHANGE_RAD = 0.3
MIN_DIRECTION_CHANGES = 3
FIELD_SWITCH_MS = 200
KEYSTROKE_GAP_MS = 50
MIN_ELAPSED_FOR_SCORE_MS = 2000


class SessionTracker:
    """Collects mouse, keyboard, focus and slider signals for one session.

    Usage:
        with SessionTracker(fingerprint=browser_fp, event_source=dom) as tracker:
            ...  # user fills the form
            snapshot = tracker.snapshot()
    """

    def __init__(
        self,
        clock: Callable[[], float] = monotonic_ms,
        event_source: EventSource | None = None,
        fingerprint: str = SERVER_FINGERPRINT,
    ) -> None:
        self._clock = clock
        self._fingerprint = fingerprint
        self._started_at = clock()
        self._closed = False

        self._mouse_count = 0
        self._last_mouse_at: float | None = None
        self._mouse_path: deque[tuple[float, float, float]] = deque(maxlen=MOUSE_PATH_LIMIT)

        self._input_timings: dict[str, list[float]] = {}
        self._input_sequence: list[tuple[str, float]] = []

        self._focus_events = 0
        self._blur_events = 0

        self._slider: SliderSignal | None = None
        self._unsubscribers: list[Unsubscribe] = []

        if event_source is not None:
            self._bind(event_source)

    # ── Lifecycle ────────────────────────────────────────────────────────

    def __enter__(self) -> "SessionTracker":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Detach from the event source and drop all collected telemetry."""
        if self._closed:
            return
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._mouse_path.clear()
        self._input_timings.clear()
        self._input_sequence.clear()
        self._mouse_count = 0
        self._focus_events = 0
        self._blur_events = 0
        self._slider = None
        self._closed = True
        logger.debug("Session tracker closed")

    def _bind(self, source: EventSource) -> None:
        self._unsubscribers.extend([
            source.subscribe("mousemove", lambda e: self.record_mouse_move(e.get("x"), e.get("y"))),
            source.subscribe("input", lambda e: self.record_input(e.get("field"))),
            source.subscribe("focus", lambda e: self.record_focus()),
            source.subscribe("blur", lambda e: self.record_blur()),
        ])

    # ── Recording ────────────────────────────────────────────────────────

    def record_mouse_move(self, x: Any, y: Any) -> None:
        if self._closed or not _is_number(x) or not _is_number(y):
            return
        now = self._clock()
        # Throttle: one sample per interval, matching a passive mousemove listener
        if self._last_mouse_at is not None and now - self._last_mouse_at <= MOUSE_SAMPLE_INTERVAL_MS:
            return
        self._mouse_count += 1
        self._last_mouse_at = now
        self._mouse_path.append((float(x), float(y), now))

    def record_input(self, field: Any) -> None:
        if self._closed or not isinstance(field, str) or not field:
            return
        now = self._clock()
        self._input_timings.setdefault(field, []).append(now)
        self._input_sequence.append((field, now))

    def record_focus(self) -> None:
        if not self._closed:
            self._focus_events += 1

    def record_blur(self) -> None:
        if not self._closed:
            self._blur_events += 1

    def attach_slider(self, result: SliderSignal | None) -> None:
        """Store the latest slider outcome (None clears it)."""
        if not self._closed:
            self._slider = result

    # ── Heuristics ───────────────────────────────────────────────────────

    @property
    def elapsed_ms(self) -> float:
        return max(0.0, self._clock() - self._started_at)

    @property
    def has_mouse_movement(self) -> bool:
        return self._mouse_count > MIN_MOUSE_SAMPLES

    @property
    def has_natural_mouse_path(self) -> bool:
        """True when the pointer changed heading several times (not a straight line)."""
        path = list(self._mouse_path)
        if len(path) < MIN_PATH_POINTS:
            return False
        changes = 0
        for prev, curr, nxt in zip(path, path[1:], path[2:]):
            heading_in = math.atan2(curr[1] - prev[1], curr[0] - prev[0])
            heading_out = math.atan2(nxt[1] - curr[1], nxt[0] - curr[0])
            if abs(heading_in - heading_out) > DIRECTION_CHANGE_RAD:
                changes += 1
        return changes > MIN_DIRECTION_CHANGES

    @property
    def has_natural_input_pattern(self) -> bool:
        """Scripts fill every field at once; people pause between fields and keys."""
        if len(self._input_timings) < 2:
            return False

        for (prev_field, prev_at), (field, at) in zip(self._input_sequence, self._input_sequence[1:]):
            if field != prev_field and at - prev_at > FIELD_SWITCH_MS:
                return True

        for timings in self._input_timings.values():
            if any(b - a > KEYSTROKE_GAP_MS for a, b in zip(timings, timings[1:])):
                return True
        return False

    @property
    def input_switch_count(self) -> int:
        return sum(
            1 for (prev, _), (curr, _) in zip(self._input_sequence, self._input_sequence[1:])
            if curr != prev
        )

    @property
    def has_focus_activity(self) -> bool:
        return self._focus_events > 0 or self._blur_events > 0

    def anti_bot_score(self) -> int:
        """Client composite score, 0–100; higher means more likely human."""
        score = 0
        if self.elapsed_ms >= MIN_ELAPSED_FOR_SCORE_MS:
            score += 20
        if self.has_mouse_movement:
            score += 15
        if self.has_natural_mouse_path:
            score += 10
        if self.has_natural_input_pattern:
            score += 25
        if self._fingerprint != SERVER_FINGERPRINT:
            score += 15
        if self.has_focus_activity:
            score += 15
        return score

    # ── Output ───────────────────────────────────────────────────────────

    def to_payload(self) -> dict[str, Any]:
        """The camelCase payload a browser would send as ``clientSignals``."""
        return {
            "elapsedMs": round(self.elapsed_ms),
            "antiBotScore": self.anti_bot_score(),
            "inputSwitchCount": self.input_switch_count,
            "hasMouseMovement": self.has_mouse_movement,
            "hasNaturalMousePath": self.has_natural_mouse_path,
            "hasNaturalInputPattern": self.has_natural_input_pattern,
            "hasFocusActivity": self.has_focus_activity,
            "slider": self._slider.model_dump(mode="json", by_alias=True) if self._slider else None,
        }

    def snapshot(self) -> SignalSnapshot:
        return normalize_signals(self.to_payload())


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, int):
        return abs(value) <= sys.float_info.max
    return math.isfinite(value)
