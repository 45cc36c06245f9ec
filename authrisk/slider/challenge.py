"""SliderChallenge — proof-of-interaction state machine.

Lifecycle:  idle → dragging → {success, failed}
    - failed:  samples are discarded and the challenge is back in idle
               before release() returns; attempts keep counting.
    - success: terminal until reset().

The challenge only tracks thumb position and samples; the human-likeness
verdict comes from analyze_trajectory().
"""

from __future__ import annotations

import logging
from typing import Callable

from authrisk.domain.enums import CaptchaState, PointerType, SliderStatus
from authrisk.domain.signals import MAX_DRAG_DURATION_MS, MAX_SLIDER_ATTEMPTS, SliderSignal
from authrisk.foundation.clock import monotonic_ms
from authrisk.slider.trajectory import (
    DEFAULT_ENVELOPE,
    PointerSample,
    TrajectoryEnvelope,
    analyze_trajectory,
    reached_end,
)

logger = logging.getLogger(__name__)


class SliderStateError(RuntimeError):
    """Raised on a transition the state machine does not allow."""


class SliderChallenge:
    """One slider widget instance.

    Args:
        track_width: Width of the slider track in pixels.
        thumb_size: Width of the draggable thumb in pixels.
        track_left: Client x-coordinate of the track's left edge.
        envelope: Trajectory acceptance thresholds.
        clock: Monotonic millisecond clock used when samples carry no time.
    """

    def __init__(
        self,
        track_width: float,
        thumb_size: float = 36.0,
        track_left: float = 0.0,
        envelope: TrajectoryEnvelope = DEFAULT_ENVELOPE,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self._max_x = max(1.0, track_width - thumb_size)
        self._thumb_size = thumb_size
        self._track_left = track_left
        self._envelope = envelope
        self._clock = clock

        self.status = SliderStatus.IDLE
        self.position = 0.0
        self.attempts = 0
        self.pointer_type = PointerType.UNKNOWN
        self.last_result: SliderSignal | None = None
        self.last_outcome: SliderStatus | None = None
        self._samples: list[PointerSample] = []

    # ── Transitions ──────────────────────────────────────────────────────

    def start(self, x: float, y: float, pointer_type: PointerType = PointerType.MOUSE, t: float | None = None) -> None:
        if self.status == SliderStatus.SUCCESS:
            raise SliderStateError("challenge already verified; reset() first")
        if self.status == SliderStatus.DRAGGING:
            raise SliderStateError("drag already in progress")
        self._clear_drag()
        self.pointer_type = pointer_type
        self.status = SliderStatus.DRAGGING
        self.move(x, y, t)

    def move(self, x: float, y: float, t: float | None = None) -> None:
        """Record a pointer sample; late events outside a drag are ignored."""
        if self.status != SliderStatus.DRAGGING:
            return
        self.position = min(max(0.0, x - self._track_left - self._thumb_size / 2), self._max_x)
        self._samples.append(PointerSample(x=x, y=y, t=self._clock() if t is None else t))

    def release(self) -> SliderSignal:
        """End the drag and judge it.  Returns the signal reported to the server."""
        if self.status != SliderStatus.DRAGGING:
            raise SliderStateError(f"cannot release from {self.status.value}")

        at_end = reached_end(self.position, self._max_x, self._envelope)
        analysis = analyze_trajectory(self._samples, self.pointer_type, self._envelope)
        self.attempts = min(self.attempts + 1, MAX_SLIDER_ATTEMPTS)
        verified = at_end and analysis.human_like

        result = SliderSignal(
            verified=verified,
            quality_score=analysis.quality_score,
            attempts=self.attempts,
            pointer_type=self.pointer_type,
            drag_duration_ms=min(analysis.drag_duration_ms, MAX_DRAG_DURATION_MS),
            reached_end=at_end,
        )
        self.last_result = result

        if verified:
            self.status = SliderStatus.SUCCESS
            self.last_outcome = SliderStatus.SUCCESS
            logger.debug("Slider verified after %d attempt(s)", self.attempts)
            return result

        logger.debug(
            "Slider drag rejected (attempt %d, reached_end=%s, reasons=%s)",
            self.attempts, at_end, ",".join(analysis.rejections) or "-",
        )
        # failed auto-resets to idle
        self.last_outcome = SliderStatus.FAILED
        self._clear_drag()
        self.status = SliderStatus.IDLE
        return result

    def reset(self) -> None:
        self._clear_drag()
        self.status = SliderStatus.IDLE
        self.attempts = 0
        self.last_result = None
        self.last_outcome = None

    # ── Views ────────────────────────────────────────────────────────────

    @property
    def samples(self) -> tuple[PointerSample, ...]:
        return tuple(self._samples)

    @property
    def verified(self) -> bool:
        return self.status == SliderStatus.SUCCESS

    @property
    def captcha_state(self) -> CaptchaState:
        if self.last_result is None:
            return CaptchaState.NONE
        if self.last_result.verified:
            return CaptchaState.SLIDER_PASSED
        return CaptchaState.SLIDER_FAILED

    def _clear_drag(self) -> None:
        self._samples = []
        self.position = 0.0
