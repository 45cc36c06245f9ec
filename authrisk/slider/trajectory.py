"""Slider trajectory validator — human motor control vs scripted drags.

Pure function over one continuous drag gesture, represented as ordered
``(x, y, t)`` samples with ``t`` in milliseconds.

Acceptance envelope (all tunable through TrajectoryEnvelope):
    - at least 4 samples
    - duration within [180 ms, 15 000 ms]
    - net horizontal displacement ≥ 80 px
    - straightness = path length / |dx| within [1.0, 6.0]
    - no single segment longer than 240 px (teleport / injected events)
    - non-touch pointers: not (speed jitter < 0.01 AND duration < 700 ms)

Quality score:
    Starts at 100 and loses a fixed penalty per failed check, plus a small
    deduction for a perfectly flat gesture.  The caller reports it as
    ``SliderSignal.quality_score``; the server scores it independently of
    the pass/fail verdict.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

from authrisk.domain.enums import PointerType

# Floating-point slack for a perfectly straight path (ratio exactly 1.0)
_EPSILON = 1e-9


@dataclass(frozen=True)
class PointerSample:
    x: float
    y: float
    t: float


@dataclass(frozen=True)
class TrajectoryEnvelope:
    """Acceptance thresholds for a drag gesture."""

    min_samples: int = 4
    min_duration_ms: float = 180.0
    max_duration_ms: float = 15_000.0
    min_displacement_px: float = 80.0
    min_straightness: float = 1.0
    max_straightness: float = 6.0
    max_segment_px: float = 240.0
    min_speed_jitter: float = 0.01
    uniform_window_ms: float = 700.0
    # Fraction of the track the thumb must reach
    reach_threshold: float = 0.96

    # Quality penalties
    too_few_quality: int = 15
    too_fast_penalty: int = 35
    too_slow_penalty: int = 20
    short_displacement_penalty: int = 30
    straightness_penalty: int = 25
    segment_jump_penalty: int = 20
    uniform_speed_penalty: int = 18
    flat_gesture_penalty: int = 8
    min_vertical_travel_px: float = 1.5


@dataclass(frozen=True)
class TrajectoryMetrics:
    duration_ms: float = 0.0
    displacement_px: float = 0.0
    path_length_px: float = 0.0
    straightness: float = 0.0
    max_segment_px: float = 0.0
    vertical_travel_px: float = 0.0
    mean_speed: float = 0.0
    speed_jitter: float = 0.0


@dataclass(frozen=True)
class TrajectoryAnalysis:
    human_like: bool
    quality_score: int
    drag_duration_ms: int
    rejections: tuple[str, ...] = ()
    metrics: TrajectoryMetrics = field(default_factory=TrajectoryMetrics)


DEFAULT_ENVELOPE = TrajectoryEnvelope()


def measure(samples: Sequence[PointerSample]) -> TrajectoryMetrics:
    """Kinematic measurements of a gesture with at least two samples."""
    first, last = samples[0], samples[-1]
    duration = last.t - first.t
    dx = last.x - first.x

    path = 0.0
    max_segment = 0.0
    vertical = 0.0
    speeds: list[float] = []
    for prev, curr in zip(samples, samples[1:]):
        seg = math.hypot(curr.x - prev.x, curr.y - prev.y)
        dt = max(1.0, curr.t - prev.t)
        path += seg
        max_segment = max(max_segment, seg)
        vertical += abs(curr.y - prev.y)
        speeds.append(seg / dt)

    mean = sum(speeds) / len(speeds)
    variance = sum((s - mean) ** 2 for s in speeds) / len(speeds)
    jitter = math.sqrt(variance) / max(0.0001, mean)

    return TrajectoryMetrics(
        duration_ms=duration,
        displacement_px=dx,
        path_length_px=path,
        straightness=path / max(1.0, abs(dx)),
        max_segment_px=max_segment,
        vertical_travel_px=vertical,
        mean_speed=mean,
        speed_jitter=jitter,
    )


def analyze_trajectory(
    samples: Sequence[PointerSample],
    pointer_type: PointerType = PointerType.MOUSE,
    envelope: TrajectoryEnvelope = DEFAULT_ENVELOPE,
) -> TrajectoryAnalysis:
    """Judge whether *samples* form a human-like drag gesture."""
    if len(samples) < envelope.min_samples:
        return TrajectoryAnalysis(
            human_like=False,
            quality_score=envelope.too_few_quality,
            drag_duration_ms=0,
            rejections=("too_few_samples",),
        )

    m = measure(samples)
    rejections: list[str] = []
    quality = 100

    if m.duration_ms < envelope.min_duration_ms:
        rejections.append("too_fast")
        quality -= envelope.too_fast_penalty
    elif m.duration_ms > envelope.max_duration_ms:
        rejections.append("too_slow")
        quality -= envelope.too_slow_penalty

    if m.displacement_px < envelope.min_displacement_px:
        rejections.append("short_displacement")
        quality -= envelope.short_displacement_penalty

    if not envelope.min_straightness - _EPSILON <= m.straightness <= envelope.max_straightness:
        rejections.append("straightness_out_of_range")
        quality -= envelope.straightness_penalty

    if m.max_segment_px > envelope.max_segment_px:
        rejections.append("segment_jump")
        quality -= envelope.segment_jump_penalty

    # Touch gestures can legitimately be this smooth
    if (
        pointer_type != PointerType.TOUCH
        and m.speed_jitter < envelope.min_speed_jitter
        and m.duration_ms < envelope.uniform_window_ms
    ):
        rejections.append("uniform_speed")
        quality -= envelope.uniform_speed_penalty

    if m.vertical_travel_px < envelope.min_vertical_travel_px:
        quality -= envelope.flat_gesture_penalty

    return TrajectoryAnalysis(
        human_like=not rejections,
        quality_score=max(0, min(100, quality)),
        drag_duration_ms=max(0, round(m.duration_ms)),
        rejections=tuple(rejections),
        metrics=m,
    )


def reached_end(position: float, max_position: float, envelope: TrajectoryEnvelope = DEFAULT_ENVELOPE) -> bool:
    if max_position <= 0:
        return False
    return position / max_position >= envelope.reach_threshold
