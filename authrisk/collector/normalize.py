"""Untrusted-input boundary for client signals.

Architectural rules:
    1. normalize_signals() is total: it never raises, whatever it is given.
    2. Every numeric field passes through clamp(); non-finite numbers and
       non-numbers resolve to the fallback.
    3. Booleans count only when literally ``true``.
    4. The ``action`` field is the one exception: it is never defaulted.
       normalize_action() returns None and the web layer answers 400.
"""

from __future__ import annotations

import math
from typing import Any, Optional

from authrisk.domain.enums import AuthAction, CaptchaState, PointerType
from authrisk.domain.signals import (
    MAX_ANTI_BOT_SCORE,
    MAX_DRAG_DURATION_MS,
    MAX_ELAPSED_MS,
    MAX_INPUT_SWITCH_COUNT,
    MAX_SLIDER_ATTEMPTS,
    MAX_SLIDER_QUALITY,
    SignalSnapshot,
    SliderSignal,
)


def clamp(value: Any, lo: float, hi: float, fallback: float) -> float:
    """Clamp *value* into [lo, hi]; anything that is not a finite number → fallback."""
    # bool is an int subclass, but a JSON ``true`` is not a count
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    if isinstance(value, float) and not math.isfinite(value):
        return fallback
    return max(lo, min(hi, value))


def _flag(value: Any) -> bool:
    return value is True


def _pointer_type(value: Any) -> PointerType:
    if value in (PointerType.MOUSE.value, PointerType.TOUCH.value, PointerType.PEN.value):
        return PointerType(value)
    return PointerType.UNKNOWN


def normalize_slider(raw: Any) -> Optional[SliderSignal]:
    if not isinstance(raw, dict):
        return None
    return SliderSignal(
        verified=_flag(raw.get("verified")),
        quality_score=clamp(raw.get("qualityScore"), 0, MAX_SLIDER_QUALITY, 0),
        attempts=clamp(raw.get("attempts"), 0, MAX_SLIDER_ATTEMPTS, 0),
        pointer_type=_pointer_type(raw.get("pointerType")),
        drag_duration_ms=clamp(raw.get("dragDurationMs"), 0, MAX_DRAG_DURATION_MS, 0),
        reached_end=_flag(raw.get("reachedEnd")),
    )


def normalize_signals(raw: Any) -> SignalSnapshot:
    """Turn an arbitrary client payload into a bounded SignalSnapshot."""
    data: dict = raw if isinstance(raw, dict) else {}
    return SignalSnapshot(
        elapsed_ms=clamp(data.get("elapsedMs"), 0, MAX_ELAPSED_MS, 0),
        anti_bot_score=clamp(data.get("antiBotScore"), 0, MAX_ANTI_BOT_SCORE, 0),
        input_switch_count=clamp(data.get("inputSwitchCount"), 0, MAX_INPUT_SWITCH_COUNT, 0),
        has_mouse_movement=_flag(data.get("hasMouseMovement")),
        has_natural_mouse_path=_flag(data.get("hasNaturalMousePath")),
        has_natural_input_pattern=_flag(data.get("hasNaturalInputPattern")),
        has_focus_activity=_flag(data.get("hasFocusActivity")),
        slider=normalize_slider(data.get("slider")),
    )


def normalize_captcha_state(raw: Any) -> CaptchaState:
    if raw in (CaptchaState.SLIDER_PASSED.value, CaptchaState.SLIDER_FAILED.value):
        return CaptchaState(raw)
    return CaptchaState.NONE


def normalize_action(raw: Any) -> Optional[AuthAction]:
    if raw in (AuthAction.LOGIN.value, AuthAction.REGISTER.value):
        return AuthAction(raw)
    return None
