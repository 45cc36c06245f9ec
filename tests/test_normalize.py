"""Tests for the untrusted-input boundary: clamping and signal normalization."""

from __future__ import annotations

import math

import pytest

from authrisk.collector.normalize import (
    clamp,
    normalize_action,
    normalize_captcha_state,
    normalize_signals,
)
from authrisk.domain.enums import AuthAction, CaptchaState, PointerType
from authrisk.domain.signals import SignalSnapshot


def _raw_signals(**overrides) -> dict:
    """Return a well-formed clientSignals payload, with optional overrides."""
    base = {
        "elapsedMs": 5400,
        "antiBotScore": 75,
        "inputSwitchCount": 4,
        "hasMouseMovement": True,
        "hasNaturalMousePath": True,
        "hasNaturalInputPattern": True,
        "hasFocusActivity": True,
        "slider": {
            "verified": True,
            "qualityScore": 82,
            "attempts": 1,
            "pointerType": "mouse",
            "dragDurationMs": 950,
            "reachedEnd": True,
        },
    }
    base.update(overrides)
    return base


def _assert_in_range(snap: SignalSnapshot) -> None:
    assert 0 <= snap.elapsed_ms <= 300_000
    assert 0 <= snap.anti_bot_score <= 100
    assert 0 <= snap.input_switch_count <= 100
    if snap.slider is not None:
        assert 0 <= snap.slider.quality_score <= 100
        assert 0 <= snap.slider.attempts <= 10
        assert 0 <= snap.slider.drag_duration_ms <= 30_000


# ── clamp ────────────────────────────────────────────────────────────────────


class TestClamp:
    def test_within_range_unchanged(self) -> None:
        assert clamp(42, 0, 100, 0) == 42

    def test_clamped_to_bounds(self) -> None:
        assert clamp(-5, 0, 100, 7) == 0
        assert clamp(500, 0, 100, 7) == 100

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite_uses_fallback(self, value: float) -> None:
        assert clamp(value, 0, 100, 7) == 7

    def test_huge_integer_clamped(self) -> None:
        # json.loads keeps arbitrarily long integer literals exact
        assert clamp(10**400, 0, 100, 7) == 100
        assert normalize_signals({"elapsedMs": 10**400}).elapsed_ms == 300_000

    @pytest.mark.parametrize("value", ["50", None, True, False, [1], {"a": 1}])
    def test_non_numbers_use_fallback(self, value) -> None:
        assert clamp(value, 0, 100, 7) == 7


# ── normalize_signals ────────────────────────────────────────────────────────


class TestNormalizeSignals:
    def test_well_formed_payload_passes_through(self) -> None:
        snap = normalize_signals(_raw_signals())
        assert snap.elapsed_ms == 5400
        assert snap.anti_bot_score == 75
        assert snap.input_switch_count == 4
        assert snap.has_mouse_movement is True
        assert snap.slider is not None
        assert snap.slider.verified is True
        assert snap.slider.pointer_type == PointerType.MOUSE
        assert snap.slider.reached_end is True

    @pytest.mark.parametrize("raw", [None, "junk", 42, [], True, {}])
    def test_garbage_resolves_to_safe_defaults(self, raw) -> None:
        snap = normalize_signals(raw)
        assert snap == SignalSnapshot()
        assert snap.slider is None

    def test_out_of_range_values_clamped(self) -> None:
        snap = normalize_signals(_raw_signals(
            elapsedMs=10_000_000,
            antiBotScore=-40,
            inputSwitchCount=9999,
            slider={"qualityScore": 400, "attempts": 99, "dragDurationMs": -3},
        ))
        assert snap.elapsed_ms == 300_000
        assert snap.anti_bot_score == 0
        assert snap.input_switch_count == 100
        assert snap.slider.quality_score == 100
        assert snap.slider.attempts == 10
        assert snap.slider.drag_duration_ms == 0

    def test_truthy_non_booleans_are_false(self) -> None:
        snap = normalize_signals(_raw_signals(
            hasMouseMovement="true",
            hasNaturalMousePath=1,
            hasNaturalInputPattern="yes",
            hasFocusActivity=None,
        ))
        assert snap.has_mouse_movement is False
        assert snap.has_natural_mouse_path is False
        assert snap.has_natural_input_pattern is False
        assert snap.has_focus_activity is False

    def test_non_object_slider_dropped(self) -> None:
        assert normalize_signals(_raw_signals(slider="passed")).slider is None
        assert normalize_signals(_raw_signals(slider=None)).slider is None

    def test_unknown_pointer_type(self) -> None:
        snap = normalize_signals(_raw_signals(slider={"pointerType": "stylus"}))
        assert snap.slider.pointer_type == PointerType.UNKNOWN

    def test_fractional_counts_kept(self) -> None:
        snap = normalize_signals(_raw_signals(inputSwitchCount=3.9, slider={"attempts": 1.7}))
        assert snap.input_switch_count == 3.9
        assert snap.slider.attempts == 1.7

    @pytest.mark.parametrize("field", [
        "elapsedMs", "antiBotScore", "inputSwitchCount",
    ])
    @pytest.mark.parametrize("bad", [math.nan, math.inf, "12", None, True, {"x": 1}])
    def test_malformed_fields_stay_in_range(self, field: str, bad) -> None:
        snap = normalize_signals(_raw_signals(**{field: bad}))
        _assert_in_range(snap)

    def test_malformed_slider_fields_stay_in_range(self) -> None:
        snap = normalize_signals(_raw_signals(slider={
            "verified": "yes",
            "qualityScore": math.nan,
            "attempts": -math.inf,
            "pointerType": 3,
            "dragDurationMs": "fast",
            "reachedEnd": 1,
        }))
        _assert_in_range(snap)
        assert snap.slider.verified is False
        assert snap.slider.reached_end is False

    def test_snapshot_wire_format_is_camel_case(self) -> None:
        wire = normalize_signals(_raw_signals()).to_wire()
        assert wire["elapsedMs"] == 5400
        assert wire["slider"]["qualityScore"] == 82
        assert wire["slider"]["pointerType"] == "mouse"


# ── Enumerated fields ────────────────────────────────────────────────────────


class TestEnumeratedFields:
    @pytest.mark.parametrize("raw,expected", [
        ("slider_passed", CaptchaState.SLIDER_PASSED),
        ("slider_failed", CaptchaState.SLIDER_FAILED),
        ("none", CaptchaState.NONE),
        ("SLIDER_PASSED", CaptchaState.NONE),
        (None, CaptchaState.NONE),
        (1, CaptchaState.NONE),
    ])
    def test_captcha_state(self, raw, expected: CaptchaState) -> None:
        assert normalize_captcha_state(raw) == expected

    def test_valid_actions(self) -> None:
        assert normalize_action("login") == AuthAction.LOGIN
        assert normalize_action("register") == AuthAction.REGISTER

    @pytest.mark.parametrize("raw", ["logout", "LOGIN", "", None, 0, ["login"]])
    def test_invalid_action_is_none(self, raw) -> None:
        assert normalize_action(raw) is None
