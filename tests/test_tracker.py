"""Tests for the session-scoped signal collector.

Time is driven by a fake monotonic clock injected into each tracker.
"""

from __future__ import annotations

import pytest

from authrisk.collector.events import EventBus
from authrisk.collector.tracker import SERVER_FINGERPRINT, SessionTracker
from authrisk.domain.enums import PointerType
from authrisk.domain.signals import SliderSignal


class FakeClock:
    def __init__(self, start: float = 10_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


# ── Helpers ──────────────────────────────────────────────────────────────────


def _zigzag(tracker: SessionTracker, clock: FakeClock, points: int = 12) -> None:
    """Mouse path that changes heading at every sample."""
    for i in range(points):
        clock.advance(150)
        tracker.record_mouse_move(i * 10, 0 if i % 2 == 0 else 10)


def _straight(tracker: SessionTracker, clock: FakeClock, points: int = 12) -> None:
    for i in range(points):
        clock.advance(150)
        tracker.record_mouse_move(i * 10, i * 10)


def _type_like_a_person(tracker: SessionTracker, clock: FakeClock) -> None:
    for _ in range(5):
        clock.advance(120)
        tracker.record_input("email")
    clock.advance(600)
    for _ in range(5):
        clock.advance(140)
        tracker.record_input("password")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ── Mouse ────────────────────────────────────────────────────────────────────


class TestMouseTracking:
    def test_no_movement_by_default(self, clock: FakeClock) -> None:
        tracker = SessionTracker(clock=clock)
        assert tracker.has_mouse_movement is False
        assert tracker.has_natural_mouse_path is False

    def test_samples_are_throttled(self, clock: FakeClock) -> None:
        tracker = SessionTracker(clock=clock)
        for i in range(20):
            clock.advance(10)
            tracker.record_mouse_move(i, i)
        # 200 ms of events at 10 ms spacing → only 2 accepted samples
        assert tracker.has_mouse_movement is False

    def test_movement_requires_more_than_five_samples(self, clock: FakeClock) -> None:
        tracker = SessionTracker(clock=clock)
        _zigzag(tracker, clock, points=5)
        assert tracker.has_mouse_movement is False
        _zigzag(tracker, clock, points=1)
        assert tracker.has_mouse_movement is True

    def test_zigzag_path_is_natural(self, clock: FakeClock) -> None:
        tracker = SessionTracker(clock=clock)
        _zigzag(tracker, clock)
        assert tracker.has_natural_mouse_path is True

    def test_straight_path_is_not_natural(self, clock: FakeClock) -> None:
        tracker = SessionTracker(clock=clock)
        _straight(tracker, clock)
        assert tracker.has_mouse_movement is True
        assert tracker.has_natural_mouse_path is False

    def test_non_numeric_coordinates_ignored(self, clock: FakeClock) -> None:
        tracker = SessionTracker(clock=clock)
        for _ in range(10):
            clock.advance(150)
            tracker.record_mouse_move("12", None)
        for bad in (float("nan"), 10**400, True):
            clock.advance(150)
            tracker.record_mouse_move(bad, 0)
        assert tracker.has_mouse_movement is False


# ── Keyboard ─────────────────────────────────────────────────────────────────


class TestInputTracking:
    def test_human_typing_is_natural(self, clock: FakeClock) -> None:
        tracker = SessionTracker(clock=clock)
        _type_like_a_person(tracker, clock)
        assert tracker.has_natural_input_pattern is True
        assert tracker.input_switch_count == 1

    def test_single_field_is_not_natural(self, clock: FakeClock) -> None:
        tracker = SessionTracker(clock=clock)
        for _ in range(5):
            clock.advance(300)
            tracker.record_input("email")
        assert tracker.has_natural_input_pattern is False

    def test_instant_autofill_is_not_natural(self, clock: FakeClock) -> None:
        tracker = SessionTracker(clock=clock)
        for field in ("email", "password", "email", "password"):
            tracker.record_input(field)
        assert tracker.has_natural_input_pattern is False
        assert tracker.input_switch_count == 3

    def test_switch_count_ignores_repeated_field(self, clock: FakeClock) -> None:
        tracker = SessionTracker(clock=clock)
        for field in ("email", "email", "password", "password", "email"):
            clock.advance(100)
            tracker.record_input(field)
        assert tracker.input_switch_count == 2


# ── Focus & score ────────────────────────────────────────────────────────────


class TestAntiBotScore:
    def test_focus_activity(self, clock: FakeClock) -> None:
        tracker = SessionTracker(clock=clock)
        assert tracker.has_focus_activity is False
        tracker.record_blur()
        assert tracker.has_focus_activity is True

    def test_empty_server_session_scores_zero(self, clock: FakeClock) -> None:
        tracker = SessionTracker(clock=clock)
        assert tracker.anti_bot_score() == 0

    def test_full_human_session_scores_100(self, clock: FakeClock) -> None:
        tracker = SessionTracker(clock=clock, fingerprint="TW96aWxsYS81LjA=")
        _zigzag(tracker, clock)
        _type_like_a_person(tracker, clock)
        tracker.record_focus()
        assert tracker.elapsed_ms >= 2000
        assert tracker.anti_bot_score() == 100

    def test_browser_fingerprint_counts(self, clock: FakeClock) -> None:
        server = SessionTracker(clock=clock, fingerprint=SERVER_FINGERPRINT)
        browser = SessionTracker(clock=clock, fingerprint="abc")
        assert browser.anti_bot_score() - server.anti_bot_score() == 15


# ── Snapshot ─────────────────────────────────────────────────────────────────


class TestSnapshot:
    def test_snapshot_reflects_session(self, clock: FakeClock) -> None:
        tracker = SessionTracker(clock=clock, fingerprint="abc")
        _zigzag(tracker, clock)
        _type_like_a_person(tracker, clock)
        snap = tracker.snapshot()
        assert snap.elapsed_ms == round(tracker.elapsed_ms)
        assert snap.has_mouse_movement is True
        assert snap.has_natural_mouse_path is True
        assert snap.has_natural_input_pattern is True
        assert snap.input_switch_count == 1
        assert snap.slider is None

    def test_snapshot_carries_slider(self, clock: FakeClock) -> None:
        tracker = SessionTracker(clock=clock)
        tracker.attach_slider(SliderSignal(
            verified=True, quality_score=90, attempts=1,
            pointer_type=PointerType.TOUCH, drag_duration_ms=800, reached_end=True,
        ))
        snap = tracker.snapshot()
        assert snap.slider is not None
        assert snap.slider.pointer_type == PointerType.TOUCH
        assert snap.slider.quality_score == 90

    def test_long_session_elapsed_is_clamped(self, clock: FakeClock) -> None:
        tracker = SessionTracker(clock=clock)
        clock.advance(3_600_000)
        assert tracker.snapshot().elapsed_ms == 300_000


# ── Lifecycle ────────────────────────────────────────────────────────────────


class TestLifecycle:
    def test_events_from_bus_are_recorded(self, clock: FakeClock) -> None:
        bus = EventBus()
        tracker = SessionTracker(clock=clock, event_source=bus)
        for i in range(8):
            clock.advance(150)
            bus.emit("mousemove", {"x": i * 10, "y": 0 if i % 2 else 10})
        bus.emit("input", {"field": "email"})
        clock.advance(300)
        bus.emit("input", {"field": "password"})
        bus.emit("focus")
        assert tracker.has_mouse_movement is True
        assert tracker.input_switch_count == 1
        assert tracker.has_focus_activity is True

    def test_close_unsubscribes_and_clears(self, clock: FakeClock) -> None:
        bus = EventBus()
        tracker = SessionTracker(clock=clock, event_source=bus)
        bus.emit("focus")
        assert bus.handler_count("focus") == 1

        tracker.close()

        assert tracker.closed is True
        assert bus.handler_count("focus") == 0
        assert tracker.has_focus_activity is False
        bus.emit("focus")
        tracker.record_focus()
        assert tracker.has_focus_activity is False

    def test_context_manager_closes(self, clock: FakeClock) -> None:
        bus = EventBus()
        with SessionTracker(clock=clock, event_source=bus) as tracker:
            assert bus.handler_count("mousemove") == 1
        assert tracker.closed is True
        assert bus.handler_count("mousemove") == 0

    def test_sessions_do_not_share_state(self, clock: FakeClock) -> None:
        first = SessionTracker(clock=clock)
        _zigzag(first, clock)
        first.record_focus()
        second = SessionTracker(clock=clock)
        assert second.has_mouse_movement is False
        assert second.has_focus_activity is False
