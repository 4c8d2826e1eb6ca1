"""
Unit tests for EngagementTracker and the component entry points.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import Any

import pytest

from .._impl import EngagementTracker
from ..component import (
    install_activity_service,
    run,
    run_query_engaged_time,
    run_replay,
)
from ..models import (
    ActivityNotStartedError,
    QueryEngagedTimeInput,
    ReplayActivityInput,
    TrackerState,
)

# --- Test Fixtures ---


class FakeHost:
    """Fake host with a settable clock and recorded timers."""

    def __init__(self, now: float = 1000.0):
        self.now = now
        self.timers: list[tuple[Callable[[], None], float]] = []
        self.handlers: dict[str, list[Callable[..., Any]]] = {}
        self.unsubscribe_calls: list[str] = []
        self.visibility_callbacks: list[Callable[[], None]] = []

    def now_seconds(self) -> float:
        return self.now

    def schedule_once(self, callback: Callable[[], None], delay_ms: float) -> None:
        self.timers.append((callback, delay_ms))

    def subscribe(self, signal_name: str, handler: Callable[..., Any]) -> Callable[[], None]:
        self.handlers.setdefault(signal_name, []).append(handler)

        def unsubscribe() -> None:
            self.unsubscribe_calls.append(signal_name)
            if handler in self.handlers.get(signal_name, []):
                self.handlers[signal_name].remove(handler)

        return unsubscribe

    def when_first_visible(self, callback: Callable[[], None]) -> None:
        self.visibility_callbacks.append(callback)

    # Test helpers

    def fire_visible(self) -> None:
        for callback in self.visibility_callbacks:
            callback()

    def emit(self, signal_name: str, event: Any = None) -> None:
        for handler in list(self.handlers.get(signal_name, [])):
            handler(event)

    def fire_timers(self) -> None:
        timers, self.timers = self.timers, []
        for callback, _delay in timers:
            callback()


class FakeActivityRules:
    """Fake activity rules for testing."""

    def __init__(self, threshold: int = 5, signals: tuple[str, ...] = ("scroll",)):
        self._threshold = threshold
        self._signals = signals

    def get_inactivity_threshold_seconds(self) -> int:
        return self._threshold

    def get_signals(self) -> tuple[str, ...]:
        return self._signals


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def tracker(host: FakeHost) -> EngagementTracker:
    return EngagementTracker(host)


def count_adds(tracker: EngagementTracker, monkeypatch: pytest.MonkeyPatch) -> list[int]:
    """Record every second passed to the tracker's history."""
    history = tracker.history
    assert history is not None
    added: list[int] = []
    real_add = history.add

    def recording_add(second: int) -> None:
        added.append(second)
        real_add(second)

    monkeypatch.setattr(history, "add", recording_add)
    return added


# --- Lifecycle ---


class TestLifecycle:
    def test_created_until_visible(self, host: FakeHost, tracker: EngagementTracker) -> None:
        assert tracker.state is TrackerState.CREATED
        assert tracker.history is None
        assert host.handlers == {}
        assert len(host.visibility_callbacks) == 1

    def test_visible_starts_tracking(self, host: FakeHost, tracker: EngagementTracker) -> None:
        host.now = 1234.9
        host.fire_visible()

        assert tracker.state is TrackerState.STARTED
        assert tracker.start_second == 1234
        assert tracker.history is not None
        assert tracker.history.earliest == tracker.history.latest == 1234
        assert len(host.handlers["scroll"]) == 1

    def test_repeated_visibility_ignored(self, host: FakeHost, tracker: EngagementTracker) -> None:
        host.fire_visible()
        history = tracker.history
        host.now = 2000.0
        host.fire_visible()

        assert tracker.history is history
        assert tracker.start_second == 1000
        assert len(host.handlers["scroll"]) == 1

    def test_total_before_start_raises(self, tracker: EngagementTracker) -> None:
        with pytest.raises(ActivityNotStartedError):
            tracker.get_total_engaged_time()

    def test_total_zero_right_after_start(
        self, host: FakeHost, tracker: EngagementTracker
    ) -> None:
        host.fire_visible()
        assert tracker.get_total_engaged_time() == 0

    def test_subscribes_every_configured_signal(self, host: FakeHost) -> None:
        tracker = EngagementTracker(host, signals=("scroll", "keydown"))
        host.fire_visible()
        assert set(host.handlers) == {"scroll", "keydown"}
        tracker.cleanup()
        assert host.unsubscribe_calls == ["scroll", "keydown"]


# --- Sampling ---


class TestSampling:
    def test_ten_events_one_sample_per_second(
        self,
        host: FakeHost,
        tracker: EngagementTracker,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        host.fire_visible()
        added = count_adds(tracker, monkeypatch)

        for i in range(10):
            host.now = 1000.0 + i * 0.09
            host.emit("scroll")

        assert added == [1000]
        assert tracker.ignoring
        assert len(host.timers) == 1

        # Timer reopens the gate at the next second boundary
        host.fire_timers()
        host.now = 1001.2
        host.emit("scroll")
        assert added == [1000, 1001]

    def test_timer_delay_targets_next_second(
        self, host: FakeHost, tracker: EngagementTracker
    ) -> None:
        host.fire_visible()
        host.now = 1003.25
        host.emit("scroll")

        assert len(host.timers) == 1
        _callback, delay_ms = host.timers[0]
        assert delay_ms == pytest.approx(750.0)

    def test_gate_closed_until_timer_fires(
        self,
        host: FakeHost,
        tracker: EngagementTracker,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        host.fire_visible()
        added = count_adds(tracker, monkeypatch)
        host.emit("scroll")
        host.now = 1001.5
        host.emit("scroll")
        assert added == [1000]

    def test_events_accumulate_engaged_time(
        self, host: FakeHost, tracker: EngagementTracker
    ) -> None:
        host.fire_visible()
        for t in (1000.1, 1002.4, 1010.0):
            host.now = t
            host.emit("scroll")
            host.fire_timers()

        # 1000-1006 covered by activity at 1000 and 1002; 1010 is the open end
        assert tracker.get_total_engaged_time() == 7

    def test_events_before_visible_are_not_routed(
        self, host: FakeHost, tracker: EngagementTracker
    ) -> None:
        host.emit("scroll")
        assert host.timers == []
        assert not tracker.ignoring


# --- Cleanup ---


class TestCleanup:
    def test_cleanup_releases_subscriptions(
        self, host: FakeHost, tracker: EngagementTracker
    ) -> None:
        host.fire_visible()
        tracker.cleanup()

        assert host.unsubscribe_calls == ["scroll"]
        assert host.handlers["scroll"] == []
        assert tracker.state is TrackerState.STOPPED

    def test_cleanup_idempotent(self, host: FakeHost, tracker: EngagementTracker) -> None:
        host.fire_visible()
        tracker.cleanup()
        tracker.cleanup()
        assert host.unsubscribe_calls == ["scroll"]

    def test_cleanup_before_start(self, host: FakeHost, tracker: EngagementTracker) -> None:
        tracker.cleanup()
        assert tracker.state is TrackerState.STOPPED

        host.fire_visible()
        assert tracker.history is None
        assert host.handlers == {}

    def test_cleanup_skips_non_callable_handles(
        self, host: FakeHost, tracker: EngagementTracker
    ) -> None:
        host.fire_visible()
        tracker._listener_handles.append(None)  # type: ignore[arg-type]
        tracker.cleanup()
        assert host.unsubscribe_calls == ["scroll"]

    def test_total_available_after_cleanup(
        self, host: FakeHost, tracker: EngagementTracker
    ) -> None:
        host.fire_visible()
        host.emit("scroll")
        host.now = 1003.0
        host.fire_timers()
        host.emit("scroll")
        tracker.cleanup()

        assert tracker.get_total_engaged_time() == 3
        # Late timer after cleanup only resets the gate
        host.fire_timers()
        assert not tracker.ignoring


# --- Incremental ---


class TestIncrementalEngagedTime:
    def test_first_call_returns_total(self, host: FakeHost, tracker: EngagementTracker) -> None:
        host.fire_visible()
        host.emit("scroll")
        host.fire_timers()
        host.now = 1004.0
        host.emit("scroll")
        assert tracker.get_incremental_engaged_time("ping") == 4

    def test_delta_since_previous_call(self, host: FakeHost, tracker: EngagementTracker) -> None:
        host.fire_visible()
        host.emit("scroll")
        host.fire_timers()
        host.now = 1002.0
        host.emit("scroll")
        host.fire_timers()
        assert tracker.get_incremental_engaged_time("ping") == 2

        host.now = 1004.0
        host.emit("scroll")
        host.fire_timers()
        assert tracker.get_incremental_engaged_time("ping") == 2
        assert tracker.get_incremental_engaged_time("ping") == 0
        assert tracker.get_incremental_engaged_time("other") == 4

    def test_no_reset_keeps_checkpoint(self, host: FakeHost, tracker: EngagementTracker) -> None:
        host.fire_visible()
        host.emit("scroll")
        host.fire_timers()
        host.now = 1003.0
        host.emit("scroll")
        assert tracker.get_incremental_engaged_time("a", reset=False) == 3
        assert tracker.get_incremental_engaged_time("a", reset=False) == 3

    def test_before_start_raises(self, tracker: EngagementTracker) -> None:
        with pytest.raises(ActivityNotStartedError):
            tracker.get_incremental_engaged_time("a")


# --- Component Entry Points ---


class TestInstallActivityService:
    def test_defaults(self, host: FakeHost) -> None:
        tracker = install_activity_service(host)
        host.fire_visible()
        assert list(host.handlers) == ["scroll"]
        assert tracker.history is not None
        assert tracker.history.inactivity_threshold == 5

    def test_uses_rules(self, host: FakeHost) -> None:
        rules = FakeActivityRules(threshold=3, signals=("scroll", "mousedown"))
        tracker = install_activity_service(host, rules)
        host.fire_visible()
        assert set(host.handlers) == {"scroll", "mousedown"}
        assert tracker.history is not None
        assert tracker.history.inactivity_threshold == 3

    def test_invalid_rules_rejected(self, host: FakeHost) -> None:
        with pytest.raises(ValueError, match="at least 1 second"):
            install_activity_service(host, FakeActivityRules(threshold=0))


class TestRunQueryEngagedTime:
    def test_not_started(self, tracker: EngagementTracker) -> None:
        result = run_query_engaged_time(QueryEngagedTimeInput(), tracker=tracker)
        assert not result.success
        assert result.engaged_seconds == 0
        assert result.state is TrackerState.CREATED
        assert result.errors[0].code == "NOT_STARTED"

    def test_total(self, host: FakeHost, tracker: EngagementTracker) -> None:
        host.fire_visible()
        host.emit("scroll")
        host.now = 1002.0
        host.fire_timers()
        host.emit("scroll")

        result = run_query_engaged_time(QueryEngagedTimeInput(), tracker=tracker)
        assert result.success
        assert result.engaged_seconds == 2
        assert result.state is TrackerState.STARTED

    def test_checkpoint(self, host: FakeHost, tracker: EngagementTracker) -> None:
        host.fire_visible()
        host.emit("scroll")
        host.now = 1002.0
        host.fire_timers()
        host.emit("scroll")

        inp = QueryEngagedTimeInput(checkpoint="beacon")
        assert run_query_engaged_time(inp, tracker=tracker).engaged_seconds == 2
        assert run_query_engaged_time(inp, tracker=tracker).engaged_seconds == 0


class TestRunReplay:
    def test_burst_then_idle(self) -> None:
        # Dense burst in second 100, one event in second 110
        events = tuple(100.0 + i * 0.05 for i in range(15)) + (110.3,)
        result = run_replay(ReplayActivityInput(event_times=events))

        assert result.success
        assert result.event_count == 16
        assert result.sampled_seconds == (100, 110)
        assert result.engaged_seconds == 5

    def test_sample_on_exact_second_boundary(self) -> None:
        result = run_replay(ReplayActivityInput(event_times=(100.3, 101.0, 102.0)))
        assert result.sampled_seconds == (100, 101, 102)
        assert result.engaged_seconds == 2

    def test_unsorted_input(self) -> None:
        result = run_replay(ReplayActivityInput(event_times=(103.0, 100.0)))
        assert result.sampled_seconds == (100, 103)
        assert result.engaged_seconds == 3

    def test_explicit_start(self) -> None:
        result = run_replay(ReplayActivityInput(event_times=(105.0,), start_seconds=100.0))
        # Start second 100 is not active; gap stays at threshold until 105
        assert result.engaged_seconds == 0
        assert result.sampled_seconds == (105,)

    def test_no_events_no_start(self) -> None:
        result = run_replay(ReplayActivityInput(event_times=()))
        assert not result.success
        assert result.errors[0].code == "NO_START"

    def test_no_events_with_start(self) -> None:
        result = run_replay(ReplayActivityInput(event_times=(), start_seconds=50.0))
        assert result.success
        assert result.engaged_seconds == 0

    def test_event_before_start(self) -> None:
        result = run_replay(ReplayActivityInput(event_times=(90.0,), start_seconds=100.0))
        assert not result.success
        assert result.errors[0].code == "EVENT_BEFORE_START"

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_non_finite_event_rejected(self, bad: float) -> None:
        result = run_replay(ReplayActivityInput(event_times=(100.0, bad, 110.0)))
        assert not result.success
        assert result.engaged_seconds == 0
        assert result.sampled_seconds == ()
        assert result.event_count == 3
        assert [(e.code, e.field_name) for e in result.errors] == [
            ("INVALID_EVENT_TIME", "event_times")
        ]

    @pytest.mark.parametrize("bad", [math.nan, math.inf])
    def test_non_finite_start_rejected(self, bad: float) -> None:
        result = run_replay(ReplayActivityInput(event_times=(100.0,), start_seconds=bad))
        assert not result.success
        assert [(e.code, e.field_name) for e in result.errors] == [
            ("INVALID_EVENT_TIME", "start_seconds")
        ]

    def test_threshold_override(self) -> None:
        result = run_replay(
            ReplayActivityInput(event_times=(0.0, 10.0), inactivity_threshold_seconds=2)
        )
        assert result.engaged_seconds == 2


class TestRunDispatch:
    def test_replay(self) -> None:
        result = run(ReplayActivityInput(event_times=(0.0, 3.0)))
        assert result.engaged_seconds == 3

    def test_query_requires_tracker(self) -> None:
        with pytest.raises(ValueError, match="required"):
            run(QueryEngagedTimeInput())

    def test_unknown_input(self) -> None:
        with pytest.raises(ValueError, match="Unknown input type"):
            run(object())  # type: ignore[arg-type]
