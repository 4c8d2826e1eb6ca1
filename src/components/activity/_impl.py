"""
EngagementTracker - Debounced activity sampling feeding an EngagementHistory.

Key behaviors:
- Nothing is recorded until the host reports the page as first visible
- At most one sample per wall-clock second, however many raw events arrive
- The debounce gate reopens on a one-shot timer at the next second boundary
- cleanup() releases every subscription and is safe to call repeatedly

All handlers run on the host's event loop; there is no preemption between
them, so the boolean gate needs no locking.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from ._history import EngagementHistory
from .models import (
    DEFAULT_INACTIVITY_THRESHOLD_SECONDS,
    DEFAULT_SIGNALS,
    ActivityNotStartedError,
    TrackerState,
)
from .ports import ActivityHostPort, Unsubscribe

logger = logging.getLogger(__name__)


class EngagementTracker:
    """
    Tracks engaged time for one page session.

    The history is owned exclusively by the tracker; callers only read totals.
    """

    def __init__(
        self,
        host: ActivityHostPort,
        inactivity_threshold: int = DEFAULT_INACTIVITY_THRESHOLD_SECONDS,
        signals: tuple[str, ...] = DEFAULT_SIGNALS,
    ) -> None:
        """
        Initialize tracker and wait for the page to become visible.

        Args:
            host: Host environment (clock, timers, signals, visibility)
            inactivity_threshold: Idle seconds after which engagement stops
            signals: Raw activity signals to sample
        """
        self._host = host
        self._inactivity_threshold = inactivity_threshold
        self._signals = tuple(signals)

        self.start_second: int | None = None
        self._history: EngagementHistory | None = None
        self._ignoring = False
        self._listener_handles: list[Unsubscribe] = []
        self._checkpoints: dict[str, int] = {}
        self._state = TrackerState.CREATED

        host.when_first_visible(self._on_first_visible)

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def history(self) -> EngagementHistory | None:
        return self._history

    @property
    def ignoring(self) -> bool:
        return self._ignoring

    def _on_first_visible(self) -> None:
        """Transition CREATED -> STARTED. Later notifications are ignored."""
        if self._state is not TrackerState.CREATED:
            logger.debug("Ignoring visibility signal in state %s", self._state.value)
            return

        self.start_second = math.floor(self._host.now_seconds())
        self._history = EngagementHistory(self.start_second, self._inactivity_threshold)
        self._state = TrackerState.STARTED

        for signal_name in self._signals:
            handle = self._host.subscribe(signal_name, self._handle_activity)
            self._listener_handles.append(handle)

        logger.info(
            "Activity tracking started at second %d (signals: %s)",
            self.start_second,
            ", ".join(self._signals),
        )

    def _handle_activity(self, *_event: Any) -> None:
        """Sample a raw activity occurrence, at most once per second."""
        if self._ignoring or self._history is None:
            return

        self._ignoring = True
        now = self._host.now_seconds()
        second_key = math.floor(now)
        self._history.add(second_key)

        # Reopen the gate at the start of the next wall-clock second
        delay_ms = max(0.0, (second_key + 1) * 1000 - now * 1000)
        self._host.schedule_once(self._stop_ignoring, delay_ms)

    def _stop_ignoring(self) -> None:
        self._ignoring = False

    def get_total_engaged_time(self) -> int:
        """
        Return total engaged seconds for the session.

        Raises:
            ActivityNotStartedError: The page has not become visible yet
        """
        if self._history is None:
            raise ActivityNotStartedError("Engaged time is unavailable before the page is visible")
        return self._history.get_total_engaged_time()

    def get_incremental_engaged_time(self, name: str, reset: bool = True) -> int:
        """
        Return engaged seconds since the previous call with the same name.

        The first call for a name returns the full total. With reset=False the
        checkpoint is read but not moved.
        """
        total = self.get_total_engaged_time()
        delta = total - self._checkpoints.get(name, 0)
        if reset:
            self._checkpoints[name] = total
        return delta

    def cleanup(self) -> None:
        """Release all signal subscriptions. Safe to call more than once."""
        released = 0
        for handle in self._listener_handles:
            if callable(handle):
                handle()
                released += 1
        self._listener_handles.clear()

        if self._state is not TrackerState.STOPPED:
            self._state = TrackerState.STOPPED
            logger.info("Activity tracking stopped (%d subscriptions released)", released)
