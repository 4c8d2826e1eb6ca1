"""
Dev Host Adapter (ActivityHostPort Implementation).

Deterministic in-process host environment for development, testing and
offline replay.

Key behaviors:
- Manual clock: time only moves through advance() / advance_to()
- Timers fire in due order as the clock passes their due time
- Signals are delivered synchronously to subscribers via emit()
- Visibility latch resolves exactly once; later make_visible() calls are no-ops
"""

from __future__ import annotations

import heapq
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from src.components.activity.ports import SignalHandler, Unsubscribe

logger = logging.getLogger(__name__)


@dataclass(order=True)
class _PendingTimer:
    due_seconds: float
    seq: int
    callback: Callable[[], None] = field(compare=False)


class DevHost:
    """
    Dev host with a manual clock.

    Implements ActivityHostPort.
    """

    def __init__(self, start_seconds: float = 0.0) -> None:
        """
        Initialize host.

        Args:
            start_seconds: Initial clock value in epoch seconds
        """
        self._now = float(start_seconds)
        self._timers: list[_PendingTimer] = []
        self._seq = itertools.count()
        self._subscribers: dict[str, list[SignalHandler]] = {}
        self._visible = False
        self._visibility_callbacks: list[Callable[[], None]] = []

    # --- TimePort ---

    def now_seconds(self) -> float:
        return self._now

    # --- TimerPort ---

    def schedule_once(self, callback: Callable[[], None], delay_ms: float) -> None:
        # Microsecond resolution keeps second boundaries exact
        due = round(self._now + max(0.0, delay_ms) / 1000, 6)
        heapq.heappush(self._timers, _PendingTimer(due, next(self._seq), callback))

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    # --- SignalPort ---

    def subscribe(self, signal_name: str, handler: SignalHandler) -> Unsubscribe:
        handlers = self._subscribers.setdefault(signal_name, [])
        handlers.append(handler)
        released = False

        def unsubscribe() -> None:
            nonlocal released
            if released:
                return
            released = True
            handlers.remove(handler)

        return unsubscribe

    def subscriber_count(self, signal_name: str) -> int:
        return len(self._subscribers.get(signal_name, []))

    def emit(self, signal_name: str, event: Any = None) -> int:
        """
        Deliver one signal occurrence to current subscribers.

        Returns:
            Number of handlers invoked
        """
        handlers = list(self._subscribers.get(signal_name, []))
        for handler in handlers:
            handler(event)
        return len(handlers)

    # --- VisibilityPort ---

    def when_first_visible(self, callback: Callable[[], None]) -> None:
        if self._visible:
            callback()
        else:
            self._visibility_callbacks.append(callback)

    def make_visible(self) -> None:
        """Resolve the first-visible latch. Only the first call has an effect."""
        if self._visible:
            return
        self._visible = True
        callbacks, self._visibility_callbacks = self._visibility_callbacks, []
        for callback in callbacks:
            callback()

    # --- Clock control ---

    def advance(self, seconds: float) -> int:
        """Move the clock forward by seconds. Returns number of timers fired."""
        return self.advance_to(self._now + seconds)

    def advance_to(self, now_seconds: float) -> int:
        """
        Move the clock to now_seconds, firing every timer due on the way.

        The clock never moves backwards.

        Returns:
            Number of timers fired
        """
        target = max(self._now, now_seconds)
        fired = 0
        while self._timers and self._timers[0].due_seconds <= target:
            timer = heapq.heappop(self._timers)
            self._now = max(self._now, timer.due_seconds)
            timer.callback()
            fired += 1
        self._now = target
        if fired:
            logger.debug("Dev host fired %d timers up to %.3f", fired, target)
        return fired
