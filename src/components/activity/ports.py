"""
Activity component port definitions.

The tracker never looks up host services itself; a host object satisfying
``ActivityHostPort`` is passed to its constructor.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

SignalHandler = Callable[..., Any]
Unsubscribe = Callable[[], None]


class TimePort(Protocol):
    """Wall-clock time source."""

    def now_seconds(self) -> float:
        """Get current time in seconds since the epoch."""
        ...


class TimerPort(Protocol):
    """Deferred execution."""

    def schedule_once(self, callback: Callable[[], None], delay_ms: float) -> None:
        """
        Run callback once after delay_ms milliseconds.

        Fire-and-forget: no handle is returned and the timer cannot be
        cancelled.
        """
        ...


class SignalPort(Protocol):
    """Raw activity signal subscription."""

    def subscribe(self, signal_name: str, handler: SignalHandler) -> Unsubscribe:
        """
        Route every occurrence of signal_name to handler.

        Returns a handle that releases the subscription. Calling the handle
        again after release is a no-op.
        """
        ...


class VisibilityPort(Protocol):
    """One-shot "page first visible" notification."""

    def when_first_visible(self, callback: Callable[[], None]) -> None:
        """Invoke callback once the page has been visible, never earlier."""
        ...


class ActivityHostPort(TimePort, TimerPort, SignalPort, VisibilityPort, Protocol):
    """Everything the tracker needs from its host environment."""


class ActivityRulesPort(Protocol):
    """Port for activity rules configuration."""

    def get_inactivity_threshold_seconds(self) -> int:
        """Get seconds of idleness after which the user is disengaged (default 5)."""
        ...

    def get_signals(self) -> tuple[str, ...]:
        """Get the raw activity signals to subscribe to (default scroll only)."""
        ...
