"""
Asyncio Host Adapter (ActivityHostPort Implementation).

Runs the tracker on an asyncio event loop. Timers use loop.call_later and the
first-visible notification is an asyncio.Future, so every tracker callback
executes on the loop thread and never concurrently with another.

Signals raised from other threads must go through emit_threadsafe().
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from src.adapters.clock import SystemClock
from src.components.activity.ports import SignalHandler, TimePort, Unsubscribe

logger = logging.getLogger(__name__)


class AsyncioHost:
    """
    Host environment bound to one event loop.

    Implements ActivityHostPort.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        clock: TimePort | None = None,
    ) -> None:
        """
        Initialize host.

        Args:
            loop: Event loop to dispatch on (defaults to the running loop)
            clock: Time source (defaults to SystemClock)
        """
        self._loop = loop or asyncio.get_running_loop()
        self._clock = clock or SystemClock()
        self._visible: asyncio.Future[None] = self._loop.create_future()
        self._subscribers: dict[str, list[SignalHandler]] = {}

    def now_seconds(self) -> float:
        return self._clock.now_seconds()

    def schedule_once(self, callback: Callable[[], None], delay_ms: float) -> None:
        self._loop.call_later(max(0.0, delay_ms) / 1000, callback)

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

    def emit(self, signal_name: str, event: Any = None) -> int:
        """Deliver a signal on the loop thread. Returns handlers invoked."""
        handlers = list(self._subscribers.get(signal_name, []))
        for handler in handlers:
            handler(event)
        return len(handlers)

    def emit_threadsafe(self, signal_name: str, event: Any = None) -> None:
        """Queue a signal raised outside the loop thread."""
        self._loop.call_soon_threadsafe(self.emit, signal_name, event)

    def when_first_visible(self, callback: Callable[[], None]) -> None:
        # Done callbacks are always dispatched through the loop, even if the
        # future already resolved.
        self._visible.add_done_callback(lambda _fut: callback())

    def make_visible(self) -> None:
        """Resolve the first-visible future. Later calls are ignored."""
        if self._visible.done():
            logger.debug("Page already visible")
            return
        self._visible.set_result(None)

    async def wait_visible(self) -> None:
        await asyncio.shield(self._visible)
