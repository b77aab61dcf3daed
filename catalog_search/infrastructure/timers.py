"""Cancellable timers.

Debouncing is expressed against the small ``TimerService`` protocol so
tests can drive time by hand instead of sleeping.
"""

import asyncio
from collections.abc import Callable
from typing import Protocol


class TimerHandle(Protocol):
    """A scheduled callback that can be cancelled."""

    def cancel(self) -> None: ...


class TimerService(Protocol):
    """Schedules callbacks after a delay."""

    def schedule(self, callback: Callable[[], None], delay: float) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""
        ...


class AsyncioTimerService:
    """Timer service backed by the running event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def schedule(self, callback: Callable[[], None], delay: float) -> asyncio.TimerHandle:
        """Schedule a callback on the event loop.

        Args:
            callback: Zero-argument callable.
            delay: Delay in seconds.

        Returns:
            Handle whose ``cancel()`` prevents the callback from running.
        """
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)
