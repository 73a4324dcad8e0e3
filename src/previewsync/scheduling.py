"""Deferred callbacks: paint-tick scheduling and debouncing.

Everything runs on one asyncio event loop. The highlight manager defers its
cursor move by one tick through a ``Scheduler``; editor commits go through a
``Debouncer`` that keeps at most one pending call, cancelled and rescheduled
on every new value.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class ScheduledCall(Protocol):
    """Handle for a callback that has been scheduled."""

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Protocol for running a callback after a delay (in seconds)."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        """Schedule *callback*; a zero delay means the next loop iteration."""
        ...


class LoopScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(
        self, delay: float, callback: Callable[[], None]
    ) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class _CompletedCall:
    def cancel(self) -> None:
        pass


class ImmediateScheduler:
    """Scheduler that runs callbacks inline, ignoring the delay.

    For synchronous hosts such as the CLI, where there is no paint tick to
    wait for.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        callback()
        return _CompletedCall()


class Debouncer:
    """Delay calls to *callback* until *delay* seconds pass without a new call.

    Only the most recent value is delivered.
    """

    def __init__(
        self, delay: float, callback: Callable[[str], None], scheduler: Scheduler
    ) -> None:
        self._delay = delay
        self._callback = callback
        self._scheduler = scheduler
        self._handle: ScheduledCall | None = None
        self._value: str | None = None
        self._pending = False

    @property
    def pending(self) -> bool:
        return self._pending

    def __call__(self, value: str) -> None:
        self.cancel()
        self._value = value
        self._pending = True
        handle = self._scheduler.call_later(self._delay, self._fire)
        # An inline scheduler has already delivered by now
        if self._pending:
            self._handle = handle

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._value = None
        self._pending = False

    def flush(self) -> bool:
        """Deliver the pending value now.

        Returns:
            True if a pending call was delivered.
        """
        if not self._pending:
            return False
        if self._handle is not None:
            self._handle.cancel()
        self._fire()
        return True

    def _fire(self) -> None:
        value = self._value
        self._handle = None
        self._value = None
        self._pending = False
        logger.debug("[DEBOUNCE] delivering after %.3fs", self._delay)
        self._callback(value or "")
