"""Tests for schedulers and the commit debouncer."""

from __future__ import annotations

import asyncio

import pytest

from previewsync.scheduling import Debouncer, ImmediateScheduler, LoopScheduler
from tests.fakes import ManualScheduler


class TestDebouncer:
    """Cancel-and-reschedule debouncing."""

    def test_only_last_value_delivered(self, scheduler: ManualScheduler) -> None:
        """A burst of calls delivers only the final value once."""
        delivered: list[str] = []
        debounce = Debouncer(0.3, delivered.append, scheduler)

        debounce("<p>a</p>")
        debounce("<p>ab</p>")
        debounce("<p>abc</p>")

        assert debounce.pending
        assert len(scheduler.pending) == 1
        assert scheduler.pending[0].delay == 0.3

        scheduler.run_pending()
        assert delivered == ["<p>abc</p>"]
        assert not debounce.pending

    def test_cancel(self, scheduler: ManualScheduler) -> None:
        """A cancelled call is never delivered."""
        delivered: list[str] = []
        debounce = Debouncer(0.3, delivered.append, scheduler)
        debounce("x")
        debounce.cancel()
        assert not debounce.pending
        assert scheduler.run_pending() == 0
        assert delivered == []

    def test_flush_delivers_now(self, scheduler: ManualScheduler) -> None:
        """flush() delivers the pending value without waiting."""
        delivered: list[str] = []
        debounce = Debouncer(0.3, delivered.append, scheduler)
        debounce("x")
        assert debounce.flush()
        assert delivered == ["x"]
        assert scheduler.run_pending() == 0

    def test_flush_without_pending(self, scheduler: ManualScheduler) -> None:
        """flush() with nothing pending reports False."""
        debounce = Debouncer(0.3, lambda _value: None, scheduler)
        assert not debounce.flush()

    def test_separate_bursts(self, scheduler: ManualScheduler) -> None:
        """Values separated by a quiet period are each delivered."""
        delivered: list[str] = []
        debounce = Debouncer(0.3, delivered.append, scheduler)
        debounce("one")
        scheduler.run_pending()
        debounce("two")
        scheduler.run_pending()
        assert delivered == ["one", "two"]

    def test_immediate_scheduler(self) -> None:
        """With an inline scheduler each call is delivered and nothing stays pending."""
        delivered: list[str] = []
        debounce = Debouncer(0.3, delivered.append, ImmediateScheduler())
        debounce("a")
        debounce("b")
        assert delivered == ["a", "b"]
        assert not debounce.pending
        assert not debounce.flush()


class TestLoopScheduler:
    """asyncio-backed scheduling."""

    @pytest.mark.asyncio
    async def test_runs_on_running_loop(self) -> None:
        """A zero-delay call runs on the next loop iteration."""
        ran: list[bool] = []
        LoopScheduler().call_later(0, lambda: ran.append(True))
        assert ran == []
        await asyncio.sleep(0.01)
        assert ran == [True]

    @pytest.mark.asyncio
    async def test_cancel(self) -> None:
        """A cancelled handle never runs."""
        ran: list[bool] = []
        handle = LoopScheduler().call_later(0, lambda: ran.append(True))
        handle.cancel()
        await asyncio.sleep(0.01)
        assert ran == []

    @pytest.mark.asyncio
    async def test_debounce_on_loop(self) -> None:
        """The debouncer coalesces calls on a real loop."""
        delivered: list[str] = []
        debounce = Debouncer(0.01, delivered.append, LoopScheduler())
        debounce("a")
        debounce("b")
        await asyncio.sleep(0.05)
        assert delivered == ["b"]
