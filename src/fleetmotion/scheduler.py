"""Tick scheduling for the route animator.

The animator only needs "call me every *interval* seconds until I cancel".
:class:`LoopTickScheduler` provides that on an asyncio loop with a
self-rescheduling ``call_later``; tests substitute a manual scheduler.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

_logger = logging.getLogger(__name__)


class TickHandle(Protocol):
    def cancel(self) -> None:
        """Stop further ticks. Safe to call more than once."""
        ...


class TickScheduler(Protocol):
    def start(self, interval: float, callback: Callable[[], None]) -> TickHandle:
        ...


class _LoopTick:
    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        interval: float,
        callback: Callable[[], None],
    ) -> None:
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._timer: asyncio.TimerHandle | None = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def schedule(self) -> None:
        if self._cancelled:
            return
        self._timer = self._loop.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        self._timer = None
        if self._cancelled:
            return
        try:
            self._callback()
        except Exception:
            _logger.error("Tick callback failed; stopping ticks", exc_info=True)
            self.cancel()
            return
        self.schedule()

    def cancel(self) -> None:
        self._cancelled = True
        timer = self._timer
        self._timer = None
        if timer is not None:
            timer.cancel()


class LoopTickScheduler:
    """Periodic ticks on an asyncio event loop.

    Must be used from the loop's thread. ``loop`` defaults to the running
    loop at the time :meth:`start` is called.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._active: set[_LoopTick] = set()

    def start(self, interval: float, callback: Callable[[], None]) -> _LoopTick:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        loop = self._loop or asyncio.get_running_loop()
        self._active = {tick for tick in self._active if not tick.cancelled}
        tick = _LoopTick(loop, interval, callback)
        self._active.add(tick)
        tick.schedule()
        return tick

    def cancel_all(self) -> None:
        """Cancel every tick started by this scheduler."""
        for tick in list(self._active):
            tick.cancel()
        self._active.clear()
