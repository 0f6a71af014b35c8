"""Virtual-time scheduler driven explicitly by its owner.

Time only moves when :meth:`ManualScheduler.advance` or
:meth:`ManualScheduler.advance_to` is called. Timers due at or before the
new time fire in (due time, scheduling order) before the call returns, so a
call made right after advancing always observes every timer that expired.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from callgate.adapters.scheduler.base import AbstractScheduler

logger = logging.getLogger(__name__)


@dataclass
class ManualTimer:
    """Handle for a callback scheduled on a :class:`ManualScheduler`."""

    when: float
    callback: Callable[..., Any]
    args: tuple[Any, ...] = field(default_factory=tuple)
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(AbstractScheduler):
    """Deterministic timer queue with a caller-controlled clock.

    Attributes:
        start: Initial value of the virtual clock in seconds.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[tuple[float, int, ManualTimer]] = []
        self._sequence = itertools.count()

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"ManualScheduler(now={self._now}, pending={self.pending_count()})"

    def now(self) -> float:
        return self._now

    def call_later(
        self,
        delay: float,
        callback: Callable[..., Any],
        *args: Any,
    ) -> ManualTimer:
        if delay < 0:
            raise ValueError("delay must be >= 0")

        timer = ManualTimer(when=self._now + delay, callback=callback, args=args)
        heapq.heappush(self._queue, (timer.when, next(self._sequence), timer))
        return timer

    def pending_count(self) -> int:
        """Number of scheduled timers that have neither fired nor been cancelled."""
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward by ``seconds``, firing due timers."""
        if seconds < 0:
            raise ValueError("seconds must be >= 0")
        self.advance_to(self._now + seconds)

    def advance_to(self, timestamp: float) -> None:
        """Move the clock to ``timestamp``, firing due timers in order.

        Timers scheduled by a firing callback are honored when they fall
        inside the same advance. An exception raised by a callback
        propagates; the clock stays at that timer's due time and later
        timers remain queued.

        Raises:
            ValueError: If ``timestamp`` is in the past.
        """
        if timestamp < self._now:
            raise ValueError("cannot move the clock backwards")

        while self._queue and self._queue[0][0] <= timestamp:
            when, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = when
            logger.debug("scheduler.fire", extra={"due_at": when})
            timer.callback(*timer.args)

        self._now = timestamp
