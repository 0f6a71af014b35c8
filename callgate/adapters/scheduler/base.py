"""Scheduler interfaces.

Wrappers depend on this abstraction (not on asyncio) so the event queue
that fires their timers can be swapped without touching wrapper logic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Protocol


class TimerHandle(Protocol):
    """Opaque handle for a scheduled callback."""

    def cancel(self) -> None:
        """Prevent the callback from running. Safe to call more than once."""


class AbstractScheduler(ABC):
    """Interface for single-threaded timer queues."""

    @abstractmethod
    def now(self) -> float:
        """Return the scheduler's monotonic time in seconds."""
        raise NotImplementedError

    @abstractmethod
    def call_later(
        self,
        delay: float,
        callback: Callable[..., Any],
        *args: Any,
    ) -> TimerHandle:
        """Run ``callback(*args)`` on a later turn, ``delay`` seconds from now.

        Args:
            delay: Seconds to wait; never run synchronously, even for 0.
            callback: Callable to run when the timer fires.
            *args: Positional arguments passed to the callback.

        Returns:
            Handle whose ``cancel()`` guarantees the callback never runs.
        """
        raise NotImplementedError
