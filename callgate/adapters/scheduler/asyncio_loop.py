"""Scheduler backed by an asyncio event loop.

Notes:
- Timers fire on the loop thread; wrappers must be called from that thread.
- Without an explicit loop the running loop is looked up on every use, so a
  wrapper can be created at import time and called later inside the loop.
- Outside a loop, ``now()`` reads ``time.monotonic()`` (the clock asyncio
  loops use by default), so the timestamp throttle works in plain
  synchronous code. Scheduling a timer still needs a loop.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable

from callgate.adapters.scheduler.base import AbstractScheduler, TimerHandle
from callgate.core.errors import ConfigurationError


class AsyncioScheduler(AbstractScheduler):
    """Schedule wrapper timers with ``loop.call_later``."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._explicit_loop = loop

    def _loop(self) -> asyncio.AbstractEventLoop | None:
        """Return the bound loop, the running one, or None."""
        if self._explicit_loop is not None:
            return self._explicit_loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def now(self) -> float:
        loop = self._loop()
        if loop is None:
            return time.monotonic()
        return loop.time()

    def call_later(
        self,
        delay: float,
        callback: Callable[..., Any],
        *args: Any,
    ) -> TimerHandle:
        """Schedule ``callback`` on the loop.

        Raises:
            ConfigurationError: If no loop was given and none is running.
        """
        loop = self._loop()
        if loop is None:
            raise ConfigurationError(
                code="no_event_loop",
                message=(
                    "scheduling a timer needs a running asyncio loop; call the wrapper "
                    "from inside the loop or pass scheduler=ManualScheduler()/AsyncioScheduler(loop)"
                ),
                details={"hint": "TimestampThrottler needs no timer and works without a loop"},
            )
        return loop.call_later(delay, callback, *args)
