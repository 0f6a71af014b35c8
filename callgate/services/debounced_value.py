"""A value whose settled copy trails the live one by a quiet period.

Typical use is a search box: ``value`` follows every keystroke while
``settled`` only changes once typing pauses, and ``on_settle`` is where the
expensive lookup goes.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, TypeVar

from callgate.adapters.scheduler.base import AbstractScheduler
from callgate.services.rate_limited import Debouncer

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DebouncedValue(Generic[T]):
    """Hold a live value and a debounced copy of it.

    Attributes:
        value: Latest value passed to :meth:`set`.
        settled: Value as of the last quiet period.
    """

    def __init__(
        self,
        initial: T,
        delay: float,
        *,
        on_settle: Callable[[T], Any] | None = None,
        scheduler: AbstractScheduler | None = None,
    ) -> None:
        self.value: T = initial
        self.settled: T = initial
        self._on_settle = on_settle
        self._debouncer = Debouncer(self._settle, delay, scheduler=scheduler)

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"DebouncedValue(value={self.value!r}, settled={self.settled!r})"

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    def set(self, value: T) -> None:
        self.value = value
        self._debouncer(value)

    def dispose(self) -> None:
        """Drop any pending settle; later :meth:`set` calls only update ``value``."""
        self._debouncer.dispose()

    def _settle(self, value: T) -> None:
        if value == self.settled:
            return
        self.settled = value
        logger.debug("debounced_value.settled")
        if self._on_settle is not None:
            self._on_settle(value)
