"""Unbounded memo table for pure single-argument functions.

Entries are never evicted, so the table grows with the number of distinct
arguments seen. A warning is logged once when it passes a configurable
size to make that growth visible.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import threading
from typing import Any, Callable

from callgate.core.config import settings
from callgate.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


PRIMITIVE_TYPES: tuple[type, ...] = (type(None), bool, int, float, str, bytes)

_UNSET = object()


def build_memo_key(argument: Any) -> str:
    """Serialize a primitive argument into a memo table key.

    The type name is part of the key so that ``1``, ``1.0`` and ``True``
    occupy separate entries even though they compare equal.

    Args:
        argument: None, bool, int, float, str or bytes.

    Returns:
        Stable string key.

    Raises:
        TypeError: If the argument is not a primitive.
    """

    if type(argument) not in PRIMITIVE_TYPES:
        raise TypeError(
            f"memoized functions take a single primitive argument, got {type(argument).__name__}"
        )
    return f"{type(argument).__name__}:{argument!r}"


def _hash_memo_key(key: str) -> str:
    """Hash a memo key for logging without exposing the argument."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


class Memoized:
    """Cache the result of ``func`` per argument.

    ``func`` is assumed to be pure; results for an argument are computed
    once and served from the table afterwards, including falsy results.

    Attributes:
        warn_entries: Table size that triggers a single growth warning.
    """

    def __init__(
        self,
        func: Callable[[Any], Any],
        *,
        warn_entries: int | None | object = _UNSET,
    ) -> None:
        if not callable(func):
            raise ConfigurationError(
                code="invalid_target",
                message="func must be callable",
                details={"field": "func", "actual_value": type(func).__name__},
            )

        functools.update_wrapper(self, func, updated=())
        self._func = func
        self._warn_entries = (
            settings.gate.memo_warn_entries if warn_entries is _UNSET else warn_entries
        )
        self._table: dict[str, Any] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._warned = False

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"Memoized({getattr(self._func, '__qualname__', self._func)!r}, "
            f"entries={len(self._table)}, hits={self._hits}, misses={self._misses})"
        )

    def __len__(self) -> int:
        return len(self._table)

    def __call__(self, argument: Any) -> Any:
        key = build_memo_key(argument)

        with self._lock:
            if key in self._table:
                self._hits += 1
                logger.debug("memo.hit", extra={"key_hash": _hash_memo_key(key)})
                return self._table[key]

            self._misses += 1
            logger.debug("memo.miss", extra={"key_hash": _hash_memo_key(key)})

            # Failures propagate and leave no entry behind.
            result = self._func(argument)
            self._table[key] = result
            self._warn_if_large_locked()
            return result

    def clear(self) -> None:
        """Remove all entries and reset counters."""

        with self._lock:
            self._table.clear()
            self._hits = 0
            self._misses = 0
            self._warned = False

    def stats(self) -> dict[str, int | None]:
        """Return table size and hit/miss counters without exposing values."""

        with self._lock:
            return {
                "entries": len(self._table),
                "hits": self._hits,
                "misses": self._misses,
                "warn_entries": self._warn_entries,
            }

    def _warn_if_large_locked(self) -> None:
        if self._warned or self._warn_entries is None:
            return
        if len(self._table) > self._warn_entries:
            self._warned = True
            logger.warning(
                "memo.unbounded_growth",
                extra={
                    "function": getattr(self._func, "__qualname__", repr(self._func)),
                    "entries": len(self._table),
                    "warn_entries": self._warn_entries,
                },
            )


def memoize(
    func: Callable[[Any], Any] | None = None,
    *,
    warn_entries: int | None | object = _UNSET,
) -> Any:
    """Decorator form of :class:`Memoized`, usable bare or with arguments."""

    def decorator(inner: Callable[[Any], Any]) -> Memoized:
        return Memoized(inner, warn_entries=warn_entries)

    if func is not None:
        return decorator(func)
    return decorator
