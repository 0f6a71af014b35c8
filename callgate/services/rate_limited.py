"""Rate-limited call wrappers: debounce and throttle.

A wrapper adapts a callable into an event handler that may or may not run
the callable, depending on how quickly calls arrive:

- Debounce: run once, with the latest arguments, after calls stop for a
  full delay.
- Throttle: run the first call immediately, then drop calls until the
  interval has passed. Two bookkeeping variants exist: a lock released by
  a timer, and a comparison against the last execution time.

Wrappers are fire-and-forget (they return ``None``), keep all their state on
the instance, and schedule timers through an :class:`AbstractScheduler` so
they run on an asyncio loop or on a virtual clock alike.
"""

from __future__ import annotations

import functools
import logging
from abc import ABC, abstractmethod
from types import MethodType
from typing import Any, Callable

from pydantic import ValidationError

from callgate.adapters.scheduler.asyncio_loop import AsyncioScheduler
from callgate.adapters.scheduler.base import AbstractScheduler, TimerHandle
from callgate.core.config import settings
from callgate.core.errors import ConfigurationError
from callgate.schemas.policy import GateConfig, Policy, ThrottleVariant

logger = logging.getLogger(__name__)


def build_gate_config(
    func: Any,
    duration: Any,
    policy: Policy | str,
    variant: ThrottleVariant | str = ThrottleVariant.LOCK,
) -> GateConfig:
    """Validate wrapper construction parameters.

    Args:
        func: Target that will be wrapped.
        duration: Delay or interval in seconds.
        policy: ``debounce`` or ``throttle``.
        variant: Throttle bookkeeping, ``lock`` or ``timestamp``.

    Returns:
        Validated, immutable GateConfig.

    Raises:
        ConfigurationError: If the target is not callable or a parameter is invalid.
    """
    if not callable(func):
        raise ConfigurationError(
            code="invalid_target",
            message="func must be callable",
            details={"field": "func", "actual_value": type(func).__name__},
        )

    try:
        return GateConfig(duration_seconds=duration, policy=policy, variant=variant)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ConfigurationError(
            code="invalid_gate_config",
            message=f"{field}: {first['msg']}",
            details={"field": field, "actual_value": first.get("input")},
        ) from exc


class RateLimitedCall(ABC):
    """Base class holding the state shared by every wrapper.

    Subclasses implement :meth:`_on_call` (decide what a call does) and
    :meth:`cancel` (drop pending work and reset the gate).
    """

    policy: Policy

    def __init__(
        self,
        func: Callable[..., Any],
        config: GateConfig,
        scheduler: AbstractScheduler | None = None,
    ) -> None:
        functools.update_wrapper(self, func, updated=())
        self._func = func
        self._config = config
        self._scheduler = scheduler or AsyncioScheduler()
        self._name = getattr(func, "__qualname__", type(func).__name__)
        self._timer: TimerHandle | None = None
        self._disposed = False
        self._requested = 0
        self._executed = 0
        self._dropped = 0
        self._superseded = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"{type(self).__name__}({self._name}, "
            f"duration_seconds={self._config.duration_seconds}, "
            f"pending={self.pending}, disposed={self._disposed})"
        )

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        # Bound access passes the instance through as the target's first argument.
        if instance is None:
            return self
        return MethodType(self, instance)

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        if self._disposed:
            logger.debug("gate.call_after_dispose", extra={"gate": self._name})
            return None

        self._requested += 1
        self._on_call(args, kwargs)
        return None

    def __enter__(self) -> "RateLimitedCall":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()

    @property
    def duration_seconds(self) -> float:
        return self._config.duration_seconds

    @property
    def pending(self) -> bool:
        """Whether a timer owned by this wrapper is outstanding."""
        return self._timer is not None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Cancel outstanding timers and ignore every later call.

        Owners call this when the event source the wrapper is attached to
        goes away. Calling it again is a no-op.
        """
        if self._disposed:
            return
        self.cancel()
        self._disposed = True
        logger.debug("gate.disposed", extra={"gate": self._name, "policy": self.policy.value})

    @abstractmethod
    def cancel(self) -> None:
        """Drop pending work and reset the gate without disposing."""
        raise NotImplementedError

    def stats(self) -> dict[str, int | bool]:
        """Return call counters for this wrapper."""
        return {
            "requested": self._requested,
            "executed": self._executed,
            "dropped": self._dropped,
            "superseded": self._superseded,
            "pending": self.pending,
            "disposed": self._disposed,
        }

    @abstractmethod
    def _on_call(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        raise NotImplementedError

    def _execute(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        # Target errors propagate untouched to whoever triggered the execution.
        self._func(*args, **kwargs)
        self._executed += 1
        logger.debug(
            "gate.executed",
            extra={
                "gate": self._name,
                "policy": self.policy.value,
                "at": self._scheduler.now(),
                "call_args": args,
                "call_kwargs": kwargs,
            },
        )

    def _drop(self, reason: str) -> None:
        self._dropped += 1
        logger.debug(
            "gate.dropped",
            extra={"gate": self._name, "policy": self.policy.value, "reason": reason},
        )


class Debouncer(RateLimitedCall):
    """Run the target once calls have stopped for ``delay`` seconds.

    Every call cancels the pending execution and schedules a new one, so a
    burst of calls followed by silence produces a single execution with the
    arguments of the last call.
    """

    policy = Policy.DEBOUNCE

    def __init__(
        self,
        func: Callable[..., Any],
        delay: float,
        *,
        scheduler: AbstractScheduler | None = None,
    ) -> None:
        super().__init__(func, build_gate_config(func, delay, Policy.DEBOUNCE), scheduler)
        self._pending_call: tuple[tuple[Any, ...], dict[str, Any]] | None = None

    def _on_call(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._superseded += 1
            logger.debug("gate.superseded", extra={"gate": self._name})

        self._pending_call = (args, kwargs)
        self._timer = self._scheduler.call_later(self.duration_seconds, self._fire)

    def _fire(self) -> None:
        if self._pending_call is None:
            return
        args, kwargs = self._pending_call
        self._timer = None
        self._pending_call = None
        self._execute(args, kwargs)

    def flush(self) -> None:
        """Run the pending execution now instead of waiting for the delay."""
        if self._timer is None:
            return
        self._timer.cancel()
        self._fire()

    def cancel(self) -> None:
        """Drop the pending execution, if any."""
        if self._timer is None:
            return
        self._timer.cancel()
        self._timer = None
        self._pending_call = None
        logger.debug("gate.cancelled", extra={"gate": self._name})


class LockThrottler(RateLimitedCall):
    """Throttle with a lock that a timer releases after ``interval`` seconds.

    A call arriving while the lock is engaged is dropped, never queued.
    """

    policy = Policy.THROTTLE

    def __init__(
        self,
        func: Callable[..., Any],
        interval: float,
        *,
        scheduler: AbstractScheduler | None = None,
    ) -> None:
        super().__init__(
            func,
            build_gate_config(func, interval, Policy.THROTTLE, ThrottleVariant.LOCK),
            scheduler,
        )

    @property
    def locked(self) -> bool:
        return self._timer is not None

    def _on_call(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        if self._timer is not None:
            self._drop("locked")
            return

        # Engage before running so re-entrant calls from the target are dropped.
        self._timer = self._scheduler.call_later(self.duration_seconds, self._release)
        try:
            self._execute(args, kwargs)
        except BaseException:
            self.cancel()
            raise

    def _release(self) -> None:
        self._timer = None

    def cancel(self) -> None:
        """Release the lock early."""
        if self._timer is None:
            return
        self._timer.cancel()
        self._timer = None


class TimestampThrottler(RateLimitedCall):
    """Throttle by comparing the clock with the next allowed execution time.

    No timer is ever scheduled; a call runs when ``now >= last_run + interval``
    and is dropped otherwise.
    """

    policy = Policy.THROTTLE

    def __init__(
        self,
        func: Callable[..., Any],
        interval: float,
        *,
        scheduler: AbstractScheduler | None = None,
    ) -> None:
        super().__init__(
            func,
            build_gate_config(func, interval, Policy.THROTTLE, ThrottleVariant.TIMESTAMP),
            scheduler,
        )
        self._next_allowed_at: float | None = None

    @property
    def last_run_at(self) -> float | None:
        if self._next_allowed_at is None:
            return None
        return self._next_allowed_at - self.duration_seconds

    def _on_call(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        now = self._scheduler.now()
        # Same sum as the lock variant's timer due time, so both agree at the boundary.
        if self._next_allowed_at is not None and now < self._next_allowed_at:
            self._drop("interval_not_elapsed")
            return

        previous = self._next_allowed_at
        self._next_allowed_at = now + self.duration_seconds
        try:
            self._execute(args, kwargs)
        except BaseException:
            self._next_allowed_at = previous
            raise

    def cancel(self) -> None:
        """Forget the last execution so the next call runs immediately."""
        self._next_allowed_at = None


def rate_limited(
    func: Callable[..., Any],
    duration: float,
    policy: Policy | str,
    *,
    variant: ThrottleVariant | str | None = None,
    scheduler: AbstractScheduler | None = None,
) -> RateLimitedCall:
    """Wrap ``func`` so it runs according to ``policy``.

    Args:
        func: Callable to wrap.
        duration: Debounce delay or throttle interval, in seconds.
        policy: ``debounce`` or ``throttle``.
        variant: Throttle bookkeeping; defaults to the configured variant.
        scheduler: Timer queue; defaults to the running asyncio loop.

    Returns:
        A Debouncer, LockThrottler or TimestampThrottler.

    Raises:
        ConfigurationError: If any parameter is invalid.
    """
    config = build_gate_config(
        func,
        duration,
        policy,
        variant if variant is not None else settings.gate.throttle_variant,
    )

    if config.policy is Policy.DEBOUNCE:
        return Debouncer(func, config.duration_seconds, scheduler=scheduler)
    if config.variant is ThrottleVariant.TIMESTAMP:
        return TimestampThrottler(func, config.duration_seconds, scheduler=scheduler)
    return LockThrottler(func, config.duration_seconds, scheduler=scheduler)


def debounce(
    delay: float | Callable[..., Any] | None = None,
    *,
    scheduler: AbstractScheduler | None = None,
) -> Any:
    """Decorator form of :class:`Debouncer`.

    Usable bare (``@debounce``) or with arguments (``@debounce(0.3)``).
    Without a delay the configured default is used. The default scheduler
    needs a running asyncio loop when the wrapper is called; pass
    ``scheduler=`` to debounce from synchronous code.
    """
    if callable(delay):
        return debounce(scheduler=scheduler)(delay)

    def decorator(func: Callable[..., Any]) -> Debouncer:
        resolved = delay if delay is not None else settings.gate.debounce_delay_seconds
        return Debouncer(func, resolved, scheduler=scheduler)

    return decorator


def throttle(
    interval: float | Callable[..., Any] | None = None,
    *,
    variant: ThrottleVariant | str | None = None,
    scheduler: AbstractScheduler | None = None,
) -> Any:
    """Decorator form of the throttle policy.

    Usable bare (``@throttle``) or with arguments (``@throttle(0.25)``).
    Missing interval and variant fall back to configured defaults. The
    timestamp variant schedules no timers and works in synchronous code; the
    lock variant needs a running asyncio loop unless ``scheduler=`` is given.
    """
    if callable(interval):
        return throttle(variant=variant, scheduler=scheduler)(interval)

    def decorator(func: Callable[..., Any]) -> RateLimitedCall:
        resolved = (
            interval if interval is not None else settings.gate.throttle_interval_seconds
        )
        return rate_limited(
            func,
            resolved,
            Policy.THROTTLE,
            variant=variant,
            scheduler=scheduler,
        )

    return decorator
