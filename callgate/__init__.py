"""callgate: debounce, throttle and memoize wrappers for Python callables.

Basic usage:

    from callgate import debounce, throttle, memoize

    @debounce(0.3)
    def search(query: str) -> None:
        ...

    @throttle(0.5, variant="timestamp")
    def on_scroll(offset: int) -> None:
        ...

    @memoize
    def square(n: int) -> int:
        return n * n

The timestamp throttle and memoize work anywhere. Debouncing and the lock
throttle schedule timers, so call them inside a running asyncio loop or
pass ``scheduler=`` (for example a ManualScheduler driven by the caller).
"""

from callgate.adapters.scheduler.asyncio_loop import AsyncioScheduler
from callgate.adapters.scheduler.base import AbstractScheduler
from callgate.adapters.scheduler.manual import ManualScheduler
from callgate.core.config import settings
from callgate.core.errors import CallGateError, ConfigurationError
from callgate.core.logging import configure_logging
from callgate.schemas.policy import GateConfig, Policy, ThrottleVariant
from callgate.services.debounced_value import DebouncedValue
from callgate.services.rate_limited import (
    Debouncer,
    LockThrottler,
    RateLimitedCall,
    TimestampThrottler,
    debounce,
    rate_limited,
    throttle,
)
from callgate.utils.memo import Memoized, build_memo_key, memoize

__all__ = [
    "AbstractScheduler",
    "AsyncioScheduler",
    "CallGateError",
    "ConfigurationError",
    "DebouncedValue",
    "Debouncer",
    "GateConfig",
    "LockThrottler",
    "ManualScheduler",
    "Memoized",
    "Policy",
    "RateLimitedCall",
    "ThrottleVariant",
    "TimestampThrottler",
    "build_memo_key",
    "configure_logging",
    "debounce",
    "memoize",
    "rate_limited",
    "settings",
    "throttle",
]

__version__ = "0.1.0"
