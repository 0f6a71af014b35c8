"""Pydantic models describing how a rate-limited wrapper is built."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Policy(str, Enum):
    """How a wrapper decides whether a call runs."""

    DEBOUNCE = "debounce"
    THROTTLE = "throttle"


class ThrottleVariant(str, Enum):
    """Bookkeeping used by the throttle policy.

    Both variants run a call that arrives exactly one interval after the
    previous execution.
    """

    LOCK = "lock"
    TIMESTAMP = "timestamp"


class GateConfig(BaseModel):
    """Validated construction parameters for a rate-limited wrapper."""

    model_config = ConfigDict(frozen=True)

    duration_seconds: float = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Debounce quiet period or throttle interval, in seconds.",
    )
    policy: Policy = Field(
        ...,
        description="debounce or throttle.",
    )
    variant: ThrottleVariant = Field(
        ThrottleVariant.LOCK,
        description="Throttle bookkeeping; ignored by the debounce policy.",
    )
