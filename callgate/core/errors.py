"""Library exception types.

Only misuse of the library raises these. Failures of a wrapped target are
never wrapped or transformed; they propagate as raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and callers."""

    code: str
    message: str
    hint: str
    field: str
    actual_value: Any
    context: NotRequired[dict[str, Any]]


@dataclass
class CallGateError(Exception):
    """Base error for callgate failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ConfigurationError(CallGateError, ValueError):
    """Raised when a wrapper is constructed with invalid parameters."""
