"""Pytest configuration and fixtures shared across all test modules.

This file is loaded by pytest before any test module, so the environment
is pinned before callgate.core.config builds its settings.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["CALLGATE_ENV"] = "testing"
os.environ.setdefault("CALLGATE_LOG_LEVEL", "DEBUG")

import pytest  # noqa: E402

from callgate.adapters.scheduler.manual import ManualScheduler  # noqa: E402


class CallRecorder:
    """Callable that records the virtual time and arguments of each call."""

    def __init__(self, scheduler: ManualScheduler) -> None:
        self.scheduler = scheduler
        self.calls: list[tuple[float, tuple, dict]] = []

    def __call__(self, *args, **kwargs) -> str:
        self.calls.append((self.scheduler.now(), args, kwargs))
        return "ignored"

    @property
    def times(self) -> list[float]:
        return [at for at, _, _ in self.calls]


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def recorder(scheduler: ManualScheduler) -> CallRecorder:
    return CallRecorder(scheduler)
