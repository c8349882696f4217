"""Pytest configuration and shared fixtures."""

from typing import Callable

import pytest  # type: ignore[import-not-found]

from task_timer.core.timer import TaskTimer
from task_timer.logging_setup import reset_logging


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest."""
    config.addinivalue_line("markers", "slow: Slow tests")


class FakeTickHandle:
    """Tick source that never fires on its own."""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.callback()


class FakeScheduler:
    """Scheduler factory that records every handle it builds."""

    def __init__(self) -> None:
        self.handles: list[FakeTickHandle] = []

    def __call__(self, interval: float, callback: Callable[[], None]) -> FakeTickHandle:
        handle = FakeTickHandle(interval, callback)
        self.handles.append(handle)
        return handle

    @property
    def live(self) -> list[FakeTickHandle]:
        return [h for h in self.handles if h.started and not h.cancelled]


@pytest.fixture(autouse=True)
def _restore_logging():
    """Drop handlers a test installed through setup_logging()."""
    yield
    reset_logging()


@pytest.fixture
def scheduler() -> FakeScheduler:
    """Fake tick source factory."""
    return FakeScheduler()


@pytest.fixture
def timer(scheduler: FakeScheduler) -> TaskTimer:
    """Task timer whose ticks are fired by hand."""
    return TaskTimer(scheduler_factory=scheduler)
