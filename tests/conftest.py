"""Shared fixtures for the monitoring service tests."""

from unittest.mock import Mock

import pytest
from mhb_monitor.core.config import Settings
from mhb_monitor.services.memory import MemoryUsage


class FakeClock:
    """Monotonic clock advanced manually by tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeMemoryProbe:
    """Memory probe returning a configurable usage percentage."""

    def __init__(self, percent: float = 50.0, total: int = 1_000_000):
        self.total = total
        self.percent = percent

    def __call__(self) -> MemoryUsage:
        used = int(self.total * self.percent / 100)
        return MemoryUsage(rss=used // 2, heap_used=used, heap_total=self.total)


@pytest.fixture
def clock():
    """Create a fake monotonic clock."""
    return FakeClock()


@pytest.fixture
def memory_probe():
    """Create a fake memory probe at 50% usage."""
    return FakeMemoryProbe()


@pytest.fixture
def mock_logger():
    """Create a mock structured logger."""
    return Mock()


@pytest.fixture
def test_settings():
    """Create test settings without global hooks or .env loading."""
    return Settings(_env_file=None, install_global_error_hooks=False)
