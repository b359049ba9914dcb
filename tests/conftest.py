"""
Pytest configuration shared across unit and integration tests.

Provides profiles, a fixed reference time and a recording sleep so waits
never touch real time.
"""

from datetime import UTC, datetime

import pytest

from inbox_triage.extraction.profiles import default_registry
from inbox_triage.observability import telemetry


@pytest.fixture(autouse=True)
def reset_telemetry():
    telemetry.reset()
    yield
    telemetry.reset()


@pytest.fixture(scope="session")
def registry():
    return default_registry()


@pytest.fixture(scope="session")
def gmail_profile(registry):
    return registry.get("gmail", "personal")


@pytest.fixture(scope="session")
def outlook_profile(registry):
    return registry.get("outlook", "office365")


@pytest.fixture
def now():
    return datetime(2024, 3, 15, 12, 0, 0, tzinfo=UTC)


class RecordingSleep:
    """Stand-in for time.sleep that records requested delays."""

    def __init__(self):
        self.calls: list[float] = []
        self.on_call = None

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self.on_call is not None:
            self.on_call(len(self.calls))


@pytest.fixture
def sleep():
    return RecordingSleep()


class FakeClock:
    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    return FakeClock()
