"""
Shared fixtures for activity tracker tests.
"""

from datetime import datetime, timedelta, timezone

import pytest
from loguru import logger

from activity_tracker.core import Directory, SessionController


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def directory(clock):
    return Directory(clock=clock)


@pytest.fixture
def alice(directory):
    return directory.create("Alice", 10)


@pytest.fixture
def controller(directory):
    return SessionController(directory)


@pytest.fixture
def log_messages():
    """Capture loguru output as a list of formatted messages."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
