from datetime import UTC, datetime, timedelta

import pytest

from engagement.chat.assistant import SupportAssistant
from engagement.chat.manager import ChatSessionManager


class FrozenClock:
    """Clock the tests move by hand. Can be set back to simulate skew."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 1, 9, 0, tzinfo=UTC)

    def __call__(self):
        return self.now

    def advance(self, seconds=1.0):
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture(autouse=True)
def _ctx(domain_beds):
    with domain_beds["engagement"].domain_context():
        yield


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def manager(store, bus, clock):
    return ChatSessionManager(store, bus, clock=clock)


@pytest.fixture
def assistant(manager, text_generator):
    return SupportAssistant(manager, text_generator, assistant_name="Dietanic AI")
