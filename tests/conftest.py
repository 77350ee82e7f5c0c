import os
from collections import defaultdict
from functools import partial
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture

from shared.bus import EventBus
from shared.events.topics import ALL_TOPICS
from shared.settings import Settings
from shared.store import MemoryStore
from shared.text import FakeTextGenerator


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(scope="session", autouse=True)
def domain_beds():
    """Initialize every domain once per test session."""
    from app import DOMAINS

    beds = {}
    for domain in DOMAINS:
        bed = DomainFixture(domain)
        bed.setup()
        beds[domain.name] = bed

    yield beds

    for bed in reversed(list(beds.values())):
        bed.teardown()


class EventRecorder:
    """Subscribes to every topic and keeps what was published, in order."""

    def __init__(self, bus: EventBus):
        self.events: list[tuple[str, object]] = []
        self.by_topic: dict[str, list] = defaultdict(list)
        for topic in ALL_TOPICS:
            bus.subscribe(topic, partial(self._record, topic))

    def _record(self, topic, payload):
        self.events.append((topic, payload))
        self.by_topic[topic].append(payload)

    def count(self, topic: str) -> int:
        return len(self.by_topic[topic])

    def topics(self) -> list[str]:
        return [topic for topic, _ in self.events]


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def published(bus):
    return EventRecorder(bus)


@pytest.fixture
def text_generator():
    return FakeTextGenerator()
