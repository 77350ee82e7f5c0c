import pytest

from app import domain_context
from notifications.channel.fake_email import FakeEmailAdapter


@pytest.fixture(autouse=True)
def _ctx(domain_beds):
    with domain_context():
        yield


@pytest.fixture
def email():
    return FakeEmailAdapter()
