import pytest

from identity.user.service import IdentityService
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.mailer import Mailer


@pytest.fixture(autouse=True)
def _ctx(domain_beds):
    with domain_beds["identity"].domain_context():
        yield


@pytest.fixture
def email():
    return FakeEmailAdapter()


@pytest.fixture
def mailer(email):
    return Mailer(email, store_name="Dietanic", currency="INR")


@pytest.fixture
def identity_service(store):
    return IdentityService(store)
