import pytest

from marketing.analytics.tracking import MarketingService
from marketing.discount.service import DiscountService
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.mailer import Mailer


@pytest.fixture(autouse=True)
def _ctx(domain_beds):
    with domain_beds["marketing"].domain_context():
        yield


@pytest.fixture
def discounts(store):
    return DiscountService(store)


@pytest.fixture
def email():
    return FakeEmailAdapter()


@pytest.fixture
def marketing_service(store, email):
    return MarketingService(store, Mailer(email, store_name="Dietanic"), measurement_id="G-TEST")
