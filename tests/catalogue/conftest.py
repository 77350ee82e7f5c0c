import pytest

from catalogue.product.service import CatalogService


@pytest.fixture(autouse=True)
def _ctx(domain_beds):
    with domain_beds["catalogue"].domain_context():
        yield


@pytest.fixture
def catalog(store):
    return CatalogService(store)
