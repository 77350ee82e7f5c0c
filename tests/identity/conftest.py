import pytest

from identity.user.service import IdentityService
from identity.wallet.service import WalletService


@pytest.fixture(autouse=True)
def _ctx(domain_beds):
    with domain_beds["identity"].domain_context():
        yield


@pytest.fixture
def identity_service(store):
    return IdentityService(store)


@pytest.fixture
def wallets(store):
    return WalletService(store)
