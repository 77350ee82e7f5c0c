import pytest

from catalogue.product.product import Product
from catalogue.product.service import CatalogService
from identity.wallet.service import WalletService
from marketing.discount.service import DiscountService
from ordering.checkout.cart import CartLine, CartSnapshot
from ordering.checkout.saga import CheckoutSaga
from ordering.order.service import SalesService
from shared.store import PRODUCTS


@pytest.fixture(autouse=True)
def _ctx(domain_beds):
    # Checkout builds aggregates from several domains
    with (
        domain_beds["catalogue"].domain_context(),
        domain_beds["identity"].domain_context(),
        domain_beds["marketing"].domain_context(),
        domain_beds["ordering"].domain_context(),
    ):
        yield


@pytest.fixture
def catalog(store):
    return CatalogService(store)


@pytest.fixture
def sales(store):
    return SalesService(store)


@pytest.fixture
def wallets(store):
    return WalletService(store)


@pytest.fixture
def discounts(store):
    return DiscountService(store)


@pytest.fixture
def saga(catalog, sales, wallets, discounts, bus, settings):
    return CheckoutSaga(catalog, sales, wallets, discounts, bus, settings)


@pytest.fixture
def add_product(store):
    """Seed a product straight into the store and return it."""

    def _add(product_id="p1", stock=5, price=100.0, **extra):
        product = Product(id=product_id, name=extra.pop("name", product_id.upper()), price=price, stock=stock, **extra)
        store.seed(PRODUCTS, [product.to_dict()])
        return product

    return _add


@pytest.fixture
def cart_for():
    """Build a cart snapshot from ``(product, quantity)`` pairs."""

    def _cart(*items, **options):
        lines = [CartLine.from_product(product, quantity) for product, quantity in items]
        return CartSnapshot(lines=lines, **options)

    return _cart
