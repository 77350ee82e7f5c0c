"""Stock reservation and restoration, the catalogue steps of checkout."""

import asyncio
from dataclasses import dataclass

import pytest
from protean.exceptions import ObjectNotFoundError, ValidationError

from catalogue.product.product import Product, Variation
from catalogue.product.service import CatalogService, StockRollbackError
from shared.store import PRODUCTS, MemoryStore


@dataclass
class Line:
    product_id: str
    quantity: int
    variation_id: str | None = None


class FlakyStore(MemoryStore):
    """Memory store whose product writes fail after ``fail_after`` successes.

    The next ``failures`` writes raise, then the store recovers. With
    ``failures=None`` it stays down.
    """

    def __init__(self, fail_after: int, failures: int | None = 1):
        super().__init__()
        self.fail_after = fail_after
        self.failures = failures
        self.armed = False

    async def upsert(self, name, record):
        if self.armed and name == PRODUCTS:
            if self.fail_after > 0:
                self.fail_after -= 1
            elif self.failures is None or self.failures > 0:
                if self.failures is not None:
                    self.failures -= 1
                raise ConnectionError("products store unavailable")
        await super().upsert(name, record)


def _seed(store, product_id, stock, **extra):
    product = Product(id=product_id, name=product_id.upper(), price=100.0, stock=stock, **extra)
    store.seed(PRODUCTS, [product.to_dict()])
    return product


async def _stock(store, product_id):
    return (await store.get(PRODUCTS, product_id))["stock"]


@pytest.mark.asyncio
async def test_reserve_decrements_every_line(catalog, store):
    _seed(store, "p1", 5)
    _seed(store, "p2", 3)

    await catalog.reserve_stock([Line("p1", 2), Line("p2", 3)])

    assert await _stock(store, "p1") == 3
    assert await _stock(store, "p2") == 0


@pytest.mark.asyncio
async def test_repeated_lines_accumulate(catalog, store):
    _seed(store, "p1", 3)

    with pytest.raises(ValidationError):
        await catalog.reserve_stock([Line("p1", 2), Line("p1", 2)])

    assert await _stock(store, "p1") == 3


@pytest.mark.asyncio
async def test_one_short_line_reserves_nothing(catalog, store):
    _seed(store, "p1", 5)
    _seed(store, "p2", 1)

    with pytest.raises(ValidationError) as exc:
        await catalog.reserve_stock([Line("p1", 2), Line("p2", 2)])

    assert exc.value.messages["stock"] == ["Insufficient stock for P2."]
    assert await _stock(store, "p1") == 5
    assert await _stock(store, "p2") == 1


@pytest.mark.asyncio
async def test_missing_product(catalog, store):
    _seed(store, "p1", 5)

    with pytest.raises(ObjectNotFoundError):
        await catalog.reserve_stock([Line("p1", 1), Line("ghost", 1)])

    assert await _stock(store, "p1") == 5


@pytest.mark.asyncio
async def test_gift_cards_are_skipped(catalog, store):
    _seed(store, "card", 0, is_gift_card=True)

    await catalog.reserve_stock([Line("card", 10)])

    assert await _stock(store, "card") == 0


@pytest.mark.asyncio
async def test_variation_lines(catalog, store):
    large = Variation(name="Large", price=150.0, stock=4)
    _seed(store, "p1", 0, variations=[large])

    await catalog.reserve_stock([Line("p1", 3, str(large.id))])

    product = await catalog.get_product("p1")
    assert product.find_variation(large.id).stock == 1


@pytest.mark.asyncio
async def test_failed_write_puts_back_products_already_written():
    store = FlakyStore(fail_after=1)
    catalog = CatalogService(store)
    _seed(store, "p1", 5)
    _seed(store, "p2", 5)
    store.armed = True

    with pytest.raises(ConnectionError):
        await catalog.reserve_stock([Line("p1", 2), Line("p2", 2)])

    store.armed = False
    assert await _stock(store, "p1") == 5
    assert await _stock(store, "p2") == 5


@pytest.mark.asyncio
async def test_rollback_that_cannot_write_names_the_products_left_decremented():
    store = FlakyStore(fail_after=1, failures=None)
    catalog = CatalogService(store)
    _seed(store, "p1", 5)
    _seed(store, "p2", 5)
    store.armed = True

    with pytest.raises(StockRollbackError) as exc:
        await catalog.reserve_stock([Line("p1", 2), Line("p2", 2)])

    assert exc.value.unrestored == ["p1"]
    assert isinstance(exc.value.__cause__, ConnectionError)
    assert "p1" in exc.value.messages["stock"][0]

    store.armed = False
    assert await _stock(store, "p1") == 3
    assert await _stock(store, "p2") == 5


@pytest.mark.asyncio
async def test_restore_adds_quantities_back(catalog, store):
    _seed(store, "p1", 1)

    await catalog.restore_stock([Line("p1", 2), Line("ghost", 1)])

    assert await _stock(store, "p1") == 3


@pytest.mark.asyncio
async def test_concurrent_reservations_never_oversell():
    store = MemoryStore(latency=0.001)
    catalog = CatalogService(store)
    _seed(store, "p1", 3)

    results = await asyncio.gather(
        *(catalog.reserve_stock([Line("p1", 1)]) for _ in range(5)),
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, ValidationError)]
    assert len(failures) == 2
    assert await _stock(store, "p1") == 0
