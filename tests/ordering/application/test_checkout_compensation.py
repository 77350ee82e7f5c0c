"""Failure paths of the checkout saga and their compensation."""

import pytest

from ordering.checkout.saga import CHECKOUT_FAILED_MESSAGE, CheckoutFailure, CheckoutSaga, SagaState
from shared.bus import EventBus
from shared.events import topics
from shared.store import PRODUCTS


class OrderCreatedOutage(EventBus):
    """Bus whose ``order-created`` delivery itself blows up."""

    def publish(self, topic, payload=None):
        if topic == topics.ORDER_CREATED:
            raise ConnectionError("bus unavailable")
        super().publish(topic, payload)


async def _failing_create_order(order):
    raise ConnectionError("orders store unavailable")


@pytest.mark.asyncio
async def test_insufficient_stock_fails_without_side_effects(saga, catalog, sales, add_product, cart_for, published):
    product = add_product("p1", stock=1)

    result = await saga.checkout(cart_for((product, 2)), "u1")

    assert isinstance(result, CheckoutFailure)
    assert result.message == CHECKOUT_FAILED_MESSAGE
    assert result.failed_state == SagaState.INITIATED.value
    assert result.compensated is True
    assert "Insufficient stock" in result.reason
    assert (await catalog.get_product("p1")).stock == 1
    assert await sales.get_orders() == []
    assert published.count(topics.SAGA_FAILED) == 1
    assert published.count(topics.ORDER_CREATED) == 0


@pytest.mark.asyncio
async def test_saga_failed_payload(saga, add_product, cart_for, published):
    product = add_product("p1", stock=0)

    result = await saga.checkout(cart_for((product, 1)), "u1")

    payload = published.by_topic[topics.SAGA_FAILED][0]
    assert payload["saga_id"] == result.saga_id
    assert payload["order_id"] == result.order_id
    assert payload["payer_id"] == "u1"
    assert payload["failed_state"] == "initiated"
    assert payload["committed"] is False
    assert payload["compensated"] is True


@pytest.mark.asyncio
async def test_invalid_cart_fails_before_touching_stock(saga, catalog, add_product, cart_for, published):
    product = add_product("p1", stock=5)

    result = await saga.checkout(cart_for((product, 0)), "u1")

    assert isinstance(result, CheckoutFailure)
    assert (await catalog.get_product("p1")).stock == 5
    assert published.count(topics.SAGA_FAILED) == 1


@pytest.mark.asyncio
async def test_unknown_discount_code_fails_checkout(saga, catalog, add_product, cart_for):
    product = add_product("p1", stock=5)

    result = await saga.checkout(cart_for((product, 1), discount_code="NOPE"), "u1")

    assert isinstance(result, CheckoutFailure)
    assert "NOPE" in result.reason
    assert (await catalog.get_product("p1")).stock == 5


@pytest.mark.asyncio
async def test_wallet_failure_restores_stock(saga, catalog, wallets, sales, add_product, cart_for, published):
    product = add_product("p1", stock=5, price=100.0)
    await wallets.open_wallet("u1", initial_balance=10.0)

    result = await saga.checkout(cart_for((product, 2), wallet_amount=50.0), "u1")

    assert isinstance(result, CheckoutFailure)
    assert result.failed_state == SagaState.STOCK_RESERVED.value
    assert result.compensated is True
    assert "Insufficient wallet balance" in result.reason
    assert (await catalog.get_product("p1")).stock == 5
    assert (await wallets.get_wallet("u1")).balance == 10.0
    assert await sales.get_orders() == []
    assert published.count(topics.SAGA_FAILED) == 1


@pytest.mark.asyncio
async def test_missing_wallet_restores_stock(saga, catalog, add_product, cart_for):
    product = add_product("p1", stock=5)

    result = await saga.checkout(cart_for((product, 1), wallet_amount=20.0), "u1")

    assert isinstance(result, CheckoutFailure)
    assert (await catalog.get_product("p1")).stock == 5


@pytest.mark.asyncio
async def test_order_store_failure_refunds_wallet_and_restores_stock(
    saga, catalog, wallets, sales, add_product, cart_for, published, monkeypatch
):
    product = add_product("p1", stock=5, price=100.0)
    await wallets.open_wallet("u1", initial_balance=500.0)
    monkeypatch.setattr(sales, "create_order", _failing_create_order)

    result = await saga.checkout(cart_for((product, 2), wallet_amount=100.0), "u1")

    assert isinstance(result, CheckoutFailure)
    assert result.failed_state == SagaState.PAYMENT_CAPTURED.value
    assert result.compensated is True
    assert (await catalog.get_product("p1")).stock == 5

    wallet = await wallets.get_wallet("u1")
    assert wallet.balance == 500.0
    assert [t.type for t in wallet.transactions] == ["deposit", "payment", "refund"]
    assert published.count(topics.SAGA_FAILED) == 1
    assert published.count(topics.ORDER_CREATED) == 0


@pytest.mark.asyncio
async def test_failed_compensation_is_reported(saga, catalog, sales, add_product, cart_for, published, monkeypatch):
    product = add_product("p1", stock=5)

    async def restore_fails(_lines):
        raise ConnectionError("products store unavailable")

    monkeypatch.setattr(sales, "create_order", _failing_create_order)
    monkeypatch.setattr(catalog, "restore_stock", restore_fails)

    result = await saga.checkout(cart_for((product, 1)), "u1")

    assert result.compensated is False
    assert published.by_topic[topics.SAGA_FAILED][0]["compensated"] is False
    assert saga.executions[-1].compensated is False


@pytest.mark.asyncio
async def test_failure_after_order_is_recorded_keeps_the_order(catalog, sales, wallets, discounts, settings, add_product,
                                                               cart_for):
    bus = OrderCreatedOutage()
    failures = []
    bus.subscribe(topics.SAGA_FAILED, failures.append)
    saga = CheckoutSaga(catalog, sales, wallets, discounts, bus, settings)
    product = add_product("p1", stock=5)

    result = await saga.checkout(cart_for((product, 1)), "u1")

    assert not isinstance(result, CheckoutFailure)
    assert await sales.get_order(result.id)
    assert (await catalog.get_product("p1")).stock == 4
    assert len(failures) == 1
    assert failures[0]["committed"] is True
    assert failures[0]["compensated"] is False
    assert failures[0]["failed_state"] == SagaState.ORDER_RECORDED.value

    execution = saga.executions[-1]
    assert execution.state == SagaState.FAILED
    assert execution.committed is True


@pytest.mark.asyncio
async def test_failure_is_recorded_in_history(saga, add_product, cart_for):
    product = add_product("p1", stock=0)

    result = await saga.checkout(cart_for((product, 1)), "u1")

    execution = saga.get_execution(result.saga_id)
    assert execution.state == SagaState.FAILED
    assert execution.failed_state == SagaState.INITIATED
    assert execution.failure_reason == result.reason
    assert execution.committed is False


@pytest.mark.asyncio
async def test_reservation_that_cannot_be_undone_is_not_reported_compensated(
    saga, catalog, store, sales, add_product, cart_for, published, monkeypatch
):
    first = add_product("p1", stock=5)
    second = add_product("p2", stock=5)
    upsert = store.upsert
    product_writes = []

    async def products_go_down_after_one_write(name, record):
        if name == PRODUCTS:
            product_writes.append(record["id"])
            if len(product_writes) > 1:
                raise ConnectionError("products store unavailable")
        await upsert(name, record)

    monkeypatch.setattr(store, "upsert", products_go_down_after_one_write)

    result = await saga.checkout(cart_for((first, 2), (second, 2)), "u1")

    assert isinstance(result, CheckoutFailure)
    assert result.compensated is False
    assert "p1" in result.reason
    assert published.by_topic[topics.SAGA_FAILED][0]["compensated"] is False
    assert saga.executions[-1].compensated is False
    assert (await catalog.get_product("p1")).stock == 3
    assert await sales.get_orders() == []
