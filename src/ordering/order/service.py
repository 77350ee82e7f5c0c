"""Sales service: owns the ``orders`` collection.

Orders are never deleted. Like every domain service, it publishes nothing;
the caller decides which bus events a change implies.
"""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError

from ordering.order.order import Order, order_from_record
from shared.store import ORDERS, Store

logger = structlog.get_logger(__name__)


class SalesService:
    def __init__(self, store: Store):
        self.store = store

    async def create_order(self, order: Order) -> Order:
        async with self.store.lock(ORDERS):
            if await self.store.get(ORDERS, order.id) is not None:
                raise ValidationError({"id": [f"Order {order.id} already exists"]})
            await self.store.upsert(ORDERS, order.to_dict())

        logger.info("Order recorded", order_id=str(order.id), user_id=str(order.user_id), total=order.total)
        return order

    async def update_order(self, order: Order) -> Order:
        async with self.store.lock(ORDERS):
            if await self.store.get(ORDERS, order.id) is None:
                raise ObjectNotFoundError({"_entity": f"Order {order.id} not found."})
            await self.store.upsert(ORDERS, order.to_dict())

        logger.info("Order updated", order_id=str(order.id), status=order.status)
        return order

    async def get_order(self, order_id) -> Order:
        record = await self.store.get(ORDERS, order_id)
        if record is None:
            raise ObjectNotFoundError({"_entity": f"Order {order_id} not found."})
        return order_from_record(record)

    async def get_orders(self) -> list[Order]:
        return [order_from_record(record) for record in await self.store.get_collection(ORDERS)]

    async def get_orders_by_user(self, user_id) -> list[Order]:
        """The user's orders, newest first."""
        orders = [order for order in await self.get_orders() if str(order.user_id) == str(user_id)]
        return sorted(orders, key=lambda order: order.date, reverse=True)

    async def change_status(self, order_id, status, reason=None) -> Order:
        async with self.store.lock(ORDERS):
            record = await self.store.get(ORDERS, order_id)
            if record is None:
                raise ObjectNotFoundError({"_entity": f"Order {order_id} not found."})

            order = order_from_record(record)
            previous = order.status
            order.change_status(status, reason=reason)
            await self.store.upsert(ORDERS, order.to_dict())

        logger.info("Order status changed", order_id=str(order_id), previous=previous, status=order.status)
        return order
