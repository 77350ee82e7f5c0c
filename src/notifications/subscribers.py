"""E-mail notifications driven by bus events.

Payloads carry only the user id, so each handler looks the user up before
mailing. Handlers are coroutines and run after the publisher has moved on.
"""

import structlog
from protean.exceptions import ObjectNotFoundError

from notifications.mailer import Mailer
from notifications.templates import NotificationType
from shared.events import topics

logger = structlog.get_logger(__name__)


class OrderNotifier:
    def __init__(self, bus, identity, mailer: Mailer):
        self.bus = bus
        self.identity = identity
        self.mailer = mailer
        self._subscriptions = []

    def subscribe(self) -> "OrderNotifier":
        self._subscriptions = [
            self.bus.subscribe(topics.ORDER_CREATED, self.on_order_created),
            self.bus.subscribe(topics.ORDER_UPDATED, self.on_order_updated),
            self.bus.subscribe(topics.USER_REGISTERED, self.on_user_registered),
        ]
        return self

    def close(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []

    async def _recipient(self, user_id):
        try:
            return await self.identity.get_user(user_id)
        except ObjectNotFoundError:
            logger.info("No user to notify", user_id=str(user_id))
            return None

    async def on_order_created(self, order: dict) -> None:
        user = await self._recipient(order["user_id"])
        if user is None:
            return

        self.mailer.send(
            NotificationType.ORDER_CONFIRMATION.value,
            user.email,
            {
                "name": user.name,
                "order_id": order["id"],
                "total": order["total"],
                "items": order.get("items", []),
                "shipping_address": order.get("shipping_address"),
            },
        )

    async def on_order_updated(self, order: dict) -> None:
        user = await self._recipient(order["user_id"])
        if user is None:
            return

        self.mailer.send(
            NotificationType.ORDER_STATUS.value,
            user.email,
            {"name": user.name, "order_id": order["id"], "status": order["status"]},
        )

    def on_user_registered(self, user: dict) -> None:
        self.mailer.send(NotificationType.WELCOME.value, user["email"], {"name": user["name"]})
