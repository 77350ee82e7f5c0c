"""Marketing automation: reacts to completed checkouts."""

import structlog

from marketing.analytics.tracking import PURCHASE, MarketingService
from shared.events import topics

logger = structlog.get_logger(__name__)


class MarketingAutomation:
    def __init__(self, bus, marketing: MarketingService, currency: str = "INR"):
        self.bus = bus
        self.marketing = marketing
        self.currency = currency
        self._subscription = None

    def subscribe(self) -> "MarketingAutomation":
        self._subscription = self.bus.subscribe(topics.ORDER_CREATED, self.on_order_created)
        return self

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def on_order_created(self, order: dict) -> None:
        logger.info("Tracking purchase", order_id=order["id"], user_id=order["user_id"], total=order["total"])
        await self.marketing.track_event(
            PURCHASE,
            {
                "transaction_id": order["id"],
                "value": order["total"],
                "currency": self.currency,
                "items": [
                    {"id": item["product_id"], "name": item["name"], "quantity": item["quantity"]}
                    for item in order.get("items", [])
                ],
            },
            user_id=order["user_id"],
        )
