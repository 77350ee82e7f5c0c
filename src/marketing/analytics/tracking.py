"""Marketing events and the marketing service.

Every tracked analytics event, newsletter sign-up and abandoned-cart
reminder is stored in the ``marketing-events`` collection. Event parameters
are kept as JSON text.
"""

import json
from datetime import UTC, datetime

import structlog
from protean.fields import DateTime, Identifier, String, Text

from marketing.domain import marketing
from notifications.templates import NotificationType
from shared.records import load
from shared.store import MARKETING_EVENTS, Store

logger = structlog.get_logger(__name__)

NEWSLETTER_SIGNUP = "newsletter_signup"
ABANDONED_CART = "abandoned_cart"
PURCHASE = "purchase"
FIRST_ORDER_CODE = "FRESH10"


@marketing.aggregate
class MarketingEvent:
    name = String(required=True, max_length=100)
    params = Text(default="{}")
    email = String(max_length=254)
    user_id = Identifier()
    occurred_at = DateTime(default=lambda: datetime.now(UTC))

    @property
    def data(self) -> dict:
        return json.loads(self.params or "{}")


class MarketingService:
    def __init__(self, store: Store, mailer=None, measurement_id: str = ""):
        self.store = store
        self.mailer = mailer
        self.measurement_id = measurement_id

    async def track_event(self, name: str, params: dict | None = None, email=None, user_id=None) -> MarketingEvent:
        event = MarketingEvent(
            name=name,
            params=json.dumps(params or {}, default=str),
            email=email,
            user_id=str(user_id) if user_id else None,
        )
        async with self.store.lock(MARKETING_EVENTS):
            await self.store.upsert(MARKETING_EVENTS, event.to_dict())

        logger.info("Analytics event", event_name=name, measurement_id=self.measurement_id or None)
        return event

    async def get_events(self, name: str | None = None) -> list[MarketingEvent]:
        events = [load(MarketingEvent, record) for record in await self.store.get_collection(MARKETING_EVENTS)]
        if name is not None:
            events = [event for event in events if event.name == name]
        return events

    async def has_subscribed(self, email: str) -> bool:
        wanted = email.strip().lower()
        return any((event.email or "").lower() == wanted for event in await self.get_events(NEWSLETTER_SIGNUP))

    async def subscribe_to_newsletter(self, email: str) -> bool:
        """Sign ``email`` up and send the welcome code. False if it was already subscribed."""
        if await self.has_subscribed(email):
            return False

        await self.track_event(NEWSLETTER_SIGNUP, {"source": "newsletter"}, email=email)
        if self.mailer is not None:
            self.mailer.send(NotificationType.NEWSLETTER_WELCOME.value, email, {"discount_code": FIRST_ORDER_CODE})
        return True

    async def trigger_abandoned_cart_sequence(self, email: str, cart_count: int) -> None:
        logger.info("Abandoned cart detected", email=email, items=cart_count)
        await self.track_event(ABANDONED_CART, {"item_count": cart_count}, email=email)
        if self.mailer is not None:
            self.mailer.send(NotificationType.CART_RECOVERY.value, email, {"item_count": cart_count})
