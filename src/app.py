"""Storefront composition root.

Wires every domain service, the checkout saga, the chat manager and the bus
consumers over one store and one event bus. Adapters never publish; the
Storefront publishes the event each mutation implies.

Usage:
    bootstrap()
    with domain_context():
        storefront = create_storefront()
        order = await storefront.checkout(cart, payer_id)
"""

from contextlib import ExitStack, contextmanager

import structlog

from catalogue.domain import catalogue
from catalogue.product.copywriting import generate_product_description
from catalogue.product.service import CatalogService
from engagement.chat.assistant import SupportAssistant
from engagement.chat.manager import ChatSessionManager
from engagement.domain import engagement
from engagement.views.agent_inbox import AgentInbox
from engagement.views.customer_widget import CustomerChatWidget
from identity.domain import identity
from identity.user.service import IdentityService
from identity.wallet.service import WalletService
from marketing.analytics.tracking import MarketingService
from marketing.automation import MarketingAutomation
from marketing.discount.service import DiscountService
from marketing.domain import marketing
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.mailer import Mailer
from notifications.subscribers import OrderNotifier
from notifications.toasts import ToastNotifier
from ordering.checkout.saga import CheckoutSaga
from ordering.domain import ordering
from ordering.order.service import SalesService
from reviews.domain import reviews
from reviews.review.review import ReviewService
from shared.bus import EventBus
from shared.events import topics
from shared.logging import configure_logging
from shared.settings import Settings
from shared.store import MemoryStore

logger = structlog.get_logger(__name__)

DOMAINS = (catalogue, ordering, identity, marketing, engagement, reviews)

_initialized = False


def bootstrap() -> None:
    """Configure logging and initialize every domain. Safe to call twice."""
    global _initialized
    if _initialized:
        return

    configure_logging()
    for domain in DOMAINS:
        domain.init()
    _initialized = True
    logger.info("Storefront domains initialized", domains=[domain.name for domain in DOMAINS])


@contextmanager
def domain_context():
    """Push the context of every domain for the duration of the block."""
    with ExitStack() as stack:
        for domain in DOMAINS:
            stack.enter_context(domain.domain_context())
        yield


class Storefront:
    def __init__(self, settings: Settings, store, bus: EventBus, text_generator=None, email_adapter=None):
        self.settings = settings
        self.store = store
        self.bus = bus
        self.text_generator = text_generator
        self.email = email_adapter or FakeEmailAdapter()

        self.catalog = CatalogService(store)
        self.sales = SalesService(store)
        self.identity = IdentityService(store)
        self.wallets = WalletService(store)
        self.discounts = DiscountService(store)
        self.reviews = ReviewService(store)
        self.mailer = Mailer(self.email, store_name=settings.store_name, currency=settings.currency)
        self.marketing = MarketingService(store, self.mailer, settings.analytics_measurement_id)
        self.chat = ChatSessionManager(store, bus)
        self.assistant = SupportAssistant(self.chat, text_generator, assistant_name=f"{settings.store_name} AI")
        self.saga = CheckoutSaga(self.catalog, self.sales, self.wallets, self.discounts, bus, settings)

        self.toasts = ToastNotifier(bus).subscribe()
        self.notifier = OrderNotifier(bus, self.identity, self.mailer).subscribe()
        self.automation = MarketingAutomation(bus, self.marketing, settings.currency).subscribe()

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    async def checkout(self, cart, payer_id):
        return await self.saga.checkout(cart, payer_id)

    async def update_order_status(self, order_id, status, reason=None):
        order = await self.sales.change_status(order_id, status, reason=reason)
        self.bus.publish(topics.ORDER_UPDATED, order.to_dict())
        return order

    # -------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------
    async def save_product(self, data: dict):
        """Add the product, or update it when ``data`` carries the id of a stored one."""
        product = await self.catalog.save_product(data)
        self.bus.publish(topics.PRODUCT_UPDATED, product.to_dict())
        return product

    async def describe_product(self, name: str, ingredients: str) -> str:
        return await generate_product_description(self.text_generator, name, ingredients)

    # -------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------
    async def register_user(self, data: dict):
        user = await self.identity.add_user(data)
        await self.wallets.open_wallet(user.id)
        self.bus.publish(topics.USER_REGISTERED, user.to_dict())
        return user

    # -------------------------------------------------------------------
    # Support chat
    # -------------------------------------------------------------------
    def agent_inbox(self) -> AgentInbox:
        return AgentInbox(self.chat, self.bus, poll_interval=self.settings.poll_interval)

    def customer_widget(self, user_id, user_name) -> CustomerChatWidget:
        return CustomerChatWidget(
            self.chat,
            self.bus,
            user_id,
            user_name,
            assistant=self.assistant,
            poll_interval=self.settings.poll_interval,
        )

    async def close(self) -> None:
        """Unsubscribe every consumer and wait for handlers still in flight."""
        self.toasts.close()
        self.notifier.close()
        self.automation.close()
        await self.bus.drain()


def create_storefront(settings=None, store=None, text_generator=None, email_adapter=None) -> Storefront:
    settings = settings or Settings.from_env()
    store = store if store is not None else MemoryStore(latency=settings.store_latency)
    return Storefront(settings, store, EventBus(), text_generator=text_generator, email_adapter=email_adapter)
