"""Toast notifications: short-lived messages for the storefront UI."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from shared.events import topics


class ToastType(Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True)
class Toast:
    type: str
    title: str
    message: str
    id: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


SAGA_FAILED_MESSAGE = "System rolled back changes. Please try again."


class ToastNotifier:
    """Turns bus events into toasts. Older toasts drop off once ``limit`` is reached."""

    def __init__(self, bus, limit: int = 20):
        self.bus = bus
        self.limit = limit
        self.toasts: list[Toast] = []
        self._subscriptions = []

    def subscribe(self) -> "ToastNotifier":
        self._subscriptions = [
            self.bus.subscribe(topics.ORDER_CREATED, self.on_order_created),
            self.bus.subscribe(topics.PRODUCT_UPDATED, self.on_product_updated),
            self.bus.subscribe(topics.USER_REGISTERED, self.on_user_registered),
            self.bus.subscribe(topics.SAGA_FAILED, self.on_saga_failed),
        ]
        return self

    def close(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []

    def push(self, type_: ToastType, title: str, message: str) -> Toast:
        toast = Toast(type=type_.value, title=title, message=message)
        self.toasts.append(toast)
        del self.toasts[: max(0, len(self.toasts) - self.limit)]
        return toast

    def dismiss(self, toast_id: str) -> None:
        self.toasts = [toast for toast in self.toasts if toast.id != toast_id]

    def on_order_created(self, order: dict) -> None:
        self.push(
            ToastType.SUCCESS,
            "Order Processed",
            f"Order #{str(order['id'])[-6:]} confirmed. Finance & Inventory updated.",
        )

    def on_product_updated(self, product: dict) -> None:
        self.push(ToastType.INFO, "Catalog Updated", f"{product['name']} details have been synchronized.")

    def on_user_registered(self, user: dict) -> None:
        self.push(ToastType.SUCCESS, "New Customer", f"{user['name']} has joined.")

    def on_saga_failed(self, _failure: dict) -> None:
        # Never the internal reason
        self.push(ToastType.ERROR, "Transaction Failed", SAGA_FAILED_MESSAGE)
