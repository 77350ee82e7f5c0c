"""Order aggregate.

An order is a price-locked snapshot of a cart: line items copy the product
name, unit price and variation at add-to-cart time and never follow later
catalog changes. After creation the only mutation is a status transition.

State Machine:
    pending → processing → delivered
    pending → cancelled
    processing → cancelled
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from ordering.domain import ordering
from shared.records import load


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class TaxType(Enum):
    INTRA = "INTRA"
    INTER = "INTER"
    UNREGISTERED = "UR"


class ShippingMethod(Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    SCHEDULED = "scheduled"
    PICKUP = "pickup"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


def _utc_now():
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    """Where the order ships. Captured at checkout and never updated."""

    street = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=100)
    zip = String(max_length=20)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    category = String(max_length=100)
    variation_id = Identifier()
    variation_name = String(max_length=100)
    plan_duration = String(max_length=50)
    is_gift_card = Boolean(default=False)

    @property
    def line_total(self) -> float:
        return round(self.unit_price * self.quantity, 2)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    user_id = Identifier(required=True)
    items = HasMany(OrderItem)
    subtotal = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    discount_code = String(max_length=50)
    tax_amount = Float(default=0.0, min_value=0.0)
    tax_type = String(choices=TaxType, default=TaxType.UNREGISTERED.value)
    shipping_method = String(choices=ShippingMethod, default=ShippingMethod.STANDARD.value)
    shipping_cost = Float(default=0.0, min_value=0.0)
    wallet_amount = Float(default=0.0, min_value=0.0)
    total = Float(default=0.0, min_value=0.0)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    date = DateTime(default=_utc_now)
    shipping_address = ValueObject(ShippingAddress)
    cancellation_reason = String(max_length=500)

    @invariant.post
    def wallet_amount_cannot_exceed_total(self):
        if (self.wallet_amount or 0.0) > (self.total or 0.0):
            raise ValidationError({"wallet_amount": ["Wallet amount cannot exceed the order total"]})

    @classmethod
    def create(
        cls,
        user_id,
        lines,
        pricing,
        shipping_address=None,
        shipping_method=ShippingMethod.STANDARD.value,
        discount_code=None,
        wallet_amount=0.0,
        order_id=None,
    ):
        """Build a pending order from cart lines and their price breakdown."""
        if not lines:
            raise ValidationError({"items": ["Order must contain at least one item"]})

        items = [
            OrderItem(
                product_id=line.product_id,
                name=line.name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                category=line.category,
                variation_id=line.variation_id,
                variation_name=line.variation_name,
                plan_duration=line.plan_duration,
                is_gift_card=line.is_gift_card,
            )
            for line in lines
        ]

        values = dict(
            user_id=user_id,
            items=items,
            subtotal=pricing.subtotal,
            discount=pricing.discount,
            discount_code=discount_code,
            tax_amount=pricing.tax_amount,
            tax_type=pricing.tax_type,
            shipping_method=shipping_method,
            shipping_cost=pricing.shipping_cost,
            wallet_amount=wallet_amount,
            total=pricing.total,
        )
        if shipping_address:
            values["shipping_address"] = load(ShippingAddress, shipping_address)
        if order_id:
            values["id"] = order_id

        return cls(**values)

    @property
    def amount_payable(self) -> float:
        """What remains to be paid after the wallet deduction."""
        return round(max(0.0, self.total - self.wallet_amount), 2)

    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS[current]:
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def change_status(self, status, reason=None):
        try:
            target = OrderStatus(status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status '{status}'"]}) from None

        self._assert_can_transition(target)
        if target == OrderStatus.CANCELLED:
            self.cancellation_reason = reason
        self.status = target.value


def order_from_record(record: dict) -> Order:
    items = [load(OrderItem, item) for item in record.get("items") or []]
    nested = {"items": items}
    if record.get("shipping_address"):
        nested["shipping_address"] = load(ShippingAddress, record["shipping_address"])
    return load(Order, record, **nested)
