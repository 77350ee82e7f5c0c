"""Cart snapshot handed to checkout.

A cart line copies the product's name, price and variation when it is
added, so the order reflects the price the customer saw even if the
catalog changes before checkout.
"""

from dataclasses import dataclass, field

from protean.exceptions import ValidationError


@dataclass(frozen=True)
class CartLine:
    product_id: str
    name: str
    unit_price: float
    quantity: int
    category: str | None = None
    variation_id: str | None = None
    variation_name: str | None = None
    plan_duration: str | None = None
    is_gift_card: bool = False

    @classmethod
    def from_product(cls, product, quantity=1, variation_id=None, plan_duration=None):
        """Snapshot ``product`` (optionally one of its variations) into a line."""
        unit_price = product.price
        variation_name = None
        if variation_id:
            variation = product.find_variation(variation_id)
            unit_price = variation.price
            variation_name = variation.name
            variation_id = str(variation.id)

        return cls(
            product_id=str(product.id),
            name=product.name,
            unit_price=unit_price,
            quantity=quantity,
            category=product.category,
            variation_id=variation_id,
            variation_name=variation_name,
            plan_duration=plan_duration,
            is_gift_card=bool(product.is_gift_card),
        )


@dataclass(frozen=True)
class CartSnapshot:
    lines: tuple[CartLine, ...]
    shipping_address: dict = field(default_factory=dict)
    shipping_method: str = "standard"
    discount_code: str | None = None
    wallet_amount: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "lines", tuple(self.lines))

    @property
    def categories(self) -> list[str]:
        return sorted({line.category for line in self.lines if line.category})

    @property
    def shipping_state(self) -> str | None:
        return (self.shipping_address or {}).get("state")

    def validate(self) -> None:
        errors: dict[str, list[str]] = {}
        if not self.lines:
            errors.setdefault("lines", []).append("Cart is empty")
        for line in self.lines:
            if line.quantity < 1:
                errors.setdefault("quantity", []).append(f"Quantity for {line.name} must be at least 1")
            if line.unit_price < 0:
                errors.setdefault("unit_price", []).append(f"Price for {line.name} cannot be negative")
        if self.wallet_amount < 0:
            errors.setdefault("wallet_amount", []).append("Wallet amount cannot be negative")

        if errors:
            raise ValidationError(errors)
