"""Discount aggregate: a promotion code redeemable at checkout."""

from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, String

from marketing.domain import marketing

ALL_CATEGORIES = "All"


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@marketing.aggregate
class Discount:
    code = String(required=True, max_length=50)
    type = String(required=True, choices=DiscountType)
    value = Float(required=True, min_value=0.0)
    is_active = Boolean(default=True)
    min_purchase_amount = Float(min_value=0.0)
    applicable_category = String(max_length=100)

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.type == DiscountType.PERCENTAGE.value and self.value > 100:
            raise ValidationError({"value": ["Percentage discount cannot exceed 100"]})

    def check_applicable(self, subtotal: float, categories) -> None:
        """Raise ValidationError when the cart does not qualify for this discount."""
        if self.min_purchase_amount and subtotal < self.min_purchase_amount:
            raise ValidationError({"discount_code": [f"Min purchase {self.min_purchase_amount:.2f}"]})

        category = self.applicable_category
        if category and category != ALL_CATEGORIES and category not in categories:
            raise ValidationError({"discount_code": [f"Only for {category}"]})
