"""Product aggregate root with its Variation entity.

Stock lives either on the product itself or, for products sold in
variations, on each variation. Gift cards carry no stock at all: they are
never reserved and never run out.
"""

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import (
    Boolean,
    Float,
    HasMany,
    Integer,
    String,
    Text,
)

from catalogue.domain import catalogue
from shared.records import load

DEFAULT_LOW_STOCK_THRESHOLD = 5


@catalogue.entity(part_of="Product")
class Variation:
    """A purchasable option of a product (size, pack, plan) with its own stock."""

    name: String(required=True, max_length=100)
    price: Float(required=True, min_value=0.0)
    stock: Integer(default=0, min_value=0)
    sku: String(max_length=50)
    low_stock_threshold: Integer(default=DEFAULT_LOW_STOCK_THRESHOLD, min_value=0)


@catalogue.aggregate
class Product:
    """Product aggregate root."""

    name: String(required=True, max_length=255)
    description: Text()
    price: Float(required=True, min_value=0.0)
    cost: Float(default=0.0, min_value=0.0)
    category: String(max_length=100)
    image: Text()
    sku: String(max_length=50)
    is_subscription: Boolean(default=False)
    is_gift_card: Boolean(default=False)
    stock: Integer(default=0, min_value=0)
    low_stock_threshold: Integer(default=DEFAULT_LOW_STOCK_THRESHOLD, min_value=0)
    variations: HasMany(Variation)

    @invariant.post
    def variation_names_must_be_unique(self):
        names = [v.name for v in self.variations]
        if len(names) != len(set(names)):
            raise ValidationError({"variations": ["Variation names must be unique within a product"]})

    def find_variation(self, variation_id):
        """Return the variation with ``variation_id``.

        Raises ObjectNotFoundError when the product has no such variation.
        """
        for variation in self.variations:
            if str(variation.id) == str(variation_id):
                return variation
        raise ObjectNotFoundError({"_entity": f"Variation {variation_id} not found on product {self.name}"})

    def available(self, variation_id=None):
        """Units available for sale, or None when stock is unlimited."""
        if self.is_gift_card:
            return None
        if variation_id:
            return self.find_variation(variation_id).stock
        return self.stock

    def decrement_stock(self, quantity, variation_id=None):
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if self.is_gift_card:
            return

        if variation_id:
            variation = self.find_variation(variation_id)
            if variation.stock < quantity:
                raise ValidationError(
                    {"stock": [f"Insufficient stock for {self.name} ({variation.name})."]}
                )
            variation.stock = variation.stock - quantity
        else:
            if self.stock < quantity:
                raise ValidationError({"stock": [f"Insufficient stock for {self.name}."]})
            self.stock = self.stock - quantity

    def increment_stock(self, quantity, variation_id=None):
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if self.is_gift_card:
            return

        if variation_id:
            # A variation removed since the reservation has nothing to restore
            for variation in self.variations:
                if str(variation.id) == str(variation_id):
                    variation.stock = variation.stock + quantity
            return
        self.stock = self.stock + quantity

    @property
    def is_low_stock(self) -> bool:
        if self.is_gift_card:
            return False
        if self.variations:
            return any(v.stock <= v.low_stock_threshold for v in self.variations)
        return self.stock <= self.low_stock_threshold


def product_from_record(record: dict) -> Product:
    """Rebuild a Product, variations included, from a store record."""
    variations = [load(Variation, v) for v in record.get("variations") or []]
    return load(Product, record, variations=variations)
