"""Discount service: owns the ``discounts`` collection."""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError

from marketing.discount.discount import Discount
from shared.records import load
from shared.store import DISCOUNTS, Store

logger = structlog.get_logger(__name__)


class DiscountService:
    def __init__(self, store: Store):
        self.store = store

    async def get_discounts(self) -> list[Discount]:
        return [load(Discount, record) for record in await self.store.get_collection(DISCOUNTS)]

    async def add_discount(self, data: dict) -> Discount:
        discount = load(Discount, data)

        async with self.store.lock(DISCOUNTS):
            if any(existing.code == discount.code for existing in await self.get_discounts()):
                raise ValidationError({"code": [f"Discount code {discount.code} already exists"]})
            await self.store.upsert(DISCOUNTS, discount.to_dict())

        logger.info("Discount added", code=discount.code, type=discount.type, value=discount.value)
        return discount

    async def update_discount(self, discount_id, changes: dict) -> Discount:
        async with self.store.lock(DISCOUNTS):
            record = await self.store.get(DISCOUNTS, discount_id)
            if record is None:
                raise ObjectNotFoundError({"_entity": f"Discount {discount_id} not found."})
            discount = load(Discount, {**record, **changes, "id": record["id"]})
            await self.store.upsert(DISCOUNTS, discount.to_dict())

        logger.info("Discount updated", code=discount.code, fields=sorted(changes))
        return discount

    async def delete_discount(self, discount_id) -> None:
        async with self.store.lock(DISCOUNTS):
            await self.store.delete(DISCOUNTS, discount_id)

    async def validate_discount(self, code: str, subtotal: float, categories) -> Discount | None:
        """Return the active discount for ``code``.

        Unknown or inactive codes give None. A known code the cart does not
        qualify for raises ValidationError.
        """
        for discount in await self.get_discounts():
            if discount.code == code and discount.is_active:
                discount.check_applicable(subtotal, categories)
                return discount
        return None
