"""Catalog service: product CRUD and the stock steps of checkout.

Owns the ``products`` collection. Every read-modify-write runs under the
collection lock, so a reservation sees and writes a consistent stock level
even with other checkouts in flight.
"""

import structlog
from protean.exceptions import InvalidOperationError, ObjectNotFoundError

from catalogue.product.product import Product, product_from_record
from shared.store import PRODUCTS, Store

logger = structlog.get_logger(__name__)


class StockRollbackError(InvalidOperationError):
    """A failed reservation left some products decremented."""

    def __init__(self, messages: dict, unrestored=()):
        super().__init__(messages)
        self.messages = messages
        self.unrestored = list(unrestored)


class CatalogService:
    def __init__(self, store: Store):
        self.store = store

    async def get_products(self) -> list[Product]:
        return [product_from_record(record) for record in await self.store.get_collection(PRODUCTS)]

    async def get_product(self, product_id) -> Product:
        record = await self.store.get(PRODUCTS, product_id)
        if record is None:
            raise ObjectNotFoundError({"_entity": f"Product {product_id} not found."})
        return product_from_record(record)

    async def add_product(self, data: dict) -> Product:
        product = product_from_record(data)
        async with self.store.lock(PRODUCTS):
            await self.store.upsert(PRODUCTS, product.to_dict())

        logger.info("Product added", product_id=str(product.id), name=product.name)
        return product

    async def update_product(self, product_id, changes: dict) -> Product:
        """Apply ``changes`` on top of the stored product and save it.

        The merged record is rebuilt through the aggregate, so an invalid
        change is rejected before anything is written.
        """
        async with self.store.lock(PRODUCTS):
            record = await self.store.get(PRODUCTS, product_id)
            if record is None:
                raise ObjectNotFoundError({"_entity": f"Product {product_id} not found."})

            merged = {**record, **changes, "id": record["id"]}
            product = product_from_record(merged)
            await self.store.upsert(PRODUCTS, product.to_dict())

        logger.info("Product updated", product_id=str(product.id), fields=sorted(changes))
        return product

    async def save_product(self, data: dict) -> Product:
        """Update the stored product ``data`` names by id, or add it when there is none.

        The lookup and the write happen under one lock, so a concurrent
        delete turns an update into an add instead of an error.
        """
        async with self.store.lock(PRODUCTS):
            record = await self.store.get(PRODUCTS, data["id"]) if data.get("id") else None
            if record is None:
                product = product_from_record(data)
            else:
                product = product_from_record({**record, **data, "id": record["id"]})
            await self.store.upsert(PRODUCTS, product.to_dict())

        logger.info("Product saved", product_id=str(product.id), created=record is None)
        return product

    async def delete_product(self, product_id) -> None:
        async with self.store.lock(PRODUCTS):
            if await self.store.get(PRODUCTS, product_id) is None:
                raise ObjectNotFoundError({"_entity": f"Product {product_id} not found."})
            await self.store.delete(PRODUCTS, product_id)

        logger.info("Product deleted", product_id=str(product_id))

    async def get_low_stock(self) -> list[Product]:
        return [product for product in await self.get_products() if product.is_low_stock]

    async def reserve_stock(self, lines) -> None:
        """Decrement stock for every cart line, all or nothing.

        Each line exposes ``product_id``, ``variation_id`` and ``quantity``.
        Every line is checked against the stored stock before anything is
        written, and repeated lines for the same product accumulate. If a
        write fails part way, the products already written are put back to
        their previous records before the error propagates. When some of
        them cannot be put back either, ``StockRollbackError`` is raised
        instead, naming them.
        """
        async with self.store.lock(PRODUCTS):
            records = {str(record["id"]): record for record in await self.store.get_collection(PRODUCTS)}
            touched: dict[str, Product] = {}

            for line in lines:
                product_id = str(line.product_id)
                if product_id not in records:
                    raise ObjectNotFoundError({"_entity": f"Product {product_id} not found."})

                product = touched.get(product_id) or product_from_record(records[product_id])
                if product.is_gift_card:
                    continue

                product.decrement_stock(line.quantity, line.variation_id)
                touched[product_id] = product

            written = []
            try:
                for product_id, product in touched.items():
                    await self.store.upsert(PRODUCTS, product.to_dict())
                    written.append(product_id)
            except Exception as exc:
                logger.error(
                    "Stock reservation write failed, restoring products",
                    written=written,
                    pending=[pid for pid in touched if pid not in written],
                )
                unrestored = await self._put_back(records, written)
                if unrestored:
                    raise StockRollbackError(
                        {"stock": [f"Stock reservation failed and could not be undone for {', '.join(unrestored)}"]},
                        unrestored=unrestored,
                    ) from exc
                raise

        logger.info("Stock reserved", products=list(touched))

    async def _put_back(self, records: dict, product_ids: list[str]) -> list[str]:
        """Rewrite the original records of ``product_ids``. Returns the ids that failed."""
        unrestored = []
        for product_id in product_ids:
            try:
                await self.store.upsert(PRODUCTS, records[product_id])
            except Exception:
                logger.exception("Could not put product back after failed reservation", product_id=product_id)
                unrestored.append(product_id)
        return unrestored

    async def restore_stock(self, lines) -> None:
        """Compensation for ``reserve_stock``: add the line quantities back."""
        logger.warning("Rolling back stock reservation", lines=len(lines))

        async with self.store.lock(PRODUCTS):
            records = {str(record["id"]): record for record in await self.store.get_collection(PRODUCTS)}
            touched: dict[str, Product] = {}

            for line in lines:
                product_id = str(line.product_id)
                if product_id not in records:
                    logger.warning("Cannot restore stock for missing product", product_id=product_id)
                    continue

                product = touched.get(product_id) or product_from_record(records[product_id])
                if product.is_gift_card:
                    continue

                product.increment_stock(line.quantity, line.variation_id)
                touched[product_id] = product

            for product in touched.values():
                await self.store.upsert(PRODUCTS, product.to_dict())

        logger.info("Stock restored", products=list(touched))
