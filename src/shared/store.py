"""Collection store port and the in-memory adapter.

The store keeps flat lists of dict records per named collection: no
transactions, no foreign keys. Services serialize their read-modify-write
cycles through ``Store.lock(collection)`` so two coroutines can never
interleave a load and a write on the same collection.
"""

import asyncio
import copy
from abc import ABC, abstractmethod

import structlog

logger = structlog.get_logger(__name__)

PRODUCTS = "products"
ORDERS = "orders"
USERS = "users"
WALLETS = "wallets"
CHAT_SESSIONS = "chat-sessions"
CHAT_MESSAGES = "chat-messages"
REVIEWS = "reviews"
DISCOUNTS = "discounts"
MARKETING_EVENTS = "marketing-events"


class Store(ABC):
    """Abstract keyed collection store."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def lock(self, collection: str) -> asyncio.Lock:
        """Single-writer lock for ``collection``. Not re-entrant."""
        if collection not in self._locks:
            self._locks[collection] = asyncio.Lock()
        return self._locks[collection]

    @abstractmethod
    async def get_collection(self, name: str) -> list[dict]:
        """Return every record of the collection, in insertion order."""
        ...

    @abstractmethod
    async def upsert(self, name: str, record: dict) -> None:
        """Insert or replace the record with the same ``id``."""
        ...

    @abstractmethod
    async def delete(self, name: str, record_id: str) -> None:
        """Remove the record. Deleting an unknown id is a no-op."""
        ...

    async def get(self, name: str, record_id: str) -> dict | None:
        for record in await self.get_collection(name):
            if str(record.get("id")) == str(record_id):
                return record
        return None


class MemoryStore(Store):
    """Process-local store. Records are deep-copied on the way in and out.

    Every call yields to the event loop (optionally after ``latency``
    seconds) so concurrent callers interleave the way they would against a
    remote store.
    """

    def __init__(self, latency: float = 0.0) -> None:
        super().__init__()
        self.latency = latency
        self._collections: dict[str, dict[str, dict]] = {}

    async def _yield(self) -> None:
        await asyncio.sleep(self.latency)

    async def get_collection(self, name: str) -> list[dict]:
        await self._yield()
        return [copy.deepcopy(record) for record in self._collections.get(name, {}).values()]

    async def upsert(self, name: str, record: dict) -> None:
        if record.get("id") is None:
            raise ValueError(f"Record for collection '{name}' has no id")

        await self._yield()
        self._collections.setdefault(name, {})[str(record["id"])] = copy.deepcopy(record)

    async def delete(self, name: str, record_id: str) -> None:
        await self._yield()
        self._collections.get(name, {}).pop(str(record_id), None)

    def seed(self, name: str, records: list[dict]) -> None:
        """Load records synchronously (fixtures, initial catalogue)."""
        collection = self._collections.setdefault(name, {})
        for record in records:
            collection[str(record["id"])] = copy.deepcopy(record)

    def snapshot(self) -> dict[str, list[dict]]:
        """Copy of every collection, keyed by collection name."""
        return {
            name: [copy.deepcopy(record) for record in records.values()]
            for name, records in self._collections.items()
        }

    def reset(self) -> None:
        self._collections.clear()
        logger.debug("Memory store reset")
