"""Wallet service: owns the ``wallets`` collection, one wallet per user."""

import structlog
from protean.exceptions import ObjectNotFoundError

from identity.wallet.wallet import Wallet, wallet_from_record
from shared.store import WALLETS, Store

logger = structlog.get_logger(__name__)


class WalletService:
    def __init__(self, store: Store):
        self.store = store

    async def _find(self, user_id) -> Wallet | None:
        for record in await self.store.get_collection(WALLETS):
            if str(record.get("user_id")) == str(user_id):
                return wallet_from_record(record)
        return None

    async def get_wallet(self, user_id) -> Wallet:
        wallet = await self._find(user_id)
        if wallet is None:
            raise ObjectNotFoundError({"_entity": f"Wallet for user {user_id} not found."})
        return wallet

    async def open_wallet(self, user_id, initial_balance: float = 0.0) -> Wallet:
        """Return the user's wallet, creating it (with an optional opening deposit) if needed."""
        async with self.store.lock(WALLETS):
            wallet = await self._find(user_id)
            if wallet is not None:
                return wallet

            wallet = Wallet(user_id=str(user_id))
            if initial_balance > 0:
                wallet.deposit(initial_balance, "Opening balance")
            await self.store.upsert(WALLETS, wallet.to_dict())

        logger.info("Wallet opened", user_id=str(user_id), balance=wallet.balance)
        return wallet

    async def deposit(self, user_id, amount: float, description: str = "Wallet top-up") -> Wallet:
        async with self.store.lock(WALLETS):
            wallet = await self.get_wallet(user_id)
            wallet.deposit(amount, description)
            await self.store.upsert(WALLETS, wallet.to_dict())

        logger.info("Wallet funded", user_id=str(user_id), amount=amount, balance=wallet.balance)
        return wallet

    async def charge(self, user_id, amount: float, order_id) -> Wallet:
        async with self.store.lock(WALLETS):
            wallet = await self.get_wallet(user_id)
            wallet.charge(amount, order_id)
            await self.store.upsert(WALLETS, wallet.to_dict())

        logger.info("Wallet charged", user_id=str(user_id), order_id=str(order_id), amount=amount)
        return wallet

    async def refund(self, user_id, amount: float, order_id) -> Wallet:
        """Compensation for ``charge``."""
        async with self.store.lock(WALLETS):
            wallet = await self.get_wallet(user_id)
            wallet.refund(amount, order_id)
            await self.store.upsert(WALLETS, wallet.to_dict())

        logger.info("Wallet refunded", user_id=str(user_id), order_id=str(order_id), amount=amount)
        return wallet
