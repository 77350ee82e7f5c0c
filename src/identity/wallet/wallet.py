"""Wallet aggregate: a user's stored balance and its transaction history.

The balance never goes negative. Every movement appends a transaction
with a signed amount: deposits and refunds are positive, payments negative.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, String

from identity.domain import identity
from shared.records import load


class TransactionType(Enum):
    DEPOSIT = "deposit"
    PAYMENT = "payment"
    REFUND = "refund"


def _short(order_id) -> str:
    return str(order_id)[-6:]


@identity.entity(part_of="Wallet")
class WalletTransaction:
    amount: Float(required=True)
    type: String(required=True, choices=TransactionType)
    description: String(max_length=255)
    reference: Identifier()
    date: DateTime(default=lambda: datetime.now(UTC))


@identity.aggregate
class Wallet:
    user_id: Identifier(required=True)
    balance: Float(default=0.0, min_value=0.0)
    transactions: HasMany(WalletTransaction)

    def _record(self, amount, type_, description, reference=None):
        self.add_transactions(
            WalletTransaction(amount=amount, type=type_.value, description=description, reference=reference)
        )

    def deposit(self, amount, description="Wallet top-up"):
        if amount <= 0:
            raise ValidationError({"amount": ["Deposit amount must be positive"]})
        self.balance = round(self.balance + amount, 2)
        self._record(amount, TransactionType.DEPOSIT, description)

    def charge(self, amount, order_id):
        if amount <= 0:
            raise ValidationError({"amount": ["Charge amount must be positive"]})
        if self.balance < amount:
            raise ValidationError(
                {"balance": [f"Insufficient wallet balance. Available: {self.balance}, Required: {amount}"]}
            )
        self.balance = round(self.balance - amount, 2)
        self._record(-amount, TransactionType.PAYMENT, f"Payment for Order #{_short(order_id)}", order_id)

    def refund(self, amount, order_id):
        if amount <= 0:
            raise ValidationError({"amount": ["Refund amount must be positive"]})
        self.balance = round(self.balance + amount, 2)
        self._record(amount, TransactionType.REFUND, f"Refund for failed Order #{_short(order_id)}", order_id)


def wallet_from_record(record: dict) -> Wallet:
    transactions = [load(WalletTransaction, txn) for txn in record.get("transactions") or []]
    return load(Wallet, record, transactions=transactions)
