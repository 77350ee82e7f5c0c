"""Checkout Saga: coordinates Catalog → Wallet → Sales for one cart.

The saga runs every step in-process and compensates locally instead of
relying on a shared transaction.

Flow:
    1. Initiated        validate the cart, resolve the discount, price it and
                        build the pending Order with its pre-generated id
    2. StockReserved    decrement stock for every line (all or nothing)
    3. PaymentCaptured  charge the payer's wallet, only when the cart asks for it
    4. OrderRecorded    persist the order; from here on the saga is committed
    5. Completed        publish ``order-created``

A failure in steps 1-4 undoes whatever already happened (wallet refunded,
stock restored), publishes one ``saga-failed`` and returns a
CheckoutFailure. A failure after step 4 is never compensated: it publishes
``saga-failed`` with ``committed=True`` and the order is still returned.

Checkout is not idempotent. Submitting the same cart twice places two
orders.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

import structlog
from protean.exceptions import ValidationError

from catalogue.product.service import StockRollbackError
from ordering.checkout.cart import CartSnapshot
from ordering.order.order import Order
from ordering.order.pricing import price_cart, subtotal_of
from shared.events import topics
from shared.settings import Settings

logger = structlog.get_logger(__name__)

CHECKOUT_FAILED_MESSAGE = "Transaction failed. Please try again."
DEFAULT_HISTORY_SIZE = 100


class SagaState(Enum):
    INITIATED = "initiated"
    STOCK_RESERVED = "stock_reserved"
    PAYMENT_CAPTURED = "payment_captured"
    ORDER_RECORDED = "order_recorded"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class SagaExecution:
    """Operator view of one checkout attempt."""

    saga_id: str
    order_id: str
    payer_id: str
    state: SagaState = SagaState.INITIATED
    trail: list[SagaState] = field(default_factory=lambda: [SagaState.INITIATED])
    failed_state: SagaState | None = None
    failure_reason: str | None = None
    compensated: bool | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None

    @property
    def committed(self) -> bool:
        return SagaState.ORDER_RECORDED in self.trail

    def advance(self, state: SagaState) -> None:
        self.state = state
        self.trail.append(state)
        if state in (SagaState.COMPLETED, SagaState.FAILED):
            self.finished_at = datetime.now(UTC)


@dataclass(frozen=True)
class CheckoutFailure:
    """Returned instead of an Order when checkout did not go through.

    ``message`` is safe to show to the customer; ``reason`` is for operators.
    """

    saga_id: str
    order_id: str
    reason: str
    failed_state: str
    compensated: bool
    message: str = CHECKOUT_FAILED_MESSAGE


def describe_error(exc: Exception) -> str:
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        parts = []
        for value in messages.values():
            parts.extend(value if isinstance(value, list) else [value])
        return "; ".join(str(part) for part in parts)
    return str(exc) or type(exc).__name__


class CheckoutSaga:
    def __init__(self, catalog, sales, wallets, discounts, bus, settings: Settings | None = None,
                 history_size: int = DEFAULT_HISTORY_SIZE):
        self.catalog = catalog
        self.sales = sales
        self.wallets = wallets
        self.discounts = discounts
        self.bus = bus
        self.settings = settings or Settings()
        self._history: deque[SagaExecution] = deque(maxlen=history_size)

    @property
    def executions(self) -> list[SagaExecution]:
        """Most recent checkout attempts, oldest first."""
        return list(self._history)

    def get_execution(self, saga_id) -> SagaExecution | None:
        for execution in self._history:
            if execution.saga_id == str(saga_id):
                return execution
        return None

    async def checkout(self, cart: CartSnapshot, payer_id) -> Order | CheckoutFailure:
        execution = SagaExecution(saga_id=str(uuid4()), order_id=str(uuid4()), payer_id=str(payer_id))
        self._history.append(execution)
        log = logger.bind(saga_id=execution.saga_id, order_id=execution.order_id, payer_id=execution.payer_id)
        log.info("Checkout started", lines=len(cart.lines))

        # Step 1: Initiated
        try:
            order = await self._build_order(cart, execution)
        except Exception as exc:
            return self._fail(execution, exc, compensated=True, log=log)

        # Step 2: StockReserved
        try:
            await self.catalog.reserve_stock(cart.lines)
        except StockRollbackError as exc:
            return self._fail(execution, exc, compensated=False, log=log)
        except Exception as exc:
            return self._fail(execution, exc, compensated=True, log=log)
        execution.advance(SagaState.STOCK_RESERVED)

        # Step 3: PaymentCaptured
        charged = False
        if order.wallet_amount > 0:
            try:
                await self.wallets.charge(payer_id, order.wallet_amount, order.id)
            except Exception as exc:
                compensated = await self._compensate(cart, order, charged=False, log=log)
                return self._fail(execution, exc, compensated=compensated, log=log)
            charged = True
            execution.advance(SagaState.PAYMENT_CAPTURED)

        # Step 4: OrderRecorded
        try:
            await self.sales.create_order(order)
        except Exception as exc:
            compensated = await self._compensate(cart, order, charged=charged, log=log)
            return self._fail(execution, exc, compensated=compensated, log=log)
        execution.advance(SagaState.ORDER_RECORDED)

        # Step 5: Completed. Committed from here on, nothing is compensated.
        try:
            self.bus.publish(topics.ORDER_CREATED, order.to_dict())
        except Exception as exc:
            self._fail(execution, exc, compensated=False, log=log)
            return order

        execution.advance(SagaState.COMPLETED)
        log.info("Checkout completed", total=order.total)
        return order

    async def _build_order(self, cart: CartSnapshot, execution: SagaExecution) -> Order:
        cart.validate()

        discount = None
        if cart.discount_code:
            discount = await self.discounts.validate_discount(
                cart.discount_code, subtotal_of(cart.lines), cart.categories
            )
            if discount is None:
                raise ValidationError({"discount_code": [f"Invalid or inactive discount code {cart.discount_code}"]})

        pricing = price_cart(
            cart.lines,
            self.settings,
            discount=discount,
            shipping_method=cart.shipping_method,
            shipping_state=cart.shipping_state,
        )
        return Order.create(
            user_id=execution.payer_id,
            lines=cart.lines,
            pricing=pricing,
            shipping_address=cart.shipping_address,
            shipping_method=cart.shipping_method,
            discount_code=discount.code if discount else None,
            wallet_amount=round(cart.wallet_amount, 2),
            order_id=execution.order_id,
        )

    async def _compensate(self, cart: CartSnapshot, order: Order, charged: bool, log) -> bool:
        """Undo the wallet charge and the stock reservation. Returns True when both undid cleanly."""
        compensated = True

        if charged:
            try:
                await self.wallets.refund(order.user_id, order.wallet_amount, order.id)
            except Exception:
                log.exception("Compensation failed: wallet refund")
                compensated = False

        try:
            await self.catalog.restore_stock(cart.lines)
        except Exception:
            log.exception("Compensation failed: stock restore")
            compensated = False

        return compensated

    def _fail(self, execution: SagaExecution, exc: Exception, compensated: bool, log) -> CheckoutFailure:
        failed_state = execution.state
        committed = execution.committed
        reason = describe_error(exc)

        execution.failed_state = failed_state
        execution.failure_reason = reason
        execution.compensated = compensated
        execution.advance(SagaState.FAILED)

        log.error(
            "Checkout failed",
            failed_state=failed_state.value,
            reason=reason,
            compensated=compensated,
            committed=committed,
            error_type=type(exc).__name__,
        )
        self.bus.publish(
            topics.SAGA_FAILED,
            {
                "saga_id": execution.saga_id,
                "order_id": execution.order_id,
                "payer_id": execution.payer_id,
                "failed_state": failed_state.value,
                "reason": reason,
                "compensated": compensated,
                "committed": committed,
            },
        )
        return CheckoutFailure(
            saga_id=execution.saga_id,
            order_id=execution.order_id,
            reason=reason,
            failed_state=failed_state.value,
            compensated=compensated,
        )
