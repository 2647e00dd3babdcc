from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from scarf_orders.application.interfaces import OrderRepository, PaymentGateway, ShippingRateGateway
from scarf_orders.domain.exceptions import (
    ConcurrentModificationError, PaymentGatewayError, ShippingGatewayError
)
from scarf_orders.domain.models import (
    Order, PaymentIntent, PaymentReference, Postage,
    PostDeliveryOption, ReconciliationStatus
)

REGULAR = PostDeliveryOption(name="Parcel Post", code="AUS_PARCEL_REGULAR", price=Decimal("9.70"))
SMALL_BOX = PostDeliveryOption(
    name="Parcel Post Small Box", code="AUS_PARCEL_REGULAR_PACKAGE_SMALL", price=Decimal("10.95")
)
EXPRESS = PostDeliveryOption(name="Express Post", code="AUS_PARCEL_EXPRESS", price=Decimal("13.45"))


class InMemoryOrderStore:
    def __init__(self):
        self.orders: Dict[str, Order] = {}
        self.reads = 0


class InMemoryOrderRepository(OrderRepository):
    def __init__(self, store: InMemoryOrderStore):
        self._store = store

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        self._store.reads += 1
        order = self._store.orders.get(order_id)
        return order.model_copy(deep=True) if order else None

    async def list_all(self) -> List[Order]:
        self._store.reads += 1
        return sorted(
            (order.model_copy(deep=True) for order in self._store.orders.values()),
            key=lambda order: order.created_at
        )

    async def list_by_reconciliation_status(self, status: ReconciliationStatus, limit: int = 10) -> List[Order]:
        return [
            order.model_copy(deep=True)
            for order in self._store.orders.values()
            if order.reconciliation and order.reconciliation.status == status
        ][:limit]

    async def create(self, order: Order) -> None:
        self._store.orders[order.id] = order.model_copy(deep=True)

    async def update_payment_id(self, order_id, transaction_id, reconciliation, expected_version=None) -> bool:
        return self._update(
            order_id, expected_version,
            payment=PaymentReference(transaction_id=transaction_id),
            reconciliation=reconciliation
        )

    async def update_postage(self, order_id, code, reconciliation, expected_version=None) -> bool:
        return self._update(order_id, expected_version, postage=Postage(code=code), reconciliation=reconciliation)

    async def update_reconciliation(self, order_id, reconciliation, expected_version=None) -> bool:
        return self._update(order_id, expected_version, reconciliation=reconciliation)

    def _update(self, order_id: str, expected_version: Optional[int], **changes) -> bool:
        order = self._store.orders.get(order_id)
        if order is None:
            return False
        if expected_version is not None and order.version != expected_version:
            raise ConcurrentModificationError(f"version {order.version} != {expected_version}")
        self._store.orders[order_id] = order.model_copy(
            update={**changes, "version": order.version + 1, "updated_at": datetime.now(timezone.utc)}
        )
        return True


class InMemoryUnitOfWork:
    def __init__(self, store: Optional[InMemoryOrderStore] = None):
        self.store = store or InMemoryOrderStore()
        self.commits = 0

    @asynccontextmanager
    async def __call__(self):
        yield _InMemoryUnitOfWorkImpl(self)


class _InMemoryUnitOfWorkImpl:
    def __init__(self, parent: InMemoryUnitOfWork):
        self._parent = parent
        self.orders = InMemoryOrderRepository(parent.store)

    async def commit(self):
        self._parent.commits += 1

    async def rollback(self):
        pass


class FakeShippingGateway(ShippingRateGateway):
    def __init__(self, options: Optional[List[PostDeliveryOption]] = None, fail: bool = False):
        self.options = [REGULAR, SMALL_BOX, EXPRESS] if options is None else options
        self.fail = fail
        self.calls = []
        self.on_quote = None

    async def quote(self, quantity: int, postcode: int) -> List[PostDeliveryOption]:
        self.calls.append((quantity, postcode))
        if self.on_quote:
            await self.on_quote()
        if self.fail:
            raise ShippingGatewayError("Australia Post ошибка: 500")
        return list(self.options)


class FakePaymentGateway(PaymentGateway):
    def __init__(self, fail_create: bool = False, update_failures: int = 0, transient: bool = True):
        self.intents: Dict[str, PaymentIntent] = {}
        self.created = []
        self.updates = []
        self.fail_create = fail_create
        self.update_failures = update_failures
        self.transient = transient

    async def create_intent(self, amount_cents, currency, description, metadata) -> PaymentIntent:
        if self.fail_create:
            raise PaymentGatewayError("Stripe ошибка: 402")
        intent_id = f"pi_{len(self.intents) + 1}"
        intent = PaymentIntent(
            id=intent_id,
            amount_cents=amount_cents,
            currency=currency,
            client_secret=f"{intent_id}_secret_test"
        )
        self.intents[intent_id] = intent
        self.created.append({
            "amount_cents": amount_cents,
            "currency": currency,
            "description": description,
            "metadata": metadata
        })
        return intent

    async def update_amount(self, transaction_id, amount_cents) -> PaymentIntent:
        self.updates.append((transaction_id, amount_cents))
        if self.update_failures > 0:
            self.update_failures -= 1
            raise PaymentGatewayError("Stripe ошибка: 503", transient=self.transient)
        intent = self.intents[transaction_id].model_copy(update={"amount_cents": amount_cents})
        self.intents[transaction_id] = intent
        return intent

    async def retrieve(self, transaction_id) -> PaymentIntent:
        if transaction_id not in self.intents:
            raise PaymentGatewayError("Stripe ошибка: 404")
        return self.intents[transaction_id]
