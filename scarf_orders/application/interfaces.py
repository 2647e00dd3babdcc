from abc import ABC, abstractmethod
from typing import Optional, List, Dict

from scarf_orders.domain.models import (
    Order, PaymentIntent, PaymentReconciliation, PostDeliveryOption, ReconciliationStatus
)


class OrderRepository(ABC):
    @abstractmethod
    async def get_by_id(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def list_all(self) -> List[Order]:
        pass

    @abstractmethod
    async def list_by_reconciliation_status(self, status: ReconciliationStatus, limit: int = 10) -> List[Order]:
        pass

    @abstractmethod
    async def create(self, order: Order) -> None:
        pass

    @abstractmethod
    async def update_payment_id(
        self,
        order_id: str,
        transaction_id: str,
        reconciliation: PaymentReconciliation,
        expected_version: Optional[int] = None
    ) -> bool:
        pass

    @abstractmethod
    async def update_postage(
        self,
        order_id: str,
        code: str,
        reconciliation: PaymentReconciliation,
        expected_version: Optional[int] = None
    ) -> bool:
        pass

    @abstractmethod
    async def update_reconciliation(
        self,
        order_id: str,
        reconciliation: PaymentReconciliation,
        expected_version: Optional[int] = None
    ) -> bool:
        pass


class ShippingRateGateway(ABC):
    @abstractmethod
    async def quote(self, quantity: int, postcode: int) -> List[PostDeliveryOption]:
        pass


class PaymentGateway(ABC):
    @abstractmethod
    async def create_intent(
        self, amount_cents: int, currency: str, description: str, metadata: Dict[str, str]
    ) -> PaymentIntent:
        pass

    @abstractmethod
    async def update_amount(self, transaction_id: str, amount_cents: int) -> PaymentIntent:
        pass

    @abstractmethod
    async def retrieve(self, transaction_id: str) -> PaymentIntent:
        pass
