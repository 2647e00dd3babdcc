from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class FulfillmentMethod(str, Enum):
    PICKUP = "PICKUP"
    POST = "POST"


class ReconciliationStatus(str, Enum):
    PENDING = "pending"
    SYNCED = "synced"
    FAILED = "failed"


class Contact(BaseModel):
    """Value Object — контакт покупателя"""
    name: str
    email: str


class Address(BaseModel):
    """Value Object — адрес доставки"""
    apartment: Optional[str] = None
    street: str
    town: str
    state: str
    post_code: int


class Postage(BaseModel):
    code: str


class PaymentReference(BaseModel):
    """Ссылка на внешнюю транзакцию. client_secret в БД не хранится"""
    transaction_id: str
    client_secret: Optional[str] = None


class PaymentReconciliation(BaseModel):
    """Состояние сверки суммы платежа с ценой заказа"""
    status: ReconciliationStatus
    amount_cents: int
    attempts: int = 0
    last_error: Optional[str] = None

    @classmethod
    def synced(cls, amount_cents: int) -> "PaymentReconciliation":
        return cls(status=ReconciliationStatus.SYNCED, amount_cents=amount_cents)

    @classmethod
    def pending(cls, amount_cents: int) -> "PaymentReconciliation":
        return cls(status=ReconciliationStatus.PENDING, amount_cents=amount_cents)


class Order(BaseModel):
    """Domain Entity — заказ шарфов"""
    id: str
    quantity: int
    contact: Contact
    fulfillment_method: FulfillmentMethod
    address: Optional[Address] = None
    postage: Optional[Postage] = None
    payment: Optional[PaymentReference] = None
    reconciliation: Optional[PaymentReconciliation] = None
    version: int = 1
    created_at: datetime
    updated_at: datetime

    def is_postal(self) -> bool:
        return self.fulfillment_method == FulfillmentMethod.POST

    def can_select_postage(self) -> bool:
        """Бизнес-правило: доставку выбирают только для заказа с адресом и платежом"""
        return self.address is not None and self.payment is not None

    def with_client_secret(self, client_secret: Optional[str]) -> "Order":
        if self.payment is None:
            return self
        payment = self.payment.model_copy(update={"client_secret": client_secret})
        return self.model_copy(update={"payment": payment})


class PostDeliveryOption(BaseModel):
    """Value Object — вариант доставки от Australia Post, не кэшируется"""
    name: str
    code: str
    price: Decimal


class PaymentIntent(BaseModel):
    """Value Object — платёжная транзакция на стороне Stripe"""
    id: str
    amount_cents: int
    currency: str
    client_secret: Optional[str] = None
