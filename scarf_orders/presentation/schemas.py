from decimal import Decimal
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel

from scarf_orders.domain.models import FulfillmentMethod, ReconciliationStatus
from scarf_orders.domain import pricing


class CreateOrderRequest(BaseModel):
    name: str
    email: str
    quantity: int
    delivery_method: FulfillmentMethod
    address_apt: Optional[str] = None
    address_street: Optional[str] = None
    address_town: Optional[str] = None
    address_state: Optional[str] = None
    address_post_code: Optional[int] = None


class SelectPostageRequest(BaseModel):
    code: str


class ContactResponse(BaseModel):
    name: str
    email: str


class AddressResponse(BaseModel):
    apartment: Optional[str] = None
    street: str
    town: str
    state: str
    post_code: int


class PaymentResponse(BaseModel):
    transaction_id: str
    client_secret: Optional[str] = None


class ReconciliationResponse(BaseModel):
    status: ReconciliationStatus
    amount_cents: int
    attempts: int
    last_error: Optional[str] = None


class OrderResponse(BaseModel):
    id: str
    quantity: int
    contact: ContactResponse
    method: FulfillmentMethod
    address: Optional[AddressResponse] = None
    postage_code: Optional[str] = None
    payment: Optional[PaymentResponse] = None
    reconciliation: Optional[ReconciliationResponse] = None
    subtotal_cents: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, order):
        return cls(
            id=order.id,
            quantity=order.quantity,
            contact=ContactResponse(**order.contact.model_dump()),
            method=order.fulfillment_method,
            address=AddressResponse(**order.address.model_dump()) if order.address else None,
            postage_code=order.postage.code if order.postage else None,
            payment=PaymentResponse(**order.payment.model_dump()) if order.payment else None,
            reconciliation=(
                ReconciliationResponse(**order.reconciliation.model_dump())
                if order.reconciliation else None
            ),
            subtotal_cents=pricing.order_subtotal(order.quantity),
            created_at=order.created_at,
            updated_at=order.updated_at
        )


class PostDeliveryOptionResponse(BaseModel):
    name: str
    code: str
    price: Decimal


class PostDeliveryOptionsResponse(BaseModel):
    options: List[PostDeliveryOptionResponse]


class OrderPriceResponse(BaseModel):
    amount_cents: int
    amount: Decimal
    currency: str
    subtotal_cents: int


class ClientSecretResponse(BaseModel):
    client_secret: str


class FulfillmentMethodResponse(BaseModel):
    method: FulfillmentMethod


class ErrorDetail(BaseModel):
    type: str
    message: str


class ErrorResponse(BaseModel):
    detail: ErrorDetail
