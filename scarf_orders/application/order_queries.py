import logging
from typing import List

from pydantic import BaseModel

from scarf_orders.domain.models import FulfillmentMethod, Order, PaymentIntent, PostDeliveryOption
from scarf_orders.domain.exceptions import (
    InvalidOrderStateError, NoAddressOnOrderError, PaymentServiceError,
    ShippingRateUnavailableError, ShippingGatewayError, PaymentGatewayError
)
from scarf_orders.domain import pricing
from scarf_orders.application.interfaces import ShippingRateGateway, PaymentGateway
from scarf_orders.application.order_lookup import ensure_order_id, load_order

logger = logging.getLogger(__name__)


class OrderPrice(BaseModel):
    """Сумма из Stripe и справочная стоимость шарфов без доставки"""
    amount_cents: int
    currency: str
    subtotal_cents: int


class CalculatePostageUseCase:
    def __init__(self, unit_of_work, shipping_gateway: ShippingRateGateway):
        self._uow = unit_of_work
        self._shipping = shipping_gateway

    async def __call__(self, order_id: str) -> List[PostDeliveryOption]:
        order_id = ensure_order_id(order_id)
        async with self._uow() as uow:
            order = await load_order(uow, order_id)

        if order.address is None:
            raise NoAddressOnOrderError(
                f"У заказа {order_id} нет адреса. Скорее всего выбран самовывоз"
            )

        try:
            return await self._shipping.quote(order.quantity, order.address.post_code)
        except ShippingGatewayError as e:
            logger.error(f"Australia Post недоступен для заказа {order_id}: {e}")
            raise ShippingRateUnavailableError(f"Не удалось получить стоимость доставки: {e}")


class _PaymentLookup:
    def __init__(self, unit_of_work, payment_gateway: PaymentGateway):
        self._uow = unit_of_work
        self._payments = payment_gateway

    async def _retrieve(self, order_id: str) -> tuple[Order, PaymentIntent]:
        order_id = ensure_order_id(order_id)
        async with self._uow() as uow:
            order = await load_order(uow, order_id)

        if order.payment is None:
            raise InvalidOrderStateError(f"У заказа {order_id} нет платежа")

        try:
            intent = await self._payments.retrieve(order.payment.transaction_id)
        except PaymentGatewayError as e:
            logger.error(f"Не удалось получить платеж {order.payment.transaction_id}: {e}")
            raise PaymentServiceError(f"Stripe недоступен: {e}")
        return order, intent


class OrderPriceUseCase(_PaymentLookup):
    async def __call__(self, order_id: str) -> OrderPrice:
        order, intent = await self._retrieve(order_id)
        return OrderPrice(
            amount_cents=intent.amount_cents,
            currency=intent.currency,
            subtotal_cents=pricing.order_subtotal(order.quantity)
        )


class PaymentClientSecretUseCase(_PaymentLookup):
    async def __call__(self, order_id: str) -> str:
        order, intent = await self._retrieve(order_id)
        if not intent.client_secret:
            raise PaymentServiceError(f"Stripe не вернул client secret для заказа {order.id}")
        return intent.client_secret


class OrderFulfillmentMethodUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, order_id: str) -> FulfillmentMethod:
        order_id = ensure_order_id(order_id)
        async with self._uow() as uow:
            order = await load_order(uow, order_id)
        return order.fulfillment_method
