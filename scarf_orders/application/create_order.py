import logging
from datetime import datetime, timezone
from typing import Optional
import uuid

from pydantic import BaseModel

from scarf_orders.domain.models import (
    Order, Contact, Address, FulfillmentMethod, PaymentReconciliation
)
from scarf_orders.domain.exceptions import (
    InvalidQuantityError, InvalidPostageOptionError, OrderNotFoundError,
    ShippingRateUnavailableError, PaymentIntentCreationFailedError,
    ShippingGatewayError, PaymentGatewayError
)
from scarf_orders.domain import pricing
from scarf_orders.application.interfaces import ShippingRateGateway, PaymentGateway


logger = logging.getLogger(__name__)


class CreateOrderDTO(BaseModel):
    name: str
    email: str
    quantity: int
    fulfillment_method: FulfillmentMethod
    address_apartment: Optional[str] = None
    address_street: Optional[str] = None
    address_town: Optional[str] = None
    address_state: Optional[str] = None
    address_post_code: Optional[int] = None

    def build_address(self) -> Address:
        """Незаполненные поля адреса становятся пустыми строками и нулём"""
        return Address(
            apartment=self.address_apartment or "",
            street=self.address_street or "",
            town=self.address_town or "",
            state=self.address_state or "",
            post_code=self.address_post_code or 0
        )


class CreateOrderUseCase:
    def __init__(
        self,
        unit_of_work,
        shipping_gateway: ShippingRateGateway,
        payment_gateway: PaymentGateway
    ):
        self._uow = unit_of_work
        self._shipping = shipping_gateway
        self._payments = payment_gateway

    async def __call__(self, order_data: CreateOrderDTO) -> Order:
        logger.info(
            f"Создание заказа для {order_data.email}: {order_data.quantity} шт., "
            f"способ получения {order_data.fulfillment_method.value}"
        )

        # 1. Валидация до любых записей
        if order_data.quantity < 1:
            raise InvalidQuantityError(order_data.quantity)

        # 2. Создание заказа
        now = datetime.now(timezone.utc)
        order = Order(
            id=str(uuid.uuid4()),
            quantity=order_data.quantity,
            contact=Contact(name=order_data.name, email=order_data.email),
            fulfillment_method=order_data.fulfillment_method,
            address=order_data.build_address() if order_data.fulfillment_method == FulfillmentMethod.POST else None,
            created_at=now,
            updated_at=now
        )
        async with self._uow() as uow:
            await uow.orders.create(order)
            await uow.commit()
        logger.info(f"Заказ создан: {order.id}")

        # 3. Стоимость доставки по умолчанию
        postage_cents = 0
        if order.is_postal():
            postage_cents = await self._default_postage_cents(order)

        # 4. Расчет суммы
        total = pricing.order_total(order.quantity, postage_cents)

        # 5. Создание платежа
        try:
            intent = await self._payments.create_intent(
                amount_cents=total,
                currency=pricing.CURRENCY,
                description=pricing.order_description(order.contact.name, order.quantity, order.fulfillment_method),
                metadata={"email": order.contact.email, "quantity": str(order.quantity)}
            )
        except PaymentGatewayError as e:
            # Заказ остается в БД без платежа
            logger.error(f"Ошибка создания платежа для заказа {order.id}: {e}")
            raise PaymentIntentCreationFailedError(f"Не удалось создать платеж для заказа {order.id}")

        # 6. Сохраняем ID транзакции без проверки версии: платеж назначается только здесь
        async with self._uow() as uow:
            updated = await uow.orders.update_payment_id(order.id, intent.id, PaymentReconciliation.synced(total))
            if not updated:
                raise OrderNotFoundError(f"Заказ {order.id} исчез после создания")
            await uow.commit()
        logger.info(f"Платеж {intent.id} на {total} центов привязан к заказу {order.id}")

        # 7. Перечитываем заказ из БД
        async with self._uow() as uow:
            stored = await uow.orders.get_by_id(order.id)
        if not stored:
            raise OrderNotFoundError(f"Заказ {order.id} исчез после создания")

        return stored.with_client_secret(intent.client_secret)

    async def _default_postage_cents(self, order: Order) -> int:
        try:
            options = await self._shipping.quote(order.quantity, order.address.post_code)
        except ShippingGatewayError as e:
            logger.error(f"Australia Post недоступен для заказа {order.id}: {e}")
            raise ShippingRateUnavailableError(f"Не удалось получить стоимость доставки: {e}")

        option = next((o for o in options if o.code == pricing.DEFAULT_POSTAGE_CODE), None)
        if option is None:
            raise InvalidPostageOptionError(pricing.DEFAULT_POSTAGE_CODE)
        return pricing.price_to_cents(option.price)
