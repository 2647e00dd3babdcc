import logging

from pydantic import BaseModel

from scarf_orders.domain.models import Order, PaymentReconciliation, ReconciliationStatus
from scarf_orders.domain.exceptions import (
    InvalidOrderStateError, InvalidPostageOptionError, OrderNotFoundError,
    ShippingRateUnavailableError, ShippingGatewayError, ConcurrentModificationError
)
from scarf_orders.domain import pricing
from scarf_orders.application.interfaces import ShippingRateGateway, PaymentGateway
from scarf_orders.application.order_lookup import ensure_order_id, load_order
from scarf_orders.application.reconcile_payment import push_payment_amount, requeue_reconciliation

logger = logging.getLogger(__name__)


class SelectPostageDTO(BaseModel):
    order_id: str
    code: str


class SelectPostageUseCase:
    def __init__(
        self,
        unit_of_work,
        shipping_gateway: ShippingRateGateway,
        payment_gateway: PaymentGateway,
        max_retries: int = 3,
        retry_delay: float = 0.5
    ):
        self._uow = unit_of_work
        self._shipping = shipping_gateway
        self._payments = payment_gateway
        self._max_retries = max_retries
        self._retry_delay = retry_delay

    async def __call__(self, dto: SelectPostageDTO) -> Order:
        order_id = ensure_order_id(dto.order_id)
        logger.info(f"Выбор доставки {dto.code} для заказа {order_id}")

        # 1. Текущее состояние заказа
        async with self._uow() as uow:
            order = await load_order(uow, order_id)

        if order.payment is None:
            raise InvalidOrderStateError(f"У заказа {order_id} нет платежа")
        if order.address is None:
            raise InvalidOrderStateError(f"У заказа {order_id} нет адреса доставки")

        # 2. Свежие тарифы и проверка кода до записи
        try:
            options = await self._shipping.quote(order.quantity, order.address.post_code)
        except ShippingGatewayError as e:
            logger.error(f"Australia Post недоступен для заказа {order_id}: {e}")
            raise ShippingRateUnavailableError(f"Не удалось получить стоимость доставки: {e}")

        option = next((o for o in options if o.code == dto.code), None)
        if option is None:
            raise InvalidPostageOptionError(dto.code)

        total = pricing.order_total(order.quantity, pricing.price_to_cents(option.price))

        # 3. Сохраняем выбор, сверка суммы в ожидании
        async with self._uow() as uow:
            updated = await uow.orders.update_postage(
                order_id, dto.code, PaymentReconciliation.pending(total), expected_version=order.version
            )
            if not updated:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")
            await uow.commit()

        # 4. Обновляем сумму платежа
        error = await push_payment_amount(
            self._payments, order.payment.transaction_id, total, self._max_retries, self._retry_delay
        )
        if error is None:
            reconciliation = PaymentReconciliation.synced(total)
        else:
            logger.warning(
                f"Сумма платежа заказа {order_id} не обновлена, сверка отложена: {error}"
            )
            reconciliation = PaymentReconciliation(
                status=ReconciliationStatus.PENDING,
                amount_cents=total,
                attempts=1,
                last_error=error
            )

        try:
            async with self._uow() as uow:
                await uow.orders.update_reconciliation(
                    order_id, reconciliation, expected_version=order.version + 1
                )
                await uow.commit()
        except ConcurrentModificationError:
            logger.warning(f"Заказ {order_id} изменен параллельным запросом во время сверки")
            await requeue_reconciliation(self._uow, order_id)

        # 5. Возвращаем актуальный заказ
        async with self._uow() as uow:
            return await load_order(uow, order_id)
