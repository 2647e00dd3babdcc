import asyncio
import logging
from typing import Optional

from scarf_orders.domain.models import PaymentReconciliation, ReconciliationStatus
from scarf_orders.domain.exceptions import PaymentGatewayError, ConcurrentModificationError
from scarf_orders.application.interfaces import PaymentGateway

logger = logging.getLogger(__name__)


async def push_payment_amount(
    payments: PaymentGateway,
    transaction_id: str,
    amount_cents: int,
    max_retries: int = 1,
    retry_delay: float = 0.0
) -> Optional[str]:
    """Обновление суммы платежа с повторными попытками.

    Возвращает None при успехе, иначе текст последней ошибки. Хотя бы одна
    попытка делается всегда. Отказ шлюза без признака transient не повторяется.
    """
    attempts = max(1, max_retries)
    last_error = None
    for attempt in range(attempts):
        try:
            await payments.update_amount(transaction_id, amount_cents)
            logger.info(f"Сумма платежа {transaction_id} обновлена до {amount_cents} (попытка {attempt + 1})")
            return None
        except PaymentGatewayError as e:
            last_error = str(e)
            logger.warning(
                f"Ошибка обновления суммы платежа {transaction_id} "
                f"(попытка {attempt + 1}/{attempts}): {e}"
            )
            if not e.transient:
                break

        if attempt < attempts - 1:
            await asyncio.sleep(retry_delay)

    return last_error


async def requeue_reconciliation(unit_of_work, order_id: str) -> None:
    """Повторная сверка последней записанной суммы.

    Вызывается, когда после отправки суммы в Stripe заказ оказался изменен
    параллельным запросом: в Stripe могла остаться устаревшая сумма.
    """
    async with unit_of_work() as uow:
        latest = await uow.orders.get_by_id(order_id)
        if not latest or not latest.reconciliation:
            return
        await uow.orders.update_reconciliation(
            order_id, PaymentReconciliation.pending(latest.reconciliation.amount_cents)
        )
        await uow.commit()
    logger.info(f"Сверка платежа заказа {order_id} поставлена в очередь повторно")


class ReconcilePaymentsUseCase:
    def __init__(self, unit_of_work, payment_gateway: PaymentGateway, max_attempts: int = 5):
        self._uow = unit_of_work
        self._payments = payment_gateway
        self._max_attempts = max_attempts

    async def __call__(self, limit: int = 10) -> int:
        """Повторная сверка pending заказов. Возвращает количество синхронизированных."""

        async with self._uow() as uow:
            pending = await uow.orders.list_by_reconciliation_status(ReconciliationStatus.PENDING, limit=limit)

        if not pending:
            return 0

        logger.info(f"Сверка {len(pending)} платежей")

        synced = 0
        for order in pending:
            if order.payment is None:
                logger.error(f"У заказа {order.id} нет платежа, сверка невозможна")
                continue

            target = order.reconciliation
            error = await push_payment_amount(self._payments, order.payment.transaction_id, target.amount_cents)
            if error is None:
                reconciliation = PaymentReconciliation.synced(target.amount_cents)
            else:
                attempts = target.attempts + 1
                status = (
                    ReconciliationStatus.FAILED if attempts >= self._max_attempts
                    else ReconciliationStatus.PENDING
                )
                reconciliation = PaymentReconciliation(
                    status=status,
                    amount_cents=target.amount_cents,
                    attempts=attempts,
                    last_error=error
                )

            try:
                async with self._uow() as uow:
                    await uow.orders.update_reconciliation(
                        order.id, reconciliation, expected_version=order.version
                    )
                    await uow.commit()
            except ConcurrentModificationError:
                logger.info(f"Заказ {order.id} изменен во время сверки")
                if error is None:
                    await requeue_reconciliation(self._uow, order.id)
                continue

            if reconciliation.status == ReconciliationStatus.SYNCED:
                synced += 1
                logger.info(f"Платеж заказа {order.id} сверен")
            elif reconciliation.status == ReconciliationStatus.FAILED:
                logger.error(f"Сверка платежа заказа {order.id} не удалась после {reconciliation.attempts} попыток")

        return synced
