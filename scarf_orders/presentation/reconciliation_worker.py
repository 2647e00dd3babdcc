import asyncio
import logging

from scarf_orders.database import get_session_factory
from scarf_orders.infrastructure.unit_of_work import UnitOfWork
from scarf_orders.infrastructure.http_clients import StripePaymentsClient
from scarf_orders.application.reconcile_payment import ReconcilePaymentsUseCase
from scarf_orders.config import settings

logger = logging.getLogger(__name__)


async def reconciliation_worker():
    """Worker для повторной сверки сумм платежей"""
    logger.info("Reconciliation worker запущен")

    payments = StripePaymentsClient(settings.STRIPE_BASE_URL, settings.STRIPE_SECRET_KEY, settings.HTTP_TIMEOUT)

    while True:
        try:
            uow = UnitOfWork(get_session_factory())

            use_case = ReconcilePaymentsUseCase(
                unit_of_work=uow,
                payment_gateway=payments,
                max_attempts=settings.RECONCILIATION_MAX_ATTEMPTS
            )

            synced = await use_case(limit=settings.RECONCILIATION_BATCH_SIZE)
            if synced:
                logger.info(f"Сверено {synced} платежей")

            await asyncio.sleep(settings.RECONCILIATION_INTERVAL)

        except asyncio.CancelledError:
            logger.info("Reconciliation worker остановлен")
            raise
        except Exception as e:
            logger.error(f"Ошибка в reconciliation worker: {e}", exc_info=True)
            await asyncio.sleep(settings.RECONCILIATION_INTERVAL)


async def main():
    settings.validate()
    await reconciliation_worker()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    asyncio.run(main())
