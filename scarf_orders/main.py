import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from scarf_orders.config import settings
from scarf_orders.presentation.api import router
from scarf_orders.presentation.reconciliation_worker import reconciliation_worker

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    # 1. Без ключей Stripe и Australia Post сервис не стартует
    settings.validate()

    # 2. Запускаем сверку платежей в фоне
    worker = None
    if settings.RECONCILIATION_WORKER_ENABLED:
        worker = asyncio.create_task(reconciliation_worker())
        logger.info("Reconciliation worker запущен")

    yield

    logger.info("Приложение останавливается...")
    if worker:
        worker.cancel()
        try:
            await worker
        except asyncio.CancelledError:
            pass


app = FastAPI(
    title="Scarf Order Service",
    description="Заказы шарфов: самовывоз или доставка Australia Post, оплата через Stripe",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    return {"message": "Scarf Order Service работает"}


@app.get("/health")
async def health():
    return {"status": "healthy", "reconciliation": "running" if settings.RECONCILIATION_WORKER_ENABLED else "disabled"}
