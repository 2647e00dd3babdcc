import logging
from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from scarf_orders.infrastructure.repositories import SQLAlchemyOrderRepository

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Транзакция над заказами: всё, что не закоммичено, откатывается."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def __call__(self):
        async with self._session_factory() as session:
            orders_tx = _OrdersTransaction(session)
            try:
                yield orders_tx
            except Exception as e:
                logger.warning(f"Откат транзакции заказов: {type(e).__name__}: {e}")
                await session.rollback()
                raise
            if not orders_tx.committed:
                await session.rollback()


class _OrdersTransaction:
    def __init__(self, session: AsyncSession):
        self._session = session
        self.orders = SQLAlchemyOrderRepository(session)
        self.committed = False

    async def commit(self):
        await self._session.commit()
        self.committed = True

    async def rollback(self):
        await self._session.rollback()
        self.committed = False
