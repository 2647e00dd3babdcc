from typing import Optional, List
from datetime import datetime, timezone

from pydantic import ValidationError
from sqlalchemy import select, insert, update
from sqlalchemy.ext.asyncio import AsyncSession

from scarf_orders.domain.models import Order, PaymentReconciliation, ReconciliationStatus
from scarf_orders.domain.exceptions import ConcurrentModificationError, OrderDecodeError
from scarf_orders.infrastructure.db_schema import orders_tbl
from scarf_orders.application.interfaces import OrderRepository


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        result = await self._session.execute(
            select(orders_tbl).where(orders_tbl.c.id == order_id)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def list_all(self) -> List[Order]:
        result = await self._session.execute(
            select(orders_tbl).order_by(orders_tbl.c.created_at.asc())
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def list_by_reconciliation_status(self, status: ReconciliationStatus, limit: int = 10) -> List[Order]:
        result = await self._session.execute(
            select(orders_tbl)
            .where(orders_tbl.c.reconciliation_status == status)
            .order_by(orders_tbl.c.updated_at.asc())
            .limit(limit)
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def create(self, order: Order) -> None:
        stmt = insert(orders_tbl).values(
            id=order.id,
            quantity=order.quantity,
            contact=order.contact.model_dump(),
            fulfillment_method=order.fulfillment_method,
            address=order.address.model_dump() if order.address else None,
            postage_code=order.postage.code if order.postage else None,
            payment_transaction_id=order.payment.transaction_id if order.payment else None,
            **self._reconciliation_values(order.reconciliation),
            version=order.version,
            created_at=order.created_at,
            updated_at=order.updated_at
        )
        await self._session.execute(stmt)

    async def update_payment_id(
        self,
        order_id: str,
        transaction_id: str,
        reconciliation: PaymentReconciliation,
        expected_version: Optional[int] = None
    ) -> bool:
        return await self._update(
            order_id,
            expected_version,
            payment_transaction_id=transaction_id,
            **self._reconciliation_values(reconciliation)
        )

    async def update_postage(
        self,
        order_id: str,
        code: str,
        reconciliation: PaymentReconciliation,
        expected_version: Optional[int] = None
    ) -> bool:
        return await self._update(
            order_id,
            expected_version,
            postage_code=code,
            **self._reconciliation_values(reconciliation)
        )

    async def update_reconciliation(
        self,
        order_id: str,
        reconciliation: PaymentReconciliation,
        expected_version: Optional[int] = None
    ) -> bool:
        return await self._update(order_id, expected_version, **self._reconciliation_values(reconciliation))

    async def _update(self, order_id: str, expected_version: Optional[int], **values) -> bool:
        """Частичное обновление с инкрементом версии.

        False, если заказа нет. При несовпадении expected_version
        поднимается ConcurrentModificationError.
        """
        stmt = update(orders_tbl).where(orders_tbl.c.id == order_id)
        if expected_version is not None:
            stmt = stmt.where(orders_tbl.c.version == expected_version)
        stmt = stmt.values(
            **values,
            version=orders_tbl.c.version + 1,
            updated_at=datetime.now(timezone.utc)
        )
        result = await self._session.execute(stmt)
        if result.rowcount:
            return True
        if expected_version is None:
            return False

        current = await self._session.execute(
            select(orders_tbl.c.version).where(orders_tbl.c.id == order_id)
        )
        row = current.fetchone()
        if row is None:
            return False
        raise ConcurrentModificationError(
            f"Заказ {order_id} изменен параллельно: ожидалась версия {expected_version}, в БД {row.version}"
        )

    @staticmethod
    def _reconciliation_values(reconciliation: Optional[PaymentReconciliation]) -> dict:
        if reconciliation is None:
            return {
                "reconciliation_status": None,
                "reconciliation_amount": None,
                "reconciliation_attempts": 0,
                "reconciliation_error": None
            }
        return {
            "reconciliation_status": reconciliation.status,
            "reconciliation_amount": reconciliation.amount_cents,
            "reconciliation_attempts": reconciliation.attempts,
            "reconciliation_error": reconciliation.last_error
        }

    def _to_domain(self, row) -> Order:
        """Трансформация DB → Domain"""
        reconciliation = None
        if row.reconciliation_status is not None:
            reconciliation = {
                "status": row.reconciliation_status,
                "amount_cents": row.reconciliation_amount,
                "attempts": row.reconciliation_attempts,
                "last_error": row.reconciliation_error
            }
        try:
            return Order.model_validate({
                "id": row.id,
                "quantity": row.quantity,
                "contact": row.contact,
                "fulfillment_method": row.fulfillment_method,
                "address": row.address,
                "postage": {"code": row.postage_code} if row.postage_code is not None else None,
                "payment": (
                    {"transaction_id": row.payment_transaction_id}
                    if row.payment_transaction_id is not None else None
                ),
                "reconciliation": reconciliation,
                "version": row.version,
                "created_at": row.created_at,
                "updated_at": row.updated_at
            })
        except ValidationError as e:
            raise OrderDecodeError(f"Заказ {row.id} в БД поврежден: {e.error_count()} ошибок валидации")
