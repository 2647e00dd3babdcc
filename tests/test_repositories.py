import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import insert, update
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from scarf_orders.domain.exceptions import ConcurrentModificationError, OrderDecodeError
from scarf_orders.domain.models import (
    Address, Contact, FulfillmentMethod, Order, PaymentReconciliation, ReconciliationStatus
)
from scarf_orders.infrastructure.db_schema import metadata, orders_tbl
from scarf_orders.infrastructure.unit_of_work import UnitOfWork


@pytest.fixture()
async def sql_uow(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.sqlite'}")
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield UnitOfWork(async_sessionmaker(engine, expire_on_commit=False))
    await engine.dispose()


def _order(method=FulfillmentMethod.POST) -> Order:
    now = datetime.now(timezone.utc)
    return Order(
        id=str(uuid.uuid4()),
        quantity=3,
        contact=Contact(name="Bob", email="b@x.com"),
        fulfillment_method=method,
        address=Address(apartment="", street="1 George St", town="Sydney", state="NSW", post_code=2000)
        if method == FulfillmentMethod.POST else None,
        created_at=now,
        updated_at=now
    )


async def test_create_and_get(sql_uow):
    order = _order()
    async with sql_uow() as uow:
        await uow.orders.create(order)
        await uow.commit()

    async with sql_uow() as uow:
        stored = await uow.orders.get_by_id(order.id)

    assert stored.contact == order.contact
    assert stored.address == order.address
    assert stored.fulfillment_method == FulfillmentMethod.POST
    assert stored.payment is None
    assert stored.postage is None
    assert stored.reconciliation is None
    assert stored.version == 1


async def test_uncommitted_work_is_rolled_back(sql_uow):
    order = _order()
    async with sql_uow() as uow:
        await uow.orders.create(order)

    async with sql_uow() as uow:
        assert await uow.orders.get_by_id(order.id) is None


async def test_failed_work_is_rolled_back_and_reraised(sql_uow):
    order = _order()
    with pytest.raises(RuntimeError):
        async with sql_uow() as uow:
            await uow.orders.create(order)
            raise RuntimeError("boom")

    async with sql_uow() as uow:
        assert await uow.orders.get_by_id(order.id) is None


async def test_updates_bump_version(sql_uow):
    order = _order()
    async with sql_uow() as uow:
        await uow.orders.create(order)
        assert await uow.orders.update_payment_id(
            order.id, "pi_1", PaymentReconciliation.synced(5595), expected_version=1
        )
        assert await uow.orders.update_postage(
            order.id, "AUS_PARCEL_EXPRESS", PaymentReconciliation.pending(5845), expected_version=2
        )
        await uow.commit()

    async with sql_uow() as uow:
        stored = await uow.orders.get_by_id(order.id)

    assert stored.version == 3
    assert stored.payment.transaction_id == "pi_1"
    assert stored.payment.client_secret is None
    assert stored.postage.code == "AUS_PARCEL_EXPRESS"
    assert stored.reconciliation == PaymentReconciliation.pending(5845)


async def test_stale_version_is_rejected(sql_uow):
    order = _order()
    async with sql_uow() as uow:
        await uow.orders.create(order)
        await uow.orders.update_reconciliation(order.id, PaymentReconciliation.synced(1))
        with pytest.raises(ConcurrentModificationError):
            await uow.orders.update_postage(
                order.id, "AUS_PARCEL_EXPRESS", PaymentReconciliation.pending(2), expected_version=1
            )


async def test_update_missing_order(sql_uow):
    async with sql_uow() as uow:
        assert not await uow.orders.update_reconciliation(str(uuid.uuid4()), PaymentReconciliation.synced(1))
        assert not await uow.orders.update_reconciliation(
            str(uuid.uuid4()), PaymentReconciliation.synced(1), expected_version=1
        )


async def test_list_all_and_by_reconciliation_status(sql_uow):
    pending, synced = _order(), _order(FulfillmentMethod.PICKUP)
    async with sql_uow() as uow:
        await uow.orders.create(pending)
        await uow.orders.create(synced)
        await uow.orders.update_reconciliation(pending.id, PaymentReconciliation.pending(100))
        await uow.orders.update_reconciliation(synced.id, PaymentReconciliation.synced(200))
        await uow.commit()

    async with sql_uow() as uow:
        everything = await uow.orders.list_all()
        waiting = await uow.orders.list_by_reconciliation_status(ReconciliationStatus.PENDING)

    assert {order.id for order in everything} == {pending.id, synced.id}
    assert [order.id for order in waiting] == [pending.id]


async def test_corrupted_row_raises_decode_error(sql_uow):
    order = _order()
    async with sql_uow() as uow:
        await uow.orders.create(order)
        await uow._session.execute(
            update(orders_tbl).where(orders_tbl.c.id == order.id).values(contact={"name": "Bob"})
        )
        await uow.commit()

    async with sql_uow() as uow:
        with pytest.raises(OrderDecodeError):
            await uow.orders.get_by_id(order.id)


async def test_missing_address_fields_are_not_zero_filled(sql_uow):
    order_id = str(uuid.uuid4())
    async with sql_uow() as uow:
        await uow._session.execute(insert(orders_tbl).values(
            id=order_id,
            quantity=1,
            contact={"name": "Eve", "email": "e@x.com"},
            fulfillment_method=FulfillmentMethod.POST,
            address={"street": "2 Pitt St"},
            version=1
        ))
        await uow.commit()

    async with sql_uow() as uow:
        with pytest.raises(OrderDecodeError):
            await uow.orders.get_by_id(order_id)
