from scarf_orders.application.create_order import CreateOrderUseCase
from scarf_orders.application.reconcile_payment import ReconcilePaymentsUseCase, push_payment_amount
from scarf_orders.application.select_postage import SelectPostageDTO, SelectPostageUseCase
from scarf_orders.domain.models import ReconciliationStatus

from tests.fakes import EXPRESS, FakePaymentGateway


async def _pending_order(uow, shipping, payments, post_dto):
    created = await CreateOrderUseCase(uow, shipping, payments)(post_dto)
    payments.update_failures = 1
    payments.transient = False
    order = await SelectPostageUseCase(uow, shipping, payments, retry_delay=0)(
        SelectPostageDTO(order_id=created.id, code=EXPRESS.code)
    )
    assert order.reconciliation.status == ReconciliationStatus.PENDING
    return order


async def test_pending_order_is_synced(uow, shipping, payments, post_dto):
    order = await _pending_order(uow, shipping, payments, post_dto)

    synced = await ReconcilePaymentsUseCase(uow, payments)(limit=10)

    assert synced == 1
    stored = uow.store.orders[order.id]
    assert stored.reconciliation.status == ReconciliationStatus.SYNCED
    assert payments.intents[order.payment.transaction_id].amount_cents == 1500 * 3 + 1345


async def test_failing_order_is_marked_failed_after_max_attempts(uow, shipping, payments, post_dto):
    order = await _pending_order(uow, shipping, payments, post_dto)
    payments.update_failures = 10
    use_case = ReconcilePaymentsUseCase(uow, payments, max_attempts=3)

    assert await use_case() == 0
    assert uow.store.orders[order.id].reconciliation.status == ReconciliationStatus.PENDING
    assert uow.store.orders[order.id].reconciliation.attempts == 2

    assert await use_case() == 0
    stored = uow.store.orders[order.id]
    assert stored.reconciliation.status == ReconciliationStatus.FAILED
    assert stored.reconciliation.attempts == 3

    # failed заказы больше не выбираются
    updates = len(payments.updates)
    await use_case()
    assert len(payments.updates) == updates


async def test_nothing_pending(uow, payments):
    assert await ReconcilePaymentsUseCase(uow, payments)() == 0


async def test_push_payment_amount_stops_on_definitive_rejection():
    payments = FakePaymentGateway(update_failures=5, transient=False)

    error = await push_payment_amount(payments, "pi_1", 100, max_retries=3)

    assert error
    assert len(payments.updates) == 1


async def test_push_payment_amount_always_tries_once():
    payments = FakePaymentGateway(update_failures=1)

    error = await push_payment_amount(payments, "pi_1", 100, max_retries=0)

    assert error
    assert payments.updates == [("pi_1", 100)]
