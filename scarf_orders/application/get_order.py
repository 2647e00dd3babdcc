from typing import List

from scarf_orders.domain.models import Order
from scarf_orders.application.order_lookup import ensure_order_id, load_order


class GetOrderUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, order_id: str) -> Order:
        order_id = ensure_order_id(order_id)
        async with self._uow() as uow:
            return await load_order(uow, order_id)


class ListOrdersUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self) -> List[Order]:
        async with self._uow() as uow:
            return await uow.orders.list_all()
