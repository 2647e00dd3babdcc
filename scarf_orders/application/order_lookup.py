import uuid

from scarf_orders.domain.models import Order
from scarf_orders.domain.exceptions import InvalidOrderIdError, OrderNotFoundError


def ensure_order_id(order_id: str) -> str:
    """Проверка формата ID до обращения к хранилищу"""
    try:
        return str(uuid.UUID(order_id))
    except (ValueError, TypeError, AttributeError):
        raise InvalidOrderIdError(f"Некорректный ID заказа: {order_id!r}")


async def load_order(uow, order_id: str) -> Order:
    order = await uow.orders.get_by_id(order_id)
    if not order:
        raise OrderNotFoundError(f"Заказ {order_id} не найден")
    return order
