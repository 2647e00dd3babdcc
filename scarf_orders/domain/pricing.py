"""Расчёт стоимости заказа.

Все суммы считаются в целых центах. Цена доставки приходит от Australia Post
как десятичная строка в долларах; перевод в центы умножает её на 100 и
отбрасывает дробную часть (усечение к нулю). Расчёт ведётся в Decimal, поэтому
"0.29" даёт ровно 29 центов.
"""
from decimal import Decimal, ROUND_DOWN
from typing import Union

from scarf_orders.domain.models import FulfillmentMethod

UNIT_PRICE_CENTS = 1500
CURRENCY = "aud"
DEFAULT_POSTAGE_CODE = "AUS_PARCEL_REGULAR_PACKAGE_SMALL"


def price_to_cents(price: Union[Decimal, str, int]) -> int:
    cents = Decimal(str(price)) * 100
    return int(cents.to_integral_value(rounding=ROUND_DOWN))


def cents_to_amount(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(Decimal("0.01"))


def order_subtotal(quantity: int) -> int:
    """Стоимость шарфов без доставки"""
    return UNIT_PRICE_CENTS * quantity


def order_total(quantity: int, postage_cents: int = 0) -> int:
    return order_subtotal(quantity) + postage_cents


def order_description(name: str, quantity: int, method: FulfillmentMethod) -> str:
    label = "Pickup" if method == FulfillmentMethod.PICKUP else "Postage"
    return f"{name}: Scarves x{quantity} for {label}"
