# backend/utils/pricing.py
import secrets
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Tuple

from config import settings

CENT = Decimal("0.01")


def money(value) -> Decimal:
    """Normalise a number or numeric string to a 2-place Decimal."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(price, quantity: int) -> Decimal:
    return money(money(price) * quantity)


def shipping_for(subtotal) -> Decimal:
    # Flat fee below the free-shipping threshold, nothing for an empty cart
    subtotal = money(subtotal)
    if subtotal <= 0 or subtotal >= settings.FREE_SHIPPING_THRESHOLD:
        return money(0)
    return money(settings.SHIPPING_FEE)


def summarize(lines: Iterable[Tuple[Decimal, int]]) -> dict:
    """Checkout totals for (unit price, quantity) pairs. Tax is always zero."""
    lines = list(lines)
    subtotal = money(sum((line_total(p, q) for p, q in lines), Decimal("0")))
    shipping = shipping_for(subtotal)
    tax = money(0)
    return {
        "item_count": sum(q for _, q in lines),
        "subtotal": subtotal,
        "tax": tax,
        "shipping": shipping,
        "total": money(subtotal + tax + shipping),
    }


def generate_order_number() -> str:
    # Random tail keeps numbers issued in the same millisecond apart
    return f"{settings.ORDER_NUMBER_PREFIX}-{int(time.time() * 1000)}-{secrets.randbelow(10000):04d}"
