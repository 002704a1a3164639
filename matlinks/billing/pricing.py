"""
Money helpers. All amounts are integer cents.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal

from matlinks.core.database.entities.promotions import DiscountType

_CURRENCY_SYMBOLS = {"usd": "$", "cad": "$", "aud": "$", "eur": "€", "gbp": "£"}


def dollars_to_cents(amount: float | str | Decimal) -> int:
    """Convert a dollar amount to cents, rounding half up."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_amount(cents: int, currency: str = "usd") -> str:
    """Format cents for display, e.g. ``format_amount(12345) == "$123.45"``."""
    symbol = _CURRENCY_SYMBOLS.get(currency.lower())
    value = f"{abs(cents) / 100:,.2f}"
    sign = "-" if cents < 0 else ""
    if symbol:
        return f"{sign}{symbol}{value}"
    return f"{sign}{value} {currency.upper()}"


def apply_discount(price: int, discount_type: str, discount_value: int) -> int:
    """Price after a promotion.

    Percentage discounts are capped at 100% and floored to a whole cent;
    fixed discounts never take the price below zero.
    """
    if discount_type == DiscountType.PERCENTAGE.value:
        percent = min(discount_value, 100)
        return math.floor(price * (100 - percent) / 100)
    return max(price - discount_value, 0)
