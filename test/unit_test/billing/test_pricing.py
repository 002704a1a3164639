"""Unit tests for cent arithmetic."""

from decimal import Decimal

import pytest

from matlinks.billing.pricing import apply_discount, dollars_to_cents, format_amount


@pytest.mark.parametrize(
    "amount,cents",
    [
        (150, 15000),
        (19.99, 1999),
        ("0.005", 1),
        (Decimal("12.345"), 1235),
        (0, 0),
    ],
)
def test_dollars_to_cents(amount, cents):
    assert dollars_to_cents(amount) == cents


@pytest.mark.parametrize(
    "cents,currency,expected",
    [
        (12345, "usd", "$123.45"),
        (100000, "USD", "$1,000.00"),
        (-500, "usd", "-$5.00"),
        (999, "gbp", "£9.99"),
        (2500, "jpy", "25.00 JPY"),
    ],
)
def test_format_amount(cents, currency, expected):
    assert format_amount(cents, currency) == expected


class TestApplyDiscount:
    def test_percentage(self):
        assert apply_discount(15000, "percentage", 25) == 11250

    def test_percentage_floors_to_cent(self):
        assert apply_discount(999, "percentage", 15) == 849

    def test_percentage_capped_at_free(self):
        assert apply_discount(15000, "percentage", 150) == 0

    def test_fixed(self):
        assert apply_discount(15000, "fixed", 2000) == 13000

    def test_fixed_never_negative(self):
        assert apply_discount(1000, "fixed", 5000) == 0
