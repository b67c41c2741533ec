"""Unit tests for money parsing and the Money column type"""

import pytest
from decimal import Decimal
from sqlalchemy.dialects import postgresql, sqlite

from bursary.domain.money import MAX_AMOUNT, Money, parse_amount, sum_money


class TestParseAmount:

    @pytest.mark.parametrize("value,expected", [
        ("100", Decimal("100.00")),
        ("100.5", Decimal("100.50")),
        (Decimal("0.01"), Decimal("0.01")),
        ("9999999999999999.99", MAX_AMOUNT),
    ])
    def test_accepts_positive_two_place_amounts(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", [
        "0", "-1.00", "100.005", "0.001", "10000000000000000.00", "NaN", "Infinity", "abc", None,
    ])
    def test_refuses_everything_else(self, value):
        assert parse_amount(value) is None

    def test_trailing_zeros_beyond_cents_are_exact(self):
        assert parse_amount("100.000") == Decimal("100.00")


class TestMoneyColumn:

    def test_sqlite_stores_integer_cents(self):
        money = Money()

        assert money.process_bind_param(Decimal("1234567890123456.78"), sqlite.dialect()) == 123456789012345678
        assert money.process_result_value(123456789012345678, sqlite.dialect()) == Decimal("1234567890123456.78")

    def test_sqlite_cents_survive_small_fractions(self):
        money = Money()
        stored = [money.process_bind_param(Decimal(v), sqlite.dialect()) for v in ("0.10", "0.20")]

        assert money.process_result_value(sum(stored), sqlite.dialect()) == Decimal("0.30")

    def test_native_numeric_elsewhere(self):
        money = Money()

        assert money.process_bind_param(Decimal("10.5"), postgresql.dialect()) == Decimal("10.50")
        assert money.process_result_value(Decimal("10.50"), postgresql.dialect()) == Decimal("10.50")

    def test_null_passes_through(self):
        assert Money().process_bind_param(None, sqlite.dialect()) is None
        assert Money().process_result_value(None, sqlite.dialect()) is None


def test_sum_money_is_exact():
    assert sum_money(["0.10", "0.20", Decimal("0.30")]) == Decimal("0.60")
