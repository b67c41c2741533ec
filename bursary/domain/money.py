"""Fixed-point money helpers

Amounts are Decimal end to end and stored as NUMERIC(18, 2). SQLite has no
exact decimal storage, so there the column holds integer cents instead.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional, Union
from sqlalchemy import BigInteger, Numeric
from sqlalchemy.types import TypeDecorator

MONEY_PRECISION = 18
MONEY_SCALE = 2
CENT = Decimal("0.01")
ZERO = Decimal("0.00")
MAX_AMOUNT = Decimal("9999999999999999.99")  # largest NUMERIC(18, 2) value


def to_money(value: Union[Decimal, int, str, None]) -> Decimal:
    """
    Normalize a value to a two-place Decimal

    Database drivers without native decimal support may hand back floats or
    ints for aggregates; those go through ``str`` so no binary rounding leaks in.
    """
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Union[Decimal, int, str]]) -> Decimal:
    total = ZERO
    for value in values:
        total += to_money(value)
    return total


def parse_amount(value) -> Optional[Decimal]:
    """
    Exact two-place Decimal for a positive input amount

    Returns None for anything that is not a finite amount in (0, MAX_AMOUNT]
    with at most two decimal places. Sub-cent input is refused, never rounded.
    """
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
        if not amount.is_finite() or amount <= ZERO or amount > MAX_AMOUNT:
            return None
        exact = amount.quantize(CENT)
    except (InvalidOperation, ValueError, TypeError):
        return None
    if exact != amount:
        return None
    return exact


class Money(TypeDecorator):
    """
    NUMERIC(18, 2) money column

    On SQLite the value is stored as integer cents so sums and comparisons
    stay exact; other dialects use the native NUMERIC type.
    """

    impl = Numeric(MONEY_PRECISION, MONEY_SCALE)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(BigInteger())
        return dialect.type_descriptor(Numeric(MONEY_PRECISION, MONEY_SCALE, asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = to_money(value)
        if dialect.name == "sqlite":
            return int(value.scaleb(MONEY_SCALE))
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "sqlite":
            return to_money(Decimal(int(value)).scaleb(-MONEY_SCALE))
        return to_money(value)
