"""
Decimal Math Utilities for Tax Export Totals.

Every monetary value that lands on a TaxExportPackage passes through
round_cents() exactly once, at the point where it is computed. Totals are
then summed from already-rounded parts, so nothing downstream needs to
round again.

Why Decimal?
- Float: 0.1 + 0.2 = 0.30000000000000004
- Decimal: 0.1 + 0.2 = 0.3

This matters for:
- Category sums that must reconcile to the Schedule C total exactly
- Rounding to pennies (tax software expects exact cent amounts)
- Reproducible exports where a $0.01 drift shows up as a mismatch
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Union
import logging

logger = logging.getLogger(__name__)

# Type alias for values that can be converted to Decimal
Numeric = Union[int, float, str, Decimal]

MONEY_PLACES = Decimal("0.01")  # Round to pennies
RATE_PLACES = Decimal("0.0001")  # 4 decimal places for percents and rates

ROUNDING_MODE_NAME = "half_away_from_zero"
ROUNDING_PRECISION = 2

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def to_decimal(value: Numeric) -> Decimal:
    """
    Convert a numeric value to Decimal.

    Args:
        value: Value to convert (int, float, str, or Decimal)

    Returns:
        Decimal representation

    Raises:
        InvalidOperation: If the value is not a finite number

    Examples:
        >>> to_decimal(100)
        Decimal('100')
        >>> to_decimal(100.50)
        Decimal('100.5')
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        # Convert float to string first to preserve representation
        result = Decimal(str(value))
    else:
        result = Decimal(value)
    if not result.is_finite():
        raise InvalidOperation(f"Non-finite amount: {value!r}")
    return result


def round_cents(value: Numeric) -> Decimal:
    """
    Round a value to pennies, half away from zero.

    ROUND_HALF_UP in the decimal module rounds ties away from zero for
    negative values as well, so -2.675 becomes -2.68. The result already
    has two places, which makes the function idempotent:
    round_cents(round_cents(x)) == round_cents(x).

    Examples:
        >>> round_cents(100.995)
        Decimal('101.00')
        >>> round_cents(-0.005)
        Decimal('-0.01')
    """
    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def rate(value: Numeric) -> Decimal:
    """
    Convert value to a rate or percent fraction (4 decimal places).

    Examples:
        >>> rate(0.5)
        Decimal('0.5000')
    """
    return to_decimal(value).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)


def add(*values: Numeric) -> Decimal:
    """
    Add multiple values with Decimal precision.

    Examples:
        >>> add(100.10, 200.20, 300.30)
        Decimal('600.6')
    """
    result = ZERO
    for v in values:
        result += to_decimal(v)
    return result


def sum_money(values: Iterable[Numeric]) -> Decimal:
    """
    Sum monetary values and round the total to pennies.

    Parts are expected to be rounded already; the final quantize only
    normalises the exponent so an empty sum reads as 0.00.
    """
    return round_cents(add(*values))


def format_cents(value: Numeric) -> str:
    """
    Format value as a plain two-decimal string.

    Examples:
        >>> format_cents(1234.5)
        '1234.50'
    """
    return f"{round_cents(value):.2f}"


def format_money(value: Numeric) -> str:
    """
    Format value as money string.

    Examples:
        >>> format_money(1234567.89)
        '$1,234,567.89'
    """
    m = round_cents(value)
    return f"${m:,.2f}"
