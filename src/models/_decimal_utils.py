"""
Decimal coercion for model-layer amount fields.

Provides the same to_decimal() as calculator.decimal_math, but lives in
models/ so the model layer has no dependency on the calculator package.

Raw rows arrive from the store with loose numeric types (float, str,
NUMERIC-as-string, or NULL). These validators turn them into Decimal
before pydantic sees them, without rounding: rounding happens once, in
the package builder.
"""

from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Optional, Union

from pydantic import BeforeValidator

Numeric = Union[int, float, str, Decimal]


def to_decimal(value: Numeric) -> Decimal:
    """Convert a numeric value to Decimal."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def _amount_or_zero(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    return _strict_decimal(value)


def _amount_or_none(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return _strict_decimal(value)


def _strict_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError("boolean is not an amount")
    try:
        result = to_decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"not a number: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return result


# NULL amounts read as zero, matching NOT NULL DEFAULT 0 columns
Amount = Annotated[Decimal, BeforeValidator(_amount_or_zero)]

# NULL stays NULL where "absent" and "zero" mean different things
OptionalAmount = Annotated[Optional[Decimal], BeforeValidator(_amount_or_none)]
