from .decimal_math import (
    ROUNDING_MODE_NAME,
    ROUNDING_PRECISION,
    format_cents,
    format_money,
    round_cents,
    sum_money,
    to_decimal,
)

__all__ = [
    "ROUNDING_MODE_NAME",
    "ROUNDING_PRECISION",
    "format_cents",
    "format_money",
    "round_cents",
    "sum_money",
    "to_decimal",
]
