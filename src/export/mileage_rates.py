"""
IRS standard mileage rate lookup.

A rate is always returned: any year without a published rate uses the
latest known rate as a best-effort estimate. is_published_rate() tells the
two cases apart so the mileage summary can say which happened.
"""

from decimal import Decimal
from typing import Optional

from config.export_config import ExportConfig


def rate_for_year(tax_year: int, config: Optional[ExportConfig] = None) -> Decimal:
    """
    Standard mileage rate in dollars per mile for a tax year.

    Examples:
        >>> rate_for_year(2024)
        Decimal('0.67')
        >>> rate_for_year(2031)  # not in the table: latest published rate
        Decimal('0.67')
    """
    config = config or ExportConfig.default()
    rates = config.mileage_rates
    if tax_year in rates:
        return rates[tax_year]
    return rates[config.latest_rate_year]


def is_published_rate(tax_year: int, config: Optional[ExportConfig] = None) -> bool:
    """True when the table has a rate for exactly this year."""
    config = config or ExportConfig.default()
    return tax_year in config.mileage_rates
