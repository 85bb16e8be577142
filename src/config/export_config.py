from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Dict, Mapping, Optional


# Standard mileage rates in dollars per business mile, keyed by tax year.
STANDARD_MILEAGE_RATES: Dict[int, Decimal] = {
    2023: Decimal("0.655"),
    2024: Decimal("0.67"),
    2025: Decimal("0.67"),
}


@dataclass(frozen=True)
class ExportConfig:
    """
    Versioned constants used while building a tax export package.

    NOTE: Values here should be reviewed annually against IRS published figures.
    Bump `version` whenever a value changes so packages built under different
    tables can be told apart.
    """

    version: str = "2026.1"
    schema_version: str = "2026-01-26.1"
    currency: str = "USD"

    mileage_rates: Mapping[int, Decimal] = field(
        default_factory=lambda: dict(STANDARD_MILEAGE_RATES)
    )

    # Expenses at or above this raw amount are flagged for asset review
    asset_capitalization_threshold: Decimal = Decimal("2500.00")

    # Meals & Entertainment deductible fraction when no per-row value is stored
    default_meals_percent: Decimal = Decimal("0.50")

    # Free-text notes longer than this are truncated in income descriptions
    description_note_max_length: int = 60

    # Prefix for itemized "Other expenses" names, e.g. "GigLedger: Education/Training"
    app_label: str = "GigLedger"

    def __post_init__(self) -> None:
        if not self.mileage_rates:
            raise ValueError("ExportConfig requires at least one mileage rate")
        if not (Decimal("0") <= self.default_meals_percent <= Decimal("1")):
            raise ValueError("default_meals_percent must be between 0 and 1")

    @property
    def latest_rate_year(self) -> int:
        """Most recent tax year with a published mileage rate."""
        return max(self.mileage_rates)

    def with_overrides(self, **changes) -> "ExportConfig":
        """Return a copy with selected values replaced."""
        return replace(self, **changes)

    @classmethod
    def default(cls, app_label: Optional[str] = None) -> "ExportConfig":
        """Current constants table."""
        if app_label:
            return cls(app_label=app_label)
        return cls()
