"""Options for one tax export build."""

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config.settings import validate_timezone_name

SUPPORTED_BASIS = "cash"


class ExportOptions(BaseModel):
    """
    What to build: which year, which window, and how to treat tips and fees.

    A package is tied to the options it was built with; different options
    mean a new build.
    """

    model_config = ConfigDict(frozen=True)

    tax_year: int = Field(ge=1900, le=2100)
    timezone: str = Field(default="America/New_York", description="IANA timezone name")
    basis: str = Field(default=SUPPORTED_BASIS, description="Accounting basis; only 'cash' builds")
    date_start: Optional[str] = Field(None, description="YYYY-MM-DD, defaults to Jan 1")
    date_end: Optional[str] = Field(None, description="YYYY-MM-DD, defaults to Dec 31")
    include_tips: bool = True
    include_fees_as_deduction: bool = True

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        return validate_timezone_name(value)

    @property
    def is_supported_basis(self) -> bool:
        return self.basis.strip().lower() == SUPPORTED_BASIS

    def resolved_date_range(self) -> Tuple[str, str]:
        """(date_start, date_end), defaulting to the full tax year."""
        return (
            self.date_start or f"{self.tax_year}-01-01",
            self.date_end or f"{self.tax_year}-12-31",
        )
