"""
Tax export errors.

Two kinds of failure exist:

- TaxExportError: the request cannot produce a package at all (wrong owner,
  mixed currency, failed fetch, unsupported basis). The caller shows
  `user_message` and offers no export action.
- PackageInvariantError: a built package failed its own reconciliation
  check. This indicates a defect in the builder; the package is discarded.

Data-quality problems are not errors here; see validation.export_validator.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional


class TaxExportErrorCode(str, Enum):
    """Error codes for failed export requests."""
    NOT_AUTHORIZED = "NOT_AUTHORIZED"        # requester does not own the data
    NON_USD_CURRENCY = "NON_USD_CURRENCY"    # mixed-currency input
    DATA_LOAD_FAILED = "DATA_LOAD_FAILED"    # upstream fetch failed
    UNSUPPORTED = "UNSUPPORTED"              # e.g. non-cash basis requested


USER_MESSAGES: Dict[TaxExportErrorCode, str] = {
    TaxExportErrorCode.NOT_AUTHORIZED: "Not authorized to export this data.",
    TaxExportErrorCode.NON_USD_CURRENCY: (
        "Tax exports currently support USD only. "
        "Please convert to USD or remove non-USD items."
    ),
    TaxExportErrorCode.DATA_LOAD_FAILED: "Failed to load export data. Please try again.",
    TaxExportErrorCode.UNSUPPORTED: "Only cash basis exports are supported.",
}


class TaxExportError(Exception):
    """
    A tax export request that cannot produce a package.

    Usage:
        raise TaxExportError(TaxExportErrorCode.UNSUPPORTED, "Only cash basis exports are supported.")
    """

    def __init__(
        self,
        code: TaxExportErrorCode,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = TaxExportErrorCode(code)
        self.message = message or USER_MESSAGES[self.code]
        self.details = details or {}
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        """Fixed message safe to show the user."""
        return USER_MESSAGES[self.code]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": dict(self.details),
        }

    def __repr__(self) -> str:
        return f"TaxExportError({self.code.value!r}, {self.message!r})"


class PackageInvariantError(Exception):
    """Raised when a built package fails reconciliation."""

    def __init__(self, violations: List[str]):
        self.violations = list(violations)
        super().__init__(
            "Tax export package failed reconciliation: " + "; ".join(self.violations)
        )
