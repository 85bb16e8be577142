"""
Pre-export validation for tax export rows.

Runs over the same raw rows the package builder reads and reports:

1. Blocking errors - must be fixed before tax-software formats (TXF and
   the software import packs) are offered: missing Schedule C line code,
   negative amounts, malformed dates.
2. Warnings - surfaced to the user but never blocking: missing payer name
   or tax ID on paid gigs, meals without a stored percent, mileage trips
   without purpose or endpoints.

The validator is advisory. It never mutates rows and never stops a package
from being built; it only decides which output formats are offered.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence

from models.raw_rows import ExportRows, RawExpense, RawGig, RawMileage, RawPayer
from export.category_mapping import ExpenseCategory, normalize_percent, parse_category
from services.logging_config import get_logger

logger = get_logger(__name__)

# Schedule C line code stored on meals expenses
MEALS_LINE_CODE = "24b"

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class IssueType(str, Enum):
    """Whether an issue blocks tax-software exports."""
    ERROR = "error"       # Blocks TXF and software packs
    WARNING = "warning"   # Shown, never blocks


class IssueCategory(str, Enum):
    """Kind of row an issue was found on."""
    EXPENSE = "expense"
    GIG = "gig"
    MILEAGE = "mileage"


class ExportFormat(str, Enum):
    """Output formats a package can be rendered to."""
    CSV_BUNDLE = "csv_bundle"
    EXCEL_WORKBOOK = "excel_workbook"
    PDF_SUMMARY = "pdf_summary"
    JSON_BACKUP = "json_backup"
    TXF = "txf"
    TURBOTAX_ONLINE_PACK = "turbotax_online_pack"
    TAXACT_PACK = "taxact_pack"


# Formats a person reviews before filing; offered even with blocking errors
REVIEWABLE_FORMATS = (
    ExportFormat.CSV_BUNDLE,
    ExportFormat.EXCEL_WORKBOOK,
    ExportFormat.PDF_SUMMARY,
    ExportFormat.JSON_BACKUP,
)

# Formats imported straight into tax software; need a clean validation
TAX_SOFTWARE_FORMATS = (
    ExportFormat.TXF,
    ExportFormat.TURBOTAX_ONLINE_PACK,
    ExportFormat.TAXACT_PACK,
)


@dataclass(frozen=True)
class ValidationIssue:
    """
    One problem found on one row.
    """
    type: IssueType
    category: IssueCategory
    id: str                 # Row ID
    field: str              # Offending field name
    message: str            # Human-readable message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": self.type.value,
            "category": self.category.value,
            "id": self.id,
            "field": self.field,
            "message": self.message,
        }


@dataclass(frozen=True)
class ValidationSummary:
    total_issues: int
    blocking_errors: int
    warnings: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "total_issues": self.total_issues,
            "blocking_errors": self.blocking_errors,
            "warnings": self.warnings,
        }


@dataclass(frozen=True)
class ExportValidationResult:
    """
    Result of validating export rows.
    """
    is_valid: bool                         # False if any blocking error
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def summary(self) -> ValidationSummary:
        return ValidationSummary(
            total_issues=len(self.errors) + len(self.warnings),
            blocking_errors=len(self.errors),
            warnings=len(self.warnings),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "is_valid": self.is_valid,
            "errors": [i.to_dict() for i in self.errors],
            "warnings": [i.to_dict() for i in self.warnings],
            "summary": self.summary.to_dict(),
        }


def is_valid_date(value: Optional[str]) -> bool:
    """True for a real calendar date written as YYYY-MM-DD."""
    if not value or not _DATE_PATTERN.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def _blank(value: Optional[str]) -> bool:
    return value is None or value.strip() == ""


def is_meals_expense(expense: RawExpense) -> bool:
    """Meals are identified by their line code or by category."""
    if (expense.irs_schedule_c_line or "").strip().lower() == MEALS_LINE_CODE:
        return True
    return parse_category(expense.category) is ExpenseCategory.MEALS_AND_ENTERTAINMENT


class _IssueCollector:
    """Accumulates issues for one validation run."""

    def __init__(self):
        self.errors: List[ValidationIssue] = []
        self.warnings: List[ValidationIssue] = []

    def error(self, category: IssueCategory, row_id: str, field_name: str, message: str) -> None:
        self.errors.append(ValidationIssue(IssueType.ERROR, category, row_id, field_name, message))

    def warning(self, category: IssueCategory, row_id: str, field_name: str, message: str) -> None:
        self.warnings.append(ValidationIssue(IssueType.WARNING, category, row_id, field_name, message))


def _validate_expenses(expenses: Iterable[RawExpense], issues: _IssueCollector) -> None:
    for expense in expenses:
        label = expense.description or expense.category or expense.id

        if _blank(expense.irs_schedule_c_line):
            issues.error(
                IssueCategory.EXPENSE, expense.id, "irs_schedule_c_line",
                f'Expense "{label}" is missing IRS Schedule C line code. '
                "This is required for tax filing.",
            )

        if expense.amount < 0:
            issues.error(
                IssueCategory.EXPENSE, expense.id, "amount",
                f'Expense "{label}" has negative amount: ${expense.amount}. '
                "Amounts must be positive.",
            )

        if not is_valid_date(expense.date):
            issues.error(
                IssueCategory.EXPENSE, expense.id, "date",
                f'Expense "{label}" has invalid date: {expense.date}',
            )

        # A stored 0 is an explicit choice; missing or out-of-range values default
        if is_meals_expense(expense) and expense.meals_percent_allowed is None:
            issues.warning(
                IssueCategory.EXPENSE, expense.id, "meals_percent_allowed",
                f'Meals expense "{label}" missing deduction percentage. Will default to 50%.',
            )
        elif is_meals_expense(expense) and normalize_percent(expense.meals_percent_allowed) is None:
            issues.warning(
                IssueCategory.EXPENSE, expense.id, "meals_percent_allowed",
                f'Meals expense "{label}" has deduction percentage '
                f'{expense.meals_percent_allowed} outside 0-100. Will default to 50%.',
            )


_GIG_AMOUNT_FIELDS = ("gross_amount", "tips", "per_diem", "other_income", "fees")


def _validate_gigs(
    gigs: Iterable[RawGig],
    payers_by_id: Dict[str, RawPayer],
    issues: _IssueCollector,
) -> None:
    for gig in gigs:
        label = gig.title or gig.id

        for field_name in _GIG_AMOUNT_FIELDS:
            amount: Decimal = getattr(gig, field_name)
            if amount < 0:
                issues.error(
                    IssueCategory.GIG, gig.id, field_name,
                    f'Gig "{label}" has negative {field_name.replace("_", " ")}: ${amount}',
                )

        if not is_valid_date(gig.date):
            issues.error(
                IssueCategory.GIG, gig.id, "date",
                f'Gig "{label}" has invalid date: {gig.date}',
            )

        payer = payers_by_id.get(gig.payer_id) if gig.payer_id else None
        if payer is None or _blank(payer.name):
            issues.warning(
                IssueCategory.GIG, gig.id, "payer_name",
                f'Gig "{label}" is missing payer name. '
                "This may be needed for 1099 reconciliation.",
            )

        if gig.paid is True and (payer is None or _blank(payer.tax_id_last4)):
            issues.warning(
                IssueCategory.GIG, gig.id, "payer_tax_id",
                f'Paid gig "{label}" is missing payer EIN/SSN. '
                "This is needed for 1099 reconciliation.",
            )


def _validate_mileage(trips: Iterable[RawMileage], issues: _IssueCollector) -> None:
    for index, trip in enumerate(trips):
        trip_id = trip.id or f"mileage-{index}"

        if trip.miles < 0:
            issues.error(
                IssueCategory.MILEAGE, trip_id, "miles",
                f"Mileage trip has negative miles: {trip.miles}",
            )

        if trip.deduction_amount is not None and trip.deduction_amount < 0:
            issues.error(
                IssueCategory.MILEAGE, trip_id, "deduction_amount",
                f"Mileage trip has negative deduction: ${trip.deduction_amount}",
            )

        if not is_valid_date(trip.date):
            issues.error(
                IssueCategory.MILEAGE, trip_id, "date",
                f"Mileage trip has invalid date: {trip.date}",
            )

        if _blank(trip.purpose):
            issues.warning(
                IssueCategory.MILEAGE, trip_id, "purpose",
                f'Mileage trip from "{trip.origin or ""}" to "{trip.destination or ""}" '
                "is missing business purpose.",
            )

        if _blank(trip.origin):
            issues.warning(
                IssueCategory.MILEAGE, trip_id, "origin",
                "Mileage trip is missing origin location.",
            )

        if _blank(trip.destination):
            issues.warning(
                IssueCategory.MILEAGE, trip_id, "destination",
                "Mileage trip is missing destination location.",
            )


def validate_export_data(
    gigs: Sequence[RawGig],
    expenses: Sequence[RawExpense],
    mileage: Sequence[RawMileage],
    payers: Sequence[RawPayer] = (),
) -> ExportValidationResult:
    """
    Validate export rows before offering tax-software formats.

    Args:
        gigs: Gig rows (paid and unpaid)
        expenses: Expense rows
        mileage: Mileage rows
        payers: Payer rows used to resolve gig payer names and tax IDs

    Returns:
        ExportValidationResult; is_valid is False when any blocking error exists
    """
    issues = _IssueCollector()
    payers_by_id = {payer.id: payer for payer in payers}

    _validate_expenses(expenses, issues)
    _validate_gigs(gigs, payers_by_id, issues)
    _validate_mileage(mileage, issues)

    result = ExportValidationResult(
        is_valid=not issues.errors,
        errors=issues.errors,
        warnings=issues.warnings,
    )
    logger.debug(
        "Export validation finished",
        extra={'extra_data': result.summary.to_dict()},
    )
    return result


def validate_export_rows(rows: ExportRows) -> ExportValidationResult:
    """validate_export_data() over a fetched snapshot."""
    return validate_export_data(rows.gigs, rows.expenses, rows.mileage, rows.payers)


def get_validation_summary(result: ExportValidationResult) -> str:
    """One-line status text for the export screen."""
    if result.is_valid and not result.warnings:
        return "All checks passed! Your data is ready to export."

    if not result.is_valid:
        return (
            f"{result.summary.blocking_errors} blocking error(s) found. "
            "Please fix these before exporting."
        )

    return (
        f"{result.summary.warnings} warning(s) found. "
        "You can still export, but review these issues."
    )


def group_issues_by_category(issues: Iterable[ValidationIssue]) -> Dict[str, List[ValidationIssue]]:
    """Group issues by row kind, preserving their order."""
    grouped: Dict[str, List[ValidationIssue]] = {}
    for issue in issues:
        grouped.setdefault(issue.category.value, []).append(issue)
    return grouped


def available_export_formats(result: ExportValidationResult) -> List[ExportFormat]:
    """
    Formats to offer for a validation result.

    Reviewable formats are always offered; tax-software formats only when
    there are no blocking errors.
    """
    formats = list(REVIEWABLE_FORMATS)
    if result.is_valid:
        formats.extend(TAX_SOFTWARE_FORMATS)
    return formats
