"""
Tests for the pre-export validator.

Blocking errors gate tax-software formats only; warnings never block.
"""

from decimal import Decimal

import pytest

from models.raw_rows import RawExpense, RawGig, RawMileage, RawPayer
from validation.export_validator import (
    ExportFormat,
    IssueCategory,
    IssueType,
    available_export_formats,
    get_validation_summary,
    group_issues_by_category,
    is_valid_date,
    validate_export_data,
    validate_export_rows,
)


def _expense(**overrides):
    values = dict(id="e1", date="2024-03-01", category="Supplies", amount="10.00",
                  description="Strings", irs_schedule_c_line="22")
    values.update(overrides)
    return RawExpense(**values)


def _gig(**overrides):
    values = dict(id="g1", date="2024-03-01", payer_id="p1", title="Set",
                  gross_amount="100", paid=True)
    values.update(overrides)
    return RawGig(**values)


def _trip(**overrides):
    values = dict(id="m1", date="2024-03-01", origin="Home", destination="Club",
                  purpose="Gig", miles="10")
    values.update(overrides)
    return RawMileage(**values)


PAYERS = (RawPayer(id="p1", name="Club", tax_id_last4="1234"),)


class TestDates:
    """YYYY-MM-DD date check."""

    @pytest.mark.parametrize("value", ["2024-02-29", "2023-12-31"])
    def test_valid(self, value):
        assert is_valid_date(value)

    @pytest.mark.parametrize("value", [None, "", "2024-2-1", "03/01/2024", "2023-02-29", "2024-13-01"])
    def test_invalid(self, value):
        assert not is_valid_date(value)


class TestCleanData:
    """Clean rows produce no issues."""

    def test_no_issues(self):
        result = validate_export_data([_gig()], [_expense()], [_trip()], PAYERS)
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []
        assert get_validation_summary(result) == "All checks passed! Your data is ready to export."


class TestBlockingErrors:
    """Errors that block tax-software exports."""

    def test_missing_schedule_c_line(self):
        result = validate_export_data([], [_expense(irs_schedule_c_line="  ")], [])
        assert not result.is_valid
        issue = result.errors[0]
        assert issue.type is IssueType.ERROR
        assert issue.category is IssueCategory.EXPENSE
        assert issue.field == "irs_schedule_c_line"
        assert issue.id == "e1"

    def test_negative_expense(self):
        result = validate_export_data([], [_expense(amount="-5")], [])
        assert [i.field for i in result.errors] == ["amount"]

    def test_invalid_expense_date(self):
        result = validate_export_data([], [_expense(date="2024/03/01")], [])
        assert [i.field for i in result.errors] == ["date"]

    def test_negative_gig_amounts(self):
        result = validate_export_data([_gig(gross_amount="-1", fees="-2")], [], [], PAYERS)
        assert [i.field for i in result.errors] == ["gross_amount", "fees"]

    def test_invalid_gig_date(self):
        result = validate_export_data([_gig(date=None)], [], [], PAYERS)
        assert [i.field for i in result.errors] == ["date"]

    def test_negative_miles(self):
        result = validate_export_data([], [], [_trip(miles="-3")])
        assert [i.field for i in result.errors] == ["miles"]

    def test_negative_mileage_deduction(self):
        result = validate_export_data([], [], [_trip(deduction_amount="-1.00")])
        assert [i.field for i in result.errors] == ["deduction_amount"]

    def test_summary_text(self):
        result = validate_export_data([], [_expense(amount="-5", date="bad")], [])
        assert result.summary.blocking_errors == 2
        assert get_validation_summary(result).startswith("2 blocking error(s) found.")


class TestWarnings:
    """Warnings never block."""

    def test_meals_without_percent(self):
        result = validate_export_data(
            [], [_expense(category="Meals & Entertainment", irs_schedule_c_line="24b")], []
        )
        assert result.is_valid
        assert [i.field for i in result.warnings] == ["meals_percent_allowed"]
        assert "Will default to 50%" in result.warnings[0].message

    def test_meals_by_line_code_only(self):
        result = validate_export_data([], [_expense(category="Other", irs_schedule_c_line="24b")], [])
        assert [i.field for i in result.warnings] == ["meals_percent_allowed"]

    def test_meals_with_zero_percent_is_explicit(self):
        expense = _expense(category="Meals & Entertainment", irs_schedule_c_line="24b",
                           meals_percent_allowed="0")
        assert validate_export_data([], [expense], []).warnings == []

    @pytest.mark.parametrize("percent", ["150", "-5"])
    def test_meals_percent_out_of_range(self, percent):
        expense = _expense(category="Meals & Entertainment", irs_schedule_c_line="24b",
                           meals_percent_allowed=percent)
        result = validate_export_data([], [expense], [])
        assert result.is_valid
        assert [i.field for i in result.warnings] == ["meals_percent_allowed"]
        assert "outside 0-100" in result.warnings[0].message
        assert "Will default to 50%" in result.warnings[0].message

    def test_meals_whole_number_percent_accepted(self):
        expense = _expense(category="Meals & Entertainment", irs_schedule_c_line="24b",
                           meals_percent_allowed="80")
        assert validate_export_data([], [expense], []).warnings == []

    def test_missing_payer_name_and_tax_id(self):
        result = validate_export_data([_gig(payer_id=None)], [], [])
        assert result.is_valid
        assert [i.field for i in result.warnings] == ["payer_name", "payer_tax_id"]

    def test_unpaid_gig_tax_id_not_required(self):
        payers = (RawPayer(id="p1", name="Club"),)
        result = validate_export_data([_gig(paid=False)], [], [], payers)
        assert result.warnings == []

    def test_paid_gig_missing_tax_id(self):
        payers = (RawPayer(id="p1", name="Club"),)
        result = validate_export_data([_gig()], [], [], payers)
        assert [i.field for i in result.warnings] == ["payer_tax_id"]

    def test_mileage_missing_context(self):
        result = validate_export_data([], [], [_trip(purpose=None, origin="", destination=" ")])
        assert result.is_valid
        assert [i.field for i in result.warnings] == ["purpose", "origin", "destination"]
        assert get_validation_summary(result).startswith("3 warning(s) found.")

    def test_rows_not_mutated(self):
        expense = _expense(amount="-5")
        validate_export_data([], [expense], [])
        assert expense.amount == Decimal("-5")


class TestPresentation:
    """Grouping, serialisation and format gating."""

    def test_group_by_category(self):
        result = validate_export_data([_gig(payer_id=None)], [_expense(amount="-1")], [_trip(purpose="")])
        grouped = group_issues_by_category(result.errors + result.warnings)
        assert set(grouped) == {"expense", "gig", "mileage"}
        assert len(grouped["gig"]) == 2

    def test_to_dict(self):
        result = validate_export_data([], [_expense(amount="-1")], [])
        data = result.to_dict()
        assert data["is_valid"] is False
        assert data["summary"] == {"total_issues": 1, "blocking_errors": 1, "warnings": 0}
        assert data["errors"][0]["type"] == "error"
        assert data["errors"][0]["category"] == "expense"

    def test_formats_when_valid(self):
        result = validate_export_data([], [_expense()], [])
        formats = available_export_formats(result)
        assert ExportFormat.TXF in formats
        assert ExportFormat.TURBOTAX_ONLINE_PACK in formats
        assert ExportFormat.TAXACT_PACK in formats

    def test_formats_when_blocked(self):
        result = validate_export_data([], [_expense(amount="-1")], [])
        formats = available_export_formats(result)
        assert ExportFormat.TXF not in formats
        assert ExportFormat.TAXACT_PACK not in formats
        assert formats == [
            ExportFormat.CSV_BUNDLE,
            ExportFormat.EXCEL_WORKBOOK,
            ExportFormat.PDF_SUMMARY,
            ExportFormat.JSON_BACKUP,
        ]

    def test_validate_snapshot(self, sample_rows):
        result = validate_export_rows(sample_rows)
        assert result.is_valid
        # Meals without percent, and the payerless paid gig (name and tax ID)
        assert sorted(i.field for i in result.warnings) == [
            "meals_percent_allowed", "payer_name", "payer_tax_id",
        ]
