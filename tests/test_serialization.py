"""
Tests for canonical package serialization.
"""

import json

import pytest

from export.options import ExportOptions
from export.package_builder import build_tax_export_package
from export.serialization import package_to_dict, package_to_json, package_totals_summary


@pytest.fixture
def package(sample_rows, fixed_clock):
    return build_tax_export_package(sample_rows, ExportOptions(tax_year=2024), clock=fixed_clock)


class TestPackageToJson:
    """Canonical JSON output."""

    def test_compact_and_sorted(self, package):
        text = package_to_json(package)
        data = json.loads(text)
        assert list(data) == sorted(data)
        assert text == json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)

    def test_decimals_are_strings_with_cents(self, package):
        data = package_to_dict(package)
        assert data["schedule_c"]["gross_receipts"] == "2815.00"
        assert data["schedule_c"]["net_profit"] == "1738.87"
        assert data["income_rows"][0]["fees"] == "15.00"
        assert data["mileage_rows"][0]["rate"] == "0.67"

    def test_enums_as_values(self, package):
        data = package_to_dict(package)
        assert data["income_rows"][-1]["source"] == "invoice_payment"
        assert data["expense_rows"][0]["ref_number"] == 294

    def test_expense_totals_keyed_by_ref_number(self, package):
        totals = package_to_dict(package)["schedule_c"]["expense_totals_by_ref_number"]
        assert totals["306"] == "75.38"
        assert totals["302"] == "470.00"

    def test_indent(self, package):
        pretty = package_to_json(package, indent=2)
        assert json.loads(pretty) == json.loads(package_to_json(package))
        assert "\n" in pretty


class TestTotalsSummary:
    """Headline totals read from the package."""

    def test_values(self, package):
        summary = package_totals_summary(package)
        assert summary["gross_receipts"] == "2815.00"
        assert summary["expenses_total"] == "1076.13"
        assert summary["net_profit"] == "1738.87"
        assert summary["mileage_deduction"] == "75.38"
        assert summary["business_miles"] == "112.5"
        assert summary["receipts"] == 2
        assert len(summary["warnings"]) == 2

    def test_expense_lines(self, package):
        lines = package_totals_summary(package)["expense_lines"]
        assert lines[0] == {
            "ref_number": 306,
            "line_name": "Car and truck expenses",
            "amount": "75.38",
        }
        assert [line["ref_number"] for line in lines] == [306, 307, 301, 317, 294, 302]
