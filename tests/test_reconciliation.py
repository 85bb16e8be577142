"""
Tests for package reconciliation checks.

A tampered package must report each broken invariant, and the builder must
refuse to return a package that does not reconcile.
"""

from decimal import Decimal
from unittest.mock import patch

import pytest

from export.errors import PackageInvariantError
from export.options import ExportOptions
from export.package_builder import build_tax_export_package
from export.reconciliation import check_package
from models.tax_export_package import OtherExpenseItem, ScheduleCRefNumber


@pytest.fixture
def package(sample_rows, fixed_clock):
    return build_tax_export_package(sample_rows, ExportOptions(tax_year=2024), clock=fixed_clock)


def _with_schedule_c(package, **changes):
    schedule_c = package.schedule_c.model_copy(update=changes)
    return package.model_copy(update={"schedule_c": schedule_c})


class TestCheckPackage:
    """Each invariant is checked independently."""

    def test_clean_package(self, package):
        assert check_package(package) == []

    def test_net_profit_mismatch(self, package):
        tampered = _with_schedule_c(package, net_profit=Decimal("1.00"))
        violations = check_package(tampered)
        assert len(violations) == 1
        assert violations[0].startswith("net_profit")

    def test_expenses_total_mismatch(self, package):
        tampered = _with_schedule_c(package, expenses_total=Decimal("999.99"))
        assert any(v.startswith("expenses_total") for v in check_package(tampered))

    def test_unrounded_amount(self, package):
        tampered = _with_schedule_c(
            package,
            gross_receipts=Decimal("2815.001"),
            net_profit=Decimal("1738.871"),
        )
        violations = check_package(tampered)
        assert any("gross_receipts is not rounded" in v for v in violations)

    def test_breakdown_mismatch(self, package):
        tampered = _with_schedule_c(
            package,
            other_expenses_breakdown=(OtherExpenseItem(name="GigLedger: Other", amount=Decimal("1.00")),),
        )
        assert any(v.startswith("other expenses total") for v in check_package(tampered))

    def test_fee_treatment_both_ways(self, package):
        tampered = _with_schedule_c(package, returns_allowances=Decimal("75.00"))
        violations = check_package(tampered)
        assert any("returns_allowances is non-zero" in v for v in violations)

    def test_currency_mismatch(self, package):
        income = list(package.income_rows)
        income[0] = income[0].model_copy(update={"currency": "EUR"})
        tampered = package.model_copy(update={"income_rows": tuple(income)})
        assert any("currency EUR" in v for v in check_package(tampered))

    def test_totals_must_match_rows(self, package):
        totals = dict(package.schedule_c.expense_totals_by_ref_number)
        totals[ScheduleCRefNumber.SUPPLIES] = Decimal("46.50")
        tampered = _with_schedule_c(
            package,
            expense_totals_by_ref_number=totals,
            expenses_total=Decimal("1077.13"),
            net_profit=Decimal("1737.87"),
        )
        violations = check_package(tampered)
        assert len(violations) == 1
        assert violations[0].startswith("expense totals")


class TestBuilderRefusesBrokenPackages:
    """The builder raises instead of returning a package with violations."""

    def test_invariant_error(self, sample_rows, fixed_clock):
        with patch("export.package_builder.check_package", return_value=["broken"]):
            with pytest.raises(PackageInvariantError) as exc_info:
                build_tax_export_package(sample_rows, ExportOptions(tax_year=2024), clock=fixed_clock)
        assert exc_info.value.violations == ["broken"]
        assert "broken" in str(exc_info.value)
