"""
Reconciliation checks for a built TaxExportPackage.

check_package() returns a human-readable description of every violated
invariant; an empty list means the package reconciles. The builder runs it
on every package before returning, so renderers can trust the totals.
"""

from decimal import Decimal
from typing import Iterable, List, Tuple

from calculator.decimal_math import round_cents, sum_money
from models.tax_export_package import (
    IncomeSource,
    ScheduleCRefNumber,
    TaxExportPackage,
)


def _monetary_fields(package: TaxExportPackage) -> Iterable[Tuple[str, Decimal]]:
    sc = package.schedule_c
    yield "schedule_c.gross_receipts", sc.gross_receipts
    yield "schedule_c.returns_allowances", sc.returns_allowances
    yield "schedule_c.cogs", sc.cogs
    yield "schedule_c.other_income", sc.other_income
    yield "schedule_c.expenses_total", sc.expenses_total
    yield "schedule_c.net_profit", sc.net_profit
    for ref, amount in sc.expense_totals_by_ref_number.items():
        yield f"schedule_c.expense_totals_by_ref_number[{int(ref)}]", amount
    for item in sc.other_expenses_breakdown:
        yield f"schedule_c.other_expenses_breakdown[{item.name}]", item.amount

    for item in package.schedule_c_line_items:
        yield f"line_item[{int(item.ref_number)}].raw_signed_amount", item.raw_signed_amount
        yield f"line_item[{int(item.ref_number)}].amount_for_entry", item.amount_for_entry
    for row in package.income_rows:
        yield f"income_rows[{row.id}].amount", row.amount
        yield f"income_rows[{row.id}].fees", row.fees
        yield f"income_rows[{row.id}].net_amount", row.net_amount
    for row in package.expense_rows:
        yield f"expense_rows[{row.id}].amount", row.amount
        yield f"expense_rows[{row.id}].deductible_amount", row.deductible_amount
    for row in package.mileage_rows:
        yield f"mileage_rows[{row.id}].deduction_amount", row.deduction_amount
    for row in package.invoice_rows:
        yield f"invoice_rows[{row.id}].total_amount", row.total_amount
    for row in package.subcontractor_payout_rows:
        yield f"subcontractor_payout_rows[{row.id}].amount", row.amount
    for row in package.payer_summary_rows:
        label = row.payer_id or "unknown"
        yield f"payer_summary_rows[{label}].gross_amount", row.gross_amount
        yield f"payer_summary_rows[{label}].fees_total", row.fees_total
        yield f"payer_summary_rows[{label}].net_amount", row.net_amount
    yield "mileage_summary.mileage_deduction_amount", package.mileage_summary.mileage_deduction_amount


def check_package(package: TaxExportPackage) -> List[str]:
    """
    Check a package against its reconciliation invariants.

    Returns:
        List of violation messages (empty when the package reconciles)
    """
    violations: List[str] = []
    sc = package.schedule_c
    meta = package.metadata
    totals_sum = sum_money(sc.expense_totals_by_ref_number.values())

    expected_net = round_cents(
        sc.gross_receipts - sc.returns_allowances - sc.cogs - totals_sum + sc.other_income
    )
    if sc.net_profit != expected_net:
        violations.append(f"net_profit {sc.net_profit} != expected {expected_net}")

    if sc.expenses_total != totals_sum:
        violations.append(
            f"expenses_total {sc.expenses_total} != sum of expense totals {totals_sum}"
        )

    fees_total = sum_money(
        row.fees for row in package.income_rows if row.source is IncomeSource.GIG
    )
    fees_ref = ScheduleCRefNumber.COMMISSIONS_AND_FEES
    expected_totals = round_cents(
        sum_money(row.deductible_amount for row in package.expense_rows)
        + sum_money(row.deduction_amount for row in package.mileage_rows)
        + (fees_total if meta.include_fees_as_deduction else 0)
    )
    if totals_sum != expected_totals:
        violations.append(
            f"expense totals {totals_sum} != deductible rows, mileage and fees {expected_totals}"
        )

    if meta.include_fees_as_deduction:
        if sc.returns_allowances != 0:
            violations.append("fees treated as a deduction but returns_allowances is non-zero")
    else:
        if fees_ref in sc.expense_totals_by_ref_number:
            violations.append("fees reported as returns and allowances and as an expense line")
        if sc.returns_allowances != fees_total:
            violations.append(
                f"returns_allowances {sc.returns_allowances} != gig fees {fees_total}"
            )

    for name, amount in _monetary_fields(package):
        if round_cents(amount) != amount or amount.as_tuple().exponent != -2:
            violations.append(f"{name} is not rounded to cents: {amount}")

    for row in package.income_rows:
        if row.currency != meta.currency:
            violations.append(f"income row {row.id} currency {row.currency} != {meta.currency}")
    for row in package.invoice_rows:
        if row.currency != meta.currency:
            violations.append(f"invoice row {row.id} currency {row.currency} != {meta.currency}")

    breakdown_sum = sum_money(item.amount for item in sc.other_expenses_breakdown)
    other_total = sc.expense_totals_by_ref_number.get(ScheduleCRefNumber.OTHER_EXPENSES)
    if sc.other_expenses_breakdown or other_total is not None:
        if other_total != breakdown_sum:
            violations.append(
                f"other expenses total {other_total} != breakdown sum {breakdown_sum}"
            )
    names = [item.name for item in sc.other_expenses_breakdown]
    if len(names) != len(set(names)):
        violations.append("other expenses breakdown has duplicate names")

    return violations
