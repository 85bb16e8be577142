"""
Canonical serialization of a TaxExportPackage.

package_to_json() is the JSON backup format and the reference for
reproducibility: two builds from the same snapshot, options and clock
produce the same bytes. Keys are sorted and Decimals are written as
strings with their two cent places, so no float ever enters the output.

Renderers that need headline numbers read package_totals_summary() rather
than summing rows themselves.
"""

import json
from typing import Any, Dict, Optional

from calculator.decimal_math import format_cents
from models.tax_export_package import TaxExportPackage
from .line_names import get_line_name


def package_to_dict(package: TaxExportPackage) -> Dict[str, Any]:
    """JSON-compatible dict (Decimals as strings, enums as values)."""
    return json.loads(package.model_dump_json())


def package_to_json(package: TaxExportPackage, indent: Optional[int] = None) -> str:
    """
    Deterministic JSON document for a package.

    Args:
        package: Built package
        indent: Pretty-print indent; None gives the compact canonical form
    """
    separators = (",", ":") if indent is None else (",", ": ")
    return json.dumps(
        package_to_dict(package),
        sort_keys=True,
        indent=indent,
        separators=separators,
        ensure_ascii=False,
    )


def package_totals_summary(package: TaxExportPackage) -> Dict[str, Any]:
    """
    Headline totals for summaries and cover pages.

    All values are read from the package; nothing is re-summed or re-rounded.
    """
    sc = package.schedule_c
    mileage = package.mileage_summary
    return {
        "tax_year": package.metadata.tax_year,
        "date_start": package.metadata.date_start,
        "date_end": package.metadata.date_end,
        "currency": package.metadata.currency,
        "gross_receipts": format_cents(sc.gross_receipts),
        "returns_allowances": format_cents(sc.returns_allowances),
        "cogs": format_cents(sc.cogs),
        "other_income": format_cents(sc.other_income),
        "expenses_total": format_cents(sc.expenses_total),
        "net_profit": format_cents(sc.net_profit),
        "expense_lines": [
            {
                "ref_number": int(ref),
                "line_name": get_line_name(ref),
                "amount": format_cents(amount),
            }
            for ref, amount in sc.expense_totals_by_ref_number.items()
        ],
        "mileage_deduction": format_cents(mileage.mileage_deduction_amount),
        "business_miles": str(mileage.total_business_miles),
        "income_rows": len(package.income_rows),
        "expense_rows": len(package.expense_rows),
        "mileage_rows": len(package.mileage_rows),
        "receipts": len(package.receipts_manifest),
        "warnings": list(sc.warnings),
    }
