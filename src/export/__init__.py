"""Tax Export Module.

Builds the canonical Schedule C export package for self-employed workers:
- Category to Schedule C line mapping
- Standard mileage rates
- Package builder and reconciliation checks
- Canonical JSON serialization

The export service (export.service) is imported directly; it depends on the
validation package, which itself reads the category mapping from here.
"""

from export.category_mapping import (
    CategoryMapping,
    ExpenseCategory,
    asset_review_reason,
    map_category,
    parse_category,
)
from export.errors import (
    PackageInvariantError,
    TaxExportError,
    TaxExportErrorCode,
)
from export.line_names import get_line_name
from export.mileage_rates import is_published_rate, rate_for_year
from export.options import ExportOptions
from export.package_builder import TaxExportPackageBuilder, build_tax_export_package
from export.reconciliation import check_package
from export.serialization import package_to_dict, package_to_json, package_totals_summary

__all__ = [
    # Mapping
    "CategoryMapping",
    "ExpenseCategory",
    "asset_review_reason",
    "map_category",
    "parse_category",
    "get_line_name",
    # Mileage
    "is_published_rate",
    "rate_for_year",
    # Errors
    "PackageInvariantError",
    "TaxExportError",
    "TaxExportErrorCode",
    # Builder
    "ExportOptions",
    "TaxExportPackageBuilder",
    "build_tax_export_package",
    "check_package",
    # Serialization
    "package_to_dict",
    "package_to_json",
    "package_totals_summary",
]
