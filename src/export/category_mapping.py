"""
Expense category to Schedule C ref number mapping.

Every category string maps to exactly one ref number. Known categories are
a closed enumeration; anything else parses to ExpenseCategory.UNKNOWN and
lands in Other expenses under its literal name, so no expense is dropped
or merged into an anonymous bucket.

The rule table below must cover every ExpenseCategory member; this is
checked when the module is imported.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, NamedTuple, Optional

from calculator.decimal_math import HUNDRED, ONE, ZERO, Numeric, format_money, to_decimal
from config.export_config import ExportConfig
from models.tax_export_package import ScheduleCRefNumber


class ExpenseCategory(str, Enum):
    """Expense categories the store can hold, plus UNKNOWN for anything else."""
    MEALS_AND_ENTERTAINMENT = "Meals & Entertainment"
    TRAVEL = "Travel"
    LODGING = "Lodging"
    EQUIPMENT_GEAR = "Equipment/Gear"
    SUPPLIES = "Supplies"
    SOFTWARE_SUBSCRIPTIONS = "Software/Subscriptions"
    MARKETING_PROMOTION = "Marketing/Promotion"
    PROFESSIONAL_FEES = "Professional Fees"
    EDUCATION_TRAINING = "Education/Training"
    RENT_STUDIO = "Rent/Studio"
    OTHER = "Other"
    UNKNOWN = "Unknown"


# Older UI labels still present in imported data
LEGACY_CATEGORY_ALIASES: Dict[str, ExpenseCategory] = {
    "Meals": ExpenseCategory.MEALS_AND_ENTERTAINMENT,
    "Equipment": ExpenseCategory.EQUIPMENT_GEAR,
    "Software": ExpenseCategory.SOFTWARE_SUBSCRIPTIONS,
    "Marketing": ExpenseCategory.MARKETING_PROMOTION,
    "Fees": ExpenseCategory.PROFESSIONAL_FEES,
    "Education": ExpenseCategory.EDUCATION_TRAINING,
    "Rent": ExpenseCategory.RENT_STUDIO,
}


class _CategoryRule(NamedTuple):
    ref_number: ScheduleCRefNumber
    limited_percent: bool  # deductible percent comes from the meals setting


_CATEGORY_RULES: Dict[ExpenseCategory, _CategoryRule] = {
    ExpenseCategory.MEALS_AND_ENTERTAINMENT: _CategoryRule(ScheduleCRefNumber.MEALS, True),
    ExpenseCategory.TRAVEL: _CategoryRule(ScheduleCRefNumber.TRAVEL, False),
    ExpenseCategory.LODGING: _CategoryRule(ScheduleCRefNumber.TRAVEL, False),
    ExpenseCategory.MARKETING_PROMOTION: _CategoryRule(ScheduleCRefNumber.ADVERTISING, False),
    ExpenseCategory.PROFESSIONAL_FEES: _CategoryRule(ScheduleCRefNumber.LEGAL_AND_PROFESSIONAL, False),
    ExpenseCategory.SOFTWARE_SUBSCRIPTIONS: _CategoryRule(ScheduleCRefNumber.OFFICE_EXPENSE, False),
    ExpenseCategory.SUPPLIES: _CategoryRule(ScheduleCRefNumber.SUPPLIES, False),
    ExpenseCategory.RENT_STUDIO: _CategoryRule(ScheduleCRefNumber.RENT_OTHER_PROPERTY, False),
    ExpenseCategory.EQUIPMENT_GEAR: _CategoryRule(ScheduleCRefNumber.OTHER_EXPENSES, False),
    ExpenseCategory.EDUCATION_TRAINING: _CategoryRule(ScheduleCRefNumber.OTHER_EXPENSES, False),
    ExpenseCategory.OTHER: _CategoryRule(ScheduleCRefNumber.OTHER_EXPENSES, False),
    ExpenseCategory.UNKNOWN: _CategoryRule(ScheduleCRefNumber.OTHER_EXPENSES, False),
}

_unmapped = set(ExpenseCategory) - set(_CATEGORY_RULES)
if _unmapped:
    raise RuntimeError(
        "Expense categories without a Schedule C rule: "
        + ", ".join(sorted(c.name for c in _unmapped))
    )

_EQUIPMENT_PATTERN = re.compile(r"\b(equipment|gear)\b", re.IGNORECASE)


@dataclass(frozen=True)
class CategoryMapping:
    """Where an expense lands on Schedule C and how much of it counts."""
    ref_number: ScheduleCRefNumber
    deductible_percent: Decimal
    other_description: Optional[str] = None


def parse_category(category: Optional[str]) -> ExpenseCategory:
    """
    Resolve a stored category string to an ExpenseCategory.

    Blank values read as OTHER; strings that match neither a category nor a
    legacy alias read as UNKNOWN.
    """
    text = (category or "").strip()
    if not text:
        return ExpenseCategory.OTHER
    if text in LEGACY_CATEGORY_ALIASES:
        return LEGACY_CATEGORY_ALIASES[text]
    try:
        parsed = ExpenseCategory(text)
    except ValueError:
        return ExpenseCategory.UNKNOWN
    return parsed


def category_label(category: Optional[str]) -> str:
    """
    Label an expense is reported under.

    Known categories use their canonical name; unknown ones keep the literal
    string so the itemized Other expenses line says what the user typed.
    """
    parsed = parse_category(category)
    if parsed is ExpenseCategory.UNKNOWN:
        return (category or "").strip()
    return parsed.value


def normalize_percent(value: Optional[Numeric]) -> Optional[Decimal]:
    """
    Normalise a stored deductible percent to a fraction.

    0.5 stays 0.5; 50 (a whole-number percent) becomes 0.5. Values outside
    0..100 are not usable and return None.
    """
    if value is None:
        return None
    pct = to_decimal(value)
    if ZERO <= pct <= ONE:
        return pct
    if ONE < pct <= HUNDRED:
        return pct / HUNDRED
    return None


def map_category(
    category: Optional[str],
    override_percent: Optional[Numeric] = None,
    config: Optional[ExportConfig] = None,
) -> CategoryMapping:
    """
    Map an expense category to its Schedule C ref number and deductible percent.

    Args:
        category: Category string as stored on the expense
        override_percent: Stored meals percent for this expense, if any. Only
            Meals & Entertainment has a configurable percent; the override
            wins over the configured default when it is usable.
        config: Constants table (default meals percent, app label)

    Returns:
        CategoryMapping; other_description is set for Other expenses lines.
    """
    config = config or ExportConfig.default()
    parsed = parse_category(category)
    rule = _CATEGORY_RULES[parsed]

    deductible_percent = ONE
    if rule.limited_percent:
        override = normalize_percent(override_percent)
        deductible_percent = override if override is not None else config.default_meals_percent

    other_description = None
    if rule.ref_number == ScheduleCRefNumber.OTHER_EXPENSES:
        other_description = f"{config.app_label}: {category_label(category) or ExpenseCategory.OTHER.value}"

    return CategoryMapping(
        ref_number=rule.ref_number,
        deductible_percent=deductible_percent,
        other_description=other_description,
    )


def is_equipment_category(category: Optional[str]) -> bool:
    """True for equipment/gear purchases, which are depreciation candidates."""
    if parse_category(category) is ExpenseCategory.EQUIPMENT_GEAR:
        return True
    return bool(_EQUIPMENT_PATTERN.search(category or ""))


def asset_review_reason(
    category: Optional[str],
    amount: Numeric,
    config: Optional[ExportConfig] = None,
) -> Optional[str]:
    """
    Reason an expense should be reviewed as a possible capital asset, or None.

    Equipment/gear takes priority over the large-amount threshold; at most
    one reason is returned.
    """
    config = config or ExportConfig.default()
    if is_equipment_category(category):
        return "Equipment/gear purchase; review for depreciation or Section 179 treatment."
    threshold = config.asset_capitalization_threshold
    if to_decimal(amount) >= threshold:
        return (
            f"Amount at or above the {format_money(threshold)} capitalization threshold; "
            "review whether it should be capitalized."
        )
    return None
