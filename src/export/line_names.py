"""Human-readable Schedule C line names for manual entry into tax software."""

from typing import Dict, Tuple, Union

from models.tax_export_package import ScheduleCRefNumber


SCHEDULE_C_LINE_NAMES: Dict[ScheduleCRefNumber, str] = {
    ScheduleCRefNumber.GROSS_RECEIPTS: "Gross receipts or sales",
    ScheduleCRefNumber.RETURNS_AND_ALLOWANCES: "Returns and allowances",
    ScheduleCRefNumber.COST_OF_GOODS_SOLD: "Cost of goods sold",
    ScheduleCRefNumber.OTHER_INCOME: "Other income",
    ScheduleCRefNumber.ADVERTISING: "Advertising",
    ScheduleCRefNumber.CAR_AND_TRUCK: "Car and truck expenses",
    ScheduleCRefNumber.COMMISSIONS_AND_FEES: "Commissions and fees",
    ScheduleCRefNumber.LEGAL_AND_PROFESSIONAL: "Legal and professional services",
    ScheduleCRefNumber.OFFICE_EXPENSE: "Office expense",
    ScheduleCRefNumber.RENT_OTHER_PROPERTY: "Rent or lease (other business property)",
    ScheduleCRefNumber.SUPPLIES: "Supplies",
    ScheduleCRefNumber.TRAVEL: "Travel",
    ScheduleCRefNumber.MEALS: "Deductible meals",
    ScheduleCRefNumber.OTHER_EXPENSES: "Other expenses",
}

# Order lines appear on the form: Part I income lines, then Part II expenses
SCHEDULE_C_LINE_ORDER: Tuple[ScheduleCRefNumber, ...] = (
    ScheduleCRefNumber.GROSS_RECEIPTS,
    ScheduleCRefNumber.RETURNS_AND_ALLOWANCES,
    ScheduleCRefNumber.COST_OF_GOODS_SOLD,
    ScheduleCRefNumber.OTHER_INCOME,
    ScheduleCRefNumber.ADVERTISING,
    ScheduleCRefNumber.CAR_AND_TRUCK,
    ScheduleCRefNumber.COMMISSIONS_AND_FEES,
    ScheduleCRefNumber.LEGAL_AND_PROFESSIONAL,
    ScheduleCRefNumber.OFFICE_EXPENSE,
    ScheduleCRefNumber.RENT_OTHER_PROPERTY,
    ScheduleCRefNumber.SUPPLIES,
    ScheduleCRefNumber.TRAVEL,
    ScheduleCRefNumber.MEALS,
    ScheduleCRefNumber.OTHER_EXPENSES,
)


def get_line_name(ref_number: Union[ScheduleCRefNumber, int]) -> str:
    """Line name for a ref number, or "Line <ref>" for unknown numbers."""
    try:
        return SCHEDULE_C_LINE_NAMES[ScheduleCRefNumber(ref_number)]
    except (ValueError, KeyError):
        return f"Line {int(ref_number)}"
