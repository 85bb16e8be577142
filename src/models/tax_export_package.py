"""
Tax Export Package - canonical Schedule C export artifact.

A TaxExportPackage is built once per (owner, tax year, options) request and
never changes afterwards. Every output format (CSV bundle, Excel workbook,
PDF summary, TXF and tax-software packs) reads its numbers from here; no
renderer re-derives a total, re-rounds an amount, or re-maps a category.

Reference: IRS Instructions for Schedule C (Form 1040); ref numbers are the
TXF reference codes tax software uses to identify Schedule C lines.
"""

from decimal import Decimal
from enum import Enum, IntEnum
from typing import Dict, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ScheduleCRefNumber(IntEnum):
    """TXF reference numbers for the Schedule C lines the builder fills."""
    GROSS_RECEIPTS = 293
    MEALS = 294
    COST_OF_GOODS_SOLD = 295
    RETURNS_AND_ALLOWANCES = 296
    LEGAL_AND_PROFESSIONAL = 298
    RENT_OTHER_PROPERTY = 300
    SUPPLIES = 301
    OTHER_EXPENSES = 302
    OTHER_INCOME = 303
    ADVERTISING = 304
    CAR_AND_TRUCK = 306
    COMMISSIONS_AND_FEES = 307
    OFFICE_EXPENSE = 313
    TRAVEL = 317


class IncomeSource(str, Enum):
    """Where an income row came from."""
    GIG = "gig"
    INVOICE_PAYMENT = "invoice_payment"


class _ReadOnlyDict(dict):
    """A dict that refuses writes after construction."""

    def _readonly(self, *args, **kwargs):
        raise TypeError(f"{type(self).__name__} is read-only")

    __setitem__ = __delitem__ = __ior__ = _readonly
    clear = pop = popitem = setdefault = update = _readonly

    def __reduce__(self):
        return (type(self), (dict(self),))


class _PackageModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class RoundingPolicy(_PackageModel):
    mode: Literal["half_away_from_zero"] = "half_away_from_zero"
    precision: Literal[2] = 2


class TaxExportMetadata(_PackageModel):
    """When, for what period, and under which rules the package was built."""
    tax_year: int
    date_start: str
    date_end: str
    created_at: str = Field(description="ISO-8601 UTC build timestamp")
    timezone: str
    basis: Literal["cash"] = "cash"
    currency: Literal["USD"] = "USD"
    rounding: RoundingPolicy = Field(default_factory=RoundingPolicy)
    schema_version: str
    config_version: str = Field(description="Version of the constants table used")
    include_tips: bool
    include_fees_as_deduction: bool


class OtherExpenseItem(_PackageModel):
    """One itemized bucket of Schedule C Part V (Other expenses)."""
    name: str
    amount: Decimal


class ScheduleCSection(_PackageModel):
    """
    Schedule C totals.

    net_profit = gross_receipts - returns_allowances - cogs
                 - sum(expense_totals_by_ref_number) + other_income
    """
    gross_receipts: Decimal
    returns_allowances: Decimal
    cogs: Decimal
    other_income: Decimal
    expense_totals_by_ref_number: Dict[ScheduleCRefNumber, Decimal]
    other_expenses_breakdown: Tuple[OtherExpenseItem, ...] = ()
    expenses_total: Decimal
    net_profit: Decimal
    warnings: Tuple[str, ...] = ()

    @field_validator("expense_totals_by_ref_number")
    @classmethod
    def _freeze_expense_totals(cls, value):
        return _ReadOnlyDict(value)


class ScheduleCLineItem(_PackageModel):
    """
    A line ready for manual entry into tax software.

    raw_signed_amount is negative for expenses; amount_for_entry is always
    the positive number a person types into the expense line.
    """
    ref_number: ScheduleCRefNumber
    line_name: str
    description: str
    raw_signed_amount: Decimal
    amount_for_entry: Decimal
    notes: Optional[str] = None


class IncomeRow(_PackageModel):
    id: str
    source: IncomeSource
    received_date: str
    payer_id: Optional[str] = None
    payer_name: Optional[str] = None
    payer_email: Optional[str] = None
    payer_phone: Optional[str] = None
    description: str
    amount: Decimal
    fees: Decimal
    net_amount: Decimal
    currency: str
    related_invoice_id: Optional[str] = None
    related_gig_id: Optional[str] = None


class ExpenseRow(_PackageModel):
    id: str
    date: str
    merchant: Optional[str] = None
    description: str
    amount: Decimal
    gl_category: str
    ref_number: ScheduleCRefNumber
    deductible_percent: Decimal
    deductible_amount: Decimal
    currency: str
    receipt_url: Optional[str] = None
    notes: Optional[str] = None
    related_gig_id: Optional[str] = None
    potential_asset_review: bool = False
    potential_asset_reason: Optional[str] = None


class MileageRow(_PackageModel):
    id: str
    date: str
    origin: Optional[str] = None
    destination: Optional[str] = None
    purpose: Optional[str] = None
    miles: Decimal
    rate: Decimal
    deduction_amount: Decimal
    currency: str
    is_estimate: bool = True
    notes: Optional[str] = None
    related_gig_id: Optional[str] = None


class InvoiceRow(_PackageModel):
    id: str
    invoice_number: str
    client_name: str
    invoice_date: str
    due_date: str
    status: str
    total_amount: Decimal
    currency: str


class SubcontractorPayoutRow(_PackageModel):
    id: str
    gig_id: Optional[str] = None
    subcontractor_id: Optional[str] = None
    subcontractor_name: Optional[str] = None
    amount: Decimal
    note: Optional[str] = None
    created_at: Optional[str] = None


class ReceiptsManifestItem(_PackageModel):
    transaction_id: str
    receipt_url: str
    kind: Literal["expense"] = "expense"


class PayerSummaryRow(_PackageModel):
    """Per-payer rollup for 1099 reconciliation."""
    payer_id: Optional[str] = None
    payer_name: Optional[str] = None
    payer_email: Optional[str] = None
    payer_phone: Optional[str] = None
    payments_count: int
    gross_amount: Decimal
    fees_total: Decimal
    net_amount: Decimal
    first_payment_date: str
    last_payment_date: str
    notes: Optional[str] = None


class MileageSummary(_PackageModel):
    tax_year: int
    total_business_miles: Decimal
    standard_rate_used: Decimal
    mileage_deduction_amount: Decimal
    entries_count: int
    is_estimate_any: bool
    notes: str


class TaxExportPackage(_PackageModel):
    """The single source of truth for every tax export format."""
    metadata: TaxExportMetadata
    schedule_c: ScheduleCSection
    schedule_c_line_items: Tuple[ScheduleCLineItem, ...] = ()
    income_rows: Tuple[IncomeRow, ...] = ()
    expense_rows: Tuple[ExpenseRow, ...] = ()
    mileage_rows: Tuple[MileageRow, ...] = ()
    invoice_rows: Tuple[InvoiceRow, ...] = ()
    subcontractor_payout_rows: Tuple[SubcontractorPayoutRow, ...] = ()
    receipts_manifest: Tuple[ReceiptsManifestItem, ...] = ()
    payer_summary_rows: Tuple[PayerSummaryRow, ...] = ()
    mileage_summary: MileageSummary
