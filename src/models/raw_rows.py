"""
Raw input rows for the tax export builder.

These mirror the rows the store layer returns for one owner and one date
range: gigs, expenses, mileage trips, invoices, invoice payments,
subcontractor payments, and payers. Fields are deliberately loose (dates
are strings, most text is optional, amounts may be negative) because the
validation pre-pass must be able to see and report bad data rather than
have it rejected on the way in.
"""

from decimal import Decimal
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ._decimal_utils import Amount, OptionalAmount


class RawRow(BaseModel):
    """Base for raw store rows: unknown columns are ignored, rows are immutable."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class RawPayer(RawRow):
    """A payer (client, venue, platform) that pays for gigs."""
    id: str
    name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    tax_id_type: Optional[str] = Field(None, description="'ssn' or 'ein'")
    tax_id_last4: Optional[str] = Field(None, description="Last 4 digits of SSN/EIN only")
    expect_1099: Optional[bool] = None


class RawGig(RawRow):
    """A gig (engagement) and what it paid."""
    id: str
    date: Optional[str] = None
    payer_id: Optional[str] = None
    title: Optional[str] = None
    location: Optional[str] = Field(None, description="Venue or location name")
    city: Optional[str] = None
    state: Optional[str] = None
    notes: Optional[str] = None

    gross_amount: Amount = Field(default=Decimal("0"))
    tips: Amount = Field(default=Decimal("0"))
    per_diem: Amount = Field(default=Decimal("0"))
    other_income: Amount = Field(default=Decimal("0"))
    fees: Amount = Field(default=Decimal("0"))

    # Only rows with paid=True count toward income; NULL reads as unpaid
    paid: Optional[bool] = None


class RawExpense(RawRow):
    """A standalone business expense."""
    id: str
    date: Optional[str] = None
    category: Optional[str] = None
    amount: Amount = Field(default=Decimal("0"))
    vendor: Optional[str] = None
    description: Optional[str] = None
    receipt_url: Optional[str] = None
    notes: Optional[str] = None
    gig_id: Optional[str] = None

    # Stored deductible fraction for meals (0.5 = 50%); NULL means "use default"
    meals_percent_allowed: OptionalAmount = None

    # Schedule C line code assigned when the expense was categorized (e.g. "22", "24b")
    irs_schedule_c_line: Optional[str] = None


class RawMileage(RawRow):
    """A business mileage trip."""
    id: Optional[str] = None
    owner_id: Optional[str] = None
    date: Optional[str] = None
    origin: Optional[str] = None
    destination: Optional[str] = None
    purpose: Optional[str] = None
    miles: Amount = Field(default=Decimal("0"))
    deduction_amount: OptionalAmount = Field(
        None, description="Deduction already computed by the store, if any"
    )
    notes: Optional[str] = None
    gig_id: Optional[str] = None


class RawInvoice(RawRow):
    """An invoice issued to a client."""
    id: str
    invoice_number: Optional[str] = None
    client_name: Optional[str] = None
    invoice_date: Optional[str] = None
    due_date: Optional[str] = None
    status: Optional[str] = None
    total_amount: Amount = Field(default=Decimal("0"))
    currency: Optional[str] = None


class RawInvoicePayment(RawRow):
    """A payment received against an invoice."""
    id: str
    invoice_id: Optional[str] = None
    payment_date: Optional[str] = None
    amount: Amount = Field(default=Decimal("0"))
    currency: Optional[str] = None


class RawSubcontractorPayment(RawRow):
    """A payout from a gig to a subcontractor."""
    id: str
    gig_id: Optional[str] = None
    subcontractor_id: Optional[str] = None
    subcontractor_name: Optional[str] = None
    amount: Amount = Field(default=Decimal("0"))
    note: Optional[str] = None
    created_at: Optional[str] = None


class ExportRows(RawRow):
    """
    One fetched snapshot of an owner's rows for a date range.

    The builder treats this as fixed input; nothing is fetched during a build.
    """
    gigs: Tuple[RawGig, ...] = ()
    expenses: Tuple[RawExpense, ...] = ()
    mileage: Tuple[RawMileage, ...] = ()
    invoices: Tuple[RawInvoice, ...] = ()
    invoice_payments: Tuple[RawInvoicePayment, ...] = ()
    subcontractor_payments: Tuple[RawSubcontractorPayment, ...] = ()
    payers: Tuple[RawPayer, ...] = ()
