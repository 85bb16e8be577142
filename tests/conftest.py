"""Pytest configuration and fixtures for the tax export test suite."""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from config.export_config import ExportConfig
from export.options import ExportOptions
from models.raw_rows import (
    ExportRows,
    RawExpense,
    RawGig,
    RawInvoice,
    RawInvoicePayment,
    RawMileage,
    RawPayer,
    RawSubcontractorPayment,
)

FIXED_NOW = datetime(2025, 2, 1, 12, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock():
    """Clock that always returns the same instant."""
    return lambda: FIXED_NOW


@pytest.fixture
def export_config():
    """Current constants table."""
    return ExportConfig.default()


@pytest.fixture
def options_2024():
    """Default options for tax year 2024."""
    return ExportOptions(tax_year=2024)


@pytest.fixture
def sample_rows():
    """
    A realistic 2024 snapshot for one owner.

    Paid gigs from two payers plus one with no payer, one unpaid gig,
    expenses across several categories, mileage, one invoice with a payment,
    and a subcontractor payout.
    """
    payers = (
        RawPayer(id="p-venue", name="Blue Room", contact_email="booking@blueroom.test",
                 tax_id_type="ein", tax_id_last4="1234"),
        RawPayer(id="p-agency", name="Ace Agency", tax_id_last4="9876"),
    )
    gigs = (
        RawGig(id="g1", date="2024-03-01", payer_id="p-venue", title="Friday night set",
               gross_amount="500.00", tips="40.00", per_diem="25.00", fees="15.00", paid=True),
        RawGig(id="g2", date="2024-05-10", payer_id="p-agency", location="Convention Center",
               gross_amount="1200.00", fees="60.00", paid=True),
        RawGig(id="g3", date="2024-06-15", city="Austin", gross_amount="300.00", paid=True),
        RawGig(id="g4", date="2024-07-04", payer_id="p-venue", title="Holiday show",
               gross_amount="800.00", paid=False),
    )
    expenses = (
        RawExpense(id="e1", date="2024-03-02", category="Meals & Entertainment",
                   amount="200.00", irs_schedule_c_line="24b", receipt_url="https://r.test/e1"),
        RawExpense(id="e2", date="2024-04-01", category="Supplies", amount="45.50",
                   irs_schedule_c_line="22"),
        RawExpense(id="e3", date="2024-04-20", category="Equipment/Gear", amount="350.00",
                   irs_schedule_c_line="27a", receipt_url="https://r.test/e3"),
        RawExpense(id="e4", date="2024-08-11", category="Education/Training", amount="120.00",
                   irs_schedule_c_line="27a"),
        RawExpense(id="e5", date="2024-09-30", category="Travel", amount="310.25",
                   irs_schedule_c_line="24a"),
    )
    mileage = (
        RawMileage(id="m1", date="2024-03-01", origin="Home", destination="Blue Room",
                   purpose="Gig", miles="100"),
        RawMileage(id="m2", date="2024-05-10", origin="Home", destination="Convention Center",
                   purpose="Gig", miles="12.5", deduction_amount="8.38"),
    )
    invoices = (
        RawInvoice(id="inv1", invoice_number="1001", client_name="Wedding Co",
                   invoice_date="2024-09-01", due_date="2024-09-30", status="paid",
                   total_amount="750.00", currency="USD"),
    )
    invoice_payments = (
        RawInvoicePayment(id="pay1", invoice_id="inv1", payment_date="2024-09-15",
                          amount="750.00", currency="usd"),
    )
    subcontractor_payments = (
        RawSubcontractorPayment(id="s1", gig_id="g2", subcontractor_id="sub1",
                                subcontractor_name="Drummer Dan", amount="150.00",
                                created_at="2024-05-11T10:00:00Z"),
    )
    return ExportRows(
        gigs=gigs,
        expenses=expenses,
        mileage=mileage,
        invoices=invoices,
        invoice_payments=invoice_payments,
        subcontractor_payments=subcontractor_payments,
        payers=payers,
    )
