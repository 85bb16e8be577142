"""
Tax Export Package Builder.

Turns one fetched snapshot of an owner's rows into a TaxExportPackage.
The build is a pure function of (rows, options, config, clock): it reads
nothing else, shares no state between calls, and either returns a complete
package or raises. There is no partial package.

Order of work:
 1. Basis and currency gates (all-or-nothing)
 2. Income rows from paid gigs and invoice payments
 3. Expense rows with Schedule C mapping and asset-review flags
 4. Mileage rows at the standard rate
 5. Schedule C aggregation, warnings, and net profit
 6. Payer summary, mileage summary, manual-entry line items
 7. Reconciliation check of the finished package

Every amount is rounded with round_cents() once, where it is computed.
Totals are sums of rounded parts.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from calculator.decimal_math import ZERO, round_cents, sum_money
from config.export_config import ExportConfig
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
from models.tax_export_package import (
    ExpenseRow,
    IncomeRow,
    IncomeSource,
    InvoiceRow,
    MileageRow,
    MileageSummary,
    OtherExpenseItem,
    PayerSummaryRow,
    ReceiptsManifestItem,
    ScheduleCLineItem,
    ScheduleCRefNumber,
    ScheduleCSection,
    SubcontractorPayoutRow,
    TaxExportMetadata,
    TaxExportPackage,
)
from services.logging_config import ExportBuildLogger

from .category_mapping import asset_review_reason, category_label, map_category
from .descriptions import invoice_payment_description, resolve_income_description
from .errors import PackageInvariantError, TaxExportError, TaxExportErrorCode
from .line_names import SCHEDULE_C_LINE_ORDER, get_line_name
from .mileage_rates import is_published_rate, rate_for_year
from .options import ExportOptions
from .reconciliation import check_package

Clock = Callable[[], datetime]

ZERO_CENTS = round_cents(ZERO)

MILEAGE_WARNING = (
    "Car and truck expenses include a standard mileage rate deduction; "
    "actual vehicle expenses were not used."
)
MEALS_WARNING = (
    "Meals and entertainment were reduced using a deductible percent "
    "(default 50%) for Schedule C totals."
)
UNKNOWN_PAYER_NAME = "Unknown payer"
UNKNOWN_PAYER_NOTE = (
    "Payments not linked to a payer. Assign payers before reconciling 1099 forms."
)
MISSING_PAYER_DETAILS_NOTE = (
    "Payer record not found. Check payer details before reconciling 1099 forms."
)

_TOP_LINE_DESCRIPTIONS: Dict[ScheduleCRefNumber, str] = {
    ScheduleCRefNumber.GROSS_RECEIPTS: "Paid gig income and invoice payments",
    ScheduleCRefNumber.RETURNS_AND_ALLOWANCES: "Platform and payment processing fees",
    ScheduleCRefNumber.COST_OF_GOODS_SOLD: "Cost of goods sold",
    ScheduleCRefNumber.OTHER_INCOME: "Other business income",
}

_EXPENSE_LINE_DESCRIPTIONS: Dict[ScheduleCRefNumber, str] = {
    ScheduleCRefNumber.CAR_AND_TRUCK: "Standard mileage deduction",
    ScheduleCRefNumber.COMMISSIONS_AND_FEES: "Platform and payment processing fees",
    ScheduleCRefNumber.MEALS: "Business meals after the deductible-percent limit",
    ScheduleCRefNumber.OTHER_EXPENSES: "Other expenses (itemized below)",
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat_utc(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class _ExpenseEntry:
    row: ExpenseRow
    other_description: Optional[str]


class TaxExportPackageBuilder:
    """
    Builds TaxExportPackage instances.

    A builder holds only its constants table and clock, so one instance can
    serve any number of concurrent builds.
    """

    def __init__(self, config: Optional[ExportConfig] = None, clock: Optional[Clock] = None):
        self.config = config or ExportConfig.default()
        self.clock = clock or _utc_now

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def build(self, rows: ExportRows, options: ExportOptions) -> TaxExportPackage:
        """
        Build the package for one snapshot.

        Raises:
            TaxExportError: UNSUPPORTED for a non-cash basis, NON_USD_CURRENCY
                if any invoice or invoice payment is in another currency.
            PackageInvariantError: if the finished package does not reconcile.
        """
        build_log = ExportBuildLogger(options.tax_year)
        date_start, date_end = options.resolved_date_range()

        if not options.is_supported_basis:
            error = TaxExportError(
                TaxExportErrorCode.UNSUPPORTED,
                details={"basis": options.basis},
            )
            build_log.log_rejected(error.code.value, error.message, basis=options.basis)
            raise error

        build_log.start_build(
            date_start=date_start,
            date_end=date_end,
            include_tips=options.include_tips,
            include_fees_as_deduction=options.include_fees_as_deduction,
            config_version=self.config.version,
        )

        invoices_by_id = {invoice.id: invoice for invoice in rows.invoices}
        try:
            self._check_currency(rows.invoices, rows.invoice_payments, invoices_by_id)
        except TaxExportError as error:
            build_log.log_rejected(error.code.value, error.message, **error.details)
            raise

        payers_by_id = {payer.id: payer for payer in rows.payers}
        income_rows = sorted(
            self._gig_income_rows(rows.gigs, payers_by_id, options)
            + self._invoice_payment_rows(rows.invoice_payments, invoices_by_id),
            key=lambda r: (r.received_date, r.source.value, r.id),
        )
        build_log.log_stage("income_rows", len(income_rows))

        expense_entries = self._expense_entries(rows.expenses)
        expense_rows = tuple(entry.row for entry in expense_entries)
        receipts_manifest = tuple(
            ReceiptsManifestItem(transaction_id=row.id, receipt_url=row.receipt_url)
            for row in expense_rows
            if row.receipt_url
        )
        build_log.log_stage("expense_rows", len(expense_rows), receipts=len(receipts_manifest))

        mileage_rate = rate_for_year(options.tax_year, self.config)
        mileage_rows = self._mileage_rows(rows.mileage, mileage_rate, date_start)
        build_log.log_stage("mileage_rows", len(mileage_rows))

        invoice_rows = self._invoice_rows(rows.invoices)
        subcontractor_rows = self._subcontractor_rows(rows.subcontractor_payments)

        schedule_c = self._schedule_c(income_rows, expense_entries, mileage_rows, options)
        mileage_summary = self._mileage_summary(mileage_rows, mileage_rate, options.tax_year)
        payer_summary_rows = self._payer_summary(income_rows)
        line_items = self._line_items(schedule_c, mileage_summary)

        package = TaxExportPackage(
            metadata=TaxExportMetadata(
                tax_year=options.tax_year,
                date_start=date_start,
                date_end=date_end,
                created_at=_isoformat_utc(self.clock()),
                timezone=options.timezone,
                currency=self.config.currency,
                schema_version=self.config.schema_version,
                config_version=self.config.version,
                include_tips=options.include_tips,
                include_fees_as_deduction=options.include_fees_as_deduction,
            ),
            schedule_c=schedule_c,
            schedule_c_line_items=line_items,
            income_rows=tuple(income_rows),
            expense_rows=expense_rows,
            mileage_rows=mileage_rows,
            invoice_rows=invoice_rows,
            subcontractor_payout_rows=subcontractor_rows,
            receipts_manifest=receipts_manifest,
            payer_summary_rows=payer_summary_rows,
            mileage_summary=mileage_summary,
        )

        violations = check_package(package)
        if violations:
            build_log.logger.error(
                "Tax export package failed reconciliation",
                extra={'extra_data': {'violations': violations}},
            )
            raise PackageInvariantError(violations)

        build_log.log_result(
            gross_receipts=schedule_c.gross_receipts,
            expenses_total=schedule_c.expenses_total,
            net_profit=schedule_c.net_profit,
            warnings_count=len(schedule_c.warnings),
        )
        return package

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    def _normalize_currency(self, value: Optional[str]) -> str:
        """Blank currency means the package currency."""
        text = (value or "").strip().upper()
        return text or self.config.currency

    def _require_package_currency(self, value: Optional[str], row_kind: str, row_id: str) -> None:
        currency = self._normalize_currency(value)
        if currency != self.config.currency:
            raise TaxExportError(
                TaxExportErrorCode.NON_USD_CURRENCY,
                details={"row_kind": row_kind, "row_id": row_id, "currency": currency},
            )

    def _check_currency(
        self,
        invoices: Sequence[RawInvoice],
        payments: Sequence[RawInvoicePayment],
        invoices_by_id: Dict[str, RawInvoice],
    ) -> None:
        for invoice in invoices:
            self._require_package_currency(invoice.currency, "invoice", invoice.id)
        for payment in payments:
            self._require_package_currency(payment.currency, "invoice_payment", payment.id)
            invoice = invoices_by_id.get(payment.invoice_id) if payment.invoice_id else None
            if invoice is not None:
                self._require_package_currency(invoice.currency, "invoice", invoice.id)

    # ------------------------------------------------------------------
    # Row assembly
    # ------------------------------------------------------------------

    def _gig_income_rows(
        self,
        gigs: Iterable[RawGig],
        payers_by_id: Dict[str, RawPayer],
        options: ExportOptions,
    ) -> List[IncomeRow]:
        rows = []
        for gig in gigs:
            # Unpaid gigs are left out entirely, not zeroed
            if gig.paid is not True:
                continue

            tips = gig.tips if options.include_tips else ZERO
            gross = gig.gross_amount + tips + gig.per_diem + gig.other_income
            fees = gig.fees
            # Blank payer ids read as "no payer"
            payer_id = (gig.payer_id or "").strip() or None
            payer = payers_by_id.get(payer_id) if payer_id else None

            rows.append(IncomeRow(
                id=gig.id,
                source=IncomeSource.GIG,
                received_date=gig.date or "",
                payer_id=payer_id,
                payer_name=payer.name if payer else None,
                payer_email=payer.contact_email if payer else None,
                payer_phone=payer.contact_phone if payer else None,
                description=resolve_income_description(
                    title=gig.title,
                    location=gig.location,
                    notes=gig.notes,
                    city=gig.city,
                    note_max_length=self.config.description_note_max_length,
                ),
                amount=round_cents(gross),
                fees=round_cents(fees),
                net_amount=round_cents(gross - fees),
                currency=self.config.currency,
                related_gig_id=gig.id,
            ))
        return rows

    def _invoice_payment_rows(
        self,
        payments: Iterable[RawInvoicePayment],
        invoices_by_id: Dict[str, RawInvoice],
    ) -> List[IncomeRow]:
        rows = []
        for payment in payments:
            invoice = invoices_by_id.get(payment.invoice_id) if payment.invoice_id else None
            amount = round_cents(payment.amount)
            # Invoice payments are received net; no fee is assumed
            rows.append(IncomeRow(
                id=payment.id,
                source=IncomeSource.INVOICE_PAYMENT,
                received_date=payment.payment_date or "",
                payer_name=invoice.client_name if invoice else None,
                description=invoice_payment_description(invoice.invoice_number if invoice else None),
                amount=amount,
                fees=ZERO_CENTS,
                net_amount=amount,
                currency=self.config.currency,
                related_invoice_id=payment.invoice_id,
            ))
        return rows

    def _expense_entries(self, expenses: Iterable[RawExpense]) -> Tuple[_ExpenseEntry, ...]:
        entries = []
        for expense in expenses:
            mapping = map_category(expense.category, expense.meals_percent_allowed, self.config)
            label = category_label(expense.category) or "Other"
            reason = asset_review_reason(expense.category, expense.amount, self.config)

            row = ExpenseRow(
                id=expense.id,
                date=expense.date or "",
                merchant=expense.vendor,
                description=expense.description or label,
                amount=round_cents(expense.amount),
                gl_category=label,
                ref_number=mapping.ref_number,
                deductible_percent=mapping.deductible_percent,
                deductible_amount=round_cents(expense.amount * mapping.deductible_percent),
                currency=self.config.currency,
                receipt_url=expense.receipt_url or None,
                notes=expense.notes,
                related_gig_id=expense.gig_id,
                potential_asset_review=reason is not None,
                potential_asset_reason=reason,
            )
            entries.append(_ExpenseEntry(row=row, other_description=mapping.other_description))

        entries.sort(key=lambda e: (e.row.date, e.row.id))
        return tuple(entries)

    def _mileage_rows(
        self,
        trips: Iterable[RawMileage],
        rate: Decimal,
        date_start: str,
    ) -> Tuple[MileageRow, ...]:
        rows = []
        for trip in trips:
            trip_date = trip.date or date_start
            if trip.deduction_amount is not None:
                deduction = trip.deduction_amount
            else:
                deduction = trip.miles * rate
            trip_id = trip.id or (
                f"{trip.owner_id or 'unknown'}:{trip_date}:{trip.miles}:{trip.destination or ''}"
            )
            # Only the standard mileage method is supported, so every row is an estimate
            rows.append(MileageRow(
                id=trip_id,
                date=trip_date,
                origin=trip.origin or None,
                destination=trip.destination or None,
                purpose=trip.purpose or None,
                miles=trip.miles,
                rate=rate,
                deduction_amount=round_cents(deduction),
                currency=self.config.currency,
                is_estimate=True,
                notes=trip.notes or None,
                related_gig_id=trip.gig_id,
            ))
        rows.sort(key=lambda r: (r.date, r.id))
        return tuple(rows)

    def _invoice_rows(self, invoices: Iterable[RawInvoice]) -> Tuple[InvoiceRow, ...]:
        rows = [
            InvoiceRow(
                id=invoice.id,
                invoice_number=invoice.invoice_number or "",
                client_name=invoice.client_name or "",
                invoice_date=invoice.invoice_date or "",
                due_date=invoice.due_date or "",
                status=invoice.status or "",
                total_amount=round_cents(invoice.total_amount),
                currency=self._normalize_currency(invoice.currency),
            )
            for invoice in invoices
        ]
        rows.sort(key=lambda r: (r.invoice_date, r.id))
        return tuple(rows)

    def _subcontractor_rows(
        self, payments: Iterable[RawSubcontractorPayment]
    ) -> Tuple[SubcontractorPayoutRow, ...]:
        rows = [
            SubcontractorPayoutRow(
                id=payment.id,
                gig_id=payment.gig_id,
                subcontractor_id=payment.subcontractor_id,
                subcontractor_name=payment.subcontractor_name or None,
                amount=round_cents(payment.amount),
                note=payment.note,
                created_at=payment.created_at,
            )
            for payment in payments
        ]
        rows.sort(key=lambda r: (r.created_at or "", r.id))
        return tuple(rows)

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def _schedule_c(
        self,
        income_rows: Sequence[IncomeRow],
        expense_entries: Sequence[_ExpenseEntry],
        mileage_rows: Sequence[MileageRow],
        options: ExportOptions,
    ) -> ScheduleCSection:
        gross_receipts = sum_money(row.amount for row in income_rows)
        fees_total = sum_money(row.fees for row in income_rows if row.source is IncomeSource.GIG)

        # Fees are either returns and allowances or an expense line, never both
        returns_allowances = ZERO_CENTS if options.include_fees_as_deduction else fees_total
        cogs = ZERO_CENTS
        other_income = ZERO_CENTS

        totals: Dict[ScheduleCRefNumber, Decimal] = {}
        breakdown: Dict[str, Decimal] = {}
        warnings: List[str] = []

        mileage_total = sum_money(row.deduction_amount for row in mileage_rows)
        if mileage_total != 0:
            totals[ScheduleCRefNumber.CAR_AND_TRUCK] = mileage_total
            warnings.append(MILEAGE_WARNING)

        meals_limited = False
        for entry in expense_entries:
            row = entry.row
            if row.ref_number == ScheduleCRefNumber.OTHER_EXPENSES:
                name = entry.other_description or f"{self.config.app_label}: {row.gl_category}"
                breakdown[name] = breakdown.get(name, ZERO) + row.deductible_amount
            else:
                totals[row.ref_number] = totals.get(row.ref_number, ZERO) + row.deductible_amount

            if row.ref_number == ScheduleCRefNumber.MEALS and row.deductible_percent != 1:
                meals_limited = True

        if meals_limited:
            warnings.append(MEALS_WARNING)

        if options.include_fees_as_deduction and fees_total != 0:
            ref = ScheduleCRefNumber.COMMISSIONS_AND_FEES
            totals[ref] = totals.get(ref, ZERO) + fees_total

        other_expenses = tuple(
            OtherExpenseItem(name=name, amount=round_cents(amount))
            for name, amount in sorted(breakdown.items())
            if amount != 0
        )
        if other_expenses:
            totals[ScheduleCRefNumber.OTHER_EXPENSES] = sum_money(item.amount for item in other_expenses)

        expense_totals = {
            ref: round_cents(totals[ref])
            for ref in SCHEDULE_C_LINE_ORDER
            if ref in totals and totals[ref] != 0
        }
        expenses_total = sum_money(expense_totals.values())
        net_profit = round_cents(
            gross_receipts - returns_allowances - cogs - expenses_total + other_income
        )

        return ScheduleCSection(
            gross_receipts=gross_receipts,
            returns_allowances=returns_allowances,
            cogs=cogs,
            other_income=other_income,
            expense_totals_by_ref_number=expense_totals,
            other_expenses_breakdown=other_expenses,
            expenses_total=expenses_total,
            net_profit=net_profit,
            warnings=tuple(warnings),
        )

    def _payer_summary(self, income_rows: Sequence[IncomeRow]) -> Tuple[PayerSummaryRow, ...]:
        groups: Dict[Optional[str], List[IncomeRow]] = {}
        for row in income_rows:
            # Invoice payments have no payer record
            if row.source is not IncomeSource.GIG:
                continue
            groups.setdefault(row.payer_id, []).append(row)

        known: List[PayerSummaryRow] = []
        unknown: Optional[PayerSummaryRow] = None
        for payer_id, rows in groups.items():
            dates = sorted(r.received_date for r in rows if r.received_date)
            first = rows[0]
            if payer_id is None:
                payer_name, notes = UNKNOWN_PAYER_NAME, UNKNOWN_PAYER_NOTE
            else:
                payer_name = first.payer_name
                notes = None if payer_name else MISSING_PAYER_DETAILS_NOTE

            summary = PayerSummaryRow(
                payer_id=payer_id,
                payer_name=payer_name,
                payer_email=first.payer_email if payer_id else None,
                payer_phone=first.payer_phone if payer_id else None,
                payments_count=len(rows),
                gross_amount=sum_money(r.amount for r in rows),
                fees_total=sum_money(r.fees for r in rows),
                net_amount=sum_money(r.net_amount for r in rows),
                first_payment_date=dates[0] if dates else "",
                last_payment_date=dates[-1] if dates else "",
                notes=notes,
            )
            if payer_id is None:
                unknown = summary
            else:
                known.append(summary)

        known.sort(key=lambda s: (-s.gross_amount, s.payer_name or "", s.payer_id or ""))
        if unknown is not None:
            known.append(unknown)
        return tuple(known)

    def _mileage_summary(
        self,
        mileage_rows: Sequence[MileageRow],
        rate: Decimal,
        tax_year: int,
    ) -> MileageSummary:
        notes = "Standard mileage rate method. Actual vehicle expenses are not tracked."
        if not is_published_rate(tax_year, self.config):
            notes += (
                f" No published rate for {tax_year}; the {self.config.latest_rate_year} "
                f"rate of ${rate}/mile was used as an estimate."
            )
        return MileageSummary(
            tax_year=tax_year,
            total_business_miles=sum((row.miles for row in mileage_rows), ZERO),
            standard_rate_used=rate,
            mileage_deduction_amount=sum_money(row.deduction_amount for row in mileage_rows),
            entries_count=len(mileage_rows),
            is_estimate_any=any(row.is_estimate for row in mileage_rows),
            notes=notes,
        )

    def _line_items(
        self,
        schedule_c: ScheduleCSection,
        mileage_summary: MileageSummary,
    ) -> Tuple[ScheduleCLineItem, ...]:
        items: List[ScheduleCLineItem] = []

        top_lines = (
            (ScheduleCRefNumber.GROSS_RECEIPTS, schedule_c.gross_receipts, None),
            (
                ScheduleCRefNumber.RETURNS_AND_ALLOWANCES,
                schedule_c.returns_allowances,
                "Fees reported as returns and allowances instead of an expense.",
            ),
            (ScheduleCRefNumber.COST_OF_GOODS_SOLD, schedule_c.cogs, None),
            (ScheduleCRefNumber.OTHER_INCOME, schedule_c.other_income, None),
        )
        for ref, amount, notes in top_lines:
            if amount == 0:
                continue
            items.append(ScheduleCLineItem(
                ref_number=ref,
                line_name=get_line_name(ref),
                description=_TOP_LINE_DESCRIPTIONS[ref],
                raw_signed_amount=amount,
                amount_for_entry=abs(amount),
                notes=notes,
            ))

        for ref, amount in schedule_c.expense_totals_by_ref_number.items():
            items.append(ScheduleCLineItem(
                ref_number=ref,
                line_name=get_line_name(ref),
                description=_EXPENSE_LINE_DESCRIPTIONS.get(ref, get_line_name(ref)),
                raw_signed_amount=-amount,
                amount_for_entry=abs(amount),
                notes=self._expense_line_note(ref, schedule_c, mileage_summary),
            ))
            if ref == ScheduleCRefNumber.OTHER_EXPENSES:
                for item in schedule_c.other_expenses_breakdown:
                    items.append(ScheduleCLineItem(
                        ref_number=ref,
                        line_name=get_line_name(ref),
                        description=item.name,
                        raw_signed_amount=-item.amount,
                        amount_for_entry=abs(item.amount),
                        notes=f"Part of {int(ref)} ({get_line_name(ref)})",
                    ))

        return tuple(items)

    def _expense_line_note(
        self,
        ref: ScheduleCRefNumber,
        schedule_c: ScheduleCSection,
        mileage_summary: MileageSummary,
    ) -> Optional[str]:
        if ref == ScheduleCRefNumber.CAR_AND_TRUCK:
            return (
                f"{mileage_summary.total_business_miles} business miles at "
                f"${mileage_summary.standard_rate_used}/mile"
            )
        if ref == ScheduleCRefNumber.MEALS:
            return "Reduced using the meals deductible percent (default 50%)."
        if ref == ScheduleCRefNumber.COMMISSIONS_AND_FEES:
            return "Platform fees reported as an expense instead of returns and allowances."
        if ref == ScheduleCRefNumber.OTHER_EXPENSES:
            return f"{len(schedule_c.other_expenses_breakdown)} itemized entries follow."
        return None


def build_tax_export_package(
    rows: ExportRows,
    options: ExportOptions,
    config: Optional[ExportConfig] = None,
    clock: Optional[Clock] = None,
) -> TaxExportPackage:
    """Build a package with a one-off builder."""
    return TaxExportPackageBuilder(config=config, clock=clock).build(rows, options)
