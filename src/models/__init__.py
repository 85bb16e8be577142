from .raw_rows import (
    ExportRows,
    RawExpense,
    RawGig,
    RawInvoice,
    RawInvoicePayment,
    RawMileage,
    RawPayer,
    RawSubcontractorPayment,
)
from .tax_export_package import (
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

__all__ = [
    'ExportRows',
    'RawExpense',
    'RawGig',
    'RawInvoice',
    'RawInvoicePayment',
    'RawMileage',
    'RawPayer',
    'RawSubcontractorPayment',
    'ExpenseRow',
    'IncomeRow',
    'IncomeSource',
    'InvoiceRow',
    'MileageRow',
    'MileageSummary',
    'OtherExpenseItem',
    'PayerSummaryRow',
    'ReceiptsManifestItem',
    'ScheduleCLineItem',
    'ScheduleCRefNumber',
    'ScheduleCSection',
    'SubcontractorPayoutRow',
    'TaxExportMetadata',
    'TaxExportPackage',
]
