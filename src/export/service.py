"""
Tax Export Service - builds a package for a signed-in owner.

Handles everything around the pure builder:
- basis check before any data is touched
- request defaults (full tax year, tips and fee treatment from settings)
- ownership check against the data source's current owner
- fetching one snapshot, wrapping any loader failure as DATA_LOAD_FAILED
- scoping invoice payments to the owner's invoices
- running the validation pre-pass alongside the build
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, runtime_checkable

from config.export_config import ExportConfig
from config.settings import ExportSettings, get_settings
from models.raw_rows import ExportRows
from models.tax_export_package import TaxExportPackage
from services.logging_config import get_logger, owner_id_var
from validation.export_validator import (
    ExportFormat,
    ExportValidationResult,
    available_export_formats,
    validate_export_rows,
)

from .errors import TaxExportError, TaxExportErrorCode
from .options import ExportOptions, SUPPORTED_BASIS
from .package_builder import Clock, TaxExportPackageBuilder

logger = get_logger(__name__)


@runtime_checkable
class ExportDataSource(Protocol):
    """
    Store-layer collaborator.

    fetch_snapshot() returns every row for one owner whose date falls in
    [date_start, date_end], fetched all at once before a build starts.
    """

    def current_owner_id(self) -> Optional[str]:
        ...

    def fetch_snapshot(self, owner_id: str, date_start: str, date_end: str) -> ExportRows:
        ...


@dataclass(frozen=True)
class ExportRequest:
    """An export request as it arrives from the export screen."""
    owner_id: str
    tax_year: int
    basis: str = SUPPORTED_BASIS
    timezone: Optional[str] = None
    date_start: Optional[str] = None
    date_end: Optional[str] = None
    include_tips: Optional[bool] = None
    include_fees_as_deduction: Optional[bool] = None


@dataclass(frozen=True)
class ExportBundle:
    """A built package plus the pre-pass result that gates output formats."""
    package: TaxExportPackage
    validation: ExportValidationResult
    available_formats: List[ExportFormat] = field(default_factory=list)


class TaxExportService:
    """
    Orchestrates one export request end to end.

    Usage:
        service = TaxExportService(data_source)
        bundle = service.export(ExportRequest(owner_id="u1", tax_year=2024))
    """

    def __init__(
        self,
        data_source: ExportDataSource,
        settings: Optional[ExportSettings] = None,
        config: Optional[ExportConfig] = None,
        clock: Optional[Clock] = None,
    ):
        self.data_source = data_source
        self.settings = settings or get_settings()
        self.config = config or self.settings.export_config()
        self.builder = TaxExportPackageBuilder(config=self.config, clock=clock)

    def resolve_options(self, request: ExportRequest) -> ExportOptions:
        """Fill request gaps from settings and the tax year."""
        include_tips = request.include_tips
        if include_tips is None:
            include_tips = self.settings.include_tips_default
        include_fees = request.include_fees_as_deduction
        if include_fees is None:
            include_fees = self.settings.include_fees_as_deduction_default

        return ExportOptions(
            tax_year=request.tax_year,
            timezone=request.timezone or self.settings.default_timezone,
            basis=request.basis,
            date_start=request.date_start or f"{request.tax_year}-01-01",
            date_end=request.date_end or f"{request.tax_year}-12-31",
            include_tips=include_tips,
            include_fees_as_deduction=include_fees,
        )

    def export(self, request: ExportRequest) -> ExportBundle:
        """
        Build the package and validation result for a request.

        Raises:
            TaxExportError: UNSUPPORTED, NOT_AUTHORIZED, DATA_LOAD_FAILED or
                NON_USD_CURRENCY
        """
        if (request.basis or "").strip().lower() != SUPPORTED_BASIS:
            logger.warning(
                "Rejected export with unsupported basis",
                extra={'extra_data': {'basis': request.basis, 'tax_year': request.tax_year}},
            )
            raise TaxExportError(TaxExportErrorCode.UNSUPPORTED, details={"basis": request.basis})

        options = self.resolve_options(request)

        current_owner = self.data_source.current_owner_id()
        if not current_owner or current_owner != request.owner_id:
            logger.warning(
                "Rejected export for a different owner",
                extra={'extra_data': {'tax_year': request.tax_year}},
            )
            raise TaxExportError(TaxExportErrorCode.NOT_AUTHORIZED)

        token = owner_id_var.set(request.owner_id)
        try:
            rows = self._load_rows(request.owner_id, options)
            validation = validate_export_rows(rows)
            package = self.builder.build(rows, options)
        finally:
            owner_id_var.reset(token)

        return ExportBundle(
            package=package,
            validation=validation,
            available_formats=available_export_formats(validation),
        )

    def _load_rows(self, owner_id: str, options: ExportOptions) -> ExportRows:
        date_start, date_end = options.resolved_date_range()
        try:
            rows = self.data_source.fetch_snapshot(owner_id, date_start, date_end)
        except Exception as exc:
            logger.error(
                "Failed to load export data",
                extra={'extra_data': {'error': type(exc).__name__}},
                exc_info=True,
            )
            raise TaxExportError(TaxExportErrorCode.DATA_LOAD_FAILED) from exc
        return scope_invoice_payments(rows)


def scope_invoice_payments(rows: ExportRows) -> ExportRows:
    """Drop invoice payments whose invoice is not in the owner's invoice set."""
    invoice_ids = {invoice.id for invoice in rows.invoices}
    payments = tuple(p for p in rows.invoice_payments if p.invoice_id in invoice_ids)
    if len(payments) == len(rows.invoice_payments):
        return rows
    logger.debug(
        "Dropped invoice payments outside the owner's invoices",
        extra={'extra_data': {'dropped': len(rows.invoice_payments) - len(payments)}},
    )
    return rows.model_copy(update={"invoice_payments": payments})
