"""
Logging for the tax export builder.

Console output is either JSON lines or a short readable line; a log file,
when configured, always gets JSON. Request and owner ids travel in context
variables so a service call can tag every record of one export without
threading ids through the builder.
"""

import json
import logging
import sys
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
owner_id_var: ContextVar[Optional[str]] = ContextVar('owner_id', default=None)

READABLE_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
READABLE_DATEFMT = "%H:%M:%S"


def _context_fields() -> Dict[str, str]:
    fields = {}
    for key, var in (("request_id", request_id_var), ("owner_id", owner_id_var)):
        value = var.get()
        if value:
            fields[key] = value
    return fields


def _extra_data(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, 'extra_data', None) or {}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, stamped with the record's own UTC time."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, timezone.utc)
        payload: Dict[str, Any] = {
            "timestamp": created.isoformat().replace("+00:00", "Z"),
            "logger": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.lineno}",
        }
        payload.update(_context_fields())
        payload.update(_extra_data(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ReadableFormatter(logging.Formatter):
    """`HH:MM:SS LEVEL [logger] message | key=value | ...` for terminals."""

    def __init__(self):
        super().__init__(READABLE_FORMAT, datefmt=READABLE_DATEFMT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = [f"{key}={value}" for key, value in _extra_data(record).items()]
        return " | ".join([line] + pairs)


class ContextLogger(logging.LoggerAdapter):
    """
    Adapter that folds its bound fields and the current request/owner ids
    into every record. Per-call ``extra_data`` wins over bound fields.
    """

    def process(self, msg, kwargs):
        extra = {**(kwargs.get('extra') or {}), **_context_fields()}
        extra['extra_data'] = {**self.extra, **(extra.get('extra_data') or {})}
        kwargs['extra'] = extra
        return msg, kwargs


def _build_handlers(json_output: bool, log_file: Optional[Path]) -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(JsonFormatter() if json_output else ReadableFormatter())
    handlers: List[logging.Handler] = [console]

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path)
        file_handler.setFormatter(JsonFormatter())
        handlers.append(file_handler)
    return handlers


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[Path] = None
) -> None:
    """
    Replace the root logger's handlers.

    Args:
        level: Log level name, case-insensitive
        json_output: JSON lines on the console instead of readable lines
        log_file: Optional file that receives JSON lines as well
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    root.handlers[:] = _build_handlers(json_output, log_file)


def configure_from_settings(settings) -> None:
    """Configure logging from an ExportSettings instance."""
    configure_logging(
        level=settings.log_level,
        json_output=settings.log_json,
        log_file=Path(settings.log_file) if settings.log_file else None,
    )


def get_logger(name: str, **bound: Any) -> ContextLogger:
    """Logger for ``name`` with ``bound`` fields attached to every record."""
    return ContextLogger(logging.getLogger(name), bound)


class ExportBuildLogger:
    """
    Audit trail for one package build: the options it started with, the
    row count of each assembly stage, and the Schedule C result.
    """

    def __init__(self, tax_year: int):
        self.tax_year = tax_year
        self.logger = get_logger("export.build", tax_year=tax_year)
        self._started: Optional[float] = None
        self._stage_counts: Dict[str, int] = {}

    def _emit(self, level: int, message: str, data: Dict[str, Any]) -> None:
        self.logger.log(level, message, extra={'extra_data': data})

    def start_build(self, **options: Any) -> None:
        self._started = time.perf_counter()
        self._emit(logging.INFO, "Starting tax export build", dict(options))

    def log_stage(self, stage: str, count: int, **data: Any) -> None:
        self._stage_counts[stage] = count
        self._emit(logging.DEBUG, f"Assembled {stage}", {'stage': stage, 'count': count, **data})

    def log_result(
        self,
        gross_receipts: Any,
        expenses_total: Any,
        net_profit: Any,
        warnings_count: int,
    ) -> None:
        elapsed = time.perf_counter() - self._started if self._started is not None else 0.0
        # Money goes out as strings so JSON never shows a float
        self._emit(logging.INFO, "Tax export build complete", {
            'gross_receipts': str(gross_receipts),
            'expenses_total': str(expenses_total),
            'net_profit': str(net_profit),
            'warnings': warnings_count,
            'duration_ms': int(elapsed * 1000),
            'stage_counts': dict(self._stage_counts),
        })

    def log_rejected(self, code: str, message: str, **data: Any) -> None:
        """A build refused before any package was produced."""
        self._emit(logging.WARNING, f"Tax export build rejected: {code}",
                   {'code': code, 'reason': message, **data})
