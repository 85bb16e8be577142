"""
Tests for logging configuration and build audit logging.
"""

import json
import logging

import pytest

from config.settings import ExportSettings
from export.options import ExportOptions
from export.package_builder import build_tax_export_package
from services.logging_config import (
    ContextLogger,
    ExportBuildLogger,
    JsonFormatter,
    ReadableFormatter,
    configure_from_settings,
    configure_logging,
    get_logger,
    owner_id_var,
    request_id_var,
)


def _record(message="hello", **extra_data):
    record = logging.LogRecord("export.build", logging.INFO, __file__, 10, message, None, None)
    if extra_data:
        record.extra_data = extra_data
    return record


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestFormatters:
    """JSON and readable formatters."""

    def test_json_formatter(self):
        data = json.loads(JsonFormatter().format(_record(tax_year=2024)))
        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["logger"] == "export.build"
        assert data["tax_year"] == 2024
        assert data["timestamp"].endswith("Z")

    def test_json_formatter_includes_context(self):
        request_token = request_id_var.set("req-1")
        owner_token = owner_id_var.set("owner-1")
        try:
            data = json.loads(JsonFormatter().format(_record()))
        finally:
            request_id_var.reset(request_token)
            owner_id_var.reset(owner_token)
        assert data["request_id"] == "req-1"
        assert data["owner_id"] == "owner-1"

    def test_readable_formatter(self):
        text = ReadableFormatter().format(_record(stage="income_rows", count=3))
        assert "[export.build] hello" in text
        assert "stage=income_rows | count=3" in text

    def test_json_timestamp_is_record_time(self):
        record = _record()
        record.created = 0
        data = json.loads(JsonFormatter().format(record))
        assert data["timestamp"] == "1970-01-01T00:00:00Z"

    def test_readable_formatter_without_extras(self):
        text = ReadableFormatter().format(_record())
        assert text.endswith("INFO     [export.build] hello")


class TestContextLogger:
    """Adapter context merging."""

    def test_adapter_and_call_extra_merge(self):
        logger = get_logger("test.context", tax_year=2024)
        assert isinstance(logger, ContextLogger)
        _, kwargs = logger.process("msg", {"extra": {"extra_data": {"stage": "x"}}})
        assert kwargs["extra"]["extra_data"] == {"tax_year": 2024, "stage": "x"}

    def test_owner_context_added(self):
        token = owner_id_var.set("owner-9")
        try:
            _, kwargs = get_logger("test.context").process("msg", {})
        finally:
            owner_id_var.reset(token)
        assert kwargs["extra"]["owner_id"] == "owner-9"


class TestConfigureLogging:
    """Root logger configuration."""

    def test_json_output(self, restore_root_logger):
        configure_logging(level="WARNING", json_output=True)
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_level_name_case_insensitive(self, restore_root_logger):
        configure_logging(level="debug")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1

    def test_log_file_always_json(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "logs" / "export.log"
        configure_logging(level="INFO", json_output=False, log_file=log_file)
        root = logging.getLogger()
        assert isinstance(root.handlers[0].formatter, ReadableFormatter)
        assert isinstance(root.handlers[1].formatter, JsonFormatter)
        assert log_file.parent.exists()
        root.handlers[1].close()

    def test_from_settings(self, restore_root_logger):
        configure_from_settings(ExportSettings(_env_file=None, log_level="error", log_json=True))
        root = logging.getLogger()
        assert root.level == logging.ERROR
        assert isinstance(root.handlers[0].formatter, JsonFormatter)


class TestExportBuildLogger:
    """Build audit logging."""

    def test_build_logs_start_and_result(self, sample_rows, fixed_clock, caplog):
        with caplog.at_level(logging.DEBUG, logger="export.build"):
            build_tax_export_package(sample_rows, ExportOptions(tax_year=2024), clock=fixed_clock)

        messages = [r.getMessage() for r in caplog.records if r.name == "export.build"]
        assert messages[0] == "Starting tax export build"
        assert messages[-1] == "Tax export build complete"
        result = caplog.records[-1].extra_data
        assert result["net_profit"] == "1738.87"
        assert result["stage_counts"]["income_rows"] == 4
        assert result["tax_year"] == 2024

    def test_rejection_logged_as_warning(self, caplog):
        build_log = ExportBuildLogger(2024)
        with caplog.at_level(logging.WARNING, logger="export.build"):
            build_log.log_rejected("NON_USD_CURRENCY", "USD only", row_id="inv-2")
        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.extra_data["code"] == "NON_USD_CURRENCY"
        assert record.extra_data["row_id"] == "inv-2"
