"""
Services Module - cross-cutting services for the tax export builder.

- logging_config: structured logging and build audit logging
"""

from .logging_config import (
    ExportBuildLogger,
    configure_from_settings,
    configure_logging,
    get_logger,
)

__all__ = [
    "ExportBuildLogger",
    "configure_from_settings",
    "configure_logging",
    "get_logger",
]
