"""Configuration module for the tax export builder."""

from .export_config import ExportConfig, STANDARD_MILEAGE_RATES
from .settings import ExportSettings, get_settings, validate_timezone_name

__all__ = [
    "ExportConfig",
    "STANDARD_MILEAGE_RATES",
    "ExportSettings",
    "get_settings",
    "validate_timezone_name",
]
