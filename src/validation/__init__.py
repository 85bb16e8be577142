"""Pre-export validation module."""

from .export_validator import (
    ExportFormat,
    ExportValidationResult,
    IssueCategory,
    IssueType,
    ValidationIssue,
    ValidationSummary,
    available_export_formats,
    get_validation_summary,
    group_issues_by_category,
    validate_export_data,
    validate_export_rows,
)

__all__ = [
    'ExportFormat',
    'ExportValidationResult',
    'IssueCategory',
    'IssueType',
    'ValidationIssue',
    'ValidationSummary',
    'available_export_formats',
    'get_validation_summary',
    'group_issues_by_category',
    'validate_export_data',
    'validate_export_rows',
]
