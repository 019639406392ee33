"""Report parsing core: tokenize, classify, extract, validate, assemble."""

from .errors import (
    BusinessRuleError,
    DuplicateError,
    FormatError,
    MissingDataError,
    RowProcessingError,
    ValidationError,
)
from .parser import ProgressCallback, parse_rows, render_validation_report, validate_format

__all__ = [
    "parse_rows",
    "validate_format",
    "render_validation_report",
    "ProgressCallback",
    # Errors
    "RowProcessingError",
    "FormatError",
    "MissingDataError",
    "ValidationError",
    "BusinessRuleError",
    "DuplicateError",
]
