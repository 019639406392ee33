from __future__ import annotations

from dataclasses import dataclass, field

from .error_record import ErrorType

"""Validation result models.

``ValidationResult`` is the per-line-item outcome of the financial validator.
``FormatValidationResult`` is the outcome of the lightweight pre-check run on a
sample of report lines before committing to a full parse.
"""

__all__ = [
    "ValidationResult",
    "ValidationIssue",
    "ValidationSummary",
    "FormatValidationResult",
]


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    confidence: int  # 0-100
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    corrected_fields: dict[str, float] | None = None


@dataclass(frozen=True)
class ValidationIssue:
    """One format pre-check finding. ``error_type`` is None for warnings."""
    row_number: int  # 0 for file-wide findings
    message: str
    error_type: ErrorType | None = None
    field: str | None = None
    raw_data: str | None = None


@dataclass(frozen=True)
class ValidationSummary:
    total_rows: int
    header_rows: int
    line_item_rows: int
    ignored_rows: int
    error_rows: int
    estimated_invoices: int


@dataclass(frozen=True)
class FormatValidationResult:
    is_valid: bool
    errors: list[ValidationIssue]
    warnings: list[ValidationIssue]
    summary: ValidationSummary
