from __future__ import annotations

from ..models.error_record import ErrorType, RowError

"""Row-scoped error taxonomy.

Every exception raised while handling a single report row derives from
``RowProcessingError``; the parser catches them per row and turns them into
``RowError`` records so that one corrupt row never stops the scan.
"""

__all__ = [
    "RowProcessingError",
    "FormatError",
    "MissingDataError",
    "ValidationError",
    "BusinessRuleError",
    "DuplicateError",
]


class RowProcessingError(Exception):
    """Base class for row-scoped failures."""

    error_type: ErrorType = ErrorType.FORMAT

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field

    def to_row_error(self, row_number: int, raw_data: str) -> RowError:
        return RowError(
            row_number=row_number,
            error_type=self.error_type,
            message=str(self),
            raw_data=raw_data,
            field=self.field,
        )


class FormatError(RowProcessingError):
    """Row fails tokenization or a required marker/shape is absent."""
    error_type = ErrorType.FORMAT


class MissingDataError(RowProcessingError):
    """A required field is blank."""
    error_type = ErrorType.MISSING_DATA


class ValidationError(RowProcessingError):
    """A value lies outside its allowed domain (future date, impossible margin, ...)."""
    error_type = ErrorType.VALIDATION


class BusinessRuleError(RowProcessingError):
    """A line item was encountered with no open invoice."""
    error_type = ErrorType.BUSINESS_RULE


class DuplicateError(RowProcessingError):
    """An invoice number was seen twice in one batch (advisory)."""
    error_type = ErrorType.DUPLICATE
