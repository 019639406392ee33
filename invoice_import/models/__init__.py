"""Domain models for the invoice detail report importer."""

from .error_record import ErrorRecord, ErrorType, RowError, RowWarning
from .invoice import (
    InvoiceHeaderRecord,
    LineItemRecord,
    NormalizedCustomer,
    NormalizedInvoice,
    NormalizedLineItem,
    ParsedInvoice,
    ProductCategory,
    invoice_to_dict,
)
from .processing_result import FileStat, ParseResult, ProcessingResult
from .report_file import FileStatus, ReportFile
from .row import ClassifiedRow, LineItemPattern, RawRow, RowKind
from .validation import FormatValidationResult, ValidationIssue, ValidationResult, ValidationSummary

__all__ = [
    # Row classification
    "RawRow",
    "RowKind",
    "LineItemPattern",
    "ClassifiedRow",
    # Invoice records
    "ProductCategory",
    "InvoiceHeaderRecord",
    "LineItemRecord",
    "ParsedInvoice",
    "NormalizedCustomer",
    "NormalizedLineItem",
    "NormalizedInvoice",
    "invoice_to_dict",
    # Validation & errors
    "ValidationResult",
    "ValidationIssue",
    "ValidationSummary",
    "FormatValidationResult",
    "ErrorType",
    "RowError",
    "RowWarning",
    "ErrorRecord",
    # Results
    "ParseResult",
    "FileStat",
    "ProcessingResult",
    "FileStatus",
    "ReportFile",
]
