from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from datetime import date

from ..models.error_record import ErrorType
from ..models.row import ClassifiedRow, RowKind
from ..models.validation import FormatValidationResult, ValidationIssue, ValidationSummary
from .classifier import classify_row
from .errors import RowProcessingError
from .extractor import extract_invoice_header, extract_line_item
from .financial_validator import is_plausible_line_item
from .numbers import MAX_QUANTITY_MAGNITUDE
from .tokenizer import tokenize_row

"""Lightweight format pre-check over a sample of report lines.

Nothing is assembled; each row is classified and checked on its own, with
just enough context (the open invoice number, the numbers seen so far) to
catch orphan line items and duplicate headers.
"""

__all__ = ["validate_format", "render_validation_report"]

logger = logging.getLogger(__name__)

INVOICE_NUMBER_FORMAT = re.compile(r"^\d+-[\w\-]*\d+$")
MAX_AVG_ITEMS_PER_INVOICE = 50
PROFIT_TOLERANCE = 0.01


class _SampleCheck:
    def __init__(self, today: date) -> None:
        self.today = today
        self.errors: list[ValidationIssue] = []
        self.warnings: list[ValidationIssue] = []
        self.header_rows = 0
        self.line_item_rows = 0
        self.ignored_rows = 0
        self.error_rows = 0
        self.current_invoice: str | None = None
        self.invoice_numbers: set[str] = set()
        self.last_customer_name: str | None = None

    def error(self, row: int, error_type: ErrorType, message: str, *, field=None, raw=None) -> None:
        self.errors.append(ValidationIssue(row, message, error_type, field, raw))

    def warn(self, row: int, message: str, *, field=None) -> None:
        self.warnings.append(ValidationIssue(row, message, field=field))

    def row(self, row_number: int, line: str) -> None:
        classified = classify_row(tokenize_row(line))
        kind = classified.kind
        if kind is RowKind.INVOICE_HEADER:
            self.header_rows += 1
            self.header(row_number, line, classified)
        elif kind is RowKind.INVOICE_END:
            if classified.pattern is not None:
                self.line_item_rows += 1
                self.line_item(row_number, line, classified)
            else:
                self.ignored_rows += 1
            self.current_invoice = None
        elif kind.is_line_item and classified.pattern is not None:
            self.line_item_rows += 1
            self.line_item(row_number, line, classified)
        else:
            if kind is RowKind.CUSTOMER_START:
                self.last_customer_name = classified.customer_name
            self.ignored_rows += 1

    def header(self, row_number: int, line: str, classified: ClassifiedRow) -> None:
        try:
            header = extract_invoice_header(classified.cells, today=self.today)
        except RowProcessingError as e:
            self.error(row_number, e.error_type, str(e), field=e.field, raw=line)
            self.error_rows += 1
            self.current_invoice = None
            return

        number = header.invoice_number
        if not INVOICE_NUMBER_FORMAT.match(number):
            self.warn(row_number, f"Unusual invoice number format: {number}", field="invoice_number")
        if not header.customer_name and not self.last_customer_name:
            self.warn(row_number, "Customer name is empty", field="customer_name")
        if not header.salesperson:
            self.warn(row_number, "Salesperson is empty", field="salesperson")
        if header.total_amount < 0:
            self.error(row_number, ErrorType.VALIDATION, "Invoice total cannot be negative", field="total_amount")
        if header.tax_amount < 0:
            self.error(row_number, ErrorType.VALIDATION, "Tax amount cannot be negative", field="tax_amount")

        if number in self.invoice_numbers:
            self.error(
                row_number, ErrorType.DUPLICATE, f"Duplicate invoice number: {number}", field="invoice_number"
            )
        else:
            self.invoice_numbers.add(number)
        self.current_invoice = number
        self.last_customer_name = None

    def line_item(self, row_number: int, line: str, classified: ClassifiedRow) -> None:
        if self.current_invoice is None:
            self.error(
                row_number,
                ErrorType.BUSINESS_RULE,
                "Line item found without associated invoice header",
                raw=line,
            )
            return
        try:
            item = extract_line_item(classified.cells, classified.pattern)  # type: ignore[arg-type]
        except RowProcessingError as e:
            self.error(row_number, e.error_type, str(e), field=e.field, raw=line)
            self.error_rows += 1
            return

        if not item.description:
            self.warn(row_number, "Product description is empty", field="description")
        if item.quantity <= 0:
            self.error(row_number, ErrorType.VALIDATION, "Quantity must be greater than 0", field="quantity")
        elif item.quantity > MAX_QUANTITY_MAGNITUDE:
            self.warn(row_number, f"Unusually high quantity: {item.quantity:g}", field="quantity")
        if item.line_total < 0:
            self.error(row_number, ErrorType.VALIDATION, "Line total cannot be negative", field="line_total")
        if item.cost < 0:
            self.error(row_number, ErrorType.VALIDATION, "Cost cannot be negative", field="cost")
        if item.line_total > 0 and item.cost > 0:
            expected = item.line_total - item.cost
            if abs(expected - item.gross_profit) > PROFIT_TOLERANCE:
                self.warn(
                    row_number,
                    f"Gross profit calculation may be incorrect. "
                    f"Expected: {expected:.2f}, Found: {item.gross_profit:.2f}",
                    field="gross_profit",
                )
        if item.quantity > 0 and not is_plausible_line_item(item):
            self.warn(row_number, f"Line item {item.product_code} looks like report noise", field="product_code")

    def global_rules(self) -> None:
        if self.header_rows == 0 and self.line_item_rows == 0:
            self.error(0, ErrorType.MISSING_DATA, "No invoice or line item data found in file")
        if self.header_rows > 0 and self.line_item_rows == 0:
            self.warn(0, "Found invoice headers but no line items")
        if self.header_rows > 0 and self.line_item_rows > 0:
            average = self.line_item_rows / self.header_rows
            if average < 1:
                self.warn(0, "Fewer line items than invoices - some invoices may be missing details")
            elif average > MAX_AVG_ITEMS_PER_INVOICE:
                self.warn(0, f"Very high average line items per invoice ({average:.1f}) - verify format")


def validate_format(sample_lines: Iterable[str], *, today: date | None = None) -> FormatValidationResult:
    check = _SampleCheck(today or date.today())
    total_rows = 0
    for row_number, line in enumerate(sample_lines, start=1):
        total_rows += 1
        if not line.strip():
            check.ignored_rows += 1
            continue
        try:
            check.row(row_number, line)
        except Exception as e:
            logger.debug("Row %d failed format check: %s", row_number, e)
            check.error(row_number, ErrorType.FORMAT, f"Row processing failed: {e}", raw=line)
            check.error_rows += 1
    check.global_rules()

    summary = ValidationSummary(
        total_rows=total_rows,
        header_rows=check.header_rows,
        line_item_rows=check.line_item_rows,
        ignored_rows=check.ignored_rows,
        error_rows=check.error_rows,
        estimated_invoices=len(check.invoice_numbers),
    )
    return FormatValidationResult(
        is_valid=not check.errors,
        errors=check.errors,
        warnings=check.warnings,
        summary=summary,
    )


def render_validation_report(result: FormatValidationResult) -> str:
    s = result.summary
    lines = [
        "=== Invoice Detail Report Validation ===",
        "",
        f"Total Rows: {s.total_rows}",
        f"Invoice Headers: {s.header_rows}",
        f"Line Items: {s.line_item_rows}",
        f"Ignored Rows: {s.ignored_rows}",
        f"Error Rows: {s.error_rows}",
        f"Estimated Invoices: {s.estimated_invoices}",
        "",
        f"Validation Result: {'PASSED' if result.is_valid else 'FAILED'}",
        "",
    ]
    if result.errors:
        lines.append("=== ERRORS ===")
        for issue in result.errors:
            error_type = issue.error_type.value if issue.error_type else "UNKNOWN"
            lines.append(f"Row {issue.row_number}: [{error_type}] {issue.message}")
            if issue.field:
                lines.append(f"  Field: {issue.field}")
        lines.append("")
    if result.warnings:
        lines.append("=== WARNINGS ===")
        for issue in result.warnings:
            lines.append(f"Row {issue.row_number}: {issue.message}")
            if issue.field:
                lines.append(f"  Field: {issue.field}")
        lines.append("")
    if result.is_valid:
        lines.append("File is ready for import")
    else:
        lines.append("File has errors and cannot be imported")
    return "\n".join(lines)
