from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date

from ..models.error_record import RowError, RowWarning
from ..models.invoice import InvoiceHeaderRecord, LineItemRecord, ParsedInvoice
from ..models.row import ClassifiedRow, LineItemPattern, RowKind
from ..models.validation import ValidationResult
from .errors import BusinessRuleError, RowProcessingError, ValidationError
from .extractor import extract_header_fields, extract_invoice_header, extract_line_item
from .financial_validator import validate_and_correct

"""Invoice assembly state machine.

Two states: no open invoice (``state.current is None``) and in-invoice.

    INVOICE_HEADER      seal the open invoice (implicit close), open a new one
    INVOICE_END         append an embedded item on the same row, then seal
    LINE_ITEM[_EMBEDDED] append to the open invoice, or BusinessRuleError
    CUSTOMER_START      remember the name, vehicle and mileage as header fallbacks
    IGNORE              nothing
    end of stream       seal the open invoice

A report may print an invoice's last line item and its totals caption on the
same physical line; that item is appended before the invoice is sealed.
"""

__all__ = ["ParsingState", "InvoiceAssembler"]

logger = logging.getLogger(__name__)

# Header fields a customer row may carry alongside the name
CUSTOMER_ROW_FIELDS = ("vehicle_info", "mileage")


@dataclass
class _OpenInvoice:
    header: InvoiceHeaderRecord
    header_row_number: int
    raw_header_line: str
    line_items: list[LineItemRecord] = field(default_factory=list)
    row_numbers: list[int] = field(default_factory=list)
    raw_lines: list[str] = field(default_factory=list)

    def seal(self) -> ParsedInvoice:
        return ParsedInvoice(
            header=self.header,
            line_items=tuple(self.line_items),
            header_row_number=self.header_row_number,
            line_item_row_numbers=tuple(self.row_numbers),
            raw_header_line=self.raw_header_line,
            raw_line_item_lines=tuple(self.raw_lines),
        )


@dataclass
class ParsingState:
    """Accumulator threaded through one sequential scan; owned by one assembler."""
    current: _OpenInvoice | None = None
    completed: list[ParsedInvoice] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    warnings: list[RowWarning] = field(default_factory=list)
    last_customer_name: str | None = None
    last_customer_details: dict[str, str] = field(default_factory=dict)


class InvoiceAssembler:
    def __init__(self, *, today: date) -> None:
        self.today = today
        self.state = ParsingState()

    @property
    def in_invoice(self) -> bool:
        return self.state.current is not None

    def consume(self, row_number: int, line: str, classified: ClassifiedRow) -> None:
        kind = classified.kind
        if kind is RowKind.INVOICE_HEADER:
            self._open(row_number, line, classified)
        elif kind is RowKind.INVOICE_END:
            if classified.pattern is not None:
                self._append(row_number, line, classified, classified.pattern)
            self._seal()
        elif kind.is_line_item and classified.pattern is not None:
            self._append(row_number, line, classified, classified.pattern)
        elif kind is RowKind.CUSTOMER_START:
            self.state.last_customer_name = classified.customer_name
            fields = extract_header_fields(classified.cells)
            self.state.last_customer_details = {
                name: fields[name] for name in CUSTOMER_ROW_FIELDS if name in fields
            }

    def record_error(self, row_number: int, line: str, error: RowProcessingError) -> None:
        self.state.errors.append(error.to_row_error(row_number, line))

    def finish(self) -> ParsingState:
        self._seal()
        return self.state

    def _seal(self) -> None:
        if self.state.current is None:
            return
        invoice = self.state.current.seal()
        self.state.completed.append(invoice)
        self.state.current = None
        logger.debug(
            "Sealed invoice %s with %d line items", invoice.invoice_number, len(invoice.line_items)
        )

    def _open(self, row_number: int, line: str, classified: ClassifiedRow) -> None:
        self._seal()
        try:
            header = extract_invoice_header(classified.cells, today=self.today)
        except RowProcessingError as e:
            self.record_error(row_number, line, e)
            return
        fallback = {
            name: value
            for name, value in self.state.last_customer_details.items()
            if getattr(header, name) is None
        }
        if not header.customer_name and self.state.last_customer_name:
            fallback["customer_name"] = self.state.last_customer_name
        if fallback:
            header = replace(header, **fallback)
        self.state.last_customer_name = None
        self.state.last_customer_details = {}
        self.state.current = _OpenInvoice(header, row_number, line)

    def _append(
        self, row_number: int, line: str, classified: ClassifiedRow, pattern: LineItemPattern
    ) -> None:
        current = self.state.current
        if current is None:
            self.record_error(
                row_number, line, BusinessRuleError("Line item with no open invoice")
            )
            return
        try:
            extracted = extract_line_item(classified.cells, pattern)
            item, result = validate_and_correct(extracted)
            if not result.is_valid:
                raise ValidationError(_rejection_message(item, result))
        except RowProcessingError as e:
            self.record_error(row_number, line, e)
            return

        for message in result.warnings:
            self.state.warnings.append(RowWarning(row_number=row_number, message=message))
        current.line_items.append(item)
        current.row_numbers.append(row_number)
        current.raw_lines.append(line)


def _rejection_message(item: LineItemRecord, result: ValidationResult) -> str:
    if result.errors:
        return f"Line item {item.product_code} failed validation: " + "; ".join(result.errors)
    return f"Line item {item.product_code} confidence {result.confidence} below threshold"
