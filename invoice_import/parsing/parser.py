from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import date

from ..models.error_record import ErrorType, RowError, RowWarning
from ..models.processing_result import ParseResult
from .assembler import InvoiceAssembler
from .classifier import classify_row
from .errors import RowProcessingError
from .format_validator import render_validation_report, validate_format
from .normalizer import check_normalized_invoice, find_duplicate_invoice_numbers, normalize_invoices
from .tokenizer import tokenize_row

"""Batch entry point: report lines in, parsed invoices out.

One sequential fold over the lines: tokenize, classify, assemble. A failure
on one row is recorded against that row and the scan moves on. Once the
stream is exhausted the batch is deduplicated and normalized.

``batch_size`` only controls how often ``progress_callback`` fires; it never
changes the result.
"""

__all__ = ["ProgressCallback", "parse_rows", "validate_format", "render_validation_report"]

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def parse_rows(
    lines: Iterable[str],
    *,
    today: date | None = None,
    batch_size: int = 100,
    progress_callback: ProgressCallback | None = None,
) -> ParseResult:
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    today = today or date.today()
    rows: Sequence[str] = lines if isinstance(lines, Sequence) else list(lines)
    total = len(rows)

    assembler = InvoiceAssembler(today=today)
    skipped = 0
    for index, line in enumerate(rows):
        row_number = index + 1
        if not line.strip():
            skipped += 1
        else:
            try:
                assembler.consume(row_number, line, classify_row(tokenize_row(line)))
            except RowProcessingError as e:
                assembler.record_error(row_number, line, e)
            except Exception as e:
                logger.debug("Unexpected failure on row %d", row_number, exc_info=True)
                assembler.state.errors.append(
                    RowError(
                        row_number=row_number,
                        error_type=ErrorType.FORMAT,
                        message=f"Row processing failed: {e}",
                        raw_data=line,
                    )
                )
        if progress_callback is not None and row_number % batch_size == 0:
            progress_callback(row_number, total)

    state = assembler.finish()
    if progress_callback is not None and (total == 0 or total % batch_size != 0):
        progress_callback(total, total)

    invoices = normalize_invoices(state.completed)
    warnings = list(state.warnings)
    for invoice in invoices:
        if invoice.normalized is None:
            continue
        for message in check_normalized_invoice(invoice.normalized, today=today):
            warnings.append(RowWarning(row_number=invoice.header_row_number, message=message))

    duplicates = find_duplicate_invoice_numbers(invoices)
    if duplicates:
        logger.debug("Duplicate invoice numbers: %s", ", ".join(duplicates))

    return ParseResult(
        invoices=invoices,
        duplicate_invoice_numbers=duplicates,
        row_errors=state.errors,
        row_warnings=warnings,
        total_rows=total,
        processed_rows=total - skipped,
        skipped_rows=skipped,
    )
