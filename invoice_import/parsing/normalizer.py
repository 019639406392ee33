from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import date

from ..models.error_record import RowError
from ..models.invoice import (
    LineItemRecord,
    NormalizedCustomer,
    NormalizedInvoice,
    NormalizedLineItem,
    ParsedInvoice,
    ProductCategory,
)
from .errors import DuplicateError

"""Batch post-pass: duplicate detection and invoice normalization.

Duplicates are advisory. Every invoice is kept; repeated numbers are
reported so the persistence side can decide whether to skip or overwrite.
"""

__all__ = [
    "UNKNOWN_CUSTOMER",
    "UNKNOWN_SALESPERSON",
    "find_duplicate_invoice_numbers",
    "duplicate_row_errors",
    "normalize_invoice",
    "normalize_invoices",
    "normalize_customer_name",
    "normalize_salesperson",
    "normalize_description",
    "customer_identifier",
    "check_normalized_invoice",
]

UNKNOWN_CUSTOMER = "Unknown Customer"
UNKNOWN_SALESPERSON = "Unknown"
TOTAL_TOLERANCE = 0.05

_WORD_START = re.compile(r"\b\w")
_LEADING_DOTS = re.compile(r"^\.+\s*")
_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def find_duplicate_invoice_numbers(invoices: Iterable[ParsedInvoice]) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    for invoice in invoices:
        number = invoice.invoice_number
        if number in seen and number not in duplicates:
            duplicates.append(number)
        seen.add(number)
    return duplicates


def duplicate_row_errors(invoices: Iterable[ParsedInvoice]) -> list[RowError]:
    """One DUPLICATE error per header row repeating an earlier invoice number."""
    first_rows: dict[str, int] = {}
    errors: list[RowError] = []
    for invoice in invoices:
        number = invoice.invoice_number
        if number in first_rows:
            error = DuplicateError(
                f"Duplicate invoice number {number} (first seen at row {first_rows[number]})",
                field="invoice_number",
            )
            errors.append(error.to_row_error(invoice.header_row_number, invoice.raw_header_line))
        else:
            first_rows[number] = invoice.header_row_number
    return errors


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text.strip())


def _title_case(text: str) -> str:
    return _WORD_START.sub(lambda m: m.group(0).upper(), text.lower())


def _round2(value: float) -> float:
    return round(value, 2)


def normalize_customer_name(name: str) -> str:
    if not name.strip():
        return UNKNOWN_CUSTOMER
    return _title_case(_collapse(name))


def normalize_salesperson(name: str) -> str:
    if not name.strip():
        return UNKNOWN_SALESPERSON
    return _title_case(_collapse(name))


def normalize_description(description: str) -> str:
    return _collapse(_LEADING_DOTS.sub("", description.strip()))


def customer_identifier(name: str) -> str:
    return _NON_ALNUM.sub("", name.lower())


def _normalize_line_item(item: LineItemRecord) -> NormalizedLineItem:
    return NormalizedLineItem(
        product_code=item.product_code.strip().upper(),
        description=normalize_description(item.description),
        quantity=item.quantity,
        unit_price=_round2(item.unit_price),
        line_total=item.line_total,
        cost=item.cost,
        gross_profit_margin=item.gross_profit_margin,
        gross_profit=item.gross_profit,
        category=item.category,
    )


def normalize_invoice(invoice: ParsedInvoice) -> NormalizedInvoice:
    header = invoice.header
    subtotal = labor = parts = environmental = 0.0
    for item in invoice.line_items:
        subtotal += item.line_total
        labor += item.labor_cost
        parts += item.parts_cost
        if item.category is ProductCategory.FEES:
            environmental += item.line_total
        environmental += item.fet

    name = normalize_customer_name(header.customer_name)
    subtotal = _round2(subtotal)
    return NormalizedInvoice(
        customer=NormalizedCustomer(name=name, identifier=customer_identifier(name)),
        invoice_number=header.invoice_number.strip(),
        invoice_date=header.invoice_date,
        salesperson=normalize_salesperson(header.salesperson),
        subtotal=subtotal,
        tax_amount=header.tax_amount,
        total_amount=_round2(subtotal + header.tax_amount),
        labor_cost=_round2(labor),
        parts_cost=_round2(parts),
        environmental_fee=_round2(environmental),
        line_items=tuple(_normalize_line_item(item) for item in invoice.line_items),
        reported_total=header.total_amount,
    )


def normalize_invoices(invoices: Sequence[ParsedInvoice]) -> list[ParsedInvoice]:
    return [replace(invoice, normalized=normalize_invoice(invoice)) for invoice in invoices]


def check_normalized_invoice(normalized: NormalizedInvoice, *, today: date | None = None) -> list[str]:
    """Cross-checks on a normalized invoice; findings are advisory."""
    problems: list[str] = []
    if not normalized.line_items:
        problems.append("Invoice has no line items")
    if today is not None and normalized.invoice_date > today:
        problems.append("Invoice date cannot be in the future")
    if normalized.total_amount < 0:
        problems.append(f"Invoice total amount {normalized.total_amount:.2f} is negative")
    for i, item in enumerate(normalized.line_items, start=1):
        if item.line_total < 0:
            problems.append(f"Line item {i}: line total {item.line_total:.2f} is negative")
    if (
        normalized.line_items
        and normalized.reported_total
        and abs(normalized.reported_total - normalized.total_amount) > TOTAL_TOLERANCE
    ):
        problems.append(
            f"Total mismatch: header reports {normalized.reported_total:.2f}, "
            f"but line items plus tax come to {normalized.total_amount:.2f}"
        )
    return problems
