from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import date

from ..models.invoice import InvoiceHeaderRecord, LineItemRecord, ProductCategory
from ..models.row import LineItemPattern
from .errors import FormatError, MissingDataError, ValidationError
from .numbers import is_blank, parse_currency, parse_percentage

"""Typed field extraction for header and line-item rows.

Header rows are free-form: the labeled fields may be spread over several
cells or packed comma-joined into one, e.g.::

    Invoice #  3-100001,,Invoice Date:  1/2/2024,,Salesperson:  J DOE,,Tax:  $1.00

Each marker's value runs up to the next marker or the end of its cell.
"""

__all__ = [
    "HEADER_MARKERS",
    "extract_header_fields",
    "parse_invoice_date",
    "extract_invoice_header",
    "extract_line_item",
    "categorize_product",
]

# Marker text -> field name. Longer markers sharing a prefix come first.
HEADER_MARKERS: dict[str, str] = {
    "Invoice Number:": "invoice_number",
    "Invoice #": "invoice_number",
    "Invoice Date:": "invoice_date",
    "Salesperson:": "salesperson",
    "Tax:": "tax_amount",
    "Total:": "total_amount",
    "Customer Name:": "customer_name",
    "Customer:": "customer_name",
    "Vehicle:": "vehicle_info",
    "Mileage:": "mileage",
}

_MARKER_RE = re.compile("|".join(re.escape(m) for m in HEADER_MARKERS))
_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def _clean_value(raw: str) -> str:
    return raw.strip().strip(",").strip()


def extract_header_fields(cells: Sequence[str]) -> dict[str, str]:
    """Map field name -> raw value for every marker found; first occurrence wins."""
    fields: dict[str, str] = {}
    for cell in cells:
        matches = list(_MARKER_RE.finditer(cell))
        for i, match in enumerate(matches):
            end = matches[i + 1].start() if i + 1 < len(matches) else len(cell)
            name = HEADER_MARKERS[match.group(0)]
            value = _clean_value(cell[match.end():end])
            if name not in fields and value:
                fields[name] = value
    return fields


def parse_invoice_date(raw: str) -> date:
    """Accepts M/D/YYYY, M/D/YY (20YY) and YYYY-MM-DD."""
    value = raw.strip()
    try:
        m = _US_DATE.match(value)
        if m:
            month, day, year = (int(g) for g in m.groups())
            if len(m.group(3)) == 2:
                year += 2000
            return date(year, month, day)
        m = _ISO_DATE.match(value)
        if m:
            year, month, day = (int(g) for g in m.groups())
            return date(year, month, day)
    except ValueError as e:
        raise FormatError(f"Invalid invoice date '{raw}': {e}", field="invoice_date") from e
    raise FormatError(f"Invalid invoice date '{raw}'", field="invoice_date")


def _amount(fields: dict[str, str], name: str) -> float:
    raw = fields.get(name)
    if raw is None:
        return 0.0
    try:
        return parse_currency(raw)
    except ValueError as e:
        raise FormatError(f"Invalid {name.replace('_', ' ')} '{raw}'", field=name) from e


def extract_invoice_header(cells: Sequence[str], *, today: date) -> InvoiceHeaderRecord:
    fields = extract_header_fields(cells)

    number_tokens = fields.get("invoice_number", "").split()
    if not number_tokens:
        raise MissingDataError("Invoice number is missing", field="invoice_number")

    raw_date = fields.get("invoice_date")
    if not raw_date:
        raise MissingDataError("Invoice date is missing", field="invoice_date")
    invoice_date = parse_invoice_date(raw_date)
    if invoice_date > today:
        raise ValidationError(
            f"Invoice date {invoice_date.isoformat()} is in the future", field="invoice_date"
        )

    return InvoiceHeaderRecord(
        invoice_number=number_tokens[0],
        customer_name=fields.get("customer_name", ""),
        invoice_date=invoice_date,
        salesperson=fields.get("salesperson", ""),
        tax_amount=_amount(fields, "tax_amount"),
        total_amount=_amount(fields, "total_amount"),
        vehicle_info=fields.get("vehicle_info"),
        mileage=fields.get("mileage"),
    )


def _number(raw: str, name: str, parser=parse_currency) -> float:
    if is_blank(raw):
        return 0.0
    try:
        return parser(raw)
    except ValueError as e:
        raise FormatError(f"Invalid {name.replace('_', ' ')} '{raw.strip()}'", field=name) from e


def extract_line_item(cells: Sequence[str], pattern: LineItemPattern) -> LineItemRecord:
    def cell(index: int) -> str:
        return cells[index].strip() if index < len(cells) else ""

    product_code = cell(pattern.product_code_index)
    if not product_code:
        raise MissingDataError("Product code is missing", field="product_code")

    adjustment = cell(pattern.adjustment_index)
    return LineItemRecord(
        product_code=product_code,
        description=cell(pattern.description_index),
        adjustment=adjustment or None,
        quantity=_number(cell(pattern.quantity_index), "quantity"),
        parts_cost=_number(cell(pattern.parts_index), "parts_cost"),
        labor_cost=_number(cell(pattern.labor_index), "labor_cost"),
        fet=_number(cell(pattern.fet_index), "fet"),
        line_total=_number(cell(pattern.total_index), "line_total"),
        cost=_number(cell(pattern.cost_index), "cost"),
        gross_profit_margin=_number(
            cell(pattern.gpm_index), "gross_profit_margin", parse_percentage
        ),
        gross_profit=_number(cell(pattern.gp_index), "gross_profit"),
        category=categorize_product(product_code),
    )


def categorize_product(product_code: str) -> ProductCategory:
    code = product_code.strip().upper()
    if not code:
        return ProductCategory.OTHER
    if ("OP" in code and len(code) <= 10) or "TIRE" in code or "CASING" in code:
        return ProductCategory.TIRES
    if code.startswith(("SRV-", "STW-", "LAB-", "MSHD-")):
        return ProductCategory.SERVICES
    if code.startswith(("ENV-", "48-01-")) or "SCRAP" in code or "FEE" in code:
        return ProductCategory.FEES
    return ProductCategory.PARTS
