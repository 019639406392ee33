from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from enum import Enum
from typing import Any

"""Invoice domain models.

``InvoiceHeaderRecord`` and ``LineItemRecord`` hold the typed values read from
report rows. ``ParsedInvoice`` is the sealed, immutable unit handed to
persistence collaborators; ``NormalizedInvoice`` carries the cleaned free-text
fields and invoice-level aggregates computed by the post-pass.
"""

__all__ = [
    "ProductCategory",
    "InvoiceHeaderRecord",
    "LineItemRecord",
    "ParsedInvoice",
    "NormalizedCustomer",
    "NormalizedLineItem",
    "NormalizedInvoice",
    "invoice_to_dict",
]


class ProductCategory(Enum):
    TIRES = "TIRES"
    SERVICES = "SERVICES"
    PARTS = "PARTS"
    FEES = "FEES"
    OTHER = "OTHER"


@dataclass(frozen=True)
class InvoiceHeaderRecord:
    """Header fields of one invoice.

    Invariants: ``invoice_number`` is non-empty and ``invoice_date`` is not in
    the future (enforced by the extractor).
    """
    invoice_number: str
    customer_name: str
    invoice_date: date
    salesperson: str
    tax_amount: float
    total_amount: float
    vehicle_info: str | None = None
    mileage: str | None = None


@dataclass(frozen=True)
class LineItemRecord:
    """One product / service / fee entry (11 report fields + category)."""
    product_code: str
    description: str
    adjustment: str | None
    quantity: float
    parts_cost: float
    labor_cost: float
    fet: float  # federal excise tax
    line_total: float
    cost: float
    gross_profit_margin: float  # percent
    gross_profit: float
    category: ProductCategory

    @property
    def unit_price(self) -> float:
        return self.line_total / self.quantity if self.quantity > 0 else 0.0


@dataclass(frozen=True)
class NormalizedCustomer:
    name: str
    identifier: str  # lower-case alphanumerics of the name, used for dedup


@dataclass(frozen=True)
class NormalizedLineItem:
    product_code: str
    description: str
    quantity: float
    unit_price: float
    line_total: float
    cost: float
    gross_profit_margin: float
    gross_profit: float
    category: ProductCategory


@dataclass(frozen=True)
class NormalizedInvoice:
    """Cleaned invoice ready for a persistence collaborator.

    Aggregates are recomputed from the line items rather than trusted from the
    header; ``total_amount`` = ``subtotal`` + header tax. ``reported_total`` is
    the header's own ``Total:`` value (0 when the header has none).
    """
    customer: NormalizedCustomer
    invoice_number: str
    invoice_date: date
    salesperson: str
    subtotal: float
    tax_amount: float
    total_amount: float
    labor_cost: float
    parts_cost: float
    environmental_fee: float
    line_items: tuple[NormalizedLineItem, ...]
    reported_total: float = 0.0


@dataclass(frozen=True)
class ParsedInvoice:
    """A sealed invoice: exactly one header plus its line items in row order."""
    header: InvoiceHeaderRecord
    line_items: tuple[LineItemRecord, ...]
    header_row_number: int
    line_item_row_numbers: tuple[int, ...]
    raw_header_line: str
    raw_line_item_lines: tuple[str, ...]
    normalized: NormalizedInvoice | None = None

    @property
    def invoice_number(self) -> str:
        return self.header.invoice_number


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def invoice_to_dict(invoice: ParsedInvoice) -> dict[str, Any]:
    """Plain JSON-serializable view of a parsed invoice (dates as ISO strings)."""
    return _jsonable(asdict(invoice))
