from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Row-level models for the invoice detail report parser.

A physical report line is tokenized into a ``RawRow`` (ordered list of
cells), classified into exactly one ``RowKind`` and, for line items, paired
with the ``LineItemPattern`` describing where the 11 line-item fields sit.
"""

__all__ = [
    "RawRow",
    "RowKind",
    "LineItemPattern",
    "ClassifiedRow",
]

RawRow = list[str]


class RowKind(Enum):
    """Closed set of row classifications.

    - CUSTOMER_START: a customer-name line (informational)
    - INVOICE_HEADER: carries the invoice-number marker and header fields
    - INVOICE_END: "totals for this invoice" terminator
    - LINE_ITEM: line item at the standard offset (0)
    - LINE_ITEM_EMBEDDED: line item found at a non-zero offset, typically glued
      to the tail of a report banner row
    - IGNORE: banners, column headings, report summaries, blank rows
    """
    CUSTOMER_START = "customer_start"
    INVOICE_HEADER = "invoice_header"
    INVOICE_END = "invoice_end"
    LINE_ITEM = "line_item"
    LINE_ITEM_EMBEDDED = "line_item_embedded"
    IGNORE = "ignore"

    @property
    def is_line_item(self) -> bool:
        return self in (RowKind.LINE_ITEM, RowKind.LINE_ITEM_EMBEDDED)


@dataclass(frozen=True)
class LineItemPattern:
    """Cell layout of one line item inside a row.

    The 11 slots are contiguous, starting at ``offset``:
    Product Code | Size & Desc. | Adjustment | QTY | Parts | Labor | FET |
    Total | Cost | GPM% | GP$
    """
    offset: int
    product_code_index: int
    description_index: int
    adjustment_index: int
    quantity_index: int
    parts_index: int
    labor_index: int
    fet_index: int
    total_index: int
    cost_index: int
    gpm_index: int
    gp_index: int
    confidence: int  # 0-100

    @classmethod
    def at(cls, offset: int, confidence: int) -> LineItemPattern:
        return cls(
            offset=offset,
            product_code_index=offset,
            description_index=offset + 1,
            adjustment_index=offset + 2,
            quantity_index=offset + 3,
            parts_index=offset + 4,
            labor_index=offset + 5,
            fet_index=offset + 6,
            total_index=offset + 7,
            cost_index=offset + 8,
            gpm_index=offset + 9,
            gp_index=offset + 10,
            confidence=confidence,
        )

    @property
    def is_embedded(self) -> bool:
        return self.offset != 0


@dataclass(frozen=True)
class ClassifiedRow:
    """Result of classifying one tokenized row.

    ``pattern`` is set for line-item kinds and for an INVOICE_END row that also
    carries the invoice's final line item in its embedded slot range.
    """
    kind: RowKind
    cells: RawRow
    pattern: LineItemPattern | None = None
    customer_name: str | None = None
