from __future__ import annotations

import re
from collections.abc import Sequence

from ..models.row import ClassifiedRow, RawRow, RowKind
from .pattern_detector import detect_line_item_pattern, try_pattern

"""Row classification cascade.

Rules are evaluated in order and the first match wins:

1. termination phrase in any cell           -> INVOICE_END
2. invoice-number marker in any cell        -> INVOICE_HEADER
3. report banner in the first cell          -> LINE_ITEM_EMBEDDED (item at the
                                               banner's offset) or IGNORE
4. boilerplate keyword in the first cell    -> IGNORE
5. customer-name shaped first cell          -> CUSTOMER_START
6. line-item pattern at any known offset    -> LINE_ITEM / LINE_ITEM_EMBEDDED
7. otherwise                                -> IGNORE

Textual anchors (1, 2) come before the probabilistic pattern match so that
numeric-looking header or terminator rows are never taken for line items.
"""

__all__ = [
    "TERMINATION_PHRASES",
    "HEADER_MARKERS",
    "REPORT_BANNERS",
    "BANNER_OFFSET",
    "IGNORE_KEYWORDS",
    "is_termination_row",
    "is_header_row",
    "strip_customer_label",
    "looks_like_customer_name",
    "classify_row",
]

TERMINATION_PHRASES: tuple[str, ...] = ("Totals for Invoice", "Total for Invoice", "Invoice Total")
HEADER_MARKERS: tuple[str, ...] = ("Invoice #", "Invoice Number")
BANNER_OFFSET = 26
REPORT_BANNERS: dict[str, int] = {"Invoice Detail Report": BANNER_OFFSET}
IGNORE_KEYWORDS: tuple[str, ...] = (
    "Total #",
    "Average",
    "Selected Date Range",
    "Report Notes",
    "Printed:",
    "Product Code",
    "Totals for Report",
    "Page ",
    "Site#",
)

# Words that never appear in a customer name line
_NON_NAME_WORDS = ("INVOICE", "REPORT", "TOTAL", "SUMMARY", "AVERAGE", "PRINTED", "SELECTED")
_LAST_FIRST = re.compile(r"^[A-Z][A-Z'.\- ]*,\s*[A-Z][A-Z'.\- ]*$")
_ALPHA_WORD = re.compile(r"^[A-Z]+$")
_CUSTOMER_LABEL = re.compile(r"^\s*Customer(?: Name)?:\s*", re.IGNORECASE)


def _first_cell(cells: Sequence[str]) -> str:
    return cells[0].strip() if cells else ""


def is_termination_row(cells: Sequence[str]) -> bool:
    return any(phrase in cell for cell in cells for phrase in TERMINATION_PHRASES)


def is_header_row(cells: Sequence[str]) -> bool:
    return any(marker in cell for cell in cells for marker in HEADER_MARKERS)


def _banner_offset(first: str) -> int | None:
    for banner, offset in REPORT_BANNERS.items():
        if banner in first:
            return offset
    return None


def strip_customer_label(value: str) -> tuple[str, bool]:
    """``'Customer Name:  AKERS, KENNETH'`` -> ``('AKERS, KENNETH', True)``."""
    stripped = _CUSTOMER_LABEL.sub("", value, count=1)
    return " ".join(stripped.split()), stripped != value


def looks_like_customer_name(value: str) -> bool:
    """'LASTNAME, FIRSTNAME' or 1-4 alphabetic words with one of 3+ letters.

    A ``Customer Name:`` label is stripped first; a labeled value is also
    accepted when it is an upper-case, comma-containing name.
    """
    raw, labeled = strip_customer_label(value)
    name = raw.upper()
    if len(name) < 3:
        return False
    if any(word in name for word in _NON_NAME_WORDS):
        return False
    if "$" in name or "%" in name:
        return False
    if _LAST_FIRST.match(name):
        return True
    if labeled and "," in raw and raw == name and any(c.isalpha() for c in raw):
        return True
    words = name.split()
    if not 1 <= len(words) <= 4:
        return False
    if not all(_ALPHA_WORD.match(w) for w in words):
        return False
    return any(len(w) >= 3 for w in words)


def classify_row(cells: RawRow) -> ClassifiedRow:
    if not cells or all(not c.strip() for c in cells):
        return ClassifiedRow(RowKind.IGNORE, cells)

    if is_termination_row(cells):
        # The invoice's last item may share the physical line with its totals caption
        return ClassifiedRow(RowKind.INVOICE_END, cells, pattern=try_pattern(cells, BANNER_OFFSET))

    if is_header_row(cells):
        return ClassifiedRow(RowKind.INVOICE_HEADER, cells)

    first = _first_cell(cells)

    banner_offset = _banner_offset(first)
    if banner_offset is not None:
        pattern = try_pattern(cells, banner_offset)
        if pattern is not None:
            return ClassifiedRow(RowKind.LINE_ITEM_EMBEDDED, cells, pattern=pattern)
        return ClassifiedRow(RowKind.IGNORE, cells)

    if any(keyword in first for keyword in IGNORE_KEYWORDS):
        return ClassifiedRow(RowKind.IGNORE, cells)

    if looks_like_customer_name(first) and try_pattern(cells, 0) is None:
        return ClassifiedRow(RowKind.CUSTOMER_START, cells, customer_name=strip_customer_label(first)[0])

    pattern = detect_line_item_pattern(cells)
    if pattern is not None:
        kind = RowKind.LINE_ITEM_EMBEDDED if pattern.is_embedded else RowKind.LINE_ITEM
        return ClassifiedRow(kind, cells, pattern=pattern)

    return ClassifiedRow(RowKind.IGNORE, cells)
