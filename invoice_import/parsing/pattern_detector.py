from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from ..models.row import LineItemPattern
from .numbers import is_currency, is_percentage, is_quantity

"""Line-item pattern detection.

The text conversion that produced these exports does not keep a stable column
count: the 11 line-item fields may start at cell 0 (standard layout), cell 11
(report layout) or cell 26 (item glued to the tail of an "Invoice Detail
Report" banner row). Each candidate offset is scored on the shape of its
cells and the best-scoring offset at or above ``CONFIDENCE_THRESHOLD`` wins.

Score weights:
    product code shape                      +30
    quantity numeric, |qty| <= 1000         +20
    parts/labor/fet/total currency or blank +25
    cost and gross profit currency or blank +15
    margin percentage in [-1000, 1000]      +10
"""

__all__ = [
    "KNOWN_OFFSETS",
    "CONFIDENCE_THRESHOLD",
    "FIELD_COUNT",
    "is_valid_product_code",
    "score_offset",
    "meets_confidence_threshold",
    "try_pattern",
    "detect_line_item_pattern",
]

KNOWN_OFFSETS: tuple[int, ...] = (0, 11, 26)
CONFIDENCE_THRESHOLD = 60
FIELD_COUNT = 11

PRODUCT_CODE_SCORE = 30
QUANTITY_SCORE = 20
AMOUNTS_SCORE = 25
COST_PROFIT_SCORE = 15
MARGIN_SCORE = 10

_PRODUCT_CODE_PATTERNS = [
    re.compile(r"^[A-Z0-9][A-Z0-9\-]{2,15}$"),  # V86216-2, SRV-SHOP01, ENV-F01
    re.compile(r"^OP\d+$"),  # OP19
    re.compile(r"^\d{2}-\d{2}-\d{3}-\d$"),  # 48-01-091-1
    re.compile(r"^[A-Z]{2,5}-[A-Z0-9]+$"),  # STW-BAL01, LAB-OIL
    re.compile(r"^\d{6}$"),  # 046240
    re.compile(r"^[A-Z]{3}-[A-Z0-9]{3,8}$"),
    re.compile(r"^[A-Z0-9]{3,12}$"),
    re.compile(r"^\d+$"),
]

_NON_PRODUCT_WORDS = (
    "INVOICE",
    "REPORT",
    "TOTAL",
    "CUSTOMER",
    "SELECTED",
    "PRINTED",
    "PAGE",
    "AVERAGE",
    "SUMMARY",
    "NOTES",
)


def _cell(cells: Sequence[str], index: int) -> str:
    return cells[index].strip() if index < len(cells) else ""


def is_valid_product_code(value: str) -> bool:
    code = value.strip().upper()
    if len(code) < 2:
        return False
    if any(word in code for word in _NON_PRODUCT_WORDS):
        return False
    return any(p.match(code) for p in _PRODUCT_CODE_PATTERNS)


def score_offset(cells: Sequence[str], offset: int) -> int:
    """Raw shape score (0-100) of the 11 cells starting at ``offset``."""
    if offset < 0 or len(cells) < offset + FIELD_COUNT:
        return 0
    f = [_cell(cells, offset + i) for i in range(FIELD_COUNT)]
    product_code, _desc, _adj, quantity, parts, labor, fet, total, cost, gpm, gp = f

    score = 0
    if is_valid_product_code(product_code):
        score += PRODUCT_CODE_SCORE
    if is_quantity(quantity):
        score += QUANTITY_SCORE
    if all(is_currency(v) for v in (parts, labor, fet, total)):
        score += AMOUNTS_SCORE
    if is_currency(cost) and is_currency(gp):
        score += COST_PROFIT_SCORE
    if is_percentage(gpm):
        score += MARGIN_SCORE
    return score


def meets_confidence_threshold(confidence: int) -> bool:
    return confidence >= CONFIDENCE_THRESHOLD


def try_pattern(cells: Sequence[str], offset: int) -> LineItemPattern | None:
    confidence = score_offset(cells, offset)
    if not meets_confidence_threshold(confidence):
        return None
    return LineItemPattern.at(offset, confidence)


def detect_line_item_pattern(
    cells: Sequence[str], offsets: Iterable[int] = KNOWN_OFFSETS
) -> LineItemPattern | None:
    """Best qualifying pattern across ``offsets``; ties keep the earlier (lower) offset."""
    best: LineItemPattern | None = None
    for offset in sorted(offsets):
        candidate = try_pattern(cells, offset)
        if candidate is None:
            continue
        if best is None or candidate.confidence > best.confidence:
            best = candidate
    return best
