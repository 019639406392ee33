from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from ..models.invoice import LineItemRecord
from ..models.validation import ValidationResult

"""Financial consistency checks for extracted line items.

Every check compares against a tolerance of ``max(0.05, 1% of |line_total|)``
except the margin check, which uses a 2 percentage point band. Confidence
starts at 100 and each failed check subtracts its penalty; an item is valid
only with no errors and confidence >= 60.
"""

__all__ = [
    "VALID_CONFIDENCE",
    "CorrectionResult",
    "tolerance_for",
    "validate_line_item",
    "correct_line_item",
    "validate_and_correct",
    "is_plausible_line_item",
]

logger = logging.getLogger(__name__)

VALID_CONFIDENCE = 60
MIN_TOLERANCE = 0.05
RELATIVE_TOLERANCE = 0.01
MARGIN_TOLERANCE_POINTS = 2.0
MARGIN_CORRECTION_POINTS = 1.0
LARGE_QUANTITY = 100
LARGE_UNIT_PRICE = 10_000

# Penalties
MISSING_CODE_PENALTY = 20
BAD_QUANTITY_PENALTY = 15
TOTAL_MISMATCH_PENALTY = 25
GROSS_PROFIT_MISMATCH_PENALTY = 25
MARGIN_DISCREPANCY_PENALTY = 10
IMPOSSIBLE_MARGIN_PENALTY = 35
EXTREME_LOSS_PENALTY = 10
LARGE_QUANTITY_PENALTY = 5
LARGE_UNIT_PRICE_PENALTY = 5
NEGATIVE_COMPONENT_PENALTY = 10
ZERO_TOTAL_PENALTY = 10

_SERVICE_PREFIXES = ("SRV-", "ENV-", "STW-", "LAB-", "MSHD-")
_SERVICE_WORDS = ("SERVICE", "SUPPLIES", "FEE")
_NOISE_WORDS = ("TOTAL", "REPORT", "INVOICE", "CUSTOMER", "SELECTED", "PRINTED", "AVERAGE")
_MAX_PLAUSIBLE_QUANTITY = 50_000


@dataclass(frozen=True)
class CorrectionResult:
    item: LineItemRecord
    warnings: list[str] = field(default_factory=list)
    corrected_fields: dict[str, float] = field(default_factory=dict)


def tolerance_for(line_total: float) -> float:
    return max(MIN_TOLERANCE, abs(line_total) * RELATIVE_TOLERANCE)


def _close(a: float, b: float, tolerance: float) -> bool:
    return abs(a - b) <= tolerance


def validate_line_item(item: LineItemRecord) -> ValidationResult:
    errors: list[str] = []
    warnings: list[str] = []
    confidence = 100
    tolerance = tolerance_for(item.line_total)

    if not item.product_code.strip():
        errors.append("Product code is missing")
        confidence -= MISSING_CODE_PENALTY

    if item.quantity <= 0:
        errors.append(f"Quantity must be positive, got {item.quantity:g}")
        confidence -= BAD_QUANTITY_PENALTY

    # With zero parts this is the labor + FET rule for pure-service items
    components = item.parts_cost + item.labor_cost + item.fet
    if not _close(components, item.line_total, tolerance):
        errors.append(
            f"Line total {item.line_total:.2f} does not match parts + labor + FET {components:.2f}"
        )
        confidence -= TOTAL_MISMATCH_PENALTY

    expected_gp = item.line_total - item.cost
    if not _close(expected_gp, item.gross_profit, tolerance):
        errors.append(
            f"Gross profit {item.gross_profit:.2f} does not match total - cost {expected_gp:.2f}"
        )
        confidence -= GROSS_PROFIT_MISMATCH_PENALTY

    if item.line_total != 0:
        expected_gpm = item.gross_profit / item.line_total * 100
        if not _close(expected_gpm, item.gross_profit_margin, MARGIN_TOLERANCE_POINTS):
            warnings.append(
                f"Gross profit margin {item.gross_profit_margin:.2f}% differs from "
                f"calculated {expected_gpm:.2f}%"
            )
            confidence -= MARGIN_DISCREPANCY_PENALTY

    if item.gross_profit_margin > 100 and item.cost > 0:
        errors.append(
            f"Gross profit margin {item.gross_profit_margin:.2f}% is impossible with positive cost"
        )
        confidence -= IMPOSSIBLE_MARGIN_PENALTY
    if item.gross_profit_margin < -100:
        warnings.append(f"Gross profit margin {item.gross_profit_margin:.2f}% is below -100%")
        confidence -= EXTREME_LOSS_PENALTY

    if item.quantity > LARGE_QUANTITY:
        warnings.append(f"Unusually large quantity {item.quantity:g}")
        confidence -= LARGE_QUANTITY_PENALTY
    if item.unit_price > LARGE_UNIT_PRICE:
        warnings.append(f"Unusually large unit price {item.unit_price:.2f}")
        confidence -= LARGE_UNIT_PRICE_PENALTY
    if min(item.parts_cost, item.labor_cost, item.fet, item.cost) < 0:
        warnings.append("Negative cost component")
        confidence -= NEGATIVE_COMPONENT_PENALTY
    if item.line_total == 0 and components > 0:
        warnings.append("Line total is zero but cost components are positive")
        confidence -= ZERO_TOTAL_PENALTY

    confidence = max(0, confidence)
    return ValidationResult(
        is_valid=not errors and confidence >= VALID_CONFIDENCE,
        confidence=confidence,
        errors=errors,
        warnings=warnings,
    )


def correct_line_item(item: LineItemRecord) -> CorrectionResult:
    """Recompute derived amounts in order: line total, gross profit, margin.

    Each step uses the output of the previous one. The input is never modified.
    """
    warnings: list[str] = []
    corrected: dict[str, float] = {}

    line_total = item.line_total
    components = item.parts_cost + item.labor_cost + item.fet
    if components > 0 and (line_total == 0 or abs(components - line_total) > 0.5 * abs(line_total)):
        new_total = round(components, 2)
        warnings.append(f"Corrected line total from {line_total:.2f} to {new_total:.2f}")
        corrected["line_total"] = new_total
        line_total = new_total

    gross_profit = item.gross_profit
    expected_gp = round(line_total - item.cost, 2)
    if not _close(expected_gp, gross_profit, tolerance_for(line_total)):
        warnings.append(f"Corrected gross profit from {gross_profit:.2f} to {expected_gp:.2f}")
        corrected["gross_profit"] = expected_gp
        gross_profit = expected_gp

    margin = item.gross_profit_margin
    if line_total > 0:
        expected_gpm = round(gross_profit / line_total * 100, 2)
        if not _close(expected_gpm, margin, MARGIN_CORRECTION_POINTS):
            warnings.append(f"Corrected gross profit margin from {margin:.2f}% to {expected_gpm:.2f}%")
            corrected["gross_profit_margin"] = expected_gpm
            margin = expected_gpm

    if not corrected:
        return CorrectionResult(item=item)
    return CorrectionResult(
        item=replace(item, line_total=line_total, gross_profit=gross_profit, gross_profit_margin=margin),
        warnings=warnings,
        corrected_fields=corrected,
    )


def validate_and_correct(item: LineItemRecord) -> tuple[LineItemRecord, ValidationResult]:
    result = validate_line_item(item)
    if result.is_valid:
        return item, result
    if not item.product_code.strip() or item.quantity <= 0:
        return item, result

    correction = correct_line_item(item)
    if not correction.corrected_fields:
        return item, result

    revalidated = validate_line_item(correction.item)
    logger.debug(
        "Auto-corrected %s: %s", item.product_code, ", ".join(correction.corrected_fields)
    )
    return correction.item, replace(
        revalidated,
        warnings=correction.warnings + revalidated.warnings,
        corrected_fields=correction.corrected_fields,
    )


def is_plausible_line_item(item: LineItemRecord) -> bool:
    """False for rows that look like report noise rather than a sold item."""
    code = item.product_code.strip().upper()
    if len(code) < 2 or code == "PRODUCT CODE":
        return False
    if any(word in code for word in _NOISE_WORDS):
        return False
    if item.quantity <= 0 or item.quantity > _MAX_PLAUSIBLE_QUANTITY:
        return False
    all_zero = item.parts_cost == 0 and item.labor_cost == 0 and item.fet == 0 and item.line_total == 0
    if all_zero and item.quantity <= 1:
        return code.startswith(_SERVICE_PREFIXES) or any(w in code for w in _SERVICE_WORDS)
    return True
