"""Helpers for parsing report-formatted numeric cells.

Amounts may carry ``$`` and thousands separators; negatives may be written in
accounting notation, ``(123.45)``, sometimes with the closing parenthesis lost
by the text conversion.
"""

from __future__ import annotations

import re

__all__ = [
    "is_blank",
    "parse_currency",
    "parse_percentage",
    "is_currency",
    "is_percentage",
    "is_quantity",
    "MAX_QUANTITY_MAGNITUDE",
    "PERCENTAGE_BOUND",
]

MAX_QUANTITY_MAGNITUDE = 1000
PERCENTAGE_BOUND = 1000

_NUMBER_PATTERN = re.compile(r"^-?(?:\d+(?:\.\d*)?|\.\d+)$")
_CURRENCY_NOISE = re.compile(r"[$,\s]")
_PERCENT_NOISE = re.compile(r"[%\s]")


def is_blank(raw: str | None) -> bool:
    return raw is None or not raw.strip()


def _signed(value: str) -> str:
    # (123.45) and the truncated (123.45 both mean -123.45
    if value.startswith("("):
        inner = value[1:]
        if inner.endswith(")"):
            inner = inner[:-1]
        return "-" + inner
    return value


def _parse(raw: str | None, noise: re.Pattern[str]) -> float:
    if is_blank(raw):
        raise ValueError("value is required")
    value = _signed(noise.sub("", raw))  # type: ignore[arg-type]
    if not _NUMBER_PATTERN.match(value):
        raise ValueError(f"unable to parse numeric value from '{raw}'")
    return float(value)


def parse_currency(raw: str | None) -> float:
    """Parse an amount such as '$1,234.50' or '(12.00)'."""
    return _parse(raw, _CURRENCY_NOISE)


def parse_percentage(raw: str | None) -> float:
    """Parse a percentage such as '45.5%' or '(3.20)'."""
    return _parse(raw, _PERCENT_NOISE)


def is_currency(raw: str | None) -> bool:
    """Blank cells count as valid currency (optional amounts)."""
    if is_blank(raw):
        return True
    try:
        parse_currency(raw)
    except ValueError:
        return False
    return True


def is_percentage(raw: str | None) -> bool:
    if is_blank(raw):
        return True
    try:
        value = parse_percentage(raw)
    except ValueError:
        return False
    return -PERCENTAGE_BOUND <= value <= PERCENTAGE_BOUND


def is_quantity(raw: str | None) -> bool:
    """Quantities are required and small (negative for returns)."""
    try:
        value = parse_currency(raw)
    except ValueError:
        return False
    return abs(value) <= MAX_QUANTITY_MAGNITUDE
