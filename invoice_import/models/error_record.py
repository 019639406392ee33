from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from enum import Enum

"""Error models.

``RowError`` / ``RowWarning`` are the in-memory, row-scoped findings returned
by the parser. ``ErrorRecord`` is their JSON Lines form written to the error
log; it supports row=-1 as a sentinel for file-level errors where no single
row is responsible (unreadable file, size ceiling exceeded, ...).
"""

__all__ = [
    "ErrorType",
    "RowError",
    "RowWarning",
    "ErrorRecord",
]


class ErrorType(Enum):
    FORMAT = "FORMAT"
    MISSING_DATA = "MISSING_DATA"
    VALIDATION = "VALIDATION"
    BUSINESS_RULE = "BUSINESS_RULE"
    DUPLICATE = "DUPLICATE"


@dataclass(frozen=True)
class RowError:
    row_number: int  # 1-based physical line number
    error_type: ErrorType
    message: str
    raw_data: str
    field: str | None = None


@dataclass(frozen=True)
class RowWarning:
    row_number: int
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: report file name being processed
        row: row number (1-based). -1 for file-level errors
        error_type: error classification in UPPER_SNAKE_CASE format
        message: human readable description
        raw_data: raw report line (empty for file-level errors)
    """
    timestamp: str  # ISO8601 UTC
    file: str
    row: int
    error_type: str  # UPPER_SNAKE
    message: str
    raw_data: str

    @staticmethod
    def create(file: str, row: int, error_type: str, message: str, raw_data: str = "") -> ErrorRecord:
        """Create a new ErrorRecord with current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            error_type=error_type,
            message=message,
            raw_data=raw_data,
        )

    @staticmethod
    def from_row_error(file: str, error: RowError) -> ErrorRecord:
        return ErrorRecord.create(
            file=file,
            row=error.row_number,
            error_type=error.error_type.value,
            message=error.message,
            raw_data=error.raw_data,
        )

    def to_json_line(self) -> str:
        """Serialize to a JSON Lines entry (fixed key set, no extras)."""
        return json.dumps(asdict(self), ensure_ascii=False)
