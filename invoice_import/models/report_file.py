from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from .processing_result import ParseResult

"""ReportFile domain model and FileStatus enum.

A ReportFile is the processing context of one export file as it moves through
pending -> processing -> (success | failed).
"""


class FileStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ReportFile:
    path: Path
    name: str
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: FileStatus = FileStatus.PENDING
    result: ParseResult | None = None  # None when the file failed before parsing
    error: str | None = None  # failure reason summary
