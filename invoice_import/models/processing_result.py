from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from datetime import datetime

from .error_record import RowError, RowWarning
from .invoice import ParsedInvoice

"""Result models for a single parse and for a whole import run.

``ParseResult`` is what the core returns for one stream of report lines.
``FileStat`` / ``ProcessingResult`` aggregate the orchestrator's per-file
outcomes and drive the SUMMARY line.
"""


@dataclass(frozen=True)
class ParseResult:
    invoices: list[ParsedInvoice]
    duplicate_invoice_numbers: list[str]
    row_errors: list[RowError]
    row_warnings: list[RowWarning] = field(default_factory=list)
    total_rows: int = 0  # physical lines seen
    processed_rows: int = 0  # non-blank lines classified
    skipped_rows: int = 0  # blank lines

    @property
    def total_line_items(self) -> int:
        return sum(len(inv.line_items) for inv in self.invoices)


@dataclass(frozen=True)
class FileStat:
    """Per-file processing statistics."""
    file_name: str
    status: str  # success/failed
    invoices: int
    line_items: int
    row_errors: int
    duplicates: int
    rows: int
    elapsed_seconds: float
    total_batches: int = 0
    avg_batch_seconds: float = 0.0
    p95_batch_seconds: float = 0.0


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results of one import run."""
    success_files: int
    failed_files: int
    total_invoices: int
    total_line_items: int
    total_row_errors: int
    total_rows: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float  # total_rows / elapsed
    file_stats: list[FileStat] | None = None


class BatchStatsAccumulator:
    """Collects per-batch timings reported through the parse progress callback."""

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def add_batch_time(self, elapsed_seconds: float) -> None:
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Return (total_batches, avg_batch_seconds, p95_batch_seconds)."""
        if not self.batch_times:
            return (0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)

        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            # 19th of 20 quantiles
            p95_batch_seconds = statistics.quantiles(
                self.batch_times, n=20, method='inclusive'
            )[18]

        return (total_batches, avg_batch_seconds, p95_batch_seconds)
