from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path

from ..config.loader import ImportConfig
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.processing_result import BatchStatsAccumulator, FileStat, ProcessingResult
from ..models.report_file import FileStatus, ReportFile
from ..parsing.normalizer import duplicate_row_errors
from ..parsing.parser import parse_rows, validate_format
from ..reader.report_reader import ReportFileError, read_report_lines, read_sample_lines
from .export import write_invoices_jsonl
from .progress import ProgressTracker, RowProgressIndicator

"""Run orchestration: scan the source directory and parse every report file.

Files are independent. A file-scoped failure (unreadable, oversized, strict
pre-check rejected) marks that file failed and the run moves on; row-scoped
errors never fail a file. Row errors of all files are buffered and flushed
once at the end of the run.
"""

__all__ = [
    "ProcessingError",
    "scan_report_files",
    "process_all",
    "process_file",
]

logger = logging.getLogger(__name__)

FILE_LEVEL_ROW = -1


class ProcessingError(Exception):
    """Fatal run-level error (missing or unreadable source directory)."""


def scan_report_files(directory: Path, extensions: tuple[str, ...] = (".csv", ".xlsx")) -> list[Path]:
    """Report files directly inside ``directory`` (non-recursive, sorted by name).

    Raises:
        ProcessingError: If directory doesn't exist or can't be read
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")
    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")

    wanted = {e.lower() for e in extensions}
    try:
        files = [p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in wanted]
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e
    return sorted(files, key=lambda p: p.name)


def _failed(report: ReportFile, error_log: ErrorLogBuffer, error_type: str, message: str) -> ReportFile:
    error_log.append(ErrorRecord.create(report.name, FILE_LEVEL_ROW, error_type, message))
    logger.error(f"file={report.name} {message}")
    return replace(report, status=FileStatus.FAILED, end_time=datetime.now(UTC), error=message)


def process_file(
    path: Path,
    config: ImportConfig,
    error_log: ErrorLogBuffer,
    batch_stats: BatchStatsAccumulator | None = None,
) -> ReportFile:
    """Pre-check, read and parse one report file."""
    report = ReportFile(path=path, name=path.name, start_time=datetime.now(UTC), status=FileStatus.PROCESSING)
    today = config.today()
    max_bytes = config.max_file_size_bytes

    try:
        if config.validation.enabled:
            sample = read_sample_lines(path, config.validation.sample_lines, max_file_size_bytes=max_bytes)
            check = validate_format(sample, today=today)
            if not check.is_valid:
                logger.warning(
                    f"file={path.name} format pre-check: {len(check.errors)} errors, "
                    f"{len(check.warnings)} warnings"
                )
                if config.validation.strict_mode:
                    first = check.errors[0]
                    return _failed(
                        report,
                        error_log,
                        "FORMAT_CHECK_FAILED",
                        f"format pre-check failed (row {first.row_number}: {first.message})",
                    )
        lines = read_report_lines(path, max_file_size_bytes=max_bytes)
    except ReportFileError as e:
        return _failed(report, error_log, "FILE_ERROR", str(e))

    indicator = RowProgressIndicator(path.name)
    last_tick = time.perf_counter()

    def on_progress(done: int, total: int) -> None:
        nonlocal last_tick
        now = time.perf_counter()
        if batch_stats is not None:
            batch_stats.add_batch_time(now - last_tick)
        last_tick = now
        indicator.update(done, total)

    try:
        result = parse_rows(
            lines,
            today=today,
            batch_size=config.batch_size,
            progress_callback=on_progress,
        )
    except Exception as e:
        indicator.finish(success=False)
        return _failed(report, error_log, "UNEXPECTED_ERROR", f"parse failed: {e}")
    indicator.finish(success=True, invoices=len(result.invoices))

    for row_error in result.row_errors:
        error_log.append(ErrorRecord.from_row_error(path.name, row_error))
    for dup in duplicate_row_errors(result.invoices):
        error_log.append(ErrorRecord.from_row_error(path.name, dup))
    for warning in result.row_warnings:
        logger.debug(f"file={path.name} row={warning.row_number} warning: {warning.message}")

    if config.output_directory:
        write_invoices_jsonl(result.invoices, Path(config.output_directory), path.name)

    logger.info(
        f"file={path.name} invoices={len(result.invoices)} line_items={result.total_line_items} "
        f"row_errors={len(result.row_errors)} duplicates={len(result.duplicate_invoice_numbers)}"
    )
    return replace(report, status=FileStatus.SUCCESS, end_time=datetime.now(UTC), result=result)


def process_all(config: ImportConfig) -> ProcessingResult:
    """Process every report file in the configured source directory.

    Raises:
        ProcessingError: source directory missing or unreadable
    """
    start_time = datetime.now(UTC)
    error_log = ErrorLogBuffer(config.error_log_directory)

    file_paths = scan_report_files(Path(config.source_directory), config.file_extensions)

    file_stats: list[FileStat] = []
    success_count = failed_count = 0
    total_invoices = total_line_items = total_row_errors = total_rows = 0

    with ProgressTracker(len(file_paths), description="Processing files") as progress:
        for file_path in file_paths:
            progress.start_file(file_path)
            batch_stats = BatchStatsAccumulator()
            report = process_file(file_path, config, error_log, batch_stats)
            parsed = report.result
            ok = report.status == FileStatus.SUCCESS and parsed is not None

            if ok and parsed is not None:
                success_count += 1
                total_invoices += len(parsed.invoices)
                total_line_items += parsed.total_line_items
                total_row_errors += len(parsed.row_errors)
                total_rows += parsed.processed_rows
            else:
                failed_count += 1

            progress.set_postfix(success=success_count, failed=failed_count, invoices=total_invoices)
            progress.finish_file(success=ok)

            total_batches, avg_batch, p95_batch = batch_stats.get_stats()
            elapsed = (
                (report.end_time - report.start_time).total_seconds()
                if report.start_time and report.end_time
                else 0.0
            )
            file_stats.append(
                FileStat(
                    file_name=report.name,
                    status=report.status.value,
                    invoices=len(parsed.invoices) if parsed else 0,
                    line_items=parsed.total_line_items if parsed else 0,
                    row_errors=len(parsed.row_errors) if parsed else 0,
                    duplicates=len(parsed.duplicate_invoice_numbers) if parsed else 0,
                    rows=parsed.processed_rows if parsed else 0,
                    elapsed_seconds=elapsed,
                    total_batches=total_batches,
                    avg_batch_seconds=avg_batch,
                    p95_batch_seconds=p95_batch,
                )
            )

    # Flush error log once per run
    try:
        log_path = error_log.flush()
    except OSError as e:
        logger.warning(f"failed to write error log: {e}")
    else:
        if log_path is not None:
            logger.info(f"error log written: {log_path}")

    end_time = datetime.now(UTC)
    elapsed_seconds = (end_time - start_time).total_seconds()
    throughput_rps = total_rows / elapsed_seconds if elapsed_seconds > 0 else 0.0

    return ProcessingResult(
        success_files=success_count,
        failed_files=failed_count,
        total_invoices=total_invoices,
        total_line_items=total_line_items,
        total_row_errors=total_row_errors,
        total_rows=total_rows,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed_seconds,
        throughput_rows_per_sec=throughput_rps,
        file_stats=file_stats,
    )
