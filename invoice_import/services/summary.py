from __future__ import annotations

from ..models.processing_result import ProcessingResult

"""SUMMARY line rendering.

Format (single line, space separated key=value pairs):

    SUMMARY files=N/N success=S failed=F invoices=I line_items=L row_errors=E elapsed_sec=X throughput_rps=Y
"""

__all__ = ["format_metric", "render_summary_line"]


def format_metric(value: float) -> str:
    """Integers without a decimal point, tiny values without scientific notation."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if abs(value) < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(total_files: int, result: ProcessingResult) -> str:
    """Render the SUMMARY line for a finished run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ProcessingResult(
        ...     success_files=1, failed_files=0, total_invoices=3, total_line_items=7,
        ...     total_row_errors=1, total_rows=40, start_time=start, end_time=end,
        ...     elapsed_seconds=2.0, throughput_rows_per_sec=20.0
        ... )
        >>> render_summary_line(1, result)
        'SUMMARY files=1/1 success=1 failed=0 invoices=3 line_items=7 row_errors=1 elapsed_sec=2 throughput_rps=20'
    """
    return (
        f"SUMMARY files={total_files}/{total_files} "
        f"success={result.success_files} "
        f"failed={result.failed_files} "
        f"invoices={result.total_invoices} "
        f"line_items={result.total_line_items} "
        f"row_errors={result.total_row_errors} "
        f"elapsed_sec={format_metric(result.elapsed_seconds)} "
        f"throughput_rps={format_metric(result.throughput_rows_per_sec)}"
    )
