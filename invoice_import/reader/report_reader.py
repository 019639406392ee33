from __future__ import annotations

import csv
import io
import logging
from itertools import islice
from pathlib import Path

import pandas as pd

"""Line supply for report exports.

Text exports (.csv/.txt) are read as UTF-8 lines. Spreadsheet exports
(.xlsx) are read with pandas (first sheet, no header row, every cell as
a string) and re-serialised to CSV lines so the parser sees the same shape
either way.
"""

__all__ = [
    "TEXT_EXTENSIONS",
    "SPREADSHEET_EXTENSIONS",
    "ReportFileError",
    "read_report_lines",
    "read_sample_lines",
]

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = frozenset({".csv", ".txt"})
SPREADSHEET_EXTENSIONS = frozenset({".xlsx"})


class ReportFileError(Exception):
    """Raised when a report file cannot be read as a whole (file-scoped)."""


def _check_file(path: Path, max_file_size_bytes: int | None) -> None:
    if not path.is_file():
        raise ReportFileError(f"report file not found: {path}")
    suffix = path.suffix.lower()
    if suffix not in TEXT_EXTENSIONS | SPREADSHEET_EXTENSIONS:
        raise ReportFileError(f"unsupported report file type: {path.suffix or '(none)'}")
    if max_file_size_bytes is not None:
        size = path.stat().st_size
        if size > max_file_size_bytes:
            raise ReportFileError(
                f"report file {path.name} is {size} bytes, exceeds limit of {max_file_size_bytes} bytes"
            )


def _spreadsheet_lines(path: Path, nrows: int | None = None) -> list[str]:
    try:
        df = pd.read_excel(
            path,
            sheet_name=0,
            header=None,
            dtype=str,
            keep_default_na=False,
            nrows=nrows,
        )
    except Exception as e:
        raise ReportFileError(f"failed to read spreadsheet {path.name}: {e}") from e

    lines: list[str] = []
    for values in df.itertuples(index=False, name=None):
        cells = ["" if v is None else str(v) for v in values]
        # Trailing empty cells come from the sheet's used range, not the row
        while cells and cells[-1] == "":
            cells.pop()
        buf = io.StringIO()
        csv.writer(buf, lineterminator="").writerow(cells)
        lines.append(buf.getvalue())
    return lines


def read_report_lines(path: Path, *, max_file_size_bytes: int | None = None) -> list[str]:
    """Read every line of a report export.

    Raises:
        ReportFileError: missing, unsupported, oversized or undecodable file
    """
    _check_file(path, max_file_size_bytes)
    if path.suffix.lower() in SPREADSHEET_EXTENSIONS:
        lines = _spreadsheet_lines(path)
    else:
        try:
            with path.open(encoding="utf-8-sig") as fh:
                lines = [line.rstrip("\r\n") for line in fh]
        except (OSError, UnicodeDecodeError) as e:
            raise ReportFileError(f"failed to read {path.name}: {e}") from e
    logger.debug("Read %d lines from %s", len(lines), path.name)
    return lines


def read_sample_lines(path: Path, count: int, *, max_file_size_bytes: int | None = None) -> list[str]:
    """First ``count`` lines, for the format pre-check."""
    _check_file(path, max_file_size_bytes)
    if path.suffix.lower() in SPREADSHEET_EXTENSIONS:
        return _spreadsheet_lines(path, nrows=count)
    try:
        with path.open(encoding="utf-8-sig") as fh:
            return [line.rstrip("\r\n") for line in islice(fh, count)]
    except (OSError, UnicodeDecodeError) as e:
        raise ReportFileError(f"failed to read {path.name}: {e}") from e
