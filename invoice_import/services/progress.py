from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display with tqdm (TTY only).

- File progress: one bar over the files of a run
- Row progress: a lightweight per-file indicator fed by the parser's
  ``(lines_processed, total_lines)`` callback

In non-TTY environments (CI, redirected output) nothing is drawn, so the
log stream stays free of control sequences.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
    "RowProgressIndicator",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """File-level progress bar."""

    def __init__(self, total_files: int, *, description: str = "Processing files") -> None:
        self.total_files = total_files
        self.description = description
        self.current_file = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_files,
                desc=description,
                unit="file",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_file(self, file_path: Path) -> None:
        self.current_file += 1
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({file_path.name})")

    def finish_file(self, success: bool = True) -> None:
        if self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_description(self.description)

    def set_postfix(self, **kwargs: Any) -> None:
        if self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class RowProgressIndicator:
    """Per-file row progress, printed in place.

    ``update`` matches the parser's progress callback signature.
    """

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        self.lines_processed = 0
        self.total_lines = 0
        self.updates = 0
        self.enabled = is_tty_enabled()

    def update(self, lines_processed: int, total_lines: int) -> None:
        self.lines_processed = lines_processed
        self.total_lines = total_lines
        self.updates += 1
        if self.enabled:
            pct = 100.0 * lines_processed / total_lines if total_lines else 100.0
            print(
                f"\r  {self.file_name}: {lines_processed}/{total_lines} lines ({pct:.0f}%)",
                end="",
                flush=True,
            )

    def finish(self, success: bool = True, invoices: int = 0) -> None:
        if self.enabled:
            status = "ok" if success else "failed"
            print(f" - {invoices} invoices {status}")
