"""Report file readers (text and spreadsheet exports)."""

from .report_reader import ReportFileError, read_report_lines, read_sample_lines

__all__ = ["ReportFileError", "read_report_lines", "read_sample_lines"]
