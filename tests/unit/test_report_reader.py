from __future__ import annotations

from pathlib import Path

import pytest

from invoice_import.parsing.parser import parse_rows
from invoice_import.reader.report_reader import ReportFileError, read_report_lines, read_sample_lines


def test_read_csv_lines(write_csv_report, sample_report_lines):
    path = write_csv_report("jan.csv", sample_report_lines)
    assert read_report_lines(path) == sample_report_lines


def test_read_csv_strips_bom(temp_workdir: Path, report):
    path = temp_workdir / "data" / "bom.csv"
    path.write_bytes(("\ufeff" + report.header() + "\r\n" + report.item() + "\r\n").encode("utf-8"))
    assert read_report_lines(path) == [report.header(), report.item()]


def test_form_feed_does_not_split_lines(write_csv_report, report):
    lines = [report.header(), "Page 2\fcontinued", report.item(), report.terminator()]
    path = write_csv_report("paged.csv", lines)
    full = read_report_lines(path)
    assert full == lines
    assert read_sample_lines(path, 10) == full


def test_form_feed_keeps_physical_row_numbers(write_csv_report, report, today):
    path = write_csv_report("paged.csv", [report.header(), "Page 2\fcontinued", report.item(), report.terminator()])
    result = parse_rows(read_report_lines(path), today=today)
    (invoice,) = result.invoices
    assert invoice.line_item_row_numbers == (3,)


def test_read_sample_lines(write_csv_report, sample_report_lines):
    path = write_csv_report("jan.csv", sample_report_lines)
    assert read_sample_lines(path, 4) == sample_report_lines[:4]


def test_read_xlsx_lines_match_csv_shape(write_xlsx_report, report):
    lines = [report.customer("AKERS, KENNETH"), report.header(), report.item(), report.terminator()]
    path = write_xlsx_report("jan.xlsx", lines)
    got = read_report_lines(path)
    assert got[0] == '"AKERS, KENNETH"'
    assert got[2] == report.item()
    # trailing empty cells are trimmed
    assert got[3] == "Totals for Invoice # 3-100001"


def test_read_xlsx_sample(write_xlsx_report, report):
    path = write_xlsx_report("jan.xlsx", [report.header(), report.item(), report.item(code="OP20")])
    assert len(read_sample_lines(path, 2)) == 2


def test_missing_file(temp_workdir: Path):
    with pytest.raises(ReportFileError, match="not found"):
        read_report_lines(temp_workdir / "data" / "nope.csv")


def test_unsupported_extension(temp_workdir: Path):
    path = temp_workdir / "data" / "report.pdf"
    path.write_text("x", encoding="utf-8")
    with pytest.raises(ReportFileError, match="unsupported"):
        read_report_lines(path)


def test_size_ceiling(write_csv_report, sample_report_lines):
    path = write_csv_report("big.csv", sample_report_lines)
    with pytest.raises(ReportFileError, match="exceeds limit"):
        read_report_lines(path, max_file_size_bytes=10)
    with pytest.raises(ReportFileError, match="exceeds limit"):
        read_sample_lines(path, 5, max_file_size_bytes=10)


def test_undecodable_text(temp_workdir: Path):
    path = temp_workdir / "data" / "latin.csv"
    path.write_bytes(b"Invoice #  3-1,\xff\xfe\n")
    with pytest.raises(ReportFileError, match="failed to read"):
        read_report_lines(path)


def test_corrupt_spreadsheet(temp_workdir: Path):
    path = temp_workdir / "data" / "broken.xlsx"
    path.write_bytes(b"not a zip archive")
    with pytest.raises(ReportFileError, match="failed to read spreadsheet"):
        read_report_lines(path)
