from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from unittest.mock import patch

import pytest

from invoice_import.config.loader import ValidationConfig, load_config
from invoice_import.logging.error_log import ErrorLogBuffer
from invoice_import.models.processing_result import BatchStatsAccumulator, ProcessingResult
from invoice_import.models.report_file import FileStatus
from invoice_import.services.orchestrator import ProcessingError, process_all, process_file, scan_report_files


def _error_log_records(workdir: Path) -> list[dict]:
    records = []
    for path in sorted((workdir / "logs").glob("errors-*.log")):
        records.extend(json.loads(line) for line in path.read_text(encoding="utf-8").splitlines())
    return records


def test_scan_report_files(temp_workdir: Path) -> None:
    data_dir = temp_workdir / "data"
    (data_dir / "b.xlsx").write_bytes(b"test")
    (data_dir / "a.csv").write_text("x", encoding="utf-8")
    (data_dir / "readme.txt").write_text("ignore this", encoding="utf-8")
    (data_dir / "nested").mkdir()
    (data_dir / "nested" / "c.csv").write_text("x", encoding="utf-8")

    files = scan_report_files(data_dir)
    assert [f.name for f in files] == ["a.csv", "b.xlsx"]
    assert [f.name for f in scan_report_files(data_dir, (".txt",))] == ["readme.txt"]


def test_scan_report_files_directory_not_found() -> None:
    with pytest.raises(ProcessingError, match="Directory not found"):
        scan_report_files(Path("/non/existent/path"))


def test_scan_report_files_not_a_directory(temp_workdir: Path) -> None:
    f = temp_workdir / "data" / "a.csv"
    f.write_text("x", encoding="utf-8")
    with pytest.raises(ProcessingError, match="not a directory"):
        scan_report_files(f)


def test_process_all_empty_directory(write_config: Path) -> None:
    result = process_all(load_config(write_config))
    assert isinstance(result, ProcessingResult)
    assert result.success_files == 0
    assert result.failed_files == 0
    assert result.total_invoices == 0
    assert result.throughput_rows_per_sec == 0.0
    assert result.file_stats == []


def test_process_all_csv_and_xlsx(
    temp_workdir: Path, write_config: Path, write_csv_report, write_xlsx_report, sample_report_lines
) -> None:
    write_csv_report("a.csv", sample_report_lines)
    write_xlsx_report("b.xlsx", sample_report_lines)

    result = process_all(load_config(write_config))
    assert result.success_files == 2
    assert result.failed_files == 0
    assert result.total_invoices == 4
    assert result.total_line_items == 6
    assert result.total_row_errors == 0
    assert result.total_rows == 2 * len(sample_report_lines)
    assert [s.file_name for s in result.file_stats] == ["a.csv", "b.xlsx"]
    assert all(s.status == "success" and s.total_batches >= 1 for s in result.file_stats)
    # nothing to log
    assert _error_log_records(temp_workdir) == []


def test_row_errors_and_duplicates_go_to_error_log(temp_workdir: Path, write_config: Path, write_csv_report, report):
    write_csv_report("dups.csv", [
        report.item(),
        report.header("3-5"), report.item(), report.terminator("3-5"),
        report.header("3-5"), report.item(), report.terminator("3-5"),
    ])
    result = process_all(load_config(write_config))
    assert result.success_files == 1
    assert result.total_row_errors == 1
    assert result.file_stats[0].duplicates == 1

    records = _error_log_records(temp_workdir)
    assert [(r["row"], r["error_type"]) for r in records] == [(1, "BUSINESS_RULE"), (5, "DUPLICATE")]
    assert all(r["file"] == "dups.csv" for r in records)


def test_oversized_file_fails_but_run_continues(temp_workdir: Path, write_config: Path, write_csv_report, sample_report_lines):
    write_csv_report("big.csv", sample_report_lines * 50)
    write_csv_report("small.csv", sample_report_lines[:6])
    config = replace(load_config(write_config), max_file_size_mb=0.002)

    result = process_all(config)
    assert result.success_files == 1
    assert result.failed_files == 1
    failed = [s for s in result.file_stats if s.status == "failed"]
    assert [s.file_name for s in failed] == ["big.csv"]

    records = _error_log_records(temp_workdir)
    assert len(records) == 1
    assert records[0]["row"] == -1
    assert records[0]["error_type"] == "FILE_ERROR"


def test_strict_mode_rejects_file_failing_precheck(temp_workdir: Path, write_config: Path, write_csv_report, report):
    path = write_csv_report("orphan.csv", [report.item(), report.header(), report.item()])
    config = replace(load_config(write_config), validation=ValidationConfig(strict_mode=True))

    outcome = process_file(path, config, ErrorLogBuffer())
    assert outcome.status is FileStatus.FAILED
    assert outcome.result is None
    assert "format pre-check failed" in (outcome.error or "")


def test_lenient_mode_parses_file_failing_precheck(temp_workdir: Path, write_config: Path, write_csv_report, report):
    path = write_csv_report("orphan.csv", [report.item(), report.header(), report.item()])
    buf = ErrorLogBuffer()

    outcome = process_file(path, load_config(write_config), buf)
    assert outcome.status is FileStatus.SUCCESS
    assert outcome.result is not None
    assert len(outcome.result.invoices) == 1
    assert len(buf) == 1


def test_unexpected_parse_failure_fails_file(temp_workdir: Path, write_config: Path, write_csv_report, sample_report_lines):
    path = write_csv_report("a.csv", sample_report_lines)
    buf = ErrorLogBuffer()
    with patch("invoice_import.services.orchestrator.parse_rows", side_effect=RuntimeError("boom")):
        outcome = process_file(path, load_config(write_config), buf)
    assert outcome.status is FileStatus.FAILED
    assert outcome.error == "parse failed: boom"
    assert len(buf) == 1


def test_batch_timings_are_collected(write_config: Path, write_csv_report, sample_report_lines):
    path = write_csv_report("a.csv", sample_report_lines * 10)
    config = replace(load_config(write_config), batch_size=20)
    stats = BatchStatsAccumulator()
    process_file(path, config, ErrorLogBuffer(), stats)
    # 140 lines in batches of 20
    assert stats.get_stats()[0] == 7


def test_export_when_output_directory_configured(temp_workdir: Path, write_config: Path, write_csv_report, sample_report_lines):
    write_csv_report("jan.csv", sample_report_lines)
    config = replace(load_config(write_config), output_directory="./out")
    process_all(config)

    exported = temp_workdir / "out" / "jan.invoices.jsonl"
    lines = exported.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["header"]["invoice_number"] for line in lines] == ["3-100001", "3-100002"]
