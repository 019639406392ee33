# Shared pytest fixtures
from __future__ import annotations

import tempfile
from datetime import date
from pathlib import Path

import pandas as pd
import pytest

from invoice_import.logging.init import reset_logging

EMBEDDED_OFFSET = 26


class ReportBuilder:
    """Builds raw lines in the invoice detail report layout."""

    @staticmethod
    def header(
        number: str = "3-100001",
        invoice_date: str = "1/2/2024",
        salesperson: str = "J DOE",
        tax: str = "1.00",
        total: str = "11.00",
    ) -> str:
        return (
            f"Invoice #  {number},,Invoice Date:  {invoice_date},,"
            f"Salesperson:  {salesperson},,Tax:  ${tax},,Total:  ${total}"
        )

    @staticmethod
    def item_cells(
        code: str = "OP19",
        desc: str = "Tire 205/55",
        adjustment: str = "",
        qty: str = "1",
        parts: str = "10.00",
        labor: str = "0.00",
        fet: str = "0.00",
        total: str = "10.00",
        cost: str = "5.00",
        gpm: str = "50.00",
        gp: str = "5.00",
    ) -> list[str]:
        return [code, desc, adjustment, qty, parts, labor, fet, total, cost, gpm, gp]

    @classmethod
    def item(cls, **fields: str) -> str:
        return ",".join(cls.item_cells(**fields))

    @classmethod
    def embedded(cls, lead: str, **fields: str) -> str:
        """Line item glued to the tail of a banner / terminator row at offset 26."""
        cells = [lead] + [""] * (EMBEDDED_OFFSET - 1) + cls.item_cells(**fields)
        return ",".join(cells)

    @staticmethod
    def terminator(number: str = "3-100001") -> str:
        return f"Totals for Invoice # {number},,,,,,,"

    @staticmethod
    def customer(name: str = "AKERS, KENNETH") -> str:
        return f'"{name}"'

    @staticmethod
    def labeled_customer(
        name: str = "AKERS, KENNETH", vehicle: str = "TUBE 145/70-6", mileage: str = "0 / 0"
    ) -> str:
        """Customer line as exported: labeled name plus vehicle and mileage cells."""
        return f'"Customer Name:  {name}",,,,,"Vehicle:   {vehicle} ",,,"Mileage: {mileage}"'

    @staticmethod
    def preamble() -> list[str]:
        return [
            "Invoice Detail Report",
            "Selected Date Range: 1/1/2024 - 1/31/2024",
            "Product Code,Size & Desc.,Adjustment,QTY,Parts,Labor,FET,Total,Cost,GPM%,GP$",
        ]


@pytest.fixture()
def report() -> type[ReportBuilder]:
    return ReportBuilder


@pytest.fixture()
def today() -> date:
    return date(2024, 6, 1)


@pytest.fixture()
def sample_report_lines(report: type[ReportBuilder]) -> list[str]:
    """Two complete invoices (3 line items in total) with report boilerplate."""
    return [
        *report.preamble(),
        report.customer("AKERS, KENNETH"),
        report.header("3-100001"),
        report.item(),
        report.terminator("3-100001"),
        report.customer("SMITH, JANE"),
        report.header("3-100002", invoice_date="1/3/2024", tax="2.00", total="92.00"),
        report.item(code="SRV-ALIGN", desc="Alignment", parts="0.00", labor="60.00",
                    total="60.00", cost="0.00", gpm="100.00", gp="60.00"),
        report.item(code="ENV-F01", desc="Tire disposal", parts="30.00", total="30.00",
                    cost="10.00", gpm="66.67", gp="20.00"),
        report.terminator("3-100002"),
        "Totals for Report,,,,,",
        "Printed: 2/1/2024 8:00 AM",
    ]


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
file_extensions: [".csv", ".xlsx"]
max_file_size_mb: 10
batch_size: 50
timezone: UTC
validation:
  enabled: true
  sample_lines: 20
  strict_mode: false
error_log_directory: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def write_csv_report(temp_workdir: Path):
    def _write(name: str, lines: list[str]) -> Path:
        path = temp_workdir / "data" / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def write_xlsx_report(temp_workdir: Path):
    """Write report lines as a spreadsheet, one cell per CSV field."""
    import csv

    def _write(name: str, lines: list[str]) -> Path:
        rows = [next(csv.reader([line])) if line else [] for line in lines]
        path = temp_workdir / "data" / name
        pd.DataFrame(rows).to_excel(path, header=False, index=False, engine="openpyxl")
        return path

    return _write


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()
