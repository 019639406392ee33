#!/usr/bin/env python3
"""Synthetic invoice detail report generator.

Produces exports shaped like the real report: banner and date-range
preamble, a customer line before each invoice header, line items at the
standard offset, and the occasional item glued to the tail of a page banner
or of the invoice's totals caption (offset 26).

Amounts are internally consistent (total = parts + labor + FET,
GP = total - cost), so a clean parse yields no row errors. Use
``--corrupt-rate`` to blank out line totals and exercise auto-correction.
"""
from __future__ import annotations

import argparse
import csv
import sys
from datetime import date, timedelta
from pathlib import Path

import numpy as np
import pandas as pd

EMBEDDED_OFFSET = 26
COLUMN_HEADINGS = "Product Code,Size & Desc.,Adjustment,QTY,Parts,Labor,FET,Total,Cost,GPM%,GP$"

# code, description, kind
CATALOG: list[tuple[str, str, str]] = [
    ("OP19", "Tire 205/55R16", "tire"),
    ("OP22", "Tire 225/65R17", "tire"),
    ("V86216-2", "Wiper blade 22in", "part"),
    ("046240", "Valve stem", "part"),
    ("SRV-ALIGN", "4 wheel alignment", "service"),
    ("STW-BAL01", "Balance and rotate", "service"),
    ("ENV-F01", "Tire disposal fee", "fee"),
]
LAST_NAMES = ["AKERS", "SMITH", "NGUYEN", "GARCIA", "OKAFOR", "MILLER", "LARSEN"]
FIRST_NAMES = ["KENNETH", "JANE", "LINH", "MARIA", "CHIDI", "ROBERT", "INGRID"]
SALESPEOPLE = ["J DOE", "A PATEL", "M BROWN"]
TAX_RATE = 0.0825


def _money(value: float) -> str:
    return f"{value:.2f}"


def _us_date(d: date) -> str:
    return f"{d.month}/{d.day}/{d.year}"


def _item_cells(rng: np.random.Generator, corrupt: bool) -> tuple[list[str], float]:
    code, desc, kind = CATALOG[rng.integers(len(CATALOG))]
    qty = int(rng.integers(1, 5)) if kind in ("tire", "part") else 1
    unit = float(np.round(rng.uniform(5, 180), 2))
    parts = labor = fet = 0.0
    if kind == "service":
        labor = unit
    else:
        parts = round(unit * qty, 2)
        if kind == "tire":
            fet = round(float(rng.uniform(0, 3)), 2)
    total = round(parts + labor + fet, 2)
    cost = round(total * float(rng.uniform(0.3, 0.8)), 2)
    gp = round(total - cost, 2)
    gpm = round(gp / total * 100, 2)
    shown_total = 0.0 if corrupt else total
    cells = [
        code, desc, "", str(qty),
        _money(parts), _money(labor), _money(fet), _money(shown_total),
        _money(cost), _money(gpm), _money(gp),
    ]
    return cells, total


def _embedded(lead: str, cells: list[str]) -> str:
    return ",".join([lead] + [""] * (EMBEDDED_OFFSET - 1) + cells)


def generate_report_lines(
    invoices: int,
    *,
    seed: int = 42,
    max_items: int = 6,
    embedded_rate: float = 0.1,
    corrupt_rate: float = 0.0,
    start: date = date(2024, 1, 1),
) -> list[str]:
    """Build the lines of one report export holding ``invoices`` invoices."""
    rng = np.random.default_rng(seed)
    lines = [
        "Invoice Detail Report",
        f"Selected Date Range: {_us_date(start)} - {_us_date(start + timedelta(days=364))}",
        COLUMN_HEADINGS,
    ]
    for n in range(invoices):
        number = f"3-{100001 + n}"
        invoice_date = start + timedelta(days=int(rng.integers(0, 365)))
        last, first = LAST_NAMES[rng.integers(len(LAST_NAMES))], FIRST_NAMES[rng.integers(len(FIRST_NAMES))]
        items = [_item_cells(rng, bool(rng.random() < corrupt_rate)) for _ in range(int(rng.integers(1, max_items + 1)))]
        subtotal = round(sum(total for _, total in items), 2)
        tax = round(subtotal * TAX_RATE, 2)

        lines.append(f'"{last}, {first}"')
        lines.append(
            f"Invoice #  {number},,Invoice Date:  {_us_date(invoice_date)},,"
            f"Salesperson:  {SALESPEOPLE[rng.integers(len(SALESPEOPLE))]},,"
            f"Tax:  ${_money(tax)},,Total:  ${_money(subtotal + tax)}"
        )
        *body, (last_cells, _) = items
        for cells, _ in body:
            if rng.random() < embedded_rate:
                lines.append(_embedded("Invoice Detail Report", cells))
            else:
                lines.append(",".join(cells))
        caption = f"Totals for Invoice # {number}"
        if rng.random() < embedded_rate:
            lines.append(_embedded(caption, last_cells))
        else:
            lines.append(",".join(last_cells))
            lines.append(caption + ",,,,,,,")
    lines.append("Totals for Report,,,,,")
    lines.append(f"Printed: {_us_date(start + timedelta(days=365))} 8:00 AM")
    return lines


def write_report(output_path: Path, lines: list[str]) -> None:
    """Write lines as a text export, or as a one-sheet spreadsheet for .xlsx."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if output_path.suffix.lower() == ".xlsx":
        rows = [next(csv.reader([line])) for line in lines]
        pd.DataFrame(rows).to_excel(output_path, header=False, index=False, engine="openpyxl")
    else:
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic invoice detail report export",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data/reports/sample.csv --invoices 500
  %(prog)s data/reports/sample.xlsx --invoices 2000 --seed 7 --corrupt-rate 0.05
        """,
    )
    parser.add_argument("output", type=Path, help="Output file (.csv, .txt or .xlsx)")
    parser.add_argument("--invoices", type=int, default=1000, help="Number of invoices (default: 1000)")
    parser.add_argument("--max-items", type=int, default=6, help="Max line items per invoice (default: 6)")
    parser.add_argument("--embedded-rate", type=float, default=0.1, help="Share of items glued to banner/totals rows")
    parser.add_argument("--corrupt-rate", type=float, default=0.0, help="Share of items with a zeroed line total")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.invoices <= 0:
        print("Error: --invoices must be positive", file=sys.stderr)
        return 1
    if args.max_items <= 0:
        print("Error: --max-items must be positive", file=sys.stderr)
        return 1

    lines = generate_report_lines(
        args.invoices,
        seed=args.seed,
        max_items=args.max_items,
        embedded_rate=args.embedded_rate,
        corrupt_rate=args.corrupt_rate,
    )
    write_report(args.output, lines)
    print(f"Created report: {args.output} ({args.invoices:,} invoices, {len(lines):,} lines)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
