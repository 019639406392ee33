from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path

from ..models.invoice import ParsedInvoice, invoice_to_dict

"""JSON Lines export of parsed invoices (one invoice per line)."""

__all__ = ["export_path_for", "write_invoices_jsonl"]

logger = logging.getLogger(__name__)


def export_path_for(directory: Path, source_name: str) -> Path:
    return directory / f"{Path(source_name).stem}.invoices.jsonl"


def write_invoices_jsonl(invoices: Iterable[ParsedInvoice], directory: Path, source_name: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = export_path_for(directory, source_name)
    count = 0
    with path.open("w", encoding="utf-8") as f:
        for invoice in invoices:
            f.write(json.dumps(invoice_to_dict(invoice), ensure_ascii=False) + "\n")
            count += 1
    logger.debug("Exported %d invoices to %s", count, path)
    return path
