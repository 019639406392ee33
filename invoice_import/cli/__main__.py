from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from invoice_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, ImportConfig, load_config
from invoice_import.logging.init import log_summary, setup_logging
from invoice_import.parsing.classifier import classify_row
from invoice_import.parsing.parser import render_validation_report, validate_format
from invoice_import.parsing.tokenizer import tokenize_row
from invoice_import.reader.report_reader import ReportFileError, read_sample_lines
from invoice_import.services.orchestrator import ProcessingError, process_all, scan_report_files
from invoice_import.services.summary import render_summary_line

"""CLI entrypoint: ``python -m invoice_import.cli``.

Flow: load .env, load config, then either
- ``--validate-only``: print the format pre-check report per file
- ``--inspect-data``: print the first classified rows per file
- default: parse every file and print the SUMMARY line

Exit codes: 0 all files succeeded, 2 any file failed, 1 fatal.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

CONFIG_ENV_VAR = "INVOICE_IMPORT_CONFIG"
INSPECT_ROWS = 15


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env with python-dotenv; a broken file only produces a warning."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except OSError as e:
        print(f"WARNING: failed to load .env via python-dotenv: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="invoice-import",
        description="Parse invoice detail report exports into invoice records",
    )
    p.add_argument("--config", type=Path, default=None, help=f"Config file (default ${CONFIG_ENV_VAR} or {DEFAULT_CONFIG_PATH})")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--validate-only", action="store_true", help="Run the format pre-check on each file and exit")
    p.add_argument("--inspect-data", action="store_true", help="Print the first classified rows of each file and exit")
    return p.parse_args(argv)


def _resolve_config_path(arg: Path | None) -> Path:
    if arg is not None:
        return arg
    env = os.getenv(CONFIG_ENV_VAR)
    return Path(env) if env else DEFAULT_CONFIG_PATH


def _validate_only(cfg: ImportConfig, files: list[Path]) -> int:
    failed = 0
    for f in files:
        print(f"FILE: {f.name}")
        try:
            sample = read_sample_lines(f, cfg.validation.sample_lines, max_file_size_bytes=cfg.max_file_size_bytes)
        except ReportFileError as e:
            print(f"  read_error: {e}")
            failed += 1
            continue
        result = validate_format(sample, today=cfg.today())
        print(render_validation_report(result))
        if not result.is_valid:
            failed += 1
    return EXIT_PARTIAL_FAILURE if failed else EXIT_SUCCESS_ALL


def _inspect_data(cfg: ImportConfig, files: list[Path]) -> int:
    if not files:
        print("inspect: no report files")
        return EXIT_SUCCESS_ALL
    for f in files:
        print(f"FILE: {f.name}")
        try:
            sample = read_sample_lines(f, INSPECT_ROWS, max_file_size_bytes=cfg.max_file_size_bytes)
        except ReportFileError as e:
            print(f"  read_error: {e}")
            continue
        for row_number, line in enumerate(sample, start=1):
            classified = classify_row(tokenize_row(line))
            detail = ""
            if classified.pattern is not None:
                detail = f" offset={classified.pattern.offset} confidence={classified.pattern.confidence}"
            elif classified.customer_name:
                detail = f" customer={classified.customer_name!r}"
            print(f"  {row_number:>4} {classified.kind.value:<18}{detail} | {line[:80]}")
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    # Only read sys.argv when no list is given (cli_main([]) in tests)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"))
    config_path = _resolve_config_path(args.config)
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    directory = Path(cfg.source_directory)
    try:
        files = scan_report_files(directory, cfg.file_extensions)
    except ProcessingError as e:
        logger.error(f"{e}")
        return EXIT_FATAL

    logger.info(f"Processing files from: {directory} ({len(files)} files)")

    if args.inspect_data:
        return _inspect_data(cfg, files)
    if args.validate_only:
        return _validate_only(cfg, files)

    try:
        result = process_all(cfg)
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    total_files = result.success_files + result.failed_files
    summary_line = render_summary_line(total_files, result)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line.removeprefix("SUMMARY "))

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
