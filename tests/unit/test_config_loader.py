from __future__ import annotations

from datetime import UTC
from pathlib import Path

import pytest

from invoice_import.config.loader import ConfigError, ImportConfig, load_config


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.source_directory == "./data"
    assert cfg.file_extensions == (".csv", ".xlsx")
    assert cfg.batch_size == 50
    assert cfg.timezone == "UTC"
    assert cfg.tz is UTC
    assert cfg.validation.enabled is True
    assert cfg.validation.sample_lines == 20
    assert cfg.validation.strict_mode is False
    assert cfg.error_log_directory == "./logs"
    assert cfg.output_directory is None
    assert cfg.max_file_size_bytes == 10 * 1024 * 1024


def test_defaults_for_optional_keys(temp_workdir: Path):
    path = temp_workdir / "config" / "minimal.yml"
    path.write_text("source_directory: ./data\n", encoding="utf-8")
    cfg = load_config(path)
    assert cfg == ImportConfig(source_directory="./data")


def test_extensions_are_normalized(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace('[".csv", ".xlsx"]', "[CSV, txt]")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError):
        # "CSV" is not in the allowed set
        load_config(write_config)
    write_config.write_text(text.replace("CSV", "csv"), encoding="utf-8")
    assert load_config(write_config).file_extensions == (".csv", ".txt")


def test_load_config_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(temp_workdir / "config" / "not_exists.yml")


def test_load_config_missing_required(temp_workdir: Path):
    path = temp_workdir / "config" / "bad.yml"
    path.write_text("batch_size: 10\n", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(path)
    assert "config validation failed" in str(e.value) and "required property" in str(e.value)


def test_load_config_extra_field(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + "\nextra_field: not_allowed\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_load_config_invalid_yaml(write_config: Path):
    write_config.write_text("source_directory: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(write_config)


def test_load_config_non_mapping_root(write_config: Path):
    write_config.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(write_config)


def test_load_config_unknown_timezone(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("timezone: UTC", "timezone: Mars/Olympus")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="unknown timezone"):
        load_config(write_config)


def test_named_timezone(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("timezone: UTC", "timezone: America/Chicago")
    write_config.write_text(text, encoding="utf-8")
    cfg = load_config(write_config)
    assert str(cfg.tz) == "America/Chicago"
    assert cfg.today() is not None
