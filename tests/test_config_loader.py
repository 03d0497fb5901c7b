"""Tests for configuration loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from sigscan.config_loader import AppConfig, build_app_config, load_config


def test_defaults_without_path():
    config = load_config(None)
    assert config == AppConfig()
    assert config.trace_log_path == Path("logs") / "performance.log"
    assert config.findings_log_path == Path("logs") / "findings.log"
    assert config.workers is None
    assert config.follow_symlinks is False


def test_missing_explicit_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.json")


def test_relative_paths_resolve_against_config_dir(tmp_path):
    config_path = tmp_path / "conf" / "sigscan.json"
    config_path.parent.mkdir()
    config_path.write_text(json.dumps({
        "database": "signatures.db",
        "log_dir": "../logs",
        "workers": "3",
        "follow_symlinks": True,
        "truncate_log": True,
    }), encoding="utf-8")

    config = load_config(config_path)

    assert config.database == config_path.parent.resolve() / "signatures.db"
    assert config.log_dir == config_path.parent.resolve() / ".." / "logs"
    assert config.workers == 3
    assert config.follow_symlinks is True
    assert config.truncate_log is True


def test_absolute_paths_kept(tmp_path):
    config = build_app_config({"database": str(tmp_path / "db")}, Path("/elsewhere"))
    assert config.database == tmp_path / "db"


def test_invalid_json(tmp_path):
    config_path = tmp_path / "bad.json"
    config_path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(config_path)


def test_with_overrides_ignores_none():
    base = AppConfig(workers=2)
    updated = base.with_overrides(database="other.db", workers=None, follow_symlinks=True)
    assert updated.database == Path("other.db")
    assert updated.workers == 2
    assert updated.follow_symlinks is True
    assert base.follow_symlinks is False


def test_bundled_sample_config_loads():
    sample = Path(__file__).resolve().parent.parent / "config" / "sigscan.json"
    config = load_config(sample)
    assert config.database.name == "signatures.db"
    assert config.database.is_file()


@pytest.mark.parametrize("workers", [0, -1, "many", [2]])
def test_invalid_workers_rejected(workers):
    with pytest.raises(ValueError, match="workers"):
        build_app_config({"workers": workers}, Path("."))
