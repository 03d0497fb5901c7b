"""
Configuration loader for SigScan.

Reads an optional JSON config file and produces a single AppConfig
consumed by the scanner, the log sink, and the report writers.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from pathlib import Path


@dataclass(frozen=True)
class AppConfig:
    """Top-level configuration for a scan run."""

    database: Path = Path("signatures.db")
    log_dir: Path = Path("logs")
    trace_log: str = "performance.log"
    findings_log: str = "findings.log"
    workers: int | None = None
    follow_symlinks: bool = False
    truncate_log: bool = False

    @property
    def trace_log_path(self) -> Path:
        return self.log_dir / self.trace_log

    @property
    def findings_log_path(self) -> Path:
        return self.log_dir / self.findings_log

    def with_overrides(self, **overrides) -> "AppConfig":
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        for key in ("database", "log_dir"):
            if key in changes:
                changes[key] = Path(changes[key])
        return replace(self, **changes)


def _resolve(base_dir: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else base_dir / path


def build_app_config(raw: dict, base_dir: Path) -> AppConfig:
    """Construct AppConfig from a parsed config dict; relative paths resolve against base_dir."""
    defaults = AppConfig()
    workers = raw.get("workers")
    if workers is not None:
        try:
            workers = int(workers)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"workers must be an integer, got {workers!r}") from exc
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
    return AppConfig(
        database=_resolve(base_dir, raw["database"]) if "database" in raw else defaults.database,
        log_dir=_resolve(base_dir, raw["log_dir"]) if "log_dir" in raw else defaults.log_dir,
        trace_log=raw.get("trace_log", defaults.trace_log),
        findings_log=raw.get("findings_log", defaults.findings_log),
        workers=workers,
        follow_symlinks=bool(raw.get("follow_symlinks", defaults.follow_symlinks)),
        truncate_log=bool(raw.get("truncate_log", defaults.truncate_log)),
    )


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    Load a JSON configuration file.

    Built-in defaults are returned when no path is given. An explicit
    path that does not exist is an error.
    """
    if config_path is None:
        return AppConfig()

    path = Path(config_path)
    if not path.is_file():
        raise FileNotFoundError(f"Config not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw = json.load(f)

    return build_app_config(raw, path.resolve().parent)
