"""
SigScan CLI: byte-signature scanner for directory trees.

Commands:
  scan          Scan a directory tree against a signature database
  signatures    List the signatures loaded from a database
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from sigscan.config_loader import AppConfig, load_config
from sigscan.errors import LogSinkError, ScanRootError, SignatureDatabaseError
from sigscan.report import display_path, print_findings, print_summary, write_json_report
from sigscan.scanner import scan_directory
from sigscan.signatures import SignatureStore

_console = Console()
_err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=_err_console, show_path=False)],
        force=True,
    )


def _resolve_config(config_path: Path | None) -> AppConfig:
    """Load AppConfig, exiting with a user-friendly message on failure."""
    try:
        return load_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        _console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(2)


@click.group()
@click.version_option("1.0.0", prog_name="sigscan")
def cli() -> None:
    """SigScan: flag files whose leading bytes match a known signature."""


@cli.command("scan")
@click.argument("root", type=click.Path(file_okay=False, path_type=Path))
@click.option("--database", "-d", default=None, type=click.Path(path_type=Path), help="Signature database file")
@click.option("--log-dir", "-l", default=None, type=click.Path(file_okay=False, path_type=Path),
              help="Directory for the trace and findings logs")
@click.option("--config", "-c", default=None, type=click.Path(path_type=Path), help="Path to a sigscan JSON config")
@click.option("--workers", "-w", default=None, type=click.IntRange(min=1), help="Worker threads (default: CPU count)")
@click.option("--follow-symlinks", is_flag=True, default=False, help="Follow symbolic links (cycles are skipped)")
@click.option("--truncate-log", is_flag=True, default=False, help="Truncate the trace log instead of appending")
@click.option("--json-out", "-j", default=None, type=click.Path(path_type=Path), help="Write JSON report to file")
@click.option("--fail-on-findings", is_flag=True, default=False, help="Exit with code 1 if any file is flagged")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Show debug diagnostics")
def cmd_scan(
    root: Path,
    database: Path | None,
    log_dir: Path | None,
    config: Path | None,
    workers: int | None,
    follow_symlinks: bool,
    truncate_log: bool,
    json_out: Path | None,
    fail_on_findings: bool,
    verbose: bool,
) -> None:
    """Scan the directory tree under ROOT for signature matches."""
    _configure_logging(verbose)
    cfg = _resolve_config(config).with_overrides(
        database=database,
        log_dir=log_dir,
        workers=workers,
        follow_symlinks=follow_symlinks or None,
        truncate_log=truncate_log or None,
    )

    _console.print(f"[bold]Scanning[/bold] [dim]{display_path(str(root))}[/dim] …")
    try:
        stats, registry = scan_directory(root, cfg)
    except SignatureDatabaseError as exc:
        _console.print(f"[bold red]Signature database error:[/bold red] {exc}")
        sys.exit(2)
    except (ScanRootError, LogSinkError) as exc:
        _console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(2)

    findings = registry.snapshot()
    print_findings(findings)
    print_summary(stats, findings)
    _console.print(f"[dim]Findings log written to {cfg.findings_log_path}[/dim]")

    if json_out:
        write_json_report(str(root), stats, findings, json_out)
        _console.print(f"[dim]JSON report written to {json_out}[/dim]")

    click.echo(f"Total runtime: {stats.total_runtime}")

    if fail_on_findings and findings:
        sys.exit(1)


@cli.command("signatures")
@click.option("--database", "-d", default=None, type=click.Path(path_type=Path), help="Signature database file")
@click.option("--config", "-c", default=None, type=click.Path(path_type=Path), help="Path to a sigscan JSON config")
def cmd_signatures(database: Path | None, config: Path | None) -> None:
    """List the signatures in the configured database."""
    cfg = _resolve_config(config).with_overrides(database=database)
    try:
        store = SignatureStore.load(cfg.database)
    except SignatureDatabaseError as exc:
        _console.print(f"[bold red]Signature database error:[/bold red] {exc}")
        sys.exit(2)

    for signature in store:
        click.echo(f"{signature.identifier}={signature.pattern.hex()}")
    _console.print(f"[dim]{len(store)} signatures loaded from {cfg.database}[/dim]")


if __name__ == "__main__":
    cli()
