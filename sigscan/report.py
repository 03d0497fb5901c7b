"""
Report generation for SigScan results.

Writes the findings log from a registry snapshot, renders the console
summary with rich, and optionally writes a JSON report.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Mapping

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from sigscan.scanner import ScanStats

REPORT_VERSION = "1.0.0"

_console = Console(highlight=False)


def display_path(path: str) -> str:
    """Render a path for the console, replacing bytes that are not valid UTF-8."""
    return path.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def format_finding(path: str, identifier: str) -> str:
    return f"Risky file: {path} - Signature: {identifier}"


def write_findings_log(findings: Mapping[str, str], output_path: Path) -> None:
    """
    Write one line per flagged path, sorted by path.

    Paths are written back with their original bytes, even where they are
    not valid UTF-8.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8", errors="surrogateescape") as f:
        for path in sorted(findings):
            f.write(format_finding(path, findings[path]) + "\n")


def print_findings(findings: Mapping[str, str]) -> None:
    """Print a table of flagged files."""
    if not findings:
        _console.print("  [green][+][/green] No files matched a signature")
        return

    table = Table(
        box=box.SIMPLE,
        show_header=True,
        header_style="bold dim",
        padding=(0, 1),
    )
    table.add_column("Path", min_width=30)
    table.add_column("Signature", min_width=12, style="bold red")

    for path in sorted(findings):
        table.add_row(Text(display_path(path)), findings[path])

    _console.print(table)


def print_summary(stats: "ScanStats", findings: Mapping[str, str]) -> None:
    """Print a final scan summary."""
    flagged = len(findings)
    _console.print()
    _console.print("[bold]--- Scan Summary ---[/bold]")
    _console.print(f"  Directories   : [bold]{stats.directories}[/bold]")
    _console.print(f"  Files scanned : [bold]{stats.files}[/bold]")
    _console.print(f"  Flagged files : [{'red' if flagged else 'green'}]{flagged}[/]")
    if stats.read_errors:
        _console.print(f"  Unreadable    : [yellow]{stats.read_errors}[/yellow]")
    if stats.skipped_links:
        _console.print(f"  Links skipped : [dim]{stats.skipped_links}[/dim]")
    _console.print(f"  Total runtime : [dim]{stats.total_runtime}[/dim]")
    _console.print()


def build_json_report(root: str, stats: "ScanStats", findings: Mapping[str, str]) -> dict:
    """Construct a serializable JSON report structure."""
    return {
        "sigscan_version": REPORT_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "root": root,
        "elapsed_seconds": round(stats.elapsed, 6),
        "directories": stats.directories,
        "files_scanned": stats.files,
        "read_errors": stats.read_errors,
        "findings": [
            {"path": path, "signature": findings[path]}
            for path in sorted(findings)
        ],
    }


def write_json_report(root: str, stats: "ScanStats", findings: Mapping[str, str], output_path: Path) -> None:
    """Write the JSON report to a file."""
    report = build_json_report(root, stats, findings)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(report, f, indent=2)
