"""
High-level scan orchestrator for SigScan.

Walks a directory tree across a thread pool, matches every file against
the signature store, records hits in the risk registry, and forwards
per-entry timings to the log sink.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from sigscan.config_loader import AppConfig
from sigscan.errors import ScanRootError
from sigscan.file_loader import (
    ScanTarget,
    directory_identity,
    list_directory,
    normalize_excludes,
    read_prefix,
)
from sigscan.log_sink import LogEvent, LogSink
from sigscan.registry import RiskRegistry
from sigscan.report import write_findings_log
from sigscan.signatures import SignatureStore

logger = logging.getLogger(__name__)


def format_duration(seconds: float) -> str:
    """Render a duration with a unit suited to its magnitude, e.g. '1.234ms'."""
    if seconds >= 1:
        return f"{seconds:.3f}s"
    if seconds >= 1e-3:
        return f"{seconds * 1e3:.3f}ms"
    if seconds >= 1e-6:
        return f"{seconds * 1e6:.3f}µs"
    return f"{seconds * 1e9:.0f}ns"


@dataclass(frozen=True)
class ScanStats:
    """Aggregate figures for one completed scan."""

    elapsed: float
    files: int = 0
    directories: int = 0
    flagged: int = 0
    read_errors: int = 0
    skipped_links: int = 0

    @property
    def total_runtime(self) -> str:
        return format_duration(self.elapsed)


class Scanner:
    """Parallel signature scan over a directory tree."""

    def __init__(
        self,
        store: SignatureStore,
        registry: RiskRegistry,
        sink: LogSink,
        workers: int | None = None,
        follow_symlinks: bool = False,
        exclude: Iterable[Path | str] = (),
    ) -> None:
        self.store = store
        self.registry = registry
        self.sink = sink
        self.workers = (os.cpu_count() or 1) if workers is None else workers
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")
        self.follow_symlinks = follow_symlinks
        self._exclude = normalize_excludes(exclude)

        self._found_files: list[str] = []
        self._found_dirs: list[str] = []
        self._visited: set[tuple[int, int]] = set()
        self._files_lock = threading.Lock()
        self._dirs_lock = threading.Lock()
        self._visited_lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self._flagged = 0
        self._read_errors = 0
        self._skipped_links = 0

    @property
    def found_files(self) -> list[str]:
        with self._files_lock:
            return list(self._found_files)

    @property
    def found_dirs(self) -> list[str]:
        with self._dirs_lock:
            return list(self._found_dirs)

    def _reset(self) -> None:
        with self._files_lock:
            self._found_files.clear()
        with self._dirs_lock:
            self._found_dirs.clear()
        with self._visited_lock:
            self._visited.clear()
        with self._stats_lock:
            self._flagged = self._read_errors = self._skipped_links = 0

    def run(self, root: Path | str) -> ScanStats:
        """
        Scan every directory and file reachable from `root`.

        Each entry is processed exactly once. Unreadable files and
        sub-directories are logged and skipped; only a root that cannot
        be listed aborts the scan with ScanRootError.
        """
        root_path = os.fspath(root)
        if not os.path.isdir(root_path):
            raise ScanRootError(f"Scan root is not a directory: {root_path}")

        self._reset()
        started = time.perf_counter()

        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="sigscan") as pool:
            pending = {pool.submit(self._dispatch, ScanTarget(root_path, "directory"), True)}
            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    for child in future.result():
                        pending.add(pool.submit(self._dispatch, child))

        elapsed = time.perf_counter() - started
        self.sink.emit(LogEvent(f"Total runtime: {format_duration(elapsed)}", root_path))

        with self._stats_lock:
            stats = ScanStats(
                elapsed=elapsed,
                files=len(self._found_files),
                directories=len(self._found_dirs),
                flagged=self._flagged,
                read_errors=self._read_errors,
                skipped_links=self._skipped_links,
            )
        logger.info(
            "Scanned %d files in %d directories under %s in %s (%d flagged)",
            stats.files, stats.directories, root_path, stats.total_runtime, stats.flagged,
        )
        return stats

    def _dispatch(self, target: ScanTarget, is_root: bool = False) -> list[ScanTarget]:
        if target.kind == "directory":
            return self._visit_directory(target.path, is_root)
        self._process_file(target.path)
        return []

    def _visit_directory(self, path: str, is_root: bool) -> list[ScanTarget]:
        started = time.perf_counter()
        if not is_root and os.path.realpath(path) in self._exclude:
            logger.debug("Excluded directory %s", path)
            return []

        try:
            identity = directory_identity(path)
            with self._visited_lock:
                if identity in self._visited:
                    logger.debug("Directory %s already visited, skipping cycle", path)
                    return []
                self._visited.add(identity)

            with self._dirs_lock:
                self._found_dirs.append(path)

            listing = list_directory(path, self.follow_symlinks)
        except OSError as exc:
            if is_root:
                raise ScanRootError(f"Unable to list scan root {path}: {exc}") from exc
            self._record_failure("directory", path, exc)
            return []

        if listing.skipped_links:
            logger.debug("Skipped %d symbolic links in %s", listing.skipped_links, path)
            with self._stats_lock:
                self._skipped_links += listing.skipped_links

        elapsed = time.perf_counter() - started
        self.sink.emit(LogEvent(f"Directory: {path} - Time: {format_duration(elapsed)}", path))
        return listing.targets

    def _process_file(self, path: str) -> None:
        started = time.perf_counter()
        with self._files_lock:
            self._found_files.append(path)

        try:
            head = read_prefix(path, self.store.max_pattern_length)
        except OSError as exc:
            self._record_failure("file", path, exc)
            return

        identifier = self.store.match_prefix(head)
        if identifier is not None:
            self.registry.record(path, identifier)
            with self._stats_lock:
                self._flagged += 1
            logger.info("Signature '%s' matched %s", identifier, path)

        elapsed = time.perf_counter() - started
        self.sink.emit(LogEvent(f"File: {path} - Time: {format_duration(elapsed)}", path))

    def _record_failure(self, kind: str, path: str, exc: OSError) -> None:
        reason = exc.strerror or str(exc)
        with self._stats_lock:
            self._read_errors += 1
        logger.warning("Unreadable %s %s: %s", kind, path, reason)
        self.sink.emit(LogEvent(f"Unreadable {kind}: {path} - Error: {reason}", path))


def scan_directory(root: Path | str, config: AppConfig) -> tuple[ScanStats, RiskRegistry]:
    """
    Load signatures, scan `root`, and write the findings log.

    The trace log sink is opened for the duration of the scan and fully
    drained before the findings log is written.
    """
    store = SignatureStore.load(config.database)
    registry = RiskRegistry()

    with LogSink.open(config.trace_log_path, truncate=config.truncate_log) as sink:
        scanner = Scanner(
            store,
            registry,
            sink,
            workers=config.workers,
            follow_symlinks=config.follow_symlinks,
            exclude=[config.log_dir],
        )
        stats = scanner.run(root)

    write_findings_log(registry.snapshot(), config.findings_log_path)
    return stats, registry
