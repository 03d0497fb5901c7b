"""
Thread-safe accumulation of flagged files for SigScan.

Scan workers record path -> signature identifier pairs concurrently;
reporting takes a snapshot once every worker has finished.
"""

from __future__ import annotations

import threading


class RiskRegistry:
    """Mapping of scanned path to the signature that matched it."""

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._lock = threading.Lock()

    def record(self, path: str, identifier: str) -> None:
        """Insert or overwrite the entry for `path`."""
        with self._lock:
            self._entries[path] = identifier

    def snapshot(self) -> dict[str, str]:
        """Return a point-in-time copy of all entries."""
        with self._lock:
            return dict(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._entries
