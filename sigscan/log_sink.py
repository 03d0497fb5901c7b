"""
Asynchronous trace log writer for SigScan.

Any number of scan workers enqueue events; one dedicated consumer thread
drains the queue and appends each message to the trace log. Workers never
touch the log file themselves.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from sigscan.errors import LogSinkClosed, LogSinkError

logger = logging.getLogger(__name__)

_STOP = object()


@dataclass(frozen=True)
class LogEvent:
    """A formatted trace message and the path it concerns."""

    message: str
    source: str | None = None


class LogSink:
    """Single-consumer log writer fed by an unbounded multi-producer queue."""

    def __init__(self, path: Path, stream: IO[str]) -> None:
        self.path = path
        self._stream = stream
        self._queue: queue.SimpleQueue = queue.SimpleQueue()
        self._closed = False
        self._close_lock = threading.Lock()
        self.written = 0
        self.failed_writes = 0
        self._consumer = threading.Thread(
            target=self._drain,
            name=f"log-sink:{path.name}",
            daemon=True,
        )
        self._consumer.start()

    @classmethod
    def open(cls, log_path: Path | str, truncate: bool = False) -> "LogSink":
        """Open (creating parents as needed) the log file and start the consumer."""
        path = Path(log_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            stream = open(path, "w" if truncate else "a", encoding="utf-8", errors="surrogateescape")
        except OSError as exc:
            raise LogSinkError(f"Unable to open log file {path}: {exc}") from exc
        return cls(path, stream)

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, event: LogEvent | str, source: str | None = None) -> None:
        """Enqueue an event for the consumer. Never blocks on capacity."""
        if isinstance(event, str):
            event = LogEvent(event, source)
        # The lock orders every put before the stop marker.
        with self._close_lock:
            if self._closed:
                raise LogSinkClosed(f"Log sink for {self.path} is closed")
            self._queue.put(event)

    def _drain(self) -> None:
        while True:
            event = self._queue.get()
            if event is _STOP:
                break
            try:
                self._stream.write(event.message + "\n")
                self._stream.flush()
                self.written += 1
            except (OSError, ValueError) as exc:
                self.failed_writes += 1
                logger.error("Failed to write trace log entry to %s: %s", self.path, exc)

    def close(self) -> None:
        """Drain all pending events, stop the consumer, and close the file."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_STOP)
        self._consumer.join()
        try:
            self._stream.close()
        except OSError as exc:
            self.failed_writes += 1
            logger.error("Failed to close trace log %s: %s", self.path, exc)

    def __enter__(self) -> "LogSink":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
