"""Exception taxonomy for SigScan."""

from __future__ import annotations


class SigScanError(Exception):
    """Base class for all SigScan errors."""


class SignatureDatabaseError(SigScanError):
    """The signature database could not be read."""


class InvalidSignatureEncoding(SignatureDatabaseError):
    """A signature pattern is not valid hex."""

    def __init__(self, identifier: str, line_number: int, reason: str) -> None:
        super().__init__(
            f"Invalid hex pattern for signature '{identifier}' on line {line_number}: {reason}"
        )
        self.identifier = identifier
        self.line_number = line_number


class ScanRootError(SigScanError):
    """The scan root is missing, not a directory, or cannot be listed."""


class LogSinkError(SigScanError):
    """The trace log file could not be created or opened."""


class LogSinkClosed(SigScanError):
    """An event was emitted after the sink was closed."""
