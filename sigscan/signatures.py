"""
Signature database loading and byte-prefix matching for SigScan.

Parses `identifier=hexbytes` lines into an immutable store that scan
workers query concurrently without locking.
"""

from __future__ import annotations

import binascii
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Mapping

from sigscan.errors import InvalidSignatureEncoding, SignatureDatabaseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Signature:
    """A named byte pattern matched as a literal file prefix."""

    identifier: str
    pattern: bytes


def _decode_pattern(identifier: str, hex_pattern: str, line_number: int) -> bytes:
    try:
        return binascii.unhexlify(hex_pattern)
    except (binascii.Error, ValueError) as exc:
        raise InvalidSignatureEncoding(identifier, line_number, str(exc)) from exc


def _split_line(line: str) -> tuple[str, str] | None:
    """Return (identifier, hex) for a well-shaped line, else None."""
    stripped = line.strip()
    if stripped.startswith("#"):
        return None
    parts = stripped.split("=")
    if len(parts) != 2:
        return None
    identifier, hex_pattern = parts[0].strip(), parts[1].strip()
    if not identifier or not hex_pattern:
        return None
    return identifier, hex_pattern


class SignatureStore:
    """Read-only mapping of signature identifier to byte pattern."""

    def __init__(self, signatures: list[Signature]) -> None:
        self._signatures: dict[str, Signature] = {}
        for signature in signatures:
            if signature.identifier in self._signatures:
                logger.warning("Duplicate signature '%s' replaces earlier definition", signature.identifier)
            self._signatures[signature.identifier] = signature
        self._ordered: tuple[Signature, ...] = tuple(self._signatures.values())
        self._max_length = max((len(s.pattern) for s in self._ordered), default=0)

    @classmethod
    def load(cls, source: Path | str) -> "SignatureStore":
        """
        Load a signature database file.

        Lines that do not split into exactly two parts on '=' are skipped.
        A pattern that is not valid hex aborts the load.
        """
        path = Path(source)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SignatureDatabaseError(f"Unable to read signature database {path}: {exc}") from exc

        signatures: list[Signature] = []
        for line_number, line in enumerate(text.splitlines(), start=1):
            parsed = _split_line(line)
            if parsed is None:
                if line.strip() and not line.lstrip().startswith("#"):
                    logger.debug("Skipping malformed signature line %d in %s", line_number, path)
                continue
            identifier, hex_pattern = parsed
            signatures.append(Signature(identifier, _decode_pattern(identifier, hex_pattern, line_number)))

        store = cls(signatures)
        logger.info("Loaded %d signatures from %s", len(store), path)
        return store

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "SignatureStore":
        """Build a store from an in-memory identifier -> hex mapping."""
        signatures = [
            Signature(identifier, _decode_pattern(identifier, hex_pattern, index))
            for index, (identifier, hex_pattern) in enumerate(mapping.items(), start=1)
            if identifier and hex_pattern
        ]
        return cls(signatures)

    @property
    def signatures(self) -> tuple[Signature, ...]:
        return self._ordered

    @property
    def max_pattern_length(self) -> int:
        """Number of leading bytes needed to test every signature."""
        return self._max_length

    def match_prefix(self, data: bytes) -> str | None:
        """
        Return the identifier of the first signature that prefixes `data`.

        Signatures are tried in database order and matching stops at the
        first hit, so at most one identifier is reported per file.
        """
        for signature in self._ordered:
            if data.startswith(signature.pattern):
                return signature.identifier
        return None

    def __len__(self) -> int:
        return len(self._ordered)

    def __iter__(self) -> Iterator[Signature]:
        return iter(self._ordered)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._signatures
