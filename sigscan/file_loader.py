"""
Filesystem access for SigScan.

Lists directory entries into scan targets under the symlink policy and
reads the leading bytes of files for signature matching.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

TargetKind = Literal["file", "directory"]


@dataclass(frozen=True)
class ScanTarget:
    """A discovered filesystem entry awaiting dispatch."""

    path: str
    kind: TargetKind


@dataclass
class DirectoryListing:
    """Children of one directory plus the entries that were passed over."""

    targets: list[ScanTarget]
    skipped_links: int = 0


def list_directory(path: str, follow_symlinks: bool = False) -> DirectoryListing:
    """
    List the immediate children of `path` as scan targets.

    Symbolic links are skipped unless `follow_symlinks` is set. Entries
    that are neither regular files nor directories (sockets, fifos,
    broken links) are ignored. Raises OSError if `path` cannot be listed.
    """
    listing = DirectoryListing(targets=[])
    with os.scandir(path) as entries:
        for entry in entries:
            try:
                if entry.is_symlink() and not follow_symlinks:
                    listing.skipped_links += 1
                    continue
                if entry.is_dir(follow_symlinks=follow_symlinks):
                    listing.targets.append(ScanTarget(entry.path, "directory"))
                elif entry.is_file(follow_symlinks=follow_symlinks):
                    listing.targets.append(ScanTarget(entry.path, "file"))
            except OSError:
                # Entry vanished or cannot be stat'ed
                continue
    return listing


def directory_identity(path: str) -> tuple[int, int]:
    """Return the (device, inode) pair identifying a directory."""
    st = os.stat(path)
    return st.st_dev, st.st_ino


def read_prefix(path: str, size: int) -> bytes:
    """
    Read up to `size` leading bytes of a file.

    The file is opened even when `size` is zero so that unreadable files
    surface as OSError regardless of the signature set.
    """
    with open(path, "rb") as f:
        return f.read(max(size, 0))


def normalize_excludes(paths) -> frozenset[str]:
    """Resolve exclusion paths so they compare equal to resolved directories."""
    return frozenset(os.path.realpath(Path(p)) for p in paths)
