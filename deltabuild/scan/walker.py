# deltabuild/scan/walker.py
"""
Directory walking with include/exclude globs.

Glob semantics follow the classic build-tool directory scanner:
- patterns are "/"-separated and relative to the walk root
- "*" and "?" match within a single path segment
- "**" matches zero or more whole segments
- a trailing "/" is shorthand for "/**"
- an empty include list means "everything"

Entries are yielded in sorted, deterministic order. Symlinked directories are
reported but never descended into.
"""

from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from deltabuild.logging.logger import get_logger
from deltabuild.logging.tags import SCAN

logger = get_logger(__name__)


DEFAULT_EXCLUDES: tuple[str, ...] = (
    # Editors
    "**/*~",
    "**/#*#",
    "**/.#*",
    "**/%*%",
    "**/._*",
    # VCS
    "**/CVS",
    "**/CVS/**",
    "**/.cvsignore",
    "**/.svn",
    "**/.svn/**",
    "**/.git",
    "**/.git/**",
    "**/.gitignore",
    "**/.gitattributes",
    "**/.hg",
    "**/.hg/**",
    "**/.hgignore",
    "**/.bzr",
    "**/.bzr/**",
    # OS
    "**/.DS_Store",
    "**/Thumbs.db",
)


@dataclass(frozen=True)
class WalkEntry:
    """One file or directory found under a walk root."""

    relpath: str  # POSIX path relative to the walk root
    path: Path  # Absolute path
    is_dir: bool


@lru_cache(maxsize=1024)
def _split_pattern(pattern: str) -> tuple[str, ...]:
    normalized = pattern.replace("\\", "/").strip()
    if normalized.endswith("/"):
        normalized += "**"
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return tuple(segment for segment in normalized.split("/") if segment)


@lru_cache(maxsize=4096)
def _match_segments(pattern: tuple[str, ...], parts: tuple[str, ...]) -> bool:
    if not pattern:
        return not parts
    head = pattern[0]
    if head == "**":
        return any(_match_segments(pattern[1:], parts[i:]) for i in range(len(parts) + 1))
    if not parts:
        return False
    return fnmatch.fnmatchcase(parts[0], head) and _match_segments(pattern[1:], parts[1:])


def match_path(relpath: str, pattern: str) -> bool:
    """
    True if a relative POSIX path matches a glob pattern.

    Examples:
        >>> match_path("src/main/App.java", "**/*.java")
        True
        >>> match_path("src/App.java", "*.java")
        False
    """
    parts = tuple(part for part in relpath.split("/") if part)
    return _match_segments(_split_pattern(pattern), parts)


def matches_any(relpath: str, patterns: Iterable[str]) -> bool:
    """True if relpath matches at least one pattern."""
    return any(match_path(relpath, pattern) for pattern in patterns)


def is_selected(relpath: str, includes: Sequence[str], excludes: Sequence[str]) -> bool:
    """Include/exclude decision for one path. Excludes win."""
    if includes and not matches_any(relpath, includes):
        return False
    return not matches_any(relpath, excludes)


def prunes_directory(relpath: str, excludes: Sequence[str]) -> bool:
    """
    True if an exclude pattern ending in "**" covers a directory.

    Such a pattern matches every descendant as well, so the walk can skip the
    whole subtree.
    """
    return any(
        _split_pattern(pattern)[-1:] == ("**",) and match_path(relpath, pattern)
        for pattern in excludes
    )


def walk(
    root: Path,
    includes: Sequence[str] = (),
    excludes: Sequence[str] = (),
    files: bool = True,
    directories: bool = True,
) -> Iterator[WalkEntry]:
    """
    Enumerate entries under `root` selected by includes/excludes.

    The root itself is never yielded. A missing root yields nothing.

    Args:
        root: Absolute directory to walk
        includes: Globs an entry must match (empty = all)
        excludes: Globs that reject an entry
        files: Yield regular files
        directories: Yield directories
    """
    if not root.is_dir():
        return

    def _on_error(error: OSError) -> None:
        logger.debug(f"{SCAN} Skipping unreadable path {error.filename}: {error}")

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        current = Path(dirpath)
        rel_dir = current.relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else f"{rel_dir}/"

        dirnames.sort()
        kept: list[str] = []
        for name in dirnames:
            relpath = f"{prefix}{name}"
            if prunes_directory(relpath, excludes):
                continue
            full = current / name
            if directories and is_selected(relpath, includes, excludes):
                yield WalkEntry(relpath=relpath, path=full, is_dir=True)
            if not full.is_symlink():
                kept.append(name)
        dirnames[:] = kept

        if not files:
            continue
        for name in sorted(filenames):
            relpath = f"{prefix}{name}"
            if is_selected(relpath, includes, excludes):
                yield WalkEntry(relpath=relpath, path=current / name, is_dir=False)


__all__ = [
    "DEFAULT_EXCLUDES",
    "WalkEntry",
    "match_path",
    "matches_any",
    "is_selected",
    "prunes_directory",
    "walk",
]
