# deltabuild/scan/scanner.py
"""
Scanners handed out by a build context.

All scanners share one API, modelled on the classic build-tool directory
scanner:

    scanner = context.new_scanner(src_dir)
    scanner.set_includes(["**/*.txt"])
    scanner.add_default_excludes()
    scanner.scan()
    for relpath in scanner.included_files:
        process(scanner.basedir / relpath)

Results are sorted POSIX paths relative to the scanner's basedir.

Variants:
- DirectoryScanner: everything on disk under basedir
- DeltaScanner: only files changed since the last build (and their parent dirs)
- DeleteScanner: only files deleted since the last build (and vanished dirs)
- EmptyScanner: nothing, for basedirs outside the build context
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Sequence

from deltabuild.core.exceptions import ScannerError
from deltabuild.core.paths import ancestors
from deltabuild.logging.logger import get_logger
from deltabuild.logging.tags import SCAN

from .walker import DEFAULT_EXCLUDES, is_selected, prunes_directory, walk

logger = get_logger(__name__)


class Scanner(ABC):
    """Base scanner: include/exclude handling and result bookkeeping."""

    def __init__(self, basedir: Path) -> None:
        self._basedir = basedir
        self._includes: list[str] = []
        self._excludes: list[str] = []
        self._files: list[str] | None = None
        self._directories: list[str] | None = None

    @property
    def basedir(self) -> Path:
        return self._basedir

    def set_includes(self, includes: Sequence[str] | None) -> "Scanner":
        """Replace include patterns. None or empty means everything."""
        self._includes = list(includes or [])
        return self

    def set_excludes(self, excludes: Sequence[str] | None) -> "Scanner":
        """Replace exclude patterns."""
        self._excludes = list(excludes or [])
        return self

    def add_default_excludes(self) -> "Scanner":
        """Add VCS and OS metadata patterns to the excludes."""
        self._excludes.extend(p for p in DEFAULT_EXCLUDES if p not in self._excludes)
        return self

    def scan(self) -> "Scanner":
        """Run the scan. Results replace those of any earlier scan()."""
        files, directories = self._collect()
        self._files = sorted(set(files))
        self._directories = sorted(set(directories))
        logger.debug(
            f"{SCAN} {type(self).__name__} {self._basedir}: "
            f"{len(self._files)} files, {len(self._directories)} directories"
        )
        return self

    @property
    def included_files(self) -> list[str]:
        if self._files is None:
            raise ScannerError("scan() must be called before reading results")
        return list(self._files)

    @property
    def included_directories(self) -> list[str]:
        if self._directories is None:
            raise ScannerError("scan() must be called before reading results")
        return list(self._directories)

    def _selected(self, relpath: str) -> bool:
        if any(prunes_directory(prefix, self._excludes) for prefix in ancestors(relpath)):
            return False
        return is_selected(relpath, self._includes, self._excludes)

    @abstractmethod
    def _collect(self) -> tuple[Iterable[str], Iterable[str]]:
        """Return (files, directories) relative to basedir."""


class DirectoryScanner(Scanner):
    """Sees every file and directory on disk under basedir."""

    def __init__(self, basedir: Path, excludes: Sequence[str] = ()) -> None:
        super().__init__(basedir)
        # Paths the owning context never tracks (e.g. its own state directory)
        self._hidden = tuple(excludes)

    def _collect(self) -> tuple[list[str], list[str]]:
        files: list[str] = []
        directories: list[str] = []
        for entry in walk(self._basedir, self._includes, (*self._excludes, *self._hidden)):
            (directories if entry.is_dir else files).append(entry.relpath)
        return files, directories


class DeltaScanner(Scanner):
    """
    Sees only files added or modified since the previous build.

    Directories are reported when they contain such a file. Deleted sources
    and stale or missing targets are NOT reported; use a full scan together
    with is_uptodate() when copying sources to targets.
    """

    def __init__(self, basedir: Path, changed: Iterable[str]) -> None:
        super().__init__(basedir)
        self._changed = tuple(changed)

    def _collect(self) -> tuple[list[str], list[str]]:
        files = [path for path in self._changed if self._selected(path)]
        directories = {
            parent
            for path in files
            for parent in ancestors(path)
            if self._selected(parent)
        }
        return files, sorted(directories)


class DeleteScanner(Scanner):
    """
    Sees only files deleted since the previous build.

    A directory is reported when it held a deleted file and no longer exists.
    """

    def __init__(self, basedir: Path, removed: Iterable[str]) -> None:
        super().__init__(basedir)
        self._removed = tuple(removed)

    def _collect(self) -> tuple[list[str], list[str]]:
        files = [path for path in self._removed if self._selected(path)]
        directories = {
            parent
            for path in self._removed
            for parent in ancestors(path)
            if not (self._basedir / parent).exists() and self._selected(parent)
        }
        return files, sorted(directories)


class EmptyScanner(Scanner):
    """Sees nothing. Returned for basedirs outside the build context."""

    def _collect(self) -> tuple[list[str], list[str]]:
        return [], []


__all__ = [
    "Scanner",
    "DirectoryScanner",
    "DeltaScanner",
    "DeleteScanner",
    "EmptyScanner",
]
