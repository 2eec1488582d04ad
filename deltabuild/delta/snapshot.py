# deltabuild/delta/snapshot.py
"""
Current-state scanner for change detection.

Walks a base directory once and fingerprints every tracked file. This is the
"scan" half of delta computation; differ.py does the comparison.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Sequence

from deltabuild.logging.logger import get_logger
from deltabuild.logging.tags import DELTA
from deltabuild.scan.fingerprint import FingerprintPolicy
from deltabuild.core.paths import ancestors
from deltabuild.scan.walker import matches_any, prunes_directory, walk
from deltabuild.state.schema import Fingerprint

logger = get_logger(__name__)


@dataclass
class SnapshotResult:
    """
    Fingerprints of every tracked file, plus files that could not be read.

    Unreadable files are left out of `files`; the next successful scan reports
    them as added or modified, which is the safe direction.
    """

    root: Path
    files: Dict[str, Fingerprint] = field(default_factory=dict)
    errors: list[tuple[str, str]] = field(default_factory=list)

    @property
    def total_files(self) -> int:
        return len(self.files)


class SnapshotScanner:
    """
    Fingerprints the files under a base directory.

    Usage:
        scanner = SnapshotScanner(StatPolicy(), excludes=DEFAULT_EXCLUDES)
        result = scanner.scan(base)
        result.files["src/a.txt"]
    """

    def __init__(self, policy: FingerprintPolicy, excludes: Sequence[str] = ()) -> None:
        self._policy = policy
        self._excludes = tuple(excludes)

    @property
    def excludes(self) -> tuple[str, ...]:
        return self._excludes

    def is_tracked(self, relpath: str) -> bool:
        """False for paths the scanner deliberately ignores."""
        if relpath == "":
            return True
        return not matches_any(relpath, self._excludes) and not any(
            prunes_directory(prefix, self._excludes) for prefix in ancestors(relpath)
        )

    def scan(self, root: Path) -> SnapshotResult:
        """Fingerprint every tracked file under root."""
        result = SnapshotResult(root=root)
        for entry in walk(root, excludes=self._excludes, directories=False):
            self._record(result, entry.relpath, entry.path)

        logger.debug(
            f"{DELTA} Scanned {root}: {result.total_files} files, {len(result.errors)} errors"
        )
        return result

    def fingerprint_subtree(self, root: Path, relpath: str) -> SnapshotResult:
        """
        Fingerprint a single file, or every tracked file under a directory.

        Returned paths are relative to `root`, not to the subtree.
        """
        result = SnapshotResult(root=root)
        target = root / relpath if relpath else root
        if not self.is_tracked(relpath):
            return result
        if target.is_file():
            self._record(result, relpath, target)
        elif target.is_dir():
            prefix = f"{relpath}/" if relpath else ""
            for entry in walk(target, directories=False):
                full_rel = f"{prefix}{entry.relpath}"
                if self.is_tracked(full_rel):
                    self._record(result, full_rel, entry.path)
        return result

    def _record(self, result: SnapshotResult, relpath: str, path: Path) -> None:
        try:
            stat = path.stat()
            if not path.is_file():
                return
            result.files[relpath] = self._policy.fingerprint(path, stat)
        except OSError as e:
            result.errors.append((relpath, str(e)))


__all__ = ["SnapshotResult", "SnapshotScanner"]
