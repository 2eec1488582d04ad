# deltabuild/delta/differ.py
"""
Delta computation between two snapshots.

Compares the current filesystem snapshot against the one persisted by the
previous build and classifies every path:
- added: not in the previous snapshot
- modified: fingerprint differs
- removed: in the previous snapshot, absent now
- unchanged: omitted from the DeltaSet

This module ONLY computes the delta - it never touches the filesystem.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from deltabuild.core.paths import ancestors, is_within
from deltabuild.logging.logger import get_logger
from deltabuild.logging.tags import DELTA
from deltabuild.scan.fingerprint import FingerprintPolicy
from deltabuild.state.schema import Fingerprint

logger = get_logger(__name__)


@dataclass(frozen=True)
class DeltaSet:
    """
    Paths changed since the previous build.

    Directories carry no fingerprint of their own; a directory counts as changed
    when anything beneath it is in the set. The empty relative path denotes the
    base directory.
    """

    added: tuple[str, ...] = ()
    modified: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    _hits: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        hits: set[str] = set()
        for path in (*self.added, *self.modified, *self.removed):
            hits.add(path)
            hits.update(ancestors(path))
            hits.add("")
        object.__setattr__(self, "_hits", frozenset(hits))

    @property
    def changed(self) -> frozenset[str]:
        """Added and modified files - everything that exists and is new."""
        return frozenset(self.added) | frozenset(self.modified)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.modified or self.removed)

    @property
    def summary(self) -> str:
        return (
            f"added={len(self.added)}, "
            f"modified={len(self.modified)}, "
            f"removed={len(self.removed)}"
        )

    def has_delta(self, relpath: str) -> bool:
        """
        True if relpath, or anything beneath it, changed.

        relpath must already be normalized (see core.paths.normalize_relpath).
        """
        return relpath in self._hits

    def changed_under(self, relpath: str) -> list[str]:
        """Added/modified files at or beneath relpath, sorted."""
        return sorted(path for path in self.changed if is_within(relpath, path))

    def removed_under(self, relpath: str) -> list[str]:
        """Removed files at or beneath relpath, sorted."""
        return sorted(path for path in self.removed if is_within(relpath, path))


class Differ:
    """
    Computes the DeltaSet between two snapshots.

    Usage:
        differ = Differ(StatPolicy())
        delta = differ.compute_delta(current_files, previous_files)
    """

    def __init__(self, policy: FingerprintPolicy) -> None:
        self._policy = policy

    def compute_delta(
        self,
        current: Mapping[str, Fingerprint],
        previous: Mapping[str, Fingerprint],
    ) -> DeltaSet:
        """
        Compare current fingerprints against the previous snapshot.

        Args:
            current: Snapshot of the filesystem now
            previous: Snapshot persisted by the previous build

        Returns:
            DeltaSet with sorted added/modified/removed paths
        """
        added: list[str] = []
        modified: list[str] = []

        for path in sorted(current):
            prior = previous.get(path)
            if prior is None:
                added.append(path)
            elif not self._policy.same(prior, current[path]):
                modified.append(path)

        removed = sorted(set(previous) - set(current))

        delta = DeltaSet(added=tuple(added), modified=tuple(modified), removed=tuple(removed))
        logger.info(f"{DELTA} Delta computed: {delta.summary}")
        return delta


def compute_delta(
    current: Mapping[str, Fingerprint],
    previous: Mapping[str, Fingerprint],
    policy: FingerprintPolicy,
) -> DeltaSet:
    """Convenience function to compute a delta."""
    return Differ(policy).compute_delta(current, previous)


__all__ = ["DeltaSet", "Differ", "compute_delta"]
