# deltabuild/delta/__init__.py
"""
Change detection between builds.

Key exports:
- SnapshotScanner: fingerprint the files under a base directory
- Differ / compute_delta: compare two snapshots
- DeltaSet: the result, with has_delta() lookups
"""

from .differ import DeltaSet, Differ, compute_delta
from .snapshot import SnapshotResult, SnapshotScanner

__all__ = [
    "DeltaSet",
    "Differ",
    "compute_delta",
    "SnapshotResult",
    "SnapshotScanner",
]
