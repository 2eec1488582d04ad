# deltabuild/scan/__init__.py
"""
Filesystem enumeration: fingerprints, glob walking and scanners.
"""

from .fingerprint import (
    FingerprintPolicy,
    HashPolicy,
    StatPolicy,
    compute_bytes_hash,
    compute_content_hash,
    get_policy,
)
from .scanner import DeleteScanner, DeltaScanner, DirectoryScanner, EmptyScanner, Scanner
from .walker import DEFAULT_EXCLUDES, WalkEntry, match_path, walk

__all__ = [
    "DEFAULT_EXCLUDES",
    "DeleteScanner",
    "DeltaScanner",
    "DirectoryScanner",
    "EmptyScanner",
    "FingerprintPolicy",
    "HashPolicy",
    "Scanner",
    "StatPolicy",
    "WalkEntry",
    "compute_bytes_hash",
    "compute_content_hash",
    "get_policy",
    "match_path",
    "walk",
]
