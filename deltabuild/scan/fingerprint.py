# deltabuild/scan/fingerprint.py
"""
Fingerprint policies for change detection.

Two policies exist:
- "stat": size + modification time. Never reads file content.
- "hash": SHA-256 of file content, for filesystems where mtimes lie
  (network mounts, clock skew, checkouts that reset timestamps).

A snapshot is always produced and compared under a single policy; the policy
name is persisted with it.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable

from deltabuild.state.schema import Fingerprint

_CHUNK_SIZE = 65536


def compute_content_hash(path: Union[str, Path]) -> str:
    """
    Compute the SHA-256 hash of a file's contents.

    Returns:
        Hash as hex string with "sha256:" prefix

    Raises:
        FileNotFoundError: If file doesn't exist
        IsADirectoryError: If path is a directory
    """
    hasher = hashlib.sha256()
    with Path(path).open("rb") as f:
        while chunk := f.read(_CHUNK_SIZE):
            hasher.update(chunk)
    return f"sha256:{hasher.hexdigest()}"


def compute_bytes_hash(data: bytes) -> str:
    """SHA-256 of in-memory bytes, in the same format as compute_content_hash()."""
    return f"sha256:{hashlib.sha256(data).hexdigest()}"


@runtime_checkable
class FingerprintPolicy(Protocol):
    """Computes and compares fingerprints."""

    name: str

    def fingerprint(self, path: Path, stat: Optional[os.stat_result] = None) -> Fingerprint:
        """Fingerprint of an existing regular file."""
        ...

    def same(self, previous: Fingerprint, current: Fingerprint) -> bool:
        """True if both fingerprints describe the same content."""
        ...


class StatPolicy:
    """Size + mtime. The default."""

    name = "stat"

    def fingerprint(self, path: Path, stat: Optional[os.stat_result] = None) -> Fingerprint:
        st = stat if stat is not None else path.stat()
        return Fingerprint(size=st.st_size, mtime_ns=st.st_mtime_ns)

    def same(self, previous: Fingerprint, current: Fingerprint) -> bool:
        return previous.size == current.size and previous.mtime_ns == current.mtime_ns


class HashPolicy:
    """Content hash. Size and mtime are recorded for inspection only."""

    name = "hash"

    def fingerprint(self, path: Path, stat: Optional[os.stat_result] = None) -> Fingerprint:
        st = stat if stat is not None else path.stat()
        return Fingerprint(
            size=st.st_size,
            mtime_ns=st.st_mtime_ns,
            content_hash=compute_content_hash(path),
        )

    def same(self, previous: Fingerprint, current: Fingerprint) -> bool:
        if previous.content_hash is None or current.content_hash is None:
            return False
        return previous.content_hash == current.content_hash


_POLICIES = {
    StatPolicy.name: StatPolicy,
    HashPolicy.name: HashPolicy,
}


def get_policy(name: str) -> FingerprintPolicy:
    """
    Look up a policy by name.

    Raises:
        ValueError: If the name is unknown
    """
    try:
        return _POLICIES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown fingerprint policy '{name}'. Available: {sorted(_POLICIES)}"
        ) from None


__all__ = [
    "FingerprintPolicy",
    "StatPolicy",
    "HashPolicy",
    "get_policy",
    "compute_content_hash",
    "compute_bytes_hash",
]
