# tests/conftest.py
"""
Shared fixtures for deltabuild tests.

Test tiers:
- tier1: pure logic, no filesystem
- tier2: filesystem-backed unit tests (tmp_path only)

Run: pytest -m tier1
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Optional

import pytest

from deltabuild.config.schema import BuildConfig
from deltabuild.context.incremental import IncrementalBuildContext

# A fixed, old timestamp so tests never depend on clock resolution
BASE_MTIME_NS = 1_600_000_000_000_000_000
SECOND_NS = 1_000_000_000


def write_file(path: Path, content: str, mtime_ns: Optional[int] = BASE_MTIME_NS) -> Path:
    """Write a text file and pin its mtime."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    if mtime_ns is not None:
        os.utime(path, ns=(mtime_ns, mtime_ns))
    return path


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A base directory holding a.txt and b.txt."""
    base = tmp_path / "project"
    write_file(base / "a.txt", "aaa")
    write_file(base / "b.txt", "bbb")
    return base.resolve()


@pytest.fixture
def open_build() -> Callable[..., IncrementalBuildContext]:
    """Factory opening an IncrementalBuildContext with default (or given) config."""

    def _open(base: Path, **config) -> IncrementalBuildContext:
        return IncrementalBuildContext(base, config=BuildConfig(**config))

    return _open
