# deltabuild/core/paths.py
"""
Central path handling for deltabuild.

ALL components that need to relate a file to a BaseDirectory, or to locate the
persisted state unit, go through this module.

Relative paths are always POSIX strings ("src/a.txt"), never "./src/a.txt" and
never containing "..". The base directory itself is the empty string.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path, PurePosixPath
from typing import Optional, Union

StrPath = Union[str, "os.PathLike[str]"]

WORKSPACE_DIRNAME = ".deltabuild"
STATE_DIRNAME = "state"
CONFIG_FILENAME = "config.yaml"


def resolve_base(base_directory: StrPath) -> Path:
    """Absolute, symlink-resolved form of a base directory."""
    return Path(base_directory).expanduser().resolve()


def relativize(base: Path, path: StrPath) -> Optional[str]:
    """
    Relative POSIX form of `path` under `base`, or None if it lies outside.

    `base` must already be resolved. Relative inputs are taken relative to the
    current working directory, like any other filesystem call.
    """
    candidate = Path(path).expanduser()
    if not candidate.is_absolute():
        candidate = Path.cwd() / candidate
    candidate = Path(os.path.normpath(candidate))
    try:
        rel = candidate.relative_to(base)
    except ValueError:
        # Symlinked spellings of the base only match once resolved
        try:
            rel = candidate.resolve().relative_to(base)
        except ValueError:
            return None
    posix = rel.as_posix()
    return "" if posix == "." else posix


def normalize_relpath(relpath: str) -> Optional[str]:
    """
    Canonical form of a caller-supplied relative path.

    Returns None for absolute paths and for paths that climb out of the base
    with "..".
    """
    cleaned = relpath.replace("\\", "/").strip()
    if cleaned.startswith("/"):
        return None
    parts: list[str] = []
    for part in PurePosixPath(cleaned).parts:
        if part in ("", "."):
            continue
        if part == "..":
            if not parts:
                return None
            parts.pop()
            continue
        parts.append(part)
    return "/".join(parts)


def is_ancestor(ancestor: str, relpath: str) -> bool:
    """True if `ancestor` is a strict parent directory of `relpath`."""
    if ancestor == "":
        return relpath != ""
    return relpath.startswith(f"{ancestor}/")


def is_within(ancestor: str, relpath: str) -> bool:
    """True if `relpath` is `ancestor` itself or lies beneath it."""
    return relpath == ancestor or is_ancestor(ancestor, relpath)


def ancestors(relpath: str) -> list[str]:
    """Strict ancestor directories of `relpath`, nearest first, excluding the base."""
    parts = relpath.split("/")[:-1]
    return ["/".join(parts[:i]) for i in range(len(parts), 0, -1)]


def workspace_dir(base: Path) -> Path:
    """
    The .deltabuild workspace directory of a base directory.

    Location: {base}/.deltabuild/
    """
    return base / WORKSPACE_DIRNAME


def default_state_dir(base: Path) -> Path:
    """
    Default directory holding state units.

    Location: {base}/.deltabuild/state/
    """
    return workspace_dir(base) / STATE_DIRNAME


def user_config(base: Path) -> Path:
    """
    Optional per-project config file.

    Location: {base}/.deltabuild/config.yaml
    """
    return workspace_dir(base) / CONFIG_FILENAME


def state_key(base: Path) -> str:
    """Deterministic, collision-resistant key for a base directory."""
    return hashlib.sha256(str(base).encode("utf-8")).hexdigest()[:16]


def state_file(state_dir: Path, base: Path) -> Path:
    """
    State unit for a base directory.

    Location: {state_dir}/{sha256(base)[:16]}.json

    Keyed by the base directory so a shared state_dir never mixes two projects.
    """
    return state_dir / f"{state_key(base)}.json"
