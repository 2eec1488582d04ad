# deltabuild/context/base.py
"""
The build context contract.

A build context is created once per build invocation and closed at build end,
success or failure. Build steps use it to:
- ask what changed since the previous build (has_delta, scanners, is_uptodate)
- write outputs without touching unchanged files (new_file_output_stream)
- record files modified by other means (refresh)
- carry values to the next build (set_value / get_value)
- attach diagnostics to files (add_message / remove_messages)

Usage:
    with open_context(basedir) as context:
        scanner = context.new_scanner(basedir / "src")
        scanner.scan()
        ...
"""

from __future__ import annotations

import warnings
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterable, List, Optional, Union

from deltabuild.core.paths import StrPath
from deltabuild.scan.scanner import Scanner

from .messages import SEVERITY_ERROR, SEVERITY_WARNING, Message, Severity

DeltaTarget = Union[str, StrPath, Iterable[str]]


class BuildContext(ABC):
    """Abstract build context. See module docstring."""

    SEVERITY_WARNING = SEVERITY_WARNING
    SEVERITY_ERROR = SEVERITY_ERROR

    # ------------------------------------------------------------------
    # Change detection
    # ------------------------------------------------------------------

    @abstractmethod
    def has_delta(self, target: DeltaTarget) -> bool:
        """
        True if something changed since the last build.

        Args:
            target: A path relative to the base directory (str), a file or
                directory (Path; anything outside the base directory counts
                as changed), or a list of relative paths (true if any changed)
        """

    @abstractmethod
    def refresh(self, file: StrPath) -> None:
        """Record that a file or directory was modified during this build."""

    @abstractmethod
    def new_file_output_stream(self, file: StrPath) -> BinaryIO:
        """
        Binary stream writing to `file`.

        Files written through it need no refresh() call. Incremental contexts
        skip the write when the content is unchanged.

        Raises:
            OSError: If the file cannot be written (on close)
        """

    @abstractmethod
    def new_scanner(self, basedir: StrPath, ignore_delta: bool = False) -> Scanner:
        """
        Scanner over `basedir`.

        When the context is incremental and ignore_delta is False, the scanner
        only sees files changed since the last build. It does not see deleted
        sources or stale targets, so source-to-target copies should scan with
        ignore_delta=True and skip work with is_uptodate().

        An empty scanner is returned for basedirs outside the base directory.
        """

    @abstractmethod
    def new_delete_scanner(self, basedir: StrPath) -> Scanner:
        """Scanner over files and directories deleted since the last build."""

    @abstractmethod
    def is_incremental(self) -> bool:
        """True if a usable previous build exists."""

    @abstractmethod
    def is_uptodate(self, target: StrPath, source: StrPath) -> bool:
        """
        True if target and source both exist, neither changed since the last
        build, and target was modified after source.
        """

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    @abstractmethod
    def set_value(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value for the next build."""

    @abstractmethod
    def get_value(self, key: str) -> Any:
        """
        Value stored under `key` by the previous build.

        Always None for non-incremental builds; callers must then recompute.
        """

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    @abstractmethod
    def add_message(
        self,
        file: StrPath,
        line: int,
        column: int,
        message: str,
        severity: Union[Severity, int],
        cause: Optional[BaseException] = None,
    ) -> None:
        """
        Attach a message to a location in a file.

        Use 0 for an unknown line or column; 1 is the first.
        """

    @abstractmethod
    def remove_messages(self, file: StrPath) -> None:
        """Remove messages added for `file` by a previous build."""

    def add_warning(
        self,
        file: StrPath,
        line: int,
        column: int,
        message: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        """Deprecated: use add_message(..., Severity.WARNING, ...)."""
        warnings.warn(
            "add_warning() is deprecated, use add_message() with Severity.WARNING",
            DeprecationWarning,
            stacklevel=2,
        )
        self.add_message(file, line, column, message, Severity.WARNING, cause)

    def add_error(
        self,
        file: StrPath,
        line: int,
        column: int,
        message: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        """Deprecated: use add_message(..., Severity.ERROR, ...)."""
        warnings.warn(
            "add_error() is deprecated, use add_message() with Severity.ERROR",
            DeprecationWarning,
            stacklevel=2,
        )
        self.add_message(file, line, column, message, Severity.ERROR, cause)

    def get_messages(self) -> Dict[str, List[Message]]:
        """Messages the host should report, keyed by absolute file path."""
        return {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Finish the build. Incremental contexts persist their state here."""

    def __enter__(self) -> "BuildContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def message_key(file: StrPath) -> str:
    """Canonical registry key for a message file."""
    return str(Path(file).expanduser().resolve())


__all__ = ["BuildContext", "DeltaTarget", "message_key"]
