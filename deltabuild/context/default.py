# deltabuild/context/default.py
"""
Non-incremental build context.

For hosts without incremental support: every path has changed, scanners see
everything, nothing is remembered between builds and messages go straight to
the log.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, BinaryIO, Optional, Union

from deltabuild.core.paths import StrPath
from deltabuild.logging.logger import get_logger
from deltabuild.logging.tags import CONTEXT
from deltabuild.scan.scanner import DirectoryScanner, EmptyScanner, Scanner

from .base import BuildContext, DeltaTarget, message_key
from .messages import Message, Severity

logger = get_logger(__name__)


class DefaultBuildContext(BuildContext):
    """Stateless context that treats every build as a clean build."""

    def has_delta(self, target: DeltaTarget) -> bool:
        return True

    def refresh(self, file: StrPath) -> None:
        pass

    def new_file_output_stream(self, file: StrPath) -> BinaryIO:
        path = Path(file)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path.open("wb")

    def new_scanner(self, basedir: StrPath, ignore_delta: bool = False) -> Scanner:
        return DirectoryScanner(Path(basedir))

    def new_delete_scanner(self, basedir: StrPath) -> Scanner:
        return EmptyScanner(Path(basedir))

    def is_incremental(self) -> bool:
        return False

    def is_uptodate(self, target: StrPath, source: StrPath) -> bool:
        # No history to consult: fall back to plain timestamps
        try:
            return Path(target).stat().st_mtime_ns > Path(source).stat().st_mtime_ns
        except OSError:
            return False

    def set_value(self, key: str, value: Any) -> None:
        pass

    def get_value(self, key: str) -> Any:
        return None

    def add_message(
        self,
        file: StrPath,
        line: int,
        column: int,
        message: str,
        severity: Union[Severity, int],
        cause: Optional[BaseException] = None,
    ) -> None:
        entry = Message(
            file=message_key(file),
            line=line,
            column=column,
            text=message,
            severity=Severity(severity),
            cause=cause,
        )
        text = f"{CONTEXT} {entry.location}: {entry.text}"
        if entry.severity == Severity.ERROR:
            logger.error(text, exc_info=cause)
        else:
            logger.warning(text, exc_info=cause)

    def remove_messages(self, file: StrPath) -> None:
        pass


__all__ = ["DefaultBuildContext"]
