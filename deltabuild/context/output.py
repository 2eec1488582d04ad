# deltabuild/context/output.py
"""
Content-aware output.

Build steps often regenerate files whose content did not change. Rewriting them
bumps their mtime and makes every downstream step think they changed. The
stream here buffers everything and, on close, only writes when the bytes differ
from what is already on disk.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Callable, Optional

from deltabuild.logging.logger import get_logger
from deltabuild.logging.tags import OUTPUT

logger = get_logger(__name__)


def content_equals(path: Path, data: bytes) -> bool:
    """
    True if `path` is an existing file holding exactly `data`.

    A missing file never equals anything, not even empty data.
    """
    try:
        if not path.is_file() or path.stat().st_size != len(data):
            return False
        return path.read_bytes() == data
    except OSError:
        return False


def write_if_changed(path: Path, data: bytes) -> bool:
    """
    Write `data` to `path` unless the file already holds exactly that.

    Creates parent directories as needed.

    Returns:
        True if the file was written, False if it was left untouched

    Raises:
        OSError: If the write fails
    """
    if content_equals(path, data):
        logger.debug(f"{OUTPUT} Unchanged, not rewriting {path}")
        return False

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        f.write(data)
    logger.debug(f"{OUTPUT} Wrote {len(data)} bytes to {path}")
    return True


class ContentAwareOutputStream(io.BytesIO):
    """
    Binary stream that writes its target only on close, and only if needed.

    When the file is written, `on_written` is called with its path so the
    owning build context can record the change. Leaving a `with` block through
    an exception discards the buffer: the target keeps its previous content and
    nothing is recorded.

    Usage:
        with context.new_file_output_stream(target) as out:
            out.write(rendered)
    """

    def __init__(self, path: Path, on_written: Optional[Callable[[Path], None]] = None) -> None:
        super().__init__()
        self._path = path
        self._on_written = on_written
        self._written: Optional[bool] = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def on_written(self) -> Optional[Callable[[Path], None]]:
        return self._on_written

    @on_written.setter
    def on_written(self, callback: Optional[Callable[[Path], None]]) -> None:
        self._on_written = callback

    @property
    def written(self) -> Optional[bool]:
        """None while open; afterwards whether close() touched the file."""
        return self._written

    def close(self) -> None:
        if self.closed:
            return
        data = self.getvalue()
        try:
            self._written = write_if_changed(self._path, data)
        finally:
            super().close()
        if self._written and self._on_written is not None:
            self._on_written(self._path)

    def discard(self) -> None:
        """Close without writing; the target is left as it was."""
        if self.closed:
            return
        self._written = False
        super().close()
        logger.debug(f"{OUTPUT} Discarded buffered output for {self._path}")

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.discard()
        else:
            self.close()


__all__ = ["ContentAwareOutputStream", "content_equals", "write_if_changed"]
