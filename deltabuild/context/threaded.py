# deltabuild/context/threaded.py
"""
Delegating build contexts for hosts that run build steps on several threads.

- ThreadBuildContext: each thread talks to the context bound to it, or to a
  DefaultBuildContext when none is bound.
- SynchronizedBuildContext: one shared context, every call serialized through
  a re-entrant lock.
"""

from __future__ import annotations

import threading
from abc import abstractmethod
from typing import Any, BinaryIO, Dict, List, Optional, Union

from deltabuild.core.paths import StrPath
from deltabuild.scan.scanner import Scanner

from .base import BuildContext, DeltaTarget
from .default import DefaultBuildContext
from .messages import Message, Severity
from .output import ContentAwareOutputStream


class DelegatingBuildContext(BuildContext):
    """Forwards every call to the context returned by _delegate()."""

    @abstractmethod
    def _delegate(self) -> BuildContext:
        """Context that should serve the current call."""

    def _invoke(self, method: str, *args: Any) -> Any:
        return getattr(self._delegate(), method)(*args)

    def has_delta(self, target: DeltaTarget) -> bool:
        return self._invoke("has_delta", target)

    def refresh(self, file: StrPath) -> None:
        self._invoke("refresh", file)

    def new_file_output_stream(self, file: StrPath) -> BinaryIO:
        return self._invoke("new_file_output_stream", file)

    def new_scanner(self, basedir: StrPath, ignore_delta: bool = False) -> Scanner:
        return self._invoke("new_scanner", basedir, ignore_delta)

    def new_delete_scanner(self, basedir: StrPath) -> Scanner:
        return self._invoke("new_delete_scanner", basedir)

    def is_incremental(self) -> bool:
        return self._invoke("is_incremental")

    def is_uptodate(self, target: StrPath, source: StrPath) -> bool:
        return self._invoke("is_uptodate", target, source)

    def set_value(self, key: str, value: Any) -> None:
        self._invoke("set_value", key, value)

    def get_value(self, key: str) -> Any:
        return self._invoke("get_value", key)

    def add_message(
        self,
        file: StrPath,
        line: int,
        column: int,
        message: str,
        severity: Union[Severity, int],
        cause: Optional[BaseException] = None,
    ) -> None:
        self._invoke("add_message", file, line, column, message, severity, cause)

    def remove_messages(self, file: StrPath) -> None:
        self._invoke("remove_messages", file)

    def get_messages(self) -> Dict[str, List[Message]]:
        return self._invoke("get_messages")

    def close(self) -> None:
        self._invoke("close")


class ThreadBuildContext(DelegatingBuildContext):
    """
    Routes calls to the context bound to the calling thread.

    Usage:
        ThreadBuildContext.set_thread_context(context)
        try:
            run_step(ThreadBuildContext())
        finally:
            ThreadBuildContext.clear_thread_context()
    """

    _local = threading.local()

    def __init__(self, fallback: Optional[BuildContext] = None) -> None:
        self._fallback = fallback or DefaultBuildContext()

    @classmethod
    def set_thread_context(cls, context: BuildContext) -> None:
        cls._local.context = context

    @classmethod
    def clear_thread_context(cls) -> None:
        cls._local.context = None

    @classmethod
    def get_thread_context(cls) -> Optional[BuildContext]:
        return getattr(cls._local, "context", None)

    def _delegate(self) -> BuildContext:
        return self.get_thread_context() or self._fallback


class SynchronizedBuildContext(DelegatingBuildContext):
    """Serializes every call to a shared context."""

    def __init__(self, context: BuildContext) -> None:
        self._context = context
        self._lock = threading.RLock()

    @property
    def wrapped(self) -> BuildContext:
        return self._context

    def _delegate(self) -> BuildContext:
        return self._context

    def _invoke(self, method: str, *args: Any) -> Any:
        with self._lock:
            return super()._invoke(method, *args)

    def new_file_output_stream(self, file: StrPath) -> BinaryIO:
        stream = self._invoke("new_file_output_stream", file)
        if isinstance(stream, ContentAwareOutputStream):
            # close() runs after the lock was released; its refresh must take it again
            stream.on_written = self.refresh
        return stream


__all__ = [
    "DelegatingBuildContext",
    "ThreadBuildContext",
    "SynchronizedBuildContext",
]
