# deltabuild/context/messages.py
"""
File-scoped diagnostics.

Messages are keyed by absolute file path and kept in insertion order. The
registry holds two generations:
- carried over: loaded from the previous build; remove() clears these
- current: added during this build; never touched by remove()

The host sees carried-over messages (minus removed paths) followed by current
ones, and the same view is persisted for the next build.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Mapping, Optional, Sequence

from deltabuild.state.schema import MessageEntry


class Severity(IntEnum):
    """Message severity. Values are part of the persisted format."""

    WARNING = 1
    ERROR = 2


SEVERITY_WARNING = Severity.WARNING
SEVERITY_ERROR = Severity.ERROR

_SEVERITY_VALUES = frozenset(severity.value for severity in Severity)


@dataclass(frozen=True)
class Message:
    """One diagnostic attached to a location in a file."""

    file: str
    line: int
    column: int
    text: str
    severity: Severity
    cause: Optional[BaseException] = None
    # Summary of the cause for messages loaded from a previous build
    cause_text: Optional[str] = None

    def __post_init__(self) -> None:
        if self.line < 0:
            raise ValueError(f"line must be >= 0, got {self.line}")
        if self.column < 0:
            raise ValueError(f"column must be >= 0, got {self.column}")
        object.__setattr__(self, "severity", Severity(self.severity))

    @property
    def cause_summary(self) -> Optional[str]:
        if self.cause is not None:
            return f"{type(self.cause).__name__}: {self.cause}"
        return self.cause_text

    @property
    def location(self) -> str:
        if self.line and self.column:
            return f"{self.file}:{self.line}:{self.column}"
        if self.line:
            return f"{self.file}:{self.line}"
        return self.file

    def to_entry(self) -> MessageEntry:
        return MessageEntry(
            line=self.line,
            column=self.column,
            text=self.text,
            severity=int(self.severity),
            cause=self.cause_summary,
        )

    @classmethod
    def from_entry(cls, file: str, entry: MessageEntry) -> "Message":
        return cls(
            file=file,
            line=entry.line,
            column=entry.column,
            text=entry.text,
            severity=Severity(entry.severity),
            cause_text=entry.cause,
        )


class MessageRegistry:
    """Carried-over and current diagnostics, keyed by file."""

    def __init__(self, carried_over: Optional[Mapping[str, Sequence[Message]]] = None) -> None:
        self._carried_over: Dict[str, List[Message]] = {
            file: list(messages) for file, messages in (carried_over or {}).items()
        }
        self._current: Dict[str, List[Message]] = {}

    @classmethod
    def from_entries(cls, entries: Mapping[str, Sequence[MessageEntry]]) -> "MessageRegistry":
        """
        Rebuild the carried-over generation from persisted entries.

        Entries with an unknown severity are dropped.
        """
        carried: Dict[str, List[Message]] = {}
        for file, items in entries.items():
            messages = [
                Message.from_entry(file, item)
                for item in items
                if item.severity in _SEVERITY_VALUES
            ]
            if messages:
                carried[file] = messages
        return cls(carried)

    def add(self, message: Message) -> None:
        """Append a message. No deduplication."""
        self._current.setdefault(message.file, []).append(message)

    def remove_carried_over(self, file: str) -> int:
        """Drop carried-over messages for exactly this path. Returns how many."""
        return len(self._carried_over.pop(file, []))

    @property
    def current(self) -> Dict[str, List[Message]]:
        return {file: list(messages) for file, messages in self._current.items()}

    @property
    def carried_over(self) -> Dict[str, List[Message]]:
        return {file: list(messages) for file, messages in self._carried_over.items()}

    def all(self) -> Dict[str, List[Message]]:
        """Carried-over messages followed by current ones, per file."""
        merged: Dict[str, List[Message]] = {
            file: list(messages) for file, messages in self._carried_over.items()
        }
        for file, messages in self._current.items():
            merged.setdefault(file, []).extend(messages)
        return merged

    def to_entries(self) -> Dict[str, List[MessageEntry]]:
        return {
            file: [message.to_entry() for message in messages]
            for file, messages in self.all().items()
        }


__all__ = [
    "Severity",
    "SEVERITY_WARNING",
    "SEVERITY_ERROR",
    "Message",
    "MessageRegistry",
]
