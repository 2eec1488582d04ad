# deltabuild/state/__init__.py
"""
Persisted state between builds.

Key exports:
- SnapshotStore: load/persist/delete state units
- BuildState: root Pydantic model of a unit
- Fingerprint, MessageEntry: nested models
"""

from .schema import STATE_SCHEMA_VERSION, BuildState, Fingerprint, MessageEntry
from .store import SnapshotStore

__all__ = [
    # Store
    "SnapshotStore",
    # Schema
    "STATE_SCHEMA_VERSION",
    "BuildState",
    "Fingerprint",
    "MessageEntry",
]
