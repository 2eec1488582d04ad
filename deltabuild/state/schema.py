# deltabuild/state/schema.py
"""
State schema for incremental builds.

Defines the Pydantic models for one persisted state unit (one per
BaseDirectory). A unit holds everything a later build needs:
- the file snapshot (relative path -> fingerprint)
- the values plugins stashed with set_value()
- the diagnostics recorded against files

Severity values are part of the persisted format: WARNING = 1, ERROR = 2.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

STATE_SCHEMA_VERSION = 1


class Fingerprint(BaseModel):
    """
    Cheap change-detection signature for one file.

    content_hash is only populated under the "hash" policy.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    size: int = Field(..., description="File size in bytes")
    mtime_ns: int = Field(..., description="Modification time in nanoseconds")
    content_hash: Optional[str] = Field(
        default=None, description="SHA-256 of file content (sha256:...)"
    )


class MessageEntry(BaseModel):
    """Persisted form of a diagnostic message."""

    model_config = ConfigDict(extra="forbid")

    line: int = Field(default=0, ge=0, description="1-based line, 0 = unknown")
    column: int = Field(default=0, ge=0, description="1-based column, 0 = unknown")
    text: str = Field(..., description="Message text")
    severity: int = Field(..., description="1 = warning, 2 = error")
    cause: Optional[str] = Field(
        default=None,
        description="Summary of the original exception; exceptions are not stored verbatim",
    )


class BuildState(BaseModel):
    """
    Root model of a state unit.

    This is the single source of truth a build inherits from its predecessor.
    """

    model_config = ConfigDict(extra="forbid")

    schema_version: int = Field(
        default=STATE_SCHEMA_VERSION, description="Schema version for migrations"
    )
    base_directory: str = Field(..., description="Absolute base directory this unit tracks")
    fingerprint_policy: str = Field(default="stat", description="Policy used for `files`")
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Last persist time"
    )
    files: Dict[str, Fingerprint] = Field(
        default_factory=dict, description="Snapshot keyed by relative path"
    )
    values: Dict[str, Any] = Field(
        default_factory=dict, description="Opaque plugin values keyed by name"
    )
    messages: Dict[str, List[MessageEntry]] = Field(
        default_factory=dict, description="Diagnostics keyed by absolute file path"
    )


__all__ = [
    "STATE_SCHEMA_VERSION",
    "Fingerprint",
    "MessageEntry",
    "BuildState",
]
