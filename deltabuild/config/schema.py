# deltabuild/config/schema.py
"""
Configuration schema for a build context.

Validated with Pydantic after the layered YAML merge in loader.py.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from deltabuild.core.paths import default_state_dir

FingerprintPolicyName = Literal["stat", "hash"]


class BuildConfig(BaseModel):
    """Effective configuration for one BaseDirectory."""

    model_config = ConfigDict(extra="forbid")

    state_dir: Optional[Path] = Field(
        default=None,
        description="Directory holding state units; None means {base}/.deltabuild/state",
    )
    fingerprint: FingerprintPolicyName = Field(
        default="stat",
        description="Change detection policy: 'stat' (size + mtime) or 'hash' (SHA-256)",
    )
    exclude: List[str] = Field(
        default_factory=list,
        description="Globs relative to the base directory that are never tracked",
    )
    default_excludes: bool = Field(
        default=True,
        description="Also skip VCS and OS metadata when tracking",
    )
    log_messages: bool = Field(
        default=True,
        description="Log diagnostics recorded during the build at close",
    )

    def resolve_state_dir(self, base: Path) -> Path:
        """Absolute state directory for a base directory."""
        if self.state_dir is None:
            return default_state_dir(base)
        if self.state_dir.is_absolute():
            return self.state_dir
        return (base / self.state_dir).resolve()


__all__ = ["BuildConfig", "FingerprintPolicyName"]
