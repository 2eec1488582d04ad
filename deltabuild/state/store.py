# deltabuild/state/store.py
"""
Snapshot store: loads and persists state units.

One state unit (a JSON file) per BaseDirectory, located at
{state_dir}/{sha256(base)[:16]}.json.

Key responsibilities:
- Load the unit written by the last completed build, failing open
- Persist atomically: temp file + replace, never in-place mutation
- Delete a unit (forces the next build to be a clean build)

Key non-responsibilities:
- NO filesystem scanning (that's delta.snapshot's job)
- NO diffing logic
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from deltabuild.core.exceptions import StateLoadError, StatePersistError
from deltabuild.core.paths import state_file
from deltabuild.logging.logger import get_logger
from deltabuild.logging.tags import STATE

from .schema import STATE_SCHEMA_VERSION, BuildState

logger = get_logger(__name__)


class SnapshotStore:
    """
    Manages state units inside one state directory.

    Usage:
        store = SnapshotStore(state_dir)
        state = store.load(base)          # None -> clean build
        ...
        store.persist(base, new_state)
    """

    def __init__(self, state_dir: Path) -> None:
        self._state_dir = state_dir

    @property
    def state_dir(self) -> Path:
        return self._state_dir

    def path_for(self, base: Path) -> Path:
        """State unit location for a base directory."""
        return state_file(self._state_dir, base)

    def load(self, base: Path) -> Optional[BuildState]:
        """
        Load the state unit for a base directory.

        Never raises: any problem with the unit is logged and reported as
        "no previous state", which turns the build into a clean build.
        """
        path = self.path_for(base)
        if not path.exists():
            logger.info(f"{STATE} No previous state at {path}, clean build")
            return None

        try:
            state = self._read(path)
            self._check_compatible(state, base, path)
        except StateLoadError as e:
            logger.warning(f"{STATE} Ignoring previous state, clean build: {e}")
            return None

        logger.debug(f"{STATE} Loaded state from {path} ({len(state.files)} files)")
        return state

    def persist(self, base: Path, state: BuildState) -> Path:
        """
        Write the state unit atomically.

        Raises:
            StatePersistError: If the unit could not be written. The previous
                unit, if any, is left exactly as it was.
        """
        path = self.path_for(base)
        state.updated_at = datetime.now(timezone.utc)
        temp_path = path.with_name(f"{path.name}.{os.getpid()}.tmp")

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with temp_path.open("w", encoding="utf-8") as f:
                json.dump(state.model_dump(mode="json"), f, indent=2, sort_keys=True)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            temp_path.replace(path)
        except (OSError, TypeError, ValueError) as e:
            if temp_path.exists():
                temp_path.unlink()
            raise StatePersistError(f"Failed to persist build state: {e}", path=path) from e

        logger.debug(f"{STATE} Saved state to {path} ({len(state.files)} files)")
        return path

    def delete(self, base: Path) -> bool:
        """Remove the state unit. Returns True if one existed."""
        path = self.path_for(base)
        if not path.exists():
            return False
        path.unlink()
        logger.info(f"{STATE} Deleted state {path}")
        return True

    @staticmethod
    def _read(path: Path) -> BuildState:
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StateLoadError(f"unreadable state: {e}", path=path) from e

        if not isinstance(data, dict):
            raise StateLoadError("state root is not an object", path=path)

        version = data.get("schema_version")
        if version != STATE_SCHEMA_VERSION:
            raise StateLoadError(
                f"unsupported schema version {version!r}, expected {STATE_SCHEMA_VERSION}",
                path=path,
            )

        try:
            return BuildState.model_validate(data)
        except ValidationError as e:
            raise StateLoadError(f"invalid state: {e}", path=path) from e

    @staticmethod
    def _check_compatible(state: BuildState, base: Path, path: Path) -> None:
        if state.base_directory != str(base):
            raise StateLoadError(
                f"state belongs to {state.base_directory}, not {base}", path=path
            )


__all__ = ["SnapshotStore"]
