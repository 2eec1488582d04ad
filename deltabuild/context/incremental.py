# deltabuild/context/incremental.py
"""
Incremental build context.

Lifecycle:
1. __init__: load the previous state unit, fingerprint the base directory,
   compute the DeltaSet (fixed for the rest of the build)
2. build steps query and record through the BuildContext API
3. close(): build the next snapshot (start-of-build fingerprints overlaid with
   refreshed paths) and persist it together with values and messages

A missing, corrupt or incompatible state unit is never an error: the build
simply becomes non-incremental and everything reports as changed.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Union

from deltabuild.config.loader import load_config
from deltabuild.config.schema import BuildConfig
from deltabuild.core.exceptions import ContextClosedError
from deltabuild.core.paths import (
    StrPath,
    ancestors,
    is_within,
    normalize_relpath,
    relativize,
    resolve_base,
    workspace_dir,
)
from deltabuild.delta.differ import DeltaSet, Differ
from deltabuild.delta.snapshot import SnapshotScanner
from deltabuild.logging.logger import get_logger
from deltabuild.logging.tags import CONTEXT
from deltabuild.scan.fingerprint import get_policy
from deltabuild.scan.scanner import (
    DeleteScanner,
    DeltaScanner,
    DirectoryScanner,
    EmptyScanner,
    Scanner,
)
from deltabuild.scan.walker import DEFAULT_EXCLUDES
from deltabuild.state.schema import BuildState, Fingerprint
from deltabuild.state.store import SnapshotStore

from .base import BuildContext, DeltaTarget, message_key
from .messages import Message, MessageRegistry, Severity
from .output import ContentAwareOutputStream
from .values import ValueRegistry

logger = get_logger(__name__)


class IncrementalBuildContext(BuildContext):
    """
    Build context backed by a persisted state unit.

    Usage:
        with IncrementalBuildContext(basedir) as context:
            if context.has_delta("src/a.txt"):
                ...
    """

    def __init__(
        self,
        base_directory: StrPath,
        config: Optional[BuildConfig] = None,
        store: Optional[SnapshotStore] = None,
    ) -> None:
        """
        Args:
            base_directory: Root of every tracked file
            config: Effective config; loaded from the base directory if None
            store: State store; derived from config.state_dir if None
        """
        self._base = resolve_base(base_directory)
        self._config = config if config is not None else load_config(self._base)
        self._policy = get_policy(self._config.fingerprint)
        self._store = store or SnapshotStore(self._config.resolve_state_dir(self._base))
        self._internal_dirs = self._find_internal_dirs()
        self._tracker = SnapshotScanner(self._policy, excludes=self._tracking_excludes())

        previous = self._store.load(self._base)
        if previous is not None and previous.fingerprint_policy != self._policy.name:
            logger.warning(
                f"{CONTEXT} Previous build used fingerprint policy "
                f"'{previous.fingerprint_policy}', now '{self._policy.name}': clean build"
            )
            previous = None
        self._incremental = previous is not None

        current = self._tracker.scan(self._base)
        self._current_files: Dict[str, Fingerprint] = dict(current.files)
        self._delta = Differ(self._policy).compute_delta(
            current.files, previous.files if previous is not None else {}
        )

        if previous is not None:
            self._values = ValueRegistry(previous.values)
            self._messages = MessageRegistry.from_entries(previous.messages)
        else:
            self._values = ValueRegistry()
            self._messages = MessageRegistry()

        self._refreshed: set[str] = set()
        self._closed = False

        logger.info(
            f"{CONTEXT} Build context for {self._base}: "
            f"{'incremental' if self._incremental else 'clean build'}, {self._delta.summary}"
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def base_directory(self) -> Path:
        return self._base

    @property
    def config(self) -> BuildConfig:
        return self._config

    @property
    def delta(self) -> DeltaSet:
        """DeltaSet fixed at the start of this build."""
        return self._delta

    @property
    def state_path(self) -> Path:
        return self._store.path_for(self._base)

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Change detection
    # ------------------------------------------------------------------

    def is_incremental(self) -> bool:
        return self._incremental

    def has_delta(self, target: DeltaTarget) -> bool:
        if isinstance(target, (list, tuple, set, frozenset)):
            return not self._incremental or any(self.has_delta(item) for item in target)

        if isinstance(target, str):
            relpath = normalize_relpath(target)
        elif isinstance(target, os.PathLike):
            relpath = relativize(self._base, target)
        else:
            raise TypeError(
                f"has_delta() expects a relative path, a path or a list, "
                f"got {type(target).__name__}"
            )

        if relpath is None or not self._incremental:
            return True
        if not self._tracker.is_tracked(relpath):
            return True
        return self._delta.has_delta(relpath)

    def is_uptodate(self, target: StrPath, source: StrPath) -> bool:
        target_path = Path(target)
        source_path = Path(source)
        try:
            target_stat = target_path.stat()
            source_stat = source_path.stat()
        except OSError:
            return False
        if self.has_delta(target_path) or self.has_delta(source_path):
            return False
        return target_stat.st_mtime_ns > source_stat.st_mtime_ns

    def new_scanner(self, basedir: StrPath, ignore_delta: bool = False) -> Scanner:
        relpath = relativize(self._base, basedir)
        if relpath is None:
            logger.debug(f"{CONTEXT} {basedir} is outside {self._base}, empty scanner")
            return EmptyScanner(Path(basedir))

        root = self._base / relpath if relpath else self._base
        if ignore_delta or not self._incremental:
            return DirectoryScanner(root, excludes=self._hidden_patterns(relpath))
        return DeltaScanner(root, _strip_prefix(relpath, self._delta.changed_under(relpath)))

    def new_delete_scanner(self, basedir: StrPath) -> Scanner:
        relpath = relativize(self._base, basedir)
        if relpath is None or not self._incremental:
            return EmptyScanner(Path(basedir))

        root = self._base / relpath if relpath else self._base
        return DeleteScanner(root, _strip_prefix(relpath, self._delta.removed_under(relpath)))

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    def refresh(self, file: StrPath) -> None:
        self._ensure_open()
        relpath = relativize(self._base, file)
        if relpath is None:
            logger.debug(f"{CONTEXT} Not tracking refresh of {file}: outside {self._base}")
            return
        self._refreshed.add(relpath)

    def new_file_output_stream(self, file: StrPath) -> BinaryIO:
        self._ensure_open()
        path = Path(file).expanduser().absolute()
        return ContentAwareOutputStream(path, on_written=self.refresh)

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def set_value(self, key: str, value: Any) -> None:
        self._ensure_open()
        self._values.set(key, value)

    def get_value(self, key: str) -> Any:
        if not self._incremental:
            return None
        return self._values.get(key)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def add_message(
        self,
        file: StrPath,
        line: int,
        column: int,
        message: str,
        severity: Union[Severity, int],
        cause: Optional[BaseException] = None,
    ) -> None:
        self._ensure_open()
        self._messages.add(
            Message(
                file=message_key(file),
                line=line,
                column=column,
                text=message,
                severity=Severity(severity),
                cause=cause,
            )
        )

    def remove_messages(self, file: StrPath) -> None:
        self._ensure_open()
        removed = self._messages.remove_carried_over(message_key(file))
        if removed:
            logger.debug(f"{CONTEXT} Removed {removed} previous messages for {file}")

    def get_messages(self) -> Dict[str, List[Message]]:
        return self._messages.all()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """
        Persist the next build's state.

        Runs exactly once; later calls are no-ops.

        Raises:
            StatePersistError: If the state unit could not be written
        """
        if self._closed:
            return
        self._closed = True

        if self._config.log_messages:
            self._log_messages()

        state = BuildState(
            base_directory=str(self._base),
            fingerprint_policy=self._policy.name,
            files=self._next_snapshot(),
            values=self._values.merged(),
            messages=self._messages.to_entries(),
        )
        self._store.persist(self._base, state)
        logger.info(f"{CONTEXT} Build state persisted to {self.state_path}")

    def discard(self) -> None:
        """
        Close without persisting.

        The previous state unit stays the baseline for the next build. Meant for
        read-only inspection (e.g. `deltabuild status`), not for build steps.
        """
        self._closed = True

    def _next_snapshot(self) -> Dict[str, Fingerprint]:
        files = dict(self._current_files)
        directories = {parent for path in files for parent in ancestors(path)}
        for relpath in sorted(self._refreshed):
            if relpath in files:
                del files[relpath]
            elif relpath == "" or relpath in directories:
                for path in [p for p in files if is_within(relpath, p)]:
                    del files[path]
            files.update(self._tracker.fingerprint_subtree(self._base, relpath).files)
        return files

    def _log_messages(self) -> None:
        for messages in self._messages.current.values():
            for message in messages:
                text = f"{CONTEXT} {message.location}: {message.text}"
                if message.severity == Severity.ERROR:
                    logger.error(text)
                else:
                    logger.warning(text)

    def _ensure_open(self) -> None:
        if self._closed:
            raise ContextClosedError(f"Build context for {self._base} is closed")

    # ------------------------------------------------------------------
    # Tracking scope
    # ------------------------------------------------------------------

    def _find_internal_dirs(self) -> list[str]:
        internal = []
        for directory in (workspace_dir(self._base), self._store.state_dir):
            relpath = relativize(self._base, directory)
            if relpath:
                internal.append(relpath)
        return sorted(set(internal))

    def _tracking_excludes(self) -> list[str]:
        excludes = list(self._config.exclude)
        if self._config.default_excludes:
            excludes.extend(DEFAULT_EXCLUDES)
        excludes.extend(f"{relpath}/**" for relpath in self._internal_dirs)
        return excludes

    def _hidden_patterns(self, relpath: str) -> list[str]:
        """Internal directories, relative to a scanner rooted at relpath."""
        return [
            f"{path}/**" for path in _strip_prefix(relpath, self._internal_dirs)
        ]


def _strip_prefix(relpath: str, paths: list[str]) -> list[str]:
    """Re-root paths under relpath; paths not strictly beneath it are dropped."""
    if not relpath:
        return [path for path in paths if path]
    prefix = f"{relpath}/"
    return [path[len(prefix):] for path in paths if path.startswith(prefix)]


__all__ = ["IncrementalBuildContext"]
