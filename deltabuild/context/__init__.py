# deltabuild/context/__init__.py
"""
Build contexts.

Key exports:
- open_context: factory used by hosts at the start of a build
- BuildContext: the contract build steps program against
- IncrementalBuildContext: persisted, delta-aware implementation
- DefaultBuildContext: stateless, everything-changed implementation
- ThreadBuildContext / SynchronizedBuildContext: multi-threaded hosts
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Union

from deltabuild.config.loader import load_config
from deltabuild.config.schema import BuildConfig
from deltabuild.core.paths import StrPath

from .base import BuildContext, DeltaTarget
from .default import DefaultBuildContext
from .incremental import IncrementalBuildContext
from .messages import SEVERITY_ERROR, SEVERITY_WARNING, Message, MessageRegistry, Severity
from .output import ContentAwareOutputStream, write_if_changed
from .threaded import DelegatingBuildContext, SynchronizedBuildContext, ThreadBuildContext
from .values import ValueRegistry


def open_context(
    base_directory: StrPath,
    config: Optional[BuildConfig] = None,
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
    incremental: bool = True,
) -> BuildContext:
    """
    Create the build context for one build invocation.

    Args:
        base_directory: Root of every tracked file
        config: Ready-made config; skips YAML loading when given
        config_path: Explicit YAML config (defaults to {base}/.deltabuild/config.yaml)
        overrides: Highest-priority config values
        incremental: False returns a DefaultBuildContext

    Returns:
        A BuildContext; close it (or use it as a context manager) at build end
    """
    if not incremental:
        return DefaultBuildContext()
    if config is None:
        config = load_config(base_directory, config_path=config_path, overrides=overrides)
    return IncrementalBuildContext(base_directory, config=config)


__all__ = [
    "open_context",
    "BuildContext",
    "DeltaTarget",
    "IncrementalBuildContext",
    "DefaultBuildContext",
    "DelegatingBuildContext",
    "ThreadBuildContext",
    "SynchronizedBuildContext",
    "ContentAwareOutputStream",
    "write_if_changed",
    "Message",
    "MessageRegistry",
    "Severity",
    "SEVERITY_WARNING",
    "SEVERITY_ERROR",
    "ValueRegistry",
]
