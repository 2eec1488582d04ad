# deltabuild/__init__.py
"""
deltabuild - incremental build context.

Tells build steps what changed since the previous build, remembers values and
diagnostics between builds, and avoids rewriting outputs whose content did not
change.

Usage:
    from deltabuild import open_context

    with open_context("/path/to/project") as context:
        scanner = context.new_scanner(Path("/path/to/project/src"))
        scanner.scan()
        for relpath in scanner.included_files:
            ...
"""

from deltabuild.context import (
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    BuildContext,
    DefaultBuildContext,
    IncrementalBuildContext,
    Message,
    Severity,
    SynchronizedBuildContext,
    ThreadBuildContext,
    open_context,
)
from deltabuild.core.exceptions import DeltaBuildError, StatePersistError

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "open_context",
    "BuildContext",
    "IncrementalBuildContext",
    "DefaultBuildContext",
    "ThreadBuildContext",
    "SynchronizedBuildContext",
    "Message",
    "Severity",
    "SEVERITY_WARNING",
    "SEVERITY_ERROR",
    "DeltaBuildError",
    "StatePersistError",
]
