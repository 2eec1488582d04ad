# deltabuild/core/exceptions.py
"""
All exceptions raised by deltabuild.

Hierarchy:
    DeltaBuildError
    ├── ConfigError - Configuration failures
    │   ├── ConfigNotFoundError - Explicit config file missing
    │   ├── ConfigParseError - Invalid YAML
    │   └── ConfigValidationError - Config doesn't match schema
    ├── StateError - Persisted state failures
    │   ├── StateLoadError - State unit unreadable (never escapes the store)
    │   └── StatePersistError - State unit could not be written
    ├── ContextClosedError - Build context used after close()
    └── ScannerError - Scanner used incorrectly

Output write failures are plain OSError: callers of new_file_output_stream()
handle them like any other file write.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class DeltaBuildError(Exception):
    """Base error for deltabuild."""

    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(DeltaBuildError):
    """Base error for configuration issues."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        if path:
            message = f"{message} (file: {path})"
        super().__init__(message)


class ConfigNotFoundError(ConfigError):
    """Raised when an explicitly requested config file doesn't exist."""

    pass


class ConfigParseError(ConfigError):
    """Raised when YAML parsing fails."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when config doesn't match schema."""

    pass


# =============================================================================
# State Errors
# =============================================================================


class StateError(DeltaBuildError):
    """Base error for the persisted state unit."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        if path:
            message = f"{message} (file: {path})"
        super().__init__(message)


class StateLoadError(StateError):
    """State unit exists but cannot be used."""

    pass


class StatePersistError(StateError):
    """State unit could not be written. The previous unit is left intact."""

    pass


# =============================================================================
# Usage Errors
# =============================================================================


class ContextClosedError(DeltaBuildError):
    """A build context was used after it was closed."""

    pass


class ScannerError(DeltaBuildError):
    """Scanner results were requested before scan() ran."""

    pass
