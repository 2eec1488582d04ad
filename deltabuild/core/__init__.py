# deltabuild/core/__init__.py
"""Core building blocks: exceptions and path helpers."""

from .exceptions import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    ConfigValidationError,
    ContextClosedError,
    DeltaBuildError,
    ScannerError,
    StateError,
    StateLoadError,
    StatePersistError,
)

__all__ = [
    "DeltaBuildError",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
    "StateError",
    "StateLoadError",
    "StatePersistError",
    "ContextClosedError",
    "ScannerError",
]
