# deltabuild/logging/logger.py
"""
Logging for deltabuild.

Every module logs below the "deltabuild" namespace:
    from deltabuild.logging.logger import get_logger
    logger = get_logger(__name__)

deltabuild is usually embedded in a host build tool. The namespace logger
carries a NullHandler, so a host that never configures logging sees nothing,
and one that does gets deltabuild records through its own handlers.
configure_logging() is for standalone use (the CLI).
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

LOGGER_NAME = "deltabuild"
DEFAULT_FORMAT = "[%(levelname)s] %(name)s - %(message)s"

logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())


def configure_logging(
    level: int = logging.INFO,
    fmt: str = DEFAULT_FORMAT,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Show deltabuild records at `level` and above.

    Installs a stream handler (stderr by default) on the root logger unless it
    already has one. The level is set on the "deltabuild" namespace only, so
    other libraries keep their own verbosity.

    Safe to call multiple times - handler duplication is prevented.

    Returns:
        The "deltabuild" namespace logger
    """
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(handler)

    namespace = logging.getLogger(LOGGER_NAME)
    namespace.setLevel(level)
    return namespace


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module.

    Names outside the package (scripts, "__main__") are placed under the
    namespace so configure_logging() and the NullHandler still apply.
    """
    if name != LOGGER_NAME and not name.startswith(f"{LOGGER_NAME}."):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)
