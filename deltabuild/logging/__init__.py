# deltabuild/logging/__init__.py
"""Logging helpers shared by every deltabuild module."""

from .logger import LOGGER_NAME, configure_logging, get_logger

__all__ = ["LOGGER_NAME", "configure_logging", "get_logger"]
