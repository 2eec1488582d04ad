# deltabuild/cli/__init__.py
"""Command-line interface."""

from .cli import app, main

__all__ = ["app", "main"]
