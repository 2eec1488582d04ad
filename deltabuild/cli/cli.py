# deltabuild/cli/cli.py
"""
deltabuild CLI - inspect and reset persisted build state.

Commands:
    deltabuild status BASEDIR     What changed since the last build (read-only)
    deltabuild messages BASEDIR   Diagnostics recorded by previous builds
    deltabuild values BASEDIR     Keys stored by previous builds
    deltabuild clean BASEDIR      Forget all state; the next build is a clean build
    deltabuild config BASEDIR     Effective configuration
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.markup import escape

from deltabuild import __version__
from deltabuild.config.loader import load_config
from deltabuild.config.schema import BuildConfig
from deltabuild.context.incremental import IncrementalBuildContext
from deltabuild.context.messages import Severity
from deltabuild.core.exceptions import ConfigError
from deltabuild.core.paths import resolve_base
from deltabuild.logging.logger import configure_logging, get_logger
from deltabuild.logging.tags import CLI
from deltabuild.state.schema import BuildState
from deltabuild.state.store import SnapshotStore

from .ui import ui

logger = get_logger(__name__)

app = typer.Typer(
    name="deltabuild",
    help="deltabuild - incremental build state inspection.",
    no_args_is_help=True,
    add_completion=False,
)

BasedirArg = typer.Argument(..., help="Base directory of the build.")
ConfigOpt = typer.Option(None, "--config", "-c", help="Explicit config file.")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Configure logging before any command runs."""
    configure_logging(logging.DEBUG if verbose else logging.WARNING)


def _config(basedir: Path, config_path: Optional[Path]) -> BuildConfig:
    try:
        return load_config(basedir, config_path=config_path)
    except ConfigError as e:
        ui.error(str(e))
        raise typer.Exit(code=2) from e


def _load_state(basedir: Path, config: BuildConfig) -> Optional[BuildState]:
    base = resolve_base(basedir)
    return SnapshotStore(config.resolve_state_dir(base)).load(base)


@app.command("version")
def version() -> None:
    """Show version."""
    ui.print(f"deltabuild version {__version__}")


@app.command("status")
def status(
    basedir: Path = BasedirArg,
    config_path: Optional[Path] = ConfigOpt,
    list_paths: bool = typer.Option(False, "--list", "-l", help="List changed paths."),
) -> None:
    """Show what changed since the last build without recording anything."""
    config = _config(basedir, config_path)
    context = IncrementalBuildContext(basedir, config=config)
    context.discard()

    ui.header("Build state", str(context.base_directory))
    if not context.is_incremental():
        ui.warning("No usable previous build", "next build is a clean build")
    delta = context.delta
    ui.info(f"state: {context.state_path}")
    ui.print(f"added: {len(delta.added)}")
    ui.print(f"modified: {len(delta.modified)}")
    ui.print(f"removed: {len(delta.removed)}")

    if list_paths:
        for label, paths in (("A", delta.added), ("M", delta.modified), ("D", delta.removed)):
            for path in paths:
                ui.print(f"{label} {path}", markup=False)
    logger.debug(f"{CLI} status {context.base_directory}: {delta.summary}")


@app.command("messages")
def messages(
    basedir: Path = BasedirArg,
    config_path: Optional[Path] = ConfigOpt,
) -> None:
    """List diagnostics persisted by previous builds."""
    state = _load_state(basedir, _config(basedir, config_path))
    if state is None or not state.messages:
        ui.info("No messages recorded.")
        return

    table = ui.table("Messages", ["File", "Line", "Col", "Severity", "Message"])
    for file, entries in sorted(state.messages.items()):
        for entry in entries:
            severity = Severity(entry.severity).name if entry.severity in (1, 2) else "?"
            table.add_row(
                escape(file), str(entry.line), str(entry.column), severity, escape(entry.text)
            )
    ui.print(table)


@app.command("values")
def values(
    basedir: Path = BasedirArg,
    config_path: Optional[Path] = ConfigOpt,
) -> None:
    """List value keys persisted by previous builds."""
    state = _load_state(basedir, _config(basedir, config_path))
    if state is None or not state.values:
        ui.info("No values recorded.")
        return
    for key in sorted(state.values):
        ui.print(key, markup=False)


@app.command("clean")
def clean(
    basedir: Path = BasedirArg,
    config_path: Optional[Path] = ConfigOpt,
) -> None:
    """Delete the persisted state so the next build is a clean build."""
    config = _config(basedir, config_path)
    base = resolve_base(basedir)
    if SnapshotStore(config.resolve_state_dir(base)).delete(base):
        ui.success(f"Removed build state for {base}")
    else:
        ui.info(f"No build state for {base}")


@app.command("config")
def show_config(
    basedir: Path = BasedirArg,
    config_path: Optional[Path] = ConfigOpt,
) -> None:
    """Show the effective configuration."""
    config = _config(basedir, config_path)
    data = config.model_dump(mode="json")
    ui.print(yaml.safe_dump({"deltabuild": data}, sort_keys=False).rstrip(), markup=False)


def main() -> None:
    app()


__all__ = ["app", "main"]
