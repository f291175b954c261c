"""Shared helpers for commands."""

import sys
import traceback
from pathlib import Path

import click

from bloxsetup.config import ConfigError, SetupConfig, load_setup_config
from bloxsetup.errors import format_error

# Exit codes
EXIT_CRASH = 1
EXIT_CONFIG_ERROR = 4
EXIT_ENGINE_UNAVAILABLE = 5


def load_config_or_exit(ctx: click.Context) -> SetupConfig:
    """Load the setup config named on the command line, exiting on errors."""
    try:
        return load_setup_config(ctx.ensure_object(dict).get("config_path"))
    except ConfigError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(EXIT_CONFIG_ERROR)


def write_crash_log(path: Path, error: BaseException) -> bool:
    """Best-effort dump of an unexpected exception for support."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            "".join(traceback.format_exception(type(error), error, error.__traceback__)),
            encoding="utf-8",
        )
    except OSError:
        return False
    return True
