"""Initialize config command implementation."""

import sys

import click

from bloxsetup.config import ConfigError, SetupConfig, save_config
from bloxsetup.errors import format_error
from bloxsetup.paths import get_config_path


@click.command(name="init")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Force re-initialization, overwriting existing config",
)
@click.pass_context
def config_init(ctx, force: bool):
    """Initialize or re-initialize the user config file.

    Writes the built-in defaults to ~/.config/bloxsetup (or the file given
    with --config). A .yaml/.yml suffix writes YAML, anything else JSON.

    Use --force to overwrite an existing config (creates backup first).
    """
    config_path = ctx.ensure_object(dict).get("config_path") or get_config_path()

    if config_path.exists() and not force:
        click.echo(f"Config file already exists: {config_path}")
        click.echo("Use --force to re-initialize (creates backup first).")
        sys.exit(1)

    if config_path.exists():
        backup_path = config_path.with_name(config_path.name + ".bak")
        click.echo(f"Backing up existing config to {backup_path}...")
        config_path.replace(backup_path)
        click.echo("✅ Backup created")

    click.echo(f"Initializing config at {config_path}...")
    try:
        save_config(SetupConfig(), config_path)
    except (OSError, ConfigError) as e:
        click.echo(format_error(f"initialization failed: {e}"), err=True)
        sys.exit(1)
    click.echo("✅ Config initialized successfully")
