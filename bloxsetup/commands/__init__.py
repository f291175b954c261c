"""CLI command definitions for bloxsetup."""

from pathlib import Path

import click

from bloxsetup.commands.cleanup import cleanup
from bloxsetup.commands.config import config
from bloxsetup.commands.run import run
from bloxsetup.commands.status import status


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug output for troubleshooting")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Setup config file (JSON or YAML). Defaults to ~/.config/bloxsetup.",
)
@click.version_option(package_name="bloxsetup")
@click.pass_context
def cli(ctx, debug, config_path):
    """Installer control layer for BloxMC Launcher."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = config_path


cli.add_command(run)
cli.add_command(status)
cli.add_command(cleanup)
cli.add_command(config)

__all__ = [
    "cli",
]


if __name__ == "__main__":
    cli()
