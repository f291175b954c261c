"""Show effective config command implementation."""

import json

import click

from bloxsetup.commands.utils import load_config_or_exit
from bloxsetup.config import dump_config
from bloxsetup.core import ArtifactLayout


@click.command(name="show")
@click.option("--resolved", is_flag=True, help="Also print the resolved folder locations")
@click.pass_context
def config_show(ctx, resolved: bool):
    """Print the effective config as JSON."""
    config = load_config_or_exit(ctx)
    data = dump_config(config)
    if resolved:
        layout = ArtifactLayout.from_config(config)
        data["resolved"] = {
            "install_root": str(layout.install_root),
            "desktop_dir": str(layout.desktop_dir),
            "programs_dir": str(layout.programs_dir),
            "start_menu_dir": str(layout.start_menu_dir),
            "package_log": str(config.package_log_path),
            "crash_log": str(config.crash_log_path),
        }
    click.echo(json.dumps(data, indent=2))
