"""Status command implementation."""

import json

import click

from bloxsetup import setup_logging
from bloxsetup.commands.utils import load_config_or_exit
from bloxsetup.core import ArtifactLayout, FilesystemProbe


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable output")
@click.pass_context
def status(ctx, as_json: bool):
    """Report whether the product is installed, from files on disk only."""
    setup_logging(ctx.ensure_object(dict).get("debug", False))
    config = load_config_or_exit(ctx)
    probe = FilesystemProbe(ArtifactLayout.from_config(config))

    launcher = probe.resolve_launcher()
    installed = probe.has_installed_artifacts()

    if as_json:
        click.echo(
            json.dumps(
                {
                    "product": config.product_name,
                    "install_root": str(probe.layout.install_root),
                    "launcher": str(launcher) if launcher else None,
                    "installed": installed,
                },
                indent=2,
            )
        )
        return

    click.echo(f"{config.product_name}")
    click.echo(f"  Install root: {probe.layout.install_root}")
    click.echo(f"  Launcher:     {launcher or 'not found'}")
    if installed:
        click.secho("  Installed:    yes", fg="green")
    else:
        click.secho("  Installed:    no", fg="yellow")
