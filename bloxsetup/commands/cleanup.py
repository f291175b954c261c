"""Cleanup command implementation."""

import click

from bloxsetup import setup_logging
from bloxsetup.commands.utils import load_config_or_exit
from bloxsetup.core import ArtifactLayout, FilesystemProbe


@click.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def cleanup(ctx, yes: bool):
    """Remove leftover launcher files and shortcuts for this user.

    This is the same best-effort cleanup that runs after a successful
    uninstall; it does not touch the engine's package registration.
    """
    setup_logging(ctx.ensure_object(dict).get("debug", False))
    config = load_config_or_exit(ctx)
    probe = FilesystemProbe(ArtifactLayout.from_config(config))

    present = [path for path in probe.layout.artifacts() if path.exists()]
    if not present:
        click.echo("Nothing to clean up.")
        return

    if not yes:
        click.echo("This will delete:")
        for path in present:
            click.echo(f"  {path}")
        if not click.confirm("Continue?", default=False):
            click.echo("Aborted.")
            return

    summary = probe.cleanup_user_artifacts()
    click.echo(summary.describe())
    for path in summary.failures:
        click.secho(f"  Could not remove {path}", fg="yellow")
