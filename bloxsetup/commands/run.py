"""Run command implementation: the setup session itself."""

import asyncio
import logging
import shlex
import sys
from pathlib import Path

import click

from bloxsetup import setup_logging
from bloxsetup.commands.utils import (
    EXIT_CONFIG_ERROR,
    EXIT_CRASH,
    EXIT_ENGINE_UNAVAILABLE,
    load_config_or_exit,
    write_crash_log,
)
from bloxsetup.config import ConfigError, SetupConfig
from bloxsetup.core import ArtifactLayout, FilesystemProbe, Intent, Orchestrator
from bloxsetup.engine import EngineAdapter, ProcessEngine, ScriptedEngine
from bloxsetup.errors import EngineUnavailableError, format_error, format_suggestion
from bloxsetup.tui import ConsoleUI

_logging = logging.getLogger(__name__)

_ACTIONS = {
    "install": Intent.INSTALL,
    "repair": Intent.REPAIR,
    "uninstall": Intent.UNINSTALL,
}


@click.command()
@click.option("--engine", "engine_cmd", help="Engine command line speaking the JSON-lines protocol")
@click.option(
    "--simulate",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Replay a scripted engine from a YAML/JSON file instead of a real engine",
)
@click.option(
    "--action",
    type=click.Choice(sorted(_ACTIONS)),
    help="Run this action without prompting, then finish or close",
)
@click.option("--no-launch", is_flag=True, help="Do not start the launcher after a successful install")
@click.option("--verbose", "-v", is_flag=True, help="Show the detailed setup log")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write bloxsetup's own log to this file",
)
@click.pass_context
def run(
    ctx,
    engine_cmd: str | None,
    simulate: Path | None,
    action: str | None,
    no_launch: bool,
    verbose: bool,
    log_file: Path | None,
):
    """Detect the installation, then install, repair or uninstall."""
    debug = ctx.ensure_object(dict).get("debug", False)
    setup_logging(debug, log_file)

    if engine_cmd and simulate:
        raise click.BadOptionUsage("--simulate", "--engine and --simulate are mutually exclusive")

    config = load_config_or_exit(ctx)

    try:
        engine = build_engine(config, engine_cmd, simulate)
    except ConfigError as e:
        click.echo(format_error(f"invalid simulation script: {e}"), err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    if engine is None:
        click.echo(
            format_suggestion(
                "no engine configured",
                "pass --engine or --simulate, or set engine_command in the config",
            ),
            err=True,
        )
        sys.exit(EXIT_ENGINE_UNAVAILABLE)

    ui = ConsoleUI(
        config.product_name,
        interactive=action is None and sys.stdin.isatty(),
        auto_action=_ACTIONS.get(action),
        launch_after_finish=not no_launch,
        verbose=verbose,
    )

    try:
        exit_code = asyncio.run(run_setup(config, engine, ui))
    except EngineUnavailableError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(EXIT_ENGINE_UNAVAILABLE)
    except Exception as e:
        _logging.exception("Setup crashed")
        crash_log = config.crash_log_path
        if write_crash_log(crash_log, e):
            click.echo(format_error(f"setup hit an unexpected error. Log: {crash_log}"), err=True)
        else:
            click.echo(format_error(f"setup hit an unexpected error: {e}"), err=True)
        sys.exit(EXIT_CRASH)

    sys.exit(exit_code)


def build_engine(
    config: SetupConfig, engine_cmd: str | None, simulate: Path | None
) -> EngineAdapter | None:
    """Pick the engine adapter from the command line, falling back to config."""
    if simulate is not None:
        return ScriptedEngine.from_file(simulate)
    if engine_cmd:
        return ProcessEngine(shlex.split(engine_cmd))
    if config.engine_command:
        return ProcessEngine(list(config.engine_command))
    return None


async def run_setup(config: SetupConfig, engine: EngineAdapter, ui: ConsoleUI) -> int:
    if isinstance(engine, ProcessEngine):
        await engine.start()

    probe = FilesystemProbe(ArtifactLayout.from_config(config))
    orchestrator = Orchestrator(engine, ui, probe, config)
    ui.bind(orchestrator.request)
    try:
        return await orchestrator.run()
    finally:
        await ui.wait_closed()
        if isinstance(engine, ProcessEngine):
            await engine.close()
