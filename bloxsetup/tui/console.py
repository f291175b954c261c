"""Terminal rendering of setup progress and the interactive action menus.

Rendering goes through click; menus use questionary (prompt_toolkit) and run
as tasks on the orchestrator's event loop, so answers come back as intents
through the same queue as engine events.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable

import click
import questionary
from prompt_toolkit.styles import Style

from bloxsetup.core.ui import Intent

PROGRESS_STEP = 10

_logging = logging.getLogger(__name__)

_STYLE = Style(
    [
        ("qmark", "fg:ansicyan bold"),
        ("pointer", "fg:ansicyan bold"),
        ("highlighted", "fg:ansicyan bold"),
        ("answer", "fg:ansigreen"),
    ]
)


def format_progress_bar(percent: int, width: int = 30) -> str:
    """Render a fixed-width text progress bar.

    Examples:
        >>> format_progress_bar(50, width=10)
        '[#####.....] 50%'
    """
    filled = width * percent // 100
    return f"[{'#' * filled}{'.' * (width - filled)}] {percent}%"


class ConsoleUI:
    """UI façade for terminals.

    In interactive mode the user picks actions from menus. Otherwise the
    UI drives itself: it requests ``auto_action`` once detection is done,
    finishes after success and closes after a failure.
    """

    def __init__(
        self,
        product_name: str,
        interactive: bool = True,
        auto_action: Intent | None = None,
        launch_after_finish: bool = True,
        verbose: bool = False,
    ) -> None:
        self._product = product_name
        self._interactive = interactive
        self._auto_action = auto_action
        self._auto_sent = False
        self._launch_after_finish = launch_after_finish
        self._verbose = verbose
        self._requester: Callable[[Intent], None] | None = None

        self._busy = False
        self._installed = False
        self._can_launch = False
        self._status = ""
        self._install_path = ""
        self._log_path = ""
        self._rendered_progress = 0
        self._prompt_task: asyncio.Task | None = None

    def bind(self, requester: Callable[[Intent], None]) -> None:
        self._requester = requester

    def _request(self, intent: Intent) -> None:
        if self._requester is None:
            _logging.warning(f"No orchestrator bound, dropping {intent.value}")
            return
        self._requester(intent)

    @property
    def launch_after_finish(self) -> bool:
        return self._launch_after_finish

    @property
    def verbose_logs_enabled(self) -> bool:
        return self._verbose

    # -- setters ---------------------------------------------------------

    def set_status(self, text: str) -> None:
        if text != self._status:
            self._status = text
            click.secho(text, bold=True)

    def set_detail(self, text: str) -> None:
        click.echo(f"  {text}")

    def set_action_hint(self, text: str) -> None:
        click.secho(f"  {text}", dim=True)

    def set_installed(self, installed: bool) -> None:
        self._installed = installed

    def set_busy(self, busy: bool) -> None:
        self._busy = busy

    def set_progress(self, percent: int) -> None:
        if percent == self._rendered_progress:
            return
        if percent < self._rendered_progress or percent == 100 or (
            percent - self._rendered_progress >= PROGRESS_STEP
        ):
            self._rendered_progress = percent
            if percent:
                click.echo(f"  {format_progress_bar(percent)}")

    def set_install_path(self, path: str) -> None:
        if path != self._install_path:
            self._install_path = path
            click.secho(f"  Install path: {path}", dim=True)

    def set_log_path(self, path: str) -> None:
        if path != self._log_path:
            self._log_path = path
            click.secho(f"  Log: {path}", dim=True)

    def append_log(self, line: str) -> None:
        if self._verbose:
            timestamp = datetime.now().strftime("%H:%M:%S")
            click.secho(f"[{timestamp}] {line}", dim=True)

    # -- outcome screens -------------------------------------------------

    def show_ready(self) -> None:
        if not self._busy:
            self._prompt("ready")

    def show_failure(self, summary: str, support_code: str, details: str) -> None:
        click.secho(f"✗ {summary}", fg="red", bold=True)
        click.echo(f"  {details}")
        click.secho(f"  Support code: {support_code}", fg="yellow")
        self._prompt("failure")

    def show_success(self, message: str, can_launch: bool) -> None:
        click.secho(f"✓ {message}", fg="green", bold=True)
        self._can_launch = can_launch
        if not can_launch:
            self._launch_after_finish = False
        self._prompt("success")

    def _prompt(self, screen: str) -> None:
        if not self._interactive:
            self._auto_respond(screen)
            return
        if self._prompt_task is not None and not self._prompt_task.done():
            self._prompt_task.cancel()
        self._prompt_task = asyncio.get_running_loop().create_task(self._ask(screen))

    def _auto_respond(self, screen: str) -> None:
        if screen == "success":
            self._request(Intent.FINISH)
            return
        if screen == "failure" or self._auto_sent or self._auto_action is None:
            self._request(Intent.CLOSE)
            return

        self._auto_sent = True
        if self._auto_action in (Intent.REPAIR, Intent.UNINSTALL) and not self._installed:
            click.echo(f"{self._product} is not installed; nothing to {self._auto_action.value}.")
            self._request(Intent.CLOSE)
            return
        self._request(self._auto_action)

    async def _ask(self, screen: str) -> None:
        if screen == "success":
            await self._ask_finish()
            return

        while True:
            choices = self._menu(screen)
            answer = await questionary.select(
                "What would you like to do?", choices=choices, style=_STYLE
            ).ask_async()
            if answer is None:
                self._request(Intent.CLOSE)
                return

            if answer == Intent.UNINSTALL:
                confirmed = await questionary.confirm(
                    f"Uninstall {self._product}? This removes the launcher, its files "
                    "and its shortcuts from this user profile.",
                    default=False,
                    style=_STYLE,
                ).ask_async()
                if not confirmed:
                    continue

            self._request(answer)
            if answer not in (Intent.VIEW_LOGS, Intent.COPY_ERROR):
                return

    async def _ask_finish(self) -> None:
        if self._can_launch:
            answer = await questionary.confirm(
                f"Launch {self._product} now?",
                default=self._launch_after_finish,
                style=_STYLE,
            ).ask_async()
            self._launch_after_finish = bool(answer)
        self._request(Intent.FINISH)

    def _menu(self, screen: str) -> list[questionary.Choice]:
        if screen == "failure":
            return [
                questionary.Choice("Retry", value=Intent.RETRY),
                questionary.Choice("View logs", value=Intent.VIEW_LOGS),
                questionary.Choice("Copy error", value=Intent.COPY_ERROR),
                questionary.Choice("Close", value=Intent.CLOSE),
            ]

        if self._installed:
            choices = [
                questionary.Choice("Reinstall", value=Intent.INSTALL),
                questionary.Choice("Repair", value=Intent.REPAIR),
                questionary.Choice("Uninstall", value=Intent.UNINSTALL),
            ]
        else:
            choices = [questionary.Choice("Install", value=Intent.INSTALL)]
        choices.append(questionary.Choice("View logs", value=Intent.VIEW_LOGS))
        choices.append(questionary.Choice("Close", value=Intent.CLOSE))
        return choices

    async def wait_closed(self) -> None:
        """Wait for an outstanding menu to finish."""
        if self._prompt_task is not None:
            await asyncio.gather(self._prompt_task, return_exceptions=True)
