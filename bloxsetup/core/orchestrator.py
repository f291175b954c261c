"""Setup orchestration: Detect, Plan and Apply driven by engine events.

All engine events and user intents are funneled through one asyncio queue.
``Orchestrator.run`` is its only consumer and the only code that touches the
``StateStore`` or calls the UI, so handlers never race each other no matter
which thread the engine delivers on.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable

from bloxsetup.config import SetupConfig
from bloxsetup.engine import (
    ActionKind,
    ApplyBegin,
    ApplyComplete,
    DetectComplete,
    DetectPackageComplete,
    ElevateBegin,
    EngineAdapter,
    EngineError,
    ExecutePackageBegin,
    ExecutePackageComplete,
    ExecuteProgress,
    PlanBegin,
    PlanComplete,
    PlanPackageBegin,
    PlanPackageComplete,
)
from bloxsetup.errors import (
    format_diagnostic_bundle,
    format_error_event,
    format_status_failure,
    generate_support_code,
)
from bloxsetup.execution import copy_to_clipboard, launch_detached, open_path

from .probe import CleanupSummary, FilesystemProbe
from .state import (
    ActionResult,
    InstallState,
    PackageDetection,
    Phase,
    StateStore,
)
from .ui import Intent, UIFacade

LOGICAL_FAILURE_EXIT_CODE = 1

_logging = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Start:
    pass


@dataclass(frozen=True)
class _BestEffortDone:
    label: str
    ok: bool


@dataclass(frozen=True)
class _CleanupDone:
    summary: CleanupSummary


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def _clamp_percent(percent: int) -> int:
    return max(0, min(100, int(percent)))


class Orchestrator:
    def __init__(
        self,
        engine: EngineAdapter,
        ui: UIFacade,
        probe: FilesystemProbe,
        config: SetupConfig,
        window_handle: int = 0,
    ) -> None:
        self._engine = engine
        self._ui = ui
        self._probe = probe
        self._config = config
        self._window_handle = window_handle
        self.state = StateStore()

        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue = asyncio.Queue()
        self._queue.put_nowait(_Start())
        self._background: set[asyncio.Task] = set()

        self._handlers: dict[type, Callable[[Any], None]] = {
            _Start: self._on_start,
            _BestEffortDone: self._on_best_effort_done,
            _CleanupDone: self._on_cleanup_done,
            Intent: self._on_intent,
            DetectPackageComplete: self._on_detect_package_complete,
            DetectComplete: self._on_detect_complete,
            PlanBegin: self._on_plan_begin,
            PlanPackageBegin: self._on_plan_package_begin,
            PlanPackageComplete: self._on_plan_package_complete,
            PlanComplete: self._on_plan_complete,
            ApplyBegin: self._on_apply_begin,
            ExecutePackageBegin: self._on_execute_package_begin,
            ExecutePackageComplete: self._on_execute_package_complete,
            ExecuteProgress: self._on_execute_progress,
            ElevateBegin: self._on_elevate_begin,
            EngineError: self._on_engine_error,
            ApplyComplete: self._on_apply_complete,
        }
        self._intent_handlers: dict[Intent, Callable[[], None]] = {
            Intent.INSTALL: self._request_install,
            Intent.REPAIR: lambda: self._begin_action(ActionKind.REPAIR, "Planning repair..."),
            Intent.UNINSTALL: lambda: self._begin_action(
                ActionKind.UNINSTALL, "Planning uninstall..."
            ),
            Intent.RETRY: self._retry,
            Intent.VIEW_LOGS: self._view_logs,
            Intent.COPY_ERROR: self._copy_error,
            Intent.FINISH: self._finish,
            Intent.CLOSE: self._close,
        }

    @property
    def package_log_path(self) -> Path:
        return self._config.package_log_path

    def post(self, message: Any) -> None:
        """Queue an engine event or intent. Safe to call from any thread."""
        loop = self._loop
        if loop is None or _running_loop() is loop:
            self._queue.put_nowait(message)
        else:
            loop.call_soon_threadsafe(self._queue.put_nowait, message)

    def request(self, intent: Intent) -> None:
        self.post(intent)

    async def run(self) -> int:
        """Process messages until Finish or Close; return the exit code."""
        self._loop = asyncio.get_running_loop()
        self._engine.subscribe(self.post)
        try:
            while not self.state.shutdown_requested:
                message = await self._queue.get()
                try:
                    self._dispatch(message)
                finally:
                    self._queue.task_done()
        finally:
            self._engine.unsubscribe(self.post)

        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        self._engine.quit(self.state.exit_code)
        return self.state.exit_code

    async def wait_until_settled(self) -> None:
        """Wait until every queued message and background task has been handled."""
        while True:
            await self._queue.join()
            if not self._background:
                return
            await asyncio.gather(*self._background, return_exceptions=True)

    def _dispatch(self, message: Any) -> None:
        handler = self._handlers.get(type(message))
        if handler is None:
            _logging.warning(f"Ignoring unknown message: {message!r}")
            return
        handler(message)

    # -- helpers ---------------------------------------------------------

    def _log(self, line: str) -> None:
        _logging.info(line)
        self._ui.append_log(line)

    def _verbose_log(self, line: str) -> None:
        _logging.info(line)
        if self._ui.verbose_logs_enabled:
            self._ui.append_log(line)

    def _unexpected(self, event: Any) -> None:
        _logging.warning(f"Ignoring {type(event).__name__} during {self.state.phase.value}")

    def _spawn(self, label: str, work: Awaitable[bool]) -> None:
        self._track(self._best_effort(label, work))

    def _track(self, work: Awaitable[None]) -> None:
        assert self._loop is not None
        task = self._loop.create_task(work)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _best_effort(self, label: str, work: Awaitable[bool]) -> None:
        try:
            ok = await work
        except Exception as e:
            _logging.debug(f"{label} failed: {e}")
            ok = False
        self.post(_BestEffortDone(label, ok))

    def _fail(self, summary: str, details: str, exit_code: int) -> None:
        state = self.state
        state.support_code = generate_support_code(self._config.support_code_prefix)
        state.last_error = details
        state.phase = Phase.IDLE
        state.record_result(
            ActionResult(
                action=state.action,
                status="failed",
                error_text=details,
                support_code=state.support_code,
                exit_code=exit_code,
            )
        )

        self._ui.set_busy(False)
        self._ui.set_status("Action failed.")
        self._ui.set_detail("Use Retry, View logs, or Copy error.")
        self._ui.show_failure(summary, state.support_code, details)
        self._log(f"{summary} {details}")

    # -- lifecycle -------------------------------------------------------

    def _on_start(self, _: _Start) -> None:
        product = self._config.product_name
        install_root = self._probe.layout.install_root

        self._ui.set_status(f"Checking {product} installation...")
        self._ui.set_detail("Preparing setup engine.")
        self._ui.set_installed(False)
        self._ui.set_busy(True)
        self._ui.set_action_hint(f"Install {product} in {install_root}")
        self._ui.set_install_path(str(install_root))
        self._ui.set_log_path(str(self.package_log_path))
        self._log("UI initialized.")

        try:
            self._engine.set_variable(self._config.log_variable, str(self.package_log_path))
        except Exception as e:
            _logging.debug(f"Could not set {self._config.log_variable}: {e}")

        self._log("Running detection.")
        self.state.phase = Phase.DETECTING
        self._engine.detect()

    def _on_detect_package_complete(self, event: DetectPackageComplete) -> None:
        if self.state.phase != Phase.DETECTING:
            self._unexpected(event)
            return
        if event.package_id.casefold() != self._config.package_id.casefold():
            return
        self.state.package_detection = PackageDetection(event.package_id, event.state)

    def _read_bundle_log_path(self) -> str:
        try:
            return self._engine.get_variable(self._config.bundle_log_variable)
        except Exception as e:
            _logging.debug(f"Could not read {self._config.bundle_log_variable}: {e}")
            return ""

    def _on_detect_complete(self, event: DetectComplete) -> None:
        state = self.state
        if state.phase != Phase.DETECTING:
            self._unexpected(event)
            return
        if event.status != 0:
            self._log(f"Detection returned status {event.status}; using installed files.")

        installed = self._probe.has_installed_artifacts()
        state.install_state = InstallState.INSTALLED if installed else InstallState.NOT_INSTALLED
        state.can_launch = self._probe.resolve_launcher() is not None
        state.bundle_log_path = self._read_bundle_log_path()
        state.phase = Phase.IDLE

        if self.package_log_path.exists() or not state.bundle_log_path:
            self._ui.set_log_path(str(self.package_log_path))
        else:
            self._ui.set_log_path(state.bundle_log_path)

        product = self._config.product_name
        self._ui.set_installed(installed)
        self._ui.set_busy(False)
        self._ui.set_progress(0)
        if installed:
            self._ui.set_status(f"{product} is installed.")
            self._ui.set_detail("Choose Reinstall, Repair, or Uninstall.")
        else:
            self._ui.set_status(f"Ready to install {product}.")
            self._ui.set_detail("Press Install to continue.")
        self._ui.set_action_hint(f"Package log: {self.package_log_path}")
        self._ui.show_ready()

        detection = state.package_detection
        if detection is not None and detection.registered and not installed:
            self._log("Package is registered but launcher files are missing. Treating as not installed.")
        self._log("Detection complete.")

    # -- user intents ----------------------------------------------------

    def _on_intent(self, intent: Intent) -> None:
        self._intent_handlers[intent]()

    def _reject(self, what: str) -> None:
        state = self.state
        _logging.warning(
            f"{what} ignored while {state.phase.value} "
            f"(install state: {state.current_install_state.value})"
        )

    def _retry(self) -> None:
        if self.state.result is None:
            _logging.warning("Retry ignored: no action has completed yet")
            return
        self._begin_action(self.state.action, "Retrying action...")

    def _request_install(self) -> None:
        text = "Planning reinstall..." if self.state.installed else "Planning install..."
        self._begin_action(ActionKind.INSTALL, text)

    def _begin_action(self, action: ActionKind, planning_text: str) -> None:
        if not self.state.is_idle or self.state.shutdown_requested:
            self._reject(f"{action.value.capitalize()} request")
            return

        self.state.begin_action(action)
        self._ui.set_busy(True)
        self._ui.set_progress(0)
        self._ui.set_status(planning_text)
        self._ui.set_detail("Preparing the installation plan.")
        self._ui.show_ready()
        self._log(planning_text.replace("...", "."))
        self._engine.plan(action)

    def _view_logs(self) -> None:
        bundle = Path(self.state.bundle_log_path) if self.state.bundle_log_path else None
        self._spawn("Open log", self._open_logs(self.package_log_path, bundle))

    @staticmethod
    async def _open_logs(primary: Path, bundle: Path | None) -> bool:
        if primary.exists() and await open_path(primary):
            return True
        if bundle is not None and bundle.exists():
            return await open_path(bundle)
        return False

    def _copy_error(self) -> None:
        text = format_diagnostic_bundle(
            self.state.support_code,
            str(self.package_log_path),
            self.state.bundle_log_path,
            self.state.last_error,
        )
        self._spawn("Copy error details", copy_to_clipboard(text))

    def _finish(self) -> None:
        if not self.state.is_idle:
            self._reject("Finish")
            return
        result = self.state.result
        if result is not None and result.succeeded and self._ui.launch_after_finish:
            launcher = self._probe.resolve_launcher()
            if launcher is not None:
                self._spawn("Launch", launch_detached(launcher))
        self._shutdown()

    def _close(self) -> None:
        if not self.state.is_idle:
            self._reject("Close")
            return
        self._shutdown()

    def _shutdown(self) -> None:
        self.state.shutdown_requested = True
        _logging.info(f"Shutting down with exit code {self.state.exit_code}")

    def _on_best_effort_done(self, message: _BestEffortDone) -> None:
        self._log(f"{message.label}: {'done' if message.ok else 'not available'}.")

    # -- plan ------------------------------------------------------------

    def _on_plan_begin(self, event: PlanBegin) -> None:
        self._log(f"Plan begin: packageCount={event.package_count}")

    def _on_plan_package_begin(self, event: PlanPackageBegin) -> None:
        self._verbose_log(f"Plan package begin: {event.package_id}")

    def _on_plan_package_complete(self, event: PlanPackageComplete) -> None:
        self._verbose_log(f"Plan package complete: {event.package_id} status={event.status}")

    def _on_plan_complete(self, event: PlanComplete) -> None:
        if self.state.phase != Phase.PLANNING:
            self._unexpected(event)
            return
        if event.status != 0:
            self._fail(
                "Planning failed.",
                f"Engine plan returned status {event.status}.",
                exit_code=event.status,
            )
            return

        self._log("Plan complete: status=0")
        self.state.phase = Phase.APPLYING
        self._engine.apply(self._window_handle)

    # -- apply -----------------------------------------------------------

    def _on_apply_begin(self, event: ApplyBegin) -> None:
        if self.state.phase != Phase.APPLYING:
            self._unexpected(event)
            return
        self.state.had_execute_package = False
        self._ui.set_busy(True)
        self._ui.set_status("Applying changes...")
        self._ui.set_detail("Running installer actions.")
        self._ui.show_ready()
        self._log("Apply started.")

    def _on_execute_package_begin(self, event: ExecutePackageBegin) -> None:
        if self.state.phase != Phase.APPLYING:
            self._unexpected(event)
            return
        self.state.had_execute_package = True
        self._ui.set_detail(f"Processing package: {event.package_id}")
        self._log(f"Package begin: {event.package_id}")

    def _on_execute_package_complete(self, event: ExecutePackageComplete) -> None:
        self._verbose_log(f"Package complete: {event.package_id} status={event.status}")

    def _on_execute_progress(self, event: ExecuteProgress) -> None:
        if self.state.phase != Phase.APPLYING:
            self._unexpected(event)
            return
        percent = _clamp_percent(event.percent)
        self.state.progress = percent
        self._ui.set_progress(percent)
        self._ui.set_status(f"Working... {percent}%")

    def _on_elevate_begin(self, _: ElevateBegin) -> None:
        self._ui.set_status("Permission required.")
        self._ui.set_detail("Setup requested elevation. Approve the prompt to continue this action.")
        self._log("Elevation prompt requested.")

    def _on_engine_error(self, event: EngineError) -> None:
        self.state.last_error = format_error_event(event.code, event.message)
        self._log(self.state.last_error)

    def _on_apply_complete(self, event: ApplyComplete) -> None:
        state = self.state
        if state.phase != Phase.APPLYING:
            self._unexpected(event)
            return

        product = self._config.product_name
        action = state.action

        if event.status != 0:
            details = state.last_error or format_status_failure(event.status)
            self._fail(f"{product} setup failed.", details, exit_code=event.status)
            return

        if action == ActionKind.UNINSTALL and not state.had_execute_package:
            # Success with nothing executed: a stale registration of another
            # bundle swallowed the uninstall.
            state.install_state = InstallState.INSTALLED
            self._ui.set_installed(True)
            self._fail(
                "Uninstall did not run.",
                f"Another registered {product} setup entry is still linked to this package. "
                f"Remove older '{product} Setup' entries, then retry uninstall.",
                exit_code=LOGICAL_FAILURE_EXIT_CODE,
            )
            return

        if action == ActionKind.UNINSTALL:
            state.phase = Phase.CLEANING_UP
            self._ui.set_detail("Removing leftover files and shortcuts.")
            self._track(self._cleanup())
            return
        self._complete_success()

    async def _cleanup(self) -> None:
        try:
            summary = await asyncio.to_thread(self._probe.cleanup_user_artifacts)
        except Exception as e:
            _logging.debug(f"Cleanup failed: {e}")
            summary = CleanupSummary(failures=[str(self._probe.layout.install_root)])
        self.post(_CleanupDone(summary))

    def _on_cleanup_done(self, message: _CleanupDone) -> None:
        if self.state.phase != Phase.CLEANING_UP:
            self._unexpected(message)
            return
        self._log(message.summary.describe())
        self._complete_success()

    def _complete_success(self) -> None:
        state = self.state
        product = self._config.product_name
        action = state.action
        installed = action != ActionKind.UNINSTALL

        state.install_state = InstallState.INSTALLED if installed else InstallState.NOT_INSTALLED
        state.can_launch = self._probe.resolve_launcher() is not None
        state.phase = Phase.IDLE
        state.progress = 100
        state.record_result(ActionResult(action=action, status="success"))

        self._ui.set_busy(False)
        self._ui.set_installed(installed)
        self._ui.set_progress(100)
        self._ui.set_status(f"{product} {action.value} complete.")
        self._ui.set_detail("Choose Finish to close setup.")
        self._ui.show_success("Setup completed successfully.", installed and state.can_launch)
        self._log("Apply complete: success.")


__all__ = [
    "Orchestrator",
    "LOGICAL_FAILURE_EXIT_CODE",
]
