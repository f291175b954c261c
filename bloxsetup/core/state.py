"""State held by the orchestrator between events."""

from dataclasses import dataclass, field
from enum import Enum

from bloxsetup.engine.models import ActionKind, PackageState


class InstallState(Enum):
    NOT_INSTALLED = "not_installed"
    INSTALLED = "installed"
    ACTION_IN_PROGRESS = "action_in_progress"


class Phase(Enum):
    IDLE = "idle"
    DETECTING = "detecting"
    PLANNING = "planning"
    APPLYING = "applying"
    CLEANING_UP = "cleaning_up"


@dataclass(frozen=True)
class PackageDetection:
    package_id: str
    state: PackageState

    @property
    def registered(self) -> bool:
        return self.state.is_registered


@dataclass(frozen=True)
class ActionResult:
    action: ActionKind
    status: str
    error_text: str = ""
    support_code: str = ""
    exit_code: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == "success"


@dataclass
class StateStore:
    """Mutable setup state.

    Only the orchestrator's event handler writes these fields. ``install_state``
    is the last value derived from filesystem evidence; it is recomputed at
    DetectComplete and ApplyComplete only.
    """
    phase: Phase = Phase.IDLE
    install_state: InstallState = InstallState.NOT_INSTALLED
    action: ActionKind = ActionKind.INSTALL
    last_error: str = ""
    support_code: str = ""
    exit_code: int = 0
    result: ActionResult | None = None
    had_execute_package: bool = False
    can_launch: bool = False
    progress: int = 0
    bundle_log_path: str = ""
    package_detection: PackageDetection | None = None
    shutdown_requested: bool = False
    history: list[ActionResult] = field(default_factory=list)

    @property
    def is_idle(self) -> bool:
        return self.phase == Phase.IDLE

    @property
    def installed(self) -> bool:
        return self.install_state == InstallState.INSTALLED

    @property
    def current_install_state(self) -> InstallState:
        if self.phase != Phase.IDLE:
            return InstallState.ACTION_IN_PROGRESS
        return self.install_state

    def begin_action(self, action: ActionKind) -> None:
        self.action = action
        self.last_error = ""
        self.support_code = ""
        self.result = None
        self.had_execute_package = False
        self.progress = 0
        self.phase = Phase.PLANNING

    def record_result(self, result: ActionResult) -> None:
        self.result = result
        self.history.append(result)
        self.exit_code = result.exit_code


__all__ = [
    "InstallState",
    "Phase",
    "PackageDetection",
    "ActionResult",
    "StateStore",
]
