"""Contract between the orchestrator and whatever renders setup to the user."""

from enum import Enum
from typing import Protocol


class Intent(Enum):
    INSTALL = "install"
    REPAIR = "repair"
    UNINSTALL = "uninstall"
    RETRY = "retry"
    VIEW_LOGS = "view_logs"
    COPY_ERROR = "copy_error"
    FINISH = "finish"
    CLOSE = "close"


class UIFacade(Protocol):
    """Setters the orchestrator calls; always invoked from its event loop."""

    @property
    def launch_after_finish(self) -> bool: ...

    @property
    def verbose_logs_enabled(self) -> bool: ...

    def set_status(self, text: str) -> None: ...

    def set_detail(self, text: str) -> None: ...

    def set_action_hint(self, text: str) -> None: ...

    def set_installed(self, installed: bool) -> None: ...

    def set_busy(self, busy: bool) -> None: ...

    def set_progress(self, percent: int) -> None: ...

    def set_install_path(self, path: str) -> None: ...

    def set_log_path(self, path: str) -> None: ...

    def append_log(self, line: str) -> None: ...

    def show_ready(self) -> None: ...

    def show_failure(self, summary: str, support_code: str, details: str) -> None: ...

    def show_success(self, message: str, can_launch: bool) -> None: ...


__all__ = [
    "Intent",
    "UIFacade",
]
