"""Pytest fixtures and utilities for bloxsetup tests."""

import asyncio
import logging
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

from bloxsetup.config import SetupConfig
from bloxsetup.core import ArtifactLayout, FilesystemProbe, Intent, Orchestrator
from bloxsetup.engine import (
    DetectComplete,
    DetectPackageComplete,
    PackageState,
    ScriptedEngine,
)

DRIVE_TIMEOUT = 5


class RecordingUI:
    """UI façade that records every call in order."""

    def __init__(self, launch_after_finish: bool = False, verbose: bool = False):
        self.launch_after_finish = launch_after_finish
        self.verbose_logs_enabled = verbose
        self.calls: list[tuple] = []

    def _record(self, *call):
        self.calls.append(call)

    def set_status(self, text):
        self._record("set_status", text)

    def set_detail(self, text):
        self._record("set_detail", text)

    def set_action_hint(self, text):
        self._record("set_action_hint", text)

    def set_installed(self, installed):
        self._record("set_installed", installed)

    def set_busy(self, busy):
        self._record("set_busy", busy)

    def set_progress(self, percent):
        self._record("set_progress", percent)

    def set_install_path(self, path):
        self._record("set_install_path", path)

    def set_log_path(self, path):
        self._record("set_log_path", path)

    def append_log(self, line):
        self._record("append_log", line)

    def show_ready(self):
        self._record("show_ready")

    def show_failure(self, summary, support_code, details):
        self._record("show_failure", summary, support_code, details)

    def show_success(self, message, can_launch):
        self._record("show_success", message, can_launch)

    def named(self, name: str) -> list[tuple]:
        return [call[1:] for call in self.calls if call[0] == name]

    def last(self, name: str):
        matches = self.named(name)
        return matches[-1] if matches else None

    @property
    def log_lines(self) -> list[str]:
        return [args[0] for args in self.named("append_log")]


@pytest.fixture
def setup_config(tmp_path: Path) -> SetupConfig:
    """Config whose every folder lives under tmp_path."""
    return SetupConfig(
        install_root=str(tmp_path / "LocalAppData" / "BloxMC"),
        desktop_dir=str(tmp_path / "Desktop"),
        programs_dir=str(tmp_path / "Programs"),
        temp_dir=str(tmp_path / "Temp"),
    )


@pytest.fixture
def layout(setup_config: SetupConfig) -> ArtifactLayout:
    return ArtifactLayout.from_config(setup_config)


@pytest.fixture
def probe(layout: ArtifactLayout) -> FilesystemProbe:
    return FilesystemProbe(layout)


@pytest.fixture
def installed_launcher(layout: ArtifactLayout) -> Path:
    """Create the primary launcher executable inside the install root."""
    launcher = layout.launcher_candidates()[0]
    launcher.parent.mkdir(parents=True, exist_ok=True)
    launcher.write_bytes(b"MZ")
    return launcher


@pytest.fixture
def ui() -> RecordingUI:
    return RecordingUI()


def detect_events(state: PackageState = PackageState.ABSENT) -> list:
    return [
        DetectPackageComplete(package_id="BloxMCMsi", state=state),
        DetectComplete(),
    ]


@pytest.fixture
def make_orchestrator(setup_config, probe, ui):
    """Factory wiring a scripted engine to an orchestrator."""

    def _create(engine: ScriptedEngine, **kwargs) -> Orchestrator:
        return Orchestrator(engine, kwargs.get("ui", ui), probe, setup_config)

    return _create


class Driver:
    """Runs an orchestrator on the test's event loop, one intent at a time."""

    def __init__(self, orchestrator: Orchestrator):
        self.orchestrator = orchestrator
        self.task: asyncio.Task | None = None

    async def start(self) -> "Driver":
        self.task = asyncio.get_running_loop().create_task(self.orchestrator.run())
        await self.settle()
        return self

    async def settle(self) -> None:
        await asyncio.wait_for(self.orchestrator.wait_until_settled(), DRIVE_TIMEOUT)

    async def send(self, *intents: Intent) -> None:
        for intent in intents:
            self.orchestrator.request(intent)
            await self.settle()

    async def finish(self, intent: Intent = Intent.CLOSE) -> int:
        """Request shutdown and return the exit code from run()."""
        assert self.task is not None
        self.orchestrator.request(intent)
        return await asyncio.wait_for(self.task, DRIVE_TIMEOUT)


@pytest.fixture
def no_side_effects() -> Generator[dict, None, None]:
    """Replace best-effort OS side effects with recording fakes."""
    calls: dict[str, list] = {"open": [], "copy": [], "launch": []}

    async def fake_open(path):
        calls["open"].append(path)
        return True

    async def fake_copy(text):
        calls["copy"].append(text)
        return True

    async def fake_launch(path):
        calls["launch"].append(path)
        return True

    with patch("bloxsetup.core.orchestrator.open_path", fake_open), patch(
        "bloxsetup.core.orchestrator.copy_to_clipboard", fake_copy
    ), patch("bloxsetup.core.orchestrator.launch_detached", fake_launch):
        yield calls


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Drop handlers installed by setup_logging so each test starts clean."""
    yield
    logger = logging.getLogger("bloxsetup")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    if hasattr(logger, "_bloxsetup_configured"):
        delattr(logger, "_bloxsetup_configured")
