"""Engine adapter speaking a JSON-lines protocol with an engine child process.

Commands are written to the child's stdin, one JSON object per line::

    {"command": "detect"}
    {"command": "plan", "action": "uninstall"}
    {"command": "apply", "window": 0}
    {"command": "set_variable", "name": "BLOXMCMSILOG", "value": "/tmp/x.log"}
    {"command": "quit", "code": 0}

Events are read from its stdout the same way::

    {"event": "ExecuteProgress", "percent": 40}
    {"event": "Variable", "name": "WixBundleLog", "value": "/tmp/bundle.log"}
"""

import asyncio
import json
import logging

from bloxsetup.errors import EngineUnavailableError

from .adapter import EngineAdapter
from .models import (
    ActionKind,
    ApplyComplete,
    DetectComplete,
    EngineError,
    EngineEvent,
    PlanComplete,
    parse_event,
)

SHUTDOWN_TIMEOUT = 10
LOST_ENGINE_CODE = -1

_logging = logging.getLogger(__name__)

# Terminal event synthesized when the engine disappears mid-command.
_TERMINAL_EVENTS = {
    "detect": DetectComplete,
    "plan": PlanComplete,
    "apply": ApplyComplete,
}


class ProcessEngine(EngineAdapter):
    def __init__(self, command: list[str]) -> None:
        super().__init__()
        self._command = command
        self._process: asyncio.subprocess.Process | None = None
        self._reader: asyncio.Task | None = None
        self._variables: dict[str, str] = {}
        self._pending: str | None = None
        self._quitting = False

    async def start(self) -> None:
        """Spawn the engine and begin reading its events.

        Raises:
            EngineUnavailableError: If the engine process cannot be started.
        """
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self._command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
            )
        except (OSError, ValueError) as e:
            raise EngineUnavailableError(
                f"Cannot start engine {' '.join(self._command)}: {e}"
            ) from e
        _logging.debug(f"Engine started: pid={self._process.pid}")
        self._reader = asyncio.get_running_loop().create_task(self._read_events())

    async def close(self) -> None:
        """Close stdin and wait for the engine to exit, killing it on timeout."""
        process = self._process
        if process is None:
            return
        if process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()
        try:
            await asyncio.wait_for(process.wait(), timeout=SHUTDOWN_TIMEOUT)
        except asyncio.TimeoutError:
            _logging.warning("Engine did not exit in time, killing it")
            process.kill()
            _ = await process.wait()
        if self._reader is not None:
            await self._reader

    def detect(self) -> None:
        self._pending = "detect"
        self._send({"command": "detect"})

    def plan(self, action: ActionKind) -> None:
        self._pending = "plan"
        self._send({"command": "plan", "action": action.value})

    def apply(self, window_handle: int = 0) -> None:
        self._pending = "apply"
        self._send({"command": "apply", "window": window_handle})

    def quit(self, code: int) -> None:
        self._quitting = True
        self._send({"command": "quit", "code": code})

    def set_variable(self, name: str, value: str) -> None:
        self._variables[name] = value
        self._send({"command": "set_variable", "name": name, "value": value})

    def get_variable(self, name: str) -> str:
        return self._variables[name]

    def _send(self, payload: dict) -> None:
        process = self._process
        if process is None or process.stdin is None or process.stdin.is_closing():
            self._fail_pending("Engine is not running.")
            return
        try:
            process.stdin.write((json.dumps(payload) + "\n").encode())
        except (OSError, RuntimeError) as e:
            self._fail_pending(f"Engine command failed: {e}")

    async def _read_events(self) -> None:
        assert self._process is not None and self._process.stdout is not None
        stdout = self._process.stdout
        while True:
            line = await stdout.readline()
            if not line:
                break
            self._handle_line(line)

        if not self._quitting:
            _logging.warning("Engine output closed unexpectedly")
        self._fail_pending("Engine exited unexpectedly.")

    def _handle_line(self, line: bytes) -> None:
        text = line.decode(errors="replace").strip()
        if not text:
            return
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            _logging.warning(f"Ignoring malformed engine line: {text[:200]}")
            return

        if isinstance(payload, dict) and payload.get("event") == "Variable":
            name, value = payload.get("name"), payload.get("value")
            if isinstance(name, str) and isinstance(value, str):
                self._variables[name] = value
            return

        try:
            event = parse_event(payload)
        except ValueError as e:
            _logging.warning(f"Ignoring engine event: {e}")
            return

        self._track(event)
        self.emit(event)

    def _track(self, event: EngineEvent) -> None:
        if self._pending is None:
            return
        if isinstance(event, _TERMINAL_EVENTS[self._pending]):
            self._pending = None

    def _fail_pending(self, reason: str) -> None:
        pending = self._pending
        if pending is None:
            return
        self._pending = None
        _logging.error(f"{reason} (while waiting for {pending})")
        self.emit(EngineError(code=LOST_ENGINE_CODE, message=reason))
        self.emit(_TERMINAL_EVENTS[pending](status=1))


__all__ = [
    "ProcessEngine",
]
