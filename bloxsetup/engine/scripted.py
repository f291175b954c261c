"""Engine adapter that replays literal event sequences.

Used by the test-suite and by ``bloxsetup run --simulate``. A script maps each
command to the events it produces::

    variables:
      WixBundleLog: /tmp/bundle.log
    detect:
      - {event: DetectPackageComplete, package_id: BloxMCMsi, state: present}
      - {event: DetectComplete}
    plan:
      - {event: PlanComplete, status: 0}
    apply:
      - - {event: ApplyBegin}
        - {event: ApplyComplete, status: 1603}
      - - {event: ApplyBegin}
        - {event: ExecutePackageBegin, package_id: BloxMCMsi}
        - {event: ApplyComplete, status: 0}

A flat list is one sequence replayed on every call; a list of lists supplies
one sequence per successive call, the last one repeating.
"""

from pathlib import Path
from typing import Any, Sequence

from bloxsetup.config import ConfigError, load_config

from .adapter import EngineAdapter
from .models import ActionKind, EngineEvent, parse_event

_COMMANDS = ("detect", "plan", "apply")


def _as_sequences(script: Sequence[Any] | None) -> list[list[Any]]:
    if not script:
        return []
    if all(isinstance(item, (list, tuple)) for item in script):
        return [list(item) for item in script]
    return [list(script)]


class ScriptedEngine(EngineAdapter):
    def __init__(
        self,
        detect: Sequence[Any] | None = None,
        plan: Sequence[Any] | None = None,
        apply: Sequence[Any] | None = None,
        variables: dict[str, str] | None = None,
    ) -> None:
        super().__init__()
        self._scripts: dict[str, list[list[EngineEvent]]] = {
            "detect": _as_sequences(detect),
            "plan": _as_sequences(plan),
            "apply": _as_sequences(apply),
        }
        self._cursor = {name: 0 for name in _COMMANDS}
        self.variables: dict[str, str] = dict(variables or {})
        self.calls: list[tuple] = []
        self.quit_code: int | None = None

    @classmethod
    def from_mapping(cls, data: dict) -> "ScriptedEngine":
        """Build an engine from a parsed simulation script.

        Raises:
            ConfigError: If the script is malformed.
        """
        unknown = sorted(set(data) - set(_COMMANDS) - {"variables"})
        if unknown:
            raise ConfigError(f"Unknown script section(s): {', '.join(unknown)}")

        variables = data.get("variables") or {}
        if not isinstance(variables, dict):
            raise ConfigError("variables must be a mapping")

        scripts = {}
        for command in _COMMANDS:
            sequences = _as_sequences(data.get(command))
            try:
                scripts[command] = [
                    [parse_event(item) for item in sequence] for sequence in sequences
                ]
            except ValueError as e:
                raise ConfigError(f"{command}: {e}") from e

        return cls(
            detect=scripts["detect"],
            plan=scripts["plan"],
            apply=scripts["apply"],
            variables={str(k): str(v) for k, v in variables.items()},
        )

    @classmethod
    def from_file(cls, path: Path) -> "ScriptedEngine":
        return cls.from_mapping(load_config(path))

    def detect(self) -> None:
        self.calls.append(("detect",))
        self._play("detect")

    def plan(self, action: ActionKind) -> None:
        self.calls.append(("plan", action))
        self._play("plan")

    def apply(self, window_handle: int = 0) -> None:
        self.calls.append(("apply", window_handle))
        self._play("apply")

    def quit(self, code: int) -> None:
        self.calls.append(("quit", code))
        self.quit_code = code

    def set_variable(self, name: str, value: str) -> None:
        self.calls.append(("set_variable", name, value))
        self.variables[name] = value

    def get_variable(self, name: str) -> str:
        return self.variables[name]

    def _play(self, command: str) -> None:
        sequences = self._scripts[command]
        if not sequences:
            return
        index = min(self._cursor[command], len(sequences) - 1)
        self._cursor[command] += 1
        for event in sequences[index]:
            self.emit(event)


__all__ = [
    "ScriptedEngine",
]
