"""Data models for the installation engine's commands and events."""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any


class ActionKind(Enum):
    INSTALL = "install"
    REPAIR = "repair"
    UNINSTALL = "uninstall"


class PackageState(Enum):
    UNKNOWN = "unknown"
    OBSOLETE = "obsolete"
    ABSENT = "absent"
    PRESENT = "present"
    SUPERSEDED = "superseded"

    @property
    def is_registered(self) -> bool:
        return self in (PackageState.PRESENT, PackageState.SUPERSEDED, PackageState.OBSOLETE)


@dataclass(frozen=True)
class DetectPackageComplete:
    package_id: str
    state: PackageState


@dataclass(frozen=True)
class DetectComplete:
    status: int = 0


@dataclass(frozen=True)
class PlanBegin:
    package_count: int


@dataclass(frozen=True)
class PlanPackageBegin:
    package_id: str


@dataclass(frozen=True)
class PlanPackageComplete:
    package_id: str
    status: int


@dataclass(frozen=True)
class PlanComplete:
    status: int


@dataclass(frozen=True)
class ApplyBegin:
    pass


@dataclass(frozen=True)
class ExecutePackageBegin:
    package_id: str


@dataclass(frozen=True)
class ExecutePackageComplete:
    package_id: str
    status: int


@dataclass(frozen=True)
class ExecuteProgress:
    percent: int


@dataclass(frozen=True)
class ElevateBegin:
    pass


@dataclass(frozen=True)
class EngineError:
    """The engine's "Error" event. Data, not an exception."""
    code: int
    message: str


@dataclass(frozen=True)
class ApplyComplete:
    status: int


EngineEvent = (
    DetectPackageComplete
    | DetectComplete
    | PlanBegin
    | PlanPackageBegin
    | PlanPackageComplete
    | PlanComplete
    | ApplyBegin
    | ExecutePackageBegin
    | ExecutePackageComplete
    | ExecuteProgress
    | ElevateBegin
    | EngineError
    | ApplyComplete
)

# Wire names used by the line protocol and by simulation scripts.
EVENT_TYPES: dict[str, type] = {
    "DetectPackageComplete": DetectPackageComplete,
    "DetectComplete": DetectComplete,
    "PlanBegin": PlanBegin,
    "PlanPackageBegin": PlanPackageBegin,
    "PlanPackageComplete": PlanPackageComplete,
    "PlanComplete": PlanComplete,
    "ApplyBegin": ApplyBegin,
    "ExecutePackageBegin": ExecutePackageBegin,
    "ExecutePackageComplete": ExecutePackageComplete,
    "ExecuteProgress": ExecuteProgress,
    "ElevateBegin": ElevateBegin,
    "Error": EngineError,
    "ApplyComplete": ApplyComplete,
}

_CAMEL_TO_FIELD = {
    "packageId": "package_id",
    "packageCount": "package_count",
    "errorCode": "code",
    "errorMessage": "message",
    "overallPercentage": "percent",
}


def _check_field(event_name: str, field_name: str, expected: type, value: Any) -> Any:
    """Return ``value`` as ``expected``, or raise ValueError if it is the wrong type.

    Integer fields accept int-valued floats (JSON numbers such as ``40.0``);
    booleans are never integers here.
    """
    if expected is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
    elif expected is str:
        if isinstance(value, str):
            return value
    elif expected is PackageState:
        if isinstance(value, str):
            try:
                return PackageState(value.lower())
            except ValueError:
                return PackageState.UNKNOWN
    else:
        return value
    raise ValueError(
        f"{event_name}.{field_name} must be {expected.__name__}, got {type(value).__name__}"
    )


def parse_event(payload: dict) -> EngineEvent:
    """Build an event from its wire mapping, e.g. ``{"event": "PlanComplete", "status": 0}``.

    Both snake_case and the engine's camelCase field names are accepted.
    Field values are checked against the event's field types.

    Raises:
        ValueError: If the event name is unknown or fields do not match.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"event must be an object, got {type(payload).__name__}")
    name = payload.get("event")
    event_type = EVENT_TYPES.get(name)  # type: ignore[arg-type]
    if event_type is None:
        raise ValueError(f"unknown event: {name!r}")

    kwargs = {}
    for key, value in payload.items():
        if key == "event":
            continue
        kwargs[_CAMEL_TO_FIELD.get(key, key)] = value

    if event_type is DetectPackageComplete:
        kwargs.setdefault("state", "unknown")

    field_types = {f.name: f.type for f in fields(event_type)}
    for key, value in kwargs.items():
        if key in field_types:
            kwargs[key] = _check_field(name, key, field_types[key], value)

    try:
        return event_type(**kwargs)
    except TypeError as e:
        raise ValueError(f"invalid fields for {name}: {e}") from e


__all__ = [
    "ActionKind",
    "PackageState",
    "DetectPackageComplete",
    "DetectComplete",
    "PlanBegin",
    "PlanPackageBegin",
    "PlanPackageComplete",
    "PlanComplete",
    "ApplyBegin",
    "ExecutePackageBegin",
    "ExecutePackageComplete",
    "ExecuteProgress",
    "ElevateBegin",
    "EngineError",
    "ApplyComplete",
    "EngineEvent",
    "EVENT_TYPES",
    "parse_event",
]
