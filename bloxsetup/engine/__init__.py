"""Engine adapters: typed commands and the engine's event stream."""

from .adapter import EngineAdapter, EventListener
from .models import (
    ActionKind,
    ApplyBegin,
    ApplyComplete,
    DetectComplete,
    DetectPackageComplete,
    ElevateBegin,
    EngineError,
    EngineEvent,
    EVENT_TYPES,
    ExecutePackageBegin,
    ExecutePackageComplete,
    ExecuteProgress,
    PackageState,
    PlanBegin,
    PlanComplete,
    PlanPackageBegin,
    PlanPackageComplete,
    parse_event,
)
from .process import ProcessEngine
from .scripted import ScriptedEngine

__all__ = [
    "EngineAdapter",
    "EventListener",
    "ProcessEngine",
    "ScriptedEngine",
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
    "EngineEvent",
    "EVENT_TYPES",
    "parse_event",
]
