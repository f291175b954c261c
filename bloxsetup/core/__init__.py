"""Setup core: state store, filesystem probe, UI contract and orchestrator."""

from .orchestrator import LOGICAL_FAILURE_EXIT_CODE, Orchestrator
from .probe import ArtifactLayout, CleanupSummary, FilesystemProbe
from .state import (
    ActionResult,
    InstallState,
    PackageDetection,
    Phase,
    StateStore,
)
from .ui import Intent, UIFacade

__all__ = [
    "Orchestrator",
    "LOGICAL_FAILURE_EXIT_CODE",
    "ArtifactLayout",
    "CleanupSummary",
    "FilesystemProbe",
    "ActionResult",
    "InstallState",
    "PackageDetection",
    "Phase",
    "StateStore",
    "Intent",
    "UIFacade",
]
