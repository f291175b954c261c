"""Filesystem evidence of an installation, and best-effort cleanup."""

import logging
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path

from bloxsetup.config import SetupConfig

_logging = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArtifactLayout:
    """Where the product's files and shortcuts live for the current user."""
    install_root: Path
    launcher_names: tuple[str, ...]
    desktop_dir: Path
    programs_dir: Path
    start_menu_folder: str
    shortcut_names: tuple[str, ...]
    uninstall_shortcut_name: str

    @classmethod
    def from_config(cls, config: SetupConfig) -> "ArtifactLayout":
        return cls(
            install_root=config.resolved_install_root(),
            launcher_names=tuple(config.launcher_names),
            desktop_dir=config.resolved_desktop_dir(),
            programs_dir=config.resolved_programs_dir(),
            start_menu_folder=config.start_menu_folder,
            shortcut_names=tuple(config.shortcut_names),
            uninstall_shortcut_name=config.uninstall_shortcut_name,
        )

    @property
    def start_menu_dir(self) -> Path:
        return self.programs_dir / self.start_menu_folder

    def launcher_candidates(self) -> list[Path]:
        return [self.install_root / name for name in self.launcher_names]

    def shortcut_files(self) -> list[Path]:
        files = [self.desktop_dir / name for name in self.shortcut_names]
        files += [self.programs_dir / name for name in self.shortcut_names]
        if self.shortcut_names:
            files.append(self.start_menu_dir / self.shortcut_names[0])
        files.append(self.start_menu_dir / self.uninstall_shortcut_name)
        return files

    def cleanup_dirs(self) -> list[Path]:
        return [self.start_menu_dir, self.install_root]

    def artifacts(self) -> tuple[Path, ...]:
        """Ordered artifact set: launchers, shortcuts, folders."""
        ordered: dict[Path, None] = {}
        for path in self.launcher_candidates() + self.shortcut_files() + self.cleanup_dirs():
            ordered.setdefault(path, None)
        return tuple(ordered)


@dataclass
class CleanupSummary:
    files_removed: int = 0
    dirs_removed: int = 0
    failures: list[str] = field(default_factory=list)

    def describe(self) -> str:
        return (
            "Post-uninstall cleanup complete. "
            f"Files removed: {self.files_removed}, folders removed: {self.dirs_removed}."
        )


class FilesystemProbe:
    def __init__(self, layout: ArtifactLayout) -> None:
        self.layout = layout

    def resolve_launcher(self) -> Path | None:
        """Return the first existing launcher candidate, else None."""
        for candidate in self.layout.launcher_candidates():
            try:
                if candidate.is_file():
                    return candidate
            except OSError as e:
                _logging.debug(f"Cannot stat {candidate}: {e}")
        return None

    def has_installed_artifacts(self) -> bool:
        """True if a launcher exists or the install root is non-empty."""
        if self.resolve_launcher() is not None:
            return True

        root = self.layout.install_root
        try:
            return root.is_dir() and any(root.iterdir())
        except OSError as e:
            _logging.debug(f"Cannot list {root}: {e}")
            return False

    def cleanup_user_artifacts(self) -> CleanupSummary:
        """Delete shortcuts, then the start-menu folder and install root.

        Each deletion is guarded on its own so one failure never stops the
        rest. Only items actually removed are counted.
        """
        summary = CleanupSummary()

        for path in self.layout.shortcut_files():
            try:
                if path.is_file() or path.is_symlink():
                    path.unlink()
                    summary.files_removed += 1
            except OSError as e:
                _logging.debug(f"Could not remove {path}: {e}")
                summary.failures.append(str(path))

        for path in self.layout.cleanup_dirs():
            try:
                if not path.is_dir():
                    continue
            except OSError as e:
                _logging.debug(f"Cannot stat {path}: {e}")
                summary.failures.append(str(path))
                continue
            _remove_tree(path, summary.failures)
            if not path.exists():
                summary.dirs_removed += 1

        _logging.info(summary.describe())
        return summary


def _remove_tree(path: Path, failures: list[str]) -> None:
    """Delete as much of ``path`` as possible, recording what could not go."""

    def record(target, error) -> None:
        _logging.debug(f"Could not remove {target}: {error}")
        failures.append(str(target))

    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=lambda func, target, exc: record(target, exc))
    else:
        shutil.rmtree(path, onerror=lambda func, target, info: record(target, info[1]))


__all__ = [
    "ArtifactLayout",
    "CleanupSummary",
    "FilesystemProbe",
]
