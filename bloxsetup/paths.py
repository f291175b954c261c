"""Configuration and platform folder helpers for bloxsetup."""

import os
import sys
import tempfile
from pathlib import Path


def get_config_dir() -> Path:
    """Return XDG-compliant config directory: ~/.config/bloxsetup"""
    return Path.home() / ".config" / "bloxsetup"


def get_config_path() -> Path:
    """Return path to user config file.

    Priority:
    1. BLOXSETUP_CONFIG environment variable (if set)
    2. ~/.config/bloxsetup/setup.yaml (if it exists)
    3. ~/.config/bloxsetup/setup.json (default)
    """
    if "BLOXSETUP_CONFIG" in os.environ:
        return Path(os.environ["BLOXSETUP_CONFIG"])

    yaml_path = get_config_dir() / "setup.yaml"
    if yaml_path.exists():
        return yaml_path
    return get_config_dir() / "setup.json"


def _is_windows() -> bool:
    return sys.platform.startswith("win")


def get_data_home() -> Path:
    if "XDG_DATA_HOME" in os.environ:
        return Path(os.environ["XDG_DATA_HOME"])
    return Path.home() / ".local" / "share"


def get_local_app_data() -> Path:
    """Per-user application data root (%LOCALAPPDATA% on Windows)."""
    if _is_windows() and "LOCALAPPDATA" in os.environ:
        return Path(os.environ["LOCALAPPDATA"])
    return get_data_home()


def get_desktop_dir() -> Path:
    return Path.home() / "Desktop"


def get_programs_dir() -> Path:
    """Start-menu programs folder, or the XDG applications dir elsewhere."""
    if _is_windows() and "APPDATA" in os.environ:
        return (
            Path(os.environ["APPDATA"])
            / "Microsoft"
            / "Windows"
            / "Start Menu"
            / "Programs"
        )
    return get_data_home() / "applications"


def get_temp_dir() -> Path:
    return Path(tempfile.gettempdir())
