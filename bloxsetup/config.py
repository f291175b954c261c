"""Setup configuration loading and validation."""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

import yaml

from bloxsetup.paths import (
    get_config_path,
    get_desktop_dir,
    get_local_app_data,
    get_programs_dir,
    get_temp_dir,
)


class ConfigError(Exception):
    """Raised when config loading or parsing fails.

    Messages carry the offending field path (e.g. ``launcher_names[2]``)
    so users can find the problem in their file.
    """
    pass


def _default_launcher_names() -> list[str]:
    return [
        "BloxMCLauncher.exe",
        "BloxMC Launcher.exe",
        "BloxMCLauncher.jar",
        "BloxMC Launcher.jar",
    ]


def _default_shortcut_names() -> list[str]:
    return ["BloxMC Launcher.lnk", "BloxMCLauncher.lnk"]


@dataclass
class SetupConfig:
    """Product identity and filesystem layout for one installer bundle."""
    product_name: str = "BloxMC Launcher"
    package_id: str = "BloxMCMsi"
    install_folder: str = "BloxMC"
    launcher_names: list[str] = field(default_factory=_default_launcher_names)
    shortcut_names: list[str] = field(default_factory=_default_shortcut_names)
    start_menu_folder: str = "BloxMC Launcher"
    uninstall_shortcut_name: str = "Uninstall BloxMC Launcher.lnk"
    support_code_prefix: str = "BLX"
    package_log_name: str = "BloxMC-Install.log"
    log_variable: str = "BLOXMCMSILOG"
    bundle_log_variable: str = "WixBundleLog"
    crash_log_name: str = "BloxMC-Installer-Crash.log"
    install_root: str | None = None
    desktop_dir: str | None = None
    programs_dir: str | None = None
    temp_dir: str | None = None
    engine_command: list[str] | None = None

    def __post_init__(self):
        for name in (
            "product_name",
            "package_id",
            "install_folder",
            "start_menu_folder",
            "uninstall_shortcut_name",
            "support_code_prefix",
            "package_log_name",
            "log_variable",
            "bundle_log_variable",
            "crash_log_name",
        ):
            value = getattr(self, name)
            if not value or not isinstance(value, str):
                raise ValueError(f"{name} must be a non-empty string")

        if not self.launcher_names:
            raise ValueError("launcher_names must list at least one executable")
        if self.engine_command is not None and not self.engine_command:
            raise ValueError("engine_command must not be empty")

    def resolved_install_root(self) -> Path:
        if self.install_root:
            return Path(self.install_root).expanduser()
        return get_local_app_data() / self.install_folder

    def resolved_desktop_dir(self) -> Path:
        if self.desktop_dir:
            return Path(self.desktop_dir).expanduser()
        return get_desktop_dir()

    def resolved_programs_dir(self) -> Path:
        if self.programs_dir:
            return Path(self.programs_dir).expanduser()
        return get_programs_dir()

    def resolved_temp_dir(self) -> Path:
        if self.temp_dir:
            return Path(self.temp_dir).expanduser()
        return get_temp_dir()

    @property
    def package_log_path(self) -> Path:
        return self.resolved_temp_dir() / self.package_log_name

    @property
    def crash_log_path(self) -> Path:
        return self.resolved_temp_dir() / self.crash_log_name


_LIST_FIELDS = ("launcher_names", "shortcut_names")
_OPTIONAL_STR_FIELDS = ("install_root", "desktop_dir", "programs_dir", "temp_dir")


def validate_config(data: dict) -> SetupConfig:
    """Validate and convert a raw dict to a SetupConfig.

    Unknown keys are rejected so typos do not silently fall back to defaults.

    Raises:
        ConfigError: If validation fails, naming the offending field.
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping, got {type(data).__name__}")

    known = {f.name for f in fields(SetupConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown config field(s): {', '.join(unknown)}")

    for name, value in data.items():
        if name in _LIST_FIELDS:
            if not isinstance(value, list):
                raise ConfigError(f"{name} must be a list, got {type(value).__name__}")
            for i, item in enumerate(value):
                if not isinstance(item, str) or not item.strip():
                    raise ConfigError(f"{name}[{i}] must be a non-empty string")
        elif name == "engine_command":
            if value is None:
                continue
            if not isinstance(value, list) or not all(
                isinstance(part, str) for part in value
            ):
                raise ConfigError("engine_command must be a list of strings or null")
        elif name in _OPTIONAL_STR_FIELDS:
            if value is not None and not isinstance(value, str):
                raise ConfigError(
                    f"{name} must be a string or null, got {type(value).__name__}"
                )
        elif not isinstance(value, str):
            raise ConfigError(f"{name} must be a string, got {type(value).__name__}")

    try:
        return SetupConfig(**data)
    except ValueError as e:
        raise ConfigError(str(e)) from e


def load_config(path: Path) -> dict:
    """Read a JSON or YAML config file into a dict.

    YAML is used for ``.yaml``/``.yml`` files, JSON for everything else.
    An empty YAML file yields an empty dict.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}")
    except PermissionError:
        raise ConfigError(f"Permission denied reading config file: {path}")
    except UnicodeDecodeError:
        raise ConfigError(f"Config file is not valid UTF-8: {path}")
    except OSError as e:
        raise ConfigError(f"Error reading config file {path}: {e}")

    if path.suffix.lower() in (".yaml", ".yml"):
        try:
            result = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Config syntax error in {path}: {e}") from e
        if result is None:
            result = {}
    else:
        try:
            result = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(
                f"Config syntax error at line {e.lineno}, col {e.colno}: {e.msg}"
            ) from e

    if not isinstance(result, dict):
        raise ConfigError(f"Config must be a mapping, got {type(result).__name__}")
    return result


def load_setup_config(path: Path | None = None) -> SetupConfig:
    """Load the effective setup config.

    With no explicit path the user config location is used; a missing
    user config means built-in defaults. An explicit path must exist.
    """
    if path is None:
        path = get_config_path()
        if not path.exists():
            return SetupConfig()
    return validate_config(load_config(path))


def dump_config(config: SetupConfig) -> dict:
    return asdict(config)


def save_config(config: SetupConfig, path: Path) -> None:
    """Write config as YAML or JSON depending on the file suffix."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = dump_config(config)
    if path.suffix.lower() in (".yaml", ".yml"):
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    else:
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


__all__ = [
    "ConfigError",
    "SetupConfig",
    "validate_config",
    "load_config",
    "load_setup_config",
    "dump_config",
    "save_config",
]
