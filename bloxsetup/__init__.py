"""bloxsetup: control layer for the BloxMC Launcher installer."""

import logging
from pathlib import Path

from bloxsetup.config import (
    ConfigError,
    SetupConfig,
    load_setup_config,
    validate_config,
)
from bloxsetup.errors import (
    EngineUnavailableError,
    SetupError,
    format_error,
    format_suggestion,
)
from bloxsetup.paths import get_config_dir, get_config_path

__version__ = "0.1.0"

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(debug: bool = False, log_file: Path | None = None) -> None:
    """Configure the package logger once.

    Console output is limited to warnings unless debug is on; an optional
    log file always receives INFO and above.
    """
    logger = logging.getLogger("bloxsetup")
    if getattr(logger, "_bloxsetup_configured", False):
        return

    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    formatter = logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")

    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if debug else logging.WARNING)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    setattr(logger, "_bloxsetup_configured", True)


__all__ = [
    "__version__",
    "setup_logging",
    "ConfigError",
    "SetupConfig",
    "load_setup_config",
    "validate_config",
    "SetupError",
    "EngineUnavailableError",
    "format_error",
    "format_suggestion",
    "get_config_dir",
    "get_config_path",
]
