"""Async best-effort process helpers: log viewing, launching, clipboard."""

import asyncio
import logging
import shlex
import shutil
import sys
from pathlib import Path
from typing import Tuple

import click

DEFAULT_TIMEOUT = 30
CLIPBOARD_TIMEOUT = 5

_logging = logging.getLogger(__name__)


async def run_command_async(
    command: str,
    timeout: int = DEFAULT_TIMEOUT,
    input_text: str | None = None,
    debug: bool = False,
) -> Tuple[str, int]:
    """Run a shell command asynchronously and return output and return code."""
    process = None
    try:
        if debug:
            _logging.debug(f"Running command: {command}")
        process = await asyncio.create_subprocess_shell(
            command,
            stdin=asyncio.subprocess.PIPE if input_text is not None else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(
                    input_text.encode() if input_text is not None else None
                ),
                timeout=timeout,
            )
            output = stdout.decode().strip()
            if stderr and debug:
                _logging.debug(f"stderr: {stderr.decode().strip()}")
            return output, process.returncode if process.returncode is not None else 1
        except asyncio.TimeoutError:
            process.kill()
            _ = await process.wait()
            _logging.warning(f"Command timed out after {timeout} seconds: {command}")
            return f"Command timed out after {timeout} seconds", 1
    except Exception as e:
        _logging.warning(f"Command execution failed: {type(e).__name__}: {e} | Command: {command}")
        return f"Error: {str(e)}", 1
    finally:
        if process:
            transport = getattr(process, "_transport", None)
            if transport:
                transport.close()


async def open_path(path: Path) -> bool:
    """Open a file with its default application. Never raises."""
    try:
        result = await asyncio.to_thread(click.launch, str(path))
    except Exception as e:
        _logging.debug(f"Could not open {path}: {e}")
        return False
    return result == 0


async def launch_detached(path: Path) -> bool:
    """Start an installed program without waiting for it. Never raises.

    Executables are spawned with their own folder as working directory;
    anything else (e.g. a .jar) goes through the default-application
    association.
    """
    if path.suffix.lower() not in (".exe", ""):
        return await open_path(path)
    try:
        await asyncio.create_subprocess_exec(
            str(path),
            cwd=str(path.parent),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
            start_new_session=not sys.platform.startswith("win"),
        )
    except Exception as e:
        _logging.debug(f"Could not launch {path}: {e}")
        return False
    return True


def _clipboard_command() -> str | None:
    if sys.platform.startswith("win"):
        return "clip"
    if sys.platform == "darwin":
        return "pbcopy"
    for candidate in (
        ["wl-copy"],
        ["xclip", "-selection", "clipboard"],
        ["xsel", "--clipboard", "--input"],
    ):
        if shutil.which(candidate[0]):
            return shlex.join(candidate)
    return None


async def copy_to_clipboard(text: str) -> bool:
    """Place text on the system clipboard. Never raises."""
    command = _clipboard_command()
    if command is None:
        _logging.debug("No clipboard tool available")
        return False
    _, returncode = await run_command_async(
        command, timeout=CLIPBOARD_TIMEOUT, input_text=text
    )
    return returncode == 0
