"""Error types and formatting utilities for consistent failure messages.

This module provides the few exceptions bloxsetup raises and the helpers used
to render failures the same way in the CLI and in the setup UI.

Error Style Guide:
- CLI errors use the 'Error: ' prefix
- Failures shown in the setup UI always carry a support code
- Engine failures are data, never exceptions; only config and engine
  startup problems are raised
- Include actionable hints where helpful
"""

import uuid


class SetupError(Exception):
    """Base class for errors raised outside the engine event stream."""
    pass


class EngineUnavailableError(SetupError):
    """Raised when the installation engine cannot be started."""
    pass


def format_error(message: str) -> str:
    """Format an error message with consistent prefix.

    Examples:
        >>> format_error("engine not found")
        'Error: engine not found'
    """
    return f"Error: {message}"


def format_suggestion(message: str, suggestion: str) -> str:
    """Format an error message with a helpful suggestion.

    Examples:
        >>> format_suggestion("no engine configured", "pass --engine or --simulate")
        'Error: no engine configured. Hint: pass --engine or --simulate'
    """
    return f"{format_error(message)}. Hint: {suggestion}"


def generate_support_code(prefix: str = "BLX") -> str:
    """Return a short opaque code correlating a visible failure with logs.

    The code is the prefix followed by ten uppercase hex digits, e.g.
    ``BLX-3F9A0C21B7``.
    """
    return f"{prefix}-{uuid.uuid4().hex[:10].upper()}"


def format_status_failure(status: int) -> str:
    """Fallback failure text when the engine reported no error message.

    Examples:
        >>> format_status_failure(1603)
        'Action returned status 1603.'
    """
    return f"Action returned status {status}."


def format_error_event(code: int, message: str) -> str:
    """Render an engine error event as the latest error text.

    Examples:
        >>> format_error_event(2, "File in use")
        'Error 2: File in use'
    """
    return f"Error {code}: {message}"


def format_diagnostic_bundle(
    support_code: str, package_log: str, bundle_log: str, details: str
) -> str:
    """Build the clipboard-ready diagnostic text for a failure.

    Args:
        support_code: Code shown next to the failure
        package_log: Primary (package) log path
        bundle_log: Engine bundle log path, may be empty
        details: The failure details shown to the user

    Returns:
        Multi-line text suitable for pasting into a support request
    """
    return "\n".join(
        [
            f"Support code: {support_code}",
            f"Package log: {package_log}",
            f"Bundle log: {bundle_log}",
            details,
        ]
    )


__all__ = [
    "SetupError",
    "EngineUnavailableError",
    "format_error",
    "format_suggestion",
    "generate_support_code",
    "format_status_failure",
    "format_error_event",
    "format_diagnostic_bundle",
]
