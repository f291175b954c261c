"""Terminal UI for the setup orchestrator."""

from .console import ConsoleUI, format_progress_bar

__all__ = [
    "ConsoleUI",
    "format_progress_bar",
]
