"""Typed interface to the external installation engine.

Every command is fire-and-forget: it returns immediately and its outcome is
observed only through later events delivered to subscribed listeners.
Engine-side failures never surface as exceptions from these methods; they
arrive as ``EngineError`` events or non-zero statuses.

Listeners may be invoked from whatever context the engine delivers on (an
event-loop task, a foreign thread). They must only hand the event off, e.g.
to ``Orchestrator.post``.
"""

from typing import Callable

from .models import ActionKind, EngineEvent

EventListener = Callable[[EngineEvent], None]


class EngineAdapter:
    """Base class holding listener registration; subclasses implement commands."""

    def __init__(self) -> None:
        self._listeners: list[EventListener] = []

    def subscribe(self, listener: EventListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event: EngineEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def detect(self) -> None:
        raise NotImplementedError

    def plan(self, action: ActionKind) -> None:
        raise NotImplementedError

    def apply(self, window_handle: int = 0) -> None:
        raise NotImplementedError

    def quit(self, code: int) -> None:
        raise NotImplementedError

    def set_variable(self, name: str, value: str) -> None:
        raise NotImplementedError

    def get_variable(self, name: str) -> str:
        """Return an engine variable.

        Raises:
            KeyError: If the engine has not published the variable.
        """
        raise NotImplementedError


__all__ = [
    "EngineAdapter",
    "EventListener",
]
