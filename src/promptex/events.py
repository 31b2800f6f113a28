"""Explicit event channel owned by the application shell."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

PROMPT_CREATED = "prompt-created"
PROMPT_UPDATED = "prompt-updated"
PROMPT_DELETED = "prompt-deleted"
FAVORITE_TOGGLED = "favorite-toggled"
FILTER_CHANGED = "filter-changed"
SAVE_FAILED = "save-failed"
ACTIVITY = "activity"


@dataclass
class PromptEvent:
    """Something happened to the prompt library or its view state."""

    kind: str
    prompt_id: str | None = None
    payload: Any = None


Listener = Callable[[PromptEvent], None]


class EventChannel:
    """Synchronous fan-out to subscribed callbacks."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: PromptEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Listener failed on %s event", event.kind)
