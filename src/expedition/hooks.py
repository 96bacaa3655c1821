"""Event hook registry.

Every mutating operation dispatches an event after it has been persisted.
Listener failures are logged and swallowed so a misbehaving hook can never
undo or interrupt the operation that fired it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

HookCallback = Callable[[dict[str, Any]], None]


class HookRegistry:
    """Maps event names to listener callbacks."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[HookCallback]] = {}

    def on(self, event: str, callback: HookCallback) -> Callable[[], None]:
        """Register a callback for an event.

        Returns:
            A function that unregisters the callback.
        """
        self._listeners.setdefault(event, []).append(callback)

        def unregister() -> None:
            listeners = self._listeners.get(event, [])
            if callback in listeners:
                listeners.remove(callback)

        return unregister

    def dispatch(self, event: str, payload: dict[str, Any] | None = None) -> None:
        """Call every listener for ``event`` in registration order."""
        for callback in list(self._listeners.get(event, [])):
            try:
                callback(payload or {})
            except Exception:
                logger.warning("Hook error on '%s'", event, exc_info=True)

    def clear(self, event: str | None = None) -> None:
        """Remove listeners for one event, or for all events."""
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))
