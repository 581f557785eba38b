"""
HashDoc Event Channel — Explicit subscribe/publish for lifecycle notifications.

Usage:
    channel = EventChannel()
    channel.on("log", print)
    channel.emit("log", "redis @ localhost:6379 ready")
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger("hashdoc.engine.events")

Listener = Callable[..., Any]


class EventChannel:
    """
    Named event channel. Listeners run synchronously in registration order.
    A listener that raises is logged and does not stop the others.
    """

    def __init__(self):
        # (listener, once)
        self._listeners: Dict[str, List[Tuple[Listener, bool]]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> Listener:
        """Subscribe ``listener`` to ``event``. Returns the listener."""
        self._listeners[event].append((listener, False))
        return listener

    def once(self, event: str, listener: Listener) -> Listener:
        """Subscribe ``listener`` for the next ``event`` only."""
        self._listeners[event].append((listener, True))
        return listener

    def off(self, event: str, listener: Optional[Listener] = None) -> None:
        """Unsubscribe one listener, or every listener for ``event``."""
        if listener is None:
            self._listeners.pop(event, None)
            return
        self._listeners[event] = [
            (fn, once) for fn, once in self._listeners[event] if fn is not listener
        ]

    def emit(self, event: str, *args: Any) -> int:
        """Publish ``event``. Returns how many listeners were called."""
        entries = list(self._listeners.get(event, ()))
        if not entries:
            return 0
        fired_once = [entry for entry in entries if entry[1]]
        if fired_once:
            self._listeners[event] = [
                entry for entry in self._listeners[event] if entry not in fired_once
            ]

        for fn, _ in entries:
            try:
                fn(*args)
            except Exception as e:
                logger.error(f"Listener for '{event}' failed: {e}")
        return len(entries)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))
