"""Minimal synchronous event emitter used by sinks to signal state changes."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable

Listener = Callable[..., Any]


class EventEmitter:
    """Register persistent or one-time listeners and dispatch named events."""

    def __init__(self) -> None:
        self._listeners: defaultdict[str, list[tuple[Listener, bool]]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> None:
        """Attach a listener that fires on every emission of ``event``."""
        self._listeners[event].append((listener, False))

    def once(self, event: str, listener: Listener) -> None:
        """Attach a listener that is removed after its first invocation."""
        self._listeners[event].append((listener, True))

    def off(self, event: str, listener: Listener) -> None:
        """Detach ``listener`` from ``event``; unknown listeners are ignored."""
        registered = self._listeners.get(event)
        if not registered:
            return
        for index, (candidate, _) in enumerate(registered):
            if candidate is listener:
                del registered[index]
                break
        if not registered:
            del self._listeners[event]

    def emit(self, event: str, *args: Any) -> bool:
        """Invoke listeners for ``event`` in registration order.

        Returns ``True`` when at least one listener was attached.
        """
        registered = self._listeners.get(event)
        if not registered:
            return False
        snapshot = list(registered)
        for listener, one_time in snapshot:
            if one_time:
                self.off(event, listener)
        for listener, _ in snapshot:
            listener(*args)
        return True

    def listener_count(self, event: str) -> int:
        """Return the number of listeners currently attached to ``event``."""
        return len(self._listeners.get(event, ()))
