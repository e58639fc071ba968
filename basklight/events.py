"""Change notification hub.

Components announce that their state changed; subscribers pull whatever
they need from the emitter afterwards. Notifications carry no payload.
"""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class Signal:
    """A list of zero-argument callbacks fired synchronously, in order."""

    def __init__(self, name: str = "changed") -> None:
        self.name = name
        self._listeners: list[Listener] = []

    def connect(self, listener: Listener) -> Callable[[], None]:
        """Subscribe ``listener`` and return a callable that unsubscribes it."""

        if listener not in self._listeners:
            self._listeners.append(listener)

        def _disconnect() -> None:
            self.disconnect(listener)

        return _disconnect

    def disconnect(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def emit(self) -> None:
        # copy: listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            listener()

    def __len__(self) -> int:
        return len(self._listeners)

    def __repr__(self) -> str:
        return f"Signal({self.name!r}, listeners={len(self._listeners)})"
