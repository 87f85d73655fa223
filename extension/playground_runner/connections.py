"""
In-memory connection controller.

Used by tests and by the headless console host. It keeps a set of saved
connections, tracks which one is active and notifies listeners whenever the
active connection changes.

Invariants:
    - Listeners are notified after the active connection is updated
    - Disposing a subscription removes only that listener
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from .host import ActiveConnection, Subscription

logger = logging.getLogger(__name__)


class InMemoryConnectionController:
    """ConnectionController keeping connections in a dict.

    Example:
        >>> controller = InMemoryConnectionController()
        >>> controller.add_connection(ActiveConnection("c1", "local", "mongodb://localhost"))
        >>> controller.connect("c1")
    """

    def __init__(self) -> None:
        self._connections: Dict[str, ActiveConnection] = {}
        self._active_id: Optional[str] = None
        self._listeners: List[Callable[[], None]] = []

    def add_connection(self, connection: ActiveConnection) -> None:
        """Save a connection without activating it."""
        self._connections[connection.connection_id] = connection

    def remove_connection(self, connection_id: str) -> None:
        """Forget a saved connection, deactivating it if active."""
        self._connections.pop(connection_id, None)
        if self._active_id == connection_id:
            self.disconnect()

    def connect(self, connection_id: str) -> None:
        """Make a saved connection the active one.

        Raises:
            KeyError: If the connection was never added
        """
        if connection_id not in self._connections:
            raise KeyError(f"Unknown connection: {connection_id}")
        self._active_id = connection_id
        logger.info("Active connection changed", extra={"connection_id": connection_id})
        self._notify()

    def disconnect(self) -> None:
        """Clear the active connection."""
        if self._active_id is None:
            return
        self._active_id = None
        logger.info("Active connection cleared")
        self._notify()

    def get_active_connection(self) -> Optional[ActiveConnection]:
        if self._active_id is None:
            return None
        return self._connections.get(self._active_id)

    def on_active_connection_changed(self, listener: Callable[[], None]) -> Subscription:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Subscription(remove)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
