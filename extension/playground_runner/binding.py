"""
Connection binding between the runner and the execution worker.

The ConnectionBindingManager listens for active-connection changes and keeps
the worker's live connection in step with them:
1. Disconnect the worker from the current binding
2. Connect the worker to the newly active connection, if there is one
3. Publish the new binding (or None when unbound)

Invariants:
    - Rebinds are strictly disconnect-then-connect
    - Rebinds never overlap; each one waits for the previous to finish
    - A failed connect leaves the manager unbound and is not raised
    - The subscription handle stored at start() is the one disposed at stop()

How to change safely:
    - Keep the binding immutable; the coordinator re-reads it per run
    - Never log connection strings, they can embed credentials
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional, Set

from .worker.base import ExecutionWorker, WorkerError

if TYPE_CHECKING:
    from .host import ActiveConnection, ConnectionController, EditorHost, Subscription

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionBinding:
    """The connection the worker is currently bound to.

    Attributes:
        connection_id: Controller-assigned connection identifier
        name: Display name used in confirmation prompts
        connection_string: Driver connection string
        options: Driver options passed to the worker
    """

    connection_id: str
    name: str
    connection_string: str
    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_connection(cls, connection: "ActiveConnection") -> Optional[ConnectionBinding]:
        """Build a binding, or None if the connection has no driver URL."""
        if not connection.driver_url:
            return None
        return cls(
            connection_id=connection.connection_id,
            name=connection.name,
            connection_string=connection.driver_url,
            options=dict(connection.driver_options or {}),
        )

    def __str__(self) -> str:
        return f"ConnectionBinding(id={self.connection_id}, name={self.name})"


class ConnectionBindingManager:
    """Keeps the worker bound to the controller's active connection.

    Example:
        >>> manager = ConnectionBindingManager(controller, worker, "/opt/ext")
        >>> manager.start()
        >>> controller.connect("local")   # triggers a rebind
        >>> await manager.wait_idle()
        >>> manager.current
        ConnectionBinding(id=local, name=Local)
    """

    def __init__(
        self,
        connection_controller: "ConnectionController",
        worker: ExecutionWorker,
        context_path: str,
        host: Optional["EditorHost"] = None,
    ) -> None:
        """Initialize the manager.

        Args:
            connection_controller: Source of active-connection changes
            worker: Execution worker to keep bound
            context_path: Extension install path passed on connect
            host: Optional editor host whose connection marker is refreshed
        """
        self.connection_controller = connection_controller
        self.worker = worker
        self.context_path = context_path
        self.host = host

        self._binding: Optional[ConnectionBinding] = None
        self._lock = asyncio.Lock()
        self._subscription: Optional["Subscription"] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def current(self) -> Optional[ConnectionBinding]:
        """The current binding, or None when unbound."""
        return self._binding

    @property
    def is_started(self) -> bool:
        return self._subscription is not None

    def start(self) -> None:
        """Subscribe to active-connection changes."""
        if self._subscription is not None:
            logger.warning("Binding manager already started")
            return
        self._subscription = self.connection_controller.on_active_connection_changed(
            self._on_active_connection_changed
        )
        logger.debug("Binding manager subscribed to connection changes")

    async def stop(self) -> None:
        """Dispose the subscription and wait for in-flight rebinds."""
        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None
        await self.wait_idle()
        logger.debug("Binding manager stopped")

    async def wait_idle(self) -> None:
        """Wait until every scheduled rebind has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_active_connection_changed(self) -> None:
        task = asyncio.get_running_loop().create_task(self.rebind())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def rebind(self) -> Optional[ConnectionBinding]:
        """Move the worker to the controller's active connection.

        Returns:
            The new binding, or None if unbound
        """
        async with self._lock:
            self._binding = None
            await self._disconnect()

            connection = self.connection_controller.get_active_connection()
            binding = ConnectionBinding.from_connection(connection) if connection else None

            if binding is not None:
                connected = await self._connect(binding)
                if connected:
                    self._binding = binding
                    logger.info(
                        "Worker bound to connection",
                        extra={"connection_id": binding.connection_id},
                    )
                else:
                    logger.warning(
                        "Worker failed to connect",
                        extra={"connection_id": binding.connection_id},
                    )
            else:
                logger.info("No active connection, worker left disconnected")

            if self.host is not None:
                self.host.refresh_active_connection(
                    self._binding.name if self._binding else None
                )

            return self._binding

    async def _disconnect(self) -> None:
        try:
            await self.worker.disconnect()
        except WorkerError as e:
            logger.debug(f"Ignoring disconnect failure: {e}")

    async def _connect(self, binding: ConnectionBinding) -> bool:
        try:
            return await self.worker.connect(
                binding.connection_string,
                binding.options,
                self.context_path,
            )
        except WorkerError as e:
            logger.warning(f"Worker connect failed: {e}")
            return False
