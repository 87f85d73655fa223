"""
Base protocol and types for the execution worker abstraction.

The worker is the out-of-process runtime that evaluates playground scripts
against a database. This module defines the ExecutionWorker protocol that
all backends must implement, along with the result record type and errors.

Invariants:
    - execute_all() never raises for ordinary script errors; failures are
      reported as the "no result" sentinel (None)
    - disconnect() is safe to call when already disconnected
    - cancel_all() is fire-and-forget and returns immediately
    - Callers always disconnect before connecting to a new target

How to change safely:
    - Protocol changes require updating all implementations
    - Keep OutputRecord.from_dict tolerant of extra keys sent by workers
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    List,
    Mapping,
    Optional,
    Protocol,
    runtime_checkable,
)
import logging

if TYPE_CHECKING:
    from ..config import PlaygroundSettings

logger = logging.getLogger(__name__)


class WorkerError(Exception):
    """Base exception for worker operations."""
    pass


class WorkerConnectionError(WorkerError):
    """The worker process could not be reached."""
    pass


class WorkerTimeoutError(WorkerError):
    """A worker request timed out."""
    pass


class WorkerProtocolError(WorkerError):
    """The worker sent a response that could not be understood."""
    pass


@dataclass(frozen=True)
class OutputRecord:
    """One rendered output record produced by the worker.

    Attributes:
        content: Rendered content string shown in the output channel
        type: Worker-reported record type (e.g. "Cursor", "number"), if any
    """
    content: str
    type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"content": self.content, "type": self.type}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OutputRecord:
        """Create from a worker response item.

        Raises:
            WorkerProtocolError: If the item is not an object or has no content
        """
        if not isinstance(data, Mapping):
            raise WorkerProtocolError(f"Output record is not an object: {data!r}")
        if "content" not in data:
            raise WorkerProtocolError(f"Output record without content: {dict(data)!r}")
        content = data["content"]
        return cls(
            content=content if isinstance(content, str) else str(content),
            type=data.get("type"),
        )


# An ExecuteAllResult is an ordered list of records; None is "no result".
ExecuteAllResult = List[OutputRecord]


def is_no_result(result: Optional[ExecuteAllResult]) -> bool:
    """Whether a worker response is the "no result" sentinel.

    An empty list is a successful run that printed nothing.
    """
    return result is None


@runtime_checkable
class ExecutionWorker(Protocol):
    """Protocol for execution worker backends.

    Example:
        >>> worker = HttpWorker("http://localhost:8765")
        >>> await worker.disconnect()
        >>> await worker.connect("mongodb://localhost:27017", {}, "/opt/ext")
        >>> records = await worker.execute_all("db.items.find()")
    """

    @abstractmethod
    async def connect(
        self,
        connection_string: str,
        options: Mapping[str, Any],
        context_path: str,
    ) -> bool:
        """Bind the worker to a database.

        Args:
            connection_string: Driver connection string
            options: Driver options for the connection
            context_path: Install path of the extension, used by the worker
                to locate its own resources

        Returns:
            True if the worker is now connected
        """
        ...

    @abstractmethod
    async def disconnect(self) -> bool:
        """Tear down any existing binding.

        Returns:
            True once the worker is disconnected
        """
        ...

    @abstractmethod
    async def execute_all(self, code: str) -> Optional[ExecuteAllResult]:
        """Run a script to completion.

        Args:
            code: Script text

        Returns:
            Ordered output records, or None if evaluation failed

        Raises:
            WorkerError: Only for transport failures, never for script errors
        """
        ...

    @abstractmethod
    def cancel_all(self) -> None:
        """Best-effort abort of any in-flight execute_all()."""
        ...


def create_worker(settings: "PlaygroundSettings") -> ExecutionWorker:
    """Factory function to create a worker from settings.

    Args:
        settings: Playground settings

    Returns:
        Appropriate ExecutionWorker implementation

    Raises:
        ValueError: If backend is not supported
    """
    from ..config import WorkerBackend
    from .http import HttpWorker
    from .memory import InMemoryWorker

    try:
        backend = WorkerBackend(settings.worker_backend)
    except ValueError:
        raise ValueError(f"Unsupported worker backend: {settings.worker_backend}")

    if backend == WorkerBackend.HTTP:
        return HttpWorker(
            settings.worker_url,
            timeout=settings.worker_timeout_seconds,
        )
    return InMemoryWorker()
