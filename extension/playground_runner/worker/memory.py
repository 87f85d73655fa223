"""
In-memory execution worker for testing.

This module provides a scripted worker backend for:
- Unit tests of the coordinator and binding manager
- Integration tests of the playground commands
- Local development of editor hosts without a worker process

Invariants:
    - Results are returned exactly as scripted, never copied or mutated
    - Every call is appended to the call log in arrival order
    - A held execution returns None once cancel_all() is issued

How to change safely:
    - This is test-only code, changes don't affect production
    - Keep interface compatible with ExecutionWorker protocol
    - Add features to help with testing scenarios
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .base import ExecuteAllResult, OutputRecord

logger = logging.getLogger(__name__)


class InMemoryWorker:
    """Scripted implementation of ExecutionWorker for testing.

    Attributes:
        default_result: Result returned for code without a scripted result
        calls: Log of (method, args) tuples in call order

    Example:
        >>> worker = InMemoryWorker()
        >>> worker.set_result("1; 2", [OutputRecord("1"), OutputRecord("2")])
        >>> await worker.connect("mongodb://localhost", {}, "/ext")
        >>> await worker.execute_all("1; 2")
    """

    def __init__(
        self,
        default_result: Optional[ExecuteAllResult] = None,
        latency: float = 0.0,
    ) -> None:
        """Initialize the worker.

        Args:
            default_result: Result for unscripted code (empty list if omitted)
            latency: Seconds to sleep inside connect() and disconnect()
        """
        self.default_result: Optional[ExecuteAllResult] = (
            default_result if default_result is not None else []
        )
        self.latency = latency
        self.calls: List[Tuple[str, tuple]] = []
        self._results: Dict[str, Optional[ExecuteAllResult]] = {}
        self._connection_string: Optional[str] = None
        self._connection_options: Dict[str, Any] = {}
        self._accept_connections = True
        self._gate: Optional[asyncio.Event] = None
        self._cancelled = False

    @property
    def is_connected(self) -> bool:
        """Whether a connection string is currently bound."""
        return self._connection_string is not None

    @property
    def connection_string(self) -> Optional[str]:
        """Connection string of the current binding."""
        return self._connection_string

    @property
    def connection_options(self) -> Dict[str, Any]:
        """Driver options of the current binding."""
        return dict(self._connection_options)

    async def connect(
        self,
        connection_string: str,
        options: Mapping[str, Any],
        context_path: str,
    ) -> bool:
        """Bind to a connection string unless connections are refused."""
        self.calls.append(("connect", (connection_string, dict(options), context_path)))
        if self.latency:
            await asyncio.sleep(self.latency)

        if not self._accept_connections:
            logger.debug("InMemoryWorker refused connection")
            return False

        self._connection_string = connection_string
        self._connection_options = dict(options)
        logger.debug("InMemoryWorker connected")
        return True

    async def disconnect(self) -> bool:
        """Drop the current binding (no-op when not bound)."""
        self.calls.append(("disconnect", ()))
        if self.latency:
            await asyncio.sleep(self.latency)

        self._connection_string = None
        self._connection_options = {}
        logger.debug("InMemoryWorker disconnected")
        return True

    async def execute_all(self, code: str) -> Optional[ExecuteAllResult]:
        """Return the scripted result for code.

        Returns None when not connected, or when the execution was held and
        then cancelled.
        """
        self.calls.append(("execute_all", (code,)))
        self._cancelled = False

        if self._gate is not None:
            await self._gate.wait()
            if self._cancelled:
                logger.debug("InMemoryWorker execution cancelled")
                return None

        if not self.is_connected:
            logger.debug("InMemoryWorker executed without a connection")
            return None

        return self._results.get(code, self.default_result)

    def cancel_all(self) -> None:
        """Abort a held execution."""
        self.calls.append(("cancel_all", ()))
        self._cancelled = True
        if self._gate is not None:
            self._gate.set()

    # Testing helpers

    def set_result(self, code: str, result: Optional[ExecuteAllResult]) -> None:
        """Script the result returned for a given code string."""
        self._results[code] = result

    def refuse_connections(self, refuse: bool = True) -> None:
        """Make connect() report failure until called with refuse=False."""
        self._accept_connections = not refuse

    def hold(self) -> None:
        """Block execute_all() until release() or cancel_all() is called."""
        self._gate = asyncio.Event()

    def release(self) -> None:
        """Let a held execute_all() complete normally."""
        if self._gate is not None:
            self._gate.set()
            self._gate = None

    def call_names(self) -> List[str]:
        """Names of the calls received, in order."""
        return [name for name, _ in self.calls]

    def executed_code(self) -> List[str]:
        """Code strings passed to execute_all(), in order."""
        return [args[0] for name, args in self.calls if name == "execute_all"]


def records(*contents: str) -> ExecuteAllResult:
    """Build an ExecuteAllResult from content strings (testing helper)."""
    return [OutputRecord(content=content) for content in contents]
