"""
HTTP client for an out-of-process execution worker.

The worker process exposes a small JSON API:
- POST /connect     {"connectionString", "connectionOptions", "extensionPath"} -> {"ok": bool}
- POST /disconnect  {} -> {"ok": bool}
- POST /execute     {"codeToEvaluate"} -> {"result": [{"type", "content"}, ...] | null}
- POST /cancel      {} -> {}

Invariants:
    - Transport failures raise WorkerError subclasses
    - Script failures are reported by the worker as a null result
    - cancel_all() never blocks the caller
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional, Set

import httpx

from .base import (
    ExecuteAllResult,
    OutputRecord,
    WorkerConnectionError,
    WorkerError,
    WorkerProtocolError,
    WorkerTimeoutError,
)

logger = logging.getLogger(__name__)


class HttpWorker:
    """ExecutionWorker implementation talking JSON over HTTP.

    Example:
        >>> async with HttpWorker("http://127.0.0.1:8765") as worker:
        ...     await worker.connect("mongodb://localhost", {}, "/opt/ext")
        ...     records = await worker.execute_all("db.items.find()")
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 300.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Worker base URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )
        self._pending: Set[asyncio.Task] = set()

    async def close(self) -> None:
        """Wait for pending cancel requests and close the HTTP client."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        await self._client.aclose()

    async def __aenter__(self) -> HttpWorker:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def connect(
        self,
        connection_string: str,
        options: Mapping[str, Any],
        context_path: str,
    ) -> bool:
        """Ask the worker to bind to a database."""
        data = await self._post(
            "/connect",
            {
                "connectionString": connection_string,
                "connectionOptions": dict(options),
                "extensionPath": context_path,
            },
        )
        return bool(data.get("ok"))

    async def disconnect(self) -> bool:
        """Ask the worker to drop its binding."""
        data = await self._post("/disconnect", {})
        return bool(data.get("ok"))

    async def execute_all(self, code: str) -> Optional[ExecuteAllResult]:
        """Evaluate code in the worker.

        Returns:
            Output records in worker order, or None if evaluation failed
        """
        data = await self._post("/execute", {"codeToEvaluate": code})
        result = data.get("result")
        if result is None:
            return None
        if not isinstance(result, list):
            raise WorkerProtocolError(f"Expected a list result, got {type(result).__name__}")
        return [OutputRecord.from_dict(item) for item in result]

    def cancel_all(self) -> None:
        """Send a cancel request without waiting for it."""
        task = asyncio.get_running_loop().create_task(self._cancel())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _cancel(self) -> None:
        try:
            await self._post("/cancel", {})
        except WorkerError as e:
            logger.warning(f"Cancel request failed: {e}")

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.post(path, json=payload)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise WorkerTimeoutError(f"Worker request {path} timed out") from e
        except httpx.HTTPStatusError as e:
            raise WorkerError(
                f"Worker request {path} failed with status {e.response.status_code}"
            ) from e
        except httpx.TransportError as e:
            raise WorkerConnectionError(f"Worker unreachable at {self._base_url}: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise WorkerProtocolError(f"Worker sent invalid JSON for {path}") from e

        if not isinstance(data, dict):
            raise WorkerProtocolError(f"Worker sent {type(data).__name__} for {path}")

        logger.debug("Worker request completed", extra={"path": path, "status": response.status_code})
        return data
