"""
Execution coordinator for playground runs.

The coordinator owns the run state machine:

    IDLE ──▶ AWAITING_CONFIRMATION ──▶ RUNNING ──▶ IDLE
      │                │                  │
      │                └──(declined)──▶ IDLE
      └──────────────────────────────▶ RUNNING ──▶ CANCELLING ──▶ IDLE

A run is accepted only from IDLE and only while a connection binding
exists. Confirmation (when enabled) happens before dispatch. While RUNNING,
the worker call races the progress surface's cancellation signal.

Invariants:
    - At most one run is in flight per coordinator; others are rejected
    - The binding is re-read on every run, never cached
    - Only NO_CONNECTION is reported to the user as an error message
    - The output channel is written only from the terminal transitions
    - Cancellation resolves the run before the worker acknowledges it
    - A cancelled or declined run records no telemetry

How to change safely:
    - Keep confirm-before-dispatch ordering
    - Cancelled and failed runs both yield a None result; keep them merged
      unless callers need to tell them apart (RunOutcome already does)
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .errors import NoConnectionError
from .worker.base import ExecuteAllResult, ExecutionWorker, WorkerError, is_no_result

if TYPE_CHECKING:
    from .binding import ConnectionBinding, ConnectionBindingManager
    from .config import PlaygroundSettings
    from .host import EditorHost
    from .sink import ResultSink
    from .telemetry import TelemetryController

logger = logging.getLogger(__name__)

PROGRESS_TITLE = "Running MongoDB playground..."


class RunState(Enum):
    """Lifecycle state of the coordinator."""

    IDLE = "idle"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    RUNNING = "running"
    CANCELLING = "cancelling"


class RunOutcome(Enum):
    """How a submitted run ended."""

    COMPLETED = "completed"
    EXECUTION_FAILURE = "execution_failure"
    CANCELLED = "cancelled"
    DECLINED = "declined"
    NO_CONNECTION = "no_connection"
    REJECTED = "rejected"


@dataclass(frozen=True)
class RunRequest:
    """Code to execute and whether it came from a selection.

    Attributes:
        code: Script text sent to the worker
        is_partial: True for a selection run, False for a whole document
        created_at: When the run was triggered
    """

    code: str
    is_partial: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class RunReport:
    """Outcome of a submitted run plus the worker result, if any."""

    outcome: RunOutcome
    result: Optional[ExecuteAllResult] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is RunOutcome.COMPLETED


def confirmation_message(binding: "ConnectionBinding") -> str:
    return (
        f"Are you sure you want to run this playground against {binding.name}? "
        "This confirmation can be disabled in the extension settings."
    )


class ExecutionCoordinator:
    """Single-flight runner of playground code.

    Example:
        >>> coordinator = ExecutionCoordinator(host, bindings, worker, sink, telemetry, settings)
        >>> report = await coordinator.submit(RunRequest("db.items.find()"))
        >>> report.outcome
        <RunOutcome.COMPLETED: 'completed'>
    """

    def __init__(
        self,
        host: "EditorHost",
        bindings: "ConnectionBindingManager",
        worker: ExecutionWorker,
        sink: "ResultSink",
        telemetry: "TelemetryController",
        settings: "PlaygroundSettings",
    ) -> None:
        self.host = host
        self.bindings = bindings
        self.worker = worker
        self.sink = sink
        self.telemetry = telemetry
        self.settings = settings

        self._state = RunState.IDLE

    @property
    def state(self) -> RunState:
        return self._state

    async def run(self, request: RunRequest) -> bool:
        """Submit a run and report whether it produced a result."""
        report = await self.submit(request)
        return report.succeeded

    async def submit(self, request: RunRequest) -> RunReport:
        """Drive one run through the state machine.

        Args:
            request: The run to execute; consumed by this call

        Returns:
            RunReport describing how the run ended
        """
        if self._state is not RunState.IDLE:
            logger.warning("Rejected playground run", extra={"state": self._state.value})
            return RunReport(RunOutcome.REJECTED)

        binding = self.bindings.current
        if binding is None:
            self.host.show_error_message(NoConnectionError().message)
            return RunReport(RunOutcome.NO_CONNECTION)

        try:
            if self.settings.confirm_run_all:
                self._transition(RunState.AWAITING_CONFIRMATION)
                if not await self.host.confirm(confirmation_message(binding)):
                    logger.info("Playground run declined")
                    return RunReport(RunOutcome.DECLINED)

            self._transition(RunState.RUNNING)
            result = await self._evaluate_with_cancel(request)

            if self._state is RunState.CANCELLING:
                return RunReport(RunOutcome.CANCELLED)

            self.sink.render(result)
            if is_no_result(result):
                return RunReport(RunOutcome.EXECUTION_FAILURE)
            return RunReport(RunOutcome.COMPLETED, result)
        finally:
            self._transition(RunState.IDLE)

    async def evaluate(self, request: RunRequest) -> Optional[ExecuteAllResult]:
        """Send code to the worker and track the run.

        Raises:
            WorkerError: If the worker cannot be reached
        """
        start = time.monotonic()
        result = await self.worker.execute_all(request.code)

        self.telemetry.record_run(result, request.is_partial, is_no_result(result))
        logger.info(
            "Playground code executed",
            extra={
                "partial": request.is_partial,
                "error": is_no_result(result),
                "records": len(result) if not is_no_result(result) else 0,
                "duration_ms": int((time.monotonic() - start) * 1000),
            },
        )
        return result

    async def _evaluate_with_cancel(self, request: RunRequest) -> Optional[ExecuteAllResult]:
        async with self.host.progress(PROGRESS_TITLE) as cancellation:
            execution = asyncio.ensure_future(self.evaluate(request))
            cancel_requested = asyncio.ensure_future(cancellation.wait())
            try:
                await asyncio.wait(
                    {execution, cancel_requested},
                    return_when=asyncio.FIRST_COMPLETED,
                )
            except asyncio.CancelledError:
                execution.cancel()
                raise
            finally:
                cancel_requested.cancel()

            if execution.done():
                try:
                    return execution.result()
                except WorkerError as e:
                    logger.error(f"Evaluate playground with cancel modal error: {e}")
                    return None
                except Exception:
                    logger.exception("Unexpected error while evaluating playground")
                    return None

            self._cancel(execution)
            return None

    def _cancel(self, execution: asyncio.Future) -> None:
        self._transition(RunState.CANCELLING)
        self.worker.cancel_all()
        execution.cancel()
        self.sink.clear()
        logger.info("Playground run cancelled")

    def _transition(self, state: RunState) -> None:
        if state is not self._state:
            logger.debug(
                "Run state changed",
                extra={"from": self._state.value, "to": state.value},
            )
            self._state = state
