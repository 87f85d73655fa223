"""
Telemetry for playground runs.

record_run() is fire-and-forget: the event is handed to a sender and any
sender failure is logged, never raised into the run.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Optional

from .worker.base import ExecuteAllResult

logger = logging.getLogger(__name__)

PLAYGROUND_CODE_EXECUTED = "Playground Code Executed"

TelemetrySender = Callable[[str, Dict[str, Any]], None]


def result_type(result: Optional[ExecuteAllResult]) -> str:
    """Classify a run by the type of its last output record.

    Returns one of "insert", "update", "delete", "aggregation", "query"
    or "other".
    """
    if not result or not result[-1].type:
        return "other"

    shell_api_type = result[-1].type.lower()
    if "insert" in shell_api_type:
        return "insert"
    if "update" in shell_api_type:
        return "update"
    if "delete" in shell_api_type:
        return "delete"
    if "aggregation" in shell_api_type:
        return "aggregation"
    if "cursor" in shell_api_type:
        return "query"
    return "other"


@dataclass(frozen=True)
class PlaygroundCodeExecuted:
    """Properties of a playground run event."""

    type: str
    partial: bool
    error: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def log_sender(event: str, properties: Dict[str, Any]) -> None:
    """Default sender: write the event to the log."""
    logger.info(event, extra={"telemetry": properties})


class TelemetryController:
    """Builds and dispatches telemetry events."""

    def __init__(self, sender: Optional[TelemetrySender] = None) -> None:
        self.sender = sender or log_sender

    def record_run(
        self,
        result: Optional[ExecuteAllResult],
        is_partial: bool,
        is_error: bool,
    ) -> None:
        """Track a completed playground run."""
        event = PlaygroundCodeExecuted(
            type=result_type(result),
            partial=is_partial,
            error=is_error,
        )
        try:
            self.sender(PLAYGROUND_CODE_EXECUTED, event.to_dict())
        except Exception as e:
            logger.warning(f"Failed to send telemetry: {e}")

