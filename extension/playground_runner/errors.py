"""
Error types for the playground runner.

This module defines the exceptions raised at the runner's seams:
- PlaygroundError: Base exception
- NoConnectionError: No database connection is bound when a run starts
- NoActiveEditorError: No playground document is focused

User declines, user cancellations, script failures and runs rejected while
another run is in flight are not exceptions.
They are reported as RunOutcome values by the coordinator.

Invariants:
    - All errors inherit from PlaygroundError
    - Error messages are the exact text shown to the user
"""

from __future__ import annotations

from typing import Any, Dict, Optional

NO_CONNECTION_MESSAGE = "Please connect to a database before running a playground."
NO_ACTIVE_EDITOR_MESSAGE = "Please open a '.mongodb' playground file before running it."


class PlaygroundError(Exception):
    """Base exception for all playground runner errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "PLAYGROUND_ERROR"
        self.details = details or {}


class NoConnectionError(PlaygroundError):
    """No active connection binding at run time.

    Raised when:
    - The user never connected
    - The last connect request to the worker failed
    - The active connection was removed
    """

    def __init__(self, message: str = NO_CONNECTION_MESSAGE) -> None:
        super().__init__(message, code="NO_CONNECTION")


class NoActiveEditorError(PlaygroundError):
    """The focused editor is missing or is not a playground."""

    def __init__(
        self,
        message: str = NO_ACTIVE_EDITOR_MESSAGE,
        language_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="NO_ACTIVE_EDITOR",
            details={"language_id": language_id},
        )
        self.language_id = language_id

