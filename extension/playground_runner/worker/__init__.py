"""
Execution worker abstraction for the playground runner.

This module provides a pluggable worker interface supporting:
- HTTP worker process (production)
- In-memory scripted worker (testing)

Invariants:
    - Script errors never raise; they surface as a None result
    - cancel_all() is fire-and-forget
    - Callers disconnect before every connect

How to change safely:
    - New backends must implement the ExecutionWorker protocol
    - Keep the HTTP payload field names stable for existing workers
"""

from .base import (
    ExecuteAllResult,
    ExecutionWorker,
    OutputRecord,
    WorkerConnectionError,
    WorkerError,
    WorkerProtocolError,
    WorkerTimeoutError,
    create_worker,
    is_no_result,
)
from .http import HttpWorker
from .memory import InMemoryWorker

__all__ = [
    # Protocol and types
    "ExecutionWorker",
    "ExecuteAllResult",
    "OutputRecord",
    "is_no_result",
    "WorkerError",
    "WorkerConnectionError",
    "WorkerTimeoutError",
    "WorkerProtocolError",
    # Factory
    "create_worker",
    # Implementations
    "HttpWorker",
    "InMemoryWorker",
]
