"""
Playground Runner - run ad-hoc database scripts from an editor.

A playground is a script document. The runner resolves what to execute (the
whole document or the selected lines), binds the run to the active database
connection, dispatches the code to an out-of-process execution worker and
renders the result:

    selection change ──▶ Selection Resolver ──▶ "run selected lines" marker
    run command ──▶ Execution Coordinator ──▶ Binding Manager (current binding)
                         │
                         ├─▶ confirmation prompt (optional)
                         ├─▶ Worker.execute_all  ◀── cancel via progress
                         └─▶ Result Sink + telemetry

Invariants:
    - One run in flight per coordinator
    - Worker rebinds are disconnect-then-connect and never overlap
    - Only a missing connection is reported as an error message

Version: 0.3.0
"""

__version__ = "0.3.0"

from .binding import ConnectionBinding, ConnectionBindingManager
from .config import PlaygroundSettings, WorkerBackend
from .controller import PlaygroundController
from .coordinator import (
    ExecutionCoordinator,
    RunOutcome,
    RunReport,
    RunRequest,
    RunState,
)
from .errors import (
    NoActiveEditorError,
    NoConnectionError,
    PlaygroundError,
)
from .host import ActiveConnection, CancellationSignal, Subscription
from .selection import Position, Range, SelectionSet, affordance_line
from .sink import ResultSink
from .telemetry import TelemetryController
from .worker import (
    ExecuteAllResult,
    ExecutionWorker,
    HttpWorker,
    InMemoryWorker,
    OutputRecord,
    create_worker,
)

__all__ = [
    "__version__",
    # Components
    "PlaygroundController",
    "ExecutionCoordinator",
    "ConnectionBindingManager",
    "ResultSink",
    "TelemetryController",
    # Types
    "ActiveConnection",
    "CancellationSignal",
    "ConnectionBinding",
    "ExecuteAllResult",
    "OutputRecord",
    "Position",
    "Range",
    "RunOutcome",
    "RunReport",
    "RunRequest",
    "RunState",
    "SelectionSet",
    "Subscription",
    "affordance_line",
    # Configuration
    "PlaygroundSettings",
    "WorkerBackend",
    # Workers
    "ExecutionWorker",
    "HttpWorker",
    "InMemoryWorker",
    "create_worker",
    # Errors
    "PlaygroundError",
    "NoConnectionError",
    "NoActiveEditorError",
]
