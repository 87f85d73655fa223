"""
Interfaces of the collaborators the runner is embedded in.

The runner never talks to an editor, a terminal or a connection form
directly. Hosts implement these protocols:
- TextDocument / TextEditor: the active playground and its selections
- EditorHost: messages, modal confirmation, progress, documents, affordances
- OutputChannel: the "Playground output" surface
- ConnectionController: active connection lookup and change notifications

CancellationSignal and Subscription are concrete helpers shared by hosts
and the runner.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    Any,
    AsyncContextManager,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Sequence,
)

if TYPE_CHECKING:
    from .selection import Range


class CancellationSignal:
    """Single-shot cancellation request raised by a progress surface."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


class Subscription:
    """Handle returned by an event registration.

    dispose() removes exactly the listener that was registered and is
    idempotent.
    """

    def __init__(self, dispose: Callable[[], None]) -> None:
        self._dispose: Optional[Callable[[], None]] = dispose

    @property
    def disposed(self) -> bool:
        return self._dispose is None

    def dispose(self) -> None:
        if self._dispose is not None:
            dispose, self._dispose = self._dispose, None
            dispose()


@dataclass(frozen=True)
class ActiveConnection:
    """Connection model as exposed by the connection controller.

    Attributes:
        connection_id: Controller-assigned identifier
        name: Display name shown to the user
        driver_url: Connection string including any SSH tunnel rewrite
        driver_options: Driver options (SSL files, validation flags, ...)
    """

    connection_id: str
    name: str
    driver_url: Optional[str]
    driver_options: Dict[str, Any] = field(default_factory=dict)


class TextDocument(Protocol):
    language_id: str
    path: Optional[str]

    def get_text(self, range: Optional["Range"] = None) -> str:
        """Whole document text, or the text covered by range."""
        ...

    def line_at(self, line: int) -> str:
        """Full text of a line, without its line break."""
        ...


class TextEditor(Protocol):
    document: TextDocument
    selections: Sequence["Range"]


class Terminal(Protocol):
    def send_text(self, text: str) -> None: ...

    def show(self) -> None: ...


class OutputChannel(Protocol):
    def clear(self) -> None: ...

    def append_line(self, text: str) -> None: ...

    def show(self, preserve_focus: bool = True) -> None: ...


class EditorHost(Protocol):
    """Editor surface consumed by the controller and coordinator."""

    @property
    def active_editor(self) -> Optional[TextEditor]: ...

    @property
    def user_shell(self) -> Optional[str]:
        """Path of the user's default shell, if known."""
        ...

    def show_error_message(self, message: str) -> None: ...

    def show_information_message(self, message: str) -> None: ...

    async def confirm(self, message: str) -> bool:
        """Modal yes/no prompt. True only for an explicit "Yes"."""
        ...

    def progress(self, title: str) -> AsyncContextManager[CancellationSignal]:
        """Cancellable progress notification for the duration of the block."""
        ...

    async def open_document(self, content: str, language_id: str) -> TextDocument: ...

    async def open_file(self, path: str, language_id: str) -> TextDocument:
        """Open an existing file as language_id. Raises OSError if it cannot be read."""
        ...

    async def show_document(self, document: TextDocument) -> None: ...

    def set_partial_run_affordance(self, line: Optional[int]) -> None:
        """Place the "run selected lines" marker at line, or clear it."""
        ...

    def refresh_active_connection(self, name: Optional[str]) -> None:
        """Redraw the active-connection marker."""
        ...

    def create_terminal(
        self,
        name: str,
        env: Optional[Dict[str, str]] = None,
        shell_path: Optional[str] = None,
        shell_args: Optional[List[str]] = None,
    ) -> Terminal: ...


class ConnectionController(Protocol):
    def get_active_connection(self) -> Optional[ActiveConnection]: ...

    def on_active_connection_changed(self, listener: Callable[[], None]) -> Subscription:
        """Register a listener; the returned handle removes exactly it."""
        ...
