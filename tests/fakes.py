"""
Recording fakes of the editor-host collaborators.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Callable, Dict, List, Optional

from extension.playground_runner.console import PlaygroundDocument, PlaygroundEditor
from extension.playground_runner.host import CancellationSignal


class RecordingOutputChannel:
    """Output channel that remembers every call."""

    def __init__(self) -> None:
        self.lines: List[str] = []
        self.events: List[str] = []
        self.clear_count = 0
        self.show_count = 0

    def clear(self) -> None:
        self.lines = []
        self.clear_count += 1
        self.events.append("clear")

    def append_line(self, text: str) -> None:
        self.lines.append(text)
        self.events.append(f"append:{text}")

    def show(self, preserve_focus: bool = True) -> None:
        self.show_count += 1
        self.events.append("show")

    @property
    def touched(self) -> bool:
        return bool(self.events)


class RecordingTerminal:
    def __init__(self, name, env, shell_path, shell_args) -> None:
        self.name = name
        self.env = env
        self.shell_path = shell_path
        self.shell_args = shell_args
        self.sent: List[str] = []
        self.shown = False

    def send_text(self, text: str) -> None:
        self.sent.append(text)

    def show(self) -> None:
        self.shown = True


class FakeHost:
    """EditorHost fake with scripted answers."""

    def __init__(self, confirm_answer: bool = True) -> None:
        self.active_editor: Optional[PlaygroundEditor] = None
        self.user_shell: Optional[str] = "/bin/bash"
        self.confirm_answer = confirm_answer
        self.confirm_gate: Optional[asyncio.Event] = None
        self.errors: List[str] = []
        self.infos: List[str] = []
        self.prompts: List[str] = []
        self.progress_titles: List[str] = []
        self.progress_signals: List[CancellationSignal] = []
        self.affordance_lines: List[Optional[int]] = []
        self.connection_names: List[Optional[str]] = []
        self.opened: List[PlaygroundDocument] = []
        self.shown: List[PlaygroundDocument] = []
        self.files: Dict[str, str] = {}
        self.terminals: List[RecordingTerminal] = []

    def open_playground(self, text: str, selections=None, language_id: str = "mongodb") -> PlaygroundEditor:
        document = PlaygroundDocument(text=text, language_id=language_id)
        self.active_editor = PlaygroundEditor(document, list(selections or []))
        return self.active_editor

    def show_error_message(self, message: str) -> None:
        self.errors.append(message)

    def show_information_message(self, message: str) -> None:
        self.infos.append(message)

    async def confirm(self, message: str) -> bool:
        self.prompts.append(message)
        if self.confirm_gate is not None:
            await self.confirm_gate.wait()
        return self.confirm_answer

    @asynccontextmanager
    async def progress(self, title: str):
        signal = CancellationSignal()
        self.progress_titles.append(title)
        self.progress_signals.append(signal)
        yield signal

    async def open_document(self, content: str, language_id: str) -> PlaygroundDocument:
        document = PlaygroundDocument(text=content, language_id=language_id)
        self.opened.append(document)
        return document

    async def open_file(self, path: str, language_id: str) -> PlaygroundDocument:
        if path not in self.files:
            raise FileNotFoundError(path)
        document = PlaygroundDocument(text=self.files[path], language_id=language_id, path=path)
        self.opened.append(document)
        return document

    async def show_document(self, document: PlaygroundDocument) -> None:
        self.shown.append(document)
        self.active_editor = PlaygroundEditor(document)

    def set_partial_run_affordance(self, line: Optional[int]) -> None:
        self.affordance_lines.append(line)

    def refresh_active_connection(self, name: Optional[str]) -> None:
        self.connection_names.append(name)

    def create_terminal(self, name, env=None, shell_path=None, shell_args=None) -> RecordingTerminal:
        terminal = RecordingTerminal(name, env, shell_path, shell_args)
        self.terminals.append(terminal)
        return terminal


async def wait_until(predicate: Callable[[], bool], attempts: int = 200) -> None:
    """Yield to the event loop until predicate() holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("Condition not reached")
