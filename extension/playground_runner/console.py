"""
Headless console host.

Implements the editor-host protocols on top of a terminal so playgrounds can
be run from the command line:
- documents are plain text buffers
- confirmation reads a yes/no answer from stdin
- Ctrl-C while a run is in progress requests cancellation
- output records are written to stdout
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import subprocess
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional, TextIO

from .host import CancellationSignal
from .selection import Position, Range

logger = logging.getLogger(__name__)


@dataclass
class PlaygroundDocument:
    """In-memory text document.

    Attributes:
        text: Full document text
        language_id: Language of the document
        path: Backing file, if any
    """

    text: str
    language_id: str = "mongodb"
    path: Optional[str] = None

    @property
    def lines(self) -> List[str]:
        return self.text.split("\n")

    def offset_at(self, position: Position) -> int:
        lines = self.lines
        line = min(max(position.line, 0), len(lines) - 1)
        offset = sum(len(text) + 1 for text in lines[:line])
        return offset + min(max(position.character, 0), len(lines[line]))

    def get_text(self, range: Optional[Range] = None) -> str:
        if range is None:
            return self.text
        return self.text[self.offset_at(range.start):self.offset_at(range.end)]

    def line_at(self, line: int) -> str:
        return self.lines[line].rstrip("\r")

    def line_range(self, first_line: int, last_line: int) -> Range:
        """Range covering whole lines first_line..last_line (zero-based)."""
        return Range.of(first_line, 0, last_line, len(self.line_at(last_line)))


@dataclass
class PlaygroundEditor:
    document: PlaygroundDocument
    selections: List[Range] = field(default_factory=list)


class ConsoleOutputChannel:
    """Output channel writing each line to a stream."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream or sys.stdout
        self.lines: List[str] = []

    def clear(self) -> None:
        self.lines = []

    def append_line(self, text: str) -> None:
        self.lines.append(text)
        print(text, file=self.stream)

    def show(self, preserve_focus: bool = True) -> None:
        self.stream.flush()


class ConsoleTerminal:
    """Terminal that runs its shell as a child process when shown."""

    def __init__(
        self,
        user_shell: str,
        env: Optional[Dict[str, str]] = None,
        shell_path: Optional[str] = None,
        shell_args: Optional[List[str]] = None,
    ) -> None:
        self.user_shell = user_shell
        self.env = {**os.environ, **(env or {})}
        self.shell_path = shell_path
        self.shell_args = shell_args or []
        self.sent: List[str] = []

    def send_text(self, text: str) -> None:
        self.sent.append(text)

    def show(self) -> None:
        if self.shell_path:
            subprocess.call([self.shell_path, *self.shell_args], env=self.env)
        for text in self.sent:
            subprocess.call([self.user_shell, "/c" if "cmd.exe" in self.user_shell else "-c", text], env=self.env)


class ConsoleHost:
    """EditorHost for command-line use."""

    def __init__(
        self,
        assume_yes: bool = False,
        stdin: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
    ) -> None:
        self.assume_yes = assume_yes
        self.stdin = stdin or sys.stdin
        self.stderr = stderr or sys.stderr
        self.stdout = stdout or sys.stdout
        self.active_editor: Optional[PlaygroundEditor] = None
        self.affordance_line: Optional[int] = None
        self.connection_name: Optional[str] = None

    @property
    def user_shell(self) -> Optional[str]:
        return os.environ.get("SHELL") or os.environ.get("COMSPEC")

    def show_error_message(self, message: str) -> None:
        print(f"error: {message}", file=self.stderr)

    def show_information_message(self, message: str) -> None:
        print(message, file=self.stderr)

    async def confirm(self, message: str) -> bool:
        if self.assume_yes:
            return True
        print(f"{message} [y/N] ", end="", file=self.stderr, flush=True)
        answer = await asyncio.get_running_loop().run_in_executor(None, self.stdin.readline)
        return answer.strip().lower() in ("y", "yes")

    @asynccontextmanager
    async def progress(self, title: str) -> AsyncIterator[CancellationSignal]:
        cancellation = CancellationSignal()
        loop = asyncio.get_running_loop()
        print(title, file=self.stderr)

        try:
            loop.add_signal_handler(signal.SIGINT, cancellation.cancel)
            installed = True
        except (NotImplementedError, RuntimeError):
            logger.debug("SIGINT cancellation unavailable on this platform")
            installed = False

        try:
            yield cancellation
        finally:
            if installed:
                loop.remove_signal_handler(signal.SIGINT)

    async def open_document(self, content: str, language_id: str) -> PlaygroundDocument:
        document = PlaygroundDocument(text=content, language_id=language_id)
        self.active_editor = PlaygroundEditor(document)
        return document

    async def open_file(self, path: str, language_id: str) -> PlaygroundDocument:
        text = Path(path).read_text(encoding="utf-8")
        document = PlaygroundDocument(text=text, language_id=language_id, path=path)
        self.active_editor = PlaygroundEditor(document)
        return document

    async def show_document(self, document: PlaygroundDocument) -> None:
        print(document.text, end="", file=self.stdout)

    def set_partial_run_affordance(self, line: Optional[int]) -> None:
        self.affordance_line = line

    def refresh_active_connection(self, name: Optional[str]) -> None:
        self.connection_name = name
        logger.debug("Active connection marker refreshed", extra={"connection": name})

    def create_terminal(
        self,
        name: str,
        env: Optional[Dict[str, str]] = None,
        shell_path: Optional[str] = None,
        shell_args: Optional[List[str]] = None,
    ) -> ConsoleTerminal:
        return ConsoleTerminal(
            self.user_shell or "/bin/sh",
            env=env,
            shell_path=shell_path,
            shell_args=shell_args,
        )
