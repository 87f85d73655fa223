"""
Playground commands.

The PlaygroundController wires the runner's components together and exposes
the commands an editor binds to keys and menus:
- run all / run selected / run all-or-selected
- create a playground (blank, search, new index) and open one from disk
- launch a database shell against the bound connection

It also reacts to selection changes by moving the "run selected lines"
affordance.

Invariants:
    - Run commands require a focused playground document
    - The code to run is resolved when the command fires, never cached
    - activate() and deactivate() bracket the connection subscription
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from . import shell
from .binding import ConnectionBindingManager
from .config import PlaygroundSettings
from .coordinator import ExecutionCoordinator, RunRequest
from .errors import NoActiveEditorError
from .selection import SelectionSet, affordance_line
from .sink import ResultSink
from .telemetry import TelemetryController
from .templates import (
    CREATE_INDEX_TEMPLATE,
    PLAYGROUND_TEMPLATE,
    SEARCH_TEMPLATE,
    render_template,
)
from .worker.base import ExecutionWorker

if TYPE_CHECKING:
    from .host import ConnectionController, EditorHost, OutputChannel, TextEditor

logger = logging.getLogger(__name__)

NOTHING_SELECTED_MESSAGE = "Please select one or more lines in the playground."


class PlaygroundController:
    """Entry point for editor commands.

    Example:
        >>> controller = PlaygroundController(host, connections, worker, output)
        >>> controller.activate()
        >>> await controller.run_all_playground_blocks()
        True
        >>> await controller.deactivate()
    """

    def __init__(
        self,
        host: "EditorHost",
        connection_controller: "ConnectionController",
        worker: ExecutionWorker,
        output_channel: "OutputChannel",
        telemetry: Optional[TelemetryController] = None,
        settings: Optional[PlaygroundSettings] = None,
    ) -> None:
        self.host = host
        self.settings = settings or PlaygroundSettings()
        self.worker = worker
        self.bindings = ConnectionBindingManager(
            connection_controller,
            worker,
            self.settings.extension_path,
            host=host,
        )
        self.sink = ResultSink(output_channel)
        self.telemetry = telemetry or TelemetryController()
        self.coordinator = ExecutionCoordinator(
            host=host,
            bindings=self.bindings,
            worker=worker,
            sink=self.sink,
            telemetry=self.telemetry,
            settings=self.settings,
        )

    def activate(self) -> None:
        self.bindings.start()
        logger.info("Playground controller activated")

    async def deactivate(self) -> None:
        await self.bindings.stop()
        logger.info("Playground controller deactivated")

    # Selection tracking

    def on_selection_changed(self, editor: Optional["TextEditor"] = None) -> Optional[int]:
        """Move the partial-run affordance for the editor's selections.

        Editors that are not playgrounds are ignored.

        Returns:
            The affordance line, or None if cleared or ignored
        """
        editor = editor or self.host.active_editor
        if not self._is_playground(editor):
            return None

        selection = SelectionSet.from_document(editor.document, editor.selections)
        line = affordance_line(editor.document, selection)
        self.host.set_partial_run_affordance(line)
        return line

    # Run commands

    async def run_selected_playground_blocks(self) -> bool:
        try:
            editor = self._active_playground()
        except NoActiveEditorError as e:
            self.host.show_error_message(e.message)
            return False

        selection = SelectionSet.from_document(editor.document, editor.selections)
        if selection.is_empty:
            self.host.show_information_message(NOTHING_SELECTED_MESSAGE)
            return True

        return await self.coordinator.run(RunRequest(code=selection.text, is_partial=True))

    async def run_all_playground_blocks(self) -> bool:
        try:
            editor = self._active_playground()
        except NoActiveEditorError as e:
            self.host.show_error_message(e.message)
            return False

        return await self.coordinator.run(
            RunRequest(code=editor.document.get_text(), is_partial=False)
        )

    async def run_all_or_selected_playground_blocks(self) -> bool:
        try:
            editor = self._active_playground()
        except NoActiveEditorError as e:
            self.host.show_error_message(e.message)
            return False

        selection = SelectionSet.from_document(editor.document, editor.selections)
        if selection.is_empty:
            request = RunRequest(code=editor.document.get_text(), is_partial=False)
        else:
            request = RunRequest(code=selection.text, is_partial=True)

        return await self.coordinator.run(request)

    # Documents

    async def create_playground(self) -> bool:
        content = PLAYGROUND_TEMPLATE if self.settings.use_default_template_for_playground else ""
        return await self._create_playground_with_content(content)

    async def create_playground_for_search(self, database_name: str, collection_name: str) -> bool:
        content = render_template(SEARCH_TEMPLATE, database_name, collection_name)
        return await self._create_playground_with_content(content)

    async def create_playground_for_new_index(
        self, database_name: str, collection_name: str
    ) -> bool:
        content = render_template(CREATE_INDEX_TEMPLATE, database_name, collection_name)
        return await self._create_playground_with_content(content)

    async def open_playground(self, file_path: str) -> bool:
        try:
            document = await self.host.open_file(
                file_path, self.settings.playground_language_id
            )
        except OSError as e:
            logger.warning(f"Unable to read playground {file_path}: {e}")
            self.host.show_error_message(f"Unable to read file: {file_path}")
            return True

        await self.host.show_document(document)
        return True

    def launch_shell(self) -> bool:
        return shell.launch_shell(self.host, self.bindings, self.settings)

    async def _create_playground_with_content(self, content: str) -> bool:
        document = await self.host.open_document(content, self.settings.playground_language_id)
        self.sink.reveal()
        await self.host.show_document(document)
        return True

    def _is_playground(self, editor: Optional["TextEditor"]) -> bool:
        return (
            editor is not None
            and editor.document.language_id == self.settings.playground_language_id
        )

    def _active_playground(self) -> "TextEditor":
        editor = self.host.active_editor
        if not self._is_playground(editor):
            raise NoActiveEditorError(
                language_id=editor.document.language_id if editor is not None else None
            )
        return editor
