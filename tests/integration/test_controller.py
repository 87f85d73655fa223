"""
Integration tests for the playground commands.

These tests wire a PlaygroundController to the in-memory connection
controller, the in-memory worker and a recording host, and drive it the way
an editor would: connect, move selections, fire commands.
"""

import pytest

from extension.playground_runner.config import PlaygroundSettings
from extension.playground_runner.connections import InMemoryConnectionController
from extension.playground_runner.controller import NOTHING_SELECTED_MESSAGE, PlaygroundController
from extension.playground_runner.errors import NO_ACTIVE_EDITOR_MESSAGE, NO_CONNECTION_MESSAGE
from extension.playground_runner.host import ActiveConnection
from extension.playground_runner.selection import Range
from extension.playground_runner.telemetry import TelemetryController
from extension.playground_runner.templates import PLAYGROUND_TEMPLATE
from extension.playground_runner.worker.memory import InMemoryWorker, records

from tests.fakes import FakeHost, RecordingOutputChannel

SCRIPT = "use('shop');\ndb.orders.find();\ndb.orders.countDocuments();"


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def worker():
    return InMemoryWorker()


@pytest.fixture
def output():
    return RecordingOutputChannel()


@pytest.fixture
def events():
    return []


@pytest.fixture
def connections():
    controller = InMemoryConnectionController()
    controller.add_connection(
        ActiveConnection("local", "Local", "mongodb://localhost:27017")
    )
    return controller


@pytest.fixture
def controller(host, connections, worker, output, events):
    controller = PlaygroundController(
        host,
        connections,
        worker,
        output,
        telemetry=TelemetryController(sender=lambda event, props: events.append(props)),
        settings=PlaygroundSettings(confirm_run_all=False, shell="mongosh"),
    )
    controller.activate()
    return controller


@pytest.fixture
async def connected(controller, connections):
    connections.connect("local")
    await controller.bindings.wait_idle()
    return controller


class TestRunCommands:
    """Tests for the run commands."""

    @pytest.mark.asyncio
    async def test_run_all(self, connected, host, worker, output, events):
        host.open_playground(SCRIPT)
        worker.set_result(SCRIPT, records("[]", "0"))

        assert await connected.run_all_playground_blocks() is True

        assert worker.executed_code() == [SCRIPT]
        assert output.lines == ["[]", "0"]
        assert events == [{"type": "other", "partial": False, "error": False}]

    @pytest.mark.asyncio
    async def test_run_selected_in_document_order(self, connected, host, worker, events):
        """Selections made bottom-up still run top-down."""
        editor = host.open_playground(SCRIPT)
        document = editor.document
        editor.selections = [document.line_range(2, 2), document.line_range(0, 0)]

        assert await connected.run_selected_playground_blocks() is True

        assert worker.executed_code() == ["use('shop');\ndb.orders.countDocuments();"]
        assert events[0]["partial"] is True

    @pytest.mark.asyncio
    async def test_run_selected_with_nothing_selected(self, connected, host, worker):
        host.open_playground(SCRIPT, selections=[Range.of(1, 2, 1, 2)])

        assert await connected.run_selected_playground_blocks() is True

        assert host.infos == [NOTHING_SELECTED_MESSAGE]
        assert worker.executed_code() == []

    @pytest.mark.asyncio
    async def test_run_all_or_selected(self, connected, host, worker):
        editor = host.open_playground(SCRIPT)

        await connected.run_all_or_selected_playground_blocks()
        editor.selections = [editor.document.line_range(1, 1)]
        await connected.run_all_or_selected_playground_blocks()

        assert worker.executed_code() == [SCRIPT, "db.orders.find();"]

    @pytest.mark.asyncio
    async def test_requires_playground_editor(self, connected, host, worker):
        host.open_playground("print('hi')", language_id="javascript")

        assert await connected.run_all_playground_blocks() is False
        assert await connected.run_selected_playground_blocks() is False

        assert host.errors == [NO_ACTIVE_EDITOR_MESSAGE, NO_ACTIVE_EDITOR_MESSAGE]
        assert worker.executed_code() == []

    @pytest.mark.asyncio
    async def test_requires_connection(self, controller, host, worker, output):
        host.open_playground(SCRIPT)

        assert await controller.run_all_playground_blocks() is False

        assert host.errors == [NO_CONNECTION_MESSAGE]
        assert not output.touched

    @pytest.mark.asyncio
    async def test_confirmation_setting_is_live(self, connected, host):
        """Changing the setting applies to the next run."""
        host.open_playground(SCRIPT)
        await connected.run_all_playground_blocks()

        connected.settings.confirm_run_all = True
        host.confirm_answer = False

        assert await connected.run_all_playground_blocks() is False
        assert len(host.prompts) == 1

    @pytest.mark.asyncio
    async def test_switching_connection_between_runs(self, connected, connections, host, worker):
        connections.add_connection(
            ActiveConnection("atlas", "Atlas", "mongodb+srv://cluster0.example.net")
        )
        host.open_playground(SCRIPT)

        connections.connect("atlas")
        await connected.bindings.wait_idle()
        await connected.run_all_playground_blocks()

        assert worker.connection_string == "mongodb+srv://cluster0.example.net"
        assert host.connection_names == ["Local", "Atlas"]


class TestSelectionAffordance:
    """Tests for selection tracking."""

    def test_places_and_clears_affordance(self, controller, host):
        editor = host.open_playground(SCRIPT)

        editor.selections = [editor.document.line_range(1, 2)]
        assert controller.on_selection_changed() == 1

        editor.selections = [Range.of(1, 0, 1, 3)]
        assert controller.on_selection_changed() is None

        assert host.affordance_lines == [1, None]

    def test_ignores_other_languages(self, controller, host):
        host.open_playground("x = 1", language_id="python")

        assert controller.on_selection_changed() is None
        assert host.affordance_lines == []


class TestDocumentCommands:
    """Tests for playground creation and opening."""

    @pytest.mark.asyncio
    async def test_create_playground(self, controller, host, output):
        assert await controller.create_playground() is True

        document = host.shown[0]
        assert document.text == PLAYGROUND_TEMPLATE
        assert document.language_id == "mongodb"
        assert output.show_count == 1

    @pytest.mark.asyncio
    async def test_create_blank_playground(self, controller, host):
        controller.settings.use_default_template_for_playground = False

        await controller.create_playground()

        assert host.shown[0].text == ""

    @pytest.mark.asyncio
    async def test_create_search_and_index_playgrounds(self, controller, host):
        await controller.create_playground_for_search("shop", "orders")
        await controller.create_playground_for_new_index("shop", "orders")

        search, index = host.shown
        assert "db.getCollection('orders')" in search.text
        assert ".createIndex(" in index.text

    @pytest.mark.asyncio
    async def test_open_playground(self, controller, host):
        host.files["/work/orders.mongodb"] = SCRIPT

        assert await controller.open_playground("/work/orders.mongodb") is True

        assert host.active_editor.document.text == SCRIPT

    @pytest.mark.asyncio
    async def test_opened_file_uses_configured_language(self, controller, host, connections, worker):
        """A file opened with a custom language id is runnable as a playground."""
        controller.settings.playground_language_id = "mongodb-custom"
        host.files["/work/orders.js"] = SCRIPT
        connections.connect("local")
        await controller.bindings.wait_idle()

        await controller.open_playground("/work/orders.js")

        assert host.active_editor.document.language_id == "mongodb-custom"
        assert await controller.run_all_playground_blocks() is True
        assert worker.executed_code() == [SCRIPT]

    @pytest.mark.asyncio
    async def test_open_missing_playground(self, controller, host):
        assert await controller.open_playground("/work/missing.mongodb") is True

        assert host.errors == ["Unable to read file: /work/missing.mongodb"]
        assert host.shown == []


class TestLifecycle:
    """Tests for activate / deactivate and the shell command."""

    @pytest.mark.asyncio
    async def test_deactivate_stops_rebinding(self, controller, connections, worker):
        await controller.deactivate()

        connections.connect("local")
        await controller.bindings.wait_idle()

        assert connections.listener_count == 0
        assert worker.calls == []

    @pytest.mark.asyncio
    async def test_launch_shell(self, connected, host):
        assert connected.launch_shell() is True

        assert host.terminals[0].shell_args == ["mongodb://localhost:27017"]
