"""
Command-line entry point for the playground runner.

Usage:
    playground-runner run script.mongodb --connection-string mongodb://localhost:27017
    playground-runner run script.mongodb --connection-string ... --selection 3:5 --selection 9:9
    playground-runner new --kind search --database shop --collection orders
    playground-runner shell --connection-string mongodb://localhost:27017

Worker, confirmation and logging behaviour come from MDB_* environment
variables (see config.py). The exit code is 0 when the command succeeded.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

import json_log_formatter

from .config import PlaygroundSettings
from .connections import InMemoryConnectionController
from .console import ConsoleHost, ConsoleOutputChannel, PlaygroundEditor
from .controller import PlaygroundController
from .host import ActiveConnection
from .templates import CREATE_INDEX_TEMPLATE, PLAYGROUND_TEMPLATE, SEARCH_TEMPLATE, render_template
from .worker import HttpWorker, create_worker

logger = logging.getLogger(__name__)

CLI_CONNECTION_ID = "cli"


def setup_logging(settings: PlaygroundSettings) -> None:
    """Configure logging based on settings.

    Args:
        settings: Playground settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def parse_selection(value: str) -> tuple[int, int]:
    """Parse a 1-based inclusive "START:END" line span."""
    try:
        start_str, _, end_str = value.partition(":")
        start = int(start_str)
        end = int(end_str) if end_str else start
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid selection '{value}', expected START:END")
    if start < 1 or end < start:
        raise argparse.ArgumentTypeError(f"Invalid selection '{value}', expected 1 <= START <= END")
    return start, end


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="playground-runner",
        description="Run database playground scripts",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a playground file")
    run_parser.add_argument("file", help="Playground file to run")
    run_parser.add_argument("--connection-string", required=True, help="Driver connection string")
    run_parser.add_argument("--name", default="command line", help="Connection display name")
    run_parser.add_argument("--options", default="{}", help="Driver options as a JSON object")
    run_parser.add_argument(
        "--selection",
        action="append",
        type=parse_selection,
        default=[],
        help="Run only lines START:END (1-based, repeatable)",
    )
    run_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    new_parser = subparsers.add_parser("new", help="Print a new playground")
    new_parser.add_argument("--kind", choices=["default", "search", "index"], default="default")
    new_parser.add_argument("--database", default="test")
    new_parser.add_argument("--collection", default="my_collection")

    shell_parser = subparsers.add_parser("shell", help="Open a database shell")
    shell_parser.add_argument("--connection-string", required=True)
    shell_parser.add_argument("--name", default="command line")
    shell_parser.add_argument("--options", default="{}", help="Driver options as a JSON object")

    return parser


def _parse_options(raw: str) -> Dict[str, Any]:
    options = json.loads(raw)
    if not isinstance(options, dict):
        raise ValueError("--options must be a JSON object")
    return options


async def _connected_controller(
    settings: PlaygroundSettings,
    host: ConsoleHost,
    connection_string: str,
    name: str,
    options: Dict[str, Any],
) -> PlaygroundController:
    connections = InMemoryConnectionController()
    controller = PlaygroundController(
        host,
        connections,
        create_worker(settings),
        ConsoleOutputChannel(),
        settings=settings,
    )
    controller.activate()

    connections.add_connection(
        ActiveConnection(CLI_CONNECTION_ID, name, connection_string, options)
    )
    connections.connect(CLI_CONNECTION_ID)
    await controller.bindings.wait_idle()
    return controller


async def _shutdown(controller: PlaygroundController) -> None:
    await controller.deactivate()
    if isinstance(controller.worker, HttpWorker):
        await controller.worker.close()


async def run_file(
    settings: PlaygroundSettings,
    path: str,
    connection_string: str,
    name: str,
    options: Dict[str, Any],
    selections: List[tuple[int, int]],
    assume_yes: bool,
) -> bool:
    host = ConsoleHost(assume_yes=assume_yes)
    controller = await _connected_controller(settings, host, connection_string, name, options)
    try:
        try:
            document = await host.open_file(path, settings.playground_language_id)
        except OSError as e:
            logger.debug(f"Cannot read {path}: {e}")
            host.show_error_message(f"Unable to read file: {path}")
            return False

        host.active_editor = PlaygroundEditor(
            document,
            [document.line_range(start - 1, end - 1) for start, end in selections],
        )
        return await controller.run_all_or_selected_playground_blocks()
    finally:
        await _shutdown(controller)


async def open_shell(
    settings: PlaygroundSettings,
    connection_string: str,
    name: str,
    options: Dict[str, Any],
) -> bool:
    host = ConsoleHost()
    controller = await _connected_controller(settings, host, connection_string, name, options)
    try:
        return controller.launch_shell()
    finally:
        await _shutdown(controller)


def new_playground(kind: str, database: str, collection: str) -> str:
    if kind == "search":
        return render_template(SEARCH_TEMPLATE, database, collection)
    if kind == "index":
        return render_template(CREATE_INDEX_TEMPLATE, database, collection)
    return PLAYGROUND_TEMPLATE


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings = PlaygroundSettings()
        settings.validate_backend()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(settings)
    settings.log_config()

    if args.command == "new":
        print(new_playground(args.kind, args.database, args.collection), end="")
        sys.exit(0)

    try:
        options = _parse_options(args.options)
    except ValueError as e:
        print(f"Invalid --options: {e}", file=sys.stderr)
        sys.exit(2)

    if args.command == "run":
        ok = asyncio.run(
            run_file(
                settings,
                args.file,
                args.connection_string,
                args.name,
                options,
                args.selection,
                args.yes,
            )
        )
    else:
        ok = asyncio.run(open_shell(settings, args.connection_string, args.name, options))

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
