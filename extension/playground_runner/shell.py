"""
Database shell launcher.

Builds the terminal invocation that opens a database shell against the bound
connection. PowerShell and cmd receive the connection string through the
terminal environment so it never appears in the typed command; any other
shell is treated as a POSIX shell and receives it as an argument.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

if TYPE_CHECKING:
    from .binding import ConnectionBinding, ConnectionBindingManager
    from .config import PlaygroundSettings
    from .host import EditorHost

logger = logging.getLogger(__name__)

SHELL_TERMINAL_NAME = "MongoDB Shell"
CONNECTION_STRING_ENV = "MDB_CONNECTION_STRING"

NOT_CONNECTED_MESSAGE = "You need to be connected before launching the MongoDB Shell."
NO_USER_SHELL_MESSAGE = (
    "Error: No shell found, please set your default shell environment in the editor."
)
NO_SHELL_COMMAND_MESSAGE = (
    "No MongoDB shell command found. Please set the shell command in the extension settings."
)


def is_ssl_connection(driver_options: Optional[Mapping[str, Any]]) -> bool:
    return bool(
        driver_options
        and (
            driver_options.get("sslCA")
            or driver_options.get("sslCert")
            or driver_options.get("sslPass")
        )
    )


def get_ssl_options(driver_options: Mapping[str, Any]) -> List[str]:
    """Translate driver SSL options into shell flags."""
    ssl_options = ["--ssl"]

    if not driver_options.get("checkServerIdentity"):
        ssl_options.append("--sslAllowInvalidHostnames")

    if not driver_options.get("sslValidate"):
        ssl_options.append("--sslAllowInvalidCertificates")

    if driver_options.get("sslCA"):
        ssl_options.append(f"--sslCAFile={driver_options['sslCA']}")

    if driver_options.get("sslCert"):
        ssl_options.append(f"--sslPEMKeyFile={driver_options['sslCert']}")

    if driver_options.get("sslPass"):
        ssl_options.append(f"--sslPEMKeyPassword={driver_options['sslPass']}")

    return ssl_options


@dataclass(frozen=True)
class ShellInvocation:
    """How to open the shell terminal.

    Attributes:
        env: Extra terminal environment
        shell_path: Program the terminal runs instead of the user shell
        shell_args: Arguments for shell_path
        text: Command typed into the terminal once it opens
    """

    env: Dict[str, str] = field(default_factory=dict)
    shell_path: Optional[str] = None
    shell_args: List[str] = field(default_factory=list)
    text: Optional[str] = None


def build_shell_invocation(
    user_shell: str,
    shell_command: str,
    connection_string: str,
    ssl_options: List[str],
) -> ShellInvocation:
    ssl_options_string = f"{' '.join(ssl_options)} " if ssl_options else ""

    if "powershell.exe" in user_shell:
        return ShellInvocation(
            env={CONNECTION_STRING_ENV: connection_string},
            text=f"{shell_command} {ssl_options_string}$Env:{CONNECTION_STRING_ENV};",
        )

    if "cmd.exe" in user_shell:
        return ShellInvocation(
            env={CONNECTION_STRING_ENV: connection_string},
            text=f"{shell_command} {ssl_options_string}%{CONNECTION_STRING_ENV}%;",
        )

    # Anything else is assumed to be a POSIX shell.
    return ShellInvocation(
        shell_path=shell_command,
        shell_args=[connection_string, *ssl_options],
    )


def launch_shell(
    host: "EditorHost",
    bindings: "ConnectionBindingManager",
    settings: "PlaygroundSettings",
) -> bool:
    """Open a terminal running the database shell.

    Returns:
        True if a terminal was opened
    """
    binding: Optional["ConnectionBinding"] = bindings.current
    if binding is None:
        host.show_error_message(NOT_CONNECTED_MESSAGE)
        return False

    user_shell = host.user_shell
    if not user_shell:
        host.show_error_message(NO_USER_SHELL_MESSAGE)
        return False

    if not settings.shell:
        host.show_error_message(NO_SHELL_COMMAND_MESSAGE)
        return False

    ssl_options = get_ssl_options(binding.options) if is_ssl_connection(binding.options) else []
    invocation = build_shell_invocation(
        user_shell,
        settings.shell,
        binding.connection_string,
        ssl_options,
    )

    terminal = host.create_terminal(
        SHELL_TERMINAL_NAME,
        env=invocation.env or None,
        shell_path=invocation.shell_path,
        shell_args=invocation.shell_args or None,
    )
    if invocation.text is not None:
        terminal.send_text(invocation.text)
    terminal.show()

    logger.info(
        "Launched database shell",
        extra={"connection_id": binding.connection_id, "ssl": bool(ssl_options)},
    )
    return True
