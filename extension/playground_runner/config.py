"""
Configuration for the playground runner.

Uses pydantic-settings for environment variable loading. Editor hosts that
own a settings UI construct PlaygroundSettings directly and update fields
in place; the coordinator reads confirm_run_all on every run.

Invariants:
    - All settings have sensible defaults for local development
    - confirm_run_all defaults to on
    - Connection strings are never logged
"""

from __future__ import annotations

import logging
from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class WorkerBackend(Enum):
    """Supported execution worker backends."""

    HTTP = "http"
    MEMORY = "memory"


class PlaygroundSettings(BaseSettings):
    """Playground runner configuration loaded from environment."""

    # Run behaviour
    confirm_run_all: bool = Field(
        default=True,
        description="Ask for confirmation before running a playground",
    )
    use_default_template_for_playground: bool = Field(
        default=True,
        description="Prefill new playgrounds with the default template",
    )
    playground_language_id: str = Field(
        default="mongodb",
        description="Language id of playground documents",
    )

    # Shell launcher
    shell: str | None = Field(
        default=None,
        description="Shell command used to open a database shell",
    )

    # Execution worker
    worker_backend: str = Field(default=WorkerBackend.HTTP.value, description="http or memory")
    worker_url: str = Field(default="http://127.0.0.1:8765", description="Worker base URL")
    worker_timeout_seconds: float = Field(default=300.0, description="Worker request timeout")
    extension_path: str = Field(default=".", description="Install path passed to the worker")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text", description="json or text")

    model_config = {"env_prefix": "MDB_"}

    def validate_backend(self) -> None:
        """Validate worker configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        try:
            backend = WorkerBackend(self.worker_backend)
        except ValueError:
            raise ValueError(
                f"Invalid MDB_WORKER_BACKEND '{self.worker_backend}'. Must be one of: http, memory"
            )

        if backend == WorkerBackend.HTTP and not self.worker_url:
            raise ValueError("MDB_WORKER_URL is required when MDB_WORKER_BACKEND=http")

        if self.worker_timeout_seconds <= 0:
            raise ValueError("MDB_WORKER_TIMEOUT_SECONDS must be positive")

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "Playground configuration loaded",
            extra={
                "confirm_run_all": self.confirm_run_all,
                "worker_backend": self.worker_backend,
                "worker_url": self.worker_url
                if self.worker_backend == WorkerBackend.HTTP.value
                else None,
                "language_id": self.playground_language_id,
                "log_level": self.log_level,
            },
        )
