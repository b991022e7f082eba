# noqa: D401
"""Type definitions for Service Commander.

This module defines the core data structures for service management:
service definitions, the liveness/batch strategy enums and operations.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class Operation(Enum):
    """One-shot operation requested against a service."""

    START = "start"
    STOP = "stop"
    RESTART = "restart"
    CHECK = "check"
    INFO = "info"


class CheckAliveType(Enum):
    """How to decide whether a service is currently alive."""

    PORT = "port"  # Some process is listening on a TCP port
    JOBNAME = "jobname"  # Some process matches a job-name pattern


class BatchMode(Enum):
    """How the start command is launched."""

    NO_BATCH = "no_batch"  # nohup'd directly from a shell
    BATCH_SUBMIT = "batch_submit"  # handed to the batch submission helper


class ServiceDefinition(BaseModel):
    """Definition of a manageable service.

    Attributes:
        name: Unique key (e.g., "db", "web")
        friendly_name: Human-readable name
        start_command: Shell command that starts the service
        stop_command: Shell command that stops it (None means stop by force only)
        working_directory: Directory the commands run in
        startup_wait_seconds: Max time to wait for the service to become alive
        shutdown_wait_seconds: Max time to wait for the service to go away
        check_alive_type: Liveness strategy
        check_alive_criteria: Port number or job-name pattern
        batch_mode: Launch strategy
        batch_job_name: Job name passed to the batch submission helper
        batch_submit_options: Extra options passed to the batch submission helper
        dependencies: Services that must be running first, in order
        inherit_environment: Whether the child inherits our environment
        environment_vars: KEY=VALUE entries applied after inherited vars
        source: File the definition was loaded from
    """

    model_config = ConfigDict(frozen=True)

    name: str
    friendly_name: str = Field(default="", validate_default=True)
    start_command: str
    stop_command: Optional[str] = None
    working_directory: Path = Path(".")
    startup_wait_seconds: int = Field(default=60, ge=0)
    shutdown_wait_seconds: int = Field(default=45, ge=0)
    check_alive_type: CheckAliveType
    check_alive_criteria: str
    batch_mode: BatchMode = BatchMode.NO_BATCH
    batch_job_name: Optional[str] = None
    batch_submit_options: Optional[str] = None
    dependencies: Tuple[str, ...] = ()
    inherit_environment: bool = True
    environment_vars: Tuple[str, ...] = ()
    source: Optional[Path] = None

    @field_validator("friendly_name", mode="after")
    @classmethod
    def default_friendly_name(cls, v: str, info: ValidationInfo) -> str:
        """Fall back to the service name when no display name is given."""
        return v or info.data.get("name", "")

    @field_validator("stop_command", "batch_job_name", "batch_submit_options", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat empty strings as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("environment_vars", mode="after")
    @classmethod
    def validate_environment_vars(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        """Require KEY=VALUE entries."""
        for entry in v:
            if "=" not in entry or entry.startswith("="):
                raise ValueError(f"environment variable must be KEY=VALUE: {entry!r}")
        return v

    @property
    def display_name(self) -> str:
        """Name used in user-facing messages."""
        return self.friendly_name or self.name
