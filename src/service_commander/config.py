"""Application-wide configuration management using Pydantic settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_services_dirs() -> List[Path]:
    return [Path("/etc/sc/services"), Path.home() / ".sc" / "services"]


class Settings(BaseSettings):
    """Central configuration for Service Commander.

    Every field can be overridden with an ``SC_``-prefixed environment variable
    (e.g. ``SC_LOGS_DIR``) or from a ``.env`` file.
    """

    model_config = SettingsConfigDict(env_prefix="SC_", env_file=".env", extra="ignore")

    # Where service definitions and operation logs live
    services_dirs: List[Path] = Field(default_factory=_default_services_dirs)
    logs_dir: Path = Field(default_factory=lambda: Path.home() / ".sc" / "logs")

    # Launching
    shell: str = "/bin/sh"
    batch_submit_helper: str = "sc-sbmjob"
    batch_settle_seconds: float = 5.0

    # Polling
    start_poll_interval: float = 1.0
    stop_poll_interval: float = 2.5
    escalation_window_seconds: float = 20.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = False


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


__all__ = ["Settings", "get_settings"]
