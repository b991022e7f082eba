# noqa: D401
"""Exceptions raised by Service Commander operations."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence


class ServiceCommanderError(Exception):
    """Base exception for service management errors.

    Attributes:
        service: Name of the service the failure is about (if known)
        log_file: Non-empty operation log file, set once the operation ends
    """

    def __init__(self, message: str, service: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.service = service
        self.log_file: Optional[Path] = None


class MissingServiceDefinition(ServiceCommanderError):
    """Requested service name is not in the registry."""

    def __init__(self, service: str) -> None:
        super().__init__(f"Could not find definition for service '{service}'", service)


class UnresolvedDependency(ServiceCommanderError):
    """A declared dependency name is not in the registry."""

    def __init__(self, service: str, dependency: str) -> None:
        super().__init__(
            f"Service '{service}' has unresolved dependency '{dependency}'", service
        )
        self.dependency = dependency


class DependencyStartFailed(ServiceCommanderError):
    """A dependency could not be started."""

    def __init__(self, service: str, dependency: str, cause: BaseException) -> None:
        super().__init__(
            f"Could not start dependency '{dependency}' for service '{service}': {cause}",
            service,
        )
        self.dependency = dependency
        self.cause = cause


class StartupTimeout(ServiceCommanderError):
    """Service did not become alive within its startup wait time."""

    def __init__(self, service: str, seconds: float) -> None:
        super().__init__(
            f"Timed out waiting for service '{service}' to start (waited {seconds:g}s)",
            service,
        )
        self.seconds = seconds


class StopTimeout(ServiceCommanderError):
    """Service was still alive after graceful stop and forced termination."""

    def __init__(self, service: str, seconds: float) -> None:
        super().__init__(
            f"Timed out waiting for service '{service}' to stop after {seconds:g}s. Giving up",
            service,
        )
        self.seconds = seconds


class InvalidServiceConfig(ServiceCommanderError):
    """Service definition is malformed (e.g. non-numeric port criteria)."""


class CheckFailed(ServiceCommanderError):
    """I/O failure while querying liveness."""


class UnsupportedOperation(ServiceCommanderError):
    """Batch mode, check type or operation outside the known set."""


class CyclicDependency(ServiceCommanderError):
    """Dependency graph loops back onto a service already being processed."""

    def __init__(self, chain: Sequence[str]) -> None:
        super().__init__(
            f"Cyclic dependency detected: {' -> '.join(chain)}", chain[0] if chain else None
        )
        self.chain = list(chain)


class GeneralError(ServiceCommanderError):
    """Unexpected failure, wrapped with its original message."""


__all__ = [
    "ServiceCommanderError",
    "MissingServiceDefinition",
    "UnresolvedDependency",
    "DependencyStartFailed",
    "StartupTimeout",
    "StopTimeout",
    "InvalidServiceConfig",
    "CheckFailed",
    "UnsupportedOperation",
    "CyclicDependency",
    "GeneralError",
]
