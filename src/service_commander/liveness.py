"""Liveness checks for Service Commander.

Answers whether a service's underlying process currently exists, either by
listening port or by job-name pattern.
"""

from __future__ import annotations

from typing import Optional

import psutil

from .errors import CheckFailed, InvalidServiceConfig, UnsupportedOperation
from .jobs import JobQuery
from .logging import get_logger
from .types import CheckAliveType, ServiceDefinition

LOGGER = get_logger(__name__)


def parse_port(criteria: str, service: Optional[str] = None) -> int:
    """Parse PORT check criteria into a port number.

    Raises:
        InvalidServiceConfig: If the criteria is not a valid TCP port
    """
    try:
        port = int(str(criteria).strip())
    except ValueError:
        raise InvalidServiceConfig(
            f"Invalid data for port number criteria for service '{service}': {criteria}",
            service,
        )
    if not 0 < port < 65536:
        raise InvalidServiceConfig(
            f"Port number out of range for service '{service}': {criteria}", service
        )
    return port


class LivenessChecker:
    """Point-in-time liveness queries."""

    def __init__(self, job_query: Optional[JobQuery] = None):
        self._jobs = job_query or JobQuery()

    def is_alive(
        self,
        check_type: CheckAliveType,
        criteria: str,
        service: Optional[str] = None,
    ) -> bool:
        """Check whether a service is alive.

        Args:
            check_type: Liveness strategy
            criteria: Port number or job-name pattern
            service: Service name, for error messages

        Returns:
            True if the service's process currently exists

        Raises:
            InvalidServiceConfig: Malformed criteria
            CheckFailed: The underlying query failed
            UnsupportedOperation: Unknown check type
        """
        try:
            if check_type is CheckAliveType.PORT:
                return self._jobs.is_listening(parse_port(criteria, service))
            if check_type is CheckAliveType.JOBNAME:
                if not criteria.strip():
                    raise InvalidServiceConfig(
                        f"Empty job name criteria for service '{service}'", service
                    )
                return bool(self._jobs.jobs_matching(criteria.strip()))
        except (psutil.Error, OSError) as e:
            raise CheckFailed(
                f"Error occurred while checking status of service '{service}': {e}", service
            ) from e
        raise UnsupportedOperation(f"Unsupported check-alive type: {check_type}", service)

    def check(self, service: ServiceDefinition) -> bool:
        """Check liveness using a service's own definition."""
        alive = self.is_alive(
            service.check_alive_type, service.check_alive_criteria, service.name
        )
        LOGGER.debug("Liveness checked", service=service.name, alive=alive)
        return alive


__all__ = ["LivenessChecker", "parse_port"]
