# noqa: D401
"""Lifecycle orchestration for Service Commander.

Main state machine: starts dependencies before a service, stops dependents
before a service, launches start/stop commands and polls liveness until the
service reaches the requested state or its deadline passes.
"""

from __future__ import annotations

import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from .config import Settings, get_settings
from .errors import (
    CyclicDependency,
    DependencyStartFailed,
    GeneralError,
    MissingServiceDefinition,
    ServiceCommanderError,
    StartupTimeout,
    StopTimeout,
    UnresolvedDependency,
    UnsupportedOperation,
)
from .graph import DependencyGraph
from .launcher import ProcessLauncher, background_command, build_environment
from .liveness import LivenessChecker
from .logging import get_logger
from .registry import ServiceRegistry
from .terminator import ForcedTerminator
from .types import BatchMode, Operation, ServiceDefinition

LOGGER = get_logger(__name__)

# Names of the services currently being started (or stopped), outermost first
Chain = Tuple[str, ...]


def log_file_name(service_name: str, now: Optional[datetime] = None) -> str:
    """Sortable per-operation log file name, e.g. ``2024-05-01T09:30:00.123+0000.web.log``."""
    now = (now or datetime.now()).astimezone()
    return f"{now:%Y-%m-%dT%H:%M:%S}.{now.microsecond // 1000:03d}{now:%z}.{service_name}.log"


class LifecycleOrchestrator:
    """Runs START, STOP, RESTART, CHECK and INFO against a service registry.

    Recursion into dependencies (for start) and dependents (for stop) is
    synchronous and depth-first. Nested operations write to the log file of
    the top-level operation.
    """

    def __init__(
        self,
        registry: ServiceRegistry,
        liveness: Optional[LivenessChecker] = None,
        launcher: Optional[ProcessLauncher] = None,
        terminator: Optional[ForcedTerminator] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            registry: Service definitions
            liveness: LivenessChecker for alive/dead queries
            launcher: ProcessLauncher for start/stop commands
            terminator: ForcedTerminator for stop escalation
            settings: Poll intervals, log directory, batch helper
            clock: Monotonic clock used for deadlines
            sleep: Blocking sleep used between polls
        """
        self._registry = registry
        self._settings = settings or get_settings()
        self._graph = DependencyGraph(registry)
        self._liveness = liveness or LivenessChecker()
        self._launcher = launcher or ProcessLauncher(shell=self._settings.shell)
        self._terminator = terminator or ForcedTerminator()
        self._clock = clock
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def execute(self, operation: Operation, service_name: str) -> Optional[Path]:
        """Run one operation against a service.

        Args:
            operation: Operation to perform
            service_name: Target service name (case-sensitive)

        Returns:
            Path of the operation's log file if anything was written to it,
            otherwise None.

        Raises:
            ServiceCommanderError: On any failure. ``log_file`` is set on the
                error when a non-empty log file was produced.
        """
        if operation in (Operation.CHECK, Operation.INFO):
            try:
                if operation is Operation.CHECK:
                    self.check(service_name)
                else:
                    self.info(service_name)
            except ServiceCommanderError:
                raise
            except Exception as e:
                raise GeneralError(f"A general error has occurred: {e}", service_name) from e
            return None

        service = self._require(service_name)
        log_file = self._log_file_path(service.name)
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            if operation is Operation.START:
                self._start(service, log_file, ())
            elif operation is Operation.STOP:
                self._stop(service, log_file, ())
            elif operation is Operation.RESTART:
                self._stop(service, log_file, ())
                self._start(service, log_file, ())
            else:
                raise UnsupportedOperation(f"Unsupported operation: {operation}", service_name)
        except ServiceCommanderError as e:
            e.log_file = self._finish_log(log_file)
            raise
        except Exception as e:
            error = GeneralError(f"A general error has occurred: {e}", service_name)
            error.log_file = self._finish_log(log_file)
            raise error from e
        return self._finish_log(log_file)

    def start(self, service_name: str) -> Optional[Path]:
        """Start a service and everything it depends on."""
        return self.execute(Operation.START, service_name)

    def stop(self, service_name: str) -> Optional[Path]:
        """Stop a service and everything that depends on it."""
        return self.execute(Operation.STOP, service_name)

    def restart(self, service_name: str) -> Optional[Path]:
        """Stop then start a service."""
        return self.execute(Operation.RESTART, service_name)

    def check(self, service_name: str) -> bool:
        """Report whether a service is currently running."""
        service = self._require(service_name)
        alive = self._liveness.check(service)
        LOGGER.info(
            f"Service '{service.display_name}' is {'RUNNING' if alive else 'NOT RUNNING'}",
            service=service.name,
            alive=alive,
        )
        return alive

    def info(self, service_name: str) -> Dict[str, Any]:
        """Structured dump of a service definition."""
        service = self._require(service_name)
        data: Dict[str, Any] = {
            "name": service.name,
            "friendly_name": service.display_name,
            "source": str(service.source) if service.source else None,
            "working_directory": str(service.working_directory),
            "start_command": service.start_command,
            "startup_wait_seconds": service.startup_wait_seconds,
            "stop_command": service.stop_command,
            "shutdown_wait_seconds": service.shutdown_wait_seconds,
            "check_alive_type": service.check_alive_type.name,
            "check_alive_criteria": service.check_alive_criteria,
            "batch_mode": service.batch_mode.name,
            "dependencies": list(service.dependencies),
            "inherit_environment": service.inherit_environment,
            "environment_vars": list(service.environment_vars),
        }
        if service.batch_mode is BatchMode.BATCH_SUBMIT:
            data["batch_job_name"] = service.batch_job_name or "<default>"
            if service.batch_submit_options:
                data["batch_submit_options"] = service.batch_submit_options
        return data

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    def _start(self, service: ServiceDefinition, log_file: Path, chain: Chain) -> None:
        chain = self._enter(chain, service)

        for dependency_name in self._graph.dependencies_of(service):
            dependency = self._registry.lookup(dependency_name)
            if dependency is None:
                raise UnresolvedDependency(service.name, dependency_name)
            LOGGER.info(
                f"Attempting to start service dependency '{dependency_name}' "
                f"({dependency.display_name})...",
                service=service.name,
            )
            try:
                self._start(dependency, log_file, chain)
            except CyclicDependency:
                raise
            except Exception as e:
                raise DependencyStartFailed(service.name, dependency_name, e) from e

        if self._liveness.check(service):
            LOGGER.info(f"Service '{service.display_name}' is already running", service=service.name)
            return

        environment = build_environment(service.inherit_environment, service.environment_vars)
        command_line = self._start_command_line(service, log_file, environment)

        LOGGER.info(f"Starting service '{service.display_name}'", service=service.name)
        self._launcher.launch(command_line, service.working_directory, environment, service.name)
        started_at = self._clock()

        if service.batch_mode is BatchMode.BATCH_SUBMIT:
            # Give the submitted job a moment to show up before polling
            self._sleep(self._settings.batch_settle_seconds)

        while True:
            if self._liveness.check(service):
                LOGGER.info(
                    f"Service '{service.display_name}' successfully started",
                    service=service.name,
                    elapsed=round(self._clock() - started_at, 1),
                )
                return
            if self._clock() - started_at > service.startup_wait_seconds:
                raise StartupTimeout(service.name, service.startup_wait_seconds)
            self._sleep(self._settings.start_poll_interval)

    def _start_command_line(
        self,
        service: ServiceDefinition,
        log_file: Path,
        environment: Dict[str, str],
    ) -> str:
        if service.batch_mode is BatchMode.NO_BATCH:
            return background_command(service.start_command, log_file)
        if service.batch_mode is BatchMode.BATCH_SUBMIT:
            if service.batch_job_name:
                LOGGER.debug("Using custom batch job name", service=service.name)
                environment["SBMJOB_JOBNAME"] = service.batch_job_name.strip()
            if service.batch_submit_options:
                LOGGER.debug(
                    "Using custom batch submit options",
                    service=service.name,
                    options=service.batch_submit_options,
                )
                environment["SBMJOB_OPTS"] = service.batch_submit_options.strip()
            return f"exec {self._settings.batch_submit_helper} {service.start_command}"
        raise UnsupportedOperation(f"Unsupported batch mode: {service.batch_mode}", service.name)

    # ------------------------------------------------------------------
    # Stop
    # ------------------------------------------------------------------

    def _stop(self, service: ServiceDefinition, log_file: Path, chain: Chain) -> None:
        chain = self._enter(chain, service)

        for dependent in self._graph.dependents_of(service):
            LOGGER.info(
                f"Attempting to stop dependent service '{dependent.display_name}'...",
                service=service.name,
            )
            self._stop(dependent, log_file, chain)

        if not self._liveness.check(service):
            LOGGER.info(f"Service '{service.display_name}' is already stopped", service=service.name)
            return

        started_at = self._clock()
        if service.stop_command:
            environment = build_environment(service.inherit_environment, service.environment_vars)
            LOGGER.info(f"Stopping service '{service.display_name}'", service=service.name)
            self._launcher.launch(
                background_command(service.stop_command, log_file),
                service.working_directory,
                environment,
                service.name,
            )
        else:
            LOGGER.info(
                f"Stopping service '{service.display_name}' by ending its jobs",
                service=service.name,
            )
            self._terminator.terminate(
                service.check_alive_criteria,
                service.check_alive_type,
                service.shutdown_wait_seconds,
            )

        deadline = float(service.shutdown_wait_seconds)
        escalated = False
        while True:
            if not self._liveness.check(service):
                LOGGER.info(
                    f"Service '{service.display_name}' successfully stopped",
                    service=service.name,
                    elapsed=round(self._clock() - started_at, 1),
                )
                return
            if self._clock() - started_at > deadline:
                if escalated:
                    raise StopTimeout(service.name, deadline)
                LOGGER.warning(
                    f"Timed out waiting for service '{service.display_name}' to stop. "
                    "Will try harder",
                    service=service.name,
                )
                escalated = True
                self._terminator.terminate(
                    service.check_alive_criteria, service.check_alive_type, 0
                )
                deadline += self._settings.escalation_window_seconds
            self._sleep(self._settings.stop_poll_interval)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self, service_name: str) -> ServiceDefinition:
        service = self._registry.lookup(service_name)
        if service is None:
            raise MissingServiceDefinition(service_name)
        return service

    @staticmethod
    def _enter(chain: Chain, service: ServiceDefinition) -> Chain:
        if service.name in chain:
            raise CyclicDependency(chain[chain.index(service.name):] + (service.name,))
        return chain + (service.name,)

    def _log_file_path(self, service_name: str) -> Path:
        return Path(self._settings.logs_dir).expanduser() / log_file_name(service_name)

    def _finish_log(self, log_file: Path) -> Optional[Path]:
        """Drop an empty log file; report a non-empty one."""
        if not log_file.exists():
            return None
        if log_file.stat().st_size == 0:
            log_file.unlink(missing_ok=True)
            return None
        LOGGER.info(f"For details, see log file at: {log_file}", log_file=str(log_file))
        return log_file


__all__ = ["LifecycleOrchestrator", "log_file_name"]
