# noqa: D104
"""Pytest fixtures for Service Commander tests."""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

from service_commander.config import Settings
from service_commander.orchestrator import LifecycleOrchestrator
from service_commander.registry import ServiceRegistry
from service_commander.types import CheckAliveType, ServiceDefinition


class FakeClock:
    """Monotonic clock whose sleep just advances time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class World:
    """Simulated set of external processes.

    Services listed in ``responsive`` react to their own start/stop commands;
    ``delay`` postpones that reaction by a number of seconds.
    """

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.alive: Dict[str, bool] = {}
        self.pending: Dict[str, Tuple[float, bool]] = {}
        self.responsive: set = set()
        self.killable: set = set()
        self.delay: Dict[str, float] = {}
        self.output: Dict[str, str] = {}
        self.events: List[Tuple[str, str]] = []

    def is_alive(self, name: str) -> bool:
        if name in self.pending and self.clock.now >= self.pending[name][0]:
            self.alive[name] = self.pending.pop(name)[1]
        return self.alive.get(name, False)

    def transition(self, name: str, value: bool) -> None:
        self.pending[name] = (self.clock.now + self.delay.get(name, 0.0), value)


class FakeLiveness:
    def __init__(self, world: World) -> None:
        self.world = world
        self.checks: List[str] = []

    def check(self, service: ServiceDefinition) -> bool:
        self.checks.append(service.name)
        return self.world.is_alive(service.name)


class FakeLauncher:
    def __init__(self, world: World) -> None:
        self.world = world
        self.calls: List[Dict[str, Any]] = []

    def launch(self, command_line, working_directory, environment, service_name=None) -> None:
        self.calls.append(
            {
                "command_line": command_line,
                "working_directory": working_directory,
                "environment": dict(environment),
                "service": service_name,
            }
        )
        kind = "stop" if f"stop-{service_name}" in command_line else "start"
        self.world.events.append((kind, service_name))

        tokens = shlex.split(command_line)
        if ">>" in tokens and service_name in self.world.output:
            log_path = Path(tokens[tokens.index(">>") + 1])
            with log_path.open("a") as f:
                f.write(self.world.output[service_name])

        if service_name in self.world.responsive:
            self.world.transition(service_name, kind == "start")


class FakeTerminator:
    def __init__(self, world: World, registry_ref: Dict[str, str]) -> None:
        self.world = world
        self.by_criteria = registry_ref
        self.calls: List[Tuple[str, CheckAliveType, float]] = []

    def terminate(self, criteria, check_alive_type, grace_period_seconds) -> None:
        self.calls.append((criteria, check_alive_type, grace_period_seconds))
        name = self.by_criteria.get(criteria)
        self.world.events.append(("terminate", name))
        if name in self.world.killable:
            self.world.alive[name] = False


def make_service(name: str, **overrides: Any) -> ServiceDefinition:
    """Service whose commands are tagged with its name."""
    data: Dict[str, Any] = {
        "name": name,
        "friendly_name": f"{name.capitalize()} Service",
        "start_command": f"start-{name}",
        "stop_command": f"stop-{name}",
        "startup_wait_seconds": 10,
        "shutdown_wait_seconds": 5,
        "check_alive_type": CheckAliveType.JOBNAME,
        "check_alive_criteria": f"{name}-job",
        "inherit_environment": False,
    }
    data.update(overrides)
    return ServiceDefinition(**data)


class Harness:
    """Orchestrator wired to fakes."""

    def __init__(self, settings: Settings, services: List[ServiceDefinition]) -> None:
        self.clock = FakeClock()
        self.world = World(self.clock)
        self.registry = ServiceRegistry.from_definitions(services)
        self.liveness = FakeLiveness(self.world)
        self.launcher = FakeLauncher(self.world)
        self.terminator = FakeTerminator(
            self.world, {svc.check_alive_criteria: svc.name for svc in services}
        )
        self.settings = settings
        self.orchestrator = LifecycleOrchestrator(
            self.registry,
            liveness=self.liveness,
            launcher=self.launcher,
            terminator=self.terminator,
            settings=settings,
            clock=self.clock,
            sleep=self.clock.sleep,
        )

    def launched(self, kind: Optional[str] = None) -> List[str]:
        return [name for k, name in self.world.events if kind is None or k == kind]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temporary log directory."""
    return Settings(
        services_dirs=[tmp_path / "services"],
        logs_dir=tmp_path / "logs",
        batch_submit_helper="sc-sbmjob",
        batch_settle_seconds=5.0,
        start_poll_interval=1.0,
        stop_poll_interval=2.5,
        escalation_window_seconds=20.0,
    )


@pytest.fixture
def harness(settings: Settings):
    """Factory building a Harness for a list of services."""

    def _build(*services: ServiceDefinition) -> Harness:
        return Harness(settings, list(services))

    return _build
