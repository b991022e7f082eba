# noqa: D401
"""Service Commander - dependency-aware service start/stop/check.

Usage:
    from service_commander import LifecycleOrchestrator, load_registry

    registry = load_registry([Path("~/.sc/services")])
    orchestrator = LifecycleOrchestrator(registry)

    # Start a service (and its dependencies)
    log_file = orchestrator.start("web")

    # Stop it (and everything that depends on it)
    orchestrator.stop("db")
"""

__version__ = "0.1.0"

from .config import Settings, get_settings
from .errors import (
    CheckFailed,
    CyclicDependency,
    DependencyStartFailed,
    GeneralError,
    InvalidServiceConfig,
    MissingServiceDefinition,
    ServiceCommanderError,
    StartupTimeout,
    StopTimeout,
    UnresolvedDependency,
    UnsupportedOperation,
)
from .graph import DependencyGraph
from .jobs import JobQuery
from .launcher import ProcessLauncher
from .liveness import LivenessChecker
from .orchestrator import LifecycleOrchestrator
from .registry import ServiceRegistry, load_registry
from .terminator import ForcedTerminator
from .types import BatchMode, CheckAliveType, Operation, ServiceDefinition

__all__ = [
    "__version__",
    # Main classes
    "LifecycleOrchestrator",
    "ServiceRegistry",
    "DependencyGraph",
    "LivenessChecker",
    "ProcessLauncher",
    "ForcedTerminator",
    "JobQuery",
    # Config
    "Settings",
    "get_settings",
    "load_registry",
    # Types
    "ServiceDefinition",
    "CheckAliveType",
    "BatchMode",
    "Operation",
    # Errors
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
