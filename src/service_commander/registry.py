"""Service Registry for Service Commander.

Read-only registry of service definitions, loaded from YAML files.
Each ``<service>.yaml`` file defines one service keyed by its file stem.
"""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

import yaml
from pydantic import ValidationError

from .errors import InvalidServiceConfig
from .logging import get_logger
from .types import BatchMode, CheckAliveType, ServiceDefinition

LOGGER = get_logger(__name__)

_YAML_SUFFIXES = (".yaml", ".yml")


class ServiceRegistry:
    """Immutable mapping of service name to definition.

    Lookups by name are case-sensitive.
    """

    def __init__(self, services: Mapping[str, ServiceDefinition]):
        self._services: Mapping[str, ServiceDefinition] = MappingProxyType(dict(services))

    @classmethod
    def from_definitions(cls, definitions: Iterable[ServiceDefinition]) -> "ServiceRegistry":
        """Build a registry from definitions, keyed by their names."""
        return cls({svc.name: svc for svc in definitions})

    def lookup(self, name: str) -> Optional[ServiceDefinition]:
        """Get a service definition by name."""
        return self._services.get(name)

    def get_all(self) -> Mapping[str, ServiceDefinition]:
        """Get all service definitions (read-only view)."""
        return self._services

    def __iter__(self) -> Iterator[ServiceDefinition]:
        return iter(self._services.values())

    def __contains__(self, name: object) -> bool:
        return name in self._services

    def __len__(self) -> int:
        return len(self._services)

    @property
    def service_names(self) -> List[str]:
        """Get list of all service names."""
        return list(self._services.keys())


def _parse_batch_mode(value: Any) -> BatchMode:
    if value is None or value is False:
        return BatchMode.NO_BATCH
    if value is True:
        return BatchMode.BATCH_SUBMIT
    text = str(value).strip().lower()
    if text in ("", "false", "no", "0", "no_batch"):
        return BatchMode.NO_BATCH
    if text in ("true", "yes", "1", "sbmjob", "batch_submit"):
        return BatchMode.BATCH_SUBMIT
    raise ValueError(f"unknown batch_mode {value!r}")


def _parse_check_alive_type(value: Any, criteria: str) -> CheckAliveType:
    if value is None:
        return CheckAliveType.PORT if criteria.strip().isdigit() else CheckAliveType.JOBNAME
    text = str(value).strip().lower()
    for member in CheckAliveType:
        if member.value == text:
            return member
    raise ValueError(f"unknown check_alive_type {value!r}")


def _as_str_tuple(value: Any, key: str) -> tuple:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be a list")
    return tuple(str(item) for item in value)


def parse_service_definition(name: str, data: Dict[str, Any], source: Optional[Path] = None) -> ServiceDefinition:
    """Build a ServiceDefinition from one parsed YAML document.

    Args:
        name: Service key (file stem)
        data: Parsed YAML mapping
        source: File the data came from

    Returns:
        ServiceDefinition

    Raises:
        InvalidServiceConfig: If required keys are missing or values are malformed
    """
    where = str(source) if source else name
    if not isinstance(data, dict):
        raise InvalidServiceConfig(f"Service definition in {where} is not a mapping", name)

    start_cmd = data.get("start_cmd")
    if not start_cmd:
        raise InvalidServiceConfig(f"Service '{name}' ({where}) missing 'start_cmd' field", name)

    check_alive = data.get("check_alive")
    if check_alive is None or str(check_alive).strip() == "":
        raise InvalidServiceConfig(f"Service '{name}' ({where}) missing 'check_alive' field", name)
    criteria = str(check_alive).strip()

    try:
        return ServiceDefinition(
            name=name,
            friendly_name=str(data.get("name") or ""),
            start_command=str(start_cmd),
            stop_command=data.get("stop_cmd"),
            working_directory=Path(str(data.get("dir", "."))),
            startup_wait_seconds=data.get("startup_wait_time", 60),
            shutdown_wait_seconds=data.get("stop_timeout", 45),
            check_alive_type=_parse_check_alive_type(data.get("check_alive_type"), criteria),
            check_alive_criteria=criteria,
            batch_mode=_parse_batch_mode(data.get("batch_mode")),
            batch_job_name=data.get("sbmjob_jobname"),
            batch_submit_options=data.get("sbmjob_opts"),
            dependencies=_as_str_tuple(data.get("service_dependencies"), "service_dependencies"),
            inherit_environment=bool(data.get("environment_is_inheriting_vars", True)),
            environment_vars=_as_str_tuple(data.get("environment_vars"), "environment_vars"),
            source=source,
        )
    except (ValidationError, ValueError) as e:
        raise InvalidServiceConfig(f"Invalid definition for service '{name}' ({where}): {e}", name) from e


def load_service_file(path: Path) -> ServiceDefinition:
    """Load a single service definition file."""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InvalidServiceConfig(f"Cannot parse {path}: {e}", path.stem) from e
    return parse_service_definition(path.stem, data, source=path)


def load_registry(directories: Iterable[Path]) -> ServiceRegistry:
    """Load every service definition file found in the given directories.

    Later directories override earlier ones when they define the same service.

    Args:
        directories: Directories to scan for ``*.yaml`` / ``*.yml`` files

    Returns:
        ServiceRegistry with all loaded definitions
    """
    services: Dict[str, ServiceDefinition] = {}
    for directory in directories:
        directory = Path(directory).expanduser()
        if not directory.is_dir():
            LOGGER.debug("Skipping missing services directory", directory=str(directory))
            continue

        for path in sorted(directory.iterdir()):
            if path.suffix.lower() not in _YAML_SUFFIXES or not path.is_file():
                continue
            svc = load_service_file(path)
            if svc.name in services:
                LOGGER.info(
                    "Service definition overridden",
                    service=svc.name,
                    previous=str(services[svc.name].source),
                    source=str(path),
                )
            services[svc.name] = svc

    LOGGER.debug("ServiceRegistry loaded", count=len(services))
    return ServiceRegistry(services)


__all__ = [
    "ServiceRegistry",
    "load_registry",
    "load_service_file",
    "parse_service_definition",
]
