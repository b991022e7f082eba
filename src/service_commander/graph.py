"""Dependency lookups over the service registry."""

from __future__ import annotations

from typing import List

from .registry import ServiceRegistry
from .types import ServiceDefinition


class DependencyGraph:
    """Forward and reverse dependency lookups.

    Forward edges are the declared dependency names. Reverse edges are found
    by scanning the registry, matching names case-insensitively.
    """

    def __init__(self, registry: ServiceRegistry):
        self._registry = registry

    def dependencies_of(self, service: ServiceDefinition) -> List[str]:
        """Declared dependency names, in declaration order."""
        return list(service.dependencies)

    def dependents_of(self, service: ServiceDefinition) -> List[ServiceDefinition]:
        """Every known service that declares ``service`` as a dependency."""
        target = service.name.lower()
        return [
            candidate
            for candidate in self._registry
            if any(dep.lower() == target for dep in candidate.dependencies)
        ]


__all__ = ["DependencyGraph"]
