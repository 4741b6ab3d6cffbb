"""Prototype factory: stamp a template, then apply field overrides.

Usage:
    factory = PrototypeFactory(registry)
    john = factory.create("employee", {"name": "John", "office.suite": 100})
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from protoclone.core.types import Clone
from protoclone.registry.paths import assign_path
from protoclone.registry.registry import PrototypeRegistry


class PrototypeFactory:
    """Builds pre-configured instances from registered prototypes.

    Args:
        registry: Registry to stamp templates from.
    """

    def __init__(self, registry: PrototypeRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> PrototypeRegistry:
        return self._registry

    def create(self, prototype_name: str, overrides: Mapping[str, Any] | None = None) -> Clone[Any]:
        """Stamp a prototype and apply overrides to the clone in place.

        Overrides are applied in mapping order. If one fails, the partially
        updated clone is discarded and never reaches the caller.

        Args:
            prototype_name: Registered prototype name.
            overrides: Dotted field path -> new value.

        Returns:
            The customised clone.

        Raises:
            PrototypeNotFound: If prototype_name is not registered.
            InvalidFieldPath: If an override path does not resolve on the clone.
        """
        instance = self._registry.stamp(prototype_name)
        for path, value in (overrides or {}).items():
            assign_path(instance, path, value)
        return instance
