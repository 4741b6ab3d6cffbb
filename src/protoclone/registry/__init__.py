"""Prototype registry, factory, override paths, and the registry lock."""

from protoclone.registry.factory import PrototypeFactory
from protoclone.registry.lock import ReadWriteLock
from protoclone.registry.paths import assign_path, resolve_path
from protoclone.registry.registry import PrototypeRegistry

__all__ = [
    "PrototypeRegistry",
    "PrototypeFactory",
    "ReadWriteLock",
    "assign_path",
    "resolve_path",
]
