"""Cloner protocol shared by every cloning strategy.

Usage:
    def stamp_with(cloner: Cloner, template: Employee) -> Employee:
        return cloner.clone(template)
"""

from __future__ import annotations

from typing import Protocol, TypeVar, runtime_checkable

from protoclone.core.types import Clone

T = TypeVar("T")


@runtime_checkable
class Cloner(Protocol):
    """Anything that turns a value into an independent deep copy."""

    def clone(self, root: T) -> Clone[T]:
        """Return a deep copy of root sharing no mutable state with it."""
        ...
