"""Named-prototype registry: lookup and clone as one operation.

Usage:
    registry = PrototypeRegistry({"employee": Employee(name="", office=head_office)})
    ada = registry.stamp("employee")
    ada.name = "Ada"                      # template untouched

    # Opt into serialization-based isolation for one stamp
    bob = registry.stamp("employee", cloner=SerializationCloner())
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from protoclone.core.protocol import Cloner
from protoclone.core.structural import StructuralCloner
from protoclone.core.types import Clone
from protoclone.errors import PrototypeNotFound
from protoclone.registry.lock import ReadWriteLock

logger = logging.getLogger(__name__)


class PrototypeRegistry:
    """Maps names to template values and hands out clones of them.

    The registry owns exactly the object it was given at registration and never
    returns it: every stamp is a fresh clone. Templates are replaced only by
    re-registering under the same name.

    Locking is per instance: stamps share a read lock for the whole clone, so a
    template cannot be replaced or removed while it is being copied; register
    and unregister take the write lock.

    Args:
        prototypes: Initial name -> template pairs.
        cloner: Default cloning strategy (default: StructuralCloner()).
    """

    def __init__(
        self,
        prototypes: Mapping[str, Any] | None = None,
        *,
        cloner: Cloner | None = None,
    ) -> None:
        self._prototypes: dict[str, Any] = {}
        self._lock = ReadWriteLock()
        self._cloner: Cloner = cloner if cloner is not None else StructuralCloner()
        for name, template in (prototypes or {}).items():
            self.register(name, template)

    @property
    def cloner(self) -> Cloner:
        return self._cloner

    def register(self, name: str, template: Any) -> None:
        """Store template under name, replacing any previous template.

        The template is stored as is; callers should not mutate it afterwards.

        Args:
            name: Prototype name.
            template: Template value.

        Raises:
            ValueError: If name is not a non-empty string.
        """
        if not isinstance(name, str) or not name:
            raise ValueError(f"Prototype name must be a non-empty string, got {name!r}")
        with self._lock.write():
            replaced = name in self._prototypes
            self._prototypes[name] = template
        logger.debug(
            "%s prototype %r (%s)",
            "Replaced" if replaced else "Registered",
            name,
            type(template).__qualname__,
        )

    def unregister(self, name: str) -> None:
        """Remove the template registered under name.

        Args:
            name: Prototype name.

        Raises:
            PrototypeNotFound: If nothing is registered under name.
        """
        with self._lock.write():
            if name not in self._prototypes:
                raise PrototypeNotFound(name)
            del self._prototypes[name]
        logger.debug("Unregistered prototype %r", name)

    def stamp(self, name: str, *, cloner: Cloner | None = None) -> Clone[Any]:
        """Clone the template registered under name.

        Args:
            name: Prototype name.
            cloner: Strategy for this call only (default: the registry's cloner).

        Returns:
            A fresh clone owned exclusively by the caller.

        Raises:
            PrototypeNotFound: If nothing is registered under name.
        """
        strategy = cloner if cloner is not None else self._cloner
        with self._lock.read():
            try:
                template = self._prototypes[name]
            except KeyError:
                raise PrototypeNotFound(name) from None
            instance = strategy.clone(template)
        logger.debug("Stamped prototype %r with %s", name, type(strategy).__name__)
        return instance

    def names(self) -> list[str]:
        """Snapshot of registered names, sorted.

        Returns:
            Registered prototype names.
        """
        with self._lock.read():
            return sorted(self._prototypes)

    def __contains__(self, name: object) -> bool:
        with self._lock.read():
            return name in self._prototypes

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._prototypes)
