"""Visited-set cycle guard for one structural clone call.

Maps source identity to the clone already created for it. Recording a node
before its children are walked is what lets a traversal close cycles and keep
shared references shared instead of looping or duplicating.
"""

from __future__ import annotations

from typing import Any

from protoclone.errors import ResourceExhausted


class CycleGuard:
    """Ephemeral table from source node identity to clone node.

    Scoped to a single top-level clone call and discarded afterwards. Each entry
    also pins its source object, so an id cannot be recycled by the interpreter
    while the traversal is still running.

    Args:
        max_nodes: Ceiling on recorded nodes. Exceeding it raises ResourceExhausted.
    """

    def __init__(self, max_nodes: int | None = None) -> None:
        self._max_nodes = max_nodes
        self._table: dict[int, tuple[Any, Any]] = {}

    def resolve(self, source: Any) -> tuple[Any, bool]:
        """Look up the clone already created for a source node.

        Args:
            source: Source node to look up.

        Returns:
            (existing_clone, True) if the node was recorded, (None, False) otherwise.
        """
        entry = self._table.get(id(source))
        if entry is None:
            return None, False
        return entry[1], True

    def record(self, source: Any, clone: Any) -> None:
        """Record the clone created for a source node.

        Args:
            source: Source node.
            clone: Freshly allocated clone for that node.

        Raises:
            ResourceExhausted: If recording would exceed max_nodes.
        """
        key = id(source)
        if (
            self._max_nodes is not None
            and key not in self._table
            and len(self._table) >= self._max_nodes
        ):
            raise ResourceExhausted(
                f"Value graph exceeds {self._max_nodes} composite nodes", limit=self._max_nodes
            )
        self._table[key] = (source, clone)

    def __contains__(self, source: object) -> bool:
        return id(source) in self._table

    def __len__(self) -> int:
        return len(self._table)
