"""Structural clone engine: depth-first rebuild of a value graph.

Every mutable node is allocated empty and recorded in the cycle guard before
its children are visited, so cycles come back as cycles and two fields that
share a node still share one node in the clone. Immutable containers (tuples,
frozensets) are built after their children and recorded afterwards.

The traversal runs on an explicit stack of generator frames instead of the
Python call stack, so graph depth is bounded by `max_depth`, never by the
interpreter recursion limit.

Usage:
    cloner = StructuralCloner()
    copy = cloner.clone(template)

    # Or the module shortcut
    copy = structural_clone(template)
"""

from __future__ import annotations

import logging
from collections import OrderedDict, defaultdict, deque
from collections.abc import Iterable
from typing import Any, TypeVar, assert_never

from protoclone.core.guard import CycleGuard
from protoclone.core.kinds import ValueKind, classify, slot_names
from protoclone.core.types import Clone
from protoclone.core.walk import FieldPath, Frame, run_frames
from protoclone.errors import ResourceExhausted, UnsupportedFieldType

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_NODES = 1_000_000
DEFAULT_MAX_DEPTH = 10_000


def _allocate(value: Any, path: FieldPath) -> Any:
    """Create an empty instance of value's class without running __init__."""
    cls = type(value)
    try:
        return cls.__new__(cls)
    except TypeError as e:
        raise UnsupportedFieldType(
            str(path), cls, "class cannot be allocated without arguments"
        ) from e


def _copy_attributes(source: Any, target: Any, path: FieldPath) -> Frame:
    """Clone instance `__dict__` entries and set slots from source onto target.

    Writes bypass `__setattr__`, which keeps frozen dataclasses and Pydantic
    models cloneable without running validation twice.
    """
    state = getattr(source, "__dict__", None)
    if state is not None:
        target_state = target.__dict__
        for name, field in list(state.items()):
            target_state[name] = yield field, path.attr(name)
    for name in slot_names(type(source)):
        try:
            field = object.__getattribute__(source, name)
        except AttributeError:
            continue  # unset slot
        object.__setattr__(target, name, (yield field, path.attr(name)))


def _clone_composite(value: Any, path: FieldPath, guard: CycleGuard) -> Frame:
    clone = _allocate(value, path)
    guard.record(value, clone)
    yield from _copy_attributes(value, clone, path)
    return clone


def _clone_tuple(value: tuple[Any, ...], path: FieldPath, guard: CycleGuard) -> Frame:
    items = []
    for index, item in enumerate(value):
        items.append((yield item, path.index(index)))
    # A cycle through a mutable child may already have built this tuple
    existing, found = guard.resolve(value)
    if found:
        return existing
    cls = type(value)
    if cls is tuple:
        clone: Any = tuple(items)
    elif hasattr(cls, "_make"):
        clone = cls._make(items)
    else:
        clone = cls(items)
    guard.record(value, clone)
    yield from _copy_attributes(value, clone, path)
    return clone


def _clone_ordered(value: Any, path: FieldPath, guard: CycleGuard) -> Frame:
    if isinstance(value, tuple):
        return (yield from _clone_tuple(value, path, guard))

    if type(value) is list:
        clone: Any = []
    else:
        clone = _allocate(value, path)
        if isinstance(value, deque):
            deque.__init__(clone, (), value.maxlen)
    guard.record(value, clone)

    if isinstance(value, bytearray):
        clone.extend(value)
    else:
        for index, item in enumerate(value):
            clone.append((yield item, path.index(index)))
    yield from _copy_attributes(value, clone, path)
    return clone


def _clone_unordered(value: Any, path: FieldPath, guard: CycleGuard) -> Frame:
    cls = type(value)
    if isinstance(value, frozenset):
        items = []
        for item in value:
            items.append((yield item, path.member()))
        existing, found = guard.resolve(value)
        if found:
            return existing
        clone: Any = frozenset(items) if cls is frozenset else cls(items)
        guard.record(value, clone)
        return clone

    clone = set() if cls is set else _allocate(value, path)
    guard.record(value, clone)
    for item in value:
        clone.add((yield item, path.member()))
    yield from _copy_attributes(value, clone, path)
    return clone


def _clone_mapping(value: dict[Any, Any], path: FieldPath, guard: CycleGuard) -> Frame:
    if type(value) is dict:
        clone: Any = {}
    else:
        clone = _allocate(value, path)
        if isinstance(value, OrderedDict):
            OrderedDict.__init__(clone)
        if isinstance(value, defaultdict):
            clone.default_factory = value.default_factory
    guard.record(value, clone)

    for key, item in value.items():
        new_key = yield key, path.keys()
        clone[new_key] = yield item, path.key(key)
    yield from _copy_attributes(value, clone, path)
    return clone


class StructuralCloner:
    """Deep-copies arbitrary value graphs by walking them node by node.

    Preserves cycles and shared references. Rejects open resources with
    UnsupportedFieldType and pathological graphs with ResourceExhausted.

    Args:
        max_nodes: Ceiling on distinct non-primitive nodes per clone call.
        max_depth: Ceiling on traversal depth per clone call.
        extra_atomic_types: Additional immutable types to share instead of copy.
    """

    def __init__(
        self,
        max_nodes: int | None = DEFAULT_MAX_NODES,
        max_depth: int = DEFAULT_MAX_DEPTH,
        extra_atomic_types: Iterable[type] = (),
    ) -> None:
        self._max_nodes = max_nodes
        self._max_depth = max_depth
        self._extra_atomic_types = tuple(extra_atomic_types)

    def clone(self, root: T) -> Clone[T]:
        """Return a deep copy of root.

        Args:
            root: Value to clone.

        Returns:
            A graph isomorphic to root that shares no mutable node with it.

        Raises:
            UnsupportedFieldType: If a reachable value has no cloning rule.
            ResourceExhausted: If the graph is unbounded, too large, or too deep.
        """
        guard = CycleGuard(self._max_nodes)
        result = run_frames(
            root, lambda value, path: self._enter(value, path, guard), self._max_depth
        )
        logger.debug("Cloned %s structurally (%d nodes)", type(root).__qualname__, len(guard))
        return result

    def _enter(self, value: Any, path: FieldPath, guard: CycleGuard) -> tuple[Frame | None, Any]:
        """Resolve a value to either a finished clone or a frame that builds one."""
        kind = classify(value, self._extra_atomic_types)
        if kind is ValueKind.PRIMITIVE:
            return None, value
        if kind is ValueKind.UNSUPPORTED:
            raise UnsupportedFieldType(str(path), type(value))
        if kind is ValueKind.STREAM:
            raise ResourceExhausted(
                f"Cannot clone streaming source {type(value).__qualname__} at {path}"
            )

        existing, found = guard.resolve(value)
        if found:
            return None, existing

        match kind:
            case ValueKind.COMPOSITE:
                return _clone_composite(value, path, guard), None
            case ValueKind.ORDERED:
                return _clone_ordered(value, path, guard), None
            case ValueKind.UNORDERED:
                return _clone_unordered(value, path, guard), None
            case ValueKind.MAPPING:
                return _clone_mapping(value, path, guard), None
            case _:
                assert_never(kind)


def structural_clone(root: T, **options: Any) -> Clone[T]:
    """Clone root with a one-off StructuralCloner.

    Args:
        root: Value to clone.
        **options: Forwarded to StructuralCloner.

    Returns:
        Deep copy of root.
    """
    return StructuralCloner(**options).clone(root)
