"""Tests for the cycle guard."""

import pytest

from protoclone import ResourceExhausted
from protoclone.core import CycleGuard


def test_resolve_before_and_after_record() -> None:
    guard = CycleGuard()
    source, clone = [], []

    assert guard.resolve(source) == (None, False)
    guard.record(source, clone)

    existing, found = guard.resolve(source)
    assert found
    assert existing is clone
    assert source in guard
    assert len(guard) == 1


def test_identity_not_equality() -> None:
    """Two equal but distinct nodes are separate entries."""
    guard = CycleGuard()
    a, b = [1], [1]
    guard.record(a, [1])

    assert guard.resolve(b) == (None, False)


def test_max_nodes_ceiling() -> None:
    guard = CycleGuard(max_nodes=2)
    guard.record([], [])
    guard.record([], [])

    with pytest.raises(ResourceExhausted) as exc_info:
        guard.record([], [])
    assert exc_info.value.limit == 2
    assert len(guard) == 2


def test_rerecording_same_node_does_not_count() -> None:
    guard = CycleGuard(max_nodes=1)
    node = []
    guard.record(node, [])
    guard.record(node, [])

    assert len(guard) == 1
