"""Tests for the structural clone engine.

Critical Invariants:
- A clone never shares a mutable node with its source
- Shared references stay shared, cycles stay cycles
- Unclonable values fail loudly and leave the source untouched
"""

import io
import sys
from collections import OrderedDict, defaultdict, deque, namedtuple
from collections.abc import Iterator
from dataclasses import FrozenInstanceError, dataclass, field
from typing import Any

import pytest
from hypothesis import given
from hypothesis import strategies as st

from protoclone import ResourceExhausted, StructuralCloner, UnsupportedFieldType, structural_clone


@dataclass
class Address:
    street: str
    city: str
    suite: int


@dataclass
class Employee:
    name: str
    office: Address
    home: Address | None = None
    tags: list[str] = field(default_factory=list)


@dataclass
class Node:
    label: str
    next: "Node | None" = None
    children: list["Node"] = field(default_factory=list)


@dataclass(frozen=True)
class FrozenBox:
    items: list[int]


@dataclass(slots=True)
class SlottedBox:
    items: list[int]


class Vault:
    __slots__ = ("__secret", "label")

    def __init__(self, secret: list[int], label: str) -> None:
        self.__secret = secret
        self.label = label

    @property
    def secret(self) -> list[int]:
        return self.__secret


class Plain:
    def __init__(self, payload: Any) -> None:
        self.payload = payload


class NeedsArgs:
    def __new__(cls, required: Any) -> "NeedsArgs":
        return super().__new__(cls)

    def __init__(self, required: Any) -> None:
        self.required = required


class LoudKey:
    """Hashable key whose repr is unavailable."""

    def __repr__(self) -> str:
        raise RuntimeError("repr is unavailable")


Pair = namedtuple("Pair", "left right")


def _mutable_ids(value: Any, seen: dict[int, Any] | None = None) -> dict[int, Any]:
    """Collect ids of every mutable node reachable from value."""
    seen = {} if seen is None else seen
    if id(value) in seen:
        return seen
    if isinstance(value, (list, dict, set, deque, bytearray)) or hasattr(value, "__dict__"):
        seen[id(value)] = value
    if isinstance(value, dict):
        children = [*value.keys(), *value.values()]
    elif isinstance(value, (list, tuple, set, frozenset, deque)):
        children = list(value)
    elif hasattr(value, "__dict__") and not isinstance(value, type):
        children = list(vars(value).values())
    else:
        children = []
    for child in children:
        _mutable_ids(child, seen)
    return seen


@pytest.fixture
def cloner() -> StructuralCloner:
    return StructuralCloner()


@pytest.fixture
def employee() -> Employee:
    return Employee(name="Ada", office=Address("123 East Dr", "London", 4), tags=["a", "b"])


def test_clone_is_new_identity_and_deep_equal(cloner: StructuralCloner, employee: Employee) -> None:
    clone = cloner.clone(employee)

    assert clone is not employee
    assert clone == employee
    assert clone.office is not employee.office
    assert clone.tags is not employee.tags


def test_clone_shares_no_mutable_node(cloner: StructuralCloner, employee: Employee) -> None:
    clone = cloner.clone(employee)

    assert not set(_mutable_ids(clone)) & set(_mutable_ids(employee))


def test_mutating_clone_does_not_touch_source(cloner: StructuralCloner, employee: Employee) -> None:
    """Why: Independence in both directions is the whole point of a deep clone."""
    clone = cloner.clone(employee)

    clone.office.suite = 99
    clone.tags.append("c")
    assert employee.office.suite == 4
    assert employee.tags == ["a", "b"]

    employee.office.city = "Paris"
    assert clone.office.city == "London"


def test_primitives_returned_as_is(cloner: StructuralCloner) -> None:
    for value in (None, 1, 2.5, "s", b"b", True):
        assert cloner.clone(value) is value


def test_none_field_clones_to_none(cloner: StructuralCloner, employee: Employee) -> None:
    assert cloner.clone(employee).home is None


def test_shared_reference_fidelity(cloner: StructuralCloner) -> None:
    """Two fields referencing one node reference one cloned node."""
    office = Address("1 Main St", "Leeds", 1)
    employee = Employee(name="Bo", office=office, home=office)

    clone = cloner.clone(employee)

    assert clone.office is clone.home
    assert clone.office is not office


def test_shared_reference_across_containers(cloner: StructuralCloner) -> None:
    shared = [1, 2]
    source = {"a": shared, "b": [shared, shared]}

    clone = cloner.clone(source)

    assert clone["a"] is clone["b"][0] is clone["b"][1]
    assert clone["a"] is not shared


def test_direct_self_reference(cloner: StructuralCloner) -> None:
    node = Node("root")
    node.next = node

    clone = cloner.clone(node)

    assert clone.next is clone
    assert clone is not node


def test_indirect_cycle_preserves_topology(cloner: StructuralCloner) -> None:
    """Following references returns to the root at the same depth as in the source."""
    a, b, c = Node("a"), Node("b"), Node("c")
    a.next, b.next, c.next = b, c, a

    clone = cloner.clone(a)

    assert clone.next.label == "b"
    assert clone.next.next.label == "c"
    assert clone.next.next.next is clone


def test_self_containing_list(cloner: StructuralCloner) -> None:
    source = [1]
    source.append(source)

    clone = cloner.clone(source)

    assert clone[1] is clone
    assert clone is not source


def test_cycle_through_tuple(cloner: StructuralCloner) -> None:
    """Immutable containers are built after their children but still close the cycle."""
    holder = []
    wrapped = (holder, "tag")
    holder.append(wrapped)

    clone = cloner.clone(wrapped)

    assert isinstance(clone, tuple)
    assert clone[0][0] is clone
    assert clone[0] is not holder


def test_child_back_reference(cloner: StructuralCloner) -> None:
    parent = Node("parent")
    child = Node("child", next=parent)
    parent.children.append(child)

    clone = cloner.clone(parent)

    assert clone.children[0].next is clone


def test_frozen_dataclass_is_cloned(cloner: StructuralCloner) -> None:
    box = FrozenBox(items=[1, 2])

    clone = cloner.clone(box)

    assert clone == box
    assert clone.items is not box.items
    with pytest.raises(FrozenInstanceError):
        clone.items = []


def test_slotted_dataclass_is_cloned(cloner: StructuralCloner) -> None:
    box = SlottedBox(items=[1])

    clone = cloner.clone(box)

    assert clone == box
    assert clone.items is not box.items


def test_private_slots_are_cloned(cloner: StructuralCloner) -> None:
    vault = Vault(secret=[1, 2], label="v")

    clone = cloner.clone(vault)

    assert clone.secret == [1, 2]
    assert clone.secret is not vault.secret
    assert clone.label == "v"


def test_class_requiring_new_arguments_is_unsupported(cloner: StructuralCloner) -> None:
    source = NeedsArgs(required={"k": [1]})

    with pytest.raises(UnsupportedFieldType):
        cloner.clone(source)


def test_plain_object_is_cloned(cloner: StructuralCloner) -> None:
    plain = Plain({"k": [1]})
    clone = cloner.clone(plain)
    assert clone.payload == {"k": [1]}
    assert clone.payload is not plain.payload


def test_collections_keep_their_shape(cloner: StructuralCloner) -> None:
    source = {
        "pair": Pair([1], [2]),
        "queue": deque([1, 2, 3], maxlen=5),
        "groups": defaultdict(list, {"x": [1]}),
        "ordered": OrderedDict([("b", 1), ("a", 2)]),
        "members": {1, 2, 3},
        "frozen": frozenset({"x", "y"}),
        "raw": bytearray(b"abc"),
        "nested": ([1], (2, [3])),
    }

    clone = cloner.clone(source)

    assert clone == source
    assert type(clone["pair"]) is Pair
    assert clone["pair"].left is not source["pair"].left
    assert clone["queue"].maxlen == 5
    assert clone["groups"].default_factory is list
    assert list(clone["ordered"]) == ["b", "a"]
    assert type(clone["ordered"]) is OrderedDict
    assert clone["raw"] is not source["raw"]
    assert clone["nested"][1][1] is not source["nested"][1][1]


def test_dict_keys_are_cloned(cloner: StructuralCloner) -> None:
    key = Pair(1, 2)
    clone = cloner.clone({key: "v"})

    assert clone == {key: "v"}


def test_dict_key_repr_is_not_called_while_cloning(cloner: StructuralCloner) -> None:
    """Why: key paths are only rendered for error messages."""
    source = {LoudKey(): [1, 2]}

    clone = cloner.clone(source)

    [(key, value)] = clone.items()
    assert type(key) is LoudKey
    assert value == [1, 2]
    assert value is not next(iter(source.values()))


def test_error_path_under_key_without_repr(cloner: StructuralCloner) -> None:
    with pytest.raises(UnsupportedFieldType) as exc_info:
        cloner.clone({"outer": {LoudKey(): io.StringIO()}})

    assert exc_info.value.path == "root['outer'][<LoudKey key>]"


def test_set_elements_are_independent(cloner: StructuralCloner) -> None:
    element = Pair(1, 2)
    clone = cloner.clone({element})

    assert clone == {element}


def test_unsupported_field_names_its_path(cloner: StructuralCloner) -> None:
    handle = io.StringIO()
    employee = Employee(name="x", office=Address("s", "c", 1))
    employee.office.street = handle

    with pytest.raises(UnsupportedFieldType) as exc_info:
        cloner.clone(employee)

    assert exc_info.value.path == "root.office.street"
    assert exc_info.value.value_type is io.StringIO
    assert employee.office.street is handle


def test_streaming_source_is_resource_exhausted(cloner: StructuralCloner) -> None:
    def counter() -> Iterator[int]:
        n = 0
        while True:
            yield n
            n += 1

    with pytest.raises(ResourceExhausted):
        cloner.clone({"source": counter()})


def test_max_nodes_ceiling() -> None:
    cloner = StructuralCloner(max_nodes=3)

    assert cloner.clone([[1], [2]]) == [[1], [2]]
    with pytest.raises(ResourceExhausted) as exc_info:
        cloner.clone([[1], [2], [3]])
    assert exc_info.value.limit == 3


def test_max_depth_ceiling() -> None:
    nested = []
    for _ in range(20):
        nested = [nested]

    with pytest.raises(ResourceExhausted):
        StructuralCloner(max_depth=10).clone(nested)
    assert StructuralCloner(max_depth=30).clone(nested) == nested


def test_depth_beyond_interpreter_recursion_limit(cloner: StructuralCloner) -> None:
    """Why: traversal runs on an explicit stack, so long chains must not hit RecursionError."""
    head = Node("0")
    tail = head
    for index in range(1, sys.getrecursionlimit() * 3):
        tail.next = Node(str(index))
        tail = tail.next

    clone = cloner.clone(head)

    length = 0
    node = clone
    while node is not None:
        length += 1
        node = node.next
    assert length == sys.getrecursionlimit() * 3


def test_failed_clone_leaves_cloner_reusable(cloner: StructuralCloner, employee: Employee) -> None:
    with pytest.raises(UnsupportedFieldType):
        cloner.clone([employee, io.BytesIO()])

    assert cloner.clone(employee) == employee


def test_clones_are_deterministic(cloner: StructuralCloner, employee: Employee) -> None:
    first = cloner.clone(employee)
    second = cloner.clone(employee)

    assert first == second
    assert first is not second
    assert first.office is not second.office


def test_extra_atomic_types_are_shared() -> None:
    office = Address("s", "c", 1)
    employee = Employee(name="x", office=office)

    clone = StructuralCloner(extra_atomic_types=(Address,)).clone(employee)

    assert clone.office is office


def test_structural_clone_shortcut(employee: Employee) -> None:
    assert structural_clone(employee) == employee
    with pytest.raises(ResourceExhausted):
        structural_clone([[[]]], max_depth=2)


def test_pydantic_model_is_cloned(cloner: StructuralCloner) -> None:
    pydantic = pytest.importorskip("pydantic")

    class Office(pydantic.BaseModel):
        street: str
        rooms: list[int] = []

    class Staff(pydantic.BaseModel):
        name: str
        office: Office

    staff = Staff(name="Ada", office=Office(street="1 Main St", rooms=[1, 2]))

    clone = cloner.clone(staff)

    assert clone == staff
    assert clone.office is not staff.office
    assert clone.office.rooms is not staff.office.rooms
    assert clone.model_fields_set == staff.model_fields_set
    clone.office.rooms.append(3)
    assert staff.office.rooms == [1, 2]


json_values = st.recursive(
    st.none() | st.booleans() | st.integers() | st.text(max_size=5),
    lambda children: st.lists(children, max_size=4)
    | st.dictionaries(st.text(max_size=3), children, max_size=4),
    max_leaves=20,
)


@given(json_values)
def test_property_clone_equal_and_disjoint(value: object) -> None:
    clone = structural_clone(value)

    assert clone == value
    assert not set(_mutable_ids(clone)) & set(_mutable_ids(value))
