"""Tests for the prototype factory."""

from dataclasses import dataclass
from typing import Any

import pytest

from protoclone import InvalidFieldPath, PrototypeFactory, PrototypeNotFound, PrototypeRegistry


@dataclass(frozen=True)
class Badge:
    code: str


@dataclass
class Guest:
    name: str
    badge: Badge


def test_create_applies_overrides(factory: PrototypeFactory) -> None:
    john = factory.create("employee", {"name": "John", "office.suite": 100})

    assert john.name == "John"
    assert john.office.suite == 100
    assert john.office.street == "123 East Dr"


def test_create_without_overrides_matches_template(
    factory: PrototypeFactory, employee_template: Any
) -> None:
    instance = factory.create("employee")

    assert instance == employee_template
    assert instance is not employee_template


def test_overrides_never_reach_the_template(
    factory: PrototypeFactory, employee_template: Any
) -> None:
    factory.create("employee", {"name": "John", "office.city": "Paris", "skills": ["go"]})

    assert employee_template.name == ""
    assert employee_template.office.city == "London"
    assert employee_template.skills == []


def test_missing_prototype_propagates(factory: PrototypeFactory) -> None:
    with pytest.raises(PrototypeNotFound):
        factory.create("contractor", {"name": "x"})


@pytest.mark.parametrize("path", ["salary", "office.floor", "name.first", "", "office..suite"])
def test_invalid_paths_raise(factory: PrototypeFactory, path: str) -> None:
    with pytest.raises(InvalidFieldPath) as exc_info:
        factory.create("employee", {path: 1})

    assert exc_info.value.path == path


def test_frozen_field_raises_invalid_path() -> None:
    registry = PrototypeRegistry({"guest": Guest("g", Badge("A1"))})
    factory = PrototypeFactory(registry)

    with pytest.raises(InvalidFieldPath) as exc_info:
        factory.create("guest", {"badge.code": "B2"})

    assert exc_info.value.segment == "code"
    assert factory.create("guest", {"badge": Badge("B2")}).badge == Badge("B2")


def test_frozen_pydantic_model_raises_invalid_path() -> None:
    pydantic = pytest.importorskip("pydantic")

    class Office(pydantic.BaseModel):
        model_config = pydantic.ConfigDict(frozen=True)

        suite: int

    class Staff(pydantic.BaseModel):
        name: str
        office: Office

    registry = PrototypeRegistry({"staff": Staff(name="s", office=Office(suite=1))})
    factory = PrototypeFactory(registry)

    with pytest.raises(InvalidFieldPath) as exc_info:
        factory.create("staff", {"office.suite": 3})

    assert exc_info.value.segment == "suite"
    assert factory.create("staff", {"name": "Ada"}).name == "Ada"


def test_frozen_pydantic_field_raises_invalid_path() -> None:
    pydantic = pytest.importorskip("pydantic")

    class Ticket(pydantic.BaseModel):
        serial: str = pydantic.Field(frozen=True)
        holder: str = ""

    factory = PrototypeFactory(PrototypeRegistry({"ticket": Ticket(serial="T1")}))

    with pytest.raises(InvalidFieldPath):
        factory.create("ticket", {"serial": "T2"})
    assert factory.create("ticket", {"holder": "Bo"}).holder == "Bo"


def test_rejected_pydantic_assignment_raises_invalid_path() -> None:
    pydantic = pytest.importorskip("pydantic")

    class Desk(pydantic.BaseModel):
        model_config = pydantic.ConfigDict(validate_assignment=True)

        number: int

    factory = PrototypeFactory(PrototypeRegistry({"desk": Desk(number=1)}))

    with pytest.raises(InvalidFieldPath) as exc_info:
        factory.create("desk", {"number": "not a number"})

    assert "value rejected" in str(exc_info.value)
    assert factory.create("desk", {"number": 5}).number == 5


def test_factory_exposes_registry(factory: PrototypeFactory, registry: PrototypeRegistry) -> None:
    assert factory.registry is registry
