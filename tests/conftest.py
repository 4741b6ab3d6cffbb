"""Shared test fixtures."""

import sys

import pytest

# Ensure src is in path
sys.path.insert(0, "src")

from dataclasses import dataclass, field

from protoclone import PrototypeFactory, PrototypeRegistry


@dataclass
class FixtureAddress:
    street: str
    city: str
    suite: int


@dataclass
class FixtureEmployee:
    name: str
    office: FixtureAddress
    skills: list[str] = field(default_factory=list)


@pytest.fixture
def address_cls() -> type[FixtureAddress]:
    return FixtureAddress


@pytest.fixture
def employee_cls() -> type[FixtureEmployee]:
    return FixtureEmployee


@pytest.fixture
def employee_template() -> FixtureEmployee:
    """The head-office employee template."""
    return FixtureEmployee(name="", office=FixtureAddress("123 East Dr", "London", 0))


@pytest.fixture
def registry(employee_template: FixtureEmployee) -> PrototypeRegistry:
    """Registry populated with the employee template."""
    return PrototypeRegistry({"employee": employee_template})


@pytest.fixture
def factory(registry: PrototypeRegistry) -> PrototypeFactory:
    """Factory over the populated registry."""
    return PrototypeFactory(registry)
