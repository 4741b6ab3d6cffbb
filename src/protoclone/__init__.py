"""protoclone: deep cloning engines and a named-prototype registry.

Usage:
    from protoclone import PrototypeFactory, PrototypeRegistry

    @dataclass
    class Address:
        street: str
        city: str
        suite: int

    @dataclass
    class Employee:
        name: str
        office: Address

    registry = PrototypeRegistry(
        {"employee": Employee(name="", office=Address("123 East Dr", "London", 0))}
    )
    factory = PrototypeFactory(registry)
    john = factory.create("employee", {"name": "John", "office.suite": 100})
"""

__version__ = "0.1.0"

# Core primitives
from protoclone.core import (
    Clone,
    Cloner,
    CycleGuard,
    StructuralCloner,
    ValueKind,
    classify,
    structural_clone,
)

# Errors
from protoclone.errors import (
    CloneError,
    CyclicStructureUnsupported,
    DecodeError,
    EncodeError,
    InvalidFieldPath,
    PrototypeNotFound,
    ResourceExhausted,
    SerializationError,
    UnsupportedFieldType,
)

# Registry
from protoclone.registry import (
    PrototypeFactory,
    PrototypeRegistry,
    ReadWriteLock,
    assign_path,
    resolve_path,
)

# Serialization
from protoclone.serialization import (
    Codec,
    JsonCodec,
    PickleCodec,
    SerializationCloner,
    serialization_clone,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "Clone",
    "Cloner",
    "CycleGuard",
    "ValueKind",
    "classify",
    "StructuralCloner",
    "structural_clone",
    # Serialization
    "Codec",
    "JsonCodec",
    "PickleCodec",
    "SerializationCloner",
    "serialization_clone",
    # Registry
    "PrototypeRegistry",
    "PrototypeFactory",
    "ReadWriteLock",
    "assign_path",
    "resolve_path",
    # Errors
    "CloneError",
    "UnsupportedFieldType",
    "ResourceExhausted",
    "SerializationError",
    "EncodeError",
    "DecodeError",
    "CyclicStructureUnsupported",
    "PrototypeNotFound",
    "InvalidFieldPath",
]
