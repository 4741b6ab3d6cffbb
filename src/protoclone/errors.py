"""Error types raised by cloning, serialization, and the prototype registry.

All errors derive from CloneError so callers can catch the whole family, and
every error is local to the operation that raised it: a failed clone leaves the
source graph and any registry untouched.
"""

from __future__ import annotations


class CloneError(Exception):
    """Base class for every protoclone error."""

    pass


class UnsupportedFieldType(CloneError):
    """Raised when the structural cloner meets a value it has no rule for.

    Typical culprits are open resources: files, sockets, locks, threads.

    Attributes:
        path: Dotted path from the clone root to the offending value.
        value_type: Type of the offending value.
    """

    def __init__(self, path: str, value_type: type, reason: str | None = None) -> None:
        self.path = path
        self.value_type = value_type
        message = f"Cannot clone {value_type.__qualname__} at {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ResourceExhausted(CloneError):
    """Raised when a value graph is too large, too deep, or unbounded.

    Attributes:
        limit: The ceiling that was hit, or None for streaming sources.
    """

    def __init__(self, message: str, limit: int | None = None) -> None:
        self.limit = limit
        super().__init__(message)


class SerializationError(CloneError):
    """Base class for codec failures."""

    pass


class EncodeError(SerializationError):
    """Raised when a codec cannot encode a value."""

    pass


class DecodeError(SerializationError):
    """Raised when a codec cannot decode a byte payload."""

    pass


class CyclicStructureUnsupported(EncodeError):
    """Raised when a codec without a reference table meets a cycle.

    Attributes:
        path: Dotted path at which the cycle closes back onto an ancestor.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Cyclic reference at {path} cannot be encoded without a reference table")


class PrototypeNotFound(CloneError, KeyError):
    """Raised when a registry lookup names an unregistered prototype.

    Attributes:
        name: The missing prototype name.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"No prototype registered under {self.name!r}"


class InvalidFieldPath(CloneError):
    """Raised when an override path does not resolve to an existing field.

    Attributes:
        path: The full override path.
        segment: The segment that failed to resolve.
    """

    def __init__(self, path: str, segment: str, reason: str) -> None:
        self.path = path
        self.segment = segment
        super().__init__(f"Invalid field path {path!r} at {segment!r}: {reason}")
