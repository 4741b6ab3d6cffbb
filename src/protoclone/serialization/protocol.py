"""Codec protocol for serialization-based cloning.

A codec turns a value into bytes and back. Implementations must be deterministic
for equal inputs and raise EncodeError/DecodeError (never bare library errors),
so callers can tell which half of a round trip failed.

Usage:
    codec: Codec = JsonCodec()
    restored = codec.decode(codec.encode(value))
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Codec(Protocol):
    """Byte codec used by SerializationCloner."""

    def encode(self, value: Any) -> bytes:
        """Encode value to bytes. Raises EncodeError on failure."""
        ...

    def decode(self, data: bytes) -> Any:
        """Decode bytes into a fresh value. Raises DecodeError on failure."""
        ...
