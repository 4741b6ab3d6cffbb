"""Serialization clone engine: encode to bytes, decode into a fresh graph.

Fidelity is whatever the codec provides. With the default JsonCodec:
    - acyclic values clone deep-equal to StructuralCloner output
    - shared references come back as distinct (equal) nodes
    - cycles raise CyclicStructureUnsupported
    - fields hidden from the codec are dropped (see json_codec)

PickleCodec keeps a reference table, so it preserves sharing and cycles.

Usage:
    cloner = SerializationCloner()                    # tagged JSON
    cloner = SerializationCloner(codec=PickleCodec())  # reference-tracking
    copy = cloner.clone(template)
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from protoclone.core.types import Clone
from protoclone.serialization.json_codec import JsonCodec
from protoclone.serialization.protocol import Codec

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SerializationCloner:
    """Clones values by round-tripping them through a codec.

    Codec errors (EncodeError, DecodeError, CyclicStructureUnsupported)
    propagate unchanged.

    Args:
        codec: Codec to round-trip through (default: JsonCodec()).
    """

    def __init__(self, codec: Codec | None = None) -> None:
        self._codec: Codec = codec if codec is not None else JsonCodec()

    @property
    def codec(self) -> Codec:
        return self._codec

    def clone(self, root: T) -> Clone[T]:
        """Return decode(encode(root)).

        Args:
            root: Value to clone.

        Returns:
            Freshly decoded value graph.
        """
        data = self._codec.encode(root)
        logger.debug(
            "Encoded %s to %d bytes with %s",
            type(root).__qualname__,
            len(data),
            type(self._codec).__name__,
        )
        result: Any = self._codec.decode(data)
        return result


def serialization_clone(root: T, codec: Codec | None = None) -> Clone[T]:
    """Clone root with a one-off SerializationCloner.

    Args:
        root: Value to clone.
        codec: Codec to use (default: JsonCodec()).

    Returns:
        Freshly decoded value graph.
    """
    return SerializationCloner(codec).clone(root)
