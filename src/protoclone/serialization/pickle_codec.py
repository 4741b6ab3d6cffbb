"""Pickle codec with a reference table.

Pickle memoizes every object it writes, so shared references stay shared and
cycles round-trip. Use it when serialization-based cloning must accept cyclic
templates.

Not safe for untrusted payloads: decode only bytes this process produced.
"""

from __future__ import annotations

import pickle  # nosec B403 - Round-trips values produced in-process, never untrusted input
from typing import Any

from protoclone.errors import DecodeError, EncodeError


class PickleCodec:
    """Codec backed by the pickle protocol.

    Args:
        protocol: Pickle protocol version (default: highest available).
    """

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL) -> None:
        self._protocol = protocol

    def encode(self, value: Any) -> bytes:
        """Pickle value.

        Args:
            value: Value to encode.

        Returns:
            Pickled bytes.

        Raises:
            EncodeError: If any reachable value cannot be pickled.
        """
        try:
            return pickle.dumps(value, protocol=self._protocol)
        except (pickle.PicklingError, TypeError, AttributeError, RecursionError) as e:
            raise EncodeError(f"Cannot pickle {type(value).__qualname__}: {e}") from e

    def decode(self, data: bytes) -> Any:
        """Unpickle bytes from a previous encode() call.

        Args:
            data: Pickled bytes.

        Returns:
            Freshly constructed value graph.

        Raises:
            DecodeError: If the payload is corrupt or references missing types.
        """
        try:
            return pickle.loads(data)  # nosec B301 - Payload produced by encode() in-process
        except (
            pickle.UnpicklingError,
            EOFError,
            AttributeError,
            ImportError,
            IndexError,
            TypeError,
            ValueError,
            RecursionError,
        ) as e:
            raise DecodeError(f"Cannot unpickle payload: {e}") from e
