"""Serialization-based cloning: codec protocol, codecs, and cloner."""

from protoclone.serialization.cloner import SerializationCloner, serialization_clone
from protoclone.serialization.json_codec import JsonCodec, resolve_ref, type_ref
from protoclone.serialization.pickle_codec import PickleCodec
from protoclone.serialization.protocol import Codec

__all__ = [
    "Codec",
    "JsonCodec",
    "PickleCodec",
    "SerializationCloner",
    "serialization_clone",
    "type_ref",
    "resolve_ref",
]
