"""Self-describing tagged JSON codec without a reference table.

Wire format (UTF-8, compact, keys sorted so equal inputs give equal bytes):
    - The document is `{"nodes": [...], "root": <value>}`.
    - A value is null, a boolean, a number, a string, a flat tag object for an
      atom (`{"$type": "decimal", "value": "3.14"}`), or a node marker
      `{"$type": "node", "id": <n>}` pointing into `nodes`.
    - Every container and composite is one entry in `nodes`, a tag object whose
      children are values again. Dicts are stored as key/value pairs so
      non-string keys survive.
    - Classes, enums and functions travel as `module:qualname` references and
      are resolved with importlib on decode.

Keeping containers in a flat list bounds the JSON nesting depth whatever the
depth of the value graph. Each node is written once per occurrence and every
marker must point at a distinct node, so the format still has no reference
table: two fields sharing a node decode into two equal but distinct nodes, and
a cycle cannot be written at all. It raises CyclicStructureUnsupported instead.

Fields the codec does not see are dropped:
    - dataclass fields declared with `field(metadata={"transient": True})`
    - instance attributes of a dataclass that are not declared fields
    - Pydantic fields declared with `exclude=True` and Pydantic private attributes

On decode, a dropped dataclass field falls back to its default when it has one,
and Pydantic models are rebuilt through `model_construct`, which applies defaults.
Pass `strict=True` to turn any drop into an EncodeError.

Usage:
    codec = JsonCodec()
    data = codec.encode(Employee(name="Ada", office=Address("1 Main St", "London", 3)))
    copy = codec.decode(data)
"""

from __future__ import annotations

import base64
import dataclasses
import hashlib
import importlib
import json
import logging
import types
from collections import Counter, OrderedDict, defaultdict, deque
from collections.abc import Callable
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from pathlib import PurePath
from typing import Any
from uuid import UUID

from protoclone.core.kinds import ValueKind, classify, slot_names
from protoclone.core.structural import DEFAULT_MAX_DEPTH
from protoclone.core.walk import FieldPath, Frame, run_frames
from protoclone.errors import (
    CyclicStructureUnsupported,
    DecodeError,
    EncodeError,
    ResourceExhausted,
)

logger = logging.getLogger(__name__)

TAG = "$type"

_MISSING = object()

_DICT_TYPES: tuple[type, ...] = (dict, OrderedDict, defaultdict, Counter)


def _is_pydantic_model(value: object) -> bool:
    """Check for a Pydantic v2 model instance without importing pydantic."""
    cls = type(value)
    return hasattr(cls, "model_fields") and hasattr(cls, "model_construct")


def _canonical(node: Any) -> str:
    return json.dumps(node, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def type_ref(obj: Any) -> str:
    """Build an importable `module:qualname` reference.

    Args:
        obj: Class, function, or other module-level object.

    Returns:
        Reference string accepted by resolve_ref().

    Raises:
        ValueError: If obj is defined inside a function and cannot be imported.
    """
    qualname = getattr(obj, "__qualname__", None)
    module = getattr(obj, "__module__", None)
    if not qualname or not module or "<locals>" in qualname or "<lambda>" in qualname:
        raise ValueError(f"{obj!r} is not importable by module and qualified name")
    return f"{module}:{qualname}"


def resolve_ref(ref: str) -> Any:
    """Import the object named by a `module:qualname` reference.

    Args:
        ref: Reference produced by type_ref().

    Returns:
        The referenced object.

    Raises:
        ImportError: If the module cannot be imported.
        AttributeError: If the qualified name does not exist in the module.
    """
    module_name, _, qualname = ref.partition(":")
    obj: Any = importlib.import_module(module_name)
    for part in qualname.split("."):
        obj = getattr(obj, part)
    return obj


def _substitute(body: Any, replace: Callable[[_Pending], Any]) -> Any:
    """Copy a node body with every pending child swapped for replace(child).

    Bodies are at most a few levels deep; children are never descended into.
    """
    if isinstance(body, _Pending):
        return replace(body)
    if isinstance(body, dict):
        return {key: _substitute(item, replace) for key, item in body.items()}
    if isinstance(body, list):
        return [_substitute(item, replace) for item in body]
    return body


def _digest_marker(child: _Pending) -> dict[str, str]:
    return {TAG: "node", "digest": child.digest}


class _Pending:
    """An encoded container waiting for its position in the node list.

    The digest covers the whole subtree and orders set members independently
    of the order they were encoded in.
    """

    __slots__ = ("body", "digest")

    def __init__(self, body: dict[str, Any]) -> None:
        self.body = body
        canonical = _canonical(_substitute(body, _digest_marker))
        self.digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _member_order(item: Any) -> str:
    return _canonical(_digest_marker(item) if isinstance(item, _Pending) else item)


def _flatten(root: Any) -> dict[str, Any]:
    """Number pending nodes breadth-first and lay them out as a flat list."""
    nodes: list[Any] = []
    queue: deque[tuple[int, _Pending]] = deque()

    def place(child: _Pending) -> dict[str, Any]:
        queue.append((len(nodes), child))
        nodes.append(None)
        return {TAG: "node", "id": len(nodes) - 1}

    document = {"root": _substitute(root, place), "nodes": nodes}
    while queue:
        index, pending = queue.popleft()
        nodes[index] = _substitute(pending.body, place)
    return document


class _Encoder:
    """Single-use encoder tracking the active path for cycle detection."""

    def __init__(self, strict: bool, max_depth: int) -> None:
        self._strict = strict
        self._max_depth = max_depth
        self._active: set[int] = set()
        self.dropped: list[str] = []

    def encode(self, value: Any) -> dict[str, Any]:
        return _flatten(run_frames(value, self._enter, self._max_depth))

    def _drop(self, path: FieldPath) -> None:
        if self._strict:
            raise EncodeError(f"Field {path} is not visible to the codec and would be dropped")
        self.dropped.append(str(path))

    def _ref(self, obj: Any, path: FieldPath) -> str:
        try:
            return type_ref(obj)
        except ValueError as e:
            raise EncodeError(f"Cannot encode reference at {path}: {e}") from e

    def _enter(self, value: Any, path: FieldPath) -> tuple[Frame | None, Any]:
        if isinstance(value, Enum):
            return None, {TAG: "enum", "class": self._ref(type(value), path), "name": value.name}

        cls = type(value)
        if value is None or cls in (bool, int, float, str):
            return None, value
        if isinstance(value, (type, types.FunctionType, types.BuiltinFunctionType)):
            return None, {TAG: "ref", "ref": self._ref(value, path)}

        scalar = self._encode_scalar(value, path)
        if scalar is not None:
            return None, scalar

        if id(value) in self._active:
            raise CyclicStructureUnsupported(str(path))
        self._active.add(id(value))
        return self._encode_node(value, path), None

    def _encode_scalar(self, value: Any, path: FieldPath) -> dict[str, Any] | None:
        cls = type(value)
        if cls is complex:
            return {TAG: "complex", "real": value.real, "imag": value.imag}
        if cls in (bytes, bytearray):
            data = base64.b64encode(value).decode("ascii")
            return {TAG: cls.__name__, "data": data}
        if cls in (Decimal, Fraction, UUID):
            return {TAG: cls.__name__.lower(), "value": str(value)}
        if cls in (datetime, date, time):
            return {TAG: cls.__name__, "value": value.isoformat()}
        if cls is timedelta:
            return {
                TAG: "timedelta",
                "days": value.days,
                "seconds": value.seconds,
                "microseconds": value.microseconds,
            }
        if isinstance(value, PurePath):
            return {TAG: "path", "class": self._ref(cls, path), "value": str(value)}
        return None

    def _encode_node(self, value: Any, path: FieldPath) -> Frame:
        try:
            body = yield from self._encode_body(value, path)
        finally:
            self._active.discard(id(value))
        return _Pending(body)

    def _encode_items(self, items: Any, path: FieldPath) -> Frame:
        encoded = []
        for index, item in enumerate(items):
            encoded.append((yield item, path.index(index)))
        return encoded

    def _encode_body(self, value: Any, path: FieldPath) -> Frame:
        cls = type(value)
        if cls is list:
            return {TAG: "list", "items": (yield from self._encode_items(value, path))}
        if cls is tuple:
            return {TAG: "tuple", "items": (yield from self._encode_items(value, path))}
        if isinstance(value, tuple) and hasattr(cls, "_fields"):
            return {
                TAG: "namedtuple",
                "class": self._ref(cls, path),
                "items": (yield from self._encode_items(value, path)),
            }
        if cls is deque:
            return {
                TAG: "deque",
                "maxlen": value.maxlen,
                "items": (yield from self._encode_items(value, path)),
            }
        if cls in (set, frozenset):
            members = []
            for item in value:
                members.append((yield item, path.member()))
            return {TAG: cls.__name__, "items": sorted(members, key=_member_order)}
        if cls in _DICT_TYPES:
            return (yield from self._encode_mapping(value, path))

        if classify(value) is not ValueKind.COMPOSITE:
            raise EncodeError(f"Cannot encode {cls.__qualname__} at {path}")
        if _is_pydantic_model(value):
            return (yield from self._encode_model(value, path))
        if dataclasses.is_dataclass(value):
            return (yield from self._encode_dataclass(value, path))
        return (yield from self._encode_object(value, path))

    def _encode_mapping(self, value: dict[Any, Any], path: FieldPath) -> Frame:
        pairs = []
        for key, item in value.items():
            encoded_key = yield key, path.keys()
            pairs.append([encoded_key, (yield item, path.key(key))])
        node: dict[str, Any] = {TAG: "dict", "items": pairs}
        if type(value) is not dict:
            node["class"] = self._ref(type(value), path)
        if isinstance(value, defaultdict) and value.default_factory is not None:
            node["default_factory"] = self._ref(value.default_factory, path)
        return node

    def _encode_dataclass(self, value: Any, path: FieldPath) -> Frame:
        fields: dict[str, Any] = {}
        declared = set()
        for f in dataclasses.fields(value):
            declared.add(f.name)
            if f.metadata.get("transient"):
                self._drop(path.attr(f.name))
                continue
            current = getattr(value, f.name, _MISSING)
            if current is _MISSING:
                continue
            fields[f.name] = yield current, path.attr(f.name)
        for name in getattr(value, "__dict__", {}):
            if name not in declared:
                self._drop(path.attr(name))
        return {TAG: "dataclass", "class": self._ref(type(value), path), "fields": fields}

    def _encode_model(self, value: Any, path: FieldPath) -> Frame:
        cls = type(value)
        state = value.__dict__
        fields: dict[str, Any] = {}
        for name, info in cls.model_fields.items():
            if info.exclude:
                self._drop(path.attr(name))
                continue
            if name in state:
                fields[name] = yield state[name], path.attr(name)
        extra: dict[str, Any] = {}
        for name, item in (value.__pydantic_extra__ or {}).items():
            extra[name] = yield item, path.attr(name)
        for name in value.__pydantic_private__ or {}:
            self._drop(path.attr(name))
        return {
            TAG: "model",
            "class": self._ref(cls, path),
            "fields": fields,
            "extra": extra,
            "fields_set": sorted(value.__pydantic_fields_set__),
        }

    def _encode_object(self, value: Any, path: FieldPath) -> Frame:
        fields: dict[str, Any] = {}
        for name, item in list(getattr(value, "__dict__", {}).items()):
            fields[name] = yield item, path.attr(name)
        for name in slot_names(type(value)):
            try:
                item = object.__getattribute__(value, name)
            except AttributeError:
                continue  # unset slot
            fields[name] = yield item, path.attr(name)
        return {TAG: "object", "class": self._ref(type(value), path), "fields": fields}


class _Decoder:
    """Rebuilds values from a parsed document, one node list entry per frame."""

    def __init__(self, nodes: list[Any], max_depth: int) -> None:
        self._nodes = nodes
        self._max_depth = max_depth
        self._claimed: set[int] = set()
        self._atoms: dict[str, Callable[[dict[str, Any]], Any]] = {
            "enum": lambda node: resolve_ref(node["class"])[node["name"]],
            "ref": lambda node: resolve_ref(node["ref"]),
            "complex": lambda node: complex(node["real"], node["imag"]),
            "bytes": lambda node: base64.b64decode(node["data"]),
            "bytearray": lambda node: bytearray(base64.b64decode(node["data"])),
            "decimal": lambda node: Decimal(node["value"]),
            "fraction": lambda node: Fraction(node["value"]),
            "uuid": lambda node: UUID(node["value"]),
            "datetime": lambda node: datetime.fromisoformat(node["value"]),
            "date": lambda node: date.fromisoformat(node["value"]),
            "time": lambda node: time.fromisoformat(node["value"]),
            "timedelta": lambda node: timedelta(
                days=node["days"], seconds=node["seconds"], microseconds=node["microseconds"]
            ),
            "path": lambda node: resolve_ref(node["class"])(node["value"]),
        }
        self._builders: dict[str, Callable[[dict[str, Any], FieldPath], Frame]] = {
            "list": self._decode_list,
            "tuple": self._decode_tuple,
            "namedtuple": self._decode_namedtuple,
            "deque": self._decode_deque,
            "set": self._decode_set,
            "frozenset": self._decode_set,
            "dict": self._decode_mapping,
            "dataclass": self._decode_dataclass,
            "model": self._decode_model,
            "object": self._decode_object,
        }

    def decode(self, root: Any) -> Any:
        return run_frames(root, self._enter, self._max_depth)

    def _enter(self, value: Any, path: FieldPath) -> tuple[Frame | None, Any]:
        if isinstance(value, list):
            raise DecodeError(f"Unexpected inline array at {path}")
        if not isinstance(value, dict):
            return None, value
        tag = value[TAG]
        if tag == "node":
            return self._claim(value["id"], path), None
        atom = self._atoms.get(tag)
        if atom is None:
            raise DecodeError(f"Unknown tag {tag!r} at {path}")
        return None, atom(value)

    def _claim(self, index: Any, path: FieldPath) -> Frame:
        if type(index) is not int or not 0 <= index < len(self._nodes):
            raise DecodeError(f"Node marker at {path} points outside the node list")
        if index in self._claimed:
            raise DecodeError(f"Node {index} is referenced more than once")
        self._claimed.add(index)
        node = self._nodes[index]
        builder = self._builders.get(node[TAG])
        if builder is None:
            raise DecodeError(f"Unknown node tag {node[TAG]!r} at {path}")
        return builder(node, path)

    def _decode_items(self, node: dict[str, Any], path: FieldPath) -> Frame:
        items = []
        for index, item in enumerate(node["items"]):
            items.append((yield item, path.index(index)))
        return items

    def _decode_list(self, node: dict[str, Any], path: FieldPath) -> Frame:
        return (yield from self._decode_items(node, path))

    def _decode_tuple(self, node: dict[str, Any], path: FieldPath) -> Frame:
        return tuple((yield from self._decode_items(node, path)))

    def _decode_namedtuple(self, node: dict[str, Any], path: FieldPath) -> Frame:
        cls = resolve_ref(node["class"])
        return cls._make((yield from self._decode_items(node, path)))

    def _decode_deque(self, node: dict[str, Any], path: FieldPath) -> Frame:
        return deque((yield from self._decode_items(node, path)), node["maxlen"])

    def _decode_set(self, node: dict[str, Any], path: FieldPath) -> Frame:
        factory = frozenset if node[TAG] == "frozenset" else set
        members = []
        for item in node["items"]:
            members.append((yield item, path.member()))
        return factory(members)

    def _decode_fields(self, fields: dict[str, Any], path: FieldPath) -> Frame:
        decoded = {}
        for name, item in fields.items():
            decoded[name] = yield item, path.attr(name)
        return decoded

    def _allocate(self, node: dict[str, Any]) -> Any:
        cls = resolve_ref(node["class"])
        if not isinstance(cls, type):
            raise DecodeError(f"{node['class']} does not name a class")
        return cls.__new__(cls)

    def _decode_mapping(self, node: dict[str, Any], path: FieldPath) -> Frame:
        cls = resolve_ref(node["class"]) if "class" in node else dict
        if cls is defaultdict:
            factory = resolve_ref(node["default_factory"]) if "default_factory" in node else None
            mapping: dict[Any, Any] = defaultdict(factory)
        else:
            mapping = cls()
        for key, item in node["items"]:
            decoded_key = yield key, path.keys()
            mapping[decoded_key] = yield item, path.key(decoded_key)
        return mapping

    def _decode_dataclass(self, node: dict[str, Any], path: FieldPath) -> Frame:
        obj = self._allocate(node)
        fields = yield from self._decode_fields(node["fields"], path)
        for f in dataclasses.fields(obj):
            if f.name in fields:
                object.__setattr__(obj, f.name, fields[f.name])
            elif f.default is not dataclasses.MISSING:
                object.__setattr__(obj, f.name, f.default)
            elif f.default_factory is not dataclasses.MISSING:
                object.__setattr__(obj, f.name, f.default_factory())
        return obj

    def _decode_model(self, node: dict[str, Any], path: FieldPath) -> Frame:
        cls = resolve_ref(node["class"])
        values = yield from self._decode_fields(node["fields"], path)
        values.update((yield from self._decode_fields(node["extra"], path)))
        return cls.model_construct(_fields_set=set(node["fields_set"]), **values)

    def _decode_object(self, node: dict[str, Any], path: FieldPath) -> Frame:
        obj = self._allocate(node)
        for name, item in (yield from self._decode_fields(node["fields"], path)).items():
            object.__setattr__(obj, name, item)
        return obj


class JsonCodec:
    """Tagged JSON codec. Deterministic, human-readable, no reference table.

    Args:
        strict: Raise EncodeError instead of dropping fields the codec cannot see.
        max_depth: Ceiling on value graph depth, for encoding and decoding alike.
    """

    def __init__(self, strict: bool = False, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._strict = strict
        self._max_depth = max_depth

    @property
    def strict(self) -> bool:
        return self._strict

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def encode(self, value: Any) -> bytes:
        """Encode value as tagged JSON.

        Args:
            value: Value to encode.

        Returns:
            UTF-8 JSON bytes.

        Raises:
            CyclicStructureUnsupported: If value contains a cycle.
            EncodeError: If a reachable value has no JSON representation, the
                graph is deeper than max_depth, or a field would be dropped in
                strict mode.
        """
        encoder = _Encoder(self._strict, self._max_depth)
        try:
            document = encoder.encode(value)
        except ResourceExhausted as e:
            raise EncodeError(str(e)) from e
        if encoder.dropped:
            logger.debug("Dropped fields not visible to the codec: %s", ", ".join(encoder.dropped))
        text = _canonical(document)
        node_count = len(document["nodes"])
        logger.debug("Encoded %s as %d JSON nodes", type(value).__qualname__, node_count)
        return text.encode("utf-8")

    def decode(self, data: bytes) -> Any:
        """Decode bytes produced by encode().

        Args:
            data: UTF-8 JSON bytes.

        Returns:
            Freshly constructed value graph.

        Raises:
            DecodeError: If the payload is malformed, names missing types, or
                describes a graph deeper than max_depth.
        """
        try:
            document = json.loads(data)
        except (ValueError, RecursionError) as e:
            raise DecodeError(f"Payload is not valid JSON: {e}") from e
        try:
            nodes = document["nodes"]
            if not isinstance(nodes, list):
                raise DecodeError("Node list must be a JSON array")
            return _Decoder(nodes, self._max_depth).decode(document["root"])
        except ResourceExhausted as e:
            raise DecodeError(str(e)) from e
        except (KeyError, TypeError, ValueError, AttributeError, ImportError) as e:
            raise DecodeError(f"Malformed payload: {e!r}") from e
