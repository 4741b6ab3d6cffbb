"""Dotted field paths for applying overrides to stamped clones.

A path like `"office.suite"` or `"staff.0.name"` is split on dots; each segment
resolves against a mapping key, a sequence index, or an object field. Only
existing fields resolve: overrides can change a clone's values, never its shape.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from typing import Any

from protoclone.core.kinds import slot_names
from protoclone.errors import InvalidFieldPath


def _split(path: str) -> list[str]:
    if not isinstance(path, str) or not path:
        raise InvalidFieldPath(str(path), "", "path is empty")
    segments = path.split(".")
    if not all(segments):
        raise InvalidFieldPath(path, "", "path contains an empty segment")
    return segments


def _has_field(obj: Any, name: str) -> bool:
    """Check whether name is a declared or present field of obj."""
    cls = type(obj)
    if dataclasses.is_dataclass(obj):
        return any(f.name == name for f in dataclasses.fields(obj))
    model_fields = getattr(cls, "model_fields", None)
    if isinstance(model_fields, dict) and hasattr(cls, "model_construct"):
        return name in model_fields or name in (obj.__pydantic_extra__ or {})
    if name in getattr(obj, "__dict__", {}):
        return True
    if name in slot_names(cls):
        try:
            object.__getattribute__(obj, name)
        except AttributeError:
            return False
        return True
    return False


def _is_frozen_model_field(obj: Any, name: str) -> bool:
    """Check whether name is frozen on a Pydantic model, per model or per field."""
    cls = type(obj)
    config = getattr(cls, "model_config", None)
    if not isinstance(config, dict) or not hasattr(cls, "model_construct"):
        return False
    if config.get("frozen"):
        return True
    info = cls.model_fields.get(name)
    return bool(getattr(info, "frozen", False))


def _is_sequence(obj: Any) -> bool:
    return isinstance(obj, Sequence) and not isinstance(obj, (str, bytes, bytearray))


def _mapping_key(mapping: Mapping[Any, Any], segment: str, path: str) -> Any:
    if segment in mapping:
        return segment
    try:
        key = int(segment)
    except ValueError:
        key = None
    if key is not None and key in mapping:
        return key
    raise InvalidFieldPath(path, segment, "no such key")


def _index(sequence: Sequence[Any], segment: str, path: str) -> int:
    try:
        index = int(segment)
    except ValueError:
        raise InvalidFieldPath(path, segment, "sequence index must be an integer") from None
    if not -len(sequence) <= index < len(sequence):
        raise InvalidFieldPath(path, segment, f"index out of range for length {len(sequence)}")
    return index


def _step(container: Any, segment: str, path: str) -> Any:
    if isinstance(container, Mapping):
        return container[_mapping_key(container, segment, path)]
    if _is_sequence(container):
        return container[_index(container, segment, path)]
    if _has_field(container, segment):
        return getattr(container, segment)
    raise InvalidFieldPath(
        path, segment, f"{type(container).__qualname__} has no field {segment!r}"
    )


def resolve_path(root: Any, path: str) -> Any:
    """Read the value a dotted path points to.

    Args:
        root: Object to start from.
        path: Dotted path, e.g. "office.suite".

    Returns:
        The value at path.

    Raises:
        InvalidFieldPath: If any segment does not resolve.
    """
    current = root
    for segment in _split(path):
        current = _step(current, segment, path)
    return current


def assign_path(root: Any, path: str, value: Any) -> None:
    """Overwrite the existing field a dotted path points to.

    Args:
        root: Object to modify in place.
        path: Dotted path, e.g. "office.suite".
        value: New value, stored as is.

    Raises:
        InvalidFieldPath: If the path does not resolve to an existing, writable field,
            or the field rejects the value (Pydantic assignment validation).
    """
    *parents, last = _split(path)
    target = root
    for segment in parents:
        target = _step(target, segment, path)

    if isinstance(target, Mapping):
        key = _mapping_key(target, last, path)
        if not isinstance(target, MutableMapping):
            raise InvalidFieldPath(path, last, f"{type(target).__qualname__} is immutable")
        target[key] = value
    elif _is_sequence(target):
        index = _index(target, last, path)
        if not isinstance(target, MutableSequence):
            raise InvalidFieldPath(path, last, f"{type(target).__qualname__} is immutable")
        target[index] = value
    elif _has_field(target, last):
        if _is_frozen_model_field(target, last):
            raise InvalidFieldPath(path, last, "field is frozen")
        try:
            setattr(target, last, value)
        except dataclasses.FrozenInstanceError as e:
            raise InvalidFieldPath(path, last, "field is frozen") from e
        except ValueError as e:
            # pydantic's ValidationError under validate_assignment
            raise InvalidFieldPath(path, last, f"value rejected: {e}") from e
    else:
        raise InvalidFieldPath(path, last, f"{type(target).__qualname__} has no field {last!r}")
