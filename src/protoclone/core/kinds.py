"""Value classification: a closed, tagged variant over value shapes.

Every value handed to a cloner falls into exactly one ValueKind. Cloners match
on the kind exhaustively instead of sniffing types at each call site.

Usage:
    classify(3)                  # ValueKind.PRIMITIVE
    classify([1, 2])             # ValueKind.ORDERED
    classify(Address("x", 1))    # ValueKind.COMPOSITE
"""

from __future__ import annotations

import functools
import io
import re
import threading
import types
import weakref
from collections import deque
from collections.abc import Iterable, Iterator
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import Decimal
from enum import Enum, auto
from fractions import Fraction
from pathlib import PurePath
from uuid import UUID


class ValueKind(Enum):
    """Shape of a value as seen by a cloner."""

    PRIMITIVE = auto()  # Immutable atom, shared as is
    COMPOSITE = auto()  # Object with identity and named fields
    ORDERED = auto()  # list, tuple, deque, bytearray
    UNORDERED = auto()  # set, frozenset
    MAPPING = auto()  # dict and subclasses
    STREAM = auto()  # Iterator or generator, unbounded by nature
    UNSUPPORTED = auto()  # Open resource or runtime handle


ATOMIC_TYPES: tuple[type, ...] = (
    type(None),
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    Enum,
    Decimal,
    Fraction,
    datetime,
    date,
    time,
    timedelta,
    tzinfo,
    UUID,
    PurePath,
    range,
    slice,
    re.Pattern,
    type,
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodDescriptorType,
    types.WrapperDescriptorType,
    type(Ellipsis),
    type(NotImplemented),
)


@functools.cache
def unsupported_types() -> tuple[type, ...]:
    """Types of open resources and runtime handles that no cloner copies.

    Built on first use so importing protoclone does not pull in asyncio,
    sqlite3, subprocess and the socket layer.
    """
    import asyncio
    import mmap
    import socket
    import sqlite3
    import subprocess

    return (
        io.IOBase,
        socket.socket,
        mmap.mmap,
        memoryview,
        sqlite3.Connection,
        sqlite3.Cursor,
        subprocess.Popen,
        threading.Thread,
        threading.Condition,
        threading.Event,
        threading.Semaphore,
        type(threading.Lock()),
        type(threading.RLock()),
        asyncio.AbstractEventLoop,
        asyncio.Future,
        types.CoroutineType,
        types.AsyncGeneratorType,
        types.FrameType,
        types.TracebackType,
        types.ModuleType,
        types.MethodType,
        weakref.ReferenceType,
        BaseException,
    )


ORDERED_TYPES: tuple[type, ...] = (list, tuple, deque, bytearray)
UNORDERED_TYPES: tuple[type, ...] = (set, frozenset)


def slot_names(cls: type) -> tuple[str, ...]:
    """Collect instance slot names declared across a class hierarchy.

    Names are returned as stored on the instance, so private slots come back
    mangled. `__dict__` and `__weakref__` are skipped.

    Args:
        cls: Class to inspect.

    Returns:
        Slot names in MRO order, without duplicates.
    """
    names: list[str] = []
    for klass in cls.__mro__:
        declared = klass.__dict__.get("__slots__", ())
        if isinstance(declared, str):
            declared = (declared,)
        for name in declared:
            if name in ("__dict__", "__weakref__"):
                continue
            if name.startswith("__") and not name.endswith("__"):
                name = f"_{klass.__name__.lstrip('_')}{name}"
            if name not in names:
                names.append(name)
    return tuple(names)


def is_composite(value: object) -> bool:
    """Check whether a value carries named fields a cloner can walk.

    Args:
        value: Value to check.

    Returns:
        True if the value exposes an instance `__dict__` or its class declares slots.
    """
    if hasattr(value, "__dict__"):
        return True
    return any("__slots__" in klass.__dict__ for klass in type(value).__mro__[:-1])


def classify(value: object, extra_atomic_types: Iterable[type] = ()) -> ValueKind:
    """Classify a value into exactly one ValueKind.

    Order matters: atoms win over everything, open resources are rejected before
    the generic composite check (file objects carry a `__dict__` too), and
    iterators are recognised before containers.

    Args:
        value: Value to classify.
        extra_atomic_types: Additional types to treat as immutable atoms.

    Returns:
        The kind of the value.
    """
    extra = tuple(extra_atomic_types)
    if isinstance(value, ATOMIC_TYPES) or (extra and isinstance(value, extra)):
        return ValueKind.PRIMITIVE
    if isinstance(value, unsupported_types()):
        return ValueKind.UNSUPPORTED
    if isinstance(value, Iterator):
        return ValueKind.STREAM
    if isinstance(value, dict):
        return ValueKind.MAPPING
    if isinstance(value, UNORDERED_TYPES):
        return ValueKind.UNORDERED
    if isinstance(value, ORDERED_TYPES):
        return ValueKind.ORDERED
    if is_composite(value):
        return ValueKind.COMPOSITE
    return ValueKind.UNSUPPORTED
