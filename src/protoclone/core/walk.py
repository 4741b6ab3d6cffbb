"""Explicit-stack traversal shared by the clone engine and the JSON codec.

A traversal step is a generator frame: it yields `(child, path)` pairs, is sent
back the result for each child, and returns its own result. `run_frames` drives
the frames on a list instead of the Python call stack, so depth is bounded by
`max_depth`, never by the interpreter recursion limit.

Paths are built as a chain of FieldPath steps and rendered only when an error
message needs them.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

from protoclone.errors import ResourceExhausted

type Frame = Generator[tuple[Any, FieldPath], Any, Any]
"""A traversal step: yields (child, path) pairs and is sent back each child's result."""

type Enter = Callable[[Any, FieldPath], tuple[Frame | None, Any]]
"""Turns a value into either a finished result (None, result) or a frame (frame, None)."""


class FieldPath:
    """Location of a value below the traversal root.

    Steps keep raw keys and indices; nothing is formatted until str() is
    called, so walking a graph never runs user `__repr__` methods.
    """

    __slots__ = ("_parent", "_kind", "_key")

    def __init__(
        self, parent: FieldPath | None = None, kind: str = "root", key: Any = None
    ) -> None:
        self._parent = parent
        self._kind = kind
        self._key = key

    def attr(self, name: str) -> FieldPath:
        return FieldPath(self, "attr", name)

    def index(self, index: int) -> FieldPath:
        return FieldPath(self, "index", index)

    def key(self, key: Any) -> FieldPath:
        return FieldPath(self, "key", key)

    def keys(self) -> FieldPath:
        return FieldPath(self, "keys")

    def member(self) -> FieldPath:
        return FieldPath(self, "member")

    def _render(self) -> str:
        match self._kind:
            case "attr":
                return f".{self._key}"
            case "index":
                return f"[{self._key}]"
            case "key":
                return f"[{_safe_repr(self._key)}]"
            case "keys":
                return ".keys()"
            case "member":
                return "{*}"
            case _:
                return "root"

    def __str__(self) -> str:
        parts = []
        step: FieldPath | None = self
        while step is not None:
            parts.append(step._render())
            step = step._parent
        return "".join(reversed(parts))

    def __repr__(self) -> str:
        return f"FieldPath({str(self)!r})"


def _safe_repr(key: Any) -> str:
    # Rendering happens while another error is being raised; a broken
    # __repr__ must not replace it.
    try:
        return repr(key)
    except Exception:
        return f"<{type(key).__qualname__} key>"


def run_frames(root: Any, enter: Enter, max_depth: int) -> Any:
    """Drive frames until the root frame returns.

    Args:
        root: Value to start from; its path is "root".
        enter: Callback turning each reached value into a result or a frame.
        max_depth: Ceiling on simultaneously open frames.

    Returns:
        The result for root.

    Raises:
        ResourceExhausted: If more than max_depth frames are open at once.
    """
    stack: list[Frame] = []
    frame, result = enter(root, FieldPath())
    while True:
        if frame is not None:
            if len(stack) >= max_depth:
                raise ResourceExhausted(
                    f"Value graph is nested deeper than {max_depth} levels", limit=max_depth
                )
            stack.append(frame)
            sent = None
        elif not stack:
            return result
        else:
            sent = result

        try:
            child, path = stack[-1].send(sent)
        except StopIteration as stop:
            stack.pop()
            frame, result = None, stop.value
            continue
        frame, result = enter(child, path)
