"""Core type definitions for protoclone."""

type Clone[T] = T
"""Type alias indicating a value is an independent deep copy.

When you see `Clone[T]` in a return type, the returned value shares no mutable
state with its source. The caller owns it exclusively and may mutate it freely.
"""
