"""Core functionalities: value classification, cycle guard, structural cloning.

Architecture Note:
    core/ contains stateless building blocks. Each clone call owns its own
    CycleGuard; nothing here survives a call. For long-lived shared state, see
    registry/.
"""

from protoclone.core.guard import CycleGuard
from protoclone.core.kinds import ValueKind, classify, is_composite, slot_names
from protoclone.core.protocol import Cloner
from protoclone.core.structural import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_NODES,
    StructuralCloner,
    structural_clone,
)
from protoclone.core.types import Clone
from protoclone.core.walk import FieldPath, run_frames

__all__ = [
    # Types
    "Clone",
    "Cloner",
    # Classification
    "ValueKind",
    "classify",
    "is_composite",
    "slot_names",
    # Traversal
    "FieldPath",
    "run_frames",
    # Cloning
    "CycleGuard",
    "StructuralCloner",
    "structural_clone",
    "DEFAULT_MAX_NODES",
    "DEFAULT_MAX_DEPTH",
]
