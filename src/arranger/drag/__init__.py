"""Internal drag-and-drop: session controller and drop execution."""

from .controller import DragSessionController
from .errors import DragError, DragInProgressError
from .executor import DropExecutor
from .models import (
    ContextDropEvent,
    DragItem,
    DragPhase,
    DragResult,
    DragSession,
    DropDecision,
    GroupIntoFolder,
    MoveIntoFolder,
    MoveToRoot,
    ReorderInPlace,
)

__all__ = [
    "DragSessionController",
    "DropExecutor",
    "DragError",
    "DragInProgressError",
    "ContextDropEvent",
    "DragItem",
    "DragPhase",
    "DragResult",
    "DragSession",
    "DropDecision",
    "GroupIntoFolder",
    "MoveIntoFolder",
    "MoveToRoot",
    "ReorderInPlace",
]
