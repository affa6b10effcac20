"""Position model and measured layout for the sidebar."""

from .geometry import Point, Rect
from .model import LayoutModel, Measure, Viewport, stacked_measure
from .positions import (
    DEFAULT_GAP,
    FALLBACK_HEIGHT,
    compute_positions,
    content_extent,
    preview_insert,
    preview_reorder,
    reorder,
    row_height,
    slot_index,
)

__all__ = [
    "Point",
    "Rect",
    "LayoutModel",
    "Measure",
    "Viewport",
    "stacked_measure",
    "DEFAULT_GAP",
    "FALLBACK_HEIGHT",
    "compute_positions",
    "content_extent",
    "preview_insert",
    "preview_reorder",
    "reorder",
    "row_height",
    "slot_index",
]
