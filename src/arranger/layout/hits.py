"""Folder hit-testing shared by internal and native drags."""

from __future__ import annotations

from typing import Optional, Tuple

from arranger.state.models import CollectionState, Folder

from .geometry import Point
from .model import LayoutModel


def folder_at(
    state: CollectionState,
    layout: LayoutModel,
    point: Point,
    padding: float,
) -> Optional[Folder]:
    """Return the folder whose padded box contains ``point``.

    Padded boxes of neighbouring folders can overlap; the folder whose own
    box is vertically closest to the pointer wins, then the earliest one.
    """
    best: Optional[Tuple[float, Folder]] = None
    for folder in state.folders:
        bounds = layout.bounds(folder.id)
        if bounds is None or not bounds.padded(padding).contains(point):
            continue
        distance = bounds.vertical_distance(point.y)
        if best is None or distance < best[0]:
            best = (distance, folder)
    return best[1] if best else None


def folder_insertion_index(
    state: CollectionState,
    layout: LayoutModel,
    folder: Folder,
    y: float,
    exclude: Optional[str] = None,
) -> int:
    """Return where a row would be inserted among the folder's children.

    Args:
        state: Collection structure.
        layout: Latest measurement.
        folder: Hovered folder.
        y: Pointer offset in content coordinates.
        exclude: Child to leave out of the comparison (the dragged row).

    Returns:
        int: ``len(children)`` for a collapsed folder, 0 for an expanded empty
        one, otherwise the first child whose midpoint lies below ``y``.
    """
    children = [child for child in state.folder_children(folder.id) if child.id != exclude]
    if not folder.is_expanded:
        return len(children)
    for index, child in enumerate(children):
        bounds = layout.bounds(child.id)
        if bounds is not None and y < bounds.mid_y:
            return index
    return len(children)


__all__ = ["folder_at", "folder_insertion_index"]
