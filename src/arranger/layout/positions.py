"""Position model: vertical offsets of stacked sidebar rows.

Rows are rendered as absolutely positioned elements inside a scroll spacer,
so every offset is derived from the order of the container and the measured
height of each row. All functions here are pure.
"""

from __future__ import annotations

import math
from typing import Mapping, Sequence

FALLBACK_HEIGHT = 48.0
DEFAULT_GAP = 6.0


def row_height(heights: Mapping[str, float], item_id: str, fallback: float = FALLBACK_HEIGHT) -> float:
    """Return the measured height of ``item_id`` or ``fallback`` when unusable.

    Missing, zero, negative and non-finite measurements all count as
    "not measured yet" so a row never collapses before layout settles.
    """
    value = heights.get(item_id)
    if value is None or not math.isfinite(value) or value <= 0:
        return fallback
    return float(value)


def compute_positions(
    order: Sequence[str],
    heights: Mapping[str, float],
    gap: float = DEFAULT_GAP,
    fallback_height: float = FALLBACK_HEIGHT,
) -> dict[str, float]:
    """Return the top offset of every id in ``order``.

    Args:
        order: Ids in display order.
        heights: Measured row heights keyed by id.
        gap: Vertical space between consecutive rows.
        fallback_height: Height assumed for unmeasured rows.

    Returns:
        dict[str, float]: Offset of each row from the top of its container.
    """
    positions: dict[str, float] = {}
    current = 0.0
    for item_id in order:
        positions[item_id] = current
        current += row_height(heights, item_id, fallback_height) + gap
    return positions


def content_extent(
    order: Sequence[str],
    heights: Mapping[str, float],
    gap: float = DEFAULT_GAP,
    fallback_height: float = FALLBACK_HEIGHT,
) -> float:
    """Return the total height of the scroll spacer for ``order``."""
    if not order:
        return 0.0
    last = order[-1]
    positions = compute_positions(order, heights, gap, fallback_height)
    return positions[last] + row_height(heights, last, fallback_height) + gap


def slot_index(
    y: float,
    order: Sequence[str],
    heights: Mapping[str, float],
    gap: float = DEFAULT_GAP,
    fallback_height: float = FALLBACK_HEIGHT,
) -> int:
    """Return the insertion index for a content-relative ``y``.

    A pointer above the vertical midpoint of row ``i`` inserts before it; a
    pointer in the lower half of row ``i`` or in the gap below it inserts
    after it.

    Args:
        y: Pointer offset from the top of the container content.
        order: Ids of the rows the pointer is moving over.
        heights: Measured row heights.
        gap: Vertical space between rows.
        fallback_height: Height assumed for unmeasured rows.

    Returns:
        int: Index in ``0..len(order)``.
    """
    current = 0.0
    for index, item_id in enumerate(order):
        height = row_height(heights, item_id, fallback_height)
        if y < current + height / 2:
            return index
        end = current + height + gap
        if y < end:
            return index + 1
        current = end
    return len(order)


def reorder(order: Sequence[str], item_id: str, to_index: int) -> list[str]:
    """Return ``order`` with ``item_id`` moved (or inserted) at ``to_index``."""
    updated = [existing for existing in order if existing != item_id]
    updated.insert(max(0, min(to_index, len(updated))), item_id)
    return updated


def preview_reorder(
    order: Sequence[str],
    item_id: str,
    to_index: int,
    heights: Mapping[str, float],
    gap: float = DEFAULT_GAP,
    fallback_height: float = FALLBACK_HEIGHT,
) -> dict[str, float]:
    """Return positions with ``item_id`` shown at ``to_index`` while dragging."""
    return compute_positions(reorder(order, item_id, to_index), heights, gap, fallback_height)


def preview_insert(
    order: Sequence[str],
    item_id: str,
    index: int,
    heights: Mapping[str, float],
    gap: float = DEFAULT_GAP,
    fallback_height: float = FALLBACK_HEIGHT,
) -> dict[str, float]:
    """Return positions of ``order`` shifted to make room for a foreign row.

    Used when a row from another container hovers over this one; the ghost
    row itself is left out of the result.
    """
    with_ghost = list(order)
    with_ghost.insert(max(0, min(index, len(order))), item_id)
    positions = compute_positions(with_ghost, heights, gap, fallback_height)
    return {existing: positions[existing] for existing in order}


__all__ = [
    "FALLBACK_HEIGHT",
    "DEFAULT_GAP",
    "row_height",
    "compute_positions",
    "content_extent",
    "slot_index",
    "reorder",
    "preview_reorder",
    "preview_insert",
]
