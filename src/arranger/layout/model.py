"""Measured layout of the sidebar scroll container."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Sequence

from arranger.config.models import LayoutSettings
from arranger.state.models import CollectionState
from arranger.timing import AsyncioClock, Clock

from .geometry import Point, Rect
from .positions import compute_positions, content_extent, row_height, slot_index

LOGGER = logging.getLogger(__name__)

Measure = Callable[[], Mapping[str, Rect]]
"""Capability returning the rendered bounds of every row, in content coordinates."""


@dataclass(slots=True)
class Viewport:
    """The visible window of the scroll container.

    Attributes:
        rect: Container bounds in viewport (client) coordinates.
        scroll_top: Current vertical scroll offset.
        scroll_height: Total scrollable content height.
    """

    rect: Rect
    scroll_top: float = 0.0
    scroll_height: float = 0.0

    @property
    def max_scroll(self) -> float:
        return max(0.0, self.scroll_height - self.rect.height)


class LayoutModel:
    """Hold the latest measurement pass and answer geometry questions about it.

    Bounds are kept in content coordinates (relative to the top of the
    scrolled content), so pointer samples are converted once through
    :meth:`to_content` before any hit-test.
    """

    def __init__(
        self,
        measure: Measure,
        viewport: Viewport,
        settings: LayoutSettings | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._measure = measure
        self.viewport = viewport
        self.settings = settings or LayoutSettings()
        self._clock = clock or AsyncioClock()
        self._bounds: dict[str, Rect] = {}

    # ------------------------------------------------------------------ #
    # Measurement                                                        #
    # ------------------------------------------------------------------ #

    def remeasure(self) -> None:
        """Refresh bounds from the measure capability."""
        self._bounds = dict(self._measure())
        if self._bounds:
            bottom = max(rect.bottom for rect in self._bounds.values())
            self.viewport.scroll_height = bottom + self.settings.gap
        else:
            self.viewport.scroll_height = 0.0
        self.viewport.scroll_top = min(self.viewport.scroll_top, self.viewport.max_scroll)
        LOGGER.debug("Measured %d rows; content height %.1f", len(self._bounds), self.viewport.scroll_height)

    async def schedule_remeasure(self) -> None:
        """Re-measure after the settle delay so layout changes land first."""
        await self._clock.sleep(self.settings.settle_delay_ms)
        self.remeasure()

    @property
    def has_measurements(self) -> bool:
        return bool(self._bounds)

    @property
    def heights(self) -> dict[str, float]:
        return {item_id: rect.height for item_id, rect in self._bounds.items()}

    def bounds(self, item_id: str) -> Optional[Rect]:
        return self._bounds.get(item_id)

    # ------------------------------------------------------------------ #
    # Coordinates                                                        #
    # ------------------------------------------------------------------ #

    def to_content(self, point: Point) -> Point:
        """Convert a viewport pointer sample into content coordinates."""
        rect = self.viewport.rect
        return Point(point.x - rect.left, point.y - rect.top + self.viewport.scroll_top)

    def scroll_by(self, delta: float) -> float:
        """Scroll the container by ``delta`` within its range.

        Returns:
            float: The distance actually scrolled.
        """
        target = min(self.viewport.max_scroll, max(0.0, self.viewport.scroll_top + delta))
        applied = target - self.viewport.scroll_top
        self.viewport.scroll_top = target
        return applied

    # ------------------------------------------------------------------ #
    # Position model shortcuts                                           #
    # ------------------------------------------------------------------ #

    def positions(self, order: Sequence[str]) -> dict[str, float]:
        return compute_positions(order, self.heights, self.settings.gap, self.settings.fallback_height)

    def extent(self, order: Sequence[str]) -> float:
        return content_extent(order, self.heights, self.settings.gap, self.settings.fallback_height)

    def slot(self, y: float, order: Sequence[str]) -> int:
        return slot_index(y, order, self.heights, self.settings.gap, self.settings.fallback_height)


def stacked_measure(
    state: CollectionState,
    settings: LayoutSettings | None = None,
    intrinsic_heights: Mapping[str, float] | None = None,
    *,
    child_indent: float = 12.0,
) -> dict[str, Rect]:
    """Lay out a collection the way the sidebar renders it.

    Root rows are stacked by the position model. An expanded folder grows by
    its children, which are stacked under the folder header; collapsed
    folders hide their children entirely.

    Args:
        state: Collection whose rows should be laid out.
        settings: Layout geometry; defaults apply when omitted.
        intrinsic_heights: Natural document heights keyed by id.
        child_indent: Horizontal inset of folder children.

    Returns:
        dict[str, Rect]: Bounds of every visible row in content coordinates.
    """
    settings = settings or LayoutSettings()
    intrinsic = intrinsic_heights or {}
    width = settings.sidebar_width

    root_heights: dict[str, float] = {}
    child_offsets: dict[str, list[tuple[str, float, float]]] = {}
    for item_id in state.mixed_order():
        folder = state.find_folder(item_id)
        if folder is None:
            root_heights[item_id] = row_height(intrinsic, item_id, settings.fallback_height)
            continue
        height = settings.folder_header_height
        rows: list[tuple[str, float, float]] = []
        if folder.is_expanded:
            for child in state.folder_children(folder.id):
                child_height = row_height(intrinsic, child.id, settings.fallback_height)
                rows.append((child.id, height, child_height))
                height += child_height + settings.child_gap
        root_heights[item_id] = height
        child_offsets[item_id] = rows

    order = state.mixed_order()
    tops = compute_positions(order, root_heights, settings.gap, settings.fallback_height)
    bounds: dict[str, Rect] = {}
    for item_id in order:
        top = tops[item_id]
        bounds[item_id] = Rect(0.0, top, width, root_heights[item_id])
        for child_id, offset, child_height in child_offsets.get(item_id, []):
            bounds[child_id] = Rect(child_indent, top + offset, width - child_indent, child_height)
    return bounds


__all__ = ["Measure", "Viewport", "LayoutModel", "stacked_measure"]
