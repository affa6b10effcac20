"""State machine for the single in-flight sidebar drag."""

from __future__ import annotations

import logging
import math
from typing import Callable, List, Optional

from arranger.config.models import DragSettings
from arranger.layout.geometry import Point
from arranger.layout.hits import folder_at, folder_insertion_index
from arranger.layout.model import LayoutModel
from arranger.layout.positions import preview_reorder, reorder
from arranger.state.models import CollectionState
from arranger.timing import Clock

from .errors import DragError, DragInProgressError
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
    document_ids_for,
)

LOGGER = logging.getLogger(__name__)

PhaseListener = Callable[[DragPhase, Optional[DragSession]], None]


class DragSessionController:
    """Track one drag at a time and resolve it into a drop decision.

    The controller only reads the collection state and the layout; turning a
    decision into mutations is the job of :class:`~arranger.drag.executor.DropExecutor`.
    Hover targets are always recomputed from the most recent pointer sample,
    including after auto-scroll ticks and manual container scrolls.
    """

    def __init__(
        self,
        state: CollectionState,
        layout: LayoutModel,
        settings: DragSettings | None = None,
    ) -> None:
        self.state = state
        self.layout = layout
        self.settings = settings or DragSettings()
        self._session: Optional[DragSession] = None
        self._phase: DragPhase = "idle"
        self._listeners: List[PhaseListener] = []

    # ------------------------------------------------------------------ #
    # Observation                                                        #
    # ------------------------------------------------------------------ #

    @property
    def phase(self) -> DragPhase:
        return self._phase

    @property
    def session(self) -> Optional[DragSession]:
        return self._session

    @property
    def is_active(self) -> bool:
        return self._session is not None

    def add_phase_listener(self, listener: PhaseListener) -> None:
        """Register a callback invoked on every phase transition."""
        self._listeners.append(listener)

    def preview_positions(self) -> dict[str, float]:
        """Return root positions with the dragged root item shown at its current slot."""
        order = self.state.mixed_order()
        session = self._session
        if (
            session is None
            or session.insertion_index is None
            or session.hovered_folder_id is not None
            or session.hovered_document_id is not None
            or session.item.id not in order
        ):
            return self.layout.positions(order)
        settings = self.layout.settings
        return preview_reorder(
            order,
            session.item.id,
            session.insertion_index,
            self.layout.heights,
            settings.gap,
            settings.fallback_height,
        )

    # ------------------------------------------------------------------ #
    # Lifecycle                                                          #
    # ------------------------------------------------------------------ #

    def start(self, item_id: str, pointer: Point) -> DragSession:
        """Pick up ``item_id`` at ``pointer``.

        Args:
            item_id: Folder or document being dragged.
            pointer: Pointer sample in viewport coordinates.

        Returns:
            DragSession: The new session.

        Raises:
            DragInProgressError: If another drag is still active.
            DragError: If the item is unknown.
        """
        if self._session is not None:
            raise DragInProgressError(f"Drag of {self._session.item.id} is still in progress")
        item = self.state.find_item(item_id)
        if item is None:
            raise DragError(f"Cannot drag unknown item {item_id}")

        content = self.layout.to_content(pointer)
        bounds = self.layout.bounds(item_id)
        offset = Point(content.x - bounds.left, content.y - bounds.top) if bounds else Point(0.0, 0.0)
        self._session = DragSession(item=DragItem.from_item(item), pointer=pointer, offset=offset)
        self._update_hover()
        self._transition("dragging")
        LOGGER.debug("Started dragging %s %s", self._session.item.kind, item_id)
        return self._session

    def move(self, pointer: Point) -> Optional[DragSession]:
        """Record a pointer sample and recompute the hover target."""
        session = self._session
        if session is None:
            return None
        session.pointer = pointer
        self._update_hover()
        return session

    def set_context_zone(self, over: bool) -> None:
        """Record whether the pointer is over the chat context drop zone."""
        if self._session is None:
            return
        self._session.over_context_zone = over
        self._update_hover()

    def on_container_scroll(self) -> None:
        """Re-run hover detection after the container scrolled under the pointer."""
        self.refresh()

    def refresh(self) -> None:
        """Re-run hover detection after the layout changed under the pointer."""
        if self._session is not None:
            self._update_hover()

    def scroll_tick(self) -> float:
        """Apply one auto-scroll step based on the last pointer sample.

        Returns:
            float: The distance actually scrolled (negative scrolls up).
        """
        session = self._session
        if session is None:
            return 0.0
        delta = self._auto_scroll_delta(session.pointer.y)
        if delta == 0:
            return 0.0
        applied = self.layout.scroll_by(delta)
        if applied:
            self._update_hover()
        return applied

    async def run_auto_scroll(self, clock: Clock, frame_ms: float = 16) -> None:
        """Tick auto-scroll once per frame until the drag ends."""
        while self._session is not None:
            self.scroll_tick()
            await clock.sleep(frame_ms)

    def release(self, pointer: Point | None = None) -> DragResult:
        """End the drag and resolve the drop.

        Args:
            pointer: Final pointer sample; the last known one is used when omitted.

        Returns:
            DragResult: The decision, or a context event when released over
            the context zone.

        Raises:
            DragError: If no drag is in progress.
        """
        session = self._session
        if session is None:
            raise DragError("No drag in progress")
        if pointer is not None:
            session.pointer = pointer
            self._update_hover()

        restore = session.item.id if session.item.kind == "folder" and session.item.was_expanded else None
        if session.over_context_zone:
            event = self._context_event(session.item)
            self._finish("cancelled")
            LOGGER.debug("Dropped %s on the context zone", session.item.id)
            return DragResult(status="cancelled", context_event=event, restore_expanded_folder_id=restore)

        decision = self._resolve(session)
        self._finish("dropped")
        LOGGER.debug("Resolved drop of %s: %s", session.item.id, decision)
        return DragResult(status="dropped", decision=decision, restore_expanded_folder_id=restore)

    def cancel(self) -> Optional[DragResult]:
        """Abandon the drag without any decision."""
        session = self._session
        if session is None:
            return None
        restore = session.item.id if session.item.kind == "folder" and session.item.was_expanded else None
        self._finish("cancelled")
        return DragResult(status="cancelled", restore_expanded_folder_id=restore)

    def forget_item(self, item_id: str) -> None:
        """Drop every reference to a removed item.

        Removing the dragged item itself cancels the session.
        """
        session = self._session
        if session is None:
            return
        if session.item.id == item_id:
            LOGGER.debug("Dragged item %s was removed; cancelling drag", item_id)
            self._finish("cancelled")
            return
        if item_id in (session.hovered_folder_id, session.hovered_document_id):
            self._update_hover()

    # ------------------------------------------------------------------ #
    # Hover detection                                                    #
    # ------------------------------------------------------------------ #

    def _update_hover(self) -> None:
        session = self._session
        if session is None:
            return
        session.clear_hover()
        if session.over_context_zone or not self.layout.has_measurements:
            return
        if not self.layout.viewport.rect.contains(session.pointer):
            return

        point = self.layout.to_content(session.pointer)
        if session.item.is_document:
            target = self._grouping_target(point, session.item.id)
            if target is not None:
                session.hovered_document_id = target
                return
            folder = folder_at(self.state, self.layout, point, self.settings.folder_padding)
            if folder is not None:
                session.hovered_folder_id = folder.id
                session.insertion_index = folder_insertion_index(
                    self.state, self.layout, folder, point.y, exclude=session.item.id
                )
                return

        order = [item_id for item_id in self.state.mixed_order() if item_id != session.item.id]
        session.insertion_index = self.layout.slot(point.y, order)

    def _grouping_target(self, point: Point, dragged_id: str) -> Optional[str]:
        for document in self.state.root_documents():
            if document.id == dragged_id:
                continue
            bounds = self.layout.bounds(document.id)
            if bounds is None:
                continue
            band = bounds.center_band(self.settings.group_band_ratio, self.settings.group_horizontal_padding)
            if band.contains(point):
                return document.id
        return None

    def _auto_scroll_delta(self, y: float) -> float:
        rect = self.layout.viewport.rect
        threshold = self.settings.auto_scroll_threshold
        max_speed = self.settings.auto_scroll_max_speed
        if y < rect.top + threshold:
            depth = max(0.0, rect.top + threshold - y)
            return -math.ceil(min(1.0, depth / threshold) * max_speed)
        if y > rect.bottom - threshold:
            depth = max(0.0, y - (rect.bottom - threshold))
            return math.ceil(min(1.0, depth / threshold) * max_speed)
        return 0.0

    # ------------------------------------------------------------------ #
    # Drop resolution                                                    #
    # ------------------------------------------------------------------ #

    def _resolve(self, session: DragSession) -> DropDecision:
        item = session.item
        if item.is_document and session.hovered_document_id is not None:
            target = self.state.find_document(session.hovered_document_id)
            if target is not None and target.folder_id is None:
                order = [item_id for item_id in self.state.mixed_order() if item_id != item.id]
                return GroupIntoFolder(
                    target_document_id=target.id,
                    dragged_document_id=item.id,
                    insert_index=order.index(target.id) if target.id in order else len(order),
                )

        if item.is_document and session.hovered_folder_id is not None:
            folder = self.state.find_folder(session.hovered_folder_id)
            if folder is not None:
                index = session.insertion_index
                if index is None:
                    index = folder_insertion_index(self.state, self.layout, folder, math.inf, exclude=item.id)
                return MoveIntoFolder(
                    document_id=item.id,
                    folder_id=folder.id,
                    index=index,
                    source_folder_id=item.folder_id,
                )

        if item.is_document and item.folder_id is not None and session.insertion_index is not None:
            return MoveToRoot(document_id=item.id, index=session.insertion_index, source_folder_id=item.folder_id)

        if item.folder_id is None:
            original = tuple(self.state.mixed_order())
        else:
            original = tuple(child.id for child in self.state.folder_children(item.folder_id))
        order = original
        if item.folder_id is None and session.insertion_index is not None:
            order = tuple(reorder(original, item.id, session.insertion_index))
        return ReorderInPlace(item_id=item.id, container_id=item.folder_id, order=order, original_order=original)

    def _context_event(self, item: DragItem) -> ContextDropEvent:
        current = self.state.find_item(item.id)
        children = tuple(self.state.folder_children(item.id)) if item.kind == "folder" else ()
        document_ids = document_ids_for(current, children) if current is not None else ()
        return ContextDropEvent(item_id=item.id, name=item.name, kind=item.kind, document_ids=document_ids)

    def _finish(self, phase: DragPhase) -> None:
        session = self._session
        if session is not None:
            session.clear_hover()
        self._session = None
        self._transition(phase)
        self._transition("idle")

    def _transition(self, phase: DragPhase) -> None:
        self._phase = phase
        for listener in self._listeners:
            listener(phase, self._session)


__all__ = ["DragSessionController", "PhaseListener"]
