"""Resolve where natively dragged files would land under the pointer."""

from __future__ import annotations

import logging
from typing import Optional

from arranger.config.models import DragSettings
from arranger.layout.geometry import Point
from arranger.layout.hits import folder_at, folder_insertion_index
from arranger.layout.model import LayoutModel
from arranger.state.models import CollectionState, Document

from .models import DropTarget, FolderTarget, PlaceholderTarget, RootTarget

LOGGER = logging.getLogger(__name__)


class ExternalDropResolver:
    """Stateless hit-testing for OS file drags.

    Resolution order is placeholder, then folder, then root slot. When the
    layout has not been measured yet nothing resolves.
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

    def resolve(self, pointer: Point) -> Optional[DropTarget]:
        """Return the drop target under a viewport pointer sample."""
        if not self.layout.has_measurements:
            LOGGER.debug("Layout not measured yet; deferring external drop target")
            return None
        point = self.layout.to_content(pointer)

        placeholder = self._placeholder_at(point)
        if placeholder is not None:
            return PlaceholderTarget(document_id=placeholder.id)

        folder = folder_at(self.state, self.layout, point, self.settings.folder_padding)
        if folder is not None:
            index = folder_insertion_index(self.state, self.layout, folder, point.y)
            return FolderTarget(folder_id=folder.id, index=index)

        return RootTarget(index=self.layout.slot(point.y, self.state.mixed_order()))

    def _placeholder_at(self, point: Point) -> Optional[Document]:
        candidates = list(self.state.root_documents())
        for folder in self.state.folders:
            candidates.extend(self.state.folder_children(folder.id))
        for document in candidates:
            if not document.is_placeholder:
                continue
            bounds = self.layout.bounds(document.id)
            if bounds is not None and bounds.contains(point):
                return document
        return None


__all__ = ["ExternalDropResolver"]
