"""Apply resolved drop decisions through the workspace port."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from arranger.layout.model import LayoutModel
from arranger.notices import Notice
from arranger.ports import Notifier, WorkspacePort
from arranger.state.errors import WorkspaceError

from .models import (
    ContextDropEvent,
    DragItem,
    DragResult,
    DropDecision,
    GroupIntoFolder,
    MoveIntoFolder,
    MoveToRoot,
    ReorderInPlace,
)

LOGGER = logging.getLogger(__name__)

ContextListener = Callable[[ContextDropEvent], None]


class DropExecutor:
    """Turn drop decisions into workspace mutations.

    Mutation failures never escape: they are logged and surfaced as a single
    notice, and a dragged folder is re-expanded whatever the outcome.
    """

    def __init__(
        self,
        workspace: WorkspacePort,
        collection_id: str,
        notifier: Notifier,
        layout: Optional[LayoutModel] = None,
    ) -> None:
        self.workspace = workspace
        self.collection_id = collection_id
        self.notifier = notifier
        self.layout = layout
        self._context_listeners: List[ContextListener] = []

    def add_context_listener(self, listener: ContextListener) -> None:
        """Register a callback receiving "add as context" events."""
        self._context_listeners.append(listener)

    async def on_drag_start(self, item: DragItem) -> None:
        """Collapse a dragged folder so it moves as a single row."""
        if item.kind != "folder" or not item.was_expanded:
            return
        try:
            await self.workspace.set_folder_expanded(item.id, False)
        except WorkspaceError as exc:
            LOGGER.warning("Failed to collapse dragged folder %s: %s", item.id, exc)
        await self._remeasure()

    async def execute(self, result: DragResult) -> bool:
        """Apply the outcome of a drag.

        Args:
            result: Value returned by the controller on release or cancel.

        Returns:
            bool: ``True`` when every mutation succeeded (or none was needed).
        """
        succeeded = True
        try:
            if result.context_event is not None:
                for listener in self._context_listeners:
                    listener(result.context_event)
            elif result.decision is not None:
                await self.apply(result.decision)
        except WorkspaceError as exc:
            succeeded = False
            LOGGER.error("Drop failed: %s", exc)
            self.notifier.notify(Notice(level="error", message="Failed to move item"))
        finally:
            if result.restore_expanded_folder_id is not None:
                await self._restore_expanded(result.restore_expanded_folder_id)
            await self._remeasure()
        return succeeded

    async def apply(self, decision: DropDecision) -> None:
        """Issue the workspace calls for ``decision``.

        Raises:
            WorkspaceError: If the workspace rejects a call.
        """
        if isinstance(decision, GroupIntoFolder):
            folder = await self.workspace.group_documents_into_folder(
                decision.target_document_id,
                decision.dragged_document_id,
                self.collection_id,
                decision.insert_index,
            )
            await self.workspace.set_folder_expanded(folder.id, True)
            LOGGER.info(
                "Grouped %s and %s into %s",
                decision.target_document_id,
                decision.dragged_document_id,
                folder.id,
            )
        elif isinstance(decision, MoveIntoFolder):
            await self.workspace.move_document(
                decision.document_id, self.collection_id, decision.folder_id, decision.index
            )
            await self.workspace.set_folder_expanded(decision.folder_id, True)
        elif isinstance(decision, MoveToRoot):
            await self.workspace.move_document(decision.document_id, self.collection_id, None, decision.index)
        elif isinstance(decision, ReorderInPlace):
            if not decision.changed:
                return
            if decision.container_id is None:
                await self.workspace.update_mixed_order(self.collection_id, list(decision.order))
            else:
                await self.workspace.reorder_documents(decision.container_id, list(decision.order), True)

    async def _restore_expanded(self, folder_id: str) -> None:
        try:
            await self.workspace.set_folder_expanded(folder_id, True)
        except WorkspaceError as exc:
            LOGGER.warning("Failed to re-expand folder %s: %s", folder_id, exc)

    async def _remeasure(self) -> None:
        if self.layout is not None:
            await self.layout.schedule_remeasure()


__all__ = ["DropExecutor", "ContextListener"]
