"""One workspace view: state, layout, drags, drops and reorganizations wired together."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

from arranger.config.models import ArrangerConfig
from arranger.drag import DragResult, DragSession, DragSessionController, DropExecutor
from arranger.external import (
    ExternalDropHandler,
    ExternalDropReport,
    ExternalDropResolver,
    IncomingFile,
    WorkspaceUploader,
)
from arranger.layout import LayoutModel, Measure, Point, Rect, Viewport, stacked_measure
from arranger.notices import Notice, NoticeLog
from arranger.organization import ReorganizeClient, ReorganizationService
from arranger.ports import Notifier, SuggestionProvider, Uploader
from arranger.state.errors import WorkspaceError
from arranger.state.models import CollectionState
from arranger.state.workspace import CollectionWorkspace
from arranger.suggestions import SuggestionBoard
from arranger.timing import Clock

LOGGER = logging.getLogger(__name__)

DEFAULT_VIEWPORT_HEIGHT = 600.0


class Sidebar:
    """Facade owning the single drag controller of a workspace view.

    Args:
        state: Collection shown in the sidebar.
        config: Settings; defaults apply when omitted.
        workspace: Mutation backend; an in-memory workspace over ``state`` by default.
        uploader: Upload backend; files are registered in the workspace by default.
        suggestion_provider: Enables suggestion badges when given.
        notifier: Sink for notices; a :class:`NoticeLog` by default.
        client: Reorganization endpoint client.
        clock: Clock for layout settling and animations.
        measure: Bounds capability; the stacked renderer by default.
        viewport: Scroll container geometry.
    """

    def __init__(
        self,
        state: CollectionState,
        config: ArrangerConfig | None = None,
        *,
        workspace: Optional[CollectionWorkspace] = None,
        uploader: Optional[Uploader] = None,
        suggestion_provider: Optional[SuggestionProvider] = None,
        notifier: Optional[Notifier] = None,
        client: Optional[ReorganizeClient] = None,
        clock: Optional[Clock] = None,
        measure: Optional[Measure] = None,
        viewport: Optional[Viewport] = None,
    ) -> None:
        self.state = state
        self.config = config or ArrangerConfig()
        self.workspace = workspace or CollectionWorkspace(state)
        self.notifier: Notifier = notifier or NoticeLog()
        self.intrinsic_heights: Dict[str, float] = {}

        layout_settings = self.config.layout
        self.layout = LayoutModel(
            measure or (lambda: stacked_measure(self.state, layout_settings, self.intrinsic_heights)),
            viewport or Viewport(Rect(0.0, 0.0, layout_settings.sidebar_width, DEFAULT_VIEWPORT_HEIGHT)),
            layout_settings,
            clock=clock,
        )
        self.layout.remeasure()

        self.drag = DragSessionController(state, self.layout, self.config.drag)
        self.drops = DropExecutor(self.workspace, state.collection_id, self.notifier, self.layout)
        self.resolver = ExternalDropResolver(state, self.layout, self.config.drag)
        self.suggestions = (
            SuggestionBoard(state, self.workspace, suggestion_provider) if suggestion_provider else None
        )
        self.uploads = ExternalDropHandler(
            state,
            self.workspace,
            uploader or WorkspaceUploader(self.workspace),
            self.notifier,
            self.config.uploads,
            self.suggestions,
        )
        self.reorganizer = ReorganizationService(
            state,
            self.workspace,
            self.notifier,
            client=client,
            settings=self.config.animation,
            clock=clock,
        )
        self.workspace.add_removal_listener(self.drag.forget_item)

    # ------------------------------------------------------------------ #
    # Internal drags                                                     #
    # ------------------------------------------------------------------ #

    async def start_drag(self, item_id: str, pointer: Point) -> DragSession:
        session = self.drag.start(item_id, pointer)
        await self.drops.on_drag_start(session.item)
        self.drag.refresh()
        return session

    def move_drag(self, pointer: Point) -> Optional[DragSession]:
        return self.drag.move(pointer)

    async def end_drag(self, pointer: Point | None = None) -> DragResult:
        """Release the drag and apply its outcome."""
        result = self.drag.release(pointer)
        await self.drops.execute(result)
        if self.suggestions is not None:
            self.suggestions.prune()
        return result

    # ------------------------------------------------------------------ #
    # Native drops                                                       #
    # ------------------------------------------------------------------ #

    async def drop_files(self, files: Sequence[IncomingFile], pointer: Optional[Point]) -> ExternalDropReport:
        """Resolve the target under ``pointer`` and upload ``files`` there."""
        target = self.resolver.resolve(pointer) if pointer is not None else None
        report = await self.uploads.drop(files, target)
        await self.layout.schedule_remeasure()
        return report

    # ------------------------------------------------------------------ #
    # Structure                                                          #
    # ------------------------------------------------------------------ #

    async def delete_item(self, item_id: str) -> bool:
        """Delete a folder or document.

        Drag references to the item are cleared by the workspace removal
        listener once the delete succeeds.
        """
        try:
            if self.state.find_folder(item_id) is not None:
                await self.workspace.delete_folder(item_id)
            elif await self.workspace.delete_document(item_id) is None:
                return False
        except WorkspaceError as exc:
            LOGGER.error("Failed to delete %s: %s", item_id, exc)
            self.notifier.notify(Notice(level="error", message="Failed to delete item"))
            return False
        await self.layout.schedule_remeasure()
        return True

    async def toggle_folder(self, folder_id: str) -> None:
        folder = self.state.find_folder(folder_id)
        if folder is None:
            return
        await self.workspace.set_folder_expanded(folder_id, not folder.is_expanded)
        await self.layout.schedule_remeasure()


__all__ = ["Sidebar"]
