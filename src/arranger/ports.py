"""Contracts for the collaborators the engine calls out to.

Every structural mutation, upload and AI hint goes through one of these
protocols. Calls are asynchronous and assumed to commit independently: the
engine never rolls back a call that already succeeded.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol, Sequence

if TYPE_CHECKING:
    from arranger.external.models import IncomingFile, Placement
    from arranger.notices import Notice
    from arranger.state.models import Document, Folder
    from arranger.suggestions import FolderSuggestion, FolderSuggestionContext


class WorkspacePort(Protocol):
    """Structural mutations of a collection."""

    async def move_document(
        self,
        document_id: str,
        collection_id: str,
        target_folder_id: Optional[str],
        position: int,
    ) -> None: ...

    async def reorder_documents(
        self, container_id: str, ordered_ids: Sequence[str], is_folder: bool
    ) -> None: ...

    async def update_mixed_order(self, collection_id: str, ordered_ids: Sequence[str]) -> None: ...

    async def add_folder(
        self,
        collection_id: str,
        name: str,
        type: str = "folder",
        position: Optional[int] = None,
        deadline: Optional[str] = None,
        weighting: Optional[float] = None,
    ) -> "Folder": ...

    async def delete_folder(self, folder_id: str) -> None: ...

    async def delete_document(self, document_id: str) -> Optional["Document"]: ...

    async def group_documents_into_folder(
        self,
        target_document_id: str,
        dragged_document_id: str,
        collection_id: str,
        insert_index: int,
    ) -> "Folder": ...

    async def set_folder_expanded(self, folder_id: str, expanded: bool) -> None: ...


class Uploader(Protocol):
    """Upload of natively dropped files."""

    async def upload(
        self, file: "IncomingFile", collection_id: str, placement: "Placement"
    ) -> "Document": ...

    async def upload_into_placeholder(self, placeholder_id: str, file: "IncomingFile") -> "Document": ...


class SuggestionProvider(Protocol):
    """AI folder placement hints."""

    async def suggest(self, context: "FolderSuggestionContext") -> Optional["FolderSuggestion"]: ...


class Notifier(Protocol):
    """Sink for user-facing notices."""

    def notify(self, notice: "Notice") -> None: ...


__all__ = ["WorkspacePort", "Uploader", "SuggestionProvider", "Notifier"]
