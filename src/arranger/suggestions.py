"""Per-document folder suggestions shown as badges in the sidebar."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from arranger.ports import SuggestionProvider, WorkspacePort
from arranger.state.errors import WorkspaceError
from arranger.state.models import CollectionState, Document

LOGGER = logging.getLogger(__name__)


class SuggestionError(Exception):
    """Raised by suggestion providers when no placement could be produced."""


class FolderInfo(BaseModel):
    """Existing folder described to the suggestion provider."""

    id: str
    name: str
    document_names: List[str] = Field(default_factory=list)
    has_placeholder: bool = False


class PlaceholderInfo(BaseModel):
    """Placeholder document the new file could fill."""

    id: str
    name: str
    label: str = ""
    folder_id: Optional[str] = None


class FolderSuggestionContext(BaseModel):
    """Everything the provider sees when placing one document.

    Attributes:
        document_id: Document to place.
        document_name: Display name of the document.
        document_text: Extracted text, empty when unavailable.
        collection_id: Collection the document belongs to.
        existing_folders: Folders of the collection with their document names.
        placeholder_documents: Placeholders of the collection.
        root_document_names: Names of the other root documents.
    """

    document_id: str
    document_name: str
    document_text: str = ""
    collection_id: str
    existing_folders: List[FolderInfo] = Field(default_factory=list)
    placeholder_documents: List[PlaceholderInfo] = Field(default_factory=list)
    root_document_names: List[str] = Field(default_factory=list)


class FolderSuggestion(BaseModel):
    """A proposed folder for a document.

    ``previous_folder_id`` and ``previous_position`` record where the document
    was when the suggestion arrived, so a later manual move can retire it.
    """

    document_id: str
    suggested_folder_id: Optional[str] = None
    suggested_folder_name: Optional[str] = None
    confidence: Optional[float] = None
    reason: Optional[str] = None
    previous_folder_id: Optional[str] = None
    previous_position: Optional[float] = None


def build_suggestion_context(
    document: Document,
    collection_id: str,
    state: CollectionState,
    text: str = "",
) -> FolderSuggestionContext:
    """Describe the collection around ``document`` for the suggestion provider.

    Args:
        document: Document to place.
        collection_id: Collection whose folders are candidates.
        state: Current collection structure.
        text: Optional extracted document text.

    Returns:
        FolderSuggestionContext: Context passed to :class:`SuggestionProvider`.
    """
    folders = []
    for folder in state.folders:
        if folder.collection_id != collection_id:
            continue
        children = state.folder_children(folder.id)
        folders.append(
            FolderInfo(
                id=folder.id,
                name=folder.name,
                document_names=[child.name for child in children],
                has_placeholder=any(child.is_placeholder for child in children),
            )
        )
    placeholders = [
        PlaceholderInfo(id=doc.id, name=doc.name, label=doc.label or "", folder_id=doc.folder_id)
        for doc in state.documents
        if doc.is_placeholder and doc.collection_id == collection_id
    ]
    root_names = [
        doc.name
        for doc in state.documents
        if doc.collection_id == collection_id and doc.folder_id is None and doc.id != document.id
    ]
    return FolderSuggestionContext(
        document_id=document.id,
        document_name=document.name,
        document_text=text,
        collection_id=collection_id,
        existing_folders=folders,
        placeholder_documents=placeholders,
        root_document_names=root_names,
    )


class SuggestionBoard:
    """Pending folder suggestions awaiting a user decision.

    At most one suggestion is kept per document. Provider failures are logged
    and leave the document where it is.
    """

    def __init__(
        self,
        state: CollectionState,
        workspace: WorkspacePort,
        provider: SuggestionProvider,
    ) -> None:
        self.state = state
        self.workspace = workspace
        self.provider = provider
        self._pending: Dict[str, FolderSuggestion] = {}
        self._processing: set[str] = set()

    @property
    def pending(self) -> List[FolderSuggestion]:
        return list(self._pending.values())

    @property
    def processing(self) -> set[str]:
        return set(self._processing)

    @property
    def is_processing(self) -> bool:
        return bool(self._processing)

    def get(self, document_id: str) -> Optional[FolderSuggestion]:
        return self._pending.get(document_id)

    async def request_auto_organize(
        self,
        document: Document,
        collection_id: str,
        text: str = "",
    ) -> Optional[FolderSuggestion]:
        """Ask where an uploaded document belongs.

        A suggestion is kept when it names a folder other than the document's
        current one.

        Returns:
            Optional[FolderSuggestion]: The raw suggestion, if any.
        """
        suggestion = await self._suggest(document, collection_id, text)
        if suggestion is None:
            return None
        if suggestion.suggested_folder_id is not None and suggestion.suggested_folder_id != document.folder_id:
            self._keep(document.id, suggestion, document.folder_id, document.position)
        else:
            LOGGER.debug("No relocation suggested for %s", document.id)
        return suggestion

    async def request_suggestion_for_targeted_drop(
        self,
        document_id: str,
        collection_id: str,
        chosen_folder_id: Optional[str],
    ) -> None:
        """Compare the provider's placement with the folder the user dropped into."""
        document = self.state.find_document(document_id)
        if document is None:
            return
        suggestion = await self._suggest(document, collection_id, "")
        if (
            suggestion is not None
            and suggestion.suggested_folder_id is not None
            and suggestion.suggested_folder_id != chosen_folder_id
        ):
            self._keep(document.id, suggestion, chosen_folder_id, document.position)

    async def accept(self, document_id: str) -> bool:
        """Move the document to the end of its suggested folder.

        Returns:
            bool: ``True`` when the document was moved.

        Raises:
            WorkspaceError: If the workspace rejects the move.
        """
        suggestion = self._pending.get(document_id)
        if suggestion is None:
            return False
        document = self.state.find_document(document_id)
        if document is None or document.folder_id == suggestion.suggested_folder_id:
            self._pending.pop(document_id, None)
            return False
        target = suggestion.suggested_folder_id
        siblings = [doc for doc in self.state.documents if doc.folder_id == target and doc.id != document_id]
        await self.workspace.move_document(document_id, document.collection_id, target, len(siblings))
        self._pending.pop(document_id, None)
        LOGGER.info("Accepted suggestion: moved %s to %s", document_id, target)
        return True

    def reject(self, document_id: str) -> None:
        self._pending.pop(document_id, None)

    def clear(self) -> None:
        self._pending.clear()

    def prune(self) -> List[str]:
        """Retire suggestions that no longer apply.

        A suggestion is dropped when its document vanished, already sits in the
        suggested folder, or was moved since the suggestion arrived.

        Returns:
            List[str]: Ids of the documents whose suggestion was retired.
        """
        retired: List[str] = []
        for document_id, suggestion in list(self._pending.items()):
            document = self.state.find_document(document_id)
            if (
                document is None
                or document.folder_id == suggestion.suggested_folder_id
                or document.folder_id != suggestion.previous_folder_id
            ):
                del self._pending[document_id]
                retired.append(document_id)
        if retired:
            LOGGER.debug("Auto-declined suggestions for %s", ", ".join(retired))
        return retired

    async def _suggest(
        self, document: Document, collection_id: str, text: str
    ) -> Optional[FolderSuggestion]:
        self._processing.add(document.id)
        try:
            context = build_suggestion_context(document, collection_id, self.state, text)
            return await self.provider.suggest(context)
        except (WorkspaceError, SuggestionError) as exc:
            LOGGER.warning("Folder suggestion failed for %s: %s", document.id, exc)
            return None
        except Exception as exc:
            LOGGER.warning("Folder suggestion provider errored for %s: %s", document.id, exc, exc_info=True)
            return None
        finally:
            self._processing.discard(document.id)

    def _keep(
        self,
        document_id: str,
        suggestion: FolderSuggestion,
        previous_folder_id: Optional[str],
        previous_position: float,
    ) -> None:
        self._pending[document_id] = suggestion.model_copy(
            update={
                "document_id": document_id,
                "previous_folder_id": previous_folder_id,
                "previous_position": previous_position,
            }
        )


__all__ = [
    "FolderInfo",
    "PlaceholderInfo",
    "FolderSuggestionContext",
    "FolderSuggestion",
    "SuggestionError",
    "build_suggestion_context",
    "SuggestionBoard",
]
