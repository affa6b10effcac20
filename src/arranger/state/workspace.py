"""In-memory workspace that applies structural mutations to a collection state."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable, Optional, Sequence

from .errors import FolderNotEmptyError, InvalidReferenceError, ItemNotFoundError
from .models import CollectionState, Document, Folder

LOGGER = logging.getLogger(__name__)

RemovalListener = Callable[[str], None]


def _default_id() -> str:
    return uuid.uuid4().hex


class CollectionWorkspace:
    """Mutate a :class:`CollectionState` the way the sidebar backend does.

    Every mutation keeps ``position`` values sequential inside the containers
    it touches and keeps ``root_order`` in sync with the root items.
    """

    def __init__(
        self,
        state: CollectionState,
        *,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.state = state
        self._id_factory = id_factory or _default_id
        self._removal_listeners: list[RemovalListener] = []

    def add_removal_listener(self, listener: RemovalListener) -> None:
        """Register a callback invoked with the id of every deleted item."""
        self._removal_listeners.append(listener)

    # ------------------------------------------------------------------ #
    # Queries                                                            #
    # ------------------------------------------------------------------ #

    def folder_child_ids(self, folder_id: str) -> list[str]:
        return [doc.id for doc in self.state.folder_children(folder_id)]

    def root_order(self) -> list[str]:
        return self.state.mixed_order()

    # ------------------------------------------------------------------ #
    # Mutations                                                          #
    # ------------------------------------------------------------------ #

    async def move_document(
        self,
        document_id: str,
        collection_id: str,
        target_folder_id: Optional[str],
        position: int,
    ) -> None:
        """Move a document to ``position`` inside the target container.

        Args:
            document_id: Document to relocate.
            collection_id: Collection the document must end up in.
            target_folder_id: Destination folder, or ``None`` for the root.
            position: Index inside the destination container (clamped).

        Raises:
            ItemNotFoundError: If the document does not exist.
            InvalidReferenceError: If the destination is outside this collection.
        """
        document = self._require_document(document_id)
        self._check_collection(collection_id)
        if target_folder_id is not None and self.state.find_folder(target_folder_id) is None:
            raise InvalidReferenceError(f"Unknown target folder {target_folder_id}")

        source_folder_id = document.folder_id
        target_ids = self._container_ids(target_folder_id)

        if source_folder_id == target_folder_id:
            current_index = target_ids.index(document_id)
            target_ids.remove(document_id)
            index = _clamp(position, len(target_ids))
            if index == current_index:
                LOGGER.debug("Document %s already at %s[%d]", document_id, target_folder_id, index)
                return
            target_ids.insert(index, document_id)
            self._resequence(target_folder_id, target_ids)
            return

        source_ids = [item_id for item_id in self._container_ids(source_folder_id) if item_id != document_id]
        document.folder_id = target_folder_id
        index = _clamp(position, len(target_ids))
        target_ids.insert(index, document_id)
        self._resequence(source_folder_id, source_ids)
        self._resequence(target_folder_id, target_ids)
        LOGGER.debug(
            "Moved document %s from %s to %s[%d]", document_id, source_folder_id, target_folder_id, index
        )

    async def reorder_documents(self, container_id: str, ordered_ids: Sequence[str], is_folder: bool) -> None:
        """Persist a new sibling order for a folder or for the root documents.

        For the root, only document slots are reordered; folders keep their
        place in the mixed order.
        """
        if is_folder:
            if self.state.find_folder(container_id) is None:
                raise ItemNotFoundError(f"Unknown folder {container_id}")
            current = self.folder_child_ids(container_id)
            self._resequence(container_id, _merge_order(ordered_ids, current))
            return

        self._check_collection(container_id)
        mixed = self.state.mixed_order()
        documents = [item_id for item_id in mixed if self.state.find_document(item_id) is not None]
        reordered = iter(_merge_order(ordered_ids, documents))
        updated = [next(reordered) if item_id in documents else item_id for item_id in mixed]
        self._resequence(None, updated)

    async def update_mixed_order(self, collection_id: str, ordered_ids: Sequence[str]) -> None:
        """Persist the interleaved root order of folders and documents."""
        self._check_collection(collection_id)
        self._resequence(None, _merge_order(ordered_ids, self.state.mixed_order()))

    async def add_folder(
        self,
        collection_id: str,
        name: str,
        type: str = "folder",
        position: Optional[int] = None,
        deadline: Optional[str] = None,
        weighting: Optional[float] = None,
    ) -> Folder:
        """Create a root-level folder and return it."""
        self._check_collection(collection_id)
        folder = Folder(
            id=self._id_factory(),
            collection_id=collection_id,
            name=name,
            type=type,  # type: ignore[arg-type]
            deadline=datetime.fromisoformat(deadline) if deadline else None,
            weighting=weighting,
        )
        order = self.state.mixed_order()
        self.state.folders.append(folder)
        index = len(order) if position is None else _clamp(position, len(order))
        order.insert(index, folder.id)
        self._resequence(None, order)
        LOGGER.debug("Created folder %s (%s) at root[%d]", folder.id, name, index)
        return folder

    async def add_document(
        self,
        collection_id: str,
        name: str,
        folder_id: Optional[str] = None,
        position: Optional[int] = None,
        *,
        is_placeholder: bool = False,
        label: Optional[str] = None,
    ) -> Document:
        """Register a new document inside a container and return it."""
        self._check_collection(collection_id)
        if folder_id is not None and self.state.find_folder(folder_id) is None:
            raise InvalidReferenceError(f"Unknown target folder {folder_id}")
        document = Document(
            id=self._id_factory(),
            collection_id=collection_id,
            folder_id=folder_id,
            name=name,
            is_placeholder=is_placeholder,
            label=label,
        )
        order = self._container_ids(folder_id)
        self.state.documents.append(document)
        index = len(order) if position is None else _clamp(position, len(order))
        order.insert(index, document.id)
        self._resequence(folder_id, order)
        return document

    async def fill_placeholder(self, placeholder_id: str, name: str) -> Document:
        """Turn a placeholder into a regular document named ``name``."""
        document = self._require_document(placeholder_id)
        if not document.is_placeholder:
            raise InvalidReferenceError(f"Document {placeholder_id} is not a placeholder")
        document.is_placeholder = False
        document.name = name
        return document

    async def delete_folder(self, folder_id: str) -> None:
        """Delete an empty folder.

        Raises:
            ItemNotFoundError: If the folder does not exist.
            FolderNotEmptyError: If documents still reference the folder.
        """
        folder = self.state.find_folder(folder_id)
        if folder is None:
            raise ItemNotFoundError(f"Unknown folder {folder_id}")
        remaining = self.folder_child_ids(folder_id)
        if remaining:
            raise FolderNotEmptyError(f"Folder {folder_id} still contains {len(remaining)} document(s)")
        self.state.folders.remove(folder)
        self._resequence(None, self.state.mixed_order())
        self._announce_removal(folder_id)

    async def delete_document(self, document_id: str) -> Optional[Document]:
        document = self.state.find_document(document_id)
        if document is None:
            return None
        container = document.folder_id
        self.state.documents.remove(document)
        self._resequence(container, self._container_ids(container))
        self._announce_removal(document_id)
        return document

    async def group_documents_into_folder(
        self,
        target_document_id: str,
        dragged_document_id: str,
        collection_id: str,
        insert_index: int,
    ) -> Folder:
        """Create a folder holding the target document followed by the dragged one.

        The new folder takes the target's place in the root order; the dragged
        document leaves whichever container it came from.
        """
        self._check_collection(collection_id)
        target = self._require_document(target_document_id)
        dragged = self._require_document(dragged_document_id)
        if target.folder_id is not None:
            raise InvalidReferenceError(f"Grouping target {target_document_id} is not a root document")

        order = self.state.mixed_order()
        source_folder_id = dragged.folder_id

        folder = Folder(id=self._id_factory(), collection_id=collection_id, position=insert_index)
        self.state.folders.append(folder)

        if target_document_id in order:
            order[order.index(target_document_id)] = folder.id
        else:
            order.insert(_clamp(insert_index, len(order)), folder.id)
        order = [item_id for item_id in order if item_id != dragged_document_id]

        target.folder_id = folder.id
        target.position = 0
        dragged.folder_id = folder.id
        dragged.position = 1

        if source_folder_id is not None:
            self._resequence(source_folder_id, self.folder_child_ids(source_folder_id))
        self._resequence(None, order)
        LOGGER.debug("Grouped %s and %s into folder %s", target_document_id, dragged_document_id, folder.id)
        return folder

    async def set_folder_expanded(self, folder_id: str, expanded: bool) -> None:
        folder = self.state.find_folder(folder_id)
        if folder is None:
            raise ItemNotFoundError(f"Unknown folder {folder_id}")
        folder.is_expanded = expanded

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _require_document(self, document_id: str) -> Document:
        document = self.state.find_document(document_id)
        if document is None:
            raise ItemNotFoundError(f"Unknown document {document_id}")
        return document

    def _check_collection(self, collection_id: str) -> None:
        if collection_id != self.state.collection_id:
            raise InvalidReferenceError(
                f"Collection {collection_id} does not match workspace collection {self.state.collection_id}"
            )

    def _container_ids(self, folder_id: Optional[str]) -> list[str]:
        if folder_id is None:
            return self.state.mixed_order()
        return self.folder_child_ids(folder_id)

    def _resequence(self, folder_id: Optional[str], ordered_ids: Sequence[str]) -> None:
        for index, item_id in enumerate(ordered_ids):
            item = self.state.find_item(item_id)
            if item is not None:
                item.position = index
        if folder_id is None:
            self.state.root_order = list(ordered_ids)

    def _announce_removal(self, item_id: str) -> None:
        for listener in self._removal_listeners:
            listener(item_id)


def _clamp(index: int, length: int) -> int:
    return max(0, min(int(index), length))


def _merge_order(requested: Sequence[str], current: Sequence[str]) -> list[str]:
    """Return ``requested`` restricted to ``current`` ids, then any omitted ids."""
    allowed = set(current)
    merged = [item_id for item_id in dict.fromkeys(requested) if item_id in allowed]
    seen = set(merged)
    merged.extend(item_id for item_id in current if item_id not in seen)
    return merged


__all__ = ["CollectionWorkspace", "RemovalListener"]
