"""Collection structure models: documents, folders and the root mixed order."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class StructureModel(BaseModel):
    """Base class for persisted structure records."""

    model_config = ConfigDict(extra="forbid", validate_assignment=False)


class Document(StructureModel):
    """A document row in the sidebar.

    Attributes:
        id: Opaque identifier.
        collection_id: Collection that owns the document.
        folder_id: Containing folder, or ``None`` for the collection root.
        position: Ordering key inside the container; ties keep list order.
        name: Display name.
        is_placeholder: Whether the document is awaiting its first upload.
        is_loading: Whether an upload or conversion is still in flight.
        thumbnail_url: Optional preview image.
        label: Optional category tag used for styling and suggestions.
        type: Optional document kind reported by the backend.
    """

    kind: Literal["document"] = "document"
    id: str
    collection_id: str
    folder_id: Optional[str] = None
    position: float = 0
    name: str = ""
    is_placeholder: bool = False
    is_loading: bool = False
    thumbnail_url: Optional[str] = None
    label: Optional[str] = None
    type: Optional[str] = None


class Folder(StructureModel):
    """A folder row in the sidebar.

    Folders always live at the collection root; there is deliberately no
    ``folder_id`` field, so a folder cannot be nested inside another one.

    Attributes:
        id: Opaque identifier.
        collection_id: Collection that owns the folder.
        position: Ordering key inside the root container.
        name: Display name.
        is_expanded: Whether the folder currently shows its children.
        type: Plain folder or assignment folder.
        deadline: Optional assignment deadline.
        weighting: Optional assignment weighting.
    """

    kind: Literal["folder"] = "folder"
    id: str
    collection_id: str
    position: float = 0
    name: str = "New folder"
    is_expanded: bool = False
    type: Literal["folder", "assignment"] = "folder"
    deadline: Optional[datetime] = None
    weighting: Optional[float] = None


Item = Union[Document, Folder]


class CollectionState(BaseModel):
    """Structure of a single collection: its folders, documents and root order."""

    collection_id: str
    name: str = ""
    folders: List[Folder] = Field(default_factory=list)
    documents: List[Document] = Field(default_factory=list)
    root_order: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _check_references(self) -> "CollectionState":
        folder_ids = {folder.id for folder in self.folders if folder.collection_id == self.collection_id}
        for document in self.documents:
            if document.folder_id is not None and document.folder_id not in folder_ids:
                raise ValueError(
                    f"Document {document.id} references folder {document.folder_id} "
                    f"outside collection {self.collection_id}"
                )
        return self

    # ------------------------------------------------------------------ #
    # Lookups                                                            #
    # ------------------------------------------------------------------ #

    def find_document(self, document_id: str) -> Optional[Document]:
        return next((doc for doc in self.documents if doc.id == document_id), None)

    def find_folder(self, folder_id: str) -> Optional[Folder]:
        return next((folder for folder in self.folders if folder.id == folder_id), None)

    def find_item(self, item_id: str) -> Optional[Item]:
        return self.find_folder(item_id) or self.find_document(item_id)

    def item_ids(self) -> set[str]:
        """Return the ids of every folder and document in the collection."""
        return {folder.id for folder in self.folders} | {doc.id for doc in self.documents}

    def folder_children(self, folder_id: str) -> list[Document]:
        """Return the documents of ``folder_id`` sorted by position.

        Args:
            folder_id: Folder whose children should be listed.

        Returns:
            list[Document]: Children in display order.
        """
        children = [doc for doc in self.documents if doc.folder_id == folder_id]
        return sorted(children, key=lambda doc: doc.position)

    def root_documents(self) -> list[Document]:
        return [doc for doc in self.documents if doc.folder_id is None]

    def mixed_order(self) -> list[str]:
        """Return the authoritative root order of folders and documents.

        Ids in ``root_order`` that no longer name a root item are skipped;
        root items missing from ``root_order`` follow, sorted by position.

        Returns:
            list[str]: Interleaved folder and document ids.
        """
        root_items: list[Item] = [*self.folders, *self.root_documents()]
        root_ids = {item.id for item in root_items}
        ordered = [item_id for item_id in dict.fromkeys(self.root_order) if item_id in root_ids]
        seen = set(ordered)
        missing = sorted(
            (item for item in root_items if item.id not in seen),
            key=lambda item: item.position,
        )
        return ordered + [item.id for item in missing]


__all__ = ["Document", "Folder", "Item", "CollectionState"]
