"""Reorganization payloads, plans and diffs."""

from __future__ import annotations

from typing import List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Model exchanged with the reorganization endpoint (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentMove(WireModel):
    """Move of one document.

    Attributes:
        document_id: Document to move.
        target_folder_id: Destination folder id, a placeholder key for a folder
            that is about to be created, or ``None`` for the root.
    """

    document_id: str
    target_folder_id: Optional[str] = None


class Operations(WireModel):
    """Structural changes proposed for a collection."""

    folders_to_create: List[str] = Field(default_factory=list)
    documents_to_move: List[DocumentMove] = Field(default_factory=list)
    folders_to_delete: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.folders_to_create or self.documents_to_move or self.folders_to_delete)


class ProposedDocument(WireModel):
    id: str
    name: Optional[str] = None


class ProposedFolder(WireModel):
    name: str
    documents: List[ProposedDocument] = Field(default_factory=list)


class ProposedStructure(WireModel):
    """Target structure proposed by the organizing model."""

    folders: List[ProposedFolder] = Field(default_factory=list)
    root_documents: List[ProposedDocument] = Field(default_factory=list)


class Reorganization(WireModel):
    operations: Operations
    structure: Optional[ProposedStructure] = None


class ReorganizeResponse(WireModel):
    """Body returned by the reorganization endpoint."""

    status: Optional[str] = None
    reorganization: Reorganization


class ReorganizationDiff(BaseModel):
    """Partition of a collection's items for one reorganization.

    ``staying_item_ids``, ``moving_doc_ids`` and ``deleting_folder_ids`` are
    pairwise disjoint and together cover every current item.
    """

    moving_doc_ids: Set[str] = Field(default_factory=set)
    deleting_folder_ids: Set[str] = Field(default_factory=set)
    creating_folders: List[str] = Field(default_factory=list)
    staying_item_ids: Set[str] = Field(default_factory=set)

    def all_item_ids(self) -> Set[str]:
        return self.moving_doc_ids | self.deleting_folder_ids | self.staying_item_ids


class ReorganizationPlan(BaseModel):
    """Validated operations ready to apply.

    Attributes:
        collection_id: Collection the plan applies to.
        operations: Operations restricted to effective moves and valid deletes.
        diff: Item partition driving the animation.
        rejected_deletes: Folders proposed for deletion that would not end up empty.
        notes: Human-readable notes about dropped or rejected operations.
    """

    collection_id: str
    operations: Operations = Field(default_factory=Operations)
    diff: ReorganizationDiff = Field(default_factory=ReorganizationDiff)
    rejected_deletes: List[str] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)

    @property
    def effective_moves(self) -> List[DocumentMove]:
        return self.operations.documents_to_move


class ApplyResult(BaseModel):
    """What a plan application actually committed.

    Attributes:
        created_folder_ids: Ids of created folders, in creation order.
        folder_ids_by_key: Placeholder key to created folder id.
        moved_document_ids: Documents moved, in plan order.
        deleted_folder_ids: Folders deleted.
    """

    created_folder_ids: List[str] = Field(default_factory=list)
    folder_ids_by_key: dict[str, str] = Field(default_factory=dict)
    moved_document_ids: List[str] = Field(default_factory=list)
    deleted_folder_ids: List[str] = Field(default_factory=list)


__all__ = [
    "WireModel",
    "DocumentMove",
    "Operations",
    "ProposedDocument",
    "ProposedFolder",
    "ProposedStructure",
    "Reorganization",
    "ReorganizeResponse",
    "ReorganizationDiff",
    "ReorganizationPlan",
    "ApplyResult",
]
