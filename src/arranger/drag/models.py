"""Drag session state and drop decisions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Tuple, Union

from arranger.layout.geometry import Point
from arranger.state.models import Document, Folder, Item

DragPhase = Literal["idle", "dragging", "dropped", "cancelled"]
ItemKind = Literal["document", "folder"]


@dataclass(slots=True, frozen=True)
class DragItem:
    """Snapshot of the item picked up when a drag starts.

    Attributes:
        id: Identifier of the dragged item.
        kind: Whether a document or a folder is being dragged.
        name: Display name, forwarded to context-zone events.
        folder_id: Container the item was dragged out of (``None`` for root).
        was_expanded: Whether a dragged folder was expanded before the drag.
    """

    id: str
    kind: ItemKind
    name: str
    folder_id: Optional[str] = None
    was_expanded: bool = False

    @classmethod
    def from_item(cls, item: Item) -> "DragItem":
        if isinstance(item, Folder):
            return cls(id=item.id, kind="folder", name=item.name, was_expanded=item.is_expanded)
        return cls(id=item.id, kind="document", name=item.name, folder_id=item.folder_id)

    @property
    def is_document(self) -> bool:
        return self.kind == "document"


@dataclass(slots=True)
class DragSession:
    """The single in-flight drag.

    ``hovered_folder_id`` and ``hovered_document_id`` are mutually exclusive.
    ``insertion_index`` is an index inside the hovered folder when one is set,
    otherwise the root slot; ``None`` keeps the item where it is.
    """

    item: DragItem
    pointer: Point
    offset: Point
    hovered_folder_id: Optional[str] = None
    hovered_document_id: Optional[str] = None
    insertion_index: Optional[int] = None
    over_context_zone: bool = False

    def clear_hover(self) -> None:
        self.hovered_folder_id = None
        self.hovered_document_id = None
        self.insertion_index = None


@dataclass(slots=True, frozen=True)
class GroupIntoFolder:
    """Create a folder from the hovered root document and the dragged one."""

    target_document_id: str
    dragged_document_id: str
    insert_index: int


@dataclass(slots=True, frozen=True)
class MoveIntoFolder:
    """Insert the dragged document into a folder at ``index``."""

    document_id: str
    folder_id: str
    index: int
    source_folder_id: Optional[str] = None


@dataclass(slots=True, frozen=True)
class MoveToRoot:
    """Take the dragged document out of its folder and insert it at a root slot."""

    document_id: str
    index: int
    source_folder_id: str


@dataclass(slots=True, frozen=True)
class ReorderInPlace:
    """Rewrite the order of the container the dragged item already lives in.

    Attributes:
        item_id: Dragged item.
        container_id: Folder id, or ``None`` for the collection root.
        order: Resulting order of the container.
        original_order: Order of the container before the drop.
    """

    item_id: str
    container_id: Optional[str]
    order: Tuple[str, ...]
    original_order: Tuple[str, ...]

    @property
    def changed(self) -> bool:
        return self.order != self.original_order


DropDecision = Union[GroupIntoFolder, MoveIntoFolder, MoveToRoot, ReorderInPlace]


@dataclass(slots=True, frozen=True)
class ContextDropEvent:
    """Emitted when an item is released over the chat context zone.

    Attributes:
        item_id: Dropped item.
        name: Display name of the dropped item.
        kind: Whether a document or a folder was dropped.
        document_ids: The document itself, or every child of a dropped folder.
    """

    item_id: str
    name: str
    kind: ItemKind
    document_ids: Tuple[str, ...]


@dataclass(slots=True, frozen=True)
class DragResult:
    """Outcome of ending a drag session.

    Attributes:
        status: ``"dropped"`` when a decision was resolved, ``"cancelled"`` otherwise.
        decision: Resolved drop decision, if any.
        context_event: Side-channel event for context-zone drops.
        restore_expanded_folder_id: Dragged folder to re-expand after the drop.
    """

    status: Literal["dropped", "cancelled"]
    decision: Optional[DropDecision] = None
    context_event: Optional[ContextDropEvent] = None
    restore_expanded_folder_id: Optional[str] = None


def document_ids_for(item: Item, children: Tuple[Document, ...] = ()) -> Tuple[str, ...]:
    """Return the document ids a context drop of ``item`` should carry."""
    if isinstance(item, Folder):
        return tuple(child.id for child in children)
    return (item.id,)


__all__ = [
    "DragPhase",
    "ItemKind",
    "DragItem",
    "DragSession",
    "GroupIntoFolder",
    "MoveIntoFolder",
    "MoveToRoot",
    "ReorderInPlace",
    "DropDecision",
    "ContextDropEvent",
    "DragResult",
    "document_ids_for",
]
