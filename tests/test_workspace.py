"""In-memory workspace tests."""

from __future__ import annotations

import itertools

import pytest

from arranger.state import (
    FolderNotEmptyError,
    InvalidReferenceError,
    ItemNotFoundError,
)
from arranger.state.models import CollectionState, Document, Folder
from arranger.state.workspace import CollectionWorkspace


def _workspace() -> CollectionWorkspace:
    state = CollectionState(
        collection_id="c1",
        folders=[Folder(id="F", collection_id="c1", name="Reading")],
        documents=[
            Document(id="A", collection_id="c1", name="a"),
            Document(id="X", collection_id="c1", folder_id="F", position=0, name="x"),
            Document(id="Y", collection_id="c1", folder_id="F", position=1, name="y"),
            Document(id="B", collection_id="c1", name="b"),
        ],
        root_order=["A", "F", "B"],
    )
    counter = itertools.count(1)
    return CollectionWorkspace(state, id_factory=lambda: f"new{next(counter)}")


def _children(workspace: CollectionWorkspace, folder_id: str) -> list[str]:
    return workspace.folder_child_ids(folder_id)


def test_mixed_order_skips_stale_ids_and_appends_missing_items() -> None:
    state = CollectionState(
        collection_id="c1",
        folders=[Folder(id="F", collection_id="c1", position=5)],
        documents=[Document(id="A", collection_id="c1", position=1), Document(id="B", collection_id="c1")],
        root_order=["ghost", "A", "A"],
    )

    assert state.mixed_order() == ["A", "B", "F"]


def test_state_rejects_documents_in_foreign_folders() -> None:
    with pytest.raises(ValueError):
        CollectionState(
            collection_id="c1",
            folders=[Folder(id="F", collection_id="other")],
            documents=[Document(id="A", collection_id="c1", folder_id="F")],
        )


@pytest.mark.asyncio
async def test_move_document_into_folder_resequences_both_containers() -> None:
    workspace = _workspace()

    await workspace.move_document("A", "c1", "F", 1)

    assert _children(workspace, "F") == ["X", "A", "Y"]
    assert [doc.position for doc in workspace.state.folder_children("F")] == [0, 1, 2]
    assert workspace.root_order() == ["F", "B"]
    assert workspace.state.root_order == ["F", "B"]


@pytest.mark.asyncio
async def test_move_document_to_root_and_within_container() -> None:
    workspace = _workspace()

    await workspace.move_document("Y", "c1", None, 0)
    await workspace.move_document("B", "c1", None, 1)

    assert _children(workspace, "F") == ["X"]
    assert workspace.root_order() == ["Y", "B", "A", "F"]


@pytest.mark.asyncio
async def test_move_document_to_current_slot_is_noop() -> None:
    workspace = _workspace()
    before = workspace.state.model_dump()

    await workspace.move_document("X", "c1", "F", 0)

    assert workspace.state.model_dump() == before


@pytest.mark.asyncio
async def test_move_document_rejects_unknown_targets() -> None:
    workspace = _workspace()

    with pytest.raises(ItemNotFoundError):
        await workspace.move_document("missing", "c1", None, 0)
    with pytest.raises(InvalidReferenceError):
        await workspace.move_document("A", "c1", "nope", 0)
    with pytest.raises(InvalidReferenceError):
        await workspace.move_document("A", "other", None, 0)


@pytest.mark.asyncio
async def test_reorder_documents_in_root_keeps_folder_slots() -> None:
    workspace = _workspace()

    await workspace.reorder_documents("c1", ["B", "A"], False)

    assert workspace.root_order() == ["B", "F", "A"]


@pytest.mark.asyncio
async def test_reorder_documents_in_folder_appends_omitted_children() -> None:
    workspace = _workspace()

    await workspace.reorder_documents("F", ["Y"], True)

    assert _children(workspace, "F") == ["Y", "X"]


@pytest.mark.asyncio
async def test_update_mixed_order_ignores_unknown_ids() -> None:
    workspace = _workspace()

    await workspace.update_mixed_order("c1", ["B", "ghost", "F"])

    assert workspace.root_order() == ["B", "F", "A"]


@pytest.mark.asyncio
async def test_add_folder_inserts_at_position() -> None:
    workspace = _workspace()

    folder = await workspace.add_folder("c1", "Biology", position=1)

    assert folder.id == "new1"
    assert folder.name == "Biology"
    assert workspace.root_order() == ["A", "new1", "F", "B"]


@pytest.mark.asyncio
async def test_delete_folder_requires_emptiness_and_announces_removal() -> None:
    workspace = _workspace()
    removed: list[str] = []
    workspace.add_removal_listener(removed.append)

    with pytest.raises(FolderNotEmptyError):
        await workspace.delete_folder("F")

    await workspace.move_document("X", "c1", None, 0)
    await workspace.move_document("Y", "c1", None, 0)
    await workspace.delete_folder("F")

    assert workspace.state.find_folder("F") is None
    assert workspace.root_order() == ["Y", "X", "A", "B"]
    assert removed == ["F"]


@pytest.mark.asyncio
async def test_delete_document_returns_none_for_unknown_ids() -> None:
    workspace = _workspace()

    assert await workspace.delete_document("ghost") is None
    deleted = await workspace.delete_document("X")

    assert deleted is not None and deleted.id == "X"
    assert _children(workspace, "F") == ["Y"]


@pytest.mark.asyncio
async def test_group_documents_replaces_target_in_root_order() -> None:
    workspace = _workspace()

    folder = await workspace.group_documents_into_folder("B", "X", "c1", 2)

    assert workspace.root_order() == ["A", "F", folder.id]
    assert _children(workspace, folder.id) == ["B", "X"]
    assert _children(workspace, "F") == ["Y"]


@pytest.mark.asyncio
async def test_group_documents_rejects_nested_target() -> None:
    workspace = _workspace()

    with pytest.raises(InvalidReferenceError):
        await workspace.group_documents_into_folder("X", "A", "c1", 0)


@pytest.mark.asyncio
async def test_fill_placeholder_only_accepts_placeholders() -> None:
    workspace = _workspace()
    placeholder = await workspace.add_document("c1", "Essay", "F", is_placeholder=True)

    filled = await workspace.fill_placeholder(placeholder.id, "essay.pdf")

    assert filled.name == "essay.pdf"
    assert not filled.is_placeholder
    with pytest.raises(InvalidReferenceError):
        await workspace.fill_placeholder("A", "other.pdf")
