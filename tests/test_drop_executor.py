"""Drop executor and sidebar drag flow tests."""

from __future__ import annotations

import itertools
from typing import Optional

import pytest

from arranger.drag import DragResult, DropExecutor, MoveToRoot, ReorderInPlace
from arranger.layout import Point
from arranger.notices import NoticeLog
from arranger.sidebar import Sidebar
from arranger.state import WorkspaceError
from arranger.state.models import CollectionState, Document, Folder
from arranger.state.workspace import CollectionWorkspace
from arranger.timing import ManualClock


class FailingWorkspace(CollectionWorkspace):
    """Workspace whose document moves are always rejected."""

    async def move_document(
        self,
        document_id: str,
        collection_id: str,
        target_folder_id: Optional[str],
        position: int,
    ) -> None:
        raise WorkspaceError("backend unavailable")


def _doc(doc_id: str, folder_id: Optional[str] = None, position: float = 0) -> Document:
    return Document(id=doc_id, collection_id="c1", folder_id=folder_id, position=position, name=doc_id.lower())


def _sidebar(state: CollectionState, **kwargs) -> Sidebar:
    counter = itertools.count(1)
    workspace = kwargs.pop("workspace", None) or CollectionWorkspace(
        state, id_factory=lambda: f"folder{next(counter)}"
    )
    return Sidebar(state, workspace=workspace, clock=ManualClock(), **kwargs)


@pytest.mark.asyncio
async def test_group_drop_creates_expanded_folder() -> None:
    state = CollectionState(
        collection_id="c1", documents=[_doc("A"), _doc("B"), _doc("C")], root_order=["A", "B", "C"]
    )
    sidebar = _sidebar(state)

    await sidebar.start_drag("C", Point(100, 130))
    sidebar.move_drag(Point(100, 24))
    await sidebar.end_drag()

    assert state.mixed_order() == ["folder1", "B"]
    folder = state.find_folder("folder1")
    assert folder is not None and folder.is_expanded
    assert [doc.id for doc in state.folder_children("folder1")] == ["A", "C"]


@pytest.mark.asyncio
async def test_move_into_folder_inserts_between_children() -> None:
    state = CollectionState(
        collection_id="c1",
        folders=[Folder(id="F", collection_id="c1", name="Folder", is_expanded=True)],
        documents=[_doc("X", "F", 0), _doc("Y", "F", 1), _doc("Z")],
        root_order=["F", "Z"],
    )
    sidebar = _sidebar(state)

    await sidebar.start_drag("Z", Point(100, 180))
    sidebar.move_drag(Point(100, 100))
    result = await sidebar.end_drag()

    assert result.status == "dropped"
    assert [doc.id for doc in state.folder_children("F")] == ["X", "Z", "Y"]
    assert state.mixed_order() == ["F"]


@pytest.mark.asyncio
async def test_dragged_folder_collapses_and_is_restored() -> None:
    state = CollectionState(
        collection_id="c1",
        folders=[Folder(id="F", collection_id="c1", is_expanded=True)],
        documents=[_doc("X", "F"), _doc("A")],
        root_order=["F", "A"],
    )
    sidebar = _sidebar(state)

    await sidebar.start_drag("F", Point(100, 20))
    assert not state.find_folder("F").is_expanded
    assert sidebar.layout.bounds("X") is None

    sidebar.move_drag(Point(100, 100))
    await sidebar.end_drag()

    assert state.mixed_order() == ["A", "F"]
    assert state.find_folder("F").is_expanded


@pytest.mark.asyncio
async def test_failed_move_emits_single_notice() -> None:
    state = CollectionState(
        collection_id="c1",
        folders=[Folder(id="F", collection_id="c1")],
        documents=[_doc("X", "F")],
        root_order=["F"],
    )
    notices = NoticeLog()
    executor = DropExecutor(FailingWorkspace(state), "c1", notices)

    succeeded = await executor.execute(
        DragResult(status="dropped", decision=MoveToRoot(document_id="X", index=0, source_folder_id="F"))
    )

    assert not succeeded
    assert notices.messages("error") == ["Failed to move item"]
    assert state.find_document("X").folder_id == "F"


@pytest.mark.asyncio
async def test_unchanged_reorder_issues_no_calls() -> None:
    state = CollectionState(collection_id="c1", documents=[_doc("A"), _doc("B")], root_order=["A", "B"])
    before = state.model_dump()
    executor = DropExecutor(FailingWorkspace(state), "c1", NoticeLog())

    succeeded = await executor.execute(
        DragResult(
            status="dropped",
            decision=ReorderInPlace(item_id="A", container_id=None, order=("A", "B"), original_order=("A", "B")),
        )
    )

    assert succeeded
    assert state.model_dump() == before


@pytest.mark.asyncio
async def test_context_drop_notifies_listeners_without_mutation() -> None:
    state = CollectionState(collection_id="c1", documents=[_doc("A"), _doc("B")], root_order=["A", "B"])
    sidebar = _sidebar(state)
    events = []
    sidebar.drops.add_context_listener(events.append)

    await sidebar.start_drag("B", Point(100, 60))
    sidebar.drag.set_context_zone(True)
    sidebar.move_drag(Point(100, 10))
    result = await sidebar.end_drag()

    assert result.status == "cancelled"
    assert [event.document_ids for event in events] == [("B",)]
    assert state.mixed_order() == ["A", "B"]


@pytest.mark.asyncio
async def test_deleting_dragged_item_cancels_drag() -> None:
    state = CollectionState(collection_id="c1", documents=[_doc("A"), _doc("B")], root_order=["A", "B"])
    sidebar = _sidebar(state)

    await sidebar.start_drag("A", Point(100, 10))
    assert await sidebar.delete_item("A")

    assert not sidebar.drag.is_active
    assert state.mixed_order() == ["B"]


@pytest.mark.asyncio
async def test_deleting_non_empty_folder_reports_failure() -> None:
    state = CollectionState(
        collection_id="c1",
        folders=[Folder(id="F", collection_id="c1")],
        documents=[_doc("X", "F")],
        root_order=["F"],
    )
    notices = NoticeLog()
    sidebar = _sidebar(state, notifier=notices)

    assert not await sidebar.delete_item("F")
    assert notices.messages() == ["Failed to delete item"]


@pytest.mark.asyncio
async def test_failed_delete_keeps_drag_and_restores_expansion() -> None:
    state = CollectionState(
        collection_id="c1",
        folders=[Folder(id="F", collection_id="c1", is_expanded=True)],
        documents=[_doc("X", "F"), _doc("A", position=1)],
        root_order=["F", "A"],
    )
    notices = NoticeLog()
    sidebar = _sidebar(state, notifier=notices)

    await sidebar.start_drag("F", Point(100, 20))
    assert not state.find_folder("F").is_expanded

    assert not await sidebar.delete_item("F")
    assert sidebar.drag.is_active
    assert notices.messages() == ["Failed to delete item"]

    await sidebar.end_drag()

    assert state.find_folder("F").is_expanded
    assert [doc.id for doc in state.folder_children("F")] == ["X"]


@pytest.mark.asyncio
async def test_toggle_folder_remeasures_children() -> None:
    state = CollectionState(
        collection_id="c1",
        folders=[Folder(id="F", collection_id="c1")],
        documents=[_doc("X", "F")],
        root_order=["F"],
    )
    sidebar = _sidebar(state)
    assert sidebar.layout.bounds("X") is None

    await sidebar.toggle_folder("F")

    assert sidebar.layout.bounds("X") is not None
