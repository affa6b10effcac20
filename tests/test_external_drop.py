"""Native file drop tests."""

from __future__ import annotations

import itertools
from typing import Optional

import pytest

from arranger.external import (
    ExternalDropResolver,
    FolderTarget,
    IncomingFile,
    Placement,
    PlaceholderTarget,
    RootTarget,
    UploadError,
    WorkspaceUploader,
)
from arranger.layout import LayoutModel, Point, Rect, Viewport
from arranger.notices import NoticeLog
from arranger.sidebar import Sidebar
from arranger.state.models import CollectionState, Document, Folder
from arranger.state.workspace import CollectionWorkspace
from arranger.timing import ManualClock

MB = 1024 * 1024


class FlakyUploader(WorkspaceUploader):
    """Uploader that refuses files whose name starts with ``bad``."""

    async def upload(self, file: IncomingFile, collection_id: str, placement: Placement) -> Document:
        if file.name.startswith("bad"):
            raise UploadError(f"conversion of {file.name} failed")
        return await super().upload(file, collection_id, placement)


def _doc(doc_id: str, folder_id: Optional[str] = None, position: float = 0, **extra) -> Document:
    return Document(id=doc_id, collection_id="c1", folder_id=folder_id, position=position, name=doc_id.lower(), **extra)


def _pdf(name: str, size: int = 1024) -> IncomingFile:
    return IncomingFile(name=name, size=size, content_type="application/pdf")


def _sidebar(state: CollectionState, **kwargs) -> tuple[Sidebar, NoticeLog]:
    counter = itertools.count(1)
    workspace = CollectionWorkspace(state, id_factory=lambda: f"doc{next(counter)}")
    notices = NoticeLog()
    uploader = kwargs.pop("uploader_factory", WorkspaceUploader)(workspace)
    sidebar = Sidebar(
        state, workspace=workspace, uploader=uploader, notifier=notices, clock=ManualClock(), **kwargs
    )
    return sidebar, notices


def _collapsed_folder_state() -> CollectionState:
    return CollectionState(
        collection_id="c1",
        folders=[Folder(id="F", collection_id="c1", name="Reading")],
        documents=[_doc("X", "F", 0), _doc("Y", "F", 1)],
        root_order=["F"],
    )


def test_resolver_defers_until_layout_is_measured() -> None:
    state = _collapsed_folder_state()
    layout = LayoutModel(lambda: {}, Viewport(Rect(0, 0, 280, 600)))
    layout.remeasure()

    assert ExternalDropResolver(state, layout).resolve(Point(100, 20)) is None


def test_resolver_prefers_placeholder_then_folder_then_root() -> None:
    state = CollectionState(
        collection_id="c1",
        folders=[Folder(id="F", collection_id="c1", is_expanded=True)],
        documents=[_doc("P", "F", 0, is_placeholder=True), _doc("A")],
        root_order=["F", "A"],
    )
    sidebar, _ = _sidebar(state)
    resolver = sidebar.resolver

    # F spans [0, 100] with P at [48, 96]; A spans [106, 154].
    assert resolver.resolve(Point(100, 60)) == PlaceholderTarget(document_id="P")
    assert resolver.resolve(Point(100, 20)) == FolderTarget(folder_id="F", index=0)
    assert resolver.resolve(Point(100, 140)) == RootTarget(index=2)


@pytest.mark.asyncio
async def test_files_dropped_on_collapsed_folder_are_appended() -> None:
    state = _collapsed_folder_state()
    sidebar, notices = _sidebar(state)

    report = await sidebar.drop_files([_pdf("one.pdf"), _pdf("two.pdf")], Point(100, 10))

    assert report.target == FolderTarget(folder_id="F", index=2)
    assert [doc.id for doc in report.uploaded] == ["doc1", "doc2"]
    children = state.folder_children("F")
    assert [doc.id for doc in children] == ["X", "Y", "doc1", "doc2"]
    assert [doc.position for doc in children] == [0, 1, 2, 3]
    assert notices.notices == []


@pytest.mark.asyncio
async def test_files_dropped_between_root_rows_take_consecutive_slots() -> None:
    state = CollectionState(collection_id="c1", documents=[_doc("A"), _doc("B")], root_order=["A", "B"])
    sidebar, _ = _sidebar(state)

    report = await sidebar.drop_files([_pdf("one.pdf"), _pdf("two.md")], Point(100, 30))

    assert report.target == RootTarget(index=1)
    assert state.mixed_order() == ["A", "doc1", "doc2", "B"]


@pytest.mark.asyncio
async def test_drop_without_pointer_appends_to_root() -> None:
    state = CollectionState(collection_id="c1", documents=[_doc("A")], root_order=["A"])
    sidebar, _ = _sidebar(state)

    await sidebar.drop_files([_pdf("one.pdf")], None)

    assert state.mixed_order() == ["A", "doc1"]


@pytest.mark.asyncio
async def test_single_file_fills_placeholder() -> None:
    state = CollectionState(
        collection_id="c1", documents=[_doc("P", is_placeholder=True, label="essay")], root_order=["P"]
    )
    sidebar, _ = _sidebar(state)

    report = await sidebar.drop_files([_pdf("essay.pdf")], Point(100, 20))

    assert report.target == PlaceholderTarget(document_id="P")
    placeholder = state.find_document("P")
    assert placeholder.name == "essay.pdf"
    assert not placeholder.is_placeholder
    assert len(state.documents) == 1


@pytest.mark.asyncio
async def test_several_files_on_placeholder_are_rejected() -> None:
    state = CollectionState(collection_id="c1", documents=[_doc("P", is_placeholder=True)], root_order=["P"])
    sidebar, notices = _sidebar(state)

    report = await sidebar.drop_files([_pdf("a.pdf"), _pdf("b.pdf")], Point(100, 20))

    assert not report.accepted
    assert report.uploaded == []
    assert notices.messages("warning") == ["Only one file can be dropped onto a placeholder"]
    assert state.find_document("P").is_placeholder


@pytest.mark.asyncio
async def test_unsupported_files_are_skipped() -> None:
    state = CollectionState(collection_id="c1")
    sidebar, notices = _sidebar(state)

    mixed = await sidebar.drop_files([_pdf("keep.PDF"), _pdf("tool.exe")], None)
    assert mixed.skipped == ["tool.exe"]
    assert [doc.name for doc in mixed.uploaded] == ["keep.PDF"]

    none_supported = await sidebar.drop_files([_pdf("tool.exe")], None)
    assert not none_supported.accepted
    assert notices.messages("warning")[0].startswith("No supported files")


@pytest.mark.asyncio
async def test_oversized_file_rejects_whole_drop() -> None:
    state = CollectionState(collection_id="c1")
    sidebar, notices = _sidebar(state)

    report = await sidebar.drop_files([_pdf("small.pdf"), _pdf("huge.pdf", size=51 * MB)], None)

    assert not report.accepted
    assert state.documents == []
    assert notices.messages("error") == ["huge.pdf exceeds the 50 MB limit"]


@pytest.mark.asyncio
async def test_failed_uploads_are_reported_once() -> None:
    state = CollectionState(collection_id="c1")
    sidebar, notices = _sidebar(state, uploader_factory=FlakyUploader)

    report = await sidebar.drop_files([_pdf("bad-scan.pdf"), _pdf("good.pdf")], None)

    assert report.failed == ["bad-scan.pdf"]
    assert [doc.name for doc in report.uploaded] == ["good.pdf"]
    assert notices.messages("error") == ["Failed to upload bad-scan.pdf"]
