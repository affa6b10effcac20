"""Drag session controller tests."""

from __future__ import annotations

from typing import Optional

import pytest

from arranger.drag import (
    DragError,
    DragInProgressError,
    DragSessionController,
    GroupIntoFolder,
    MoveIntoFolder,
    MoveToRoot,
    ReorderInPlace,
)
from arranger.layout import LayoutModel, Point, Rect, Viewport, stacked_measure
from arranger.state.models import CollectionState, Document, Folder
from arranger.timing import ManualClock


def _doc(doc_id: str, folder_id: Optional[str] = None, position: float = 0) -> Document:
    return Document(id=doc_id, collection_id="c1", folder_id=folder_id, position=position, name=doc_id.lower())


def _controller(state: CollectionState, viewport_height: float = 600) -> DragSessionController:
    layout = LayoutModel(lambda: stacked_measure(state), Viewport(Rect(0, 0, 280, viewport_height)))
    layout.remeasure()
    return DragSessionController(state, layout)


def _flat_state(*ids: str) -> CollectionState:
    return CollectionState(collection_id="c1", documents=[_doc(doc_id) for doc_id in ids], root_order=list(ids))


def _folder_state(expanded: bool = True) -> CollectionState:
    return CollectionState(
        collection_id="c1",
        folders=[Folder(id="F", collection_id="c1", name="Folder", is_expanded=expanded)],
        documents=[_doc("X", "F", 0), _doc("Y", "F", 1), _doc("Z")],
        root_order=["F", "Z"],
    )


def test_dragging_document_onto_center_band_groups() -> None:
    controller = _controller(_flat_state("A", "B", "C"))

    controller.start("C", Point(100, 130))
    session = controller.move(Point(100, 24))
    assert session is not None and session.hovered_document_id == "A"

    result = controller.release()

    assert result.status == "dropped"
    assert result.decision == GroupIntoFolder(target_document_id="A", dragged_document_id="C", insert_index=0)


def test_edge_of_row_reorders_instead_of_grouping() -> None:
    controller = _controller(_flat_state("A", "B", "C"))

    controller.start("C", Point(100, 130))
    controller.move(Point(100, 5))
    result = controller.release()

    assert result.decision == ReorderInPlace(
        item_id="C", container_id=None, order=("C", "A", "B"), original_order=("A", "B", "C")
    )
    assert result.decision.changed


def test_document_over_folder_moves_into_it_at_pointer_slot() -> None:
    controller = _controller(_folder_state())

    controller.start("Z", Point(100, 180))
    session = controller.move(Point(100, 100))
    assert session.hovered_folder_id == "F"
    assert session.insertion_index == 1

    result = controller.release()

    assert result.decision == MoveIntoFolder(document_id="Z", folder_id="F", index=1, source_folder_id=None)


def test_grouping_takes_precedence_over_folder_hover() -> None:
    state = CollectionState(
        collection_id="c1",
        folders=[Folder(id="F", collection_id="c1")],
        documents=[_doc("A"), _doc("D")],
        root_order=["A", "F", "D"],
    )
    controller = _controller(state)

    controller.start("D", Point(100, 120))
    # y=35 is inside A's center band and inside F's padded box.
    session = controller.move(Point(100, 35))

    assert session.hovered_document_id == "A"
    assert session.hovered_folder_id is None
    assert isinstance(controller.release().decision, GroupIntoFolder)


def test_document_leaving_its_folder_moves_to_root() -> None:
    controller = _controller(_folder_state())

    controller.start("X", Point(100, 70))
    controller.move(Point(100, 200))
    result = controller.release()

    assert result.decision == MoveToRoot(document_id="X", index=2, source_folder_id="F")


def test_folders_never_group_or_nest() -> None:
    state = CollectionState(
        collection_id="c1",
        folders=[Folder(id="F", collection_id="c1"), Folder(id="G", collection_id="c1")],
        documents=[_doc("A")],
        root_order=["A", "F", "G"],
    )
    controller = _controller(state)

    controller.start("G", Point(100, 130))
    session = controller.move(Point(100, 10))
    assert session.hovered_document_id is None
    assert session.hovered_folder_id is None

    result = controller.release()

    assert result.decision == ReorderInPlace(
        item_id="G", container_id=None, order=("G", "A", "F"), original_order=("A", "F", "G")
    )


def test_dropping_back_in_place_is_idempotent() -> None:
    controller = _controller(_flat_state("A", "B", "C"))

    controller.start("B", Point(100, 70))
    controller.move(Point(100, 60))
    result = controller.release()

    assert isinstance(result.decision, ReorderInPlace)
    assert result.decision.order == result.decision.original_order
    assert not result.decision.changed


def test_release_outside_container_keeps_order() -> None:
    controller = _controller(_flat_state("A", "B", "C"))

    controller.start("A", Point(100, 10))
    controller.move(Point(500, 60))
    result = controller.release()

    assert result.decision == ReorderInPlace(
        item_id="A", container_id=None, order=("A", "B", "C"), original_order=("A", "B", "C")
    )


def test_reorder_inside_folder_without_hover_keeps_folder_order() -> None:
    controller = _controller(_folder_state())

    controller.start("Y", Point(100, 120))
    result = controller.release(Point(-50, -50))

    assert result.decision == ReorderInPlace(
        item_id="Y", container_id="F", order=("X", "Y"), original_order=("X", "Y")
    )


def test_only_one_drag_at_a_time() -> None:
    controller = _controller(_flat_state("A", "B"))
    controller.start("A", Point(10, 10))

    with pytest.raises(DragInProgressError):
        controller.start("B", Point(10, 60))


def test_unknown_item_and_idle_release_raise() -> None:
    controller = _controller(_flat_state("A"))

    with pytest.raises(DragError):
        controller.start("missing", Point(0, 0))
    with pytest.raises(DragError):
        controller.release()


def test_phase_listeners_see_every_transition() -> None:
    controller = _controller(_flat_state("A", "B"))
    phases: list[str] = []
    controller.add_phase_listener(lambda phase, _session: phases.append(phase))

    controller.start("A", Point(10, 10))
    controller.release()
    controller.start("B", Point(10, 60))
    controller.cancel()

    assert phases == ["dragging", "dropped", "idle", "dragging", "cancelled", "idle"]
    assert controller.session is None


def test_context_zone_release_emits_event_without_decision() -> None:
    controller = _controller(_folder_state())

    controller.start("F", Point(100, 20))
    controller.set_context_zone(True)
    result = controller.release()

    assert result.status == "cancelled"
    assert result.decision is None
    assert result.context_event is not None
    assert result.context_event.document_ids == ("X", "Y")
    assert result.restore_expanded_folder_id == "F"


def test_removing_hovered_item_recomputes_hover() -> None:
    state = _flat_state("A", "B", "C")
    controller = _controller(state)
    controller.start("C", Point(100, 130))
    controller.move(Point(100, 24))

    state.documents = [doc for doc in state.documents if doc.id != "A"]
    controller.forget_item("A")

    assert controller.session.hovered_document_id is None


def test_removing_dragged_item_cancels_session() -> None:
    controller = _controller(_flat_state("A", "B"))
    controller.start("A", Point(10, 10))

    controller.forget_item("A")

    assert controller.phase == "idle"
    assert not controller.is_active


def test_preview_positions_follow_insertion_slot() -> None:
    controller = _controller(_flat_state("A", "B", "C"))

    controller.start("C", Point(100, 130))
    controller.move(Point(100, 5))

    assert controller.preview_positions() == {"C": 0, "A": 54, "B": 108}


def _tall_controller() -> DragSessionController:
    ids = [f"D{index}" for index in range(10)]
    return _controller(_flat_state(*ids), viewport_height=200)


@pytest.mark.parametrize(
    ("pointer_y", "expected"),
    [
        (100, 0),
        (170, 6),
        (200, 12),
        (260, 12),
    ],
)
def test_auto_scroll_speed_scales_with_edge_depth(pointer_y: float, expected: float) -> None:
    controller = _tall_controller()
    controller.start("D0", Point(100, 10))
    controller.move(Point(100, pointer_y))

    assert controller.scroll_tick() == expected


def test_auto_scroll_up_is_clamped_at_top() -> None:
    controller = _tall_controller()
    controller.start("D0", Point(100, 0))

    assert controller.scroll_tick() == 0
    controller.layout.scroll_by(100)
    assert controller.scroll_tick() == -12
    assert controller.layout.viewport.scroll_top == 88


def test_scroll_re_runs_hover_detection() -> None:
    controller = _tall_controller()
    controller.start("D9", Point(100, 150))
    session = controller.move(Point(100, 45))
    assert session.hovered_document_id is None

    controller.layout.scroll_by(27)
    controller.on_container_scroll()

    # content y = 72 now falls inside D1's center band.
    assert session.hovered_document_id == "D1"


class _ReleasingClock(ManualClock):
    """Manual clock that releases the drag after a number of frames."""

    def __init__(self, controller: DragSessionController, frames: int) -> None:
        super().__init__()
        self.controller = controller
        self.frames = frames

    async def sleep(self, milliseconds: float) -> None:
        await super().sleep(milliseconds)
        if len(self.sleeps) == self.frames:
            self.controller.release()


@pytest.mark.asyncio
async def test_run_auto_scroll_ticks_until_drag_ends() -> None:
    controller = _tall_controller()
    clock = _ReleasingClock(controller, frames=3)
    controller.start("D0", Point(100, 10))
    controller.move(Point(100, 200))

    await controller.run_auto_scroll(clock)

    assert controller.layout.viewport.scroll_top == 36
    assert clock.now() == 48
    assert not controller.is_active
