"""Position model tests."""

from __future__ import annotations

import math

import pytest

from arranger.layout import (
    FALLBACK_HEIGHT,
    compute_positions,
    content_extent,
    preview_insert,
    preview_reorder,
    reorder,
    row_height,
    slot_index,
)


def test_compute_positions_stacks_rows_with_gap() -> None:
    positions = compute_positions(["a", "b", "c"], {"a": 40, "b": 60, "c": 20}, gap=6)

    assert positions == {"a": 0, "b": 46, "c": 112}


def test_compute_positions_uses_fallback_for_unmeasured_rows() -> None:
    heights = {"a": 0, "b": float("nan"), "c": -3}

    positions = compute_positions(["a", "b", "c", "d"], heights, gap=6)

    step = FALLBACK_HEIGHT + 6
    assert positions == {"a": 0, "b": step, "c": 2 * step, "d": 3 * step}


def test_compute_positions_is_deterministic_and_monotonic() -> None:
    order = [f"item-{index}" for index in range(12)]
    heights = {item_id: 10 + (index * 7) % 50 for index, item_id in enumerate(order) if index % 3}

    first = compute_positions(order, heights, gap=4)
    second = compute_positions(order, heights, gap=4)

    assert first == second
    for current, following in zip(order, order[1:]):
        assert first[following] >= first[current] + row_height(heights, current)


def test_content_extent_includes_trailing_gap() -> None:
    assert content_extent([], {}) == 0
    assert content_extent(["a", "b"], {"a": 30, "b": 50}, gap=5) == pytest.approx(90)


@pytest.mark.parametrize(
    ("y", "expected"),
    [
        (-10, 0),
        (10, 0),
        (30, 1),
        (50, 1),
        (60, 1),
        (100, 2),
        (500, 3),
    ],
)
def test_slot_index_uses_row_midpoints(y: float, expected: int) -> None:
    # rows: a [0, 48), b [54, 102), c [108, 156)
    assert slot_index(y, ["a", "b", "c"], {}, gap=6) == expected


def test_slot_index_on_empty_order_is_zero() -> None:
    assert slot_index(120, [], {}) == 0


def test_reorder_moves_and_clamps() -> None:
    assert reorder(["a", "b", "c"], "a", 2) == ["b", "c", "a"]
    assert reorder(["a", "b", "c"], "c", -4) == ["c", "a", "b"]
    assert reorder(["a", "b"], "z", 99) == ["a", "b", "z"]


def test_reorder_back_to_original_slot_is_identity() -> None:
    order = ["a", "b", "c", "d"]

    for index, item_id in enumerate(order):
        assert reorder(order, item_id, index) == order


def test_preview_reorder_shows_dragged_row_at_target() -> None:
    positions = preview_reorder(["a", "b", "c"], "c", 0, {}, gap=2)

    assert positions["c"] == 0
    assert positions["a"] == 50
    assert positions["b"] == 100


def test_preview_insert_leaves_room_for_foreign_row() -> None:
    positions = preview_insert(["a", "b"], "ghost", 1, {"ghost": 20}, gap=0)

    assert positions == {"a": 0, "b": 68}
    assert "ghost" not in positions


def test_row_height_accepts_finite_positive_values_only() -> None:
    assert row_height({"a": 12.5}, "a") == 12.5
    assert row_height({"a": math.inf}, "a", fallback=10) == 10
    assert row_height({}, "missing", fallback=7) == 7
