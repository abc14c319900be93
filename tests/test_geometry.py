import pytest

from flowgrid.geometry import (
    Rect,
    cell_label,
    corridor_rect,
    door_cells,
    rect_gap,
    rect_overlaps_corridor,
    rects_overlap,
    row_label,
    zone_center,
)
from flowgrid.models import Corridor, Door, Zone


@pytest.mark.parametrize(
    "a, b, expected",
    [
        (Rect(0, 0, 2, 2), Rect(12, 0, 2, 2), 10),
        (Rect(0, 0, 2, 2), Rect(2, 0, 2, 2), 0),
        (Rect(0, 0, 2, 2), Rect(0, 2, 2, 2), 0),
        (Rect(0, 0, 2, 2), Rect(2, 2, 1, 1), 0),
        (Rect(0, 0, 2, 2), Rect(5, 6, 1, 1), 7),
        (Rect(0, 0, 4, 4), Rect(1, 1, 1, 1), 0),
        (Rect(3, 0, 1, 10), Rect(0, 4, 10, 1), 0),
    ],
)
def test_rect_gap_examples(a, b, expected):
    assert rect_gap(a, b) == expected
    assert rect_gap(b, a) == expected


def test_rect_gap_is_zero_on_self():
    for rect in [Rect(0, 0, 1, 1), Rect(4, 7, 3, 2), Rect(10, 10, 5, 5)]:
        assert rect_gap(rect, rect) == 0


def test_rects_overlap_excludes_edge_contact():
    assert rects_overlap(Rect(0, 0, 3, 3), Rect(2, 2, 3, 3))
    assert not rects_overlap(Rect(0, 0, 3, 3), Rect(3, 0, 3, 3))


def test_corridor_rect_follows_orientation():
    horizontal = Corridor(
        id="h", type="forklift", start_grid_x=5, start_grid_y=3, end_grid_x=1, end_grid_y=3, width=2
    )
    vertical = Corridor(
        id="v", type="pedestrian", start_grid_x=4, start_grid_y=0, end_grid_x=4, end_grid_y=6, width=3
    )
    assert corridor_rect(horizontal) == Rect(1, 3, 5, 2)
    assert corridor_rect(vertical) == Rect(4, 0, 3, 7)
    assert horizontal.footprint == 10
    assert vertical.footprint == 21


def test_rect_overlaps_corridor_uses_width():
    corridor = Corridor(
        id="c", type="forklift", start_grid_x=0, start_grid_y=5, end_grid_x=9, end_grid_y=5, width=2
    )
    assert rect_overlaps_corridor(Rect(3, 6, 2, 2), corridor)
    assert not rect_overlaps_corridor(Rect(3, 7, 2, 2), corridor)


def test_door_cells_by_edge():
    top = Door(id="t", grid_x=2, grid_y=0, width=3, edge="top")
    left = Door(id="l", grid_x=0, grid_y=5, width=2, edge="left")
    assert door_cells(top) == [(0, 2), (0, 3), (0, 4)]
    assert door_cells(left) == [(5, 0), (6, 0)]


def test_zone_center_floors():
    zone = Zone(id="z", grid_x=2, grid_y=3, grid_width=4, grid_height=3)
    assert zone_center(zone) == (4, 4)


def test_cell_labels():
    assert row_label(0) == "A"
    assert row_label(25) == "Z"
    assert row_label(26) == "AA"
    assert row_label(701) == "ZZ"
    assert row_label(702) == "AAA"
    assert cell_label(0, 0) == "A1"
    assert cell_label(27, 9) == "AB10"
