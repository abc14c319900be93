"""Grid geometry helpers shared by the classifier, safety rules and scorer."""

from __future__ import annotations

from typing import Iterable, List, NamedTuple, Tuple

from .models import Corridor, Door, Zone

Cell = Tuple[int, int]

CARDINAL_STEPS: Tuple[Cell, ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))
DIAGONAL_STEPS: Tuple[Cell, ...] = ((-1, -1), (-1, 1), (1, -1), (1, 1))


class Rect(NamedTuple):
    """Axis-aligned block of grid squares; x is the column, y the row."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @classmethod
    def from_zone(cls, zone: Zone) -> "Rect":
        return cls(zone.grid_x, zone.grid_y, zone.grid_width, zone.grid_height)

    def contains(self, row: int, col: int) -> bool:
        return self.x <= col < self.right and self.y <= row < self.bottom

    def cells(self) -> Iterable[Cell]:
        for row in range(self.y, self.bottom):
            for col in range(self.x, self.right):
                yield row, col


def rect_gap(a: Rect, b: Rect) -> int:
    """Manhattan gap between two rectangles; 0 when they touch or overlap."""

    dx = 0
    if a.right <= b.x:
        dx = b.x - a.right
    elif b.right <= a.x:
        dx = a.x - b.right

    dy = 0
    if a.bottom <= b.y:
        dy = b.y - a.bottom
    elif b.bottom <= a.y:
        dy = a.y - b.bottom

    return dx + dy


def zone_gap(a: Zone, b: Zone) -> int:
    return rect_gap(Rect.from_zone(a), Rect.from_zone(b))


def rects_overlap(a: Rect, b: Rect) -> bool:
    return not (a.right <= b.x or b.right <= a.x or a.bottom <= b.y or b.bottom <= a.y)


def corridor_rect(corridor: Corridor) -> Rect:
    """Footprint of a corridor.

    Horizontal corridors run along a row and extend ``width`` rows downward;
    vertical ones run along a column and extend ``width`` columns rightward.
    The run itself includes both endpoints.
    """

    min_col = min(corridor.start_grid_x, corridor.end_grid_x)
    max_col = max(corridor.start_grid_x, corridor.end_grid_x)
    min_row = min(corridor.start_grid_y, corridor.end_grid_y)
    max_row = max(corridor.start_grid_y, corridor.end_grid_y)
    if corridor.is_horizontal:
        return Rect(min_col, min_row, max_col - min_col + 1, corridor.width)
    return Rect(min_col, min_row, corridor.width, max_row - min_row + 1)


def rect_overlaps_corridor(rect: Rect, corridor: Corridor) -> bool:
    return rects_overlap(rect, corridor_rect(corridor))


def zone_center(zone: Zone) -> Cell:
    """Grid cell at the (floored) middle of a zone, as ``(row, col)``."""

    return zone.grid_y + zone.grid_height // 2, zone.grid_x + zone.grid_width // 2


def door_cells(door: Door) -> List[Cell]:
    if door.edge in ("top", "bottom"):
        return [(door.grid_y, door.grid_x + i) for i in range(door.width)]
    return [(door.grid_y + i, door.grid_x) for i in range(door.width)]


def manhattan(a: Cell, b: Cell) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def row_label(row: int) -> str:
    """Spreadsheet-style row letters: 0 -> A, 25 -> Z, 26 -> AA."""

    label = ""
    num = row
    while num >= 0:
        label = chr(65 + num % 26) + label
        num = num // 26 - 1
    return label


def cell_label(row: int, col: int) -> str:
    return f"{row_label(row)}{col + 1}"


def cell_key(row: int, col: int) -> str:
    return f"{row}-{col}"
