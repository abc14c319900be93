"""Breadth-first reachability over a classified grid."""

from __future__ import annotations

from collections import deque
from typing import Collection, Dict, List, Optional

from .geometry import CARDINAL_STEPS, Cell, cell_key
from .grid import CellMap
from .models import GridDimensions

EGRESS_TYPES = frozenset({"pedestrian", "equipment", "empty", "staging", "work", "door"})
WALKWAY_TYPES = frozenset({"pedestrian", "empty", "staging", "work"})


def find_path(
    cells: CellMap,
    grid_dims: GridDimensions,
    start: Cell,
    end: Cell,
    allowed: Collection[str],
) -> Optional[List[Cell]]:
    """Shortest 4-connected path from ``start`` to ``end``.

    A neighbour is entered when its label is in ``allowed``; the destination is
    always enterable so a route can finish on a door or another zone. Returns
    the cells from start to end inclusive, or None when the target is cut off.
    """

    if not (grid_dims.contains(*start) and grid_dims.contains(*end)):
        return None

    parents: Dict[Cell, Optional[Cell]] = {start: None}
    queue: deque[Cell] = deque([start])
    while queue:
        current = queue.popleft()
        if current == end:
            return _unwind(parents, end)
        row, col = current
        for dr, dc in CARDINAL_STEPS:
            nxt = (row + dr, col + dc)
            if nxt in parents or not grid_dims.contains(*nxt):
                continue
            found = cells.get(cell_key(*nxt))
            if found is None:
                continue
            if found.type in allowed or nxt == end:
                parents[nxt] = current
                queue.append(nxt)
    return None


def _unwind(parents: Dict[Cell, Optional[Cell]], end: Cell) -> List[Cell]:
    path: List[Cell] = []
    node: Optional[Cell] = end
    while node is not None:
        path.append(node)
        node = parents[node]
    path.reverse()
    return path


def path_crosses_equipment(path: List[Cell], cells: CellMap) -> bool:
    """True when any cell on the path lies in a forklift lane."""

    for row, col in path:
        found = cells.get(cell_key(row, col))
        if found is not None and found.type == "equipment":
            return True
    return False
