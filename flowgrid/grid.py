"""Semantic classification of facility grid cells."""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Mapping, Optional, Sequence

from .geometry import CARDINAL_STEPS, Cell, Rect, cell_key, corridor_rect, door_cells
from .models import (
    Activity,
    CellClassification,
    Corridor,
    Door,
    GridDimensions,
    Zone,
)

logger = logging.getLogger(__name__)

CellMap = Dict[str, CellClassification]

ZONE_CELL_TYPES = {"staging-lane": "staging", "work-area": "work"}
CORRIDOR_CELL_TYPES = {"pedestrian": "pedestrian", "forklift": "equipment"}


def classify_grid_cells(
    grid_dims: GridDimensions,
    zones: Sequence[Zone],
    corridors: Sequence[Corridor],
    doors: Sequence[Door],
    painted_squares: Mapping[str, str],
    activities: Sequence[Activity],
) -> CellMap:
    """Label every cell of the grid.

    Precedence, highest first: permanent paint (obstacle), door, corridor,
    zone (staging or work), empty. Zones whose activity is neither a staging
    lane nor a work area keep the cell empty but still record the zone id.
    """

    activity_types = {activity.id: activity.type for activity in activities}

    zone_ids: Dict[Cell, str] = {}
    zone_types: Dict[Cell, str] = {}
    for zone in zones:
        label = ZONE_CELL_TYPES.get(activity_types.get(zone.activity_id or ""), "empty")
        for cell in Rect.from_zone(zone).cells():
            if cell in zone_ids or not grid_dims.contains(*cell):
                continue
            zone_ids[cell] = zone.id
            zone_types[cell] = label

    corridor_ids: Dict[Cell, str] = {}
    corridor_types: Dict[Cell, str] = {}
    for corridor in corridors:
        for cell in corridor_rect(corridor).cells():
            if cell in corridor_ids or not grid_dims.contains(*cell):
                continue
            corridor_ids[cell] = corridor.id
            corridor_types[cell] = CORRIDOR_CELL_TYPES[corridor.type]

    door_ids: Dict[Cell, str] = {}
    for door in doors:
        for cell in door_cells(door):
            if grid_dims.contains(*cell):
                door_ids.setdefault(cell, door.id)

    cells: CellMap = {}
    for row in range(grid_dims.rows):
        for col in range(grid_dims.cols):
            cell = (row, col)
            key = cell_key(row, col)
            if painted_squares.get(key) == "permanent":
                cell_type = "obstacle"
            elif cell in door_ids:
                cell_type = "door"
            elif cell in corridor_types:
                cell_type = corridor_types[cell]
            else:
                cell_type = zone_types.get(cell, "empty")
            cells[key] = CellClassification(
                row=row,
                col=col,
                type=cell_type,
                zone_id=zone_ids.get(cell),
                corridor_id=corridor_ids.get(cell),
                door_id=door_ids.get(cell),
            )

    logger.debug(
        "Classified %dx%d grid: %d door, %d corridor, %d zone cells",
        grid_dims.rows,
        grid_dims.cols,
        len(door_ids),
        len(corridor_ids),
        len(zone_ids),
    )
    return cells


def cell_type_at(cells: CellMap, row: int, col: int) -> Optional[str]:
    """Label of a cell, or None outside the classified grid."""

    found = cells.get(cell_key(row, col))
    return found.type if found else None


def neighbor_types(cells: CellMap, row: int, col: int, steps=CARDINAL_STEPS) -> Iterator[str]:
    for dr, dc in steps:
        found = cell_type_at(cells, row + dr, col + dc)
        if found is not None:
            yield found


def cells_of_type(cells: CellMap, *types: str) -> List[CellClassification]:
    return [cell for cell in cells.values() if cell.type in types]
