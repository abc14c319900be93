"""Safety rule set evaluated over a classified grid.

Each rule is independent of the others and returns a ``SafetyRule`` with a
bounded point score. The seven budgets add up to 15, which the scorer uses
unchanged as the safety factor.
"""

from __future__ import annotations

import logging
from itertools import combinations
from typing import Iterable, List, Mapping, Optional, Sequence

from .geometry import (
    CARDINAL_STEPS,
    DIAGONAL_STEPS,
    Rect,
    cell_label,
    door_cells,
    manhattan,
    zone_center,
)
from .grid import CellMap, cell_type_at, cells_of_type, classify_grid_cells, neighbor_types
from .models import (
    Activity,
    Corridor,
    Door,
    GridDimensions,
    SafetyRule,
    ScoringSettings,
    Zone,
)
from .reachability import EGRESS_TYPES, WALKWAY_TYPES, find_path, path_crosses_equipment

logger = logging.getLogger(__name__)

CORRIDOR_TYPES = ("pedestrian", "equipment")
SIGHTLINE_BLOCKERS = frozenset({"work", "staging", "obstacle"})


def zones_of_type(zones: Sequence[Zone], activities: Sequence[Activity], activity_type: str) -> List[Zone]:
    """Placed zones whose activity has the given type, in input order."""

    wanted = {activity.id for activity in activities if activity.type == activity_type}
    return [zone for zone in zones if zone.activity_id in wanted]


def _clamp(score: int, max_score: int) -> int:
    return max(0, min(max_score, score))


def _status(score: int, max_score: int) -> str:
    if score >= max_score:
        return "good"
    if score <= 0:
        return "critical"
    return "warning"


def _labels(cells: Iterable[tuple]) -> List[str]:
    seen: List[str] = []
    for row, col in cells:
        label = cell_label(row, col)
        if label not in seen:
            seen.append(label)
    return seen


def _fraction_score(ratio: float, bands: Sequence[tuple]) -> int:
    for threshold, points in bands:
        if ratio >= threshold:
            return points
    return 0


def _percent(ratio: float) -> int:
    return int(ratio * 100 + 0.5)


def check_traffic_separation(cells: CellMap) -> SafetyRule:
    """Forklift lanes should run alongside a marked pedestrian walkway."""

    max_score = 3
    forklift = cells_of_type(cells, "equipment")
    if not forklift:
        return SafetyRule(
            name="traffic_separation",
            label="Traffic Separation",
            score=max_score,
            max_score=max_score,
            status="good",
            message="No forklift corridors, nothing to separate",
        )

    unseparated = [c for c in forklift if "pedestrian" not in neighbor_types(cells, c.row, c.col)]
    ratio = (len(forklift) - len(unseparated)) / len(forklift)
    if ratio >= 0.8:
        score = 3
    elif ratio >= 0.5:
        score = 2
    elif ratio > 0:
        score = 1
    else:
        score = 0
    score = _clamp(score, max_score)
    return SafetyRule(
        name="traffic_separation",
        label="Traffic Separation",
        score=score,
        max_score=max_score,
        status=_status(score, max_score),
        message=f"{_percent(ratio)}% of forklift lane squares have a pedestrian walkway alongside",
        locations=_labels((c.row, c.col) for c in unseparated),
    )


def check_crossing_points(cells: CellMap) -> SafetyRule:
    """Count squares where a walkway meets a forklift lane."""

    max_score = 2
    crossings = [
        c
        for c in cells_of_type(cells, "pedestrian")
        if "equipment" in neighbor_types(cells, c.row, c.col)
    ]
    count = len(crossings)
    if count == 0:
        score, status, message = 2, "good", "No pedestrian/forklift crossings"
    elif count <= 2:
        score, status = 2, "good"
        message = f"{count} crossing point(s); mark with stop/yield signage and floor striping"
    elif count <= 4:
        score, status = 1, "warning"
        message = f"{count} crossing points; consider rerouting walkways to reduce them"
    else:
        score, status = 0, "critical"
        message = f"{count} crossing points; pedestrians and forklifts mix too often"
    return SafetyRule(
        name="crossing_points",
        label="Crossing Points",
        score=_clamp(score, max_score),
        max_score=max_score,
        status=status,
        message=message,
        locations=_labels((c.row, c.col) for c in crossings),
    )


def check_emergency_egress(
    cells: CellMap,
    grid_dims: GridDimensions,
    zones: Sequence[Zone],
    doors: Sequence[Door],
    activities: Sequence[Activity],
) -> SafetyRule:
    """Every work area needs a route to at least one door."""

    max_score = 3
    work_zones = zones_of_type(zones, activities, "work-area")
    if not work_zones:
        return SafetyRule(
            name="emergency_egress",
            label="Emergency Egress",
            score=max_score,
            max_score=max_score,
            status="good",
            message="No work areas placed, nothing to evacuate",
        )
    if not doors:
        return SafetyRule(
            name="emergency_egress",
            label="Emergency Egress",
            score=0,
            max_score=max_score,
            status="critical",
            message="No doors configured; work areas have no exit",
            locations=_labels(zone_center(z) for z in work_zones),
        )

    targets = [cell for door in doors for cell in door_cells(door)]
    trapped = []
    for zone in work_zones:
        center = zone_center(zone)
        if not any(find_path(cells, grid_dims, center, target, EGRESS_TYPES) for target in targets):
            trapped.append(zone)

    ratio = (len(work_zones) - len(trapped)) / len(work_zones)
    score = _clamp(_fraction_score(ratio, ((1.0, 3), (0.75, 2), (0.5, 1))), max_score)
    if trapped:
        names = ", ".join(z.name or z.id for z in trapped)
        message = f"{len(trapped)} of {len(work_zones)} work area(s) cannot reach a door: {names}"
    else:
        message = f"All {len(work_zones)} work area(s) can reach a door"
    return SafetyRule(
        name="emergency_egress",
        label="Emergency Egress",
        score=score,
        max_score=max_score,
        status=_status(score, max_score),
        message=message,
        locations=_labels(zone_center(z) for z in trapped),
    )


def _perimeter_open(cells: CellMap, zone: Zone) -> bool:
    rect = Rect.from_zone(zone)
    for row, col in rect.cells():
        if rect.y < row < rect.bottom - 1 and rect.x < col < rect.right - 1:
            continue
        for dr, dc in CARDINAL_STEPS:
            n_row, n_col = row + dr, col + dc
            if rect.contains(n_row, n_col):
                continue
            if cell_type_at(cells, n_row, n_col) in WALKWAY_TYPES:
                return True
    return False


def check_pedestrian_access_to_work(
    cells: CellMap,
    zones: Sequence[Zone],
    activities: Sequence[Activity],
) -> SafetyRule:
    """Work areas should be reachable on foot without stepping into a forklift lane."""

    max_score = 2
    work_zones = zones_of_type(zones, activities, "work-area")
    if not work_zones:
        return SafetyRule(
            name="pedestrian_access_work",
            label="Pedestrian Access to Work Zones",
            score=max_score,
            max_score=max_score,
            status="good",
            message="No work areas placed",
        )

    enclosed = [zone for zone in work_zones if not _perimeter_open(cells, zone)]
    ratio = (len(work_zones) - len(enclosed)) / len(work_zones)
    score = _clamp(_fraction_score(ratio, ((1.0, 2), (0.5, 1))), max_score)
    if enclosed:
        names = ", ".join(z.name or z.id for z in enclosed)
        message = f"Workers must cross a forklift lane to reach: {names}"
    else:
        message = "Every work area has walk-in access"
    return SafetyRule(
        name="pedestrian_access_work",
        label="Pedestrian Access to Work Zones",
        score=score,
        max_score=max_score,
        status=_status(score, max_score),
        message=message,
        locations=_labels(zone_center(z) for z in enclosed),
    )


def check_pedestrian_access_between_staging(
    cells: CellMap,
    grid_dims: GridDimensions,
    zones: Sequence[Zone],
    activities: Sequence[Activity],
    max_distance: int = 10,
) -> SafetyRule:
    """Nearby staging lanes should be linked by a walkway that avoids forklift lanes."""

    max_score = 2
    staging = zones_of_type(zones, activities, "staging-lane")
    if len(staging) < 2:
        return SafetyRule(
            name="pedestrian_access_staging",
            label="Pedestrian Access Between Staging Lanes",
            score=max_score,
            max_score=max_score,
            status="good",
            message="Fewer than two staging lanes placed",
        )

    in_range = 0
    blocked = []
    for zone_a, zone_b in combinations(staging, 2):
        center_a, center_b = zone_center(zone_a), zone_center(zone_b)
        if manhattan(center_a, center_b) > max_distance:
            continue
        in_range += 1
        path = find_path(cells, grid_dims, center_a, center_b, WALKWAY_TYPES)
        if path is None or path_crosses_equipment(path, cells):
            blocked.append((zone_a, zone_b))

    if in_range == 0:
        return SafetyRule(
            name="pedestrian_access_staging",
            label="Pedestrian Access Between Staging Lanes",
            score=max_score,
            max_score=max_score,
            status="good",
            message="No staging lanes close enough to need a connecting walkway",
        )

    ratio = (in_range - len(blocked)) / in_range
    score = _clamp(_fraction_score(ratio, ((1.0, 2), (0.5, 1))), max_score)
    if blocked:
        pairs = "; ".join(f"{a.name or a.id} / {b.name or b.id}" for a, b in blocked)
        message = f"{len(blocked)} of {in_range} nearby lane pair(s) lack a safe walkway: {pairs}"
    else:
        message = f"All {in_range} nearby lane pair(s) are linked on foot"
    locations = []
    for zone_a, zone_b in blocked:
        locations.extend([zone_center(zone_a), zone_center(zone_b)])
    return SafetyRule(
        name="pedestrian_access_staging",
        label="Pedestrian Access Between Staging Lanes",
        score=score,
        max_score=max_score,
        status=_status(score, max_score),
        message=message,
        locations=_labels(locations),
    )


def _is_blind_corner(cells: CellMap, row: int, col: int) -> bool:
    corridor_neighbours = sum(1 for kind in neighbor_types(cells, row, col) if kind in CORRIDOR_TYPES)
    if corridor_neighbours < 2:
        return False
    return any(kind in SIGHTLINE_BLOCKERS for kind in neighbor_types(cells, row, col, DIAGONAL_STEPS))


def check_blind_corners(cells: CellMap) -> SafetyRule:
    """Corridor turns and junctions with a zone or obstacle on a diagonal."""

    max_score = 1
    corners = [c for c in cells_of_type(cells, *CORRIDOR_TYPES) if _is_blind_corner(cells, c.row, c.col)]
    count = len(corners)
    if count == 0:
        score, status, message = 1, "good", "No blind corners at corridor turns"
    elif count <= 2:
        score, status = 1, "good"
        message = f"{count} blind corner(s); install convex mirrors"
    else:
        score, status = 0, "warning"
        message = f"{count} blind corners; open up sightlines or add mirrors and sensors"
    return SafetyRule(
        name="blind_corners",
        label="Blind Corners",
        score=_clamp(score, max_score),
        max_score=max_score,
        status=status,
        message=message,
        locations=_labels((c.row, c.col) for c in corners),
    )


def check_speed_transitions(cells: CellMap) -> SafetyRule:
    """Forklift lanes running straight into work areas need a slow-down zone."""

    max_score = 2
    forklift = cells_of_type(cells, "equipment")
    if not forklift:
        return SafetyRule(
            name="speed_transitions",
            label="Speed Transition Zones",
            score=max_score,
            max_score=max_score,
            status="good",
            message="No forklift corridors",
        )

    abutting = [c for c in forklift if "work" in neighbor_types(cells, c.row, c.col)]
    ratio = len(abutting) / len(forklift)
    if ratio == 0:
        score = 2
    elif ratio < 0.3:
        score = 1
    else:
        score = 0
    score = _clamp(score, max_score)
    if abutting:
        message = f"{_percent(ratio)}% of forklift lane squares border a work area; add SLOW zones"
    else:
        message = "Forklift lanes are buffered from work areas"
    return SafetyRule(
        name="speed_transitions",
        label="Speed Transition Zones",
        score=score,
        max_score=max_score,
        status=_status(score, max_score),
        message=message,
        locations=_labels((c.row, c.col) for c in abutting),
    )


def evaluate_safety_rules(
    cells: CellMap,
    grid_dims: GridDimensions,
    zones: Sequence[Zone],
    doors: Sequence[Door],
    activities: Sequence[Activity],
    settings: Optional[ScoringSettings] = None,
) -> List[SafetyRule]:
    settings = settings or ScoringSettings()
    rules = [
        check_traffic_separation(cells),
        check_crossing_points(cells),
        check_emergency_egress(cells, grid_dims, zones, doors, activities),
        check_pedestrian_access_to_work(cells, zones, activities),
        check_pedestrian_access_between_staging(
            cells, grid_dims, zones, activities, settings.staging_pair_max_distance
        ),
        check_blind_corners(cells),
        check_speed_transitions(cells),
    ]
    for rule in rules:
        logger.debug("Safety rule %s: %d/%d (%s)", rule.name, rule.score, rule.max_score, rule.status)
    return rules


def run_all_safety_checks(
    grid_dims: GridDimensions,
    zones: Sequence[Zone],
    corridors: Sequence[Corridor],
    doors: Sequence[Door],
    painted_squares: Mapping[str, str],
    activities: Sequence[Activity],
    settings: Optional[ScoringSettings] = None,
) -> List[SafetyRule]:
    """Classify the grid and evaluate all seven safety rules."""

    cells = classify_grid_cells(grid_dims, zones, corridors, doors, painted_squares, activities)
    return evaluate_safety_rules(cells, grid_dims, zones, doors, activities, settings)
