"""Layout scoring: seven independent factors summed into a percentage."""

from __future__ import annotations

import logging
from typing import AbstractSet, Dict, List, Mapping, Optional, Sequence

from .geometry import Rect, rect_overlaps_corridor, zone_gap
from .grid import classify_grid_cells
from .models import (
    Activity,
    ActivityRelationship,
    Corridor,
    Door,
    FacilitySettings,
    Flag,
    GridDimensions,
    LayoutScore,
    LayoutSnapshot,
    ScoreFactor,
    ScoringSettings,
    VolumeTiming,
    Zone,
)
from .safety import evaluate_safety_rules, zones_of_type

logger = logging.getLogger(__name__)

SEVERITY_ORDER: Dict[str, int] = {"HIGH": 0, "MEDIUM": 1, "LOW": 2}

VERDICTS = (
    (90, "Excellent"),
    (80, "Good"),
    (60, "Fair"),
)


def _round(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def _clamp(score: float, max_score: int) -> int:
    return int(max(0, min(max_score, score)))


def _activity_names(activities: Sequence[Activity]) -> Dict[str, str]:
    return {activity.id: activity.name for activity in activities}


def _flow_distance(
    zones: Sequence[Zone], activities: Sequence[Activity], settings: ScoringSettings
) -> ScoreFactor:
    label = "Flow Distance: How far does material travel?"
    work_zones = zones_of_type(zones, activities, "work-area")
    staging_zones = zones_of_type(zones, activities, "staging-lane")
    if len(work_zones) < settings.min_work_zones_for_flow:
        return ScoreFactor(
            name="flow_distance",
            label=label,
            score=0,
            max_score=20,
            display="Insufficient work areas placed",
            suggestion=f"Place at least {settings.min_work_zones_for_flow} work area zones",
        )

    score = min(20, settings.flow_base_score + len(staging_zones))
    return ScoreFactor(
        name="flow_distance",
        label=label,
        score=_clamp(score, 20),
        max_score=20,
        display=f"{len(work_zones)} work areas, {len(staging_zones)} staging lanes",
        suggestion=(
            "Optimize zone placement to minimize travel distance"
            if score < 20
            else "Flow distance is well optimized"
        ),
    )


def _closeness(
    zones: Sequence[Zone],
    activities: Sequence[Activity],
    relationships: Sequence[ActivityRelationship],
    settings: ScoringSettings,
) -> ScoreFactor:
    names = _activity_names(activities)
    zone_by_activity: Dict[str, Zone] = {}
    for zone in zones:
        if zone.activity_id:
            zone_by_activity.setdefault(zone.activity_id, zone)

    details: List[str] = []
    score = 20
    violations = 0
    for rel in relationships:
        zone_a = zone_by_activity.get(rel.activity_a_id)
        zone_b = zone_by_activity.get(rel.activity_b_id)
        if zone_a is None or zone_b is None:
            continue

        name_a = names.get(rel.activity_a_id, rel.activity_a_id)
        name_b = names.get(rel.activity_b_id, rel.activity_b_id)
        gap = zone_gap(zone_a, zone_b)
        if rel.rating == "must-be-close" and gap > settings.must_be_close_max_gap:
            score -= settings.must_be_close_penalty
            violations += 1
            details.append(f"{name_a} and {name_b} must be close ({gap} squares apart)")
        elif rel.rating == "prefer-close" and gap > settings.prefer_close_max_gap:
            score -= settings.prefer_close_penalty
            details.append(f"{name_a} and {name_b} prefer close ({gap} squares apart)")
        elif rel.rating == "keep-apart" and gap < settings.keep_apart_min_gap:
            score -= settings.keep_apart_penalty
            violations += 1
            details.append(f"{name_a} and {name_b} should be kept apart (only {gap} squares apart)")

    return ScoreFactor(
        name="closeness",
        label="Closeness Compliance: Are related zones near each other?",
        score=_clamp(score, 20),
        max_score=20,
        display=f"{violations} relationship violation(s)" if violations else "All relationships satisfied",
        suggestion=(
            "Adjust zone placement to satisfy closeness relationships"
            if violations
            else "Closeness relationships are well satisfied"
        ),
        details=details,
    )


def _departure_priority(
    zones: Sequence[Zone],
    activities: Sequence[Activity],
    doors: Sequence[Door],
    settings: ScoringSettings,
) -> ScoreFactor:
    label = "Departure Priority: Are early-departure lanes near exits?"
    staging_zones = zones_of_type(zones, activities, "staging-lane")
    timed = [a for a in activities if a.type == "staging-lane" and a.departure_time]
    if len(staging_zones) < 2 or len(timed) < 2:
        return ScoreFactor(
            name="departure_priority",
            label=label,
            score=15,
            max_score=15,
            display="Not enough staging lanes with departure times",
            suggestion="Set departure times on staging lane activities",
        )

    exits = [door for door in doors if door.is_exit]
    if not exits:
        return ScoreFactor(
            name="departure_priority",
            label=label,
            score=_clamp(settings.no_exit_door_score, 15),
            max_score=15,
            display="No exit doors configured",
            suggestion="Mark doors with outbound material or vehicle access",
            details=[
                "⚠ Configure at least one door with outbound material flow or vehicle access "
                "to evaluate departure priority"
            ],
        )

    by_id = {activity.id: activity for activity in activities}
    lanes = []
    for zone in staging_zones:
        activity = by_id.get(zone.activity_id or "")
        if activity is None or not activity.departure_time:
            continue
        center_x = zone.grid_x + zone.grid_width / 2
        center_y = zone.grid_y + zone.grid_height / 2
        distance = min(abs(door.grid_x - center_x) + abs(door.grid_y - center_y) for door in exits)
        lanes.append((activity, distance))
    lanes.sort(key=lambda lane: lane[0].departure_time or "")

    details: List[str] = []
    score = 15
    violations = 0
    for (earlier, earlier_dist), (later, later_dist) in zip(lanes, lanes[1:]):
        if earlier_dist > later_dist + settings.departure_slack_squares:
            score -= settings.departure_penalty
            violations += 1
            details.append(
                f"⚠ {earlier.name} (departs {earlier.departure_time}) is {_round(earlier_dist)} squares "
                f"from exit, but {later.name} (departs {later.departure_time}) is only "
                f"{_round(later_dist)} squares away. Swap their positions."
            )

    if not violations:
        for activity, distance in lanes:
            details.append(
                f"✓ {activity.name} (departs {activity.departure_time}): "
                f"{_round(distance)} squares from nearest exit"
            )

    return ScoreFactor(
        name="departure_priority",
        label=label,
        score=_clamp(score, 15),
        max_score=15,
        display=f"{violations} positioning issue(s)" if violations else "Departure sequence is optimized",
        suggestion=(
            "Reposition staging lanes so earlier departures are closer to exits"
            if violations
            else "Early-departure lanes are well positioned near exits"
        ),
        details=details,
    )


def _space_utilization(
    zones: Sequence[Zone],
    painted_squares: Mapping[str, str],
    grid_dims: GridDimensions,
    corridors: Sequence[Corridor],
    settings: ScoringSettings,
) -> ScoreFactor:
    total_squares = grid_dims.total_squares
    permanent = sum(1 for kind in painted_squares.values() if kind == "permanent")
    corridor_squares = sum(corridor.footprint for corridor in corridors)
    zone_squares = sum(zone.area for zone in zones)
    available = total_squares - permanent - corridor_squares
    utilization = zone_squares / available * 100 if available > 0 else 0.0

    details: List[str] = []
    if corridor_squares and total_squares:
        details.append(
            f"ℹ {corridor_squares} squares used for corridors "
            f"({_round(corridor_squares / total_squares * 100)}% of total floor)"
        )
    if permanent and total_squares:
        details.append(
            f"ℹ {permanent} squares are permanent obstacles "
            f"({_round(permanent / total_squares * 100)}% of total floor)"
        )
    details.append(f"ℹ {available} squares available for work areas and staging after pathways")

    for upper, points in settings.utilization_bands:
        if utilization < upper:
            score = int(points)
            break
    else:
        score = settings.overcrowded_score if utilization > settings.overcrowded_percent else 15

    if utilization < 60:
        suggestion = "Assign more work areas and staging lanes"
    elif utilization > settings.overcrowded_percent:
        suggestion = "Consider if space is too cramped"
    else:
        suggestion = "Space utilization is balanced"

    return ScoreFactor(
        name="space_utilization",
        label="Space Utilization: Is available space well used?",
        score=_clamp(score, 15),
        max_score=15,
        display=f"{_round(utilization)}% of available space assigned",
        suggestion=suggestion,
        details=details,
    )


def _path_clearance(
    zones: Sequence[Zone],
    activities: Sequence[Activity],
    corridors: Sequence[Corridor],
    facility: FacilitySettings,
    dismissed: AbstractSet[str],
    settings: ScoringSettings,
) -> ScoreFactor:
    names = _activity_names(activities)
    flags: List[Flag] = []
    score = 15

    forklift = [c for c in corridors if c.type == "forklift"]
    for corridor in forklift:
        if corridor.width >= settings.min_forklift_width:
            continue
        flag_id = f"path-narrow-corridor-{corridor.id}"
        is_dismissed = flag_id in dismissed
        min_ft = settings.min_forklift_width * facility.square_size
        flags.append(
            Flag(
                id=flag_id,
                severity="MEDIUM",
                message=(
                    f"Forklift path is only {corridor.width} square wide "
                    f"({corridor.width * facility.square_size:g} ft)"
                ),
                recommendation=(
                    f"Minimum for forklift traffic is {settings.min_forklift_width} squares ({min_ft:g} ft). "
                    "Widen this corridor if forklifts will use it."
                ),
                is_dismissed=is_dismissed,
                points_deduction=settings.narrow_corridor_penalty,
            )
        )
        if not is_dismissed:
            score -= settings.narrow_corridor_penalty

    for zone in zones_of_type(zones, activities, "staging-lane"):
        rect = Rect.from_zone(zone)
        if any(rect_overlaps_corridor(rect, corridor) for corridor in forklift):
            continue
        flag_id = f"path-no-forklift-{zone.id}"
        is_dismissed = flag_id in dismissed
        flags.append(
            Flag(
                id=flag_id,
                severity="LOW",
                message=f"{names.get(zone.activity_id or '', zone.name)} has no forklift corridor connected",
                recommendation=(
                    "If cargo moves here by forklift, add a forklift corridor. If it moves by hand cart "
                    "or pallet jack, a pedestrian walkway is sufficient (you can dismiss this)."
                ),
                is_dismissed=is_dismissed,
                points_deduction=settings.unconnected_staging_penalty,
            )
        )
        if not is_dismissed:
            score -= settings.unconnected_staging_penalty

    flags.sort(key=lambda flag: SEVERITY_ORDER.get(flag.severity, 999))
    active = [flag for flag in flags if not flag.is_dismissed]

    return ScoreFactor(
        name="path_clearance",
        label="Path Clearance: Are corridors wide enough and connected?",
        score=_clamp(score, 15),
        max_score=15,
        display=f"{len(active)} clearance issue(s)" if active else "All paths are clear",
        suggestion=(
            "Review corridor widths and connections (dismiss if they don't apply)"
            if active
            else "Path clearance is good"
        ),
        flags=flags,
    )


def _buffer_capacity(
    zones: Sequence[Zone],
    activities: Sequence[Activity],
    volume_timing: Sequence[VolumeTiming],
    settings: ScoringSettings,
) -> ScoreFactor:
    label = "Buffer Capacity: Can staging lanes handle peak volume?"
    staging_zones = zones_of_type(zones, activities, "staging-lane")
    if not staging_zones:
        return ScoreFactor(
            name="buffer_capacity",
            label=label,
            score=15,
            max_score=15,
            display="No staging lanes placed",
            suggestion="Place staging lanes to evaluate capacity",
        )

    names = _activity_names(activities)
    volumes: Dict[str, VolumeTiming] = {}
    for vt in volume_timing:
        volumes.setdefault(vt.activity_id, vt)
    total_space = sum(zone.area for zone in staging_zones)

    details: List[str] = []
    score = 15
    for zone in staging_zones:
        vt = volumes.get(zone.activity_id or "")
        if vt is None or vt.percentage <= 0 or total_space <= 0:
            continue
        space_percent = zone.area / total_space * 100
        if space_percent < vt.percentage * settings.buffer_space_ratio:
            score -= settings.buffer_penalty
            name = names.get(zone.activity_id or "", zone.name)
            details.append(
                f"⚠ {name} ({zone.name or zone.id}) is undersized for its volume "
                f"({_round(space_percent)}% of space, {_round(vt.percentage)}% of volume)"
            )

    return ScoreFactor(
        name="buffer_capacity",
        label=label,
        score=_clamp(score, 15),
        max_score=15,
        display=f"{len(details)} capacity issue(s)" if details else "Buffer capacity is adequate",
        suggestion=(
            "Resize staging lanes to match volume proportions" if details else "Buffer capacity is well sized"
        ),
        details=details,
    )


def _safety(
    zones: Sequence[Zone],
    activities: Sequence[Activity],
    doors: Sequence[Door],
    corridors: Sequence[Corridor],
    painted_squares: Mapping[str, str],
    grid_dims: GridDimensions,
    settings: ScoringSettings,
) -> ScoreFactor:
    cells = classify_grid_cells(grid_dims, zones, corridors, doors, painted_squares, activities)
    rules = evaluate_safety_rules(cells, grid_dims, zones, doors, activities, settings)

    max_score = 15
    total = sum(rule.score for rule in rules)
    good = sum(1 for rule in rules if rule.status == "good")
    warning = sum(1 for rule in rules if rule.status == "warning")
    critical = sum(1 for rule in rules if rule.status == "critical")

    if critical:
        display = f"{critical} critical, {warning} warning"
        suggestion = "Address critical safety issues first"
    elif warning:
        display = f"{warning} warning, {good} good"
        suggestion = "Review warnings and consider improvements"
    else:
        display = "All safety checks passed"
        suggestion = "Safety design is excellent"

    return ScoreFactor(
        name="safety",
        label="Safety: Are people and equipment safe?",
        score=_clamp(total, max_score),
        max_score=max_score,
        display=display,
        suggestion=suggestion,
        safety_rules=rules,
    )


def verdict_for(percentage: int) -> str:
    for threshold, verdict in VERDICTS:
        if percentage >= threshold:
            return verdict
    return "Needs work"


def calculate_layout_score(
    zones: Sequence[Zone],
    activities: Sequence[Activity],
    settings: FacilitySettings,
    relationships: Sequence[ActivityRelationship],
    volume_timing: Sequence[VolumeTiming],
    doors: Sequence[Door],
    corridors: Sequence[Corridor],
    painted_squares: Mapping[str, str],
    grid_dims: GridDimensions,
    dismissed_flag_ids: AbstractSet[str] = frozenset(),
    scoring_settings: Optional[ScoringSettings] = None,
) -> LayoutScore:
    """Score a layout snapshot.

    Pure function of its arguments: the grid is reclassified on every call and
    nothing is cached between calls. ``painted_squares`` maps ``"row-col"``
    keys to ``"permanent"`` or ``"semi-fixed"``.
    """

    config = scoring_settings or ScoringSettings()
    dismissed = frozenset(dismissed_flag_ids)

    factors = [
        _flow_distance(zones, activities, config),
        _closeness(zones, activities, relationships, config),
        _departure_priority(zones, activities, doors, config),
        _space_utilization(zones, painted_squares, grid_dims, corridors, config),
        _path_clearance(zones, activities, corridors, settings, dismissed, config),
        _buffer_capacity(zones, activities, volume_timing, config),
        _safety(zones, activities, doors, corridors, painted_squares, grid_dims, config),
    ]
    for factor in factors:
        logger.debug("Factor %s: %d/%d (%s)", factor.name, factor.score, factor.max_score, factor.display)

    total = sum(factor.score for factor in factors)
    max_total = sum(factor.max_score for factor in factors)
    percentage = _round(total / max_total * 100) if max_total > 0 else 0

    return LayoutScore(
        total=total,
        max_total=max_total,
        percentage=percentage,
        verdict=verdict_for(percentage),
        factors=factors,
    )


def score_snapshot(
    snapshot: LayoutSnapshot,
    scoring_settings: Optional[ScoringSettings] = None,
    dismissed_flag_ids: Optional[AbstractSet[str]] = None,
) -> LayoutScore:
    """Score a bundled snapshot, using its own dismissed flags unless overridden."""

    dismissed = dismissed_flag_ids if dismissed_flag_ids is not None else set(snapshot.dismissed_flags)
    return calculate_layout_score(
        snapshot.zones,
        snapshot.activities,
        snapshot.facility,
        snapshot.relationships,
        snapshot.volume_timing,
        snapshot.doors,
        snapshot.corridors,
        snapshot.painted_map(),
        snapshot.grid_dimensions(),
        dismissed,
        scoring_settings,
    )
