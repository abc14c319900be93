"""Sample cross-dock layout used by ``flowgrid init`` and the demo API."""

from __future__ import annotations

from typing import Any, Dict, Optional

from .models import LayoutSnapshot

SAMPLE_ACTIVITIES = [
    {"id": "act-recv", "name": "Receiving", "type": "work-area", "sort_order": 1, "sequence_order": 1},
    {"id": "act-pack", "name": "Packing", "type": "work-area", "sort_order": 2, "sequence_order": 2},
    {"id": "act-lane-a", "name": "Lane A - Dallas", "type": "staging-lane", "departure_time": "06:00", "sort_order": 3},
    {"id": "act-lane-b", "name": "Lane B - Austin", "type": "staging-lane", "departure_time": "08:30", "sort_order": 4},
    {"id": "act-lane-c", "name": "Lane C - Houston", "type": "staging-lane", "departure_time": "11:00", "sort_order": 5},
    {"id": "act-break", "name": "Break Room", "type": "support-area", "sort_order": 6},
]

SAMPLE_ZONES = [
    {"id": "zone-recv", "name": "Receiving", "grid_x": 2, "grid_y": 1, "grid_width": 6, "grid_height": 4, "activity_id": "act-recv"},
    {"id": "zone-pack", "name": "Packing", "grid_x": 12, "grid_y": 1, "grid_width": 6, "grid_height": 4, "activity_id": "act-pack"},
    {"id": "zone-lane-a", "name": "Lane A", "grid_x": 2, "grid_y": 10, "grid_width": 4, "grid_height": 7, "activity_id": "act-lane-a"},
    {"id": "zone-lane-b", "name": "Lane B", "grid_x": 8, "grid_y": 10, "grid_width": 4, "grid_height": 7, "activity_id": "act-lane-b"},
    {"id": "zone-lane-c", "name": "Lane C", "grid_x": 14, "grid_y": 10, "grid_width": 4, "grid_height": 7, "activity_id": "act-lane-c"},
    {"id": "zone-break", "name": "Break Room", "grid_x": 24, "grid_y": 1, "grid_width": 4, "grid_height": 3, "activity_id": "act-break", "group_type": "permanent"},
]

SAMPLE_CORRIDORS = [
    {"id": "cor-walk", "name": "Main walkway", "type": "pedestrian", "start_grid_x": 0, "start_grid_y": 6, "end_grid_x": 29, "end_grid_y": 6, "width": 1},
    {"id": "cor-fork", "name": "Forklift aisle", "type": "forklift", "start_grid_x": 0, "start_grid_y": 7, "end_grid_x": 29, "end_grid_y": 7, "width": 2},
    {"id": "cor-lanes", "name": "Lane aisle", "type": "forklift", "start_grid_x": 2, "start_grid_y": 10, "end_grid_x": 17, "end_grid_y": 10, "width": 1},
]

SAMPLE_DOORS = [
    {"id": "door-dock", "name": "Dock 1", "grid_x": 8, "grid_y": 19, "width": 3, "type": "loading-dock", "edge": "bottom", "has_outbound_material": True, "has_vehicle_access": True, "outbound_percentage": 100},
    {"id": "door-recv", "name": "Receiving door", "grid_x": 3, "grid_y": 0, "width": 2, "type": "hangar", "edge": "top", "has_inbound_material": True, "has_vehicle_access": True, "inbound_percentage": 100},
    {"id": "door-staff", "name": "Staff entrance", "grid_x": 0, "grid_y": 6, "width": 1, "type": "personnel", "edge": "left", "is_personnel_only": True},
]

SAMPLE_RELATIONSHIPS = [
    {"id": "rel-1", "activity_a_id": "act-recv", "activity_b_id": "act-pack", "rating": "must-be-close", "reason": "sequential-process"},
    {"id": "rel-2", "activity_a_id": "act-pack", "activity_b_id": "act-lane-b", "rating": "prefer-close", "reason": "heavy-material-flow"},
    {"id": "rel-3", "activity_a_id": "act-break", "activity_b_id": "act-recv", "rating": "keep-apart", "reason": "noise"},
]

SAMPLE_VOLUMES = [
    {"id": "vol-a", "activity_id": "act-lane-a", "typical_volume_per_shift": 40, "peak_volume_per_shift": 55, "typical_units_on_floor": 18, "peak_units_on_floor": 24, "percentage": 40},
    {"id": "vol-b", "activity_id": "act-lane-b", "typical_volume_per_shift": 35, "peak_volume_per_shift": 45, "typical_units_on_floor": 15, "peak_units_on_floor": 20, "percentage": 35},
    {"id": "vol-c", "activity_id": "act-lane-c", "typical_volume_per_shift": 25, "peak_volume_per_shift": 30, "typical_units_on_floor": 10, "peak_units_on_floor": 14, "percentage": 25},
]

SAMPLE_PAINTED = [
    {"row": 4, "col": 10, "type": "permanent"},
    {"row": 4, "col": 21, "type": "permanent"},
    {"row": 14, "col": 24, "type": "semi-fixed"},
]


def generate_sample_snapshot(config: Optional[Dict[str, Any]] = None) -> LayoutSnapshot:
    """Build the demo cross-dock: 150 x 100 ft at 5 ft squares (20 rows x 30 cols).

    ``config`` may override ``id``, ``name`` and ``square_size``; the grid
    always follows the facility size.
    """

    config = config or {}
    return LayoutSnapshot.model_validate(
        {
            "id": config.get("id", "sample"),
            "name": config.get("name", "Sample cross-dock"),
            "facility": {
                "facility_width": 150,
                "facility_height": 100,
                "square_size": config.get("square_size", 5.0),
                "unit_footprint_sq_ft": 13.3,
                "stacking_height": 2,
                "access_factor": 1.3,
            },
            "zones": SAMPLE_ZONES,
            "activities": SAMPLE_ACTIVITIES,
            "relationships": SAMPLE_RELATIONSHIPS,
            "volume_timing": SAMPLE_VOLUMES,
            "doors": SAMPLE_DOORS,
            "corridors": SAMPLE_CORRIDORS,
            "painted_squares": SAMPLE_PAINTED,
        }
    )
