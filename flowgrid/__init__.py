"""Facility layout scoring package."""

from .models import (  # noqa: F401
    Activity,
    ActivityRelationship,
    Corridor,
    Door,
    FacilitySettings,
    GridDimensions,
    LayoutScore,
    LayoutSnapshot,
    ScoringSettings,
    VolumeTiming,
    Zone,
)
from .compare import compare_layouts  # noqa: F401
from .grid import classify_grid_cells  # noqa: F401
from .reachability import find_path, path_crosses_equipment  # noqa: F401
from .routing import calculate_material_travel, route_flow_leg  # noqa: F401
from .safety import run_all_safety_checks  # noqa: F401
from .scoring import calculate_layout_score, score_snapshot  # noqa: F401
from .sizing import calculate_zone_sizing  # noqa: F401

__all__ = [
    "Activity",
    "ActivityRelationship",
    "Corridor",
    "Door",
    "FacilitySettings",
    "GridDimensions",
    "LayoutScore",
    "LayoutSnapshot",
    "ScoringSettings",
    "VolumeTiming",
    "Zone",
    "classify_grid_cells",
    "find_path",
    "path_crosses_equipment",
    "run_all_safety_checks",
    "calculate_layout_score",
    "score_snapshot",
    "calculate_zone_sizing",
    "compare_layouts",
    "calculate_material_travel",
    "route_flow_leg",
]
