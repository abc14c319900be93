"""Recommended zone sizes from peak units on the floor."""

from __future__ import annotations

import math
from typing import Dict, List, Sequence

from pydantic import BaseModel

from .models import Activity, FacilitySettings, VolumeTiming, Zone

DEFAULT_UNIT_FOOTPRINT_SQ_FT = 13.3  # 48" x 40" pallet
DEFAULT_STACKING_HEIGHT = 1
DEFAULT_ACCESS_FACTOR = 1.3

SIZED_ACTIVITY_TYPES = ("staging-lane", "work-area")


class SizingRecommendation(BaseModel):
    activity_id: str
    activity_name: str
    activity_type: str
    peak_units: float
    floor_area_sq_ft: float
    recommended_squares: int
    square_size_ft: float
    unit_footprint_sq_ft: float
    access_factor: float
    stacking_height: int
    effective_sq_ft_per_unit: float


class SizingShortfall(BaseModel):
    activity_id: str
    activity_name: str
    zone_id: str
    placed_squares: int
    recommended_squares: int

    @property
    def missing_squares(self) -> int:
        return self.recommended_squares - self.placed_squares


def calculate_zone_sizing(
    activities: Sequence[Activity],
    volume_timing: Sequence[VolumeTiming],
    facility: FacilitySettings,
) -> List[SizingRecommendation]:
    """Minimum grid squares per staging lane and work area.

    ``ceil(peak_units * footprint * access / stacking / square_size**2)``;
    activities without volume data or with no peak units are skipped.
    """

    footprint = facility.unit_footprint_sq_ft or DEFAULT_UNIT_FOOTPRINT_SQ_FT
    stacking = facility.stacking_height or DEFAULT_STACKING_HEIGHT
    access = facility.access_factor or DEFAULT_ACCESS_FACTOR
    sq_ft_per_square = facility.square_size ** 2
    effective = footprint * access / stacking

    volumes: Dict[str, VolumeTiming] = {}
    for vt in volume_timing:
        volumes.setdefault(vt.activity_id, vt)

    recommendations: List[SizingRecommendation] = []
    for activity in activities:
        if activity.type not in SIZED_ACTIVITY_TYPES:
            continue
        vt = volumes.get(activity.id)
        if vt is None or vt.peak_units_on_floor <= 0:
            continue
        floor_area = vt.peak_units_on_floor * effective
        recommendations.append(
            SizingRecommendation(
                activity_id=activity.id,
                activity_name=activity.name,
                activity_type=activity.type,
                peak_units=vt.peak_units_on_floor,
                floor_area_sq_ft=floor_area,
                recommended_squares=math.ceil(floor_area / sq_ft_per_square),
                square_size_ft=facility.square_size,
                unit_footprint_sq_ft=footprint,
                access_factor=access,
                stacking_height=stacking,
                effective_sq_ft_per_unit=effective,
            )
        )
    return recommendations


def compare_zone_sizes(
    zones: Sequence[Zone], recommendations: Sequence[SizingRecommendation]
) -> List[SizingShortfall]:
    """Placed zones that are smaller than their recommended size."""

    by_activity = {rec.activity_id: rec for rec in recommendations}
    shortfalls: List[SizingShortfall] = []
    for zone in zones:
        rec = by_activity.get(zone.activity_id or "")
        if rec is None or zone.area >= rec.recommended_squares:
            continue
        shortfalls.append(
            SizingShortfall(
                activity_id=rec.activity_id,
                activity_name=rec.activity_name,
                zone_id=zone.id,
                placed_squares=zone.area,
                recommended_squares=rec.recommended_squares,
            )
        )
    return shortfalls
