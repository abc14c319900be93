"""Core data models for facility layouts and their scores."""

from __future__ import annotations

import math
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

ActivityType = Literal["work-area", "staging-lane", "corridor", "support-area"]
ZoneGroupType = Literal["permanent", "semi-fixed", "flexible"]
DoorType = Literal["hangar", "loading-dock", "personnel", "emergency"]
DoorEdge = Literal["top", "bottom", "left", "right"]
CorridorType = Literal["pedestrian", "forklift"]
PaintType = Literal["permanent", "semi-fixed"]
RelationshipRating = Literal["must-be-close", "prefer-close", "does-not-matter", "keep-apart"]
CellType = Literal["obstacle", "door", "pedestrian", "equipment", "staging", "work", "empty"]
Severity = Literal["HIGH", "MEDIUM", "LOW"]
RuleStatus = Literal["good", "warning", "critical"]


class GridDimensions(BaseModel):
    """Number of grid rows and columns laid over the facility."""

    rows: int = Field(..., ge=0)
    cols: int = Field(..., ge=0)

    @property
    def total_squares(self) -> int:
        return self.rows * self.cols

    def contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols


class FacilitySettings(BaseModel):
    """Facility footprint and the sizing assumptions entered during setup."""

    facility_width: float = Field(..., gt=0)
    facility_height: float = Field(..., gt=0)
    square_size: float = Field(5.0, gt=0)
    unit_footprint_sq_ft: Optional[float] = Field(None, gt=0)
    stacking_height: Optional[int] = Field(None, ge=1)
    access_factor: Optional[float] = Field(None, gt=0)

    def grid_dimensions(self) -> GridDimensions:
        return GridDimensions(
            rows=math.ceil(self.facility_height / self.square_size),
            cols=math.ceil(self.facility_width / self.square_size),
        )


class Zone(BaseModel):
    """Placed rectangular region, usually tied to an activity."""

    id: str
    name: str = ""
    grid_x: int
    grid_y: int
    grid_width: int = Field(..., ge=1)
    grid_height: int = Field(..., ge=1)
    group_type: ZoneGroupType = "flexible"
    activity_id: Optional[str] = None

    @property
    def area(self) -> int:
        return self.grid_width * self.grid_height


class Activity(BaseModel):
    """Named behavioural role a zone can be assigned to."""

    id: str
    name: str
    type: ActivityType
    departure_time: Optional[str] = None
    sort_order: int = 0
    sequence_order: Optional[int] = None
    destination_name: Optional[str] = None
    destination_code: Optional[str] = None

    @field_validator("departure_time")
    @classmethod
    def _blank_departure_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None


class Door(BaseModel):
    """Opening on one facility edge."""

    id: str
    name: str = ""
    grid_x: int
    grid_y: int
    width: int = Field(1, ge=1)
    type: DoorType = "personnel"
    edge: DoorEdge
    has_inbound_material: bool = False
    has_outbound_material: bool = False
    has_vehicle_access: bool = False
    is_personnel_only: bool = False
    inbound_percentage: Optional[float] = None
    outbound_percentage: Optional[float] = None

    @property
    def is_exit(self) -> bool:
        return self.has_outbound_material or self.has_vehicle_access


class Corridor(BaseModel):
    """Straight travel lane of fixed width between two grid points."""

    id: str
    name: str = ""
    type: CorridorType
    start_grid_x: int
    start_grid_y: int
    end_grid_x: int
    end_grid_y: int
    width: int = Field(1, ge=1)

    @property
    def is_horizontal(self) -> bool:
        return self.start_grid_y == self.end_grid_y

    @property
    def footprint(self) -> int:
        length = abs(self.end_grid_x - self.start_grid_x) + abs(self.end_grid_y - self.start_grid_y) + 1
        return length * self.width


class PaintedSquare(BaseModel):
    row: int
    col: int
    type: PaintType

    @property
    def key(self) -> str:
        return f"{self.row}-{self.col}"


class ActivityRelationship(BaseModel):
    """Closeness rating between two activities."""

    id: str
    activity_a_id: str
    activity_b_id: str
    rating: RelationshipRating
    reason: Optional[str] = None


class VolumeTiming(BaseModel):
    """Throughput figures for one activity."""

    id: str
    activity_id: str
    typical_volume_per_shift: float = Field(0, ge=0)
    peak_volume_per_shift: float = Field(0, ge=0)
    typical_units_on_floor: float = Field(0, ge=0)
    peak_units_on_floor: float = Field(0, ge=0)
    percentage: float = Field(0, ge=0, le=100)


class CellClassification(BaseModel):
    row: int
    col: int
    type: CellType = "empty"
    zone_id: Optional[str] = None
    corridor_id: Optional[str] = None
    door_id: Optional[str] = None


class Flag(BaseModel):
    """Dismissable issue raised by a scoring factor."""

    id: str
    severity: Severity
    message: str
    recommendation: str
    dismissible: bool = True
    is_dismissed: bool = False
    points_deduction: int = 0


class SafetyRule(BaseModel):
    """Outcome of one safety rule."""

    name: str
    label: str
    score: int
    max_score: int
    status: RuleStatus
    message: str
    locations: List[str] = Field(default_factory=list)


class ScoreFactor(BaseModel):
    """One independently scored dimension of layout quality."""

    name: str
    label: str
    score: int
    max_score: int
    display: str
    suggestion: str
    details: List[str] = Field(default_factory=list)
    flags: Optional[List[Flag]] = None
    safety_rules: Optional[List[SafetyRule]] = None


class LayoutScore(BaseModel):
    total: int
    max_total: int
    percentage: int
    verdict: str
    factors: List[ScoreFactor]

    def factor(self, name: str) -> ScoreFactor:
        for factor in self.factors:
            if factor.name == name:
                return factor
        raise KeyError(name)


class ScoringSettings(BaseModel):
    """Thresholds used by the scoring factors and safety rules."""

    min_work_zones_for_flow: int = Field(2, ge=0)
    flow_base_score: int = Field(15, ge=0, le=20)

    must_be_close_max_gap: int = Field(5, ge=0)
    must_be_close_penalty: int = Field(3, ge=0)
    prefer_close_max_gap: int = Field(8, ge=0)
    prefer_close_penalty: int = Field(1, ge=0)
    keep_apart_min_gap: int = Field(10, ge=0)
    keep_apart_penalty: int = Field(2, ge=0)

    departure_slack_squares: float = Field(3.0, ge=0)
    departure_penalty: int = Field(2, ge=0)
    no_exit_door_score: int = Field(10, ge=0, le=15)

    utilization_bands: List[List[float]] = Field(
        default_factory=lambda: [[40.0, 5], [60.0, 10], [80.0, 13]]
    )
    overcrowded_percent: float = Field(95.0, ge=0)
    overcrowded_score: int = Field(10, ge=0, le=15)

    min_forklift_width: int = Field(2, ge=1)
    narrow_corridor_penalty: int = Field(2, ge=0)
    unconnected_staging_penalty: int = Field(1, ge=0)

    buffer_space_ratio: float = Field(0.8, ge=0)
    buffer_penalty: int = Field(2, ge=0)

    staging_pair_max_distance: int = Field(10, ge=0)

    @field_validator("utilization_bands")
    @classmethod
    def _bands_ascending(cls, value: List[List[float]]) -> List[List[float]]:
        if any(len(band) != 2 for band in value):
            raise ValueError("utilization bands must be [upper_percent, score] pairs")
        if any(not 0 <= band[1] <= 15 for band in value):
            raise ValueError("utilization band scores must be between 0 and 15")
        limits = [band[0] for band in value]
        if limits != sorted(limits):
            raise ValueError("utilization bands must be sorted by upper_percent")
        return value


class LayoutSnapshot(BaseModel):
    """Complete in-memory state of one layout, as handed to the scorer."""

    id: str = "layout"
    name: str = "Untitled layout"
    facility: FacilitySettings
    grid: Optional[GridDimensions] = None
    zones: List[Zone] = Field(default_factory=list)
    activities: List[Activity] = Field(default_factory=list)
    relationships: List[ActivityRelationship] = Field(default_factory=list)
    volume_timing: List[VolumeTiming] = Field(default_factory=list)
    doors: List[Door] = Field(default_factory=list)
    corridors: List[Corridor] = Field(default_factory=list)
    painted_squares: List[PaintedSquare] = Field(default_factory=list)
    dismissed_flags: List[str] = Field(default_factory=list)

    def grid_dimensions(self) -> GridDimensions:
        return self.grid or self.facility.grid_dimensions()

    def painted_map(self) -> Dict[str, str]:
        return {square.key: square.type for square in self.painted_squares}
