import pytest

from flowgrid.models import (
    Activity,
    ActivityRelationship,
    Corridor,
    Door,
    FacilitySettings,
    GridDimensions,
    ScoringSettings,
    VolumeTiming,
    Zone,
)
from flowgrid.sample import generate_sample_snapshot
from flowgrid.scoring import calculate_layout_score, score_snapshot, verdict_for

FACILITY = FacilitySettings(facility_width=100, facility_height=100, square_size=5)
GRID = GridDimensions(rows=20, cols=20)


def score(zones=(), activities=(), relationships=(), volumes=(), doors=(), corridors=(), painted=None, **kwargs):
    return calculate_layout_score(
        list(zones),
        list(activities),
        kwargs.pop("facility", FACILITY),
        list(relationships),
        list(volumes),
        list(doors),
        list(corridors),
        painted or {},
        kwargs.pop("grid", GRID),
        **kwargs,
    )


def test_empty_layout():
    result = score()
    assert [f.name for f in result.factors] == [
        "flow_distance",
        "closeness",
        "departure_priority",
        "space_utilization",
        "path_clearance",
        "buffer_capacity",
        "safety",
    ]
    assert [f.score for f in result.factors] == [0, 20, 15, 5, 15, 15, 15]
    assert result.total == 85
    assert result.max_total == 115
    assert result.percentage == 74
    assert result.verdict == "Fair"
    assert result.factor("flow_distance").display == "Insufficient work areas placed"


def test_total_is_sum_of_factors():
    result = score_snapshot(generate_sample_snapshot())
    assert result.total == sum(f.score for f in result.factors)
    assert result.max_total == 115
    for factor in result.factors:
        assert 0 <= factor.score <= factor.max_score
    assert 0 <= result.percentage <= 100


def test_scoring_is_repeatable():
    snapshot = generate_sample_snapshot()
    assert score_snapshot(snapshot) == score_snapshot(snapshot)


@pytest.mark.parametrize(
    "percentage, verdict",
    [(100, "Excellent"), (90, "Excellent"), (89, "Good"), (80, "Good"), (79, "Fair"), (60, "Fair"), (59, "Needs work"), (0, "Needs work")],
)
def test_verdict_thresholds(percentage, verdict):
    assert verdict_for(percentage) == verdict


WORK = [
    Activity(id="w1", name="Cutting", type="work-area"),
    Activity(id="w2", name="Welding", type="work-area"),
]


def work_zone(zid, activity_id, x, y=0, width=2, height=2):
    return Zone(id=zid, name=zid, grid_x=x, grid_y=y, grid_width=width, grid_height=height, activity_id=activity_id)


def test_flow_distance_counts_staging_lanes():
    lanes = [Activity(id=f"l{i}", name=f"Lane {i}", type="staging-lane") for i in range(8)]
    zones = [work_zone("a", "w1", 0), work_zone("b", "w2", 4)]
    zones += [work_zone(f"z{i}", f"l{i}", 2 * i, y=10, width=1) for i in range(3)]
    assert score(zones, WORK + lanes).factor("flow_distance").score == 18

    many = [work_zone("a", "w1", 0), work_zone("b", "w2", 4)]
    many += [work_zone(f"z{i}", f"l{i}", 2 * i, y=10, width=1) for i in range(8)]
    assert score(many, WORK + lanes).factor("flow_distance").score == 20


def test_closeness_must_be_close_violation():
    zones = [work_zone("a", "w1", 0), work_zone("b", "w2", 12)]
    rel = ActivityRelationship(id="r", activity_a_id="w1", activity_b_id="w2", rating="must-be-close")
    factor = score(zones, WORK, [rel]).factor("closeness")
    assert factor.score == 17
    assert factor.details == ["Cutting and Welding must be close (10 squares apart)"]
    assert factor.display == "1 relationship violation(s)"


def test_closeness_prefer_close_is_not_a_violation():
    zones = [work_zone("a", "w1", 0), work_zone("b", "w2", 12)]
    rel = ActivityRelationship(id="r", activity_a_id="w1", activity_b_id="w2", rating="prefer-close")
    factor = score(zones, WORK, [rel]).factor("closeness")
    assert factor.score == 19
    assert factor.display == "All relationships satisfied"


def test_closeness_keep_apart_and_unplaced():
    zones = [work_zone("a", "w1", 0), work_zone("b", "w2", 3)]
    rels = [
        ActivityRelationship(id="r1", activity_a_id="w1", activity_b_id="w2", rating="keep-apart"),
        ActivityRelationship(id="r2", activity_a_id="w1", activity_b_id="missing", rating="must-be-close"),
        ActivityRelationship(id="r3", activity_a_id="w1", activity_b_id="w2", rating="does-not-matter"),
    ]
    factor = score(zones, WORK, rels).factor("closeness")
    assert factor.score == 18
    assert factor.details == ["Cutting and Welding should be kept apart (only 1 squares apart)"]


LANES = [
    Activity(id="early", name="Early run", type="staging-lane", departure_time="06:00"),
    Activity(id="late", name="Late run", type="staging-lane", departure_time="14:00"),
]
DOCK = Door(id="dock", grid_x=0, grid_y=19, edge="bottom", has_vehicle_access=True)


def test_departure_priority_flags_swapped_lanes():
    zones = [work_zone("e", "early", 0, y=0), work_zone("l", "late", 0, y=16)]
    factor = score(zones, LANES, doors=[DOCK]).factor("departure_priority")
    assert factor.score == 13
    assert factor.display == "1 positioning issue(s)"
    assert factor.details[0].startswith("⚠ Early run (departs 06:00) is 19 squares from exit")


def test_departure_priority_well_ordered():
    zones = [work_zone("e", "early", 0, y=16), work_zone("l", "late", 0, y=0)]
    factor = score(zones, LANES, doors=[DOCK]).factor("departure_priority")
    assert factor.score == 15
    assert factor.details[0] == "✓ Early run (departs 06:00): 3 squares from nearest exit"


def test_departure_priority_without_exit_door():
    zones = [work_zone("e", "early", 0, y=0), work_zone("l", "late", 0, y=16)]
    staff = Door(id="staff", grid_x=0, grid_y=19, edge="bottom", is_personnel_only=True)
    factor = score(zones, LANES, doors=[staff]).factor("departure_priority")
    assert factor.score == 10
    assert factor.display == "No exit doors configured"


def test_departure_priority_needs_two_timed_lanes():
    untimed = [LANES[0], Activity(id="late", name="Late run", type="staging-lane")]
    zones = [work_zone("e", "early", 0, y=0), work_zone("l", "late", 0, y=16)]
    assert score(zones, untimed, doors=[DOCK]).factor("departure_priority").score == 15


@pytest.mark.parametrize("rows_used, expected", [(0, 5), (7, 5), (9, 10), (14, 13), (18, 15), (20, 10)])
def test_space_utilization_bands(rows_used, expected):
    zones = [Zone(id="big", grid_x=0, grid_y=0, grid_width=20, grid_height=rows_used)] if rows_used else []
    assert score(zones).factor("space_utilization").score == expected


def test_space_utilization_excludes_corridors_and_obstacles():
    corridor = Corridor(id="c", type="pedestrian", start_grid_x=0, start_grid_y=19, end_grid_x=19, end_grid_y=19)
    painted = {f"18-{col}": "permanent" for col in range(20)}
    zones = [Zone(id="big", grid_x=0, grid_y=0, grid_width=20, grid_height=13)]
    factor = score(zones, corridors=[corridor], painted=painted).factor("space_utilization")
    # 260 of 360 available squares
    assert factor.display == "72% of available space assigned"
    assert factor.score == 13
    assert "ℹ 360 squares available for work areas and staging after pathways" in factor.details


def test_space_utilization_custom_bands():
    settings = ScoringSettings(utilization_bands=[[50, 1]])
    zones = [Zone(id="big", grid_x=0, grid_y=0, grid_width=20, grid_height=4)]
    assert score(zones, scoring_settings=settings).factor("space_utilization").score == 1


def test_path_clearance_flags_and_dismissal():
    lane_activity = [Activity(id="lane", name="Lane 1", type="staging-lane")]
    zones = [Zone(id="lz", name="L1", grid_x=15, grid_y=15, grid_width=2, grid_height=2, activity_id="lane")]
    narrow = Corridor(id="aisle", type="forklift", start_grid_x=0, start_grid_y=5, end_grid_x=19, end_grid_y=5)

    factor = score(zones, lane_activity, corridors=[narrow]).factor("path_clearance")
    assert factor.score == 12
    assert [flag.id for flag in factor.flags] == ["path-narrow-corridor-aisle", "path-no-forklift-lz"]
    assert [flag.severity for flag in factor.flags] == ["MEDIUM", "LOW"]
    assert factor.flags[0].message == "Forklift path is only 1 square wide (5 ft)"

    dismissed = score(
        zones, lane_activity, corridors=[narrow], dismissed_flag_ids={"path-narrow-corridor-aisle"}
    ).factor("path_clearance")
    assert dismissed.score == 14
    assert dismissed.flags[0].is_dismissed
    assert dismissed.display == "1 clearance issue(s)"


def test_path_clearance_connected_lane_is_clean():
    lane_activity = [Activity(id="lane", name="Lane 1", type="staging-lane")]
    zones = [Zone(id="lz", grid_x=0, grid_y=4, grid_width=2, grid_height=3, activity_id="lane")]
    wide = Corridor(id="aisle", type="forklift", start_grid_x=0, start_grid_y=5, end_grid_x=19, end_grid_y=5, width=2)
    factor = score(zones, lane_activity, corridors=[wide]).factor("path_clearance")
    assert factor.score == 15
    assert factor.flags == []
    assert factor.display == "All paths are clear"


def test_buffer_capacity_undersized_lane():
    activities = [
        Activity(id="a", name="Lane A", type="staging-lane"),
        Activity(id="b", name="Lane B", type="staging-lane"),
    ]
    zones = [
        Zone(id="za", name="Small", grid_x=0, grid_y=0, grid_width=1, grid_height=1, activity_id="a"),
        Zone(id="zb", name="Large", grid_x=5, grid_y=5, grid_width=3, grid_height=3, activity_id="b"),
    ]
    volumes = [
        VolumeTiming(id="va", activity_id="a", percentage=50),
        VolumeTiming(id="vb", activity_id="b", percentage=50),
    ]
    factor = score(zones, activities, volumes=volumes).factor("buffer_capacity")
    assert factor.score == 13
    assert factor.details == [
        "⚠ Lane A (Small) is undersized for its volume (10% of space, 50% of volume)"
    ]


def test_buffer_capacity_without_volume_data():
    activities = [Activity(id="a", name="Lane A", type="staging-lane")]
    zones = [Zone(id="za", grid_x=0, grid_y=0, grid_width=1, grid_height=1, activity_id="a")]
    factor = score(zones, activities).factor("buffer_capacity")
    assert factor.score == 15
    assert factor.display == "Buffer capacity is adequate"


def test_safety_factor_carries_rules():
    factor = score().factor("safety")
    assert factor.score == 15
    assert len(factor.safety_rules) == 7
    assert factor.display == "All safety checks passed"


def test_safety_factor_reports_critical_rules():
    work = [Activity(id="w", name="Assembly", type="work-area")]
    zones = [Zone(id="wz", grid_x=5, grid_y=5, grid_width=3, grid_height=3, activity_id="w")]
    factor = score(zones, work).factor("safety")
    assert factor.score == 12
    assert factor.display == "1 critical, 0 warning"
    assert factor.suggestion == "Address critical safety issues first"


def test_sample_layout_scores():
    snapshot = generate_sample_snapshot()
    result = score_snapshot(snapshot)
    assert result.verdict != "Needs work"
    clearance = result.factor("path_clearance")
    assert "path-narrow-corridor-cor-lanes" in [flag.id for flag in clearance.flags]

    dismissed = score_snapshot(snapshot, dismissed_flag_ids={"path-narrow-corridor-cor-lanes"})
    assert dismissed.factor("path_clearance").score == clearance.score + 2
    assert dismissed.total == result.total + 2


def test_closeness_never_improves_as_pair_moves_apart():
    rel = ActivityRelationship(id="r", activity_a_id="w1", activity_b_id="w2", rating="must-be-close")
    scores = []
    for x in range(2, 18):
        zones = [work_zone("a", "w1", 0), work_zone("b", "w2", x)]
        scores.append(score(zones, WORK, [rel]).factor("closeness").score)
    assert scores[0] == 20
    assert scores[-1] == 17
    assert all(later <= earlier for earlier, later in zip(scores, scores[1:]))


def test_narrow_forklift_corridor_alone():
    narrow = Corridor(id="aisle", type="forklift", start_grid_x=0, start_grid_y=5, end_grid_x=19, end_grid_y=5)

    factor = score(corridors=[narrow]).factor("path_clearance")
    assert factor.score == 13
    assert len(factor.flags) == 1
    assert factor.flags[0].severity == "MEDIUM"
    assert factor.flags[0].points_deduction == 2

    dismissed = score(corridors=[narrow], dismissed_flag_ids={"path-narrow-corridor-aisle"}).factor("path_clearance")
    assert dismissed.score == 15
    assert [flag.id for flag in dismissed.flags] == ["path-narrow-corridor-aisle"]
    assert dismissed.flags[0].is_dismissed


def test_factor_scores_clamped_to_their_maximum():
    # bypass validation to feed settings that would overflow the budgets
    settings = ScoringSettings.model_construct(no_exit_door_score=40, unconnected_staging_penalty=-10)
    zones = [work_zone("e", "early", 0, y=0), work_zone("l", "late", 0, y=16)]
    result = score(zones, LANES, scoring_settings=settings)
    assert result.factor("departure_priority").score == 15
    assert result.factor("path_clearance").score == 15
    for factor in result.factors:
        assert 0 <= factor.score <= factor.max_score
    assert result.total <= result.max_total
    assert result.percentage <= 100
