"""Side-by-side comparison of two or more layouts."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from .models import LayoutScore, LayoutSnapshot, ScoringSettings
from .routing import calculate_material_travel
from .scoring import score_snapshot

logger = logging.getLogger(__name__)


class LayoutSummary(BaseModel):
    id: str
    name: str
    rank: int
    score: LayoutScore
    zone_count: int
    corridor_count: int
    zone_sq_ft: float
    corridor_sq_ft: float
    material_travel_ft: int


class FactorWinner(BaseModel):
    name: str
    label: str
    winner: str
    score: int
    max_score: int


class ComparisonReport(BaseModel):
    layouts: List[LayoutSummary]
    narrative: str
    factor_winners: List[FactorWinner] = Field(default_factory=list)
    findings: List[str] = Field(default_factory=list)


def summarize_layout(snapshot: LayoutSnapshot, scoring_settings: Optional[ScoringSettings] = None) -> LayoutSummary:
    square_sq_ft = snapshot.facility.square_size ** 2
    return LayoutSummary(
        id=snapshot.id,
        name=snapshot.name,
        rank=0,
        score=score_snapshot(snapshot, scoring_settings),
        zone_count=sum(1 for zone in snapshot.zones if zone.activity_id),
        corridor_count=len(snapshot.corridors),
        zone_sq_ft=sum(zone.area for zone in snapshot.zones) * square_sq_ft,
        corridor_sq_ft=sum(corridor.footprint for corridor in snapshot.corridors) * square_sq_ft,
        material_travel_ft=calculate_material_travel(snapshot).travel_ft,
    )


def _narrative(first: LayoutSummary, second: LayoutSummary) -> str:
    lead = first.score.percentage - second.score.percentage
    a, b = first.score.percentage, second.score.percentage
    if lead == 0:
        return (
            f"{first.name} and {second.name} are tied at {a}%. "
            "Review the factor breakdown to decide which layout best serves your operational priorities."
        )
    if lead <= 5:
        points = "point" if lead == 1 else "points"
        return (
            f"{first.name} leads by {lead} {points} ({a}% vs. {b}%). The layouts are closely matched; "
            "the deciding factor is which trade-offs align with your priorities."
        )
    if lead <= 15:
        return (
            f"{first.name} outperforms the next layout by {lead} points ({a}% vs. {b}%). "
            "This is a meaningful gap that will affect daily operations."
        )
    return f"{first.name} is the clear frontrunner at {a}%, leading by {lead} points. The performance gap is significant."


def _travel_finding(layouts: Sequence[LayoutSummary]) -> Optional[str]:
    if not any(layout.material_travel_ft > 0 for layout in layouts):
        return None
    ordered = sorted(layouts, key=lambda layout: layout.material_travel_ft)
    shortest, longest = ordered[0], ordered[-1]
    if shortest.material_travel_ft == longest.material_travel_ft:
        return None
    saved = longest.material_travel_ft - shortest.material_travel_ft
    reduction = int(saved / longest.material_travel_ft * 100 + 0.5)
    return (
        f"Material travel distance: {shortest.name} has the shortest weighted path at "
        f"{shortest.material_travel_ft:,} ft vs. {longest.name} at {longest.material_travel_ft:,} ft, "
        f"a {reduction}% reduction ({saved:,} ft shorter)."
    )


def compare_layouts(
    snapshots: Sequence[LayoutSnapshot],
    scoring_settings: Optional[ScoringSettings] = None,
) -> ComparisonReport:
    """Score every layout and rank them by percentage, best first.

    Ties keep input order. Raises ``ValueError`` for fewer than two layouts.
    """

    if len(snapshots) < 2:
        raise ValueError("Need at least 2 layouts to compare")

    summaries = [summarize_layout(snapshot, scoring_settings) for snapshot in snapshots]
    summaries.sort(key=lambda summary: -summary.score.percentage)
    for rank, summary in enumerate(summaries, start=1):
        summary.rank = rank

    winners: List[FactorWinner] = []
    findings: List[str] = []
    for index, factor in enumerate(summaries[0].score.factors):
        scored = [(summary, summary.score.factors[index]) for summary in summaries]
        top_summary, top = scored[0]
        for summary, candidate in scored[1:]:
            if candidate.score > top.score:
                top_summary, top = summary, candidate
        winners.append(
            FactorWinner(name=factor.name, label=factor.label, winner=top_summary.name, score=top.score, max_score=top.max_score)
        )

        low_summary, low = min(scored, key=lambda pair: pair[1].score)
        if top.score - low.score > 0:
            findings.append(
                f"{factor.label.split(':')[0]}: {top_summary.name} scores {top.score}/{top.max_score} "
                f"vs. {low_summary.name} at {low.score}/{low.max_score}. {top.display.rstrip('.')}."
            )

    travel = _travel_finding(summaries)
    if travel:
        findings.append(travel)

    logger.info(
        "Compared %d layouts; best is %s at %d%%",
        len(summaries),
        summaries[0].name,
        summaries[0].score.percentage,
    )
    return ComparisonReport(
        layouts=summaries,
        narrative=_narrative(summaries[0], summaries[1]),
        factor_winners=winners,
        findings=findings,
    )
