"""JSON schema helpers for import/export."""

from __future__ import annotations

import csv
import json
from io import StringIO
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .compare import ComparisonReport
from .geometry import cell_key, row_label
from .grid import CellMap
from .models import GridDimensions, LayoutScore, LayoutSnapshot, ScoringSettings

CELL_GLYPHS: Dict[str, str] = {
    "obstacle": "#",
    "door": "D",
    "pedestrian": "p",
    "equipment": "=",
    "staging": "S",
    "work": "W",
    "empty": ".",
}

STATUS_ICONS = {"good": "✅", "warning": "⚠️", "critical": "❌"}


def snapshot_schema() -> Dict[str, Any]:
    return LayoutSnapshot.model_json_schema()


def score_schema() -> Dict[str, Any]:
    return LayoutScore.model_json_schema()


def parse_snapshot(data: Dict[str, Any]) -> LayoutSnapshot:
    try:
        return LayoutSnapshot.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Layout snapshot invalid: {exc}") from exc


def load_snapshot(path: Path | str) -> LayoutSnapshot:
    data = json.loads(Path(path).read_text())
    return parse_snapshot(data)


def save_snapshot(snapshot: LayoutSnapshot, path: Path | str) -> None:
    Path(path).write_text(snapshot.model_dump_json(indent=2))


def load_scoring_settings(path: Path | str | None) -> Optional[ScoringSettings]:
    if path is None:
        return None
    data = json.loads(Path(path).read_text())
    try:
        return ScoringSettings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Scoring settings invalid: {exc}") from exc


def render_grid(cells: CellMap, grid_dims: GridDimensions) -> str:
    """One glyph per cell, rows labelled A, B, ... like the planner's canvas."""

    width = len(row_label(max(grid_dims.rows - 1, 0)))
    lines: List[str] = []
    for row in range(grid_dims.rows):
        glyphs = "".join(CELL_GLYPHS[cells[cell_key(row, col)].type] for col in range(grid_dims.cols))
        lines.append(f"{row_label(row):>{width}} {glyphs}")
    return "\n".join(lines)


def export_markdown(snapshot: LayoutSnapshot, score: LayoutScore) -> str:
    grid = snapshot.grid_dimensions()
    lines: list[str] = []
    lines.append(f"# {snapshot.name} Layout Score")
    lines.append("")
    lines.append(f"- Facility: {snapshot.facility.facility_width:g} x {snapshot.facility.facility_height:g} ft")
    lines.append(f"- Grid: {grid.rows} rows x {grid.cols} columns at {snapshot.facility.square_size:g} ft")
    lines.append(f"- Zones: {len(snapshot.zones)}, corridors: {len(snapshot.corridors)}, doors: {len(snapshot.doors)}")
    lines.append(f"- Score: {score.total}/{score.max_total} ({score.percentage}%), {score.verdict}")
    lines.append("")
    lines.append("## Factors")
    lines.append("| Factor | Score | Summary |")
    lines.append("| --- | --- | --- |")
    for factor in score.factors:
        lines.append(f"| {factor.label} | {factor.score}/{factor.max_score} | {factor.display} |")
    lines.append("")

    for factor in score.factors:
        if not (factor.details or factor.flags or factor.safety_rules):
            continue
        lines.append(f"### {factor.label}")
        lines.append(f"_{factor.suggestion}_")
        lines.append("")
        for detail in factor.details:
            lines.append(f"- {detail}")
        for flag in factor.flags or []:
            state = " (dismissed)" if flag.is_dismissed else f" (-{flag.points_deduction})"
            lines.append(f"- **{flag.severity}** {flag.message}{state}: {flag.recommendation}")
        for rule in factor.safety_rules or []:
            icon = STATUS_ICONS.get(rule.status, "")
            where = f" [{', '.join(rule.locations)}]" if rule.locations else ""
            lines.append(f"- {icon} {rule.label} {rule.score}/{rule.max_score}: {rule.message}{where}")
        lines.append("")
    return "\n".join(lines)


def export_csv(score: LayoutScore) -> str:
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["Factor", "Score", "Max", "Display"])
    for factor in score.factors:
        writer.writerow([factor.name, factor.score, factor.max_score, factor.display])
        for rule in factor.safety_rules or []:
            writer.writerow([f"{factor.name}.{rule.name}", rule.score, rule.max_score, rule.message])
    writer.writerow(["total", score.total, score.max_total, f"{score.percentage}% {score.verdict}"])
    return buffer.getvalue()


def export_comparison_markdown(report: ComparisonReport) -> str:
    lines: list[str] = ["# Layout Comparison", "", report.narrative, ""]
    lines.append("| Rank | Layout | Score | Verdict | Zones | Corridors | Zone sq ft | Corridor sq ft | Travel ft |")
    lines.append("| --- | --- | --- | --- | --- | --- | --- | --- | --- |")
    for layout in report.layouts:
        lines.append(
            f"| {layout.rank} | {layout.name} | {layout.score.percentage}% | {layout.score.verdict} "
            f"| {layout.zone_count} | {layout.corridor_count} | {layout.zone_sq_ft:,.0f} "
            f"| {layout.corridor_sq_ft:,.0f} | {layout.material_travel_ft:,} |"
        )
    lines.append("")
    lines.append("## Factor winners")
    for winner in report.factor_winners:
        lines.append(f"- {winner.label}: {winner.winner} ({winner.score}/{winner.max_score})")
    if report.findings:
        lines.append("")
        lines.append("## Key findings")
        for finding in report.findings:
            lines.append(f"- {finding}")
    lines.append("")
    return "\n".join(lines)
