"""Command line interface for the flowgrid toolkit."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .compare import compare_layouts
from .grid import classify_grid_cells
from .io_schema import (
    export_comparison_markdown,
    export_csv,
    export_markdown,
    load_scoring_settings,
    load_snapshot,
    render_grid,
    save_snapshot,
    score_schema,
    snapshot_schema,
)
from .routing import calculate_material_travel
from .sample import generate_sample_snapshot
from .scoring import score_snapshot
from .sizing import calculate_zone_sizing, compare_zone_sizes

DEFAULT_SNAPSHOT_PATH = Path("examples/sample_layout.json")

logger = logging.getLogger(__name__)


def _write_output(text: str, out: str | None) -> None:
    if out:
        Path(out).write_text(text)
        logger.info("Wrote %s", out)
    else:
        sys.stdout.write(text if text.endswith("\n") else text + "\n")


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, sort_keys=True)


def cmd_init(args: argparse.Namespace) -> int:
    path = Path(args.out or DEFAULT_SNAPSHOT_PATH)
    if not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    snapshot = generate_sample_snapshot({"name": args.name} if args.name else None)
    save_snapshot(snapshot, path)
    print(f"Wrote sample layout to {path}")
    return 0


def cmd_classify(args: argparse.Namespace) -> int:
    snapshot = load_snapshot(args.input)
    grid = snapshot.grid_dimensions()
    cells = classify_grid_cells(
        grid,
        snapshot.zones,
        snapshot.corridors,
        snapshot.doors,
        snapshot.painted_map(),
        snapshot.activities,
    )
    if args.json:
        _write_output(_dump({key: cell.type for key, cell in cells.items()}), args.out)
    else:
        _write_output(render_grid(cells, grid), args.out)
    return 0


def cmd_score(args: argparse.Namespace) -> int:
    snapshot = load_snapshot(args.input)
    settings = load_scoring_settings(args.settings)
    dismissed = set(snapshot.dismissed_flags) | set(args.dismiss or [])
    score = score_snapshot(snapshot, settings, dismissed)
    print(_dump(score.model_dump()))
    return 1 if score.verdict == "Needs work" else 0


def cmd_export(args: argparse.Namespace) -> int:
    snapshot = load_snapshot(args.input)
    settings = load_scoring_settings(args.settings)
    score = score_snapshot(snapshot, settings)

    if args.format == "md":
        payload = export_markdown(snapshot, score)
    elif args.format == "json":
        payload = _dump({"layout": snapshot.model_dump(), "score": score.model_dump()})
    elif args.format == "csv":
        payload = export_csv(score)
    else:
        raise ValueError(f"Unsupported export format: {args.format}")
    _write_output(payload, args.out)
    return 0


def cmd_sizing(args: argparse.Namespace) -> int:
    snapshot = load_snapshot(args.input)
    recommendations = calculate_zone_sizing(snapshot.activities, snapshot.volume_timing, snapshot.facility)
    shortfalls = compare_zone_sizes(snapshot.zones, recommendations)
    for rec in recommendations:
        print(
            f"{rec.activity_name}: {rec.recommended_squares} squares "
            f"({rec.peak_units:g} units, {rec.floor_area_sq_ft:.0f} sq ft)"
        )
    for shortfall in shortfalls:
        print(
            f"Undersized: {shortfall.activity_name} has {shortfall.placed_squares} squares, "
            f"needs {shortfall.recommended_squares}"
        )
    return 1 if shortfalls else 0


def cmd_compare(args: argparse.Namespace) -> int:
    snapshots = [load_snapshot(path) for path in args.inputs]
    report = compare_layouts(snapshots, load_scoring_settings(args.settings))
    if args.format == "md":
        _write_output(export_comparison_markdown(report), args.out)
    else:
        _write_output(_dump(report.model_dump()), args.out)
    return 0


def cmd_travel(args: argparse.Namespace) -> int:
    snapshot = load_snapshot(args.input)
    travel = calculate_material_travel(snapshot)
    for leg in travel.legs:
        route = "corridors" if leg.via_corridors else "direct"
        print(f"{leg.kind}: {leg.source} -> {leg.target} {leg.squares:.1f} squares ({route})")
    print(f"Total: {travel.total_squares:.1f} squares, {travel.travel_ft} ft")
    return 0


def cmd_schema(args: argparse.Namespace) -> int:
    if args.target == "snapshot":
        data = snapshot_schema()
    elif args.target == "score":
        data = score_schema()
    else:
        raise ValueError("Unknown schema target")
    print(json.dumps(data, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="flowgrid")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command")

    p_init = sub.add_parser("init", help="write a sample layout snapshot")
    p_init.add_argument("--out", default=None)
    p_init.add_argument("--name", default=None)
    p_init.set_defaults(func=cmd_init)

    p_cls = sub.add_parser("classify", help="print the classified grid")
    p_cls.add_argument("--in", dest="input", required=True)
    p_cls.add_argument("--json", action="store_true")
    p_cls.add_argument("--out", default=None)
    p_cls.set_defaults(func=cmd_classify)

    p_score = sub.add_parser("score", help="score a layout")
    p_score.add_argument("--in", dest="input", required=True)
    p_score.add_argument("--settings", default=None)
    p_score.add_argument("--dismiss", action="append", metavar="FLAG_ID")
    p_score.set_defaults(func=cmd_score)

    p_exp = sub.add_parser("export", help="export a scored layout summary")
    p_exp.add_argument("--in", dest="input", required=True)
    p_exp.add_argument("--format", choices=["md", "json", "csv"], required=True)
    p_exp.add_argument("--out", default=None)
    p_exp.add_argument("--settings", default=None)
    p_exp.set_defaults(func=cmd_export)

    p_size = sub.add_parser("sizing", help="recommend zone sizes from peak volumes")
    p_size.add_argument("--in", dest="input", required=True)
    p_size.set_defaults(func=cmd_sizing)

    p_cmp = sub.add_parser("compare", help="rank two or more layouts side by side")
    p_cmp.add_argument("--in", dest="inputs", action="append", required=True)
    p_cmp.add_argument("--format", choices=["md", "json"], default="md")
    p_cmp.add_argument("--settings", default=None)
    p_cmp.add_argument("--out", default=None)
    p_cmp.set_defaults(func=cmd_compare)

    p_travel = sub.add_parser("travel", help="weighted material travel along forklift corridors")
    p_travel.add_argument("--in", dest="input", required=True)
    p_travel.set_defaults(func=cmd_travel)

    p_schema = sub.add_parser("schema", help="print JSON schema")
    p_schema.add_argument("--target", choices=["snapshot", "score"], required=True)
    p_schema.set_defaults(func=cmd_schema)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if not hasattr(args, "func"):
        parser.print_help()
        return 1
    try:
        return int(args.func(args))
    except Exception as exc:  # pragma: no cover - CLI top-level handler
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
