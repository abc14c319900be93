import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, jsonify, request

from flowgrid.compare import compare_layouts
from flowgrid.grid import classify_grid_cells
from flowgrid.io_schema import export_markdown, load_scoring_settings, parse_snapshot, render_grid
from flowgrid.models import LayoutSnapshot, ScoringSettings
from flowgrid.routing import calculate_material_travel, polyline_length, route_flow_leg
from flowgrid.sample import generate_sample_snapshot
from flowgrid.scoring import score_snapshot
from flowgrid.sizing import calculate_zone_sizing, compare_zone_sizes
from flowgrid.store import LayoutStore

logger = logging.getLogger(__name__)


def _json_object() -> Dict[str, Any]:
    payload = request.get_json(force=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError("request body must be a JSON object")
    return payload


def _snapshot_from_payload(payload: Dict[str, Any]) -> LayoutSnapshot:
    layout_data = payload.get("layout", payload)
    if not layout_data:
        raise ValueError("layout payload required")
    return parse_snapshot(layout_data)


def _flag_id(payload: Dict[str, Any]) -> str:
    flag_id = str(payload.get("flag_id", "")).strip()
    if not flag_id:
        raise ValueError("flag_id required")
    return flag_id


def _dismissed_flags(payload: Dict[str, Any]) -> Optional[List[str]]:
    dismissed = payload.get("dismissed_flags")
    if dismissed is None:
        return None
    if not isinstance(dismissed, list):
        raise ValueError("dismissed_flags must be a list")
    return [str(flag_id) for flag_id in dismissed]


def _cell(value: Any, name: str) -> Tuple[int, int]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f"{name} must be a [row, col] pair")
    try:
        return int(value[0]), int(value[1])
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a [row, col] pair") from exc


def _classify(snapshot: LayoutSnapshot):
    grid = snapshot.grid_dimensions()
    cells = classify_grid_cells(
        grid,
        snapshot.zones,
        snapshot.corridors,
        snapshot.doors,
        snapshot.painted_map(),
        snapshot.activities,
    )
    return grid, cells


def create_app(
    store: Optional[LayoutStore] = None,
    scoring_settings: Optional[ScoringSettings] = None,
) -> Flask:
    """Build the scoring API around an explicitly owned layout store."""

    app = Flask(__name__)
    if store is None:
        store = LayoutStore([generate_sample_snapshot()])
    if scoring_settings is None:
        scoring_settings = load_scoring_settings(os.environ.get("FLOWGRID_SETTINGS"))

    def _score_payload(snapshot: LayoutSnapshot) -> Dict[str, Any]:
        return score_snapshot(snapshot, scoring_settings).model_dump()

    @app.route("/api/score", methods=["POST"])
    def score_layout():
        try:
            payload = _json_object()
            snapshot = _snapshot_from_payload(payload)
            dismissed = _dismissed_flags(payload)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        if dismissed is not None:
            snapshot = snapshot.model_copy(update={"dismissed_flags": dismissed})
        return jsonify(_score_payload(snapshot))

    @app.route("/api/classify", methods=["POST"])
    def classify_layout():
        try:
            snapshot = _snapshot_from_payload(_json_object())
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        grid, cells = _classify(snapshot)
        return jsonify({
            "rows": grid.rows,
            "cols": grid.cols,
            "cells": {key: cell.type for key, cell in cells.items()},
            "text": render_grid(cells, grid),
        })

    @app.route("/api/export", methods=["POST"])
    def export_layout():
        try:
            snapshot = _snapshot_from_payload(_json_object())
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        score = score_snapshot(snapshot, scoring_settings)
        return jsonify({"markdown": export_markdown(snapshot, score), "score": score.model_dump()})

    @app.route("/api/sizing", methods=["POST"])
    def sizing():
        try:
            snapshot = _snapshot_from_payload(_json_object())
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        recommendations = calculate_zone_sizing(snapshot.activities, snapshot.volume_timing, snapshot.facility)
        shortfalls = compare_zone_sizes(snapshot.zones, recommendations)
        return jsonify({
            "recommendations": [rec.model_dump() for rec in recommendations],
            "shortfalls": [s.model_dump() for s in shortfalls],
        })

    @app.route("/api/layouts", methods=["GET"])
    def list_layouts():
        layouts = [{"id": s.id, "name": s.name, "zones": len(s.zones)} for s in store.list()]
        return jsonify({"layouts": layouts})

    @app.route("/api/layouts", methods=["POST"])
    def create_layout():
        try:
            snapshot = _snapshot_from_payload(_json_object())
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        stored = store.create(snapshot)
        return jsonify(stored.model_dump()), 201

    @app.route("/api/layouts/<layout_id>", methods=["GET"])
    def get_layout(layout_id: str):
        try:
            return jsonify(store.get(layout_id).model_dump())
        except KeyError:
            return jsonify({"error": "Layout not found"}), 404

    @app.route("/api/layouts/<layout_id>", methods=["PUT"])
    def put_layout(layout_id: str):
        try:
            snapshot = _snapshot_from_payload(_json_object())
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        return jsonify(store.put(layout_id, snapshot).model_dump())

    @app.route("/api/layouts/<layout_id>", methods=["DELETE"])
    def delete_layout(layout_id: str):
        try:
            store.delete(layout_id)
        except KeyError:
            return jsonify({"error": "Layout not found"}), 404
        return jsonify({"ok": True})

    @app.route("/api/layouts/<layout_id>/score", methods=["GET"])
    def score_stored_layout(layout_id: str):
        try:
            snapshot = store.get(layout_id)
        except KeyError:
            return jsonify({"error": "Layout not found"}), 404
        return jsonify(_score_payload(snapshot))

    @app.route("/api/layouts/<layout_id>/dismiss", methods=["POST"])
    def dismiss_flag(layout_id: str):
        try:
            flag_id = _flag_id(_json_object())
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        try:
            dismissed = store.dismiss_flag(layout_id, flag_id)
        except KeyError:
            return jsonify({"error": "Layout not found"}), 404
        return jsonify({"dismissed_flags": dismissed})

    @app.route("/api/layouts/<layout_id>/restore", methods=["POST"])
    def restore_flag(layout_id: str):
        try:
            flag_id = _flag_id(_json_object())
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        try:
            dismissed = store.restore_flag(layout_id, flag_id)
        except KeyError:
            return jsonify({"error": "Layout not found"}), 404
        return jsonify({"dismissed_flags": dismissed})

    @app.route("/api/layouts/<layout_id>/travel", methods=["GET"])
    def layout_travel(layout_id: str):
        try:
            snapshot = store.get(layout_id)
        except KeyError:
            return jsonify({"error": "Layout not found"}), 404
        return jsonify(calculate_material_travel(snapshot).model_dump())

    @app.route("/api/compare", methods=["GET"])
    def compare_stored_layouts():
        try:
            report = compare_layouts(store.list(), scoring_settings)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        return jsonify(report.model_dump())

    @app.route("/api/route", methods=["POST"])
    def route_leg():
        try:
            payload = _json_object()
            snapshot = _snapshot_from_payload(payload)
            source = _cell(payload.get("from"), "from")
            target = _cell(payload.get("to"), "to")
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        points = route_flow_leg(source, target, snapshot.corridors)
        if points is None:
            return jsonify({"routed": False, "points": [], "squares": 0})
        return jsonify({"routed": True, "points": [list(p) for p in points], "squares": polyline_length(points)})

    return app


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    create_app().run(host="0.0.0.0", port=5000, debug=True, use_reloader=False)
