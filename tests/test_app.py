import pytest

from app import create_app
from flowgrid.models import ScoringSettings
from flowgrid.sample import generate_sample_snapshot
from flowgrid.store import LayoutStore


@pytest.fixture()
def client():
    store = LayoutStore([generate_sample_snapshot()])
    app = create_app(store=store, scoring_settings=ScoringSettings())
    app.testing = True
    return app.test_client()


@pytest.fixture()
def sample_payload():
    return {"layout": generate_sample_snapshot().model_dump()}


def test_score_endpoint(client, sample_payload):
    response = client.post("/api/score", json=sample_payload)
    assert response.status_code == 200
    data = response.get_json()
    assert data["max_total"] == 115
    assert len(data["factors"]) == 7


def test_score_endpoint_honours_dismissed_flags(client, sample_payload):
    base = client.post("/api/score", json=sample_payload).get_json()
    sample_payload["dismissed_flags"] = ["path-narrow-corridor-cor-lanes"]
    dismissed = client.post("/api/score", json=sample_payload).get_json()
    assert dismissed["total"] == base["total"] + 2


def test_score_endpoint_rejects_bad_layout(client):
    response = client.post("/api/score", json={"layout": {"zones": []}})
    assert response.status_code == 400
    assert "Layout snapshot invalid" in response.get_json()["error"]


def test_classify_endpoint(client, sample_payload):
    data = client.post("/api/classify", json=sample_payload).get_json()
    assert (data["rows"], data["cols"]) == (20, 30)
    assert len(data["cells"]) == 600
    assert data["cells"]["4-10"] == "obstacle"
    assert data["cells"]["19-8"] == "door"
    assert data["cells"]["6-5"] == "pedestrian"


def test_export_and_sizing_endpoints(client, sample_payload):
    export = client.post("/api/export", json=sample_payload).get_json()
    assert export["markdown"].startswith("# Sample cross-dock Layout Score")

    sizing = client.post("/api/sizing", json=sample_payload).get_json()
    assert len(sizing["recommendations"]) == 3
    assert sizing["shortfalls"] == []


def test_layout_crud(client, sample_payload):
    listing = client.get("/api/layouts").get_json()
    assert [row["id"] for row in listing["layouts"]] == ["sample"]

    created = client.post("/api/layouts", json=sample_payload)
    assert created.status_code == 201
    layout_id = created.get_json()["id"]

    assert client.get(f"/api/layouts/{layout_id}").status_code == 200
    score = client.get(f"/api/layouts/{layout_id}/score").get_json()
    assert score["max_total"] == 115

    assert client.delete(f"/api/layouts/{layout_id}").get_json() == {"ok": True}
    assert client.get(f"/api/layouts/{layout_id}").status_code == 404


def test_dismiss_flag_changes_stored_score(client):
    before = client.get("/api/layouts/sample/score").get_json()
    response = client.post("/api/layouts/sample/dismiss", json={"flag_id": "path-narrow-corridor-cor-lanes"})
    assert response.get_json() == {"dismissed_flags": ["path-narrow-corridor-cor-lanes"]}
    after = client.get("/api/layouts/sample/score").get_json()
    assert after["total"] == before["total"] + 2

    restored = client.post("/api/layouts/sample/restore", json={"flag_id": "path-narrow-corridor-cor-lanes"})
    assert restored.get_json() == {"dismissed_flags": []}


def test_dismiss_requires_flag_and_layout(client):
    assert client.post("/api/layouts/sample/dismiss", json={}).status_code == 400
    assert client.post("/api/layouts/missing/dismiss", json={"flag_id": "x"}).status_code == 404


def test_put_replaces_layout(client, sample_payload):
    sample_payload["layout"]["name"] = "Night shift"
    response = client.put("/api/layouts/sample", json=sample_payload)
    assert response.get_json()["name"] == "Night shift"
    assert client.get("/api/layouts/sample").get_json()["name"] == "Night shift"


def test_non_object_body_is_rejected(client, sample_payload):
    response = client.post("/api/score", json=[sample_payload])
    assert response.status_code == 400
    assert response.get_json()["error"] == "request body must be a JSON object"
    assert client.post("/api/layouts/sample/dismiss", json=["flag"]).status_code == 400


def test_dismissed_flags_must_be_a_list(client, sample_payload):
    sample_payload["dismissed_flags"] = "path-narrow-corridor-cor-lanes"
    response = client.post("/api/score", json=sample_payload)
    assert response.status_code == 400
    assert response.get_json()["error"] == "dismissed_flags must be a list"


def test_compare_stored_layouts(client, sample_payload):
    assert client.get("/api/compare").status_code == 400

    sample_payload["layout"]["name"] = "Copy"
    client.post("/api/layouts", json=sample_payload)
    report = client.get("/api/compare").get_json()
    assert [layout["rank"] for layout in report["layouts"]] == [1, 2]
    assert "tied" in report["narrative"]
    assert len(report["factor_winners"]) == 7


def test_route_endpoint(client):
    layout = {
        "facility": {"facility_width": 100, "facility_height": 100},
        "corridors": [
            {"id": "a", "type": "forklift", "start_grid_x": 0, "start_grid_y": 5, "end_grid_x": 10, "end_grid_y": 5},
            {"id": "b", "type": "forklift", "start_grid_x": 10, "start_grid_y": 5, "end_grid_x": 10, "end_grid_y": 19},
        ],
    }
    routed = client.post("/api/route", json={"layout": layout, "from": [5, 0], "to": [19, 10]}).get_json()
    assert routed["routed"] is True
    assert routed["squares"] == 24

    unrouted = client.post("/api/route", json={"layout": layout, "from": [5, 0], "to": [19, 40]}).get_json()
    assert unrouted == {"routed": False, "points": [], "squares": 0}

    assert client.post("/api/route", json={"layout": layout, "from": [5]}).status_code == 400


def test_layout_travel_endpoint(client):
    travel = client.get("/api/layouts/sample/travel").get_json()
    assert travel["travel_ft"] == 260
    assert [leg["kind"] for leg in travel["legs"]] == ["inbound", "process", "outbound"]
    assert client.get("/api/layouts/missing/travel").status_code == 404
