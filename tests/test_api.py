"""Tests for the HTTP interface."""

import pytest
from fastapi.testclient import TestClient

from metro_planner import api
from metro_planner.database import Database
from metro_planner.planner import RoutePlanner


@pytest.fixture
def client(grid_graph, tmp_path, monkeypatch):
    planner = RoutePlanner(graph=grid_graph, search_timeout=None)
    db = Database(tmp_path / "test.db")
    monkeypatch.setattr(api, "get_planner", lambda: planner)
    monkeypatch.setattr(api, "get_db", lambda: db)
    yield TestClient(api.app)
    db.engine.dispose()


def test_health(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_plan_routes(client):
    response = client.post("/routes", json={"origin": "a1", "destination": "c3"})
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == len(data["routes"]) >= 1
    route = data["routes"][0]
    assert route["requestedOrigin"] == "a1"
    assert route["transfers"] == len(route["segments"]) - 1
    assert route["segments"][0]["stations"][0]["id"] == "a1"


def test_plan_routes_by_name(client):
    response = client.post("/routes", json={"origin": "A1", "destination": "A5"})
    assert response.status_code == 200
    assert response.json()["destination"]["id"] == "a5"


def test_unknown_station(client):
    response = client.post("/routes", json={"origin": "a1", "destination": "nowhere xyz"})
    assert response.status_code == 404


def test_same_station(client):
    response = client.post("/routes", json={"origin": "a1", "destination": "a1"})
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "SAME_STATION"


def test_list_stations_by_line(client):
    response = client.get("/stations", params={"line": "C"})
    assert response.status_code == 200
    assert [s["id"] for s in response.json()["stations"]] == ["b5", "c2", "c3"]


def test_list_lines(client):
    data = client.get("/lines").json()
    assert data["count"] == 3
    assert {line["id"] for line in data["lines"]} == {"A", "B", "C"}


def test_nearest_stations(client):
    data = client.get("/stations/nearest", params={"lat": 33.0001, "lng": 73.0001, "limit": 1}).json()
    assert [s["id"] for s in data["stations"]] == ["a1"]


def test_history_records_searches(client):
    client.post("/routes", json={"origin": "a1", "destination": "a5", "user_id": "u1"})
    data = client.get("/history/u1").json()
    assert [s["destination"] for s in data["recent"]] == ["a5"]
    assert data["popular"][0] == {"origin": "a1", "destination": "a5", "count": 1}
