"""Tests for the end-to-end planning pipeline."""

from dataclasses import replace

import pytest

from metro_planner.builder import build_route, build_transit_segment
from metro_planner.cache import GraphCache
from metro_planner.models import ErrorCode, RoutingError, SegmentKind
from metro_planner.planner import RoutePlanner, apply_transfer_gate
from metro_planner.pruning import preserved_routes
from metro_planner.graph import build_graph
from metro_planner.stations import DEFAULT_NETWORK


@pytest.fixture
def planner(grid_graph):
    return RoutePlanner(graph=grid_graph, search_timeout=None)


def test_same_station(planner):
    result = planner.plan_routes("a1", "a1")
    assert isinstance(result, RoutingError)
    assert result.code is ErrorCode.SAME_STATION
    assert result.message == "Origin and destination are the same station"


def test_unknown_station(planner):
    result = planner.plan_routes("a1", "nowhere")
    assert isinstance(result, RoutingError)
    assert result.code is ErrorCode.INVALID_STATION
    assert result.message == "Invalid station ID provided"


def test_two_transfer_trip(planner):
    """Routes start at the origin, end at the destination and are sorted by duration."""
    routes = planner.plan_routes("a1", "c3")
    assert routes
    assert len(routes) <= 5
    assert routes[0].line_ids == ["A", "B", "C"]
    for route in routes:
        assert route.first_station.id == "a1"
        assert route.last_station.id == "c3"
        assert route.requested_origin == "a1"
        assert route.transfers == len(route.segments) - 1
    durations = [r.total_duration for r in routes]
    assert durations == sorted(durations)


def test_direct_trip_prefers_single_line(planner):
    routes = planner.plan_routes("a1", "a5")
    assert routes[0].line_ids == ["A"]
    assert all(r.transfers == 0 for r in routes)


def test_short_walk_replaces_transit(walk_graph):
    """Stations a short walk apart get just the walk."""
    routes = RoutePlanner(graph=walk_graph, search_timeout=None).plan_routes("a1", "e1")
    assert len(routes) == 1
    assert [s.kind for s in routes[0].segments] == [SegmentKind.WALK]
    assert routes[0].requested_origin == "a1"


def test_walking_transfer_trip(walk_graph):
    routes = RoutePlanner(graph=walk_graph, search_timeout=None).plan_routes("a1", "d3")
    assert len(routes) == 1
    assert routes[0].line_ids == ["A", "D"]


def test_planning_is_repeatable(planner):
    first = planner.plan_routes("a1", "c3")
    second = planner.plan_routes("a1", "c3")
    assert [r.station_ids for r in first] == [r.station_ids for r in second]
    assert [r.total_duration for r in first] == [r.total_duration for r in second]


def test_transfer_gate(grid_graph):
    """Transfers must beat the best direct ride by at least 15%."""
    direct = replace(build_route([build_transit_segment(grid_graph, "A", ["a1", "a3"])], route_id="direct"),
                     total_duration=1000)
    changing = build_route([
        build_transit_segment(grid_graph, "A", ["a1", "a3"]),
        build_transit_segment(grid_graph, "B", ["a3", "b2"]),
    ])
    slightly_faster = replace(changing, id="slight", total_duration=950)
    much_faster = replace(changing, id="much", total_duration=800)

    kept = apply_transfer_gate([direct, slightly_faster, much_faster], 0.15)
    assert [r.id for r in kept] == ["direct", "much"]


def test_transfer_gate_without_direct_route(grid_graph):
    changing = build_route([
        build_transit_segment(grid_graph, "A", ["a1", "a3"]),
        build_transit_segment(grid_graph, "B", ["a3", "b2"]),
    ])
    assert apply_transfer_gate([changing], 0.15) == [changing]


def test_graph_built_through_cache(grid_graph):
    """Without a fixed graph the planner builds one once and reuses it."""
    calls = []

    def builder():
        calls.append(1)
        return grid_graph

    planner = RoutePlanner(cache=GraphCache(), graph_builder=builder, search_timeout=None)
    planner.plan_routes("a1", "a5")
    planner.plan_routes("a1", "b1")
    assert len(calls) == 1


def test_resolve_station(planner):
    assert planner.resolve_station("a3").id == "a3"
    assert planner.resolve_station("B5").id == "b5"
    assert planner.resolve_station("nowhere at all") is None


def test_default_network_trip():
    planner = RoutePlanner(graph=build_graph(DEFAULT_NETWORK), search_timeout=None)
    routes = planner.plan_routes("secretariat", "airport")
    assert routes
    for route in routes:
        assert route.first_station.id == "secretariat"
        assert route.last_station.id == "airport"


def test_selection_keeps_fastest_and_simplest(grid_graph, planner):
    """The fastest route survives selection even when it scores worst."""
    legs = {
        "a": [("A", ["a1", "a2", "a3", "a4", "a5"])],
        "b": [("B", ["b1", "b2", "a3", "b4", "b5"])],
        "c": [("C", ["b5", "c2", "c3"])],
        "ab": [("A", ["a1", "a2", "a3"]), ("B", ["a3", "b2", "b1"])],
        "ab2": [("A", ["a1", "a2", "a3"]), ("B", ["a3", "b4", "b5"])],
        "bc": [("B", ["b1", "b2", "a3", "b4", "b5"]), ("C", ["b5", "c2", "c3"])],
        "a2": [("A", ["a1", "a2", "a3"])],
        "fast": [("A", ["a1", "a2", "a3"]), ("B", ["a3", "b4", "b5"]), ("C", ["b5", "c2", "c3"])],
    }
    durations = {"a": 1000, "b": 1010, "c": 1020, "ab": 1030, "ab2": 1040, "bc": 1050, "a2": 1060, "fast": 600}
    candidates = [
        replace(build_route([build_transit_segment(grid_graph, line_id, ids) for line_id, ids in route_legs],
                            route_id=route_id), total_duration=durations[route_id])
        for route_id, route_legs in legs.items()
    ]

    selected = [r.id for r in planner.select(grid_graph, candidates)]
    assert len(selected) == 5
    assert "fast" in selected
    assert "a" in selected
    assert all(r.id in selected for r in preserved_routes(candidates))
