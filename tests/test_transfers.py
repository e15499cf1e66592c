"""Tests for single and multi-transfer route discovery."""

import time

import pytest

from metro_planner.builder import add_dwell, build_route, direct_segment
from metro_planner.graph import NetworkGraph
from metro_planner.multi_transfer import (
    PathStep,
    find_multi_transfer_routes,
    find_network_paths,
    has_unnecessary_transfers,
    route_from_path,
)
from metro_planner.stations import MajorInterchange
from metro_planner.transfers import find_single_transfer_routes, find_transfer_routes, transfer_score

from conftest import make_line, make_stations


def test_single_transfer_route(grid_graph):
    """One change at the shared interchange, with the dwell on the second leg."""
    routes = find_single_transfer_routes(grid_graph, "a1", "b1")
    assert len(routes) == 1
    route = routes[0]
    assert route.line_ids == ["A", "B"]
    assert route.transfers == 1
    assert route.segments[0].stations[-1].id == "a3"

    plain = direct_segment(grid_graph, "B", "a3", "b1")
    dwell = grid_graph.tuning.movement.interchange_dwell_seconds
    assert route.segments[1].duration == pytest.approx(plain.duration + dwell)


def test_single_transfer_respects_threshold(grid_graph):
    """Routes not faster than the threshold are dropped."""
    assert find_single_transfer_routes(grid_graph, "a1", "b1", duration_threshold=1) == []


def test_major_interchange_preferred(major_graph):
    """A curated interchange wins over another station with the same travel time."""
    routes = find_single_transfer_routes(major_graph, "x0", "y1")
    assert len(routes) == 1
    assert routes[0].segments[0].stations[-1].id == "m"


def test_transfer_score_rewards_major(major_graph):
    dwell = major_graph.tuning.movement.interchange_dwell_seconds

    def via(station_id):
        first = direct_segment(major_graph, "X", "x0", station_id)
        second = direct_segment(major_graph, "Y", station_id, "y1")
        return build_route([first, add_dwell(second, dwell)])

    assert (transfer_score(major_graph, via("m"), "x0", "m", "y1")
            < transfer_score(major_graph, via("k"), "x0", "k", "y1"))


def test_multi_transfer_route(grid_graph):
    """Two changes are found when no single change connects the stations."""
    routes = find_multi_transfer_routes(grid_graph, "a1", "c3")
    assert routes
    assert any(r.line_ids == ["A", "B", "C"] for r in routes)
    for route in routes:
        assert route.first_station.id == "a1"
        assert route.last_station.id == "c3"
        assert route.transfers == len(route.segments) - 1


def test_multi_transfer_respects_limit(grid_graph):
    assert find_multi_transfer_routes(grid_graph, "a1", "c3", max_transfers=1) == []


def test_multi_transfer_stops_at_deadline(grid_graph):
    """An expired deadline ends the search before any route is found."""
    assert find_multi_transfer_routes(grid_graph, "a1", "c3", deadline=time.monotonic() - 1) == []


def test_find_transfer_routes_falls_back_to_multi(grid_graph):
    routes = find_transfer_routes(grid_graph, "a1", "c3")
    assert any(r.transfers == 2 for r in routes)


def test_network_paths(grid_graph):
    paths = find_network_paths(grid_graph, ["A"], ["C"])
    assert paths.min_transfers == 2
    assert ("A", "B", "C") in paths.paths
    assert paths.contains_line("B")


def test_returning_to_a_used_line_is_unnecessary():
    path = [
        PathStep("a1", "A", False),
        PathStep("a3", "A", False),
        PathStep("a3", "B", True),
        PathStep("b5", "B", False),
        PathStep("b5", "A", True),
    ]
    assert has_unnecessary_transfers(path)


def test_consecutive_transfers_at_one_station_are_unnecessary():
    path = [
        PathStep("a1", "A", False),
        PathStep("a3", "A", False),
        PathStep("a3", "B", True),
        PathStep("a3", "C", True),
    ]
    assert has_unnecessary_transfers(path)


def test_plain_transfer_is_necessary(grid_graph):
    path = [
        PathStep("a1", "A", False),
        PathStep("a2", "A", False),
        PathStep("a3", "A", False),
        PathStep("a3", "B", True),
        PathStep("b2", "B", False),
    ]
    assert not has_unnecessary_transfers(path, grid_graph, "b2")


def test_transfer_to_wrong_line_is_unnecessary():
    """Changing to a line that misses the destination while another line here serves it."""
    stations = make_stations(("s", 33.0, 73.0), ("h", 33.0, 73.01), ("t", 33.0, 73.02), ("u", 33.01, 73.01))
    graph = NetworkGraph(stations, [make_line("P", "s", "h"), make_line("Q", "h", "u"), make_line("R", "h", "t")])
    path = [
        PathStep("s", "P", False),
        PathStep("h", "P", False),
        PathStep("h", "Q", True),
        PathStep("u", "Q", False),
    ]
    assert has_unnecessary_transfers(path, graph, "t")
    assert not has_unnecessary_transfers(path, graph, "u")


def test_route_from_path(grid_graph):
    """One segment per line ridden, dwell added after the first."""
    path = [
        PathStep("a1", "A", False),
        PathStep("a2", "A", False),
        PathStep("a3", "A", False),
        PathStep("a3", "B", True),
        PathStep("b2", "B", False),
    ]
    route = route_from_path(grid_graph, path, "a1")
    assert route.line_ids == ["A", "B"]
    assert route.station_ids == ["a1", "a2", "a3", "b2"]
    dwell = grid_graph.tuning.movement.interchange_dwell_seconds
    plain = direct_segment(grid_graph, "B", "a3", "b2")
    assert route.segments[1].duration == pytest.approx(plain.duration + dwell)


def test_major_interchange_beats_faster_auto_interchange():
    """The curated interchange wins even when changing at another station is quicker."""
    stations = make_stations(("x0", 33.00, 73.00), ("k", 33.00, 73.01), ("m", 33.00, 73.012),
                             ("y1", 33.01, 73.01))
    lines = [make_line("X", "x0", "k", "m"), make_line("Y", "m", "k", "y1")]
    graph = NetworkGraph(stations, lines, major_interchanges=[MajorInterchange("m", ("X", "Y"), 8)])

    dwell = graph.tuning.movement.interchange_dwell_seconds

    def via(station_id):
        first = direct_segment(graph, "X", "x0", station_id)
        second = direct_segment(graph, "Y", station_id, "y1")
        return build_route([first, add_dwell(second, dwell)])

    assert via("k").total_duration < via("m").total_duration
    routes = find_single_transfer_routes(graph, "x0", "y1")
    assert len(routes) == 1
    assert routes[0].segments[0].stations[-1].id == "m"


def test_multi_transfer_finds_every_path_to_a_line():
    """Two different ways onto the destination line are both reported."""
    stations = make_stations(("a1", 33.00, 73.00), ("a2", 33.00, 73.01), ("a3", 33.00, 73.02),
                             ("a4", 33.00, 73.03), ("bx", 33.01, 73.02), ("bd", 33.01, 73.04))
    graph = NetworkGraph(stations, [make_line("A", "a1", "a2", "a3", "a4"),
                                    make_line("B", "a2", "bx", "a4", "bd")])
    routes = find_multi_transfer_routes(graph, "a1", "bd", max_transfers=1)
    paths = {tuple(r.station_ids) for r in routes}
    assert ("a1", "a2", "a3", "a4", "bd") in paths
    assert ("a1", "a2", "bx", "a4", "bd") in paths
