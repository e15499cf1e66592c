"""Tests for geographic sanity checks."""

from metro_planner.builder import build_route, build_transit_segment
from metro_planner.rationalizer import (
    RationalityIssue,
    analyze_route,
    backtracks_significantly,
    filter_irrational_routes,
    has_u_turn,
    passes_through_destination,
)


def route_of(graph, *legs):
    return build_route([build_transit_segment(graph, line_id, ids) for line_id, ids in legs])


def test_direct_route_is_rational(grid_graph):
    route = route_of(grid_graph, ("A", ["a1", "a2", "a3", "a4"]))
    report = analyze_route(grid_graph, route, "a4")
    assert report.issues == []
    assert report.is_rational
    assert report.score == 0


def test_passing_through_destination(grid_graph):
    """Riding past the destination and coming back is rejected outright."""
    route = route_of(grid_graph, ("A", ["a1", "a2", "a3", "a4"]), ("A", ["a4", "a3"]))
    assert passes_through_destination(route, "a3")
    report = analyze_route(grid_graph, route, "a3")
    assert RationalityIssue.DESTINATION_PASSTHROUGH in report.issues
    assert not report.is_rational


def test_u_turn(grid_graph):
    route = route_of(grid_graph, ("A", ["a1", "a2", "a3"]), ("B", ["a3", "b2"]), ("B", ["b2", "a3"]))
    assert has_u_turn(route)


def test_transfer_station_is_not_a_u_turn(grid_graph):
    """Changing lines lists the transfer station once."""
    route = route_of(grid_graph, ("A", ["a1", "a2", "a3"]), ("B", ["a3", "b2"]))
    assert not has_u_turn(route)


def test_backtracking(grid_graph):
    """Moving steadily away from the destination is backtracking."""
    route = route_of(grid_graph, ("A", ["a3", "a2", "a1"]))
    assert backtracks_significantly(grid_graph, route, "a5")
    assert not backtracks_significantly(grid_graph, route, "a1")


def test_single_issue_is_tolerated(grid_graph):
    route = route_of(grid_graph, ("A", ["a3", "a2", "a1"]))
    report = analyze_route(grid_graph, route, "a5")
    assert report.issues == [RationalityIssue.SIGNIFICANT_BACKTRACKING]
    assert report.is_rational


def test_filter_irrational_routes(grid_graph):
    good = route_of(grid_graph, ("A", ["a1", "a2", "a3"]))
    bad = route_of(grid_graph, ("A", ["a1", "a2", "a3", "a4"]), ("A", ["a4", "a3"]))
    assert [r.id for r in filter_irrational_routes(grid_graph, [good, bad], "a3")] == [good.id]


def test_starting_at_destination_is_not_a_passthrough(grid_graph):
    """Only stops partway through a segment count as passing the destination."""
    route = route_of(grid_graph, ("B", ["a3", "b4", "b5"]), ("C", ["b5", "c2"]))
    assert not passes_through_destination(route, "a3")
    assert passes_through_destination(route, "b4")
