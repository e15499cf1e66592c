"""Tests for segment and route construction."""

import pytest

from metro_planner.builder import (
    build_route,
    build_transit_segment,
    build_walk_segment,
    direct_segment,
    rebuild_route,
)
from metro_planner.models import InvalidSegment, SegmentKind, route_to_dict


def test_transit_segment_duration(grid_graph):
    """Hop times plus the stop wait at each intermediate station."""
    segment = build_transit_segment(grid_graph, "A", ["a1", "a2", "a3"])
    hops = grid_graph.hop("A", "a1", "a2").duration + grid_graph.hop("A", "a2", "a3").duration
    assert segment.duration == pytest.approx(hops + grid_graph.tuning.movement.stop_wait_seconds)
    assert segment.stops == 2
    assert segment.fare == 30.0
    assert [s.id for s in segment.stations] == ["a1", "a2", "a3"]


def test_transit_segment_rejects_single_station(grid_graph):
    with pytest.raises(InvalidSegment):
        build_transit_segment(grid_graph, "A", ["a1", "a1"])


def test_transit_segment_rejects_loop(grid_graph):
    """A ride may not end where it started."""
    with pytest.raises(InvalidSegment):
        build_transit_segment(grid_graph, "A", ["a1", "a2", "a1"])


def test_transit_segment_rejects_unknown_line(grid_graph):
    with pytest.raises(InvalidSegment):
        build_transit_segment(grid_graph, "Z", ["a1", "a2"])


def test_walk_segment_estimates_time(walk_graph):
    """Walking time follows the walking speed."""
    walk = build_walk_segment(walk_graph, "a5", "d1")
    assert walk.kind is SegmentKind.WALK
    assert 400 < walk.distance < 470
    assert walk.duration == round(walk.distance / walk_graph.tuning.movement.walking_speed_ms)
    assert walk.fare == 0


def test_route_aggregates(walk_graph):
    """Totals come from the segments; transfers count segment boundaries."""
    ride = build_transit_segment(walk_graph, "A", ["a1", "a2", "a3", "a4", "a5"])
    walk = build_walk_segment(walk_graph, "a5", "d1")
    ride2 = build_transit_segment(walk_graph, "D", ["d1", "d2"])
    route = build_route([ride, walk, ride2], requested_origin="a1")

    assert route.transfers == 2
    assert route.total_stops == 5
    assert route.total_duration == pytest.approx(ride.duration + walk.duration + ride2.duration)
    assert route.total_distance == pytest.approx(ride.distance + walk.distance + ride2.distance)
    assert route.total_fare == 60.0
    assert route.walking_distance == walk.distance
    assert route.station_ids == ["a1", "a2", "a3", "a4", "a5", "d1", "d2"]
    assert route.id.startswith("route-")


def test_rebuild_keeps_identity(grid_graph):
    """Rebuilding recomputes totals but keeps id and requested origin."""
    route = build_route([build_transit_segment(grid_graph, "A", ["a1", "a2", "a3"])], requested_origin="a1")
    shorter = rebuild_route(route, [build_transit_segment(grid_graph, "A", ["a1", "a2"])])
    assert shorter.id == route.id
    assert shorter.requested_origin == "a1"
    assert shorter.total_stops == 1


def test_direct_segment_needs_both_stations(grid_graph):
    assert direct_segment(grid_graph, "A", "a1", "b1") is None
    assert direct_segment(grid_graph, "B", "b1", "b5").stops == 4


def test_route_to_dict(grid_graph):
    """Serialized routes use the wire field names."""
    route = build_route([build_transit_segment(grid_graph, "A", ["a1", "a2"])], requested_origin="a1")
    data = route_to_dict(route)
    assert data["transfers"] == 0
    assert data["requestedOrigin"] == "a1"
    assert data["segments"][0]["type"] == "transit"
    assert data["segments"][0]["line"]["id"] == "A"
    assert data["segments"][0]["stations"][0]["coordinates"] == {"lat": 33.0, "lng": 73.0}


def test_describe(walk_graph):
    """Plain-text itinerary with one line per segment."""
    route = build_route([
        build_transit_segment(walk_graph, "A", ["a1", "a2", "a3", "a4", "a5"]),
        build_walk_segment(walk_graph, "a5", "d1"),
    ])
    lines = route.describe().splitlines()
    assert lines[0].startswith("1. Take Line A from A1 to A5 (4 stops")
    assert lines[1].startswith("2. Walk NE from A5 to D1")
    assert "1 transfer(s), fare 30" in lines[-1]
