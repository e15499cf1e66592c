"""Small synthetic networks shared by the tests."""

import pytest

from metro_planner.graph import NetworkGraph
from metro_planner.stations import MajorInterchange, Station, TransitLine, WalkingShortcutSpec


def make_stations(*rows):
    return {sid: Station(id=sid, name=sid.upper(), latitude=lat, longitude=lng) for sid, lat, lng in rows}


def make_line(line_id, *station_ids, fare=30.0, quality=None):
    return TransitLine(id=line_id, name=f"Line {line_id}", color="#000000",
                       station_ids=tuple(station_ids), fare=fare, quality=quality)


@pytest.fixture
def grid_graph():
    """Three lines: A east-west, B north-south crossing A at a3, C east from b5.

    Stations are about 1 km apart, so no two stations are within walking range.
    """
    stations = make_stations(
        ("a1", 33.00, 73.00), ("a2", 33.00, 73.01), ("a3", 33.00, 73.02),
        ("a4", 33.00, 73.03), ("a5", 33.00, 73.04),
        ("b1", 33.02, 73.02), ("b2", 33.01, 73.02), ("b4", 32.99, 73.02), ("b5", 32.98, 73.02),
        ("c2", 32.98, 73.03), ("c3", 32.98, 73.04),
    )
    lines = [
        make_line("A", "a1", "a2", "a3", "a4", "a5"),
        make_line("B", "b1", "b2", "a3", "b4", "b5"),
        make_line("C", "b5", "c2", "c3"),
    ]
    return NetworkGraph(stations, lines)


@pytest.fixture
def walk_graph():
    """Line A plus two unconnected lines reachable only on foot.

    d1 is about 435 m from a5 (joined by a curated shortcut) and e1 is
    about 44 m north of a1.
    """
    stations = make_stations(
        ("a1", 33.00, 73.00), ("a2", 33.00, 73.01), ("a3", 33.00, 73.02),
        ("a4", 33.00, 73.03), ("a5", 33.00, 73.04),
        ("d1", 33.003, 73.043), ("d2", 33.02, 73.043), ("d3", 33.04, 73.043),
        ("e1", 33.0004, 73.00), ("e2", 33.02, 72.99),
    )
    lines = [
        make_line("A", "a1", "a2", "a3", "a4", "a5"),
        make_line("D", "d1", "d2", "d3"),
        make_line("E", "e1", "e2"),
    ]
    shortcuts = [WalkingShortcutSpec("a5", "d1")]
    return NetworkGraph(stations, lines, walking_shortcuts=shortcuts)


@pytest.fixture
def major_graph():
    """Lines X and Y share k and m; m is a curated interchange."""
    stations = make_stations(
        ("x0", 33.00, 73.00), ("k", 33.00, 73.01), ("m", 33.00, 73.02),
        ("y1", 33.01, 73.03),
    )
    lines = [
        make_line("X", "x0", "k", "m"),
        make_line("Y", "k", "m", "y1"),
    ]
    majors = [MajorInterchange("m", ("X", "Y"), 8)]
    return NetworkGraph(stations, lines, major_interchanges=majors)
