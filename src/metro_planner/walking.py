"""Routes that combine transit with short walks between stations."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .builder import build_route, build_walk_segment
from .comparison import is_near_duplicate
from .direct import find_direct_routes
from .graph import NetworkGraph
from .models import InvalidSegment, Route
from .transfers import find_transfer_routes

logger = logging.getLogger(__name__)


def have_common_lines(graph: NetworkGraph, a: str, b: str) -> bool:
    return bool(set(graph.lines_of(a)) & set(graph.lines_of(b)))


def find_direct_walking_route(graph: NetworkGraph, origin_id: str, destination_id: str) -> Optional[Route]:
    """A walk straight to the destination, if it is within walking distance."""
    if origin_id == destination_id:
        return None
    distance = graph.distance_between(origin_id, destination_id)
    if distance > graph.tuning.movement.max_walking_distance:
        return None
    walk = build_walk_segment(graph, origin_id, destination_id, distance=distance)
    return build_route([walk], requested_origin=origin_id)


def _transit_routes(graph: NetworkGraph, origin_id: str, destination_id: str,
                    deadline: Optional[float]) -> list[Route]:
    return (find_direct_routes(graph, origin_id, destination_id)
            + find_transfer_routes(graph, origin_id, destination_id, deadline=deadline))


def find_initial_walking_routes(
    graph: NetworkGraph,
    origin_id: str,
    destination_id: str,
    existing: Sequence[Route] = (),
    deadline: Optional[float] = None,
) -> list[Route]:
    """Walk to a nearby station on other lines, then ride to the destination."""
    routes: list[Route] = []
    for station, distance in graph.stations_within(origin_id):
        if station.id == destination_id or have_common_lines(graph, origin_id, station.id):
            continue

        walk = build_walk_segment(graph, origin_id, station.id, distance=distance)
        for transit in _transit_routes(graph, station.id, destination_id, deadline):
            if transit.first_station.id != station.id:
                continue
            route = build_route([walk, *transit.segments], requested_origin=origin_id)
            if not is_near_duplicate(route, [*existing, *routes], graph.tuning.limits):
                routes.append(route)

    logger.debug("Initial walking routes %s -> %s: %d", origin_id, destination_id, len(routes))
    return routes


def find_final_walking_routes(
    graph: NetworkGraph,
    origin_id: str,
    destination_id: str,
    existing: Sequence[Route] = (),
    deadline: Optional[float] = None,
) -> list[Route]:
    """Ride to a station near the destination on other lines, then walk."""
    routes: list[Route] = []
    for station, distance in graph.stations_within(destination_id):
        if station.id == origin_id or have_common_lines(graph, destination_id, station.id):
            continue

        walk = build_walk_segment(graph, station.id, destination_id, distance=distance)
        for transit in _transit_routes(graph, origin_id, station.id, deadline):
            if transit.last_station.id != station.id:
                continue
            route = build_route([*transit.segments, walk], requested_origin=origin_id)
            if not is_near_duplicate(route, [*existing, *routes], graph.tuning.limits):
                routes.append(route)

    logger.debug("Final walking routes %s -> %s: %d", origin_id, destination_id, len(routes))
    return routes


def find_walking_transfer_routes(
    graph: NetworkGraph,
    origin_id: str,
    destination_id: str,
    existing: Sequence[Route] = (),
) -> list[Route]:
    """Ride, walk a curated shortcut between two lines, then ride again."""
    routes: list[Route] = []
    shortcuts = sorted(graph.walking_shortcuts, key=lambda s: (-s.priority, s.source, s.target))
    for shortcut in shortcuts:
        if have_common_lines(graph, shortcut.source, shortcut.target):
            continue
        before = find_direct_routes(graph, origin_id, shortcut.source)
        after = find_direct_routes(graph, shortcut.target, destination_id)
        if not before or not after:
            continue

        try:
            walk = build_walk_segment(graph, shortcut.source, shortcut.target,
                                      distance=shortcut.distance, duration=shortcut.duration)
        except InvalidSegment:
            continue
        for first in before:
            for second in after:
                route = build_route([*first.segments, walk, *second.segments], requested_origin=origin_id)
                if not is_near_duplicate(route, [*existing, *routes], graph.tuning.limits):
                    routes.append(route)

    logger.debug("Walking transfer routes %s -> %s: %d", origin_id, destination_id, len(routes))
    return routes


def find_walking_routes(
    graph: NetworkGraph,
    origin_id: str,
    destination_id: str,
    existing: Sequence[Route] = (),
    deadline: Optional[float] = None,
) -> list[Route]:
    """All walk-augmented routes not already represented in existing."""
    routes: list[Route] = []
    direct_walk = find_direct_walking_route(graph, origin_id, destination_id)
    if direct_walk is not None:
        routes.append(direct_walk)

    routes += find_initial_walking_routes(graph, origin_id, destination_id, [*existing, *routes], deadline)
    routes += find_final_walking_routes(graph, origin_id, destination_id, [*existing, *routes], deadline)
    routes += find_walking_transfer_routes(graph, origin_id, destination_id, [*existing, *routes])
    return routes
