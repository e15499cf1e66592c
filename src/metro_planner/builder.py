"""Construction of segments and routes with recomputed aggregates."""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Iterable, Optional, Sequence

from .geo import haversine_distance, transit_time, walking_time
from .graph import NetworkGraph
from .models import InvalidSegment, Route, Segment, SegmentKind, TransitSegment, WalkSegment


def new_route_id() -> str:
    return f"route-{uuid.uuid4().hex[:12]}"


def _dedupe_consecutive(station_ids: Iterable[str]) -> list[str]:
    result: list[str] = []
    for sid in station_ids:
        if not result or result[-1] != sid:
            result.append(sid)
    return result


def build_transit_segment(
    graph: NetworkGraph,
    line_id: str,
    station_ids: Sequence[str],
    extra_duration: float = 0.0,
) -> TransitSegment:
    """Build a ride on a line through the given stations.

    Duration is the sum of hop times plus the stop wait at every intermediate
    station, plus any extra (interchange dwell) time.

    Raises:
        InvalidSegment: fewer than two distinct stations, a loop back to the
            start, or an unknown line or station
    """
    ids = _dedupe_consecutive(station_ids)
    if len(ids) < 2:
        raise InvalidSegment(f"Segment on {line_id} needs at least two stations")
    if ids[0] == ids[-1]:
        raise InvalidSegment(f"Segment on {line_id} starts and ends at {ids[0]}")
    if line_id not in graph.line_refs:
        raise InvalidSegment(f"Unknown line {line_id}")
    unknown = [sid for sid in ids if sid not in graph.stations]
    if unknown:
        raise InvalidSegment(f"Unknown stations {unknown}")

    movement = graph.tuning.movement
    duration = 0.0
    distance = 0.0
    for from_id, to_id in zip(ids, ids[1:]):
        edge = graph.hop(line_id, from_id, to_id)
        if edge:
            duration += edge.duration
            distance += edge.distance
        else:
            hop_distance = graph.distance_between(from_id, to_id)
            duration += transit_time(hop_distance, movement)
            distance += hop_distance

    duration += max(0, len(ids) - 2) * movement.stop_wait_seconds
    return TransitSegment(
        line=graph.line_refs[line_id],
        stations=tuple(graph.stations[sid] for sid in ids),
        duration=duration + extra_duration,
        distance=distance,
        stop_wait_time=movement.stop_wait_seconds,
    )


def build_walk_segment(
    graph: NetworkGraph,
    from_id: str,
    to_id: str,
    distance: Optional[float] = None,
    duration: Optional[float] = None,
) -> WalkSegment:
    """Build a walk, estimating distance and time when not supplied."""
    if from_id == to_id:
        raise InvalidSegment(f"Walk starts and ends at {from_id}")
    if from_id not in graph.stations or to_id not in graph.stations:
        raise InvalidSegment(f"Walk {from_id} -> {to_id} references an unknown station")

    start, end = graph.stations[from_id], graph.stations[to_id]
    if distance is None:
        distance = haversine_distance(start.coordinates, end.coordinates)
    if duration is None:
        duration = walking_time(distance, graph.tuning.movement)
    return WalkSegment(stations=(start, end), distance=distance, duration=duration)


def add_dwell(segment: Segment, seconds: float) -> Segment:
    """Copy of a segment with extra waiting time."""
    return replace(segment, duration=segment.duration + seconds)


def build_route(
    segments: Sequence[Segment],
    route_id: Optional[str] = None,
    requested_origin: Optional[str] = None,
) -> Route:
    """Assemble a route, recomputing every aggregate from its segments."""
    if not segments:
        raise InvalidSegment("A route needs at least one segment")

    return Route(
        id=route_id or new_route_id(),
        segments=tuple(segments),
        total_duration=sum(s.duration for s in segments),
        total_distance=sum(s.distance for s in segments),
        total_stops=sum(len(s.stations) - 1 for s in segments if s.kind is SegmentKind.TRANSIT),
        transfers=len(segments) - 1,
        total_fare=sum(s.fare for s in segments),
        requested_origin=requested_origin,
    )


def rebuild_route(route: Route, segments: Sequence[Segment]) -> Route:
    """New route from replacement segments, keeping identity and requested origin."""
    return build_route(segments, route_id=route.id, requested_origin=route.requested_origin)


def direct_segment(graph: NetworkGraph, line_id: str, from_id: str, to_id: str,
                   extra_duration: float = 0.0) -> Optional[TransitSegment]:
    """Ride on a line between two of its stations, or None if it does not serve both."""
    station_ids = graph.line_slice(line_id, from_id, to_id)
    if station_ids is None:
        return None
    try:
        return build_transit_segment(graph, line_id, station_ids, extra_duration)
    except InvalidSegment:
        return None
