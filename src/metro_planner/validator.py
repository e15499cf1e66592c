"""Structural repair of candidate routes."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence

from .builder import build_transit_segment, rebuild_route
from .graph import NetworkGraph
from .models import InvalidSegment, Route, Segment, SegmentKind, TransitSegment

logger = logging.getLogger(__name__)


def _is_transit(segment: Segment) -> bool:
    return segment.kind is SegmentKind.TRANSIT


def remove_invalid_segments(segments: Sequence[Segment]) -> list[Segment]:
    """Drop segments with fewer than two stations or that end where they start."""
    return [s for s in segments
            if len(s.stations) >= 2 and s.stations[0].id != s.stations[-1].id]


def _merge_pair(first: TransitSegment, second: TransitSegment) -> TransitSegment:
    return TransitSegment(
        line=replace(first.line, fare=max(first.fare, second.fare)),
        stations=first.stations + second.stations[1:],
        duration=first.duration + second.duration,
        distance=first.distance + second.distance,
        stop_wait_time=first.stop_wait_time,
    )


def merge_same_line_segments(segments: Sequence[Segment]) -> list[Segment]:
    """Join consecutive rides on one line that meet at the same station."""
    result: list[Segment] = []
    for segment in segments:
        previous = result[-1] if result else None
        if (previous is not None and _is_transit(previous) and _is_transit(segment)
                and previous.line.id == segment.line.id
                and previous.stations[-1].id == segment.stations[0].id):
            result[-1] = _merge_pair(previous, segment)
        else:
            result.append(segment)
    return result


def collapse_pass_throughs(graph: NetworkGraph, segments: Sequence[Segment]) -> list[Segment]:
    """Fold a middle ride back onto the line around it.

    When two rides on the same line are separated by a ride on another line
    that only covers stations of the outer line, in order, the middle ride is
    re-expressed on the outer line so the trip stays on one line.
    """
    result = list(segments)
    for i in range(1, len(result) - 1):
        previous, middle, following = result[i - 1], result[i], result[i + 1]
        if not (_is_transit(previous) and _is_transit(middle) and _is_transit(following)):
            continue
        if previous.line.id != following.line.id or middle.line.id == previous.line.id:
            continue
        if (previous.stations[-1].id != middle.stations[0].id
                or middle.stations[-1].id != following.stations[0].id):
            continue

        middle_ids = [s.id for s in middle.stations]
        if graph.line_slice(previous.line.id, middle_ids[0], middle_ids[-1]) != middle_ids:
            continue
        try:
            result[i] = build_transit_segment(graph, previous.line.id, middle_ids)
        except InvalidSegment:
            continue
    return result


def remove_circular_spans(segments: Sequence[Segment]) -> list[Segment]:
    """Cut out detours that leave a line and come back to the same station on it."""
    result = list(segments)
    changed = True
    while changed:
        changed = False
        for i, first in enumerate(result):
            if not _is_transit(first):
                continue
            for j in range(i + 2, len(result)):
                later = result[j]
                if (_is_transit(later) and later.line.id == first.line.id
                        and later.stations[0].id == first.stations[-1].id):
                    del result[i + 1:j]
                    changed = True
                    break
            if changed:
                break
    return result


def validate_route(graph: NetworkGraph, route: Route) -> Optional[Route]:
    """Repaired copy of a route, or None when nothing valid remains."""
    segments = remove_invalid_segments(route.segments)
    if not segments:
        return None

    segments = merge_same_line_segments(segments)
    segments = collapse_pass_throughs(graph, segments)
    segments = remove_circular_spans(segments)
    segments = merge_same_line_segments(segments)

    if route.requested_origin and segments[0].stations[0].id != route.requested_origin:
        logger.debug("Route %s does not start at %s, rejecting it", route.id, route.requested_origin)
        return None
    return rebuild_route(route, segments)


def validate_routes(graph: NetworkGraph, routes: Sequence[Route]) -> list[Route]:
    validated = []
    for route in routes:
        result = validate_route(graph, route)
        if result is not None:
            validated.append(result)
    return validated
