"""Routes that change lines at interchange stations."""

from __future__ import annotations

import logging
from typing import Optional

from .builder import add_dwell, build_route, direct_segment
from .graph import NetworkGraph
from .models import Route
from .multi_transfer import find_multi_transfer_routes

logger = logging.getLogger(__name__)


def transfer_score(graph: NetworkGraph, route: Route, origin_id: str, transfer_id: str,
                   destination_id: str) -> float:
    """Seconds-based ranking of a one-change route; lower is better.

    Starts from the total duration, penalises detours through far-off
    transfer stations and rewards curated interchanges (scaled by their
    priority) and stations served by many lines.
    """
    tuning = graph.tuning.single_transfer
    score = route.total_duration

    direct = graph.distance_between(origin_id, destination_id)
    via = graph.distance_between(origin_id, transfer_id) + graph.distance_between(transfer_id, destination_id)
    detour = via / direct if direct > 0 else 1.0
    if detour > tuning.detour_threshold:
        score += (detour - tuning.detour_threshold) * tuning.detour_penalty

    major = graph.major_interchanges.get(transfer_id)
    if major is not None:
        score -= tuning.major_interchange_bonus + tuning.major_priority_bonus * major.priority

    line_count = len(graph.lines_of(transfer_id))
    if line_count > 2:
        score -= (line_count - 2) * tuning.extra_line_bonus
    return score


def find_single_transfer_routes(
    graph: NetworkGraph,
    origin_id: str,
    destination_id: str,
    duration_threshold: Optional[float] = None,
) -> list[Route]:
    """Best one-change route for every (origin line, destination line) pair."""
    routes = []
    dwell = graph.tuning.movement.interchange_dwell_seconds

    for origin_line in graph.lines_of(origin_id):
        for destination_line in graph.lines_of(destination_id):
            if origin_line == destination_line:
                continue

            options = []
            for transfer_id in graph.transfer_stations(origin_line, destination_line):
                if transfer_id in (origin_id, destination_id):
                    continue
                first = direct_segment(graph, origin_line, origin_id, transfer_id)
                second = direct_segment(graph, destination_line, transfer_id, destination_id)
                if first is None or second is None:
                    continue
                route = build_route([first, add_dwell(second, dwell)], requested_origin=origin_id)
                score = transfer_score(graph, route, origin_id, transfer_id, destination_id)
                options.append((score, transfer_id, route))

            if not options:
                continue
            options.sort(key=lambda x: (x[0], x[1]))
            best = options[0][2]
            if duration_threshold is not None and best.total_duration >= duration_threshold:
                continue
            routes.append(best)

    logger.debug("Single-transfer routes %s -> %s: %d", origin_id, destination_id, len(routes))
    return routes


def find_transfer_routes(
    graph: NetworkGraph,
    origin_id: str,
    destination_id: str,
    max_transfers: Optional[int] = None,
    deadline: Optional[float] = None,
) -> list[Route]:
    """Single-transfer routes, plus multi-transfer ones when allowed or needed."""
    limit = graph.tuning.limits.max_transfers
    max_transfers = limit if max_transfers is None else min(max_transfers, limit)

    routes = find_single_transfer_routes(graph, origin_id, destination_id)
    if max_transfers > 1 or not routes:
        routes += find_multi_transfer_routes(graph, origin_id, destination_id,
                                             max_transfers=max_transfers, deadline=deadline)
    return routes
