"""Breadth-first search for routes with several line changes."""

from __future__ import annotations

import logging
import math
import time
from collections import deque
from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence

from .builder import add_dwell, build_route, build_transit_segment
from .geo import haversine_distance
from .graph import UNREACHABLE, NetworkGraph
from .models import InvalidSegment, Route

logger = logging.getLogger(__name__)


class PathStep(NamedTuple):
    """One step of a search path: being at a station on a line."""
    station_id: str
    line_id: str
    is_transfer: bool


@dataclass(frozen=True)
class NetworkPaths:
    """Line sequences linking origin lines to destination lines."""
    paths: list[tuple[str, ...]]
    min_transfers: int

    def contains_line(self, line_id: str) -> bool:
        return any(line_id in path for path in self.paths)


@dataclass(frozen=True)
class _SearchState:
    station_id: str
    line_id: str
    transfer_count: int
    visited_stations: frozenset
    visited_pairs: frozenset
    path: tuple[PathStep, ...]


def find_network_paths(
    graph: NetworkGraph,
    origin_lines: Sequence[str],
    destination_lines: Sequence[str],
) -> NetworkPaths:
    """Line-level paths from origin to destination lines within one change of optimal."""
    best = UNREACHABLE
    for a in origin_lines:
        for b in destination_lines:
            best = min(best, graph.line_distance(a, b))

    paths: list[tuple[str, ...]] = []
    for origin_line in origin_lines:
        if origin_line in destination_lines:
            paths.append((origin_line,))
            continue
        if best == UNREACHABLE:
            continue

        best_to_line = {origin_line: 0}
        queue = deque([(origin_line, (origin_line,), 0)])
        while queue:
            line_id, path, transfers = queue.popleft()
            if transfers > best + 1:
                continue
            if line_id in destination_lines:
                if transfers <= best:
                    paths.append(path)
                continue

            for next_line in sorted(graph.lines_reachable_with_exactly(line_id, 1)):
                next_transfers = transfers + 1
                if next_transfers > best_to_line.get(next_line, UNREACHABLE):
                    continue
                remaining = min((graph.line_distance(next_line, d) for d in destination_lines),
                                default=UNREACHABLE)
                if remaining == UNREACHABLE or next_transfers + remaining > best + 1:
                    continue
                queue.append((next_line, path + (next_line,), next_transfers))
                best_to_line[next_line] = next_transfers

    if not paths and best != UNREACHABLE:
        for a in origin_lines:
            for b in destination_lines:
                if graph.line_distance(a, b) == best:
                    paths.append((a, b))

    unique = list(dict.fromkeys(paths))
    return NetworkPaths(paths=unique, min_transfers=best)


def has_unnecessary_transfers(
    path: Sequence[PathStep],
    graph: Optional[NetworkGraph] = None,
    destination_id: Optional[str] = None,
) -> bool:
    """Whether a path changes lines without gaining anything.

    A path is rejected when it transfers back onto a line it already rode,
    transfers twice in a row at the same station, or (given a graph) leaves a
    line that misses the destination for another line that also misses it,
    while a third line at that station would have reached it directly.
    """
    if len(path) < 3:
        return False

    used_lines = [path[0].line_id]
    for i in range(1, len(path)):
        step = path[i]
        if not step.is_transfer:
            continue
        if step.line_id in used_lines:
            return True
        if path[i - 1].is_transfer and path[i - 1].station_id == step.station_id:
            return True
        used_lines.append(step.line_id)

    if graph is None:
        return False

    destination = destination_id or path[-1].station_id
    for i, step in enumerate(path):
        if not step.is_transfer:
            continue
        previous_line = path[i - 1].line_id
        if graph.serves(previous_line, destination) or graph.serves(step.line_id, destination):
            continue
        for alternative in graph.lines_of(step.station_id):
            if alternative != step.line_id and graph.serves(alternative, destination):
                return True
    return False


def has_new_reachable_stations(
    graph: NetworkGraph,
    line_id: str,
    station_id: str,
    visited_stations: frozenset,
    destination_id: str,
) -> bool:
    """Whether boarding a line at a station opens up useful new ground."""
    if not graph.serves(line_id, station_id) or destination_id not in graph.stations:
        return False
    if graph.serves(line_id, destination_id):
        return True
    if graph.min_transfers_from_line(line_id, destination_id) <= 2:
        return True
    for major in graph.major_interchanges.values():
        if line_id not in major.lines:
            continue
        for other in major.lines:
            if other != line_id and graph.min_transfers_from_line(other, destination_id) <= 2:
                return True

    # Another line here already runs to the destination within a few stops
    for other in graph.lines_of(station_id):
        if other == line_id or not graph.serves(other, destination_id):
            continue
        stops = abs(graph.line_index(other, destination_id) - graph.line_index(other, station_id))
        if stops <= max(5, math.ceil(len(graph.lines[other].station_ids) / 4)):
            return False

    destination = graph.stations[destination_id].coordinates
    current_distance = haversine_distance(graph.stations[station_id].coordinates, destination)
    has_unvisited = False
    closer = False
    for sid in graph.lines[line_id].station_ids:
        if sid == station_id:
            continue
        if sid not in visited_stations:
            has_unvisited = True
        if haversine_distance(graph.stations[sid].coordinates, destination) < current_distance * 0.9:
            closer = True
        if has_unvisited and closer:
            return True
    return has_unvisited or closer


def route_from_path(graph: NetworkGraph, path: Sequence[PathStep], origin_id: str) -> Optional[Route]:
    """Turn a search path into a route, one segment per line ridden."""
    if len(path) < 2:
        return None

    runs: list[tuple[str, list[str]]] = []
    for step in path:
        if not runs or step.is_transfer:
            runs.append((step.line_id, [step.station_id]))
        elif runs[-1][1][-1] != step.station_id:
            runs[-1][1].append(step.station_id)

    dwell = graph.tuning.movement.interchange_dwell_seconds
    segments = []
    try:
        for i, (line_id, station_ids) in enumerate(runs):
            segment = build_transit_segment(graph, line_id, station_ids)
            segments.append(add_dwell(segment, dwell) if i > 0 else segment)
        return build_route(segments, requested_origin=origin_id)
    except InvalidSegment as e:
        logger.debug("Discarding search path %s: %s", [s.station_id for s in path], e)
        return None


def _transfer_priority(
    graph: NetworkGraph,
    station_id: str,
    next_line: str,
    destination_id: str,
    transfer_count: int,
    network_paths: NetworkPaths,
) -> int:
    """Exploration order of a candidate line at a transfer station; lower goes first."""
    if graph.serves(next_line, destination_id):
        priority = 100 + abs(graph.line_index(next_line, destination_id)
                             - graph.line_index(next_line, station_id))
    else:
        remaining = graph.min_transfers_from_line(next_line, destination_id)
        if remaining == 1:
            priority = 200
        elif remaining == 2:
            priority = 300
        elif remaining == 3:
            priority = 400
        elif remaining != UNREACHABLE:
            priority = 500 + remaining * 50
        else:
            priority = 800

    if graph.is_major_interchange(station_id):
        priority -= 25
    if network_paths.contains_line(next_line):
        priority -= 50

    still_needed = network_paths.min_transfers - (transfer_count + 1)
    if (network_paths.min_transfers != UNREACHABLE and network_paths.min_transfers > 0
            and still_needed >= 0):
        if graph.min_transfers_from_line(next_line, destination_id) == still_needed:
            priority -= 75
    return priority


def find_multi_transfer_routes(
    graph: NetworkGraph,
    origin_id: str,
    destination_id: str,
    max_transfers: Optional[int] = None,
    duration_threshold: Optional[float] = None,
    deadline: Optional[float] = None,
) -> list[Route]:
    """Routes with up to max_transfers line changes, found breadth-first.

    Args:
        max_transfers: Line change limit, never above the configured maximum
        duration_threshold: Drop routes not faster than this many seconds
        deadline: time.monotonic() value after which the search stops early

    Returns:
        Routes in discovery order
    """
    limit = graph.tuning.limits.max_transfers
    max_transfers = limit if max_transfers is None else min(max_transfers, limit)

    origin_lines = graph.lines_of(origin_id)
    destination_lines = graph.lines_of(destination_id)
    if not origin_lines or not destination_lines:
        return []

    network_paths = find_network_paths(graph, origin_lines, destination_lines)
    routes: list[Route] = []
    queue = deque(
        _SearchState(
            station_id=origin_id,
            line_id=line_id,
            transfer_count=0,
            visited_stations=frozenset([origin_id]),
            visited_pairs=frozenset([(origin_id, line_id)]),
            path=(PathStep(origin_id, line_id, False),),
        )
        for line_id in origin_lines
    )

    while queue:
        if deadline is not None and time.monotonic() > deadline:
            logger.warning("Transfer search %s -> %s stopped at its deadline with %d routes",
                           origin_id, destination_id, len(routes))
            break

        state = queue.popleft()

        if state.station_id == destination_id:
            if not has_unnecessary_transfers(state.path, graph):
                route = route_from_path(graph, state.path, origin_id)
                if route and (duration_threshold is None or route.total_duration < duration_threshold):
                    routes.append(route)
            continue

        # Ride on to the neighbouring stations of the current line
        sequence = graph.lines[state.line_id].station_ids
        index = graph.line_index(state.line_id, state.station_id)
        for next_index in (index + 1, index - 1):
            if not 0 <= next_index < len(sequence):
                continue
            next_id = sequence[next_index]
            pair = (next_id, state.line_id)
            if pair in state.visited_pairs:
                continue
            queue.append(_SearchState(
                station_id=next_id,
                line_id=state.line_id,
                transfer_count=state.transfer_count,
                visited_stations=state.visited_stations | {next_id},
                visited_pairs=state.visited_pairs | {pair},
                path=state.path + (PathStep(next_id, state.line_id, False),),
            ))

        if state.transfer_count >= max_transfers or not graph.is_interchange(state.station_id):
            continue

        for next_line in _ranked_transfer_lines(graph, state, destination_id, network_paths):
            new_path = state.path + (PathStep(state.station_id, next_line, True),)
            if has_unnecessary_transfers(new_path, graph, destination_id):
                continue
            queue.append(_SearchState(
                station_id=state.station_id,
                line_id=next_line,
                transfer_count=state.transfer_count + 1,
                visited_stations=state.visited_stations,
                visited_pairs=state.visited_pairs | {(state.station_id, next_line)},
                path=new_path,
            ))

    logger.debug("Multi-transfer routes %s -> %s: %d", origin_id, destination_id, len(routes))
    return routes


def _ranked_transfer_lines(
    graph: NetworkGraph,
    state: _SearchState,
    destination_id: str,
    network_paths: NetworkPaths,
) -> list[str]:
    """Lines worth changing to at the current station, best first."""
    station_id = state.station_id
    major = graph.major_interchanges.get(station_id)
    candidates = []

    for next_line in graph.lines_of(station_id):
        if next_line == state.line_id:
            continue
        on_network_path = network_paths.contains_line(next_line)

        if (station_id, next_line) in state.visited_pairs:
            declared_pair = major is not None and state.line_id in major.lines and next_line in major.lines
            if not (declared_pair or on_network_path):
                continue

        valuable = has_new_reachable_stations(graph, next_line, station_id,
                                              state.visited_stations, destination_id)
        if not valuable and network_paths.min_transfers not in (0, UNREACHABLE):
            valuable = (graph.min_transfers_from_line(next_line, destination_id)
                        < graph.min_transfers_from_line(state.line_id, destination_id))
        if not valuable and major is not None and next_line in major.lines:
            valuable = True
        if not (valuable or on_network_path):
            continue

        reachable = graph.min_transfers_from_line(next_line, destination_id) != UNREACHABLE
        if not (reachable or on_network_path):
            continue

        priority = _transfer_priority(graph, station_id, next_line, destination_id,
                                      state.transfer_count, network_paths)
        candidates.append((priority, next_line))

    candidates.sort()
    return [line_id for _, line_id in candidates]
