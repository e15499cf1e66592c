"""Metro network graph with line connectivity and spatial lookups."""

from __future__ import annotations

import logging
import math
import sys
from dataclasses import dataclass, replace
from enum import Enum
from itertools import combinations
from typing import Iterable, Optional

from .geo import Coordinates, grid_cell, haversine_distance, transit_time, walking_time
from .models import LineRef
from .network_data import get_network_data
from .stations import MajorInterchange, NetworkData, Station, TransitLine, WalkingShortcutSpec
from .tuning import DEFAULT_TUNING, Tuning

logger = logging.getLogger(__name__)

# Line pairs with no transfer path between them
UNREACHABLE = sys.maxsize


class EdgeKind(str, Enum):
    TRANSIT = "transit"
    WALK = "walk"


@dataclass(frozen=True)
class Edge:
    """Directed connection between two stations."""
    source: str
    target: str
    kind: EdgeKind
    distance: float
    duration: float
    line_id: Optional[str] = None


@dataclass(frozen=True)
class WalkingShortcut:
    """Directed walking connection between two nearby stations."""
    source: str
    target: str
    distance: float
    duration: float
    priority: float


class NetworkGraph:
    """Graph representation of a metro network.

    Built once from network data and never mutated afterwards; a new network
    means a new graph.
    """

    def __init__(
        self,
        stations: dict[str, Station],
        lines: Iterable[TransitLine],
        major_interchanges: Iterable[MajorInterchange] = (),
        walking_shortcuts: Iterable[WalkingShortcutSpec] = (),
        tuning: Tuning = DEFAULT_TUNING,
    ):
        self.tuning = tuning
        self.stations: dict[str, Station] = dict(stations)
        self.lines: dict[str, TransitLine] = {}
        self.line_refs: dict[str, LineRef] = {}
        self.line_positions: dict[str, dict[str, int]] = {}
        self.station_lines: dict[str, tuple[str, ...]] = {sid: () for sid in self.stations}
        self.adjacency: dict[str, list[Edge]] = {sid: [] for sid in self.stations}
        self.major_interchanges: dict[str, MajorInterchange] = {}
        self.interchange_points: tuple[str, ...] = ()
        self.line_connectivity: dict[str, dict[str, int]] = {}
        self.walking_shortcuts: list[WalkingShortcut] = []
        self.spatial_index: dict[tuple[int, int], list[str]] = {}
        self._hops: dict[tuple[str, str, str], Edge] = {}
        self._shortcuts_from: dict[str, list[WalkingShortcut]] = {}

        for line in lines:
            self._add_line(line)
        self._add_major_interchanges(major_interchanges)
        self._mark_interchanges()
        self._build_line_connectivity()
        for spec in walking_shortcuts:
            self._add_walking_shortcut(spec)
        self._build_spatial_index()

        logger.info(
            "Built network graph: %d stations, %d lines, %d interchanges, %d walking shortcuts",
            len(self.stations), len(self.lines), len(self.interchange_points),
            len(self.walking_shortcuts),
        )

    @classmethod
    def from_network(cls, network: NetworkData, tuning: Tuning = DEFAULT_TUNING) -> NetworkGraph:
        return cls(
            network.stations,
            network.lines,
            network.major_interchanges,
            network.walking_shortcuts,
            tuning=tuning,
        )

    def _add_line(self, line: TransitLine):
        """Add hop edges for each consecutive station pair of a line."""
        sequence: list[str] = []
        for sid in line.station_ids:
            if sid not in self.stations:
                logger.warning("Line %s references unknown station %s, skipping it", line.id, sid)
                continue
            if sequence and sequence[-1] == sid:
                continue
            sequence.append(sid)

        if len(sequence) < 2:
            logger.warning("Line %s has fewer than two known stations, skipping it", line.id)
            return

        line = replace(line, station_ids=tuple(sequence))
        self.lines[line.id] = line
        self.line_refs[line.id] = LineRef(id=line.id, name=line.name, color=line.color, fare=line.fare)

        positions: dict[str, int] = {}
        for i, sid in enumerate(sequence):
            positions.setdefault(sid, i)
            if line.id not in self.station_lines[sid]:
                self.station_lines[sid] = self.station_lines[sid] + (line.id,)
        self.line_positions[line.id] = positions

        for from_id, to_id in zip(sequence, sequence[1:]):
            distance = haversine_distance(self.stations[from_id].coordinates,
                                          self.stations[to_id].coordinates)
            duration = transit_time(distance, self.tuning.movement)
            self._add_edge(Edge(from_id, to_id, EdgeKind.TRANSIT, distance, duration, line.id))
            self._add_edge(Edge(to_id, from_id, EdgeKind.TRANSIT, distance, duration, line.id))

    def _add_edge(self, edge: Edge):
        self.adjacency[edge.source].append(edge)
        if edge.kind is EdgeKind.TRANSIT:
            self._hops[(edge.line_id, edge.source, edge.target)] = edge

    def _add_major_interchanges(self, majors: Iterable[MajorInterchange]):
        for major in majors:
            if major.station_id not in self.stations:
                logger.warning("Major interchange %s is not a known station, skipping it",
                               major.station_id)
                continue
            known = tuple(lid for lid in major.lines if lid in self.lines)
            if len(known) < len(major.lines):
                logger.warning("Major interchange %s declares unknown lines %s", major.station_id,
                               sorted(set(major.lines) - set(known)))
            self.major_interchanges[major.station_id] = replace(major, lines=known)

    def _mark_interchanges(self):
        """Flag stations served by two or more lines, plus curated interchanges."""
        points = []
        for sid, station in self.stations.items():
            if len(self.station_lines[sid]) >= 2 or sid in self.major_interchanges:
                self.stations[sid] = replace(station, is_interchange=True)
                points.append(sid)
        self.interchange_points = tuple(points)

    def _build_line_connectivity(self):
        """All-pairs minimum line-change counts (Floyd-Warshall over lines)."""
        line_ids = list(self.lines)
        dist = {a: {b: 0 if a == b else UNREACHABLE for b in line_ids} for a in line_ids}

        for sid in self.interchange_points:
            for a, b in combinations(self.station_lines[sid], 2):
                dist[a][b] = dist[b][a] = 1
        for major in self.major_interchanges.values():
            for a, b in combinations(major.lines, 2):
                if a != b:
                    dist[a][b] = dist[b][a] = 1

        for k in line_ids:
            for i in line_ids:
                if dist[i][k] == UNREACHABLE:
                    continue
                for j in line_ids:
                    if dist[k][j] == UNREACHABLE:
                        continue
                    through = dist[i][k] + dist[k][j]
                    if through < dist[i][j]:
                        dist[i][j] = through
        self.line_connectivity = dist

    def _add_walking_shortcut(self, spec: WalkingShortcutSpec):
        if spec.from_id not in self.stations or spec.to_id not in self.stations:
            logger.warning("Walking shortcut %s -> %s references an unknown station, skipping it",
                           spec.from_id, spec.to_id)
            return
        if spec.from_id == spec.to_id:
            return

        distance = haversine_distance(self.stations[spec.from_id].coordinates,
                                      self.stations[spec.to_id].coordinates)
        max_walk = self.tuning.movement.max_walking_distance
        if distance > max_walk:
            logger.warning("Walking shortcut %s -> %s is %.0f m, longer than %.0f m, skipping it",
                           spec.from_id, spec.to_id, distance, max_walk)
            return

        priority = spec.priority
        if priority is None:
            priority = self.walking_priority(spec.from_id, spec.to_id, distance)
        duration = walking_time(distance, self.tuning.movement)

        for source, target in ((spec.from_id, spec.to_id), (spec.to_id, spec.from_id)):
            shortcut = WalkingShortcut(source, target, distance, duration, priority)
            self.walking_shortcuts.append(shortcut)
            self._shortcuts_from.setdefault(source, []).append(shortcut)
            self._add_edge(Edge(source, target, EdgeKind.WALK, distance, duration))

    def walking_priority(self, from_id: str, to_id: str, distance: float) -> float:
        """How useful a walk between two stations is for connecting lines."""
        max_walk = self.tuning.movement.max_walking_distance
        priority = ((max_walk - distance) / max_walk) ** 2 * 10

        for sid in (from_id, to_id):
            if self.is_interchange(sid):
                priority += 3 + len(self.lines_of(sid))

        from_lines = set(self.lines_of(from_id))
        to_lines = set(self.lines_of(to_id))
        priority += len(from_lines ^ to_lines) * 2

        if from_lines & to_lines and distance < 200:
            priority -= 5

        return max(0, round(priority))

    def _build_spatial_index(self):
        cell_size = self.tuning.movement.grid_cell_size
        for sid, station in self.stations.items():
            self.spatial_index.setdefault(grid_cell(station.coordinates, cell_size), []).append(sid)

    # -- queries ------------------------------------------------------------

    def station(self, station_id: str) -> Optional[Station]:
        return self.stations.get(station_id)

    def lines_of(self, station_id: str) -> tuple[str, ...]:
        return self.station_lines.get(station_id, ())

    def is_interchange(self, station_id: str) -> bool:
        station = self.stations.get(station_id)
        return bool(station and station.is_interchange)

    def is_major_interchange(self, station_id: str) -> bool:
        return station_id in self.major_interchanges

    def interchange_importance(self, station_id: str) -> float:
        major = self.major_interchanges.get(station_id)
        return major.priority if major else self.tuning.default_interchange_importance

    def line_quality(self, line_id: str) -> float:
        line = self.lines.get(line_id)
        if line and line.quality is not None:
            return line.quality
        return self.tuning.default_line_quality

    def hop(self, line_id: str, from_id: str, to_id: str) -> Optional[Edge]:
        return self._hops.get((line_id, from_id, to_id))

    def line_index(self, line_id: str, station_id: str) -> Optional[int]:
        return self.line_positions.get(line_id, {}).get(station_id)

    def serves(self, line_id: str, station_id: str) -> bool:
        return station_id in self.line_positions.get(line_id, {})

    def line_slice(self, line_id: str, from_id: str, to_id: str) -> Optional[list[str]]:
        """Station ids ridden on a line from one station to another, in travel order."""
        start = self.line_index(line_id, from_id)
        end = self.line_index(line_id, to_id)
        if start is None or end is None or start == end:
            return None
        sequence = self.lines[line_id].station_ids
        if start < end:
            return list(sequence[start:end + 1])
        return list(reversed(sequence[end:start + 1]))

    def transfer_stations(self, line_a: str, line_b: str) -> list[str]:
        """Stations served by both lines, in line_a order."""
        if line_a not in self.lines or line_b not in self.lines:
            return []
        return [sid for sid in self.lines[line_a].station_ids
                if self.is_interchange(sid) and self.serves(line_b, sid)]

    def line_distance(self, line_a: str, line_b: str) -> int:
        return self.line_connectivity.get(line_a, {}).get(line_b, UNREACHABLE)

    def min_transfers(self, from_id: str, to_id: str) -> int:
        """Fewest line changes between two stations, UNREACHABLE if none."""
        best = UNREACHABLE
        for a in self.lines_of(from_id):
            for b in self.lines_of(to_id):
                best = min(best, self.line_distance(a, b))
        return best

    def min_transfers_from_line(self, line_id: str, station_id: str) -> int:
        """Fewest line changes from riding a line to reaching a station."""
        best = UNREACHABLE
        for b in self.lines_of(station_id):
            best = min(best, self.line_distance(line_id, b))
        return best

    def lines_reachable_with_exactly(self, line_id: str, transfers: int) -> set[str]:
        return {other for other, d in self.line_connectivity.get(line_id, {}).items()
                if d == transfers}

    def shortcuts_from(self, station_id: str) -> list[WalkingShortcut]:
        return self._shortcuts_from.get(station_id, [])

    def nearest(
        self,
        point: Coordinates,
        k: int = 5,
        max_radius: Optional[float] = None,
    ) -> list[tuple[Station, float]]:
        """Up to k stations within max_radius of a point, closest first."""
        if max_radius is None:
            max_radius = self.tuning.movement.max_walking_distance
        cell_size = self.tuning.movement.grid_cell_size
        cx, cy = grid_cell(point, cell_size)

        # Grid x cells shrink with latitude, so widen the search horizontally
        lat_scale = max(math.cos(math.radians(point.lat)), 0.01)
        reach_x = max(1, math.ceil(max_radius / (cell_size * lat_scale)))
        reach_y = max(1, math.ceil(max_radius / cell_size))

        found = []
        for dx in range(-reach_x, reach_x + 1):
            for dy in range(-reach_y, reach_y + 1):
                for sid in self.spatial_index.get((cx + dx, cy + dy), ()):
                    station = self.stations[sid]
                    distance = haversine_distance(point, station.coordinates)
                    if distance <= max_radius:
                        found.append((station, distance))

        found.sort(key=lambda x: (x[1], x[0].id))
        return found[:k]

    def stations_within(self, station_id: str, radius: Optional[float] = None) -> list[tuple[Station, float]]:
        """Other stations within walking radius of a station, closest first."""
        station = self.stations[station_id]
        nearby = self.nearest(station.coordinates, k=len(self.stations), max_radius=radius)
        return [(s, d) for s, d in nearby if s.id != station_id]

    def distance_between(self, from_id: str, to_id: str) -> float:
        return haversine_distance(self.stations[from_id].coordinates, self.stations[to_id].coordinates)


def build_graph(network: Optional[NetworkData] = None, tuning: Tuning = DEFAULT_TUNING) -> NetworkGraph:
    """Build a graph from network data, loading the configured network by default."""
    if network is None:
        network = get_network_data()
    return NetworkGraph.from_network(network, tuning=tuning)
