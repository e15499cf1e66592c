"""Reduction of a large candidate set to a capped list of defensible routes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from .graph import NetworkGraph
from .models import Route, SegmentKind

logger = logging.getLogger(__name__)


class RouteIssue(str, Enum):
    EXCESSIVE_DURATION = "EXCESSIVE_DURATION"
    EXCESSIVE_DISTANCE = "EXCESSIVE_DISTANCE"
    EXCESSIVE_WALKING = "EXCESSIVE_WALKING"
    INEFFICIENT_TRANSFERS = "INEFFICIENT_TRANSFERS"
    REDUNDANT_SIMILAR_ROUTE = "REDUNDANT_SIMILAR_ROUTE"
    EXCESSIVE_COMPLEXITY = "EXCESSIVE_COMPLEXITY"
    POOR_QUALITY_LINES = "POOR_QUALITY_LINES"
    UNNECESSARY_TRANSFER = "UNNECESSARY_TRANSFER"
    SELF_LOOP_SEGMENT = "SELF_LOOP_SEGMENT"


@dataclass
class AnalyzedRoute:
    route: Route
    index: int
    efficiency: float
    preserved: bool = False
    issues: list[RouteIssue] = field(default_factory=list)

    def flag(self, issue: RouteIssue):
        if not self.preserved and issue not in self.issues:
            self.issues.append(issue)


def efficiency_score(graph: NetworkGraph, route: Route, min_duration: float,
                     min_distance: float, min_transfers: int) -> float:
    """Weighted ratios against the best route in the set; 1.0 is ideal."""
    weights = graph.tuning.pruning_weights
    duration_ratio = route.total_duration / min_duration if min_duration > 0 else 1.0
    distance_ratio = route.total_distance / min_distance if min_distance > 0 else 1.0
    transfer_ratio = (route.transfers + 1) / (min_transfers + 1)
    return (duration_ratio * weights.duration
            + distance_ratio * weights.distance
            + transfer_ratio * weights.transfers)


def ordered_station_similarity(a: Sequence[str], b: Sequence[str]) -> float:
    """Stations of a found in b in the same order, over the longer length."""
    if not a or not b:
        return 0.0
    matches = 0
    last = -1
    for sid in a:
        for i in range(last + 1, len(b)):
            if b[i] == sid:
                matches += 1
                last = i
                break
    return matches / max(len(a), len(b))


def preserved_routes(routes: Sequence[Route]) -> list[Route]:
    """Routes that always survive pruning and selection.

    The fastest route, the route walking least among those that walk at
    all, and the route with the fewest segments. Ties go to the earlier route.
    """
    if not routes:
        return []
    picks = [min(routes, key=lambda r: r.total_duration)]
    walkers = [r for r in routes if r.walking_distance > 0]
    if walkers:
        picks.append(min(walkers, key=lambda r: r.walking_distance))
    picks.append(min(routes, key=lambda r: len(r.segments)))

    unique: list[Route] = []
    for route in picks:
        if not any(route is u for u in unique):
            unique.append(route)
    return unique


def _average_line_quality(graph: NetworkGraph, route: Route) -> Optional[float]:
    total = 0.0
    weighted = 0.0
    for segment in route.transit_segments:
        total += segment.duration
        weighted += segment.duration * graph.line_quality(segment.line.id)
    return weighted / total if total > 0 else None


class RoutePruner:
    """Flags weak routes and keeps the strongest ones up to a cap."""

    def __init__(self, graph: NetworkGraph):
        self.graph = graph
        self.thresholds = graph.tuning.pruning

    def prune(self, routes: Sequence[Route], max_routes: int = 5) -> list[Route]:
        if len(routes) <= max_routes:
            return list(routes)

        analyzed = self._analyze(routes)
        self._mark_preserved(analyzed)
        self._flag_issues(analyzed)

        ranked = sorted(analyzed, key=lambda ar: (not ar.preserved, len(ar.issues), ar.efficiency, ar.index))
        kept = sorted(ranked[:max_routes], key=lambda ar: ar.index)
        logger.info("Pruned %d routes down to %d", len(routes), len(kept))
        for ar in ranked[max_routes:]:
            logger.debug("Pruned route %s: %s", ar.route.id, [i.value for i in ar.issues])
        return [ar.route for ar in kept]

    def _analyze(self, routes: Sequence[Route]) -> list[AnalyzedRoute]:
        min_duration = min(r.total_duration for r in routes)
        min_distance = min(r.total_distance for r in routes)
        min_transfers = min(r.transfers for r in routes)
        return [
            AnalyzedRoute(route=r, index=i,
                          efficiency=efficiency_score(self.graph, r, min_duration, min_distance, min_transfers))
            for i, r in enumerate(routes)
        ]

    def _mark_preserved(self, analyzed: list[AnalyzedRoute]):
        keep = preserved_routes([ar.route for ar in analyzed])
        for ar in analyzed:
            if any(ar.route is route for route in keep):
                ar.preserved = True

    def _flag_issues(self, analyzed: list[AnalyzedRoute]):
        self._flag_excessive_duration_and_distance(analyzed)
        self._flag_excessive_walking(analyzed)
        self._flag_inefficient_transfers(analyzed)
        self._flag_redundant_routes(analyzed)
        self._flag_structure(analyzed)
        self._flag_poor_quality(analyzed)

    def _flag_excessive_duration_and_distance(self, analyzed: list[AnalyzedRoute]):
        min_duration = min(ar.route.total_duration for ar in analyzed)
        min_distance = min(ar.route.total_distance for ar in analyzed)
        for ar in analyzed:
            if ar.route.total_duration > min_duration * self.thresholds.max_duration_deviation:
                ar.flag(RouteIssue.EXCESSIVE_DURATION)
            if ar.route.total_distance > min_distance * self.thresholds.max_distance_deviation:
                ar.flag(RouteIssue.EXCESSIVE_DISTANCE)

    def _flag_excessive_walking(self, analyzed: list[AnalyzedRoute]):
        walkers = [ar for ar in analyzed if ar.route.walking_distance > 0]
        if len(walkers) < 2:
            return
        least = min(ar.route.walking_distance for ar in walkers)
        for ar in walkers:
            if ar.route.walking_distance > least * self.thresholds.max_walking_detour_ratio:
                ar.flag(RouteIssue.EXCESSIVE_WALKING)

    def _flag_inefficient_transfers(self, analyzed: list[AnalyzedRoute]):
        """Flag transfer-count groups whose fastest route does not beat the group below."""
        groups: dict[int, list[AnalyzedRoute]] = {}
        for ar in analyzed:
            groups.setdefault(ar.route.transfers, []).append(ar)
        counts = sorted(groups)
        for lower, current in zip(counts, counts[1:]):
            fastest_lower = min(ar.route.total_duration for ar in groups[lower])
            fastest_current = min(ar.route.total_duration for ar in groups[current])
            if fastest_current <= 0:
                continue
            if fastest_lower / fastest_current < 1 + self.thresholds.transfer_justification:
                for ar in groups[current]:
                    ar.flag(RouteIssue.INEFFICIENT_TRANSFERS)

    def _flag_redundant_routes(self, analyzed: list[AnalyzedRoute]):
        candidates = [ar for ar in analyzed if not ar.preserved]
        for a in candidates:
            for b in candidates:
                if a is b:
                    continue
                similarity = ordered_station_similarity(a.route.station_ids, b.route.station_ids)
                if similarity > self.thresholds.route_similarity and a.efficiency > b.efficiency:
                    a.flag(RouteIssue.REDUNDANT_SIMILAR_ROUTE)

    def _flag_structure(self, analyzed: list[AnalyzedRoute]):
        for ar in analyzed:
            segments = ar.route.segments
            kinds = [s.kind for s in segments]
            alternations = sum(1 for a, b in zip(kinds, kinds[1:]) if a is not b)
            if alternations > self.thresholds.max_segment_alternations:
                ar.flag(RouteIssue.EXCESSIVE_COMPLEXITY)

            for current, following in zip(segments, segments[1:]):
                if (current.kind is SegmentKind.TRANSIT and following.kind is SegmentKind.TRANSIT
                        and current.line.id == following.line.id
                        and current.stations[-1].id == following.stations[0].id):
                    ar.flag(RouteIssue.UNNECESSARY_TRANSFER)
                    break

            if any(len(s.stations) >= 2 and s.stations[0].id == s.stations[-1].id for s in segments):
                ar.flag(RouteIssue.SELF_LOOP_SEGMENT)

    def _flag_poor_quality(self, analyzed: list[AnalyzedRoute]):
        for ar in analyzed:
            quality = _average_line_quality(self.graph, ar.route)
            if quality is None or quality >= self.thresholds.poor_quality:
                continue
            allowance = ar.route.total_duration * self.thresholds.poor_quality_duration_allowance
            if any(other is not ar and RouteIssue.POOR_QUALITY_LINES not in other.issues
                   and other.route.total_duration <= allowance for other in analyzed):
                ar.flag(RouteIssue.POOR_QUALITY_LINES)


def prune_routes(graph: NetworkGraph, routes: Sequence[Route], max_routes: int = 5) -> list[Route]:
    return RoutePruner(graph).prune(routes, max_routes)
