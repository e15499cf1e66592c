"""Geographic sanity checks that reject irrational routes."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from .geo import haversine_distance
from .graph import NetworkGraph
from .models import Route

logger = logging.getLogger(__name__)


class RationalityIssue(str, Enum):
    DESTINATION_PASSTHROUGH = "DESTINATION_PASSTHROUGH"
    SIGNIFICANT_BACKTRACKING = "SIGNIFICANT_BACKTRACKING"
    U_TURN_PATTERN = "U_TURN_PATTERN"


ISSUE_WEIGHTS = {
    RationalityIssue.DESTINATION_PASSTHROUGH: 50,
    RationalityIssue.SIGNIFICANT_BACKTRACKING: 40,
    RationalityIssue.U_TURN_PATTERN: 30,
}


@dataclass
class RationalityReport:
    issues: list[RationalityIssue] = field(default_factory=list)

    @property
    def score(self) -> int:
        return min(100, sum(ISSUE_WEIGHTS[i] for i in self.issues))

    @property
    def is_rational(self) -> bool:
        if RationalityIssue.DESTINATION_PASSTHROUGH in self.issues:
            return False
        return len(self.issues) < 2


def passes_through_destination(route: Route, destination_id: str) -> bool:
    """Whether any segment before the last stops at the destination partway through."""
    for segment in route.segments[:-1]:
        if any(s.id == destination_id for s in segment.stations[1:-1]):
            return True
    return False


def backtracks_significantly(graph: NetworkGraph, route: Route, destination_id: str) -> bool:
    """Whether the route moves away from the destination too often or too far."""
    thresholds = graph.tuning.rationality
    destination = graph.stations[destination_id].coordinates
    station_ids = route.station_ids
    if len(station_ids) < 3:
        return False

    last = haversine_distance(graph.stations[station_ids[0]].coordinates, destination)
    steps_back = 0
    distance_back = 0.0
    for sid in station_ids[1:]:
        current = haversine_distance(graph.stations[sid].coordinates, destination)
        if current > last:
            steps_back += 1
            distance_back += current - last
        last = current

    if distance_back > route.total_distance * thresholds.backtrack_distance_ratio:
        return True
    return steps_back / (len(station_ids) - 1) > thresholds.backtrack_step_ratio


def has_u_turn(route: Route) -> bool:
    """Whether any station is visited twice, not counting transfer points."""
    return any(count > 1 for count in Counter(route.station_ids).values())


def analyze_route(graph: NetworkGraph, route: Route, destination_id: str) -> RationalityReport:
    report = RationalityReport()
    if passes_through_destination(route, destination_id):
        report.issues.append(RationalityIssue.DESTINATION_PASSTHROUGH)
    if backtracks_significantly(graph, route, destination_id):
        report.issues.append(RationalityIssue.SIGNIFICANT_BACKTRACKING)
    if has_u_turn(route):
        report.issues.append(RationalityIssue.U_TURN_PATTERN)
    return report


def filter_irrational_routes(graph: NetworkGraph, routes: Sequence[Route], destination_id: str) -> list[Route]:
    """Drop routes passing through the destination or showing two or more issues."""
    kept = []
    for route in routes:
        report = analyze_route(graph, route, destination_id)
        if report.is_rational:
            kept.append(route)
        else:
            logger.debug("Dropping irrational route %s: %s", route.id,
                         [i.value for i in report.issues])
    return kept
