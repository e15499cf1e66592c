"""Weighted penalty score for routes; lower is better."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from .graph import NetworkGraph
from .models import Route, SegmentKind


@dataclass(frozen=True)
class ScoreBreakdown:
    time: float
    transfers: float
    walking: float
    complexity: float
    stops: float
    origin_penalty: float
    total: float


def time_component(graph: NetworkGraph, route: Route) -> float:
    thresholds = graph.tuning.scoring
    minutes = route.total_duration / 60
    if minutes < thresholds.short_trip_minutes:
        return minutes * thresholds.short_trip_factor
    if minutes > thresholds.long_trip_minutes:
        return math.sqrt(minutes) * thresholds.long_trip_factor
    return minutes


def transfer_component(graph: NetworkGraph, route: Route) -> float:
    """Base cost per transfer, adjusted for how each transfer is made.

    Walking transfers cost more when the walk is long; changes at an
    interchange station get cheaper with the station's importance.
    """
    if route.transfers == 0:
        return 0.0
    thresholds = graph.tuning.scoring

    score = route.transfers * 10.0
    if route.transfers > 1:
        score += (route.transfers - 1) * thresholds.multiple_transfer_penalty * 10

    for current, following in zip(route.segments, route.segments[1:]):
        walk = next((s for s in (current, following) if s.kind is SegmentKind.WALK), None)
        if walk is not None:
            if walk.distance > thresholds.medium_walk:
                score += thresholds.transfer_distance_penalty * 10
            if walk.distance > thresholds.long_walk:
                score += thresholds.transfer_distance_penalty * 15
        else:
            transfer_id = current.stations[-1].id
            if graph.is_interchange(transfer_id):
                score -= graph.interchange_importance(transfer_id) * thresholds.interchange_importance_factor
    return max(0.0, score)


def walking_component(graph: NetworkGraph, route: Route) -> float:
    thresholds = graph.tuning.scoring
    score = route.walking_distance / 100
    for walk in route.walk_segments:
        if walk.distance > thresholds.long_walk:
            score += thresholds.long_walk_penalty * 5
    return score


def complexity_component(graph: NetworkGraph, route: Route) -> float:
    """Mode alternations, distinct lines and time spent on lower-quality lines."""
    thresholds = graph.tuning.scoring
    kinds = [s.kind for s in route.segments]
    score = sum(thresholds.alternation_penalty for a, b in zip(kinds, kinds[1:]) if a is not b)
    score += len(set(route.line_ids)) * thresholds.line_penalty
    for segment in route.transit_segments:
        quality = graph.line_quality(segment.line.id)
        score += (1 - quality) * thresholds.quality_penalty * (segment.duration / 60)
    return score


def stops_component(graph: NetworkGraph, route: Route) -> float:
    return route.total_stops * graph.tuning.scoring.stop_penalty


def score_breakdown(graph: NetworkGraph, route: Route) -> ScoreBreakdown:
    weights = graph.tuning.scoring_weights
    time = time_component(graph, route)
    transfers = transfer_component(graph, route)
    walking = walking_component(graph, route)
    complexity = complexity_component(graph, route)
    stops = stops_component(graph, route)

    origin_penalty = 0.0
    if route.requested_origin and route.first_station.id != route.requested_origin:
        origin_penalty = graph.tuning.scoring.origin_mismatch_penalty

    total = (time * weights.time
             + transfers * weights.transfers
             + walking * weights.walking
             + complexity * weights.complexity
             + stops * weights.stops
             + origin_penalty)
    return ScoreBreakdown(time, transfers, walking, complexity, stops, origin_penalty, total)


def route_score(graph: NetworkGraph, route: Route) -> float:
    return score_breakdown(graph, route).total


def normalized_scores(graph: NetworkGraph, routes: Sequence[Route]) -> dict[str, float]:
    """Scores rescaled to 0-100 within a collection, 100 being the best route."""
    if len(routes) <= 1:
        return {r.id: 100.0 for r in routes}
    scores = {r.id: route_score(graph, r) for r in routes}
    low, high = min(scores.values()), max(scores.values())
    if high == low:
        return {rid: 100.0 for rid in scores}
    return {rid: 100 - (s - low) / (high - low) * 100 for rid, s in scores.items()}


def rank_by_score(graph: NetworkGraph, routes: Sequence[Route]) -> list[Route]:
    """Routes ordered best score first; ties keep their input order."""
    return sorted(routes, key=lambda r: route_score(graph, r))
