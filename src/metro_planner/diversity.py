"""Greedy selection of a small set of good, mutually different routes."""

from __future__ import annotations

from typing import Sequence

from .comparison import line_signature, route_station_set, station_overlap
from .graph import NetworkGraph
from .models import Route
from .scoring import normalized_scores, route_score


def walk_ratio(route: Route) -> float:
    return route.walking_distance / route.total_distance if route.total_distance > 0 else 0.0


def _line_set_dissimilarity(candidate: Route, selected: Sequence[Route]) -> float:
    lines = set(candidate.line_ids)
    total = 0.0
    for other in selected:
        other_lines = set(other.line_ids)
        union = lines | other_lines
        total += 1 - (len(lines & other_lines) / len(union) if union else 1.0)
    return 100 * total / len(selected)


def diversity_value(graph: NetworkGraph, candidate: Route, selected: Sequence[Route], quality: float) -> float:
    """How much a candidate adds to the selection, on a 0-100 scale."""
    weights = graph.tuning.diversity
    if not selected:
        return quality

    signature = line_signature(candidate)
    if any(line_signature(r) == signature for r in selected):
        return quality * (1 - weights.duplicate_signature_penalty)

    stations = route_station_set(candidate)
    overlap = sum(station_overlap(stations, route_station_set(r)) for r in selected) / len(selected)
    station_diversity = 100 * (1 - overlap)

    line_diversity = _line_set_dissimilarity(candidate, selected)

    duration_gap = sum(abs(candidate.total_duration - r.total_duration) for r in selected) / len(selected)
    duration_diversity = min(100.0, duration_gap / 60 * 20)

    if all(candidate.transfers < r.transfers for r in selected):
        transfer_diversity = weights.fewer_transfers_bonus
    elif all(candidate.transfers != r.transfers for r in selected):
        transfer_diversity = weights.new_transfer_count_bonus
    else:
        transfer_diversity = weights.default_transfer_diversity

    ratio = walk_ratio(candidate)
    walk_diversity = min(100.0, sum(abs(ratio - walk_ratio(r)) * 50 for r in selected) / len(selected))

    return (quality * weights.quality
            + station_diversity * weights.stations
            + line_diversity * weights.lines
            + duration_diversity * weights.duration
            + transfer_diversity * weights.transfers
            + walk_diversity * weights.walk_ratio)


def select_diverse_routes(graph: NetworkGraph, routes: Sequence[Route], max_routes: int = 5,
                          keep: Sequence[Route] = ()) -> list[Route]:
    """Pick up to max_routes routes that differ from each other.

    Seeds with the routes in keep (or, without any, the best-scoring route),
    then adds the most valuable remaining candidate until full.
    """
    if len(routes) <= max_routes:
        return list(routes)

    quality = normalized_scores(graph, routes)
    remaining = sorted(routes, key=lambda r: route_score(graph, r))
    selected = [r for r in remaining if any(r is k for k in keep)][:max_routes]
    remaining = [r for r in remaining if not any(r is s for s in selected)]
    if not selected:
        selected.append(remaining.pop(0))

    while len(selected) < max_routes and remaining:
        best_index = max(
            range(len(remaining)),
            key=lambda i: (diversity_value(graph, remaining[i], selected, quality[remaining[i].id]), -i),
        )
        selected.append(remaining.pop(best_index))
    return selected
