"""Route similarity helpers: station overlap, near-duplicates and line signatures."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from .models import Route
from .tuning import DEFAULT_TUNING, SearchLimits


def route_station_set(route: Route) -> set[str]:
    return {station.id for segment in route.segments for station in segment.stations}


def station_overlap(a: set[str], b: set[str]) -> float:
    """Shared stations over the size of the larger set."""
    larger = max(len(a), len(b))
    return len(a & b) / larger if larger else 0.0


def line_signature(route: Route) -> str:
    """Sequence of lines ridden, e.g. ``blue->green``."""
    return "->".join(route.line_ids)


def _single_line(route: Route) -> Optional[str]:
    lines = set(route.line_ids)
    return lines.pop() if len(lines) == 1 else None


def is_near_duplicate(route: Route, existing: Iterable[Route],
                      limits: SearchLimits = DEFAULT_TUNING.limits) -> bool:
    """Whether a route closely repeats one already kept.

    Two routes are near-duplicates when their durations are within the
    tolerance of each other and they share most of their stations. Routes
    riding a single line each are never duplicates of one another when the
    lines differ.
    """
    stations = route_station_set(route)
    line = _single_line(route)
    for other in existing:
        other_line = _single_line(other)
        if line and other_line and line != other_line:
            continue
        if abs(route.total_duration - other.total_duration) > limits.duplicate_duration_tolerance * other.total_duration:
            continue
        if station_overlap(stations, route_station_set(other)) > limits.duplicate_overlap:
            return True
    return False


def remove_near_duplicates(routes: Sequence[Route],
                           limits: SearchLimits = DEFAULT_TUNING.limits) -> list[Route]:
    """Keep the first of every group of near-duplicate routes."""
    unique: list[Route] = []
    for route in routes:
        if not is_near_duplicate(route, unique, limits):
            unique.append(route)
    return unique
