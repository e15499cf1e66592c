"""Post-hoc refinement of walking segments with real street distances."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional, Sequence

import requests

from .builder import build_walk_segment, rebuild_route
from .config import DISTANCE_MATRIX_URL, GOOGLE_MAPS_API_KEY
from .geo import Coordinates
from .graph import NetworkGraph
from .models import Route, SegmentKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WalkingEstimate:
    distance: float  # meters
    duration: float  # seconds


class DistanceMatrixClient:
    """Client for the Google Distance Matrix API in walking mode."""

    def __init__(self, api_key: Optional[str] = GOOGLE_MAPS_API_KEY, url: str = DISTANCE_MATRIX_URL,
                 timeout: float = 10, session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self._cache: dict[tuple[float, float, float, float], tuple[float, WalkingEstimate]] = {}
        self._cache_ttl = 24 * 60 * 60  # seconds

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def walking(self, origin: Coordinates, destination: Coordinates) -> Optional[WalkingEstimate]:
        """Walking distance and time between two points, or None on any failure."""
        if not self.enabled:
            return None

        key = (origin.lat, origin.lng, destination.lat, destination.lng)
        if key in self._cache:
            cached_time, cached = self._cache[key]
            if time.time() - cached_time < self._cache_ttl:
                return cached

        params = {
            "origins": f"{origin.lat},{origin.lng}",
            "destinations": f"{destination.lat},{destination.lng}",
            "mode": "walking",
            "key": self.api_key,
        }
        try:
            response = self.session.get(self.url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            logger.warning("Distance Matrix request failed: %s", e)
            return None
        except ValueError as e:
            logger.warning("Distance Matrix returned invalid JSON: %s", e)
            return None

        try:
            if payload.get("status") != "OK":
                logger.warning("Distance Matrix status %s", payload.get("status"))
                return None
            element = payload["rows"][0]["elements"][0]
            if element.get("status") != "OK":
                logger.warning("Distance Matrix element status %s", element.get("status"))
                return None
            estimate = WalkingEstimate(
                distance=float(element["distance"]["value"]),
                duration=float(element["duration"]["value"]),
            )
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning("Unexpected Distance Matrix payload: %s", e)
            return None

        now = time.time()
        for stale in [k for k, (cached_time, _) in self._cache.items() if now - cached_time >= self._cache_ttl]:
            del self._cache[stale]
        self._cache[key] = (now, estimate)
        return estimate


class WalkingRefiner:
    """Replaces straight-line walks on the top routes with provider estimates."""

    def __init__(self, graph: NetworkGraph, client: DistanceMatrixClient):
        self.graph = graph
        self.client = client

    def refine(self, routes: Sequence[Route], max_routes: Optional[int] = None) -> list[Route]:
        if max_routes is None:
            max_routes = self.graph.tuning.limits.refined_routes
        if not self.client.enabled:
            return list(routes)
        return [self.refine_route(r) if i < max_routes else r for i, r in enumerate(routes)]

    def refine_route(self, route: Route) -> Route:
        if not route.walk_segments:
            return route

        segments = []
        for segment in route.segments:
            if segment.kind is not SegmentKind.WALK:
                segments.append(segment)
                continue
            start, end = segment.stations
            estimate = self.client.walking(start.coordinates, end.coordinates)
            if estimate is None:
                segments.append(segment)
                continue
            segments.append(build_walk_segment(self.graph, start.id, end.id,
                                               distance=estimate.distance, duration=estimate.duration))
        return rebuild_route(route, segments)
