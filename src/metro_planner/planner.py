"""Route planning pipeline: discovery, repair, filtering and ranking."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Sequence, Union

from .cache import GraphCache
from .comparison import remove_near_duplicates
from .config import SEARCH_TIMEOUT_SECONDS
from .direct import find_direct_routes
from .diversity import select_diverse_routes
from .graph import NetworkGraph, build_graph
from .models import ErrorCode, Route, RoutingError
from .pruning import preserved_routes, prune_routes
from .rationalizer import filter_irrational_routes
from .refiner import DistanceMatrixClient, WalkingRefiner
from .scoring import rank_by_score
from .stations import Station, find_station
from .transfers import find_transfer_routes
from .validator import validate_routes
from .walking import find_direct_walking_route, find_walking_routes

logger = logging.getLogger(__name__)

PlanResult = Union[list[Route], RoutingError]


def apply_transfer_gate(routes: Sequence[Route], improvement: float) -> list[Route]:
    """Drop routes with transfers unless they clearly beat the best direct ride.

    Only applies when some route rides a single transit line without walking;
    a route with transfers then has to be at least ``improvement`` faster
    than the fastest such route.
    """
    direct = [r for r in routes if r.transfers == 0 and r.transit_segments]
    if not direct:
        return list(routes)
    limit = min(r.total_duration for r in direct) * (1 - improvement)
    return [r for r in routes if r.transfers == 0 or r.total_duration <= limit]


class RoutePlanner:
    """Plans ranked routes between two stations of a network."""

    def __init__(
        self,
        graph: Optional[NetworkGraph] = None,
        cache: Optional[GraphCache] = None,
        graph_builder: Callable[[], NetworkGraph] = build_graph,
        distance_client: Optional[DistanceMatrixClient] = None,
        search_timeout: Optional[float] = SEARCH_TIMEOUT_SECONDS,
    ):
        self._graph = graph
        self.cache = cache or GraphCache()
        self.graph_builder = graph_builder
        self.distance_client = distance_client
        self.search_timeout = search_timeout

    @property
    def graph(self) -> NetworkGraph:
        if self._graph is not None:
            return self._graph
        return self.cache.get_or_build(self.graph_builder)

    def resolve_station(self, query: str) -> Optional[Station]:
        """Look a station up by id, alias or name within the current network."""
        graph = self.graph
        station = find_station(query)
        if station is not None and station.id in graph.stations:
            return graph.stations[station.id]
        return find_station(query, graph.stations)

    def plan_routes(self, origin_id: str, destination_id: str) -> PlanResult:
        """Ranked routes from origin to destination, or a RoutingError.

        Returns at most the configured number of routes, sorted by total
        duration, each tagged with the requested origin.
        """
        graph = self.graph
        if origin_id == destination_id:
            return RoutingError(ErrorCode.SAME_STATION, "Origin and destination are the same station")
        if origin_id not in graph.stations or destination_id not in graph.stations:
            return RoutingError(ErrorCode.INVALID_STATION, "Invalid station ID provided")

        limits = graph.tuning.limits
        max_walk = graph.tuning.movement.max_walking_distance
        if graph.distance_between(origin_id, destination_id) <= max_walk * limits.direct_walk_ratio:
            walk = find_direct_walking_route(graph, origin_id, destination_id)
            logger.info("%s and %s are within a short walk, returning the walk only",
                        origin_id, destination_id)
            return self._finish(graph, [walk], origin_id)

        deadline = time.monotonic() + self.search_timeout if self.search_timeout else None
        candidates = self.discover(graph, origin_id, destination_id, deadline)
        logger.info("Discovered %d candidate routes %s -> %s", len(candidates), origin_id, destination_id)

        candidates = validate_routes(graph, candidates)
        candidates = filter_irrational_routes(graph, candidates, destination_id)
        candidates = apply_transfer_gate(candidates, limits.transfer_improvement)
        candidates = remove_near_duplicates(rank_by_score(graph, candidates), limits)
        candidates = self.select(graph, candidates)
        logger.info("Selected %d routes %s -> %s", len(candidates), origin_id, destination_id)
        return self._finish(graph, candidates, origin_id)

    def discover(self, graph: NetworkGraph, origin_id: str, destination_id: str,
                 deadline: Optional[float] = None) -> list[Route]:
        """Every raw candidate: direct rides, transfers and walk combinations."""
        routes = find_direct_routes(graph, origin_id, destination_id)
        routes += find_transfer_routes(graph, origin_id, destination_id, deadline=deadline)
        routes += find_walking_routes(graph, origin_id, destination_id, existing=routes, deadline=deadline)
        return routes

    def select(self, graph: NetworkGraph, candidates: Sequence[Route]) -> list[Route]:
        """Prune, then pick diverse routes, never losing the fastest, least walking or simplest one."""
        limits = graph.tuning.limits
        pruned = prune_routes(graph, candidates, limits.pruning_cap)
        return select_diverse_routes(graph, rank_by_score(graph, pruned), limits.max_routes,
                                     keep=preserved_routes(pruned))

    def _finish(self, graph: NetworkGraph, routes: Sequence[Route], origin_id: str) -> list[Route]:
        routes = [r.with_requested_origin(origin_id) for r in routes]
        routes.sort(key=lambda r: r.total_duration)
        if self.distance_client is not None and self.distance_client.enabled:
            routes = WalkingRefiner(graph, self.distance_client).refine(routes)
            routes.sort(key=lambda r: r.total_duration)
        return routes


_planner: Optional[RoutePlanner] = None


def get_planner() -> RoutePlanner:
    """Get or create the shared planner."""
    global _planner
    if _planner is None:
        _planner = RoutePlanner(distance_client=DistanceMatrixClient())
    return _planner


def plan_routes(origin_id: str, destination_id: str) -> PlanResult:
    return get_planner().plan_routes(origin_id, destination_id)
