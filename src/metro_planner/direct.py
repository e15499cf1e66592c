"""Single-line routes between two stations."""

from __future__ import annotations

import logging

from .builder import build_route, direct_segment
from .graph import NetworkGraph
from .models import Route

logger = logging.getLogger(__name__)


def find_direct_routes(graph: NetworkGraph, origin_id: str, destination_id: str) -> list[Route]:
    """One route per line serving both stations, riding between them."""
    if origin_id == destination_id:
        return []

    routes = []
    destination_lines = set(graph.lines_of(destination_id))
    for line_id in graph.lines_of(origin_id):
        if line_id not in destination_lines:
            continue
        segment = direct_segment(graph, line_id, origin_id, destination_id)
        if segment is None:
            continue
        routes.append(build_route([segment], requested_origin=origin_id))

    logger.debug("Direct routes %s -> %s: %d", origin_id, destination_id, len(routes))
    return routes
