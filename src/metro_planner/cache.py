"""Time-based cache holding the current network graph snapshot."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from .config import GRAPH_CACHE_TTL_SECONDS
from .graph import NetworkGraph

logger = logging.getLogger(__name__)


class GraphCache:
    """Memoizes one graph for a fixed lifetime.

    Graphs are never changed in place: a rebuild produces a whole new graph
    which replaces the old one in a single assignment, so readers always see
    a complete snapshot.
    """

    def __init__(self, ttl_seconds: float = GRAPH_CACHE_TTL_SECONDS,
                 clock: Callable[[], float] = time.time):
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entry: Optional[tuple[float, NetworkGraph]] = None

    def get(self) -> Optional[NetworkGraph]:
        """The cached graph, or None when empty or expired."""
        with self._lock:
            entry = self._entry
        if entry is None:
            return None
        cached_time, graph = entry
        if self._clock() - cached_time >= self._ttl:
            return None
        return graph

    def set(self, graph: NetworkGraph):
        with self._lock:
            self._entry = (self._clock(), graph)

    def invalidate(self):
        with self._lock:
            self._entry = None

    def get_or_build(self, builder: Callable[[], NetworkGraph]) -> NetworkGraph:
        graph = self.get()
        if graph is not None:
            return graph
        logger.info("Graph cache empty or expired, rebuilding the network graph")
        graph = builder()
        self.set(graph)
        return graph
