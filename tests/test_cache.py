"""Tests for the graph cache."""

from metro_planner.cache import GraphCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_empty_cache_returns_none():
    assert GraphCache(clock=FakeClock()).get() is None


def test_cached_graph_until_expiry(grid_graph):
    clock = FakeClock()
    cache = GraphCache(ttl_seconds=60, clock=clock)
    cache.set(grid_graph)

    clock.now += 59
    assert cache.get() is grid_graph
    clock.now += 1
    assert cache.get() is None


def test_get_or_build_rebuilds_after_expiry(grid_graph, walk_graph):
    clock = FakeClock()
    cache = GraphCache(ttl_seconds=60, clock=clock)
    builds = iter([grid_graph, walk_graph])

    assert cache.get_or_build(lambda: next(builds)) is grid_graph
    assert cache.get_or_build(lambda: next(builds)) is grid_graph
    clock.now += 120
    assert cache.get_or_build(lambda: next(builds)) is walk_graph


def test_invalidate(grid_graph):
    cache = GraphCache(clock=FakeClock())
    cache.set(grid_graph)
    cache.invalidate()
    assert cache.get() is None
