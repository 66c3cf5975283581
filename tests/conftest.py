"""Pytest configuration and shared fixtures."""

import pytest

from chromagraph.gra.engine import GRAConfig, GRAEngine
from chromagraph.gra.graph import GraphStore

# Fixed RNG seed so divisions and random seeds are reproducible
TEST_SEED = 1234


@pytest.fixture
def engine() -> GRAEngine:
    """Engine with default tunables and a seeded RNG, no graph yet."""
    return GRAEngine(GRAConfig(), rng=TEST_SEED)


@pytest.fixture
def triangle_engine(engine: GRAEngine) -> GRAEngine:
    """Engine seeded with K3 (states 1, 0, 1)."""
    engine.create_seed("triangle")
    return engine


@pytest.fixture
def store() -> GraphStore:
    return GraphStore()


@pytest.fixture
def assert_sound():
    """
    Check the adjacency invariants of a store.

    Returns:
        Callable taking a GraphStore; fails the test on any violation.
    """
    def check(store: GraphStore):
        problems = store.check_invariants()
        assert not problems, "\n".join(problems)

    return check
