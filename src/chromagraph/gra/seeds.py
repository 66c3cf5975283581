"""
Initial topologies for the automaton.

Each builder clears the store and lays nodes out around ``center``.
"""

import math
import random
from typing import Callable, Dict, Tuple

from chromagraph.gra.graph import GraphStore

SEED_RADIUS = 120.0
PETERSEN_OUTER_RADIUS = 150.0
PETERSEN_INNER_RADIUS = 70.0
RANDOM_SPREAD = 250.0
RANDOM_TARGET_DEGREE = 3
RANDOM_DEGREE_CAP = 4

DEFAULT_SEED = "diatonic"


def _circle_point(center: Tuple[float, float], i: int, n: int, radius: float) -> Tuple[float, float]:
    # Start at 12 o'clock
    angle = (i / n) * math.pi * 2 - math.pi / 2
    return center[0] + math.cos(angle) * radius, center[1] + math.sin(angle) * radius


def complete_graph(store: GraphStore, n: int, center: Tuple[float, float]):
    """K_n on a circle, states alternating 1, 0, 1, ..."""
    store.clear()
    for i in range(n):
        x, y = _circle_point(center, i, n, SEED_RADIUS)
        store.add_node(x, y, state=(i + 1) % 2)
    for i in range(n):
        for j in range(i + 1, n):
            store.connect(i, j)


def ring(store: GraphStore, n: int, center: Tuple[float, float]):
    """n-cycle, states alternating 1, 0, 1, ..."""
    store.clear()
    for i in range(n):
        x, y = _circle_point(center, i, n, SEED_RADIUS)
        store.add_node(x, y, state=(i + 1) % 2)
    for i in range(n):
        store.connect(i, (i + 1) % n)


def petersen(store: GraphStore, center: Tuple[float, float]):
    """Outer pentagon (alive), inner pentagram (dormant), five spokes."""
    store.clear()
    for i in range(5):
        x, y = _circle_point(center, i, 5, PETERSEN_OUTER_RADIUS)
        store.add_node(x, y, state=1)
    for i in range(5):
        x, y = _circle_point(center, i, 5, PETERSEN_INNER_RADIUS)
        store.add_node(x, y, state=0)

    for i in range(5):
        store.connect(i, (i + 1) % 5)
    for i in range(5):
        store.connect(i, i + 5)
    for i in range(5):
        store.connect(i + 5, (i + 2) % 5 + 5)


def random_regular(store: GraphStore, center: Tuple[float, float], rng: random.Random, n: int = 12):
    """
    Near-3-regular random graph.

    Every node is topped up to degree 3 with partners whose degree is still
    under 4. Late nodes can run out of eligible partners, so attempts are
    bounded and such nodes keep a lower degree.
    """
    store.clear()
    for _ in range(n):
        store.add_node(
            center[0] + (rng.random() - 0.5) * RANDOM_SPREAD,
            center[1] + (rng.random() - 0.5) * RANDOM_SPREAD,
            state=1 if rng.random() > 0.5 else 0,
        )

    max_attempts = n * 20
    for i in range(n):
        attempts = 0
        while len(store[i].neighbors) < RANDOM_TARGET_DEGREE and attempts < max_attempts:
            attempts += 1
            j = rng.randrange(n)
            if j != i and not store.has_edge(i, j) and len(store[j].neighbors) < RANDOM_DEGREE_CAP:
                store.connect(i, j)


def builders(center: Tuple[float, float], rng: random.Random) -> Dict[str, Callable[[GraphStore], None]]:
    """Seed kind -> builder for the given layout center."""
    return {
        "triangle": lambda s: complete_graph(s, 3, center),
        "square": lambda s: complete_graph(s, 4, center),
        "pentagon": lambda s: complete_graph(s, 5, center),
        "diatonic": lambda s: complete_graph(s, 7, center),
        "ring6": lambda s: ring(s, 6, center),
        "ring8": lambda s: ring(s, 8, center),
        "petersen": lambda s: petersen(s, center),
        "random": lambda s: random_regular(s, center, rng),
    }


SEED_KINDS = ("triangle", "square", "pentagon", "diatonic", "ring6", "ring8", "petersen", "random")
