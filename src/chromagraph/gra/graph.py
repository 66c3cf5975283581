"""
Index-addressed node arena with symmetric adjacency.

All structural mutation (insertion, edge changes, division, removal with
renumbering) lives here so the symmetry and density invariants are enforced
in one place.
"""

import logging
import math
import random
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

DIVISION_MIN_OFFSET = 20.0
DIVISION_OFFSET_SPAN = 30.0


@dataclass
class Node:
    """A single automaton cell with its layout state."""
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    state: int = 0
    neighbors: List[int] = field(default_factory=list)

    # Fragment lifecycle
    dying: bool = False
    dying_ttl: Optional[int] = None
    gravity_target: Optional[Tuple[float, float]] = None
    alpha: Optional[float] = None


class GraphStore:
    """Dense node array; node ``i`` is always ``nodes[i]``."""

    def __init__(self):
        self._nodes: List[Node] = []

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __getitem__(self, idx: int) -> Node:
        return self._nodes[idx]

    @property
    def nodes(self) -> Sequence[Node]:
        return self._nodes

    def clear(self):
        self._nodes = []

    def add_node(self, x: float, y: float, state: int = 0, vx: float = 0.0, vy: float = 0.0) -> int:
        """Append an unconnected node and return its index."""
        self._nodes.append(Node(x=x, y=y, vx=vx, vy=vy, state=state))
        return len(self._nodes) - 1

    def has_edge(self, a: int, b: int) -> bool:
        return b in self._nodes[a].neighbors

    def connect(self, a: int, b: int) -> bool:
        """Add the undirected edge a-b. Returns False if it already existed."""
        if a == b:
            raise ValueError(f"Self-loop on node {a}")
        if b in self._nodes[a].neighbors:
            return False
        self._nodes[a].neighbors.append(b)
        self._nodes[b].neighbors.append(a)
        return True

    def disconnect(self, a: int, b: int):
        na, nb = self._nodes[a], self._nodes[b]
        if b in na.neighbors:
            na.neighbors.remove(b)
        if a in nb.neighbors:
            nb.neighbors.remove(a)

    def edges(self) -> Iterator[Tuple[int, int]]:
        """Each undirected edge once, as (i, j) with i < j."""
        for i, node in enumerate(self._nodes):
            for j in node.neighbors:
                if j > i:
                    yield i, j

    def edge_count(self) -> int:
        return sum(len(n.neighbors) for n in self._nodes) // 2

    def divide(self, idx: int, d: int, rng: random.Random) -> List[int]:
        """
        Mitosis: replace node ``idx`` with ``d`` mutually connected copies.

        Copy 0 is ``idx`` itself; copies 1..d-1 are appended. The external
        edges ``idx`` had before the split are handed out round-robin, the
        i-th going to copy ``i % d``.

        Returns:
            Indices of all copies, ``idx`` first.
        """
        original = self._nodes[idx]
        external = list(original.neighbors)

        copies = [idx]
        for _ in range(1, d):
            angle = rng.random() * math.pi * 2
            dist = DIVISION_MIN_OFFSET + rng.random() * DIVISION_OFFSET_SPAN
            copies.append(self.add_node(
                x=original.x + math.cos(angle) * dist,
                y=original.y + math.sin(angle) * dist,
                state=original.state,
                vx=(rng.random() - 0.5) * 2,
                vy=(rng.random() - 0.5) * 2,
            ))

        for i in range(len(copies)):
            for j in range(i + 1, len(copies)):
                self.connect(copies[i], copies[j])

        copy_set = set(copies)
        for i, neighbor in enumerate(external):
            target = copies[i % len(copies)]
            if target == idx or neighbor in copy_set:
                continue
            self.disconnect(idx, neighbor)
            self.connect(neighbor, target)

        logger.debug("Divided node %d into %s (%d external edges)", idx, copies, len(external))
        return copies

    def remove_node(self, idx: int):
        """Splice out ``idx`` and shift every larger neighbor index down by one."""
        if not 0 <= idx < len(self._nodes):
            raise IndexError(f"Node index {idx} out of range (0..{len(self._nodes) - 1})")

        for node in self._nodes:
            node.neighbors = [n - 1 if n > idx else n for n in node.neighbors if n != idx]
        del self._nodes[idx]

    def remove_nodes(self, indices: Iterable[int]):
        """Remove several nodes; descending order keeps pending indices valid."""
        for idx in sorted(set(indices), reverse=True):
            self.remove_node(idx)

    def check_invariants(self) -> List[str]:
        """Return a list of human-readable invariant violations (empty when sound)."""
        problems = []
        n = len(self._nodes)
        for i, node in enumerate(self._nodes):
            if len(set(node.neighbors)) != len(node.neighbors):
                problems.append(f"node {i} has duplicate neighbors {node.neighbors}")
            for j in node.neighbors:
                if j == i:
                    problems.append(f"node {i} is its own neighbor")
                elif not 0 <= j < n:
                    problems.append(f"node {i} references missing node {j}")
                elif i not in self._nodes[j].neighbors:
                    problems.append(f"edge {i}->{j} is not mirrored")
        return problems
