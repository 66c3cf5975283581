"""
Force-directed layout for the automaton graph.

Pairwise repulsion is O(n^2) and vectorised with numpy; it is the reason the
engine caps node count.
"""

from typing import Sequence, Tuple

import numpy as np

from chromagraph.gra.graph import Node


class PhysicsIntegrator:
    """Repulsion + springs + center pull, damped semi-implicit Euler."""

    def __init__(
        self,
        repulsion: float = 5000.0,
        spring_k: float = 0.03,
        spring_rest: float = 80.0,
        center_pull: float = 0.001,
        center: Tuple[float, float] = (300.0, 300.0),
    ):
        self.repulsion = repulsion
        self.spring_k = spring_k
        self.spring_rest = spring_rest
        self.center_pull = center_pull
        self.center = center

    def repulsion_forces(self, pos: np.ndarray) -> np.ndarray:
        """
        Velocity change from inverse-square repulsion between every pair.

        Args:
            pos: (N, 2) positions.

        Returns:
            (N, 2) velocity deltas.
        """
        # delta[i, j] points from i to j
        delta = pos[np.newaxis, :, :] - pos[:, np.newaxis, :]
        d2 = np.einsum("ijk,ijk->ij", delta, delta) + 1.0
        scale = self.repulsion / (d2 * np.sqrt(d2))
        return -np.einsum("ij,ijk->ik", scale, delta)

    def spring_forces(self, pos: np.ndarray, edges: np.ndarray) -> np.ndarray:
        """Velocity change from Hookean springs along ``edges`` ((E, 2) index pairs)."""
        dv = np.zeros_like(pos)
        if len(edges) == 0:
            return dv

        a, b = edges[:, 0], edges[:, 1]
        delta = pos[b] - pos[a]
        dist = np.sqrt(np.sum(delta ** 2, axis=1))
        dist[dist == 0] = 1.0
        f = self.spring_k * (dist - self.spring_rest)
        fvec = (f / dist)[:, np.newaxis] * delta

        np.add.at(dv, a, fvec)
        np.subtract.at(dv, b, fvec)
        return dv

    def step(self, nodes: Sequence[Node], damping: float = 0.92):
        """Advance every node by one physics tick, writing back in place."""
        n = len(nodes)
        if n == 0:
            return

        pos = np.array([(node.x, node.y) for node in nodes], dtype=np.float64)
        vel = np.array([(node.vx, node.vy) for node in nodes], dtype=np.float64)
        edges = np.array(
            [(i, j) for i, node in enumerate(nodes) for j in node.neighbors if j > i],
            dtype=np.intp,
        ).reshape(-1, 2)

        vel += self.repulsion_forces(pos)
        vel += self.spring_forces(pos, edges)
        vel += (np.asarray(self.center, dtype=np.float64) - pos) * self.center_pull

        vel *= damping
        pos += vel

        for node, (x, y), (vx, vy) in zip(nodes, pos.tolist(), vel.tolist()):
            node.x, node.y = x, y
            node.vx, node.vy = vx, vy
