"""
Fragment lifecycle: ALIVE -> DYING -> REMOVED.

Components of three or more nodes ("constellations") persist. Smaller
fragments collapse toward their centroid, fade, and are removed.
"""

import logging
import math
from collections import deque
from typing import List

from chromagraph.gra.graph import GraphStore

logger = logging.getLogger(__name__)

CONSTELLATION_SIZE = 3
GRAVITY_RAMP = 0.05


class FragmentLifecycle:
    """Marks small components as dying and animates their removal."""

    def __init__(
        self,
        dying_ttl: int = 60,
        fade_rate: float = 0.025,
        gravity_strength: float = 0.15,
    ):
        self.dying_ttl = dying_ttl
        self.fade_rate = fade_rate
        self.gravity_strength = gravity_strength

    @staticmethod
    def find_components(store: GraphStore) -> List[List[int]]:
        """BFS connected components over nodes that are not already dying."""
        visited = set()
        components = []

        for start in range(len(store)):
            if start in visited or store[start].dying:
                continue

            component = []
            queue = deque([start])
            visited.add(start)
            while queue:
                curr = queue.popleft()
                component.append(curr)
                for nb in store[curr].neighbors:
                    if nb not in visited and not store[nb].dying:
                        visited.add(nb)
                        queue.append(nb)
            components.append(component)

        return components

    def scan(self, store: GraphStore) -> List[int]:
        """
        Mark every 1-2 node fragment as dying.

        Returns:
            Indices newly marked.
        """
        marked = []
        for component in self.find_components(store):
            if len(component) >= CONSTELLATION_SIZE:
                continue

            cx = sum(store[i].x for i in component) / len(component)
            cy = sum(store[i].y for i in component) / len(component)
            for i in component:
                node = store[i]
                node.dying = True
                node.dying_ttl = self.dying_ttl
                node.gravity_target = (cx, cy)
                node.alpha = 1.0
            marked.extend(component)

        if marked:
            logger.debug("Marked %d fragment node(s) dying: %s", len(marked), marked)
        return marked

    def update(self, store: GraphStore) -> List[int]:
        """
        One physics tick of collapse and fade for every dying node.

        Returns:
            Indices removed this tick (pre-removal numbering).
        """
        expired = []
        for i, node in enumerate(store):
            if not node.dying:
                continue

            ttl = node.dying_ttl if node.dying_ttl is not None else 0
            if node.gravity_target is not None:
                dx = node.gravity_target[0] - node.x
                dy = node.gravity_target[1] - node.y
                dist = math.hypot(dx, dy) or 1.0
                # Pull strengthens as the TTL runs down
                pull = self.gravity_strength * (1 + (self.dying_ttl - ttl) * GRAVITY_RAMP)
                node.vx += dx / dist * pull
                node.vy += dy / dist * pull

            if node.alpha is not None:
                node.alpha = max(0.0, node.alpha - self.fade_rate)
            if node.dying_ttl is not None:
                node.dying_ttl -= 1

            alpha = node.alpha if node.alpha is not None else 1.0
            remaining = node.dying_ttl if node.dying_ttl is not None else 1
            if alpha <= 0 or remaining <= 0:
                expired.append(i)

        if expired:
            store.remove_nodes(expired)
            logger.debug("Removed %d faded node(s)", len(expired))
        return expired
