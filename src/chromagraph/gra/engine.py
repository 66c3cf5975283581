"""
Graph Rewriting Automaton engine.

Combines the rule table, the node arena, seed builders, the force layout and
the fragment lifecycle behind a small driver-facing surface:

- create_seed / step / physics
- impulse / flip_by_pitch_class (musical stimuli)
- get_stats
"""

import logging
import math
import random
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple, Union

from chromagraph.gra.graph import GraphStore, Node
from chromagraph.gra.lifecycle import FragmentLifecycle
from chromagraph.gra.physics import PhysicsIntegrator
from chromagraph.gra.rules import PhysicsPreset, RuleTable, configuration, physics_preset_by_name
from chromagraph.gra.seeds import DEFAULT_SEED, builders

logger = logging.getLogger(__name__)

TIEBREAK_POLICIES = ("first", "random")
PITCH_CLASSES = 12
FLIPS_PER_PITCH = 2


@dataclass
class GRAConfig:
    """Tunables and constants for one engine instance."""
    rule: int = 2182
    d: int = 3

    # Layout space; the center pull targets (width / 2, height / 2)
    width: float = 600.0
    height: float = 600.0

    # Physics
    repulsion: float = 5000.0
    spring_k: float = 0.03
    spring_rest: float = 80.0
    center_pull: float = 0.001
    damping: float = 0.92

    # Growth bound; repulsion is O(n^2)
    max_nodes: int = 2000

    # Fragment lifecycle
    scan_interval: int = 5
    dying_ttl: int = 60
    fade_rate: float = 0.025
    gravity_strength: float = 0.15

    # Policies
    config_overflow: str = "clamp"  # "clamp" or "wrap"
    division_tiebreak: str = "first"  # "first" or "random"

    def with_physics_preset(self, preset: Union[str, PhysicsPreset]) -> "GRAConfig":
        """Copy of this config with the preset's damping and force tunables."""
        if isinstance(preset, str):
            preset = physics_preset_by_name(preset)
        return replace(
            self,
            damping=preset.damping,
            repulsion=preset.repulsion,
            spring_k=preset.spring_k,
            spring_rest=preset.spring_rest,
        )


class GRAEngine:
    """
    Discrete automaton on a mutable graph with a continuous layout.

    The engine owns its graph exclusively; readers may inspect ``nodes`` each
    frame but all mutation goes through the methods here.
    """

    def __init__(
        self,
        config: Optional[GRAConfig] = None,
        rng: Union[random.Random, int, None] = None,
    ):
        self.cfg = config or GRAConfig()
        if self.cfg.division_tiebreak not in TIEBREAK_POLICIES:
            raise ValueError(
                f"Unknown division tie-break {self.cfg.division_tiebreak!r} "
                f"(expected one of {TIEBREAK_POLICIES})"
            )
        self.rng = rng if isinstance(rng, random.Random) else random.Random(rng)

        self.rules = RuleTable(self.cfg.rule, overflow=self.cfg.config_overflow)
        self.d = self.cfg.d
        self.damping = self.cfg.damping
        self.center = (self.cfg.width / 2, self.cfg.height / 2)

        self.store = GraphStore()
        self.integrator = PhysicsIntegrator(
            repulsion=self.cfg.repulsion,
            spring_k=self.cfg.spring_k,
            spring_rest=self.cfg.spring_rest,
            center_pull=self.cfg.center_pull,
            center=self.center,
        )
        self.lifecycle = FragmentLifecycle(
            dying_ttl=self.cfg.dying_ttl,
            fade_rate=self.cfg.fade_rate,
            gravity_strength=self.cfg.gravity_strength,
        )

        self.time = 0
        self.total_divisions = 0

    # --- Tunables ---

    @property
    def rule(self) -> int:
        return self.rules.rule

    @rule.setter
    def rule(self, value: int):
        self.rules.rule = value

    @property
    def d(self) -> int:
        return self._d

    @d.setter
    def d(self, value: int):
        value = int(value)
        if value < 1:
            raise ValueError(f"Division fan-out must be >= 1, got {value}")
        self._d = value

    @property
    def repulsion(self) -> float:
        return self.integrator.repulsion

    @repulsion.setter
    def repulsion(self, value: float):
        self.integrator.repulsion = float(value)

    @property
    def spring_k(self) -> float:
        return self.integrator.spring_k

    @spring_k.setter
    def spring_k(self, value: float):
        self.integrator.spring_k = float(value)

    @property
    def spring_rest(self) -> float:
        return self.integrator.spring_rest

    @spring_rest.setter
    def spring_rest(self, value: float):
        self.integrator.spring_rest = float(value)

    @property
    def nodes(self) -> Tuple[Node, ...]:
        """Snapshot of the current nodes; the Node objects themselves are live."""
        return tuple(self.store.nodes)

    def apply_physics_preset(self, preset: Union[str, PhysicsPreset]) -> PhysicsPreset:
        """Set damping, repulsion and spring tunables from a named preset."""
        if isinstance(preset, str):
            preset = physics_preset_by_name(preset)
        self.damping = preset.damping
        self.repulsion = preset.repulsion
        self.spring_k = preset.spring_k
        self.spring_rest = preset.spring_rest
        logger.debug("Applied physics preset %s", preset.name)
        return preset

    # --- Seeding ---

    def create_seed(self, kind: str):
        """Replace the graph with a fresh seed topology and reset counters."""
        table = builders(self.center, self.rng)
        if kind not in table:
            logger.warning("Unknown seed kind %r, using %r", kind, DEFAULT_SEED)
            kind = DEFAULT_SEED
        table[kind](self.store)
        self.time = 0
        self.total_divisions = 0
        logger.info(
            "Seeded %s: %d nodes, %d edges", kind, len(self.store), self.store.edge_count()
        )

    # --- Automaton ---

    def get_config(self, idx: int) -> int:
        node = self.store[idx]
        neighbor_sum = sum(self.store[j].state for j in node.neighbors)
        return configuration(node.state, neighbor_sum, self.d)

    def step(self):
        """One synchronous discrete tick; at most one division."""
        n = len(self.store)
        if n == 0 or n >= self.cfg.max_nodes:
            return

        next_states: Dict[int, int] = {}
        candidates: List[int] = []
        for i, node in enumerate(self.store):
            if node.dying:
                continue
            config = self.get_config(i)
            next_states[i] = self.rules.next_state(config)
            if self.rules.divides(config):
                candidates.append(i)

        for i, state in next_states.items():
            self.store[i].state = state

        divided = False
        if candidates and n + self.d - 1 <= self.cfg.max_nodes:
            if self.cfg.division_tiebreak == "random":
                target = self.rng.choice(candidates)
            else:
                target = candidates[0]
            self.store.divide(target, self.d, self.rng)
            divided = True

        self.time += 1
        if divided:
            self.total_divisions += 1

        if self.time % self.cfg.scan_interval == 0:
            self.scan_fragments()

    # --- Physics & lifecycle ---

    def physics(self, damping: Optional[float] = None):
        """One continuous tick: layout forces, then dying-node collapse."""
        self.integrator.step(self.store.nodes, self.damping if damping is None else damping)
        self.update_dying()

    def scan_fragments(self) -> List[int]:
        return self.lifecycle.scan(self.store)

    def update_dying(self) -> List[int]:
        return self.lifecycle.update(self.store)

    # --- Stimuli ---

    def impulse(self, strength: float = 1.0):
        """Random-direction velocity kick on every node."""
        for node in self.store:
            angle = self.rng.random() * math.pi * 2
            node.vx += math.cos(angle) * strength
            node.vy += math.sin(angle) * strength

    def pitch_class_of(self, node: Node) -> int:
        """Angular sector (0-11) of a node around the layout center."""
        angle = math.atan2(node.y - self.center[1], node.x - self.center[0])
        return int(math.floor((angle + math.pi) / (math.pi * 2) * PITCH_CLASSES)) % PITCH_CLASSES

    def flip_by_pitch_class(self, pc: int) -> List[int]:
        """
        Toggle up to two random nodes sitting in the sector for ``pc``.

        Returns:
            Indices whose state was toggled.
        """
        if not 0 <= pc < PITCH_CLASSES:
            raise ValueError(f"Pitch class must be in 0..{PITCH_CLASSES - 1}, got {pc}")

        targets = [i for i, node in enumerate(self.store) if self.pitch_class_of(node) == pc]
        chosen = self.rng.sample(targets, min(FLIPS_PER_PITCH, len(targets)))
        for i in chosen:
            node = self.store[i]
            node.state = 1 - node.state
        return chosen

    # --- Stats ---

    def get_stats(self) -> Dict[str, int]:
        alive = sum(1 for node in self.store if node.state == 1)
        return {
            "time": self.time,
            "nodes": len(self.store),
            "edges": self.store.edge_count(),
            "alive": alive,
            "divisions": self.total_divisions,
        }
