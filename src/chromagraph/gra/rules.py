"""
Rule decoding for the Graph Rewriting Automaton.

A rule is an unsigned 16-bit integer holding two 8-entry boolean tables:
- R  (low byte):  next state for a configuration index 0-7
- R' (high byte): division trigger for a configuration index 0-7

Named rule presets and physics presets (layout feel) live here too.
"""

from dataclasses import dataclass
from typing import Tuple

RULE_MAX = 0xFFFF
TABLE_SIZE = 8

OVERFLOW_POLICIES = ("clamp", "wrap")


@dataclass(frozen=True)
class RulePreset:
    """A named rule with a short description of its character."""
    rule: int
    name: str
    desc: str


RULE_PRESETS: Tuple[RulePreset, ...] = (
    RulePreset(2182, "Balanced", "Stable growth with periodic structure"),
    RulePreset(2238, "Organic", "Natural branching patterns"),
    RulePreset(549, "Sparse", "Minimal division, state cycling"),
    RulePreset(2199, "Dense", "Rapid expansion, tight clusters"),
    RulePreset(1638, "Symmetric", "Mirror-like structures"),
    RulePreset(4095, "Chaos", "Maximum growth and state changes"),
)


def preset_by_name(name: str) -> RulePreset:
    """Look up a preset case-insensitively."""
    for preset in RULE_PRESETS:
        if preset.name.lower() == name.lower():
            return preset
    raise KeyError(f"Unknown rule preset: {name}")


@dataclass(frozen=True)
class PhysicsPreset:
    """Layout feel: damping plus the three force tunables."""
    name: str
    damping: float
    repulsion: float
    spring_k: float
    spring_rest: float


PHYSICS_PRESETS: Tuple[PhysicsPreset, ...] = (
    PhysicsPreset("calm", damping=0.95, repulsion=3000.0, spring_k=0.02, spring_rest=120.0),
    PhysicsPreset("default", damping=0.92, repulsion=5000.0, spring_k=0.03, spring_rest=80.0),
    PhysicsPreset("chaos", damping=0.85, repulsion=8000.0, spring_k=0.06, spring_rest=50.0),
)


def physics_preset_by_name(name: str) -> PhysicsPreset:
    """Look up a physics preset case-insensitively."""
    for preset in PHYSICS_PRESETS:
        if preset.name == name.lower():
            return preset
    raise KeyError(f"Unknown physics preset: {name}")


class RuleTable:
    """
    Decoded view of a 16-bit rule.

    The tables are decoded eagerly whenever ``rule`` is assigned, so lookups
    during a step are plain tuple indexing.
    """

    def __init__(self, rule: int = 2182, overflow: str = "clamp"):
        if overflow not in OVERFLOW_POLICIES:
            raise ValueError(
                f"Unknown overflow policy {overflow!r} (expected one of {OVERFLOW_POLICIES})"
            )
        self.overflow = overflow
        self._rule = 0
        self._r: Tuple[int, ...] = (0,) * TABLE_SIZE
        self._r_prime: Tuple[int, ...] = (0,) * TABLE_SIZE
        self.rule = rule

    @property
    def rule(self) -> int:
        return self._rule

    @rule.setter
    def rule(self, value: int):
        value = int(value)
        if not 0 <= value <= RULE_MAX:
            raise ValueError(f"Rule must be in 0..{RULE_MAX}, got {value}")
        self._rule = value
        self._r = tuple((value >> i) & 1 for i in range(TABLE_SIZE))
        self._r_prime = tuple((value >> (i + TABLE_SIZE)) & 1 for i in range(TABLE_SIZE))

    @property
    def r_table(self) -> Tuple[int, ...]:
        """R indexed by configuration (entry 0 is bit 0)."""
        return self._r

    @property
    def r_prime_table(self) -> Tuple[int, ...]:
        """R' indexed by configuration (entry 0 is bit 8 of the rule)."""
        return self._r_prime

    def index(self, config: int) -> int:
        """Map a raw configuration onto the 8-entry table."""
        if config < TABLE_SIZE:
            return config
        if self.overflow == "wrap":
            return config % TABLE_SIZE
        return TABLE_SIZE - 1

    def next_state(self, config: int) -> int:
        return self._r[self.index(config)]

    def divides(self, config: int) -> int:
        return self._r_prime[self.index(config)]

    def r_bits(self) -> str:
        """Low byte as an 8-character binary string, most significant bit first."""
        return format(self._rule & 0xFF, "08b")

    def r_prime_bits(self) -> str:
        """High byte as an 8-character binary string, most significant bit first."""
        return format(self._rule >> TABLE_SIZE, "08b")

    def __repr__(self) -> str:
        return f"RuleTable(rule={self._rule}, R={self.r_bits()}, R'={self.r_prime_bits()})"


def configuration(state: int, neighbor_sum: int, d: int) -> int:
    """(d + 1) * state + sum of neighbor states."""
    return (d + 1) * state + neighbor_sum
