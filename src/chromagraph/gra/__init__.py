"""
Graph Rewriting Automaton engine.

A discrete automaton on an evolving graph, laid out by a force simulation,
with small disconnected fragments collapsing and fading away.
"""

from chromagraph.gra.engine import GRAConfig, GRAEngine
from chromagraph.gra.graph import GraphStore, Node
from chromagraph.gra.lifecycle import FragmentLifecycle
from chromagraph.gra.physics import PhysicsIntegrator
from chromagraph.gra.rules import PHYSICS_PRESETS, RULE_PRESETS, PhysicsPreset, RulePreset, RuleTable
from chromagraph.gra.seeds import SEED_KINDS

__all__ = [
    "GRAConfig",
    "GRAEngine",
    "GraphStore",
    "Node",
    "FragmentLifecycle",
    "PhysicsIntegrator",
    "PHYSICS_PRESETS",
    "PhysicsPreset",
    "RULE_PRESETS",
    "RulePreset",
    "RuleTable",
    "SEED_KINDS",
]
