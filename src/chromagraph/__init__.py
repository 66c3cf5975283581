"""Music-reactive graph rewriting automata for generative art."""

from chromagraph.gra import GRAConfig, GRAEngine

__version__ = "0.1.0"
__all__ = ["GRAConfig", "GRAEngine"]
