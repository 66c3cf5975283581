"""
Audio-reactive rendering of the graph rewriting automaton.
"""

from chromagraph.experiment.renderer import GRARenderConfig, GRARenderer
