"""
State kinds shared by synapses, segments and cells.
"""

from enum import Enum


class SynapseState(str, Enum):
    """State a synapse or segment activity query is made for."""

    ACTIVE = "active"
    LEARNING = "learning"


class SourceKind(str, Enum):
    """The two kinds of synapse sources."""

    CELL = "cell"
    INPUT = "input"
