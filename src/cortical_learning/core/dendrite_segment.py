"""
Dendrite Segment Module for the Cortical Learning Algorithm.

A dendrite segment is an ordered collection of synapses. Proximal segments
connect a column to input bits; distal segments connect a cell to other
cells of the region. A segment is active when enough of its connected
synapses are active, using the activation and min thresholds of the shared
region configuration.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from ..configs.schema import RegionConfig
from .state import SynapseState
from .synapse import CellRef, Synapse


class DendriteSegment:
    """
    Ordered collection of synapses with activation threshold logic.

    Attributes:
        config: Shared region configuration
        synapses: Potential synapses of the segment
        sequence: True when the segment predicts feed-forward input on the
            next time step
        previous_connected_synapses: Connected synapses captured at the
            start of the tick
    """

    def __init__(self, config: RegionConfig, sequence: bool = False):
        self.config = config
        self.synapses: List[Synapse] = []
        self.sequence = sequence
        self.previous_connected_synapses: List[Synapse] = []

    def add(self, synapse: Synapse) -> "DendriteSegment":
        self.synapses.append(synapse)
        return self

    def __iter__(self) -> Iterator[Synapse]:
        return iter(self.synapses)

    def __len__(self) -> int:
        return len(self.synapses)

    def rotate(self) -> None:
        """Snapshot connected synapses, then rotate every synapse."""
        self.previous_connected_synapses = self.connected_synapses()
        for synapse in self.synapses:
            synapse.rotate()

    def connected_synapses(self) -> List[Synapse]:
        return [synapse for synapse in self.synapses if synapse.connected]

    def active_connected_synapses(self) -> List[Synapse]:
        return [s for s in self.synapses if s.is_active(SynapseState.ACTIVE)]

    def previous_active_connected_synapses(self) -> List[Synapse]:
        return [
            s for s in self.previous_connected_synapses
            if s.source_was_active(SynapseState.ACTIVE)
        ]

    def activity(self, state: SynapseState = SynapseState.ACTIVE) -> int:
        """Number of synapses whose source is in ``state``, connected or not."""
        return sum(1 for s in self.synapses if s.source_active(state))

    def connected_activity(self, state: SynapseState = SynapseState.ACTIVE) -> int:
        """Number of connected synapses whose source is in ``state``."""
        return sum(1 for s in self.synapses if s.is_active(state))

    def previous_activity(self, state: SynapseState = SynapseState.ACTIVE) -> int:
        return sum(1 for s in self.synapses if s.source_was_active(state))

    def previous_connected_activity(self, state: SynapseState = SynapseState.ACTIVE) -> int:
        return sum(1 for s in self.synapses if s.was_active(state))

    def is_active(self, state: SynapseState = SynapseState.ACTIVE) -> bool:
        return self.connected_activity(state) >= self.config.segment_activation_threshold

    def was_active(self, state: SynapseState = SynapseState.ACTIVE) -> bool:
        return (
            self.previous_connected_activity(state)
            >= self.config.segment_activation_threshold
        )

    def is_aggressively_active(self, state: SynapseState = SynapseState.ACTIVE) -> bool:
        """Loose match: raw activity against the min threshold."""
        return self.activity(state) >= self.config.segment_min_threshold

    def was_aggressively_active(self, state: SynapseState = SynapseState.ACTIVE) -> bool:
        return self.previous_activity(state) >= self.config.segment_min_threshold

    def sources(self) -> List:
        return [synapse.source for synapse in self.synapses]

    def __repr__(self) -> str:
        return (
            f"DendriteSegment(synapses={len(self.synapses)}, "
            f"sequence={self.sequence})"
        )


@dataclass
class SegmentUpdate:
    """
    Proposed change to a distal segment, queued on a cell during temporal
    pooling and applied once by :meth:`Cell.adapt_segments`.

    Attributes:
        target_segment: Segment to update, None to create a new one
        active_synapses: Synapses to reinforce
        candidate_cells: Cells to connect through new synapses
        sequence: Sequence flag given to the segment when synapses are added
    """

    target_segment: Optional[DendriteSegment]
    active_synapses: List[Synapse] = field(default_factory=list)
    candidate_cells: List[CellRef] = field(default_factory=list)
    sequence: bool = False
