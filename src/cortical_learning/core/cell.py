"""
Cell Module for the Cortical Learning Algorithm.

A cell has three boolean states (active, predictive and learning), each
kept for the current and the previous time step. It owns distal dendrite
segments connecting it to other cells of the region, and a queue of
segment updates proposed during temporal pooling.

The learning state decides which cell outputs are used during learning.
When an input is unexpected, every cell of a column becomes active in the
same time step, but only the cell that best matches the input has its
learning state turned on. New synapses are only grown towards learning
cells, which avoids over-representing a fully active column in distal
segments.
"""

import logging
from typing import TYPE_CHECKING, Callable, Iterable, Iterator, List, Optional

from ..configs.schema import RegionConfig
from .dendrite_segment import DendriteSegment, SegmentUpdate
from .state import SynapseState
from .synapse import CellRef, Synapse

if TYPE_CHECKING:
    from .column import Column
    from .region import Region

logger = logging.getLogger(__name__)


class Cell:
    """
    Tri-state unit with double-buffered state and distal segments.

    Attributes:
        index: Position of the cell in the region's cell arena
        config: Shared region configuration
        distal_segments: Lateral segments, created lazily during learning
        pending_updates: Segment updates queued for the current tick
    """

    def __init__(self, index: int, config: RegionConfig):
        self.index = index
        self.config = config

        self.active = False
        self.predictive = False
        self.learning = False

        self.was_active = False
        self.was_predictive = False
        self.was_learning = False

        self.distal_segments: List[DendriteSegment] = []
        self.pending_updates: List[SegmentUpdate] = []

    def rotate(self) -> None:
        """Move current states to previous, reset current, rotate segments."""
        self.was_active, self.active = self.active, False
        self.was_predictive, self.predictive = self.predictive, False
        self.was_learning, self.learning = self.learning, False

        for segment in self.distal_segments:
            segment.rotate()

    def __iter__(self) -> Iterator[DendriteSegment]:
        return iter(self.distal_segments)

    def __len__(self) -> int:
        return len(self.distal_segments)

    def create_segment(
        self, cells: Iterable[CellRef], sequence: bool = False
    ) -> DendriteSegment:
        """
        Create a distal segment with one new synapse per given cell.

        Args:
            cells: References to the cells to connect to
            sequence: Sequence flag of the new segment

        Returns:
            The newly created segment
        """
        segment = DendriteSegment(self.config, sequence=sequence)
        for ref in cells:
            segment.add(Synapse(ref, self.config))

        self.distal_segments.append(segment)
        return segment

    def best_matching_segment(self) -> Optional[DendriteSegment]:
        """
        Find the segment with the largest number of active synapses.

        The lookup is aggressive: synapse permanences may be below the
        connection threshold and the activity may be below the activation
        threshold, but it must reach the min threshold.

        Returns:
            The best matching segment, or None
        """
        candidates = [
            s for s in self.distal_segments
            if s.is_aggressively_active(SynapseState.ACTIVE)
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda s: s.activity(SynapseState.ACTIVE))

    def best_previous_matching_segment(self) -> Optional[DendriteSegment]:
        """Same as :meth:`best_matching_segment` for the previous time step."""
        candidates = [
            s for s in self.distal_segments
            if s.was_aggressively_active(SynapseState.ACTIVE)
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda s: s.previous_activity(SynapseState.ACTIVE))

    @staticmethod
    def _preferred(
        segments: List[DendriteSegment],
        activity: Callable[[DendriteSegment], int],
    ) -> Optional[DendriteSegment]:
        if not segments:
            return None
        if len(segments) == 1:
            return segments[0]

        sequences = [s for s in segments if s.sequence]
        if len(sequences) == 1:
            return sequences[0]

        return max(sequences or segments, key=activity)

    def active_segment(
        self, state: SynapseState = SynapseState.ACTIVE
    ) -> Optional[DendriteSegment]:
        """
        Return an active segment for ``state``. Sequence segments are
        preferred, then segments with the most activity.
        """
        segments = [s for s in self.distal_segments if s.is_active(state)]
        return self._preferred(segments, lambda s: s.activity(state))

    def previous_active_segment(
        self, state: SynapseState = SynapseState.ACTIVE
    ) -> Optional[DendriteSegment]:
        """Same as :meth:`active_segment` for the previous time step."""
        segments = [s for s in self.distal_segments if s.was_active(state)]
        return self._preferred(segments, lambda s: s.previous_activity(state))

    def build_segment_update(
        self,
        region: "Region",
        column: "Column",
        segment: Optional[DendriteSegment],
        new_synapses: bool = False,
        previous_time_step: bool = False,
        sequence: bool = False,
    ) -> SegmentUpdate:
        """
        Queue a proposed change to ``segment`` on this cell.

        The update lists the segment's active connected synapses. When
        ``new_synapses`` is set, up to ``new_synapse_count`` minus that
        number of learning cells from other columns are added as
        candidates for new synapses.

        Args:
            region: Region providing the learning cells to sample from
            column: Column owning this cell, excluded from sampling
            segment: Segment to update, None for a new segment
            new_synapses: Whether to propose new synapses
            previous_time_step: Read activity and learning states at t-1
            sequence: Sequence flag to give the segment

        Returns:
            The queued update
        """
        if segment is None:
            synapses: List[Synapse] = []
        elif previous_time_step:
            synapses = segment.previous_active_connected_synapses()
        else:
            synapses = segment.active_connected_synapses()

        candidates: List[CellRef] = []
        if new_synapses:
            count = max(0, self.config.new_synapse_count - len(synapses))
            if count > 0:
                exclude = set(segment.sources()) if segment is not None else set()
                candidates = region.sample_learning_cells(
                    count, column, exclude, previous=previous_time_step
                )

        update = SegmentUpdate(segment, synapses, candidates, sequence)
        self.pending_updates.append(update)
        return update

    def adapt_segments(self, positive_reinforcement: bool) -> None:
        """
        Apply then clear the queued segment updates.

        With positive reinforcement, synapses listed in an update have their
        permanence increased and every other synapse of the segment has it
        decreased; candidate cells then become new synapses, on a new segment
        when the update has no target, skipping cells the segment already
        listens to. With negative reinforcement only the listed synapses are
        decreased and no synapse is added.
        """
        for update in self.pending_updates:
            segment = update.target_segment
            active = {id(synapse) for synapse in update.active_synapses}

            if segment is not None:
                if positive_reinforcement:
                    for synapse in segment:
                        if id(synapse) in active:
                            synapse.increase_permanence()
                        else:
                            synapse.decrease_permanence()
                else:
                    for synapse in update.active_synapses:
                        synapse.decrease_permanence()

            if positive_reinforcement and update.candidate_cells:
                if segment is None:
                    segment = self.create_segment(dict.fromkeys(update.candidate_cells))
                else:
                    # A source cell is connected at most once per segment.
                    known = set(segment.sources())
                    for ref in update.candidate_cells:
                        if ref not in known:
                            segment.add(Synapse(ref, self.config))
                            known.add(ref)
                segment.sequence = update.sequence

        self.pending_updates.clear()

    def clear_updates(self) -> None:
        self.pending_updates.clear()

    def __repr__(self) -> str:
        return (
            f"Cell({self.index}, active={self.active}, "
            f"predictive={self.predictive}, learning={self.learning})"
        )
