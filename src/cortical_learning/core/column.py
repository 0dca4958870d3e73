"""
Column Module for the Cortical Learning Algorithm.

A column owns a proximal dendrite segment, its feed-forward receptive field
over the input space, and a fixed array of cells. During spatial pooling a
column computes its overlap with the current input, competes with its
neighbors, and adapts its duty cycles and boost.
"""

import logging
import math
from typing import TYPE_CHECKING, Iterable, Iterator, List, Optional, Tuple

import numpy as np

from ..configs.schema import RegionConfig
from .cell import Cell
from .dendrite_segment import DendriteSegment
from .geometry import Point
from .input_cell import InputCell
from .state import SynapseState
from .synapse import Synapse

if TYPE_CHECKING:
    from .region import Region

logger = logging.getLogger(__name__)

# Exponential moving average over a period of N = 1000 iterations,
# alpha = 2 / (N + 1).
EMA_ALPHA = 2.0 / (1000.0 + 1.0)

# Boost growth factor applied while a column is under-active.
BOOST_GROWTH = 1.05

# Fraction of the neighbors' max duty cycle below which a column is
# considered under-active.
MIN_DUTY_CYCLE_FRACTION = 0.01

# Fraction of the permanence threshold added to every potential synapse of a
# column whose overlap duty cycle is too low.
PERMANENCE_BOOST_FRACTION = 0.1


class Column:
    """
    Column of cells sharing a proximal dendrite segment.

    Attributes:
        index: Row-major position of the column in the region
        x, y: Position of the column in the region grid
        proximal_segment: Feed-forward segment connected to input bits
        cells: Fixed array of cells
        overlap: Last computed (boosted) overlap with the input
        boost: Multiplier applied to the overlap of under-active columns
        active_duty_cycle: Moving average of how often the column won
        overlap_duty_cycle: Moving average of how often the overlap exceeded
            the min overlap
        active: Whether the column won the last inhibition step
    """

    def __init__(
        self,
        index: int,
        x: int,
        y: int,
        config: RegionConfig,
        cells: List[Cell],
    ):
        self.index = index
        self.x = x
        self.y = y
        self.config = config

        self.proximal_segment = DendriteSegment(config)
        self.cells = cells

        self.overlap = 0.0
        self.boost = 1.0
        self.active_duty_cycle = 0.0
        self.overlap_duty_cycle = 0.0
        self.active = False

    def __iter__(self) -> Iterator[Cell]:
        return iter(self.cells)

    def __len__(self) -> int:
        return len(self.cells)

    def connect_inputs(
        self,
        region: "Region",
        synapse_count: int,
        rng: np.random.Generator,
    ) -> None:
        """
        Wire the proximal segment to a random sample of input positions.

        Each sampled input gets a synapse with a permanence close to the
        connection threshold, biased to be higher near the column's natural
        center over the input space.

        Args:
            region: Region providing the input geometry and buffer
            synapse_count: Number of distinct inputs to connect to
            rng: Random source of the region
        """
        count = min(synapse_count, region.input_size)
        offsets = rng.choice(region.input_size, size=count, replace=False)

        for offset in offsets:
            offset = int(offset)
            x, y = offset % region.input_width, offset // region.input_width
            source = InputCell(x, y, offset, region.input_buffer)
            permanence = self._random_permanence(x, y, region, rng)
            self.proximal_segment.add(Synapse(source, self.config, permanence))

    def _random_permanence(
        self, x: int, y: int, region: "Region", rng: np.random.Generator
    ) -> float:
        permanence = (
            self.config.synapse_permanence_threshold
            + self.config.synapse_permanence_increment * rng.random()
        )

        distance = region.input_center(self).distance_to(Point(x, y))
        longer_side = max(region.input_width, region.input_height)
        exponent = distance / (longer_side * 0.25)
        bias = (0.8 / 0.4) * math.exp((exponent ** 2) / -2)

        return permanence * bias

    def rotate(self) -> None:
        """Rotate cells, then the proximal segment and its synapses."""
        for cell in self.cells:
            cell.rotate()
        self.proximal_segment.rotate()

    def connected_synapses(self) -> List[Synapse]:
        return self.proximal_segment.connected_synapses()

    def compute_overlap(self, min_overlap: int) -> float:
        """
        Compute the overlap with the current input.

        The overlap is the number of connected synapses with active inputs,
        multiplied by the boost. Below ``min_overlap`` connected active
        synapses, the overlap is 0 whatever the boost.

        Args:
            min_overlap: Minimum number of connected active synapses

        Returns:
            The new overlap
        """
        count = self.proximal_segment.connected_activity(SynapseState.ACTIVE)
        self.overlap = 0.0 if count < min_overlap else count * self.boost
        return self.overlap

    def update_permanences(self) -> None:
        """Reward connected potential synapses, punish the others."""
        for synapse in self.proximal_segment:
            synapse.update_permanence()

    def increase_permanences(self, amount: float) -> None:
        for synapse in self.proximal_segment:
            synapse.increase_permanence(amount)

    def update_active_duty_cycle(self) -> float:
        value = 1.0 if self.active else 0.0
        self.active_duty_cycle += EMA_ALPHA * (value - self.active_duty_cycle)
        return self.active_duty_cycle

    def update_overlap_duty_cycle(self, min_overlap: int) -> float:
        value = 1.0 if self.overlap > min_overlap else 0.0
        self.overlap_duty_cycle += EMA_ALPHA * (value - self.overlap_duty_cycle)
        return self.overlap_duty_cycle

    def perform_boost(self, min_duty_cycle: float) -> float:
        """
        Reset the boost to 1 when the column is active often enough,
        otherwise grow it geometrically.
        """
        if self.active_duty_cycle > min_duty_cycle:
            self.boost = 1.0
        else:
            self.boost *= BOOST_GROWTH
        return self.boost

    def learn(self, min_duty_cycle: float, min_overlap: int) -> None:
        """
        Update duty cycles and boost after inhibition.

        Args:
            min_duty_cycle: Activity floor derived from the neighbors
            min_overlap: Minimum number of connected active synapses
        """
        self.update_active_duty_cycle()
        self.perform_boost(min_duty_cycle)

        self.update_overlap_duty_cycle(min_overlap)
        if self.overlap_duty_cycle < min_duty_cycle:
            self.increase_permanences(
                PERMANENCE_BOOST_FRACTION * self.config.synapse_permanence_threshold
            )

    @staticmethod
    def max_duty_cycle(columns: Iterable["Column"]) -> Optional[float]:
        """Largest active duty cycle among ``columns``, None if empty."""
        cycles = [column.active_duty_cycle for column in columns]
        return max(cycles) if cycles else None

    @staticmethod
    def min_duty_cycle(columns: Iterable["Column"]) -> float:
        """Activity floor for a column given its neighbors."""
        max_cycle = Column.max_duty_cycle(columns)
        return MIN_DUTY_CYCLE_FRACTION * (max_cycle if max_cycle is not None else 0.0)

    def _fewest_segments_cell(self) -> Cell:
        return min(self.cells, key=len)

    def best_matching_cell(self) -> Tuple[Cell, Optional[DendriteSegment]]:
        """
        Return the cell with the best matching segment and that segment.
        When no cell has a matching segment, return the cell with the
        fewest segments and None.
        """
        best: Optional[Tuple[Cell, DendriteSegment]] = None
        best_activity = -1
        for cell in self.cells:
            segment = cell.best_matching_segment()
            if segment is None:
                continue
            activity = segment.activity(SynapseState.ACTIVE)
            if activity > best_activity:
                best, best_activity = (cell, segment), activity

        if best is None:
            return self._fewest_segments_cell(), None
        return best

    def best_previous_matching_cell(self) -> Tuple[Cell, Optional[DendriteSegment]]:
        """Same as :meth:`best_matching_cell` for the previous time step."""
        best: Optional[Tuple[Cell, DendriteSegment]] = None
        best_activity = -1
        for cell in self.cells:
            segment = cell.best_previous_matching_segment()
            if segment is None:
                continue
            activity = segment.previous_activity(SynapseState.ACTIVE)
            if activity > best_activity:
                best, best_activity = (cell, segment), activity

        if best is None:
            return self._fewest_segments_cell(), None
        return best

    def __repr__(self) -> str:
        return (
            f"Column({self.x}, {self.y}, overlap={self.overlap:.2f}, "
            f"boost={self.boost:.2f}, active={self.active})"
        )
