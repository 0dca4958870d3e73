"""
Region Module for the Cortical Learning Algorithm.

A region owns the grid of columns, the flat arena of cells, the input
buffers and a seedable random source. Each tick rotates every double
buffered state, installs the new input, runs spatial pooling and, when
enabled, temporal pooling. The output is the packed union of the active
and predictive states of every cell.

Prior to receiving any input, each column is wired to a random set of
input bits. Each input is represented by a synapse with a random
permanence chosen in a small range around the connection threshold, with
a bias towards the column's natural center over the input space, so that
potential synapses can become connected (or disconnected) after a small
number of training iterations.
"""

import logging
import math
from typing import Iterator, List, Optional, Sequence, Set, Tuple, Union

import numpy as np

from ..configs.schema import RegionConfig
from .cell import Cell
from .column import Column
from .geometry import Point, round_half_up
from .input_cell import InputBuffer
from .state import SynapseState
from .synapse import CellRef

logger = logging.getLogger(__name__)

InputBits = Union[Sequence[int], np.ndarray]


class Region:
    """
    Grid of columns learning spatial and temporal structure from a stream
    of binary input vectors.

    Attributes:
        config: Immutable configuration shared with every entity
        columns: Row-major grid of columns
        cells: Flat cell arena, ``column.index * cells_per_column + i``
        input_buffer: Current and previous input vectors
        rng: Random source used for wiring and synapse sampling
        synapses_per_segment: Number of potential proximal synapses per column
        min_overlap: Minimum connected active synapses for a non-zero overlap
        inhibition_radius: Average connected receptive field radius, in columns
        desired_local_activity: Rank of the local overlap a winner must reach
        active_columns: Winners of the last tick
        iteration: Number of ticks performed
    """

    def __init__(self, config: Optional[RegionConfig] = None, **options):
        """
        Args:
            config: Region configuration. When omitted, one is built from
                ``options`` with out-of-range values replaced by defaults
            **options: Region options, see :class:`RegionConfig`
        """
        if config is None:
            config = RegionConfig(**options)
        elif options:
            config = RegionConfig(**{**config.model_dump(), **options})
        self.config = config

        self.width = config.column_width
        self.height = config.column_height
        self.input_width = config.input_width
        self.input_height = config.input_height

        self.spatial_learning = config.spatial_learning
        self.temporal_learning = config.temporal_learning
        self.temporal_pooling = config.temporal_pooling

        logger.info(
            f"Initializing region of {self.width}x{self.height} columns "
            f"over {self.input_width}x{self.input_height} inputs..."
        )

        self.rng = np.random.default_rng(config.seed)
        self.input_buffer = InputBuffer(self.input_size)

        # A column should at least be able to cover its own share of the
        # input space.
        min_synapses = math.ceil(
            self.cell_width_in_input_space * self.cell_height_in_input_space
        )
        self.synapses_per_segment = min(
            self.input_size,
            max(min_synapses, round_half_up(self.input_size * config.synapses_per_segment)),
        )
        logger.debug(f"synapses per segment: {self.synapses_per_segment}")

        self.min_overlap = math.ceil(self.synapses_per_segment * config.min_overlap)
        logger.debug(f"minimum overlap: {self.min_overlap}")

        self.cells: List[Cell] = []
        self.columns: List[Column] = []
        for index in range(self.size):
            y, x = divmod(index, self.width)
            first = index * config.cells_per_column
            cells = [
                Cell(first + i, config) for i in range(config.cells_per_column)
            ]
            self.cells.extend(cells)

            column = Column(index, x, y, config, cells)
            column.connect_inputs(self, self.synapses_per_segment, self.rng)
            self.columns.append(column)

        self.inhibition_radius = self.average_receptive_field_size()
        logger.debug(f"inhibition radius: {self.inhibition_radius}")

        self.desired_local_activity = self._local_activity()
        logger.debug(f"desired local activity: {self.desired_local_activity}")

        self.active_columns: List[Column] = []
        self.iteration = 0
        self._previous_learning_cells: List[Cell] = []

        logger.info(f"  spatial learning activated? {self.spatial_learning}")
        logger.info(f"  temporal learning activated? {self.temporal_learning}")
        logger.info(f"  temporal pooling activated? {self.temporal_pooling}")

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        """Number of columns."""
        return self.width * self.height

    @property
    def input_size(self) -> int:
        """Number of input bits."""
        return self.input_width * self.input_height

    @property
    def output_size(self) -> int:
        """Number of bytes returned by :meth:`output`."""
        return math.ceil(len(self.cells) / 8)

    @property
    def cell_width_in_input_space(self) -> float:
        return self.input_width / self.width

    @property
    def cell_height_in_input_space(self) -> float:
        return self.input_height / self.height

    @property
    def current_input(self) -> np.ndarray:
        return self.input_buffer.current

    @property
    def previous_input(self) -> np.ndarray:
        return self.input_buffer.previous

    def input_center(self, column: Column) -> Point:
        """Natural center of ``column`` projected over the input space."""
        return Point(
            round_half_up(column.x * self.cell_width_in_input_space),
            round_half_up(column.y * self.cell_height_in_input_space),
        )

    def __len__(self) -> int:
        return len(self.columns)

    def __iter__(self) -> Iterator[Column]:
        return iter(self.columns)

    def __getitem__(self, key: Union[int, Tuple[int, int]]) -> Column:
        """Column by row-major index or by ``(x, y)`` position."""
        if isinstance(key, tuple):
            x, y = key
            if not (0 <= x < self.width and 0 <= y < self.height):
                raise IndexError(f"Column position {key} out of range")
            return self.columns[y * self.width + x]
        return self.columns[key]

    def neighbors(self, column: Column) -> List[Column]:
        """
        Columns within the inhibition radius of ``column``, itself included.

        The radius is rounded and never below 1; the square is clipped to
        the grid bounds.
        """
        radius = max(1, round_half_up(self.inhibition_radius))

        start = Point(max(0, column.x - radius), max(0, column.y - radius))
        end = Point(
            min(self.width - 1, column.x + radius),
            min(self.height - 1, column.y + radius),
        )
        return [self.columns[y * self.width + x] for x, y in start.through(end)]

    neighbours = neighbors

    @staticmethod
    def kth_score(columns: Sequence[Column], k: int) -> Optional[float]:
        """
        K-th highest distinct overlap among ``columns``.

        When there are fewer than ``k`` distinct values the lowest one is
        returned; None for an empty list.
        """
        overlaps = sorted({column.overlap for column in columns}, reverse=True)
        if not overlaps:
            return None
        return overlaps[min(max(k, 1), len(overlaps)) - 1]

    def average_receptive_field_size(self) -> float:
        """
        Average connected receptive field radius of all the columns.

        Distances from each connected proximal synapse to its column's
        center are expressed in column units. Returns 0.0 when no synapse
        is connected.
        """
        total = 0.0
        count = 0
        cell_width = self.cell_width_in_input_space

        for column in self.columns:
            center = self.input_center(column)
            for synapse in column.connected_synapses():
                distance = center.distance_to(Point(synapse.input_x, synapse.input_y))
                total += distance / cell_width
                count += 1

        return total / count if count else 0.0

    def _local_activity(self) -> int:
        return max(
            1, round_half_up(self.inhibition_radius * self.config.desired_local_activity)
        )

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self, input_bits: InputBits) -> bytes:
        """
        Perform one iteration.

        Args:
            input_bits: ``input_size`` bits in row-major order, any non-zero
                value counts as 1

        Returns:
            The packed output, see :meth:`output`

        Raises:
            ValueError: If the input does not hold ``input_size`` bits
        """
        bits = self.input_buffer.coerce(input_bits)

        for column in self.columns:
            column.rotate()
        self.input_buffer.install(bits)

        self._previous_learning_cells = [cell for cell in self.cells if cell.was_learning]

        self.active_columns = self.perform_spatial_pooling()
        if self.temporal_pooling:
            self.perform_temporal_pooling(self.active_columns)

        self.iteration += 1
        logger.debug(
            f"tick {self.iteration}: {len(self.active_columns)} active columns"
        )
        return self.output()

    def output_bits(self) -> np.ndarray:
        """One bit per cell, 1 when the cell is active or predictive."""
        return np.fromiter(
            (cell.active or cell.predictive for cell in self.cells),
            dtype=np.uint8,
            count=len(self.cells),
        )

    def output(self) -> bytes:
        """
        Output of the region for the current state, without advancing time.

        Cells are visited column by column in row-major order, and in index
        order within a column. Eight cells make one byte, the first cell
        in the least significant bit; the last byte is zero padded.
        """
        return np.packbits(self.output_bits(), bitorder="little").tobytes()

    # ------------------------------------------------------------------
    # Spatial pooling
    # ------------------------------------------------------------------

    def perform_spatial_pooling(self) -> List[Column]:
        """
        Compute the winning columns for the current input.

        1. compute the overlap with the current input for each column
        2. compute the winning columns after inhibition
        3. update synapse permanences and internal variables

        The third phase only runs while spatial learning is enabled.

        Returns:
            The winning columns, in row-major order
        """
        self.compute_overlap()
        active_columns = self.inhibit()
        if self.spatial_learning:
            self.spatial_learn(active_columns)
        return active_columns

    def compute_overlap(self) -> None:
        for column in self.columns:
            column.compute_overlap(self.min_overlap)

    def inhibit(self) -> List[Column]:
        """
        A column wins when its overlap is positive and at least the
        ``desired_local_activity``-th highest overlap of its neighbors.
        """
        thresholds = [
            self.kth_score(self.neighbors(column), self.desired_local_activity)
            for column in self.columns
        ]

        active_columns = []
        for column, min_local_activity in zip(self.columns, thresholds):
            column.active = (
                min_local_activity is not None
                and column.overlap > 0
                and column.overlap >= min_local_activity
            )
            if column.active:
                active_columns.append(column)
        return active_columns

    def spatial_learn(self, active_columns: List[Column]) -> None:
        """
        Learning phase of spatial pooling.

        Winning columns reinforce their connected potential synapses and
        weaken the others. Every column then updates its duty cycles and
        boost against a floor derived from its neighbors' duty cycles as
        they were before this pass. Finally the inhibition radius and the
        desired local activity are recomputed.
        """
        for column in active_columns:
            column.update_permanences()

        floors = [Column.min_duty_cycle(self.neighbors(column)) for column in self.columns]
        for column, floor in zip(self.columns, floors):
            column.learn(floor, self.min_overlap)

        self.inhibition_radius = self.average_receptive_field_size()
        self.desired_local_activity = self._local_activity()

    # ------------------------------------------------------------------
    # Temporal pooling
    # ------------------------------------------------------------------

    def perform_temporal_pooling(self, active_columns: List[Column]) -> None:
        """
        Compute the active and predictive state of every cell, then apply
        the queued segment updates.

        1. compute the active state of the cells of winning columns
        2. compute the predictive state of every cell
        3. apply or discard segment updates
        """
        self.compute_active_state(active_columns)
        self.compute_predictive_state()
        self.temporal_learn()

    def compute_active_state(self, active_columns: List[Column]) -> None:
        """
        Cells predicted through a sequence segment at t-1 become active.
        When no cell of a winning column was predicted, the whole column
        bursts. If no learning cell was chosen, the best matching cell of
        the previous step learns and proposes new synapses.
        """
        for column in active_columns:
            predicted = False
            chosen = False

            for cell in column:
                if not cell.was_predictive:
                    continue
                segment = cell.previous_active_segment(SynapseState.ACTIVE)
                if segment is None or not segment.sequence:
                    continue

                predicted = True
                cell.active = True
                if self.temporal_learning and segment.was_active(SynapseState.LEARNING):
                    chosen = True
                    cell.learning = True

            if not predicted:
                for cell in column:
                    cell.active = True

            if self.temporal_learning and not chosen:
                cell, segment = column.best_previous_matching_cell()
                cell.learning = True
                cell.build_segment_update(
                    self, column, segment,
                    new_synapses=True, previous_time_step=True, sequence=True,
                )

    def compute_predictive_state(self) -> None:
        """
        A cell becomes predictive when one of its distal segments is
        active. It then queues the reinforcement of that segment and of
        the segment that best matched the activity of the previous step.
        """
        for column in self.columns:
            for cell in column:
                for segment in list(cell.distal_segments):
                    if not segment.is_active(SynapseState.ACTIVE):
                        continue

                    cell.predictive = True
                    if not self.temporal_learning:
                        break

                    cell.build_segment_update(self, column, segment)
                    cell.build_segment_update(
                        self, column, cell.best_previous_matching_segment(),
                        new_synapses=True, previous_time_step=True,
                    )

    def temporal_learn(self) -> None:
        """
        Learning cells apply their updates positively; cells that stopped
        predicting apply them negatively. Applied queues are cleared, the
        others are kept until the cell learns or stops predicting.
        """
        for cell in self.cells:
            if not self.temporal_learning:
                cell.clear_updates()
            elif cell.learning:
                cell.adapt_segments(True)
            elif not cell.predictive and cell.was_predictive:
                cell.adapt_segments(False)

    def sample_learning_cells(
        self,
        count: int,
        column: Column,
        exclude: Set[CellRef],
        previous: bool = False,
    ) -> List[CellRef]:
        """
        Randomly choose up to ``count`` learning cells outside ``column``.

        Args:
            count: Maximum number of cells
            column: Column whose cells are not eligible
            exclude: Cells already connected, not eligible
            previous: Use the learning state of the previous step

        Returns:
            References to the chosen cells
        """
        if previous:
            learning = self._previous_learning_cells
        else:
            learning = [cell for cell in self.cells if cell.learning]

        first = column.index * self.config.cells_per_column
        last = first + self.config.cells_per_column

        pool = []
        for cell in learning:
            if first <= cell.index < last:
                continue
            ref = self.cell_ref(cell)
            if ref not in exclude:
                pool.append(ref)

        count = min(count, len(pool))
        if count <= 0:
            return []

        picks = self.rng.choice(len(pool), size=count, replace=False)
        return [pool[int(i)] for i in picks]

    def cell_ref(self, cell: Cell) -> CellRef:
        return CellRef(cell.index, self.cells)

    def __repr__(self) -> str:
        return (
            f"Region({self.width}x{self.height} columns, "
            f"{self.input_width}x{self.input_height} inputs, "
            f"iteration={self.iteration})"
        )
