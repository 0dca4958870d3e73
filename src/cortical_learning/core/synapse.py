"""
Synapse Module for the Cortical Learning Algorithm.

A synapse carries a permanence value in [0, 1] and points to one of two
kinds of sources: an input bit (:class:`InputCell`) or another cell of the
region, referenced by its index in the region's cell arena
(:class:`CellRef`). Whether a synapse is connected depends on the region
wide permanence threshold held by the shared :class:`RegionConfig`.
"""

import logging
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

from ..configs.schema import RegionConfig
from .input_cell import InputCell
from .state import SourceKind, SynapseState

if TYPE_CHECKING:
    from .cell import Cell

logger = logging.getLogger(__name__)


class CellRef:
    """Reference to a cell by index into the region's cell arena."""

    __slots__ = ("index", "arena")

    kind = SourceKind.CELL

    def __init__(self, index: int, arena: List["Cell"]):
        self.index = index
        self.arena = arena

    @property
    def cell(self) -> "Cell":
        return self.arena[self.index]

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, CellRef)
            and other.index == self.index
            and other.arena is self.arena
        )

    def __hash__(self) -> int:
        return hash((self.index, id(self.arena)))

    def __repr__(self) -> str:
        return f"CellRef({self.index})"


SynapseSource = Union[InputCell, CellRef]


class Synapse:
    """
    Connection from a dendrite segment to a synapse source.

    Attributes:
        source: The input bit or cell the synapse listens to
        config: Shared region configuration holding permanence constants
        was_connected: Connection state captured at the start of the tick
    """

    __slots__ = ("source", "config", "_permanence", "was_connected")

    def __init__(
        self,
        source: SynapseSource,
        config: RegionConfig,
        permanence: Optional[float] = None,
    ):
        self.source = source
        self.config = config

        if permanence is None or not 0.0 <= permanence <= 1.0:
            permanence = config.synapse_initial_permanence
        self._permanence = float(permanence)

        self.was_connected = False

    @property
    def permanence(self) -> float:
        return self._permanence

    @permanence.setter
    def permanence(self, value: float) -> None:
        # Out of range assignments are ignored.
        if 0.0 <= value <= 1.0:
            self._permanence = float(value)

    @property
    def connected(self) -> bool:
        """True when the permanence reaches the region threshold."""
        return self._permanence >= self.config.synapse_permanence_threshold

    def rotate(self) -> None:
        """Snapshot the connection state before a new input is installed."""
        self.was_connected = self.connected

    def _source_states(self, previous: bool) -> Tuple[bool, bool]:
        """Return the (active, learning) pair of the source at t or t-1."""
        source = self.source
        if source.kind is SourceKind.INPUT:
            bits = source.buffer.previous if previous else source.buffer.current
            return bool(bits[source.offset]), False

        cell = source.arena[source.index]
        if previous:
            return cell.was_active, cell.was_learning
        return cell.active, cell.learning

    @staticmethod
    def _matches(state: SynapseState, active: bool, learning: bool) -> bool:
        if state == SynapseState.ACTIVE:
            return active
        if state == SynapseState.LEARNING:
            return active and learning
        return False

    def source_active(self, state: SynapseState = SynapseState.ACTIVE) -> bool:
        """Whether the source is in ``state`` now, regardless of permanence."""
        return self._matches(state, *self._source_states(previous=False))

    def source_was_active(self, state: SynapseState = SynapseState.ACTIVE) -> bool:
        """Whether the source was in ``state`` at the previous time step."""
        return self._matches(state, *self._source_states(previous=True))

    def is_active(self, state: SynapseState = SynapseState.ACTIVE) -> bool:
        """Connected and the source is in ``state``."""
        return self.connected and self.source_active(state)

    def was_active(self, state: SynapseState = SynapseState.ACTIVE) -> bool:
        """Was connected and the source was in ``state`` at t-1."""
        return self.was_connected and self.source_was_active(state)

    def increase_permanence(self, amount: Optional[float] = None) -> float:
        """Increase permanence, by the configured increment by default, capped at 1."""
        if amount is None:
            amount = self.config.synapse_permanence_increment
        self._permanence = min(1.0, self._permanence + amount)
        return self._permanence

    def decrease_permanence(self, amount: Optional[float] = None) -> float:
        """Decrease permanence, by the configured decrement by default, floored at 0."""
        if amount is None:
            amount = self.config.synapse_permanence_decrement
        self._permanence = max(0.0, self._permanence - amount)
        return self._permanence

    def update_permanence(self) -> float:
        """Increase the permanence of a connected synapse, decrease it otherwise."""
        if self.connected:
            return self.increase_permanence()
        return self.decrease_permanence()

    @property
    def input_x(self) -> int:
        """Input column of a feed-forward synapse, 0 for distal synapses."""
        return self.source.x if self.source.kind is SourceKind.INPUT else 0

    @property
    def input_y(self) -> int:
        """Input row of a feed-forward synapse, 0 for distal synapses."""
        return self.source.y if self.source.kind is SourceKind.INPUT else 0

    def __repr__(self) -> str:
        return f"Synapse({self.source!r}, permanence={self._permanence:.3f})"
