"""
Feed-forward input bits seen as synapse sources.

An :class:`InputCell` is a read-only view over one offset of the region's
:class:`InputBuffer`. It never reports a learning state.
"""

from typing import Optional, Sequence, Union

import numpy as np

from .geometry import Point
from .state import SourceKind


class InputBuffer:
    """Double-buffered input bit vectors owned by a region."""

    def __init__(self, size: int):
        self.size = size
        self.current = np.zeros(size, dtype=np.uint8)
        self.previous = np.zeros(size, dtype=np.uint8)

    def coerce(self, bits: Union[Sequence[int], np.ndarray]) -> np.ndarray:
        """
        Convert ``bits`` to a flat 0/1 vector of the buffer size.

        Raises:
            ValueError: If the number of bits differs from the buffer size
        """
        vector = np.asarray(bits).reshape(-1)
        if vector.size != self.size:
            raise ValueError(
                f"Expected {self.size} input bits, got {vector.size}"
            )
        return (vector != 0).astype(np.uint8)

    def install(self, bits: Union[Sequence[int], np.ndarray]) -> None:
        """Make ``bits`` the current input, shifting the former one to previous."""
        vector = self.coerce(bits)
        self.previous = self.current
        self.current = vector


class InputCell:
    """A single input bit connected to a proximal dendrite segment."""

    __slots__ = ("x", "y", "offset", "buffer")

    kind = SourceKind.INPUT

    def __init__(self, x: int, y: int, offset: int, buffer: Optional[InputBuffer]):
        self.x = x
        self.y = y
        self.offset = offset
        self.buffer = buffer

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)

    @property
    def active(self) -> bool:
        return bool(self.buffer.current[self.offset])

    @property
    def was_active(self) -> bool:
        return bool(self.buffer.previous[self.offset])

    @property
    def learning(self) -> bool:
        return False

    @property
    def was_learning(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"InputCell(x={self.x}, y={self.y}, offset={self.offset})"
