"""
Geometry helpers for reasoning about column and input positions.
"""

import math
from typing import Iterator, NamedTuple, Tuple


class Point(NamedTuple):
    """Immutable 2-D integer coordinate."""

    x: int
    y: int

    def through(self, other: "Point") -> Iterator[Tuple[int, int]]:
        """
        Iterate over every coordinate of the rectangle spanned by ``self``
        and ``other``, both corners included.

        Args:
            other: Opposite corner, expected to be greater or equal on both axes

        Yields:
            (x, y) pairs, x major
        """
        for i in range(self.x, other.x + 1):
            for j in range(self.y, other.y + 1):
                yield i, j

    def distance_to(self, other: "Point") -> float:
        """Euclidean distance between two points."""
        return math.hypot(other.x - self.x, other.y - self.y)

    distance_from = distance_to


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))
