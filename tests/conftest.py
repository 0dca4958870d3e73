"""
Shared fixtures for the Cortical Learning Algorithm tests.
"""

import logging
from typing import List, Sequence, Tuple

import pytest

from cortical_learning import Region, RegionConfig
from cortical_learning.core.cell import Cell
from cortical_learning.core.dendrite_segment import DendriteSegment
from cortical_learning.core.synapse import CellRef, Synapse


@pytest.fixture
def config() -> RegionConfig:
    """Small configuration with low segment thresholds."""
    return RegionConfig(
        column_width=4,
        column_height=4,
        input_width=8,
        input_height=8,
        cells_per_column=4,
        segment_activation_threshold=2,
        segment_min_threshold=1,
        seed=1,
    )


@pytest.fixture
def region(config: RegionConfig) -> Region:
    return Region(config)


@pytest.fixture
def saturated_config() -> RegionConfig:
    """
    2x2 columns over a 4x4 input where every column is wired to every input
    and every synapse is connected, so an all-ones input makes every column
    win.
    """
    return RegionConfig(
        column_width=2,
        column_height=2,
        input_width=4,
        input_height=4,
        cells_per_column=4,
        synapses_per_segment=1.0,
        synapse_permanence_threshold=0.0,
        segment_activation_threshold=2,
        segment_min_threshold=1,
        new_synapse_count=5,
        seed=0,
    )


@pytest.fixture
def arena() -> List[Cell]:
    """Free-standing cell arena for synapse and segment tests."""
    config = RegionConfig(segment_activation_threshold=2, segment_min_threshold=1)
    return [Cell(i, config) for i in range(8)]


def build_segment(
    config: RegionConfig,
    arena: List[Cell],
    specs: Sequence[Tuple[int, float]],
    sequence: bool = False,
) -> DendriteSegment:
    """Segment with one synapse per ``(cell_index, permanence)`` pair."""
    segment = DendriteSegment(config, sequence=sequence)
    for index, permanence in specs:
        segment.add(Synapse(CellRef(index, arena), config, permanence))
    return segment


@pytest.fixture
def restore_logging():
    """Restore root logging handlers replaced by setup_logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
