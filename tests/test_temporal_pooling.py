"""
Tests for temporal pooling: bursting, segment growth and sequence prediction.

Every scenario uses the saturated 2x2 region, where an all-ones input makes
every column win on every tick.
"""

import numpy as np
import pytest

from cortical_learning import Region
from cortical_learning.core.dendrite_segment import DendriteSegment
from cortical_learning.core.synapse import Synapse

ONES = np.ones(16, dtype=np.uint8)


@pytest.fixture
def pooling_region(saturated_config):
    return Region(saturated_config, temporal_pooling=True)


def first_cells(region):
    return [column.cells[0] for column in region]


def assert_queues_empty(region):
    assert all(cell.pending_updates == [] for cell in region.cells)


def test_unpredicted_columns_burst(pooling_region):
    output = pooling_region.tick(ONES)

    assert output == b"\xff\xff"
    assert all(cell.active for cell in pooling_region.cells)
    assert_queues_empty(pooling_region)


def test_one_learning_cell_per_column(pooling_region):
    pooling_region.tick(ONES)

    for column in pooling_region:
        assert [cell.learning for cell in column] == [True, False, False, False]


def test_first_tick_grows_no_segment(pooling_region):
    pooling_region.tick(ONES)

    assert all(len(cell) == 0 for cell in pooling_region.cells)


def test_segments_grow_towards_previous_learning_cells(pooling_region):
    pooling_region.tick(ONES)
    pooling_region.tick(ONES)

    for column in pooling_region:
        learner = column.cells[0]
        assert len(learner) == 1

        segment = learner.distal_segments[0]
        assert segment.sequence
        assert len(segment) == 3

        sources = {ref.index for ref in segment.sources()}
        others = {cell.index for cell in first_cells(pooling_region)} - {learner.index}
        assert sources == others

        assert all(len(cell) == 0 for cell in column.cells[1:])
    assert_queues_empty(pooling_region)


def test_learned_sequence_stops_bursting(pooling_region):
    outputs = [pooling_region.tick(ONES) for _ in range(5)]

    assert outputs[:3] == [b"\xff\xff"] * 3
    assert outputs[3:] == [b"\x11\x11"] * 2

    for column in pooling_region:
        assert column.cells[0].active and column.cells[0].predictive
        assert not any(cell.active for cell in column.cells[1:])


def test_reinforced_synapses_gain_permanence(pooling_region):
    for _ in range(3):
        pooling_region.tick(ONES)
    before = [
        synapse.permanence
        for cell in first_cells(pooling_region)
        for synapse in cell.distal_segments[0]
    ]

    pooling_region.tick(ONES)

    after = [
        synapse.permanence
        for cell in first_cells(pooling_region)
        for synapse in cell.distal_segments[0]
    ]
    assert all(new > old for old, new in zip(before, after))


def test_without_temporal_learning_columns_keep_bursting(saturated_config):
    region = Region(saturated_config, temporal_pooling=True, temporal_learning=False)

    for _ in range(4):
        assert region.tick(ONES) == b"\xff\xff"

    assert all(len(cell) == 0 for cell in region.cells)
    assert not any(cell.learning for cell in region.cells)
    assert_queues_empty(region)


def test_silent_input_resets_activity(pooling_region):
    for _ in range(4):
        pooling_region.tick(ONES)
    before = [
        synapse.permanence
        for cell in first_cells(pooling_region)
        for synapse in cell.distal_segments[0]
    ]

    output = pooling_region.tick(np.zeros(16, dtype=np.uint8))

    assert pooling_region.active_columns == []
    assert not any(cell.active for cell in pooling_region.cells)
    assert len(output) == 2
    assert_queues_empty(pooling_region)
    # The last updates were applied while learning, nothing is left to weaken.
    assert [
        synapse.permanence
        for cell in first_cells(pooling_region)
        for synapse in cell.distal_segments[0]
    ] == before


def test_cells_that_stop_predicting_weaken_their_segment(pooling_region):
    config = pooling_region.config
    watcher = pooling_region.cells[1]
    segment = DendriteSegment(config)
    for source in (pooling_region.cells[4], pooling_region.cells[8]):
        segment.add(Synapse(pooling_region.cell_ref(source), config, 0.5))
    watcher.distal_segments.append(segment)

    pooling_region.tick(ONES)

    assert watcher.predictive and not watcher.learning
    assert len(watcher.pending_updates) == 2
    assert [synapse.permanence for synapse in segment] == [0.5, 0.5]

    pooling_region.tick(np.zeros(16, dtype=np.uint8))

    assert not watcher.predictive and watcher.was_predictive
    decrement = config.synapse_permanence_decrement
    assert [synapse.permanence for synapse in segment] == [
        pytest.approx(0.5 - decrement), pytest.approx(0.5 - decrement)
    ]
    assert len(segment) == 2
    assert watcher.pending_updates == []


def test_segments_never_hold_duplicate_sources():
    region = Region(
        column_width=4,
        column_height=4,
        input_width=8,
        input_height=8,
        cells_per_column=2,
        segment_activation_threshold=1,
        segment_min_threshold=1,
        new_synapse_count=8,
        temporal_pooling=True,
        seed=3,
    )
    patterns = (np.random.default_rng(3).random((3, 64)) < 0.3).astype(np.uint8)

    for tick in range(60):
        region.tick(patterns[tick % 3])

    segments = [segment for cell in region.cells for segment in cell]
    assert segments
    for segment in segments:
        indexes = [ref.index for ref in segment.sources()]
        assert len(indexes) == len(set(indexes))
