"""
Tests for cells: state rotation, segment selection and adaptation.
"""

import pytest

from cortical_learning import RegionConfig
from cortical_learning.core.cell import Cell
from cortical_learning.core.dendrite_segment import SegmentUpdate
from cortical_learning.core.state import SynapseState
from cortical_learning.core.synapse import CellRef

from conftest import build_segment


@pytest.fixture
def cell_config():
    return RegionConfig(segment_activation_threshold=2, segment_min_threshold=1)


@pytest.fixture
def cell(cell_config, arena):
    return Cell(7, cell_config)


def attach(cell, config, arena, specs, sequence=False):
    segment = build_segment(config, arena, specs, sequence=sequence)
    cell.distal_segments.append(segment)
    return segment


def test_initial_state(cell):
    assert not (cell.active or cell.predictive or cell.learning)
    assert not (cell.was_active or cell.was_predictive or cell.was_learning)
    assert len(cell) == 0
    assert cell.pending_updates == []


def test_rotate_shifts_states(cell):
    cell.active = True
    cell.learning = True

    cell.rotate()

    assert cell.was_active and cell.was_learning and not cell.was_predictive
    assert not (cell.active or cell.predictive or cell.learning)

    cell.rotate()
    assert not (cell.was_active or cell.was_learning)


def test_create_segment(cell, arena):
    segment = cell.create_segment([CellRef(1, arena), CellRef(2, arena)], sequence=True)

    assert list(cell) == [segment]
    assert segment.sequence
    assert [s.permanence for s in segment] == [0.3, 0.3]


def test_best_matching_segment(cell, cell_config, arena):
    assert cell.best_matching_segment() is None

    weak = attach(cell, cell_config, arena, [(0, 0.0), (4, 0.0)])
    strong = attach(cell, cell_config, arena, [(0, 0.0), (1, 0.0), (2, 0.0)])
    assert cell.best_matching_segment() is None

    for index in (0, 1, 2):
        arena[index].active = True

    assert weak.is_aggressively_active()
    assert cell.best_matching_segment() is strong


def test_best_previous_matching_segment(cell, cell_config, arena):
    segment = attach(cell, cell_config, arena, [(0, 0.0)])
    arena[0].active = True
    assert cell.best_previous_matching_segment() is None

    arena[0].rotate()
    assert cell.best_previous_matching_segment() is segment
    assert cell.best_matching_segment() is None


def test_active_segment_prefers_sequence_segments(cell, cell_config, arena):
    plain = attach(cell, cell_config, arena, [(0, 0.5), (1, 0.5), (2, 0.5)])
    sequence = attach(cell, cell_config, arena, [(0, 0.5), (1, 0.5)], sequence=True)
    for index in (0, 1, 2):
        arena[index].active = True

    assert cell.active_segment(SynapseState.ACTIVE) is sequence

    sequence.sequence = False
    assert cell.active_segment(SynapseState.ACTIVE) is plain


def test_active_segment_none_or_single(cell, cell_config, arena):
    assert cell.active_segment() is None

    segment = attach(cell, cell_config, arena, [(0, 0.5), (1, 0.5)])
    for index in (0, 1):
        arena[index].active = True

    assert cell.active_segment() is segment


def test_previous_active_segment(cell, cell_config, arena):
    segment = attach(cell, cell_config, arena, [(0, 0.5), (1, 0.5)], sequence=True)
    for index in (0, 1):
        arena[index].active = True

    for other in arena:
        other.rotate()
    cell.rotate()

    assert cell.active_segment() is None
    assert cell.previous_active_segment() is segment


def test_positive_adaptation(cell, cell_config, arena):
    segment = attach(cell, cell_config, arena, [(0, 0.5), (1, 0.5)])
    first, second = segment.synapses
    cell.pending_updates.append(
        SegmentUpdate(segment, [first], [CellRef(3, arena)], sequence=True)
    )

    cell.adapt_segments(True)

    assert first.permanence == pytest.approx(0.515)
    assert second.permanence == pytest.approx(0.495)
    assert len(segment) == 3
    assert segment.synapses[-1].source == CellRef(3, arena)
    assert segment.synapses[-1].permanence == 0.3
    assert segment.sequence
    assert cell.pending_updates == []


def test_positive_adaptation_creates_segment(cell, arena):
    cell.pending_updates.append(
        SegmentUpdate(None, [], [CellRef(1, arena), CellRef(2, arena)], sequence=True)
    )

    cell.adapt_segments(True)

    assert len(cell) == 1
    assert len(cell.distal_segments[0]) == 2
    assert cell.distal_segments[0].sequence


def test_update_without_candidates_creates_nothing(cell):
    cell.pending_updates.append(SegmentUpdate(None))

    cell.adapt_segments(True)

    assert len(cell) == 0


def test_negative_adaptation(cell, cell_config, arena):
    segment = attach(cell, cell_config, arena, [(0, 0.5), (1, 0.5)])
    first, second = segment.synapses
    cell.pending_updates.append(SegmentUpdate(segment, [first], [CellRef(3, arena)]))
    cell.pending_updates.append(SegmentUpdate(None, [], [CellRef(4, arena)]))

    cell.adapt_segments(False)

    assert first.permanence == pytest.approx(0.495)
    assert second.permanence == 0.5
    assert len(segment) == 2
    assert len(cell) == 1
    assert cell.pending_updates == []


def test_clear_updates(cell):
    cell.pending_updates.append(SegmentUpdate(None))

    cell.clear_updates()

    assert cell.pending_updates == []


def test_positive_adaptation_skips_known_sources(cell, cell_config, arena):
    segment = attach(cell, cell_config, arena, [(0, 0.5)])
    cell.pending_updates.append(
        SegmentUpdate(segment, [], [CellRef(0, arena), CellRef(1, arena)])
    )
    cell.pending_updates.append(
        SegmentUpdate(segment, [], [CellRef(1, arena), CellRef(2, arena)])
    )

    cell.adapt_segments(True)

    assert [synapse.source.index for synapse in segment] == [0, 1, 2]
