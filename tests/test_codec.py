"""
Tests for the bit packing convention.
"""

import numpy as np
import pytest

from cortical_learning import Region
from cortical_learning.network.codec import decode_bits, decode_frames, encode_bits, frame_size


@pytest.mark.parametrize("bits, size", [(0, 0), (1, 1), (8, 1), (9, 2), (64, 8)])
def test_frame_size(bits, size):
    assert frame_size(bits) == size


def test_encode_is_lsb_first_and_padded():
    assert encode_bits([1, 0, 0, 0, 0, 0, 0, 0, 1]) == b"\x01\x01"
    assert encode_bits([0, 0, 0, 0, 0, 0, 0, 1]) == b"\x80"
    assert encode_bits([0, 5, 0]) == b"\x02"


def test_decode_truncates_padding():
    assert decode_bits(b"\x05", 3).tolist() == [1, 0, 1]
    assert decode_bits(b"\xff\x01", 9).tolist() == [1] * 9


def test_decode_inverts_encode():
    bits = np.random.default_rng(4).integers(0, 2, size=37)

    assert decode_bits(encode_bits(bits), 37).tolist() == bits.tolist()


def test_decode_rejects_wrong_length():
    with pytest.raises(ValueError):
        decode_bits(b"\x00", 9)


def test_decode_frames():
    frames = decode_frames(b"\x01\x00\x02\x00", 16)

    assert len(frames) == 2
    assert frames[0][0] == 1
    assert frames[1][1] == 1
    assert decode_frames(b"", 16) == []


def test_decode_frames_rejects_partial_frames():
    with pytest.raises(ValueError):
        decode_frames(b"\x01\x00\x02", 16)


def test_region_output_uses_the_same_layout(region):
    region.cells[3].active = True
    region.cells[17].predictive = True

    assert encode_bits(region.output_bits()) == region.output()
    decoded = decode_bits(region.output(), len(region.cells))
    assert np.flatnonzero(decoded).tolist() == [3, 17]


def test_region_output_feeds_a_parent_region(saturated_config):
    child = Region(saturated_config, temporal_pooling=True)
    parent = Region(column_width=2, column_height=2, input_width=4, input_height=4, seed=3)

    output = child.tick(np.ones(16, dtype=np.uint8))
    parent.tick(decode_bits(output, parent.input_size))

    assert parent.current_input.tolist() == [1] * 16
