"""
Bit packing convention used at the byte boundary of a region.

A frame of ``n`` bits takes ``ceil(n / 8)`` bytes. Bit ``i`` of the vector
is bit ``i % 8`` of byte ``i // 8``, least significant bit first, and the
last byte is zero padded. This is the same layout as
:meth:`Region.output`, so the output of one region can be fed as the input
of another region whose input size matches.
"""

import math
from typing import List, Sequence, Union

import numpy as np

Bits = Union[Sequence[int], np.ndarray]


def frame_size(bit_count: int) -> int:
    """Number of bytes holding ``bit_count`` bits."""
    return math.ceil(bit_count / 8)


def encode_bits(bits: Bits) -> bytes:
    """Pack a bit vector, any non-zero value counting as 1."""
    vector = (np.asarray(bits).reshape(-1) != 0).astype(np.uint8)
    return np.packbits(vector, bitorder="little").tobytes()


def decode_bits(payload: bytes, bit_count: int) -> np.ndarray:
    """
    Unpack one frame.

    Args:
        payload: Exactly ``frame_size(bit_count)`` bytes
        bit_count: Number of bits in the frame

    Returns:
        A uint8 vector of 0/1 values of length ``bit_count``

    Raises:
        ValueError: If the payload length does not match the frame size
    """
    expected = frame_size(bit_count)
    if len(payload) != expected:
        raise ValueError(f"Expected a frame of {expected} bytes, got {len(payload)}")

    raw = np.frombuffer(payload, dtype=np.uint8)
    return np.unpackbits(raw, bitorder="little")[:bit_count]


def decode_frames(payload: bytes, bit_count: int) -> List[np.ndarray]:
    """
    Split a payload into consecutive frames and unpack each of them.

    Raises:
        ValueError: If the payload is not a whole number of frames
    """
    size = frame_size(bit_count)
    if size == 0 or len(payload) % size:
        raise ValueError(
            f"Payload of {len(payload)} bytes is not a multiple of the "
            f"{size} bytes frame size"
        )
    return [
        decode_bits(payload[start:start + size], bit_count)
        for start in range(0, len(payload), size)
    ]
