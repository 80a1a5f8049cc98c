"""Byte and bit helpers for decoding raw device buffers.

The devices report values as signed or unsigned 8-bit bytes and as
big-endian 16-bit "channels" built from adjacent byte pairs.
"""

from __future__ import annotations

from collections.abc import Sequence


def unsigned_byte(b: int) -> int:
    """Map a signed 8-bit value (-128..127) to its 0-255 interpretation.

    Values that are already unsigned (0-255) are returned unchanged.
    """
    if not -128 <= b <= 255:
        raise ValueError(f"Byte value must be -128..255, got {b}")
    return b + 256 if b < 0 else b


def merge_byte_pair(b1: int, b2: int) -> int:
    """Merge two bytes into a big-endian 16-bit value.

    e.g. ``merge_byte_pair(2, 137) == 2 * 256 + 137 == 649``
    """
    return unsigned_byte(b1) * 256 + unsigned_byte(b2)


def bytes_to_channels(frame: Sequence[int]) -> list[int]:
    """Convert a frame into 16-bit channels, one per consecutive byte pair.

    ``[W0hi, W0lo, W1hi, W1lo, ...]`` becomes ``[W0, W1, ...]``.
    """
    if len(frame) % 2:
        raise ValueError(f"Frame length must be even, got {len(frame)}")
    return [
        merge_byte_pair(frame[i], frame[i + 1])
        for i in range(0, len(frame), 2)
    ]


def transpose_square(matrix: Sequence[Sequence[int]]) -> list[list[int]]:
    """Transpose an N x N matrix so that ``out[c][r] == matrix[r][c]``."""
    size = len(matrix)
    for row in matrix:
        if len(row) != size:
            raise ValueError(
                f"Matrix must be square: {size} rows but a row has {len(row)} columns"
            )
    return [list(column) for column in zip(*matrix)]
