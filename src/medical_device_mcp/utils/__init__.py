"""Low-level helpers shared by the protocol layer."""

from .bytes import (
    unsigned_byte,
    merge_byte_pair,
    bytes_to_channels,
    transpose_square,
)
