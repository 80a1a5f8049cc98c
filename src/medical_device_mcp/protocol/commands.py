"""Command bytes and command frame builders for both devices."""

from __future__ import annotations

from enum import IntEnum

from .framing import BM55_COMMAND_FORMAT, BF480_COMMAND_FORMAT


class BM55Command(IntEnum):
    """Blood-pressure monitor command bytes."""

    INITIALISE = 0xAA
    COUNT_READINGS = 0xA2
    READ_MEASUREMENT = 0xA3
    TERMINATE = 0xF7


class BF480Command(IntEnum):
    """Body scale command bytes."""

    INITIALISE = 0x10


def build_bm55_command(command: BM55Command, payload: bytes = b"") -> bytes:
    """Build an 8-byte BM55 command frame (0xF4 fill)."""
    return BM55_COMMAND_FORMAT.pad(bytes([command]) + payload)


def build_bm55_initialise() -> bytes:
    return build_bm55_command(BM55Command.INITIALISE)


def build_bm55_count_readings() -> bytes:
    return build_bm55_command(BM55Command.COUNT_READINGS)


def build_bm55_read_measurement(index: int) -> bytes:
    """Build the request for one stored measurement.

    Args:
        index: 1-based storage counter, sent as a single byte.
    """
    if not 0 <= index <= 255:
        raise ValueError(f"Measurement index must be 0-255, got {index}")
    return build_bm55_command(BM55Command.READ_MEASUREMENT, bytes([index]))


def build_bm55_terminate() -> bytes:
    return build_bm55_command(BM55Command.TERMINATE)


def build_bf480_initialise() -> bytes:
    """Build the BF480 handshake frame (0x00 fill)."""
    return BF480_COMMAND_FORMAT.pad(bytes([BF480Command.INITIALISE]))
