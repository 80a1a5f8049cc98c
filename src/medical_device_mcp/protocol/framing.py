"""Command frame padding and response validation.

Both devices take fixed 8-byte command frames: the command bytes followed
by a device-specific fill byte::

    BM55:   A3 05 F4 F4 F4 F4 F4 F4
    BF480:  10 00 00 00 00 00 00 00

Responses are fixed-size too (8 bytes for the BM55, 128 for the BF480).
A BM55 response that is still all zeros means the device never answered.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import DeviceConnectionError
from ..transport.usb_connection import Connection

COMMAND_FRAME_SIZE = 8


@dataclass(frozen=True)
class FrameFormat:
    """Length and fill byte of the frames sent to a device."""

    length: int = COMMAND_FRAME_SIZE
    fill_byte: int = 0x00

    def pad(self, payload: bytes) -> bytes:
        return pad_frame(payload, self.length, self.fill_byte)


BM55_COMMAND_FORMAT = FrameFormat(length=COMMAND_FRAME_SIZE, fill_byte=0xF4)
BF480_COMMAND_FORMAT = FrameFormat(length=COMMAND_FRAME_SIZE, fill_byte=0x00)


def pad_frame(payload: bytes, length: int, fill_byte: int) -> bytes:
    """Pad ``payload`` with ``fill_byte`` to exactly ``length`` bytes.

    e.g. ``pad_frame(b"\\x10\\x20", 8, 0xFF)`` gives
    ``10 20 FF FF FF FF FF FF``.

    Raises:
        ValueError: If the payload is longer than ``length`` or the fill
            byte is not 0-255.
    """
    if len(payload) > length:
        raise ValueError(
            f"Payload of {len(payload)} bytes does not fit in a {length}-byte frame"
        )
    if not 0 <= fill_byte <= 255:
        raise ValueError(f"Fill byte must be 0-255, got {fill_byte}")
    return bytes(payload) + bytes([fill_byte]) * (length - len(payload))


def is_zero_frame(data: bytes) -> bool:
    """True if every byte of ``data`` is zero."""
    return not any(data)


def read_validated(
    connection: Connection,
    length: int,
    timeout_ms: int,
    reject_zero: bool = True,
) -> bytes:
    """Read one fixed-size response frame from the device.

    Args:
        connection: An open connection.
        length: Expected response size in bytes.
        timeout_ms: Read timeout.
        reject_zero: Treat an all-zero response as "device did not respond".

    Raises:
        DeviceConnectionError: On a transfer error or timeout, a short read,
            or (with ``reject_zero``) an all-zero response.
    """
    data = connection.read(length, timeout_ms)
    if data is None:
        raise DeviceConnectionError(
            f"No response within {timeout_ms} ms. "
            f"Unplug and then replug the device and press download"
        )
    if len(data) != length:
        raise DeviceConnectionError(
            f"Short read: expected {length} bytes, got {len(data)}"
        )
    if reject_zero and is_zero_frame(data):
        raise DeviceConnectionError(
            "Device returned an empty frame. "
            "Unplug and then replug the device and press download"
        )
    return data
