"""Beurer BF480 body-composition scale protocol.

After a single 8-byte handshake (``10 00 00 ..``) the scale streams its
whole memory as 64 consecutive 128-byte frames. There is no count query
and no terminate command.

Each frame holds 64 big-endian 16-bit channels. Read as a 64 x 64 matrix
and transposed, row ``n`` holds slot ``n`` for every user, six channels per
user::

    row n: [u1 weight, u1 fat, u1 water, u1 muscles, u1 date, u1 time,
            u2 weight, ...,                                    u10 time, pad..]

A date channel of zero marks the end of a user's history.
"""

from __future__ import annotations

import logging
from enum import Enum

from ..transport.usb_connection import Connection
from ..utils.bytes import bytes_to_channels, transpose_square
from .commands import build_bf480_initialise
from .framing import read_validated

logger = logging.getLogger(__name__)

VENDOR_ID = 0x04D9
PRODUCT_ID = 0x8010
FRAME_SIZE = 128
READ_TIMEOUT_MS = 3000
MAX_NUMBER_OF_READINGS = 64


class State(Enum):
    IDLE = "idle"
    INITIALISED = "initialised"
    READING = "reading"
    DONE = "done"


class BodyScaleProtocol:
    """Command sequencing for one BF480 session over an open connection."""

    vendor_id = VENDOR_ID
    product_id = PRODUCT_ID
    frame_size = FRAME_SIZE
    timeout_ms = READ_TIMEOUT_MS

    def __init__(self, connection: Connection) -> None:
        self._conn = connection
        self._state = State.IDLE
        self._next_slot = 0

    @property
    def state(self) -> State:
        return self._state

    def initialise(self) -> None:
        """Send the handshake. The scale does not acknowledge it."""
        if self._state is not State.IDLE:
            raise RuntimeError(f"BF480 protocol is {self._state.value}, expected idle")
        self._conn.write(build_bf480_initialise())
        self._state = State.INITIALISED

    def count_readings(self) -> int:
        """The scale always sends its full memory."""
        return MAX_NUMBER_OF_READINGS

    def read_frame(self, slot: int) -> bytes:
        """Read the 128-byte frame for ``slot``.

        Frames arrive in order with no request in between, so slots must
        be read as 0, 1, ... 63. All-zero frames are valid (empty memory).
        """
        if self._state not in (State.INITIALISED, State.READING):
            raise RuntimeError(f"BF480 protocol is {self._state.value}, expected initialised")
        if slot != self._next_slot:
            raise RuntimeError(f"Expected BF480 slot {self._next_slot}, got {slot}")

        frame = read_validated(
            self._conn, self.frame_size, self.timeout_ms, reject_zero=False
        )
        self._next_slot += 1
        self._state = State.DONE if self._next_slot == MAX_NUMBER_OF_READINGS else State.READING
        return frame

    def read_all_frames(self) -> list[bytes]:
        """Read every slot, in order."""
        return [self.read_frame(slot) for slot in range(MAX_NUMBER_OF_READINGS)]

    def terminate(self) -> None:
        """Nothing to send; the scale ends the transfer by itself."""


def frames_to_rows(frames: list[bytes]) -> list[list[int]]:
    """Turn the 64 raw frames into channel-major rows.

    Each frame becomes 64 channels; the 64 x 64 matrix is then transposed
    so that ``rows[slot][offset]`` is one field of one user's reading.
    """
    matrix = [bytes_to_channels(frame) for frame in frames]
    rows = transpose_square(matrix)
    logger.debug("Decoded %d BF480 frames into %d rows", len(frames), len(rows))
    return rows
