"""Beurer BM55 blood-pressure monitor protocol.

Session::

    host                         device
     | -- AA F4 F4 .. (init) ----> |
     | <------------- 8 B ack ---- |
     | -- A2 F4 F4 .. (count) ---> |
     | <------------- count, .. -- |
     | -- A3 nn F4 .. (read nn) -> |   nn = 1 .. count-1
     | <------------- 8 B frame -- |
     | -- F7 F4 F4 .. (done) ----> |
     | <------------- (maybe) ---- |

Every response is 8 bytes; an all-zero response means the device did
not answer.
"""

from __future__ import annotations

import logging
from enum import Enum

from ..errors import DeviceConnectionError
from ..transport.usb_connection import Connection
from .commands import (
    build_bm55_count_readings,
    build_bm55_initialise,
    build_bm55_read_measurement,
    build_bm55_terminate,
)
from .framing import read_validated

logger = logging.getLogger(__name__)

VENDOR_ID = 0x0C45
PRODUCT_ID = 0x7406
FRAME_SIZE = 8
READ_TIMEOUT_MS = 500


class State(Enum):
    IDLE = "idle"
    INITIALISED = "initialised"
    COUNTED = "counted"
    READING = "reading"
    TERMINATED = "terminated"


class BloodPressureProtocol:
    """Command sequencing for one BM55 session over an open connection."""

    vendor_id = VENDOR_ID
    product_id = PRODUCT_ID
    frame_size = FRAME_SIZE
    timeout_ms = READ_TIMEOUT_MS

    def __init__(self, connection: Connection) -> None:
        self._conn = connection
        self._state = State.IDLE
        self._count: int | None = None

    @property
    def state(self) -> State:
        return self._state

    def _require(self, *states: State) -> None:
        if self._state not in states:
            raise RuntimeError(
                f"BM55 protocol is {self._state.value}, expected one of "
                f"{[s.value for s in states]}"
            )

    def _read(self) -> bytes:
        return read_validated(self._conn, self.frame_size, self.timeout_ms)

    def initialise(self) -> None:
        """Send the handshake and discard the acknowledgement."""
        self._require(State.IDLE)
        self._conn.write(build_bm55_initialise())
        self._read()
        self._state = State.INITIALISED

    def count_readings(self) -> int:
        """Number of stored readings across both users."""
        self._require(State.INITIALISED)
        self._conn.write(build_bm55_count_readings())
        self._count = self._read()[0]
        self._state = State.COUNTED
        logger.debug("BM55 reports %d stored readings", self._count)
        return self._count

    def reading_indices(self) -> range:
        """Storage counters to request after :meth:`count_readings`.

        Starts at 1 and stops before the reported count, so the device's
        first slot is never requested.
        """
        if self._count is None:
            raise RuntimeError("count_readings() has not been called")
        return range(1, self._count)

    def read_frame(self, index: int) -> bytes:
        """Request and return the raw 8-byte frame for storage counter ``index``."""
        self._require(State.COUNTED, State.READING)
        self._conn.write(build_bm55_read_measurement(index))
        frame = self._read()
        self._state = State.READING
        return frame

    def terminate(self) -> None:
        """End the session. The closing response is optional.

        A second call is a no-op.
        """
        if self._state is State.TERMINATED:
            return
        self._require(State.INITIALISED, State.COUNTED, State.READING)
        self._conn.write(build_bm55_terminate())
        self._state = State.TERMINATED
        try:
            self._read()
        except DeviceConnectionError as e:
            logger.debug("Ignoring missing BM55 terminate response: %s", e)
