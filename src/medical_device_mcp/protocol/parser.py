"""Decoding of raw device frames into measurement records.

BM55 measurement frame (8 bytes)::

    +-----+-----+-------+-----------+----------+------+--------+-----------+
    | 0   | 1   | 2     | 3         | 4        | 5    | 6      | 7         |
    | sys | dia | pulse | R | month | U | day  | hour | minute | A | year  |
    +-----+-----+-------+-----------+----------+------+--------+-----------+

- sys/dia are stored minus 25 (mod 256)
- R: resting indicator, U: user B when set, A: arrhythmia (high bits)
- year is an offset from 2000

BF480 reading (six 16-bit channels starting at the user's offset)::

    weight, body fat, water, muscles  (tenths)
    date: yyyyyyym mmmddddd  (year offset from 1920)
    time: hhhhhhhh mmmmmmmm
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from ..errors import MalformedMeasurementError
from ..models.measurement import (
    BloodPressureMeasurement,
    BloodPressureUser,
    BodyCompositionMeasurement,
)

BM55_FRAME_SIZE = 8
BM55_PRESSURE_OFFSET = 25
BM55_BASE_YEAR = 2000

BF480_FIELDS_PER_USER = 6
BF480_BASE_YEAR = 1920
BF480_MAX_USERS = 10

HIGH_BIT = 0x80


def to_utc(year: int, month: int, day: int, hour: int, minute: int) -> datetime:
    """Build a UTC timestamp, rejecting impossible dates and times."""
    try:
        return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)
    except ValueError as e:
        raise MalformedMeasurementError(
            f"Invalid timestamp {year:04d}-{month:02d}-{day:02d} "
            f"{hour:02d}:{minute:02d}: {e}"
        ) from e


def parse_bm55_measurement(frame: bytes) -> BloodPressureMeasurement:
    """Decode one 8-byte BM55 measurement frame.

    Raises:
        MalformedMeasurementError: If the frame has the wrong size or the
            timestamp is not a valid date/time.
    """
    if len(frame) != BM55_FRAME_SIZE:
        raise MalformedMeasurementError(
            f"BM55 frame must be {BM55_FRAME_SIZE} bytes, got {len(frame)}"
        )

    systolic = (frame[0] + BM55_PRESSURE_OFFSET) & 0xFF
    diastolic = (frame[1] + BM55_PRESSURE_OFFSET) & 0xFF
    pulse_rate = frame[2]

    resting = bool(frame[3] & HIGH_BIT)
    month = frame[3] & 0x7F

    user = BloodPressureUser.B if frame[4] & HIGH_BIT else BloodPressureUser.A
    day = frame[4] & 0x7F

    hour = frame[5]
    minute = frame[6]

    arrhythmia = bool(frame[7] & HIGH_BIT)
    year = BM55_BASE_YEAR + (frame[7] & 0x7F)

    return BloodPressureMeasurement(
        systolic=systolic,
        diastolic=diastolic,
        pulse_rate=pulse_rate,
        resting_indicator=resting,
        arrhythmia=arrhythmia,
        user=user,
        measured_time=to_utc(year, month, day, hour, minute),
    )


def bf480_user_offset(user: int) -> int:
    """Channel offset of a BF480 user (1-10) within a channel-major row."""
    if not 1 <= user <= BF480_MAX_USERS:
        raise ValueError(f"BF480 user must be 1-{BF480_MAX_USERS}, got {user}")
    return (user - 1) * BF480_FIELDS_PER_USER


def bf480_has_reading(channels: Sequence[int], offset: int) -> bool:
    """False once the date channel is zero: no reading here or after."""
    return channels[offset + 4] != 0


def parse_bf480_measurement(
    channels: Sequence[int], offset: int
) -> BodyCompositionMeasurement:
    """Decode one BF480 reading from a channel-major row.

    Args:
        channels: One row of the transposed channel matrix.
        offset: The user's channel offset (see :func:`bf480_user_offset`).

    Raises:
        MalformedMeasurementError: If the row is too short or the timestamp
            is not a valid date/time.
    """
    if offset < 0 or len(channels) < offset + BF480_FIELDS_PER_USER:
        raise MalformedMeasurementError(
            f"Row of {len(channels)} channels has no reading at offset {offset}"
        )

    date_code = channels[offset + 4]
    time_code = channels[offset + 5]

    year = BF480_BASE_YEAR + (date_code >> 9)
    month = (date_code >> 5) & 0xF
    day = date_code & 0x1F
    hour = time_code >> 8
    minute = time_code & 0xFF

    return BodyCompositionMeasurement(
        measured_time=to_utc(year, month, day, hour, minute),
        weight=channels[offset] / 10,
        body_fat=channels[offset + 1] / 10,
        water=channels[offset + 2] / 10,
        muscles=channels[offset + 3] / 10,
    )
