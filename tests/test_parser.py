"""Tests for decoding raw frames into measurements."""

from datetime import datetime, timezone

import pytest

from medical_device_mcp.errors import MalformedMeasurementError
from medical_device_mcp.models.measurement import BloodPressureUser
from medical_device_mcp.protocol.parser import (
    bf480_has_reading,
    bf480_user_offset,
    parse_bf480_measurement,
    parse_bm55_measurement,
)

MAY_15_2016 = datetime(2016, 5, 15, 14, 30, tzinfo=timezone.utc)


def bm55_frame(
    systolic=125, diastolic=80, pulse=70, resting=False, user_b=False,
    arrhythmia=False, year=2016, month=5, day=15, hour=14, minute=30,
) -> bytes:
    return bytes([
        (systolic - 25) & 0xFF,
        (diastolic - 25) & 0xFF,
        pulse,
        month | (0x80 if resting else 0),
        day | (0x80 if user_b else 0),
        hour,
        minute,
        (year - 2000) | (0x80 if arrhythmia else 0),
    ])


def test_parse_bm55_known_frame():
    """Decode a frame with every flag bit set."""
    m = parse_bm55_measurement(bytes([100, 55, 70, 133, 143, 14, 30, 144]))
    assert m.systolic == 125
    assert m.diastolic == 80
    assert m.pulse_rate == 70
    assert m.resting_indicator is True
    assert m.user is BloodPressureUser.B
    assert m.arrhythmia is True
    assert m.measured_time == MAY_15_2016


def test_parse_bm55_flags_clear():
    m = parse_bm55_measurement(bm55_frame())
    assert m.resting_indicator is False
    assert m.arrhythmia is False
    assert m.user is BloodPressureUser.A
    assert m.measured_time == MAY_15_2016


def test_parse_bm55_pressure_wraps():
    """Pressure bytes past 230 wrap around after adding 25."""
    m = parse_bm55_measurement(bytes([240, 0, 60, 5, 15, 14, 30, 16]))
    assert m.systolic == (240 + 25) & 0xFF
    assert m.diastolic == 25


@pytest.mark.parametrize(
    "year, month, day, hour, minute",
    [
        (2000, 1, 1, 0, 0),
        (2016, 2, 29, 23, 59),
        (2099, 12, 31, 12, 0),
        (2127, 7, 4, 6, 45),
    ],
)
def test_parse_bm55_date_roundtrip(year, month, day, hour, minute):
    """Encoded date fields decode to the same instant."""
    m = parse_bm55_measurement(
        bm55_frame(year=year, month=month, day=day, hour=hour, minute=minute)
    )
    assert m.measured_time == datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "fields",
    [
        {"month": 0},
        {"month": 13},
        {"day": 0},
        {"month": 2, "day": 30},
        {"hour": 24},
        {"minute": 60},
    ],
)
def test_parse_bm55_invalid_date(fields):
    with pytest.raises(MalformedMeasurementError):
        parse_bm55_measurement(bm55_frame(**fields))


def test_parse_bm55_wrong_size():
    with pytest.raises(MalformedMeasurementError):
        parse_bm55_measurement(bytes(7))


def test_parse_bf480_known_row():
    m = parse_bf480_measurement([705, 235, 550, 400, 49327, 3614], 0)
    assert m.weight == 70.5
    assert m.body_fat == 23.5
    assert m.water == 55.0
    assert m.muscles == 40.0
    assert m.measured_time == MAY_15_2016


def test_parse_bf480_user_offset():
    """User 3 reads the third block of six channels."""
    row = [0] * 64
    offset = bf480_user_offset(3)
    assert offset == 12
    row[offset:offset + 6] = [812, 180, 600, 420, 49327, 3614]
    m = parse_bf480_measurement(row, offset)
    assert m.weight == 81.2
    assert m.body_fat == 18.0
    assert m.measured_time == MAY_15_2016


def test_bf480_user_offset_bounds():
    assert bf480_user_offset(1) == 0
    assert bf480_user_offset(10) == 54
    with pytest.raises(ValueError):
        bf480_user_offset(0)
    with pytest.raises(ValueError):
        bf480_user_offset(11)


def test_bf480_has_reading():
    assert bf480_has_reading([705, 235, 550, 400, 49327, 3614], 0)
    assert not bf480_has_reading([705, 235, 550, 400, 0, 3614], 0)


def test_parse_bf480_invalid_date():
    """Month bits of zero do not form a date."""
    date_code = (96 << 9) | (0 << 5) | 15
    with pytest.raises(MalformedMeasurementError):
        parse_bf480_measurement([705, 235, 550, 400, date_code, 3614], 0)


def test_parse_bf480_invalid_time():
    time_code = (25 << 8) | 30
    with pytest.raises(MalformedMeasurementError):
        parse_bf480_measurement([705, 235, 550, 400, 49327, time_code], 0)


def test_parse_bf480_short_row():
    with pytest.raises(MalformedMeasurementError):
        parse_bf480_measurement([705, 235, 550, 400, 49327], 0)
