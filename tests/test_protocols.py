"""Tests for the BM55 and BF480 protocol drivers."""

import pytest

from medical_device_mcp.errors import DeviceConnectionError
from medical_device_mcp.protocol.blood_pressure import BloodPressureProtocol, State as BM55State
from medical_device_mcp.protocol.body_scale import (
    MAX_NUMBER_OF_READINGS,
    BodyScaleProtocol,
    State as BF480State,
    frames_to_rows,
)

ACK = b"\x01" + bytes(7)


def test_bm55_initialise(fake_connection):
    conn = fake_connection([ACK])
    protocol = BloodPressureProtocol(conn)
    protocol.initialise()
    assert conn.writes == [bytes([0xAA]) + b"\xF4" * 7]
    assert conn.reads == [(8, 500)]
    assert protocol.state is BM55State.INITIALISED


def test_bm55_initialise_no_response(fake_connection):
    conn = fake_connection([bytes(8)])
    with pytest.raises(DeviceConnectionError):
        BloodPressureProtocol(conn).initialise()


def test_bm55_count_readings_unsigned(fake_connection):
    """Counts above 127 are read as unsigned."""
    conn = fake_connection([ACK, bytes([200]) + bytes(7)])
    protocol = BloodPressureProtocol(conn)
    protocol.initialise()
    assert protocol.count_readings() == 200
    assert conn.writes[1] == bytes([0xA2]) + b"\xF4" * 7


def test_bm55_reading_indices_skip_first_slot(fake_connection):
    conn = fake_connection([ACK, bytes([4]) + bytes(7)])
    protocol = BloodPressureProtocol(conn)
    protocol.initialise()
    protocol.count_readings()
    assert list(protocol.reading_indices()) == [1, 2, 3]


def test_bm55_reading_indices_before_count(fake_connection):
    with pytest.raises(RuntimeError):
        BloodPressureProtocol(fake_connection()).reading_indices()


def test_bm55_read_frame_before_count(fake_connection):
    conn = fake_connection([ACK])
    protocol = BloodPressureProtocol(conn)
    protocol.initialise()
    with pytest.raises(RuntimeError):
        protocol.read_frame(1)


def test_bm55_read_frame(fake_connection):
    frame = bytes([100, 55, 70, 133, 143, 14, 30, 144])
    conn = fake_connection([ACK, bytes([3]) + bytes(7), frame])
    protocol = BloodPressureProtocol(conn)
    protocol.initialise()
    protocol.count_readings()
    assert protocol.read_frame(2) == frame
    assert conn.writes[-1] == bytes([0xA3, 0x02]) + b"\xF4" * 6
    assert protocol.state is BM55State.READING


def test_bm55_terminate_swallows_missing_response(fake_connection):
    conn = fake_connection([ACK, None])
    protocol = BloodPressureProtocol(conn)
    protocol.initialise()
    protocol.terminate()
    assert conn.writes[-1] == bytes([0xF7]) + b"\xF4" * 7
    assert protocol.state is BM55State.TERMINATED


def test_bm55_terminate_swallows_zero_response(fake_connection):
    conn = fake_connection([ACK, bytes(8)])
    protocol = BloodPressureProtocol(conn)
    protocol.initialise()
    protocol.terminate()
    assert protocol.state is BM55State.TERMINATED


def test_bm55_terminate_once(fake_connection):
    conn = fake_connection([ACK, ACK])
    protocol = BloodPressureProtocol(conn)
    protocol.initialise()
    protocol.terminate()
    protocol.terminate()
    assert len(conn.writes) == 2


def test_bm55_terminate_before_initialise(fake_connection):
    """Terminate needs an initialised session and sends nothing otherwise."""
    conn = fake_connection()
    protocol = BloodPressureProtocol(conn)
    with pytest.raises(RuntimeError):
        protocol.terminate()
    assert conn.writes == []
    assert protocol.state is BM55State.IDLE


def test_bf480_initialise_has_no_read(fake_connection):
    conn = fake_connection()
    protocol = BodyScaleProtocol(conn)
    protocol.initialise()
    assert conn.writes == [bytes([0x10]) + bytes(7)]
    assert conn.reads == []
    assert protocol.state is BF480State.INITIALISED


def test_bf480_count_is_fixed(fake_connection):
    assert BodyScaleProtocol(fake_connection()).count_readings() == 64


def test_bf480_reads_all_frames(fake_connection):
    """All 64 slots are read back to back with no writes in between."""
    frames = [bytes([slot]) * 128 for slot in range(MAX_NUMBER_OF_READINGS)]
    conn = fake_connection(frames)
    protocol = BodyScaleProtocol(conn)
    protocol.initialise()
    assert protocol.read_all_frames() == frames
    assert len(conn.writes) == 1
    assert conn.reads == [(128, 3000)] * 64
    assert protocol.state is BF480State.DONE


def test_bf480_zero_frame_is_valid(fake_connection):
    conn = fake_connection([bytes(128)])
    protocol = BodyScaleProtocol(conn)
    protocol.initialise()
    assert protocol.read_frame(0) == bytes(128)


def test_bf480_read_timeout(fake_connection):
    conn = fake_connection([None])
    protocol = BodyScaleProtocol(conn)
    protocol.initialise()
    with pytest.raises(DeviceConnectionError):
        protocol.read_frame(0)


def test_bf480_slots_in_order(fake_connection):
    conn = fake_connection([bytes(128)] * 2)
    protocol = BodyScaleProtocol(conn)
    protocol.initialise()
    with pytest.raises(RuntimeError):
        protocol.read_frame(1)


def test_bf480_read_before_initialise(fake_connection):
    with pytest.raises(RuntimeError):
        BodyScaleProtocol(fake_connection()).read_frame(0)


def test_frames_to_rows():
    """Channel j of frame i ends up at rows[j][i]."""
    frames = []
    for i in range(64):
        frames.append(b"".join((i * 100 + j).to_bytes(2, "big") for j in range(64)))
    rows = frames_to_rows(frames)
    assert len(rows) == 64
    assert rows[5][7] == 7 * 100 + 5
    assert rows[0][63] == 6300
