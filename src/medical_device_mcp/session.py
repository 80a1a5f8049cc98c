"""Download sessions: open the device, run its protocol, decode, close.

This is the public entry point of the package::

    from medical_device_mcp.session import get_measurements

    readings = get_measurements("bm55", "A")
    readings = get_measurements("bf480", 3)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

from .models.measurement import (
    BloodPressureMeasurement,
    BloodPressureUser,
    BodyCompositionMeasurement,
)
from .protocol.blood_pressure import BloodPressureProtocol
from .protocol.body_scale import BodyScaleProtocol, frames_to_rows
from .protocol.parser import (
    bf480_has_reading,
    bf480_user_offset,
    parse_bf480_measurement,
    parse_bm55_measurement,
)
from .transport.usb_connection import Connection, USBConnection, find_device

logger = logging.getLogger(__name__)


class DeviceKind(str, Enum):
    BM55 = "bm55"
    BF480 = "bf480"


class DeviceProtocol(Protocol):
    """Operations every device driver offers."""

    def initialise(self) -> None: ...

    def count_readings(self) -> int: ...

    def read_frame(self, index: int) -> bytes: ...

    def terminate(self) -> None: ...


@dataclass(frozen=True)
class DeviceProfile:
    """Static description of a supported device."""

    kind: DeviceKind
    name: str
    vendor_id: int
    product_id: int
    protocol: Callable[..., DeviceProtocol]


SUPPORTED_DEVICES: dict[DeviceKind, DeviceProfile] = {
    DeviceKind.BM55: DeviceProfile(
        kind=DeviceKind.BM55,
        name="Beurer BM55 blood pressure monitor",
        vendor_id=BloodPressureProtocol.vendor_id,
        product_id=BloodPressureProtocol.product_id,
        protocol=BloodPressureProtocol,
    ),
    DeviceKind.BF480: DeviceProfile(
        kind=DeviceKind.BF480,
        name="Beurer BF480 diagnostic scale",
        vendor_id=BodyScaleProtocol.vendor_id,
        product_id=BodyScaleProtocol.product_id,
        protocol=BodyScaleProtocol,
    ),
}


def list_attached_devices() -> list[DeviceProfile]:
    """Supported devices that are currently plugged in."""
    return [
        profile
        for profile in SUPPORTED_DEVICES.values()
        if find_device(profile.vendor_id, profile.product_id) is not None
    ]


def get_measurements(
    device: DeviceKind | str,
    user: BloodPressureUser | str | int,
    connection: Connection | None = None,
) -> list[BloodPressureMeasurement] | list[BodyCompositionMeasurement]:
    """Download and decode the stored readings of one user.

    Args:
        device: ``DeviceKind`` or its value (``"bm55"`` / ``"bf480"``).
        user: ``"A"``/``"B"`` for the BM55, 1-10 for the BF480.
        connection: An unopened connection to use instead of a new
            :class:`USBConnection` (mainly for tests).

    Returns:
        BM55 readings in device storage order, or BF480 readings sorted by
        measured time.

    Raises:
        DeviceNotFoundError, ClaimError, DeviceConnectionError,
        MalformedMeasurementError
    """
    kind = DeviceKind(device)
    profile = SUPPORTED_DEVICES[kind]
    if kind is DeviceKind.BM55:
        if not isinstance(user, BloodPressureUser):
            user = BloodPressureUser(str(user).upper())
        selector = user
    else:
        selector = bf480_user_offset(int(user))

    if connection is None:
        connection = USBConnection(profile.vendor_id, profile.product_id)

    connection.open()
    try:
        protocol = profile.protocol(connection)
        if kind is DeviceKind.BM55:
            measurements = _read_bm55(protocol, selector)
        else:
            measurements = _read_bf480(protocol, selector)
    finally:
        connection.close()

    logger.info("Downloaded %d readings from %s", len(measurements), profile.name)
    return measurements


def get_blood_pressure_measurements(
    user: BloodPressureUser | str = "A", connection: Connection | None = None
) -> list[BloodPressureMeasurement]:
    return get_measurements(DeviceKind.BM55, user, connection)


def get_body_composition_measurements(
    user: int = 1, connection: Connection | None = None
) -> list[BodyCompositionMeasurement]:
    return get_measurements(DeviceKind.BF480, user, connection)


def _read_bm55(
    protocol: BloodPressureProtocol, user: BloodPressureUser
) -> list[BloodPressureMeasurement]:
    protocol.initialise()
    protocol.count_readings()

    measurements = []
    for index in protocol.reading_indices():
        measurement = parse_bm55_measurement(protocol.read_frame(index))
        if measurement.user is user:
            measurements.append(measurement)

    protocol.terminate()
    return measurements


def _read_bf480(
    protocol: BodyScaleProtocol, offset: int
) -> list[BodyCompositionMeasurement]:
    protocol.initialise()
    rows = frames_to_rows(protocol.read_all_frames())
    protocol.terminate()

    measurements = []
    for row in rows:
        if not bf480_has_reading(row, offset):
            break
        measurements.append(parse_bf480_measurement(row, offset))

    return sorted(measurements)
