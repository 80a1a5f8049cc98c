"""Download stored readings from Beurer BM55 and BF480 USB health devices."""

from .errors import (
    MedicalDeviceError,
    DeviceNotFoundError,
    ClaimError,
    DeviceConnectionError,
    MalformedMeasurementError,
)
from .session import DeviceKind, get_measurements

__version__ = "0.1.0"
