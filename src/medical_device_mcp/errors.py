"""Exceptions raised while talking to a medical device.

All transport and decode failures derive from :class:`MedicalDeviceError`.
The connection-level errors also subclass the built-in ``ConnectionError``
and the decode error subclasses ``ValueError``, so callers that only know
about the built-ins keep working.
"""

from __future__ import annotations


class MedicalDeviceError(Exception):
    """Base class for all device errors."""


class DeviceNotFoundError(MedicalDeviceError, ConnectionError):
    """No attached USB device matches the requested vendor/product id."""

    def __init__(self, vendor_id: int, product_id: int) -> None:
        self.vendor_id = vendor_id
        self.product_id = product_id
        super().__init__(
            f"Device {vendor_id:#06x}:{product_id:#06x} not found - "
            f"is the device plugged into the USB port?"
        )


class ClaimError(MedicalDeviceError, ConnectionError):
    """The USB interface could not be claimed (usually already in use)."""


class DeviceConnectionError(MedicalDeviceError, ConnectionError):
    """A transfer failed, timed out, or the device did not respond."""


class MalformedMeasurementError(MedicalDeviceError, ValueError):
    """Decoded fields do not form a valid measurement."""
