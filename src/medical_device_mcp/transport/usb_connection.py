"""USB connection to a HID-class medical device.

Commands go out as HID ``SET_REPORT`` control transfers and responses come
back on an interrupt IN endpoint. Device discovery (including walking hubs)
is left to ``pyusb``'s ``usb.core.find``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import usb.core
import usb.util

from ..errors import ClaimError, DeviceConnectionError, DeviceNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_INTERFACE = 0
EP_IN = 0x81
WRITE_TIMEOUT_MS = 1000
READ_TIMEOUT_MS = 1000


@dataclass(frozen=True)
class ControlRequest:
    """Setup packet fields for the command control transfer."""

    request_type: int = 0x21  # host-to-device | class | interface
    request: int = 0x09       # HID SET_REPORT
    value: int = 521          # 0x0209: output report, id 9
    index: int = 0


@dataclass
class DeviceInfo:
    """Basic device identification from USB descriptors."""

    vendor_id: int
    product_id: int
    manufacturer: str = ""
    product: str = ""
    bus: int | None = None
    address: int | None = None


class Connection(Protocol):
    """What a download session needs from a transport."""

    def open(self) -> object: ...

    def close(self) -> None: ...

    def write(self, data: bytes) -> int: ...

    def read(self, length: int, timeout_ms: int = READ_TIMEOUT_MS) -> bytes | None: ...


def find_device(vendor_id: int, product_id: int):
    """Return the first attached pyusb device matching the ids, or None."""
    return usb.core.find(idVendor=vendor_id, idProduct=product_id)


class USBConnection:
    """Owns the device handle and the claimed interface for one session.

    Usage::

        conn = USBConnection(0x0c45, 0x7406)
        conn.open()
        conn.write(frame_bytes)
        response = conn.read(8, timeout_ms=500)
        conn.close()

    The connection is also a context manager that closes itself on exit.
    """

    def __init__(
        self,
        vendor_id: int,
        product_id: int,
        interface: int = DEFAULT_INTERFACE,
        endpoint: int = EP_IN,
        control: ControlRequest = ControlRequest(),
    ) -> None:
        self._vendor_id = vendor_id
        self._product_id = product_id
        self._interface = interface
        self._endpoint = endpoint
        self._control = control
        self._device = None
        self._connected = False
        self._detached_kernel_driver = False
        self._device_info = DeviceInfo(vendor_id=vendor_id, product_id=product_id)

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def device_info(self) -> DeviceInfo:
        return self._device_info

    def __enter__(self) -> USBConnection:
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def open(self) -> DeviceInfo:
        """Find the device and claim its interface.

        Returns:
            DeviceInfo with USB descriptor information.

        Raises:
            DeviceNotFoundError: If no matching device is attached.
            ClaimError: If the interface cannot be claimed.
        """
        if self._connected:
            return self._device_info

        dev = find_device(self._vendor_id, self._product_id)
        if dev is None:
            raise DeviceNotFoundError(self._vendor_id, self._product_id)

        try:
            if dev.is_kernel_driver_active(self._interface):
                dev.detach_kernel_driver(self._interface)
                self._detached_kernel_driver = True
        except NotImplementedError:
            # No kernel driver support on this backend (e.g. Windows)
            pass
        except usb.core.USBError as e:
            usb.util.dispose_resources(dev)
            raise ClaimError(
                f"Could not detach kernel driver from interface {self._interface}: {e}"
            ) from e

        try:
            usb.util.claim_interface(dev, self._interface)
        except usb.core.USBError as e:
            self._reattach_kernel_driver(dev)
            usb.util.dispose_resources(dev)
            raise ClaimError(
                f"Could not claim interface {self._interface} of device "
                f"{self._vendor_id:#06x}:{self._product_id:#06x}: {e}"
            ) from e

        self._device = dev
        self._connected = True
        self._device_info = DeviceInfo(
            vendor_id=self._vendor_id,
            product_id=self._product_id,
            manufacturer=_get_string(dev, dev.iManufacturer),
            product=_get_string(dev, dev.iProduct),
            bus=getattr(dev, "bus", None),
            address=getattr(dev, "address", None),
        )

        logger.info(
            "Connected to %04x:%04x %s %s",
            self._vendor_id,
            self._product_id,
            self._device_info.manufacturer,
            self._device_info.product,
        )
        return self._device_info

    def close(self) -> None:
        """Release the interface and free the device handle.

        Errors during release are logged and never raised.
        """
        if not self._connected:
            return

        try:
            usb.util.release_interface(self._device, self._interface)
        except usb.core.USBError as e:
            logger.warning("Error releasing device: %s", e)
        finally:
            self._reattach_kernel_driver(self._device)
            usb.util.dispose_resources(self._device)
            self._device = None
            self._connected = False
            logger.info("Disconnected")

    def _reattach_kernel_driver(self, dev) -> None:
        """Hand the interface back to the OS driver if we detached it."""
        if not self._detached_kernel_driver:
            return
        self._detached_kernel_driver = False
        try:
            dev.attach_kernel_driver(self._interface)
        except (usb.core.USBError, NotImplementedError) as e:
            logger.warning("Error re-attaching kernel driver: %s", e)

    def write(self, data: bytes) -> int:
        """Send a command frame as a control transfer.

        Returns:
            Number of bytes written.

        Raises:
            DeviceConnectionError: If not connected or the transfer fails.
        """
        if not self._connected:
            raise DeviceConnectionError("Not connected to device")

        ctrl = self._control
        try:
            written = self._device.ctrl_transfer(
                ctrl.request_type,
                ctrl.request,
                ctrl.value,
                ctrl.index,
                data,
                timeout=WRITE_TIMEOUT_MS,
            )
        except usb.core.USBError as e:
            raise DeviceConnectionError(f"Write failed: {e}") from e
        logger.debug("OUT %s", bytes(data).hex(" "))
        return written

    def read(self, length: int, timeout_ms: int = READ_TIMEOUT_MS) -> bytes | None:
        """Read up to ``length`` bytes from the IN endpoint.

        Returns:
            The bytes read, or None if the transfer failed or timed out.

        Raises:
            DeviceConnectionError: If not connected.
        """
        if not self._connected:
            raise DeviceConnectionError("Not connected to device")

        try:
            data = bytes(self._device.read(self._endpoint, length, timeout=timeout_ms))
        except usb.core.USBError as e:
            logger.debug("Read error: %s", e)
            return None
        logger.debug("IN  %s", data.hex(" "))
        return data


def _get_string(dev, index: int) -> str:
    if not index:
        return ""
    try:
        return usb.util.get_string(dev, index) or ""
    except (usb.core.USBError, ValueError) as e:
        logger.debug("Could not read string descriptor %d: %s", index, e)
        return ""
