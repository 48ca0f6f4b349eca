"""
USB access layer for the Fusion keyboard.

The ``UsbTransport`` ABC lists exactly the primitives the protocol layer
needs, so that:
  • Tests can inject a mock transport (no real hardware needed).
  • ``PyUsbTransport`` provides real USB via pyusb (libusb backend).

Linux dependencies:
  • pyusb:  ``pip install pyusb``  (needs libusb1, ``apt install libusb-1.0-0``)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import usb.core
import usb.util

from .constants import FUSION_PID, FUSION_VID, NO_TIMEOUT
from .errors import DeviceNotFound, UsbBackendMissing

log = logging.getLogger(__name__)


# =========================================================================
# Abstract USB transport
# =========================================================================

class UsbTransport(ABC):
    """Abstract USB transport, mockable for testing."""

    @abstractmethod
    def open(self) -> None:
        """Locate and open the device.

        Raises:
            DeviceNotFound: If no matching device is present.
            UsbBackendMissing: If pyusb has no libusb backend.
        """

    @abstractmethod
    def close(self) -> None:
        """Drop the device handle."""

    @abstractmethod
    def kernel_driver_active(self, interface: int) -> bool:
        """Whether a kernel driver is bound to *interface*."""

    @abstractmethod
    def detach_kernel_driver(self, interface: int) -> None:
        ...

    @abstractmethod
    def attach_kernel_driver(self, interface: int) -> None:
        ...

    @abstractmethod
    def claim_interface(self, interface: int) -> None:
        ...

    @abstractmethod
    def release_interface(self, interface: int) -> None:
        ...

    @abstractmethod
    def ctrl_transfer(self, bm_request_type: int, b_request: int, w_value: int,
                      w_index: int, data: bytes, timeout: int = NO_TIMEOUT) -> int:
        """Control transfer (OUT).  Returns bytes transferred."""

    @abstractmethod
    def write_interrupt(self, endpoint: int, data: bytes, timeout: int = NO_TIMEOUT) -> int:
        """Interrupt write to endpoint.  Returns bytes transferred."""

    @abstractmethod
    def read_interrupt(self, endpoint: int, length: int, timeout: int = NO_TIMEOUT) -> bytes:
        """Interrupt read from endpoint.  Returns data read."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the device is currently open."""


# =========================================================================
# Real transport: PyUSB  (libusb backend)
# =========================================================================

class PyUsbTransport(UsbTransport):
    """Real USB transport using pyusb (libusb backend).

    Kernel driver and interface handling is left to the caller; this class
    only maps each primitive onto the matching pyusb call.

    Requires: ``pip install pyusb`` + ``apt install libusb-1.0-0``
    """

    def __init__(self, vid: int = FUSION_VID, pid: int = FUSION_PID):
        self._vid = vid
        self._pid = pid
        self._device = None

    def open(self) -> None:
        try:
            self._device = usb.core.find(idVendor=self._vid, idProduct=self._pid)  # type: ignore[union-attr]
        except usb.core.NoBackendError as e:
            raise UsbBackendMissing(
                f"no USB backend available ({e}); install libusb-1.0"
            ) from e
        if self._device is None:
            raise DeviceNotFound(
                f"USB device not found: VID={self._vid:#06x} PID={self._pid:#06x}"
            )
        log.debug("Found USB device %04x:%04x (bus %s, address %s)",
                  self._vid, self._pid,
                  getattr(self._device, 'bus', '?'),
                  getattr(self._device, 'address', '?'))

    def close(self) -> None:
        if self._device is not None:
            try:
                usb.util.dispose_resources(self._device)  # type: ignore[union-attr]
            except usb.core.USBError as e:
                log.debug("dispose_resources: %s", e)
            self._device = None

    def _dev(self) -> Any:
        if self._device is None:
            raise RuntimeError("Transport not open")
        return self._device

    def kernel_driver_active(self, interface: int) -> bool:
        return bool(self._dev().is_kernel_driver_active(interface))

    def detach_kernel_driver(self, interface: int) -> None:
        self._dev().detach_kernel_driver(interface)

    def attach_kernel_driver(self, interface: int) -> None:
        self._dev().attach_kernel_driver(interface)

    def claim_interface(self, interface: int) -> None:
        usb.util.claim_interface(self._dev(), interface)  # type: ignore[union-attr]

    def release_interface(self, interface: int) -> None:
        usb.util.release_interface(self._dev(), interface)  # type: ignore[union-attr]

    def ctrl_transfer(self, bm_request_type: int, b_request: int, w_value: int,
                      w_index: int, data: bytes, timeout: int = NO_TIMEOUT) -> int:
        return self._dev().ctrl_transfer(
            bm_request_type, b_request, w_value, w_index, data, timeout=timeout,
        )

    def write_interrupt(self, endpoint: int, data: bytes, timeout: int = NO_TIMEOUT) -> int:
        return self._dev().write(endpoint, data, timeout=timeout)

    def read_interrupt(self, endpoint: int, length: int, timeout: int = NO_TIMEOUT) -> bytes:
        return bytes(self._dev().read(endpoint, length, timeout=timeout))

    @property
    def is_open(self) -> bool:
        return self._device is not None

    @property
    def device(self) -> Optional[Any]:
        """Raw pyusb device handle (for diagnostics)."""
        return self._device

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *exc):
        self.close()
