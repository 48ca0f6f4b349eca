"""Exception types raised by the keyboard protocol layer."""

from __future__ import annotations

from typing import Optional


class FusionKbdError(Exception):
    """Base class for every error raised by fusion_kbd."""


class DeviceNotFound(FusionKbdError):
    """No USB device with the keyboard's VID/PID is present (or visible)."""


class UsbBackendMissing(FusionKbdError):
    """pyusb found no libusb backend to talk to the device through."""


class DeviceAccessDenied(FusionKbdError):
    """The OS refused access to the device (usually missing root/udev rule)."""


class DeviceBusy(FusionKbdError):
    """An interface could not be detached or claimed (e.g. another process owns it)."""


class InvalidSlot(FusionKbdError, ValueError):
    """Custom slot index outside 0..4."""

    def __init__(self, slot: int):
        super().__init__(f"custom slot must be 0-4, got {slot}")
        self.slot = slot


class TransferError(FusionKbdError):
    """A control or interrupt transfer failed.

    Attributes:
        step: Which transfer of the sequence failed, e.g.
            ``"interrupt transfer 3/8"``.
    """

    def __init__(self, step: str, reason: Optional[object] = None):
        msg = f"{step} failed"
        if reason is not None:
            msg += f": {reason}"
        super().__init__(msg)
        self.step = step


class ShortTransfer(TransferError):
    """A transfer completed but moved fewer bytes than expected."""

    def __init__(self, step: str, expected: int, actual: int):
        super().__init__(step, f"expected {expected} bytes, got {actual}")
        self.expected = expected
        self.actual = actual


class UnknownPresetName(FusionKbdError, ValueError):
    """Preset name not in the built-in effect table."""

    def __init__(self, name: str):
        super().__init__(f"unknown preset: {name!r}")
        self.name = name


class UnknownColorName(FusionKbdError, ValueError):
    """Color name not in the predefined color table."""

    def __init__(self, name: str):
        super().__init__(f"unknown color: {name!r}")
        self.name = name
