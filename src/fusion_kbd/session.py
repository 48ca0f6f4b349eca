"""
Device session for the Fusion RGB keyboard (VID 0x1044, PID 0x7a39).

A session owns the open device handle and exclusive claims on interfaces
0 and 3.  Lighting commands are 8-byte headers sent as class/interface
SET_REPORT control transfers; custom profiles follow their header as eight
64-byte interrupt transfers on endpoint 6.

Sequences:

  preset:       [priming header] + preset header        (control)
  upload:       header(0x12, slot, 8)  -> 8 x 64 bytes  (interrupt OUT)
  select slot:  header(0x08, 0x33 + slot)               (control)
  download:     header(0x92, slot, 8)  <- 8 x 64 bytes  (interrupt IN)

Usage::

    with KeyboardSession() as kbd:
        kbd.set_preset(Preset.RIPPLE, speed=5, brightness=25, color=Color.BLUE)

The session is single-owner and not thread-safe.  Transfers block with no
timeout.
"""

from __future__ import annotations

import errno
import logging
from typing import List, Optional, Sequence

from .constants import (
    CHUNK_COUNT,
    CHUNK_SIZE,
    CTRL_INDEX,
    CTRL_REQUEST,
    CTRL_REQUEST_TYPE_OUT,
    CTRL_VALUE,
    CUSTOM_SLOT_BASE,
    CUSTOM_SLOT_COUNT,
    EP_INTERRUPT_IN,
    EP_INTERRUPT_OUT,
    HEADER_SIZE,
    KBD_INTERFACES,
    KIND_CUSTOM_CONFIG,
    KIND_PRESET,
    KIND_READ_CONFIG,
    NO_TIMEOUT,
    PROFILE_SIZE,
)
from .errors import (
    DeviceAccessDenied,
    DeviceBusy,
    InvalidSlot,
    ShortTransfer,
    TransferError,
)
from .header import CommandHeader
from .lighting import Color, Preset
from .protocol import DEFAULT_VARIANT, ProtocolVariant
from .transport import PyUsbTransport, UsbTransport

log = logging.getLogger(__name__)

_ACCESS_ERRNOS = (errno.EACCES, errno.EPERM)


def _check_slot(slot: int) -> None:
    if not 0 <= slot < CUSTOM_SLOT_COUNT:
        raise InvalidSlot(slot)


def split_profile(profile: bytes) -> List[bytes]:
    """Split a 512-byte profile into its eight 64-byte transfer chunks.

    Raises:
        ValueError: If the profile is not exactly 512 bytes.
    """
    if len(profile) != PROFILE_SIZE:
        raise ValueError(f"custom profile must be {PROFILE_SIZE} bytes, got {len(profile)}")
    return [bytes(profile[i:i + CHUNK_SIZE]) for i in range(0, PROFILE_SIZE, CHUNK_SIZE)]


class KeyboardSession:
    """Exclusive session on the keyboard's lighting interfaces.

    Args:
        transport: USB access layer; defaults to a pyusb transport for the
            Fusion VID/PID.
        variant: Protocol variant (preset sequencing, slot policy).
        strict: Raise ShortTransfer on short interrupt writes instead of
            only logging a warning.
    """

    def __init__(self, transport: Optional[UsbTransport] = None,
                 variant: ProtocolVariant = DEFAULT_VARIANT,
                 strict: bool = False):
        self.transport = transport if transport is not None else PyUsbTransport()
        self.variant = variant
        self.strict = strict
        self._claimed: List[int] = []
        self._detached: List[int] = []
        self._open = False

    # -- Lifecycle --------------------------------------------------------

    def open(self) -> KeyboardSession:
        """Open the device, detach kernel drivers and claim interfaces 0 and 3.

        Partial claims are rolled back before an error propagates.

        Raises:
            DeviceNotFound: Keyboard not present.
            DeviceAccessDenied: Permission denied (run as root / udev rule).
            DeviceBusy: Driver detach or claim failed for another reason.
        """
        if self._open:
            return self

        self.transport.open()
        try:
            for intf in KBD_INTERFACES:
                self._acquire(intf)
        except (OSError, NotImplementedError, ValueError) as e:
            self._teardown(reattach=self._detached)
            if getattr(e, "errno", None) in _ACCESS_ERRNOS:
                raise DeviceAccessDenied(f"access to keyboard denied: {e}") from e
            raise DeviceBusy(f"keyboard interface unavailable: {e}") from e
        except BaseException:
            self._teardown(reattach=self._detached)
            raise

        self._open = True
        log.info("Keyboard session opened (variant=%s)", self.variant.name)
        return self

    def _acquire(self, intf: int) -> None:
        if self.transport.kernel_driver_active(intf):
            self.transport.detach_kernel_driver(intf)
            self._detached.append(intf)
            log.debug("Detached kernel driver from interface %d", intf)
        self.transport.claim_interface(intf)
        self._claimed.append(intf)
        log.debug("Claimed interface %d", intf)

    def close(self) -> None:
        """Release interfaces and reattach kernel drivers.  Never raises."""
        if not (self._open or self._claimed or self._detached or self.transport.is_open):
            return
        # Both interfaces, detached by us or not: a killed run leaves the
        # driver unbound and the next open sees it inactive.
        self._teardown(reattach=KBD_INTERFACES)
        if self._open:
            log.info("Keyboard session closed")
        self._open = False

    def _teardown(self, reattach: Sequence[int]) -> None:
        for intf in list(self._claimed):
            try:
                self.transport.release_interface(intf)
                log.debug("Released interface %d", intf)
            except Exception as e:
                log.debug("Release interface %d: %s", intf, e)
        self._claimed.clear()

        for intf in list(reattach):
            try:
                self.transport.attach_kernel_driver(intf)
                log.debug("Reattached kernel driver to interface %d", intf)
            except Exception as e:
                log.debug("Reattach kernel driver %d: %s", intf, e)
        self._detached.clear()

        try:
            self.transport.close()
        except Exception as e:
            log.debug("Transport close: %s", e)

    @property
    def is_open(self) -> bool:
        return self._open

    def __enter__(self):
        return self.open()

    def __exit__(self, *exc):
        self.close()

    # -- Transfers --------------------------------------------------------

    def _ensure_open(self) -> None:
        if not self._open:
            raise RuntimeError("Keyboard session not open")

    def _send_header(self, header: CommandHeader, step: str) -> None:
        self._ensure_open()
        log.debug("%s: %s", step, header.hex())
        try:
            sent = self.transport.ctrl_transfer(
                CTRL_REQUEST_TYPE_OUT, CTRL_REQUEST, CTRL_VALUE, CTRL_INDEX,
                header.to_bytes(), NO_TIMEOUT,
            )
        except (OSError, ValueError) as e:
            raise TransferError(f"control transfer ({step})", e) from e
        if sent != HEADER_SIZE:
            log.warning("%s: control transfer moved %d of %d bytes", step, sent, HEADER_SIZE)

    def _write_chunk(self, index: int, chunk: bytes) -> None:
        step = f"interrupt transfer {index + 1}/{CHUNK_COUNT}"
        try:
            sent = self.transport.write_interrupt(EP_INTERRUPT_OUT, chunk, NO_TIMEOUT)
        except (OSError, ValueError) as e:
            raise TransferError(step, e) from e
        if sent != CHUNK_SIZE:
            if self.strict:
                raise ShortTransfer(step, CHUNK_SIZE, sent)
            log.warning("%s: short transfer (%d of %d bytes)", step, sent, CHUNK_SIZE)

    def _read_chunk(self, index: int) -> bytes:
        step = f"interrupt read {index + 1}/{CHUNK_COUNT}"
        try:
            data = self.transport.read_interrupt(EP_INTERRUPT_IN, CHUNK_SIZE, NO_TIMEOUT)
        except (OSError, ValueError) as e:
            raise TransferError(step, e) from e
        if len(data) != CHUNK_SIZE:
            log.warning("%s: short read (%d of %d bytes)", step, len(data), CHUNK_SIZE)
        return bytes(data)

    # -- Operations -------------------------------------------------------

    def set_preset(self, preset: Preset, speed: int, brightness: int,
                   color: Color = Color.RAND) -> None:
        """Switch to a built-in preset.

        The device's acceptance is not read back.
        """
        self._ensure_open()
        headers = self.variant.preset_headers(preset, speed, brightness, color)
        for i, header in enumerate(headers, 1):
            self._send_header(header, f"preset header {i}/{len(headers)}")
        log.info("Preset %s (speed=%d brightness=%d color=%s)",
                 Preset(preset).label, speed, brightness, Color(color).label)

    def upload_custom(self, slot: int, profile: bytes) -> None:
        """Write a 512-byte frame into custom *slot*.  Does not activate it.

        A failure partway through leaves the slot partially written.

        Raises:
            InvalidSlot: slot outside 0..4 (nothing is sent).
            ValueError: profile is not 512 bytes.
            TransferError: A transfer failed; ``step`` names which one.
        """
        _check_slot(slot)
        chunks = split_profile(profile)
        self._ensure_open()
        target = self.variant.resolve_slot(slot)

        header = CommandHeader.build(KIND_CUSTOM_CONFIG, target, CHUNK_COUNT, 0, 0)
        self._send_header(header, "upload header")
        for i, chunk in enumerate(chunks):
            self._write_chunk(i, chunk)
        log.info("Uploaded custom profile to slot %d", target)

    def set_custom_slot(self, slot: int, brightness: int) -> None:
        """Activate the profile stored in custom *slot*.

        Raises:
            InvalidSlot: slot outside 0..4 (nothing is sent).
        """
        _check_slot(slot)
        self._ensure_open()
        target = self.variant.resolve_slot(slot)
        header = CommandHeader.build(KIND_PRESET, CUSTOM_SLOT_BASE + target, 0, brightness, 0)
        self._send_header(header, "select custom slot")
        log.info("Custom slot %d active (brightness=%d)", target, brightness)

    def download_custom(self, slot: int) -> bytes:
        """Read the 512-byte frame stored in custom *slot*.

        Raises:
            InvalidSlot: slot outside 0..4 (nothing is sent).
            ShortTransfer: The device returned fewer than 512 bytes in total.
            TransferError: A transfer failed.
        """
        _check_slot(slot)
        self._ensure_open()
        target = self.variant.resolve_slot(slot)

        header = CommandHeader.build(KIND_READ_CONFIG, target, CHUNK_COUNT, 0, 0)
        self._send_header(header, "download header")
        data = b''.join(self._read_chunk(i) for i in range(CHUNK_COUNT))
        if len(data) != PROFILE_SIZE:
            raise ShortTransfer(f"download of slot {target}", PROFILE_SIZE, len(data))
        log.info("Downloaded custom profile from slot %d", target)
        return data

    def apply_custom(self, slot: int, profile: bytes, brightness: int) -> None:
        """Upload *profile* to *slot* and switch to it."""
        self.upload_custom(slot, profile)
        self.set_custom_slot(slot, brightness)
