"""
fusion-kbd - Fusion RGB keyboard control for the Gigabyte Aero 15X

Drives the keyboard's lighting controller (USB 1044:7a39) directly with
vendor control and interrupt transfers.

Features:
- Built-in presets with color, speed and brightness
- Upload, select and read back the five custom profile slots
- Selectable protocol variants for different firmware revisions

Usage:
    # As a library
    from fusion_kbd import KeyboardSession, Preset, Color
    with KeyboardSession() as kbd:
        kbd.set_preset(Preset.WAVE, speed=5, brightness=25)

    # Command line
    fusion-kbd preset ripple blue
    fusion-kbd custom layout.bin --slot 1
"""

from fusion_kbd.__version__ import __version__
from fusion_kbd.errors import (
    DeviceAccessDenied,
    DeviceBusy,
    DeviceNotFound,
    FusionKbdError,
    InvalidSlot,
    ShortTransfer,
    TransferError,
    UnknownColorName,
    UnknownPresetName,
    UsbBackendMissing,
)
from fusion_kbd.header import CommandHeader, build_header, checksum, serialize_header
from fusion_kbd.lighting import Color, Preset, parse_color, parse_preset
from fusion_kbd.protocol import DIRECT, LEGACY, PRIMED, ProtocolVariant, get_variant
from fusion_kbd.session import KeyboardSession
from fusion_kbd.transport import PyUsbTransport, UsbTransport

__all__ = [
    "__version__",
    # Errors
    "FusionKbdError",
    "DeviceNotFound",
    "UsbBackendMissing",
    "DeviceAccessDenied",
    "DeviceBusy",
    "InvalidSlot",
    "TransferError",
    "ShortTransfer",
    "UnknownPresetName",
    "UnknownColorName",
    # Header codec
    "CommandHeader",
    "build_header",
    "serialize_header",
    "checksum",
    # Lighting tables
    "Preset",
    "Color",
    "parse_preset",
    "parse_color",
    # Protocol variants
    "ProtocolVariant",
    "PRIMED",
    "DIRECT",
    "LEGACY",
    "get_variant",
    # Device
    "KeyboardSession",
    "UsbTransport",
    "PyUsbTransport",
]
