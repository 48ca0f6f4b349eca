"""Shared constants for the Fusion keyboard protocol.

USB identifiers, interface numbers, control request values and command
header kinds, captured from the Gigabyte Aero 15X Fusion RGB keyboard.
"""

# =========================================================================
# USB identity
# =========================================================================

FUSION_VID = 0x1044
FUSION_PID = 0x7a39

# Interfaces the lighting controller needs exclusively (0 = keyboard HID,
# 3 = vendor control interface)
KBD_INTERFACES = (0, 3)

# =========================================================================
# Control transfer (HID SET_REPORT, feature report 0x03 on interface 3)
# =========================================================================

# bmRequestType: host-to-device | class | interface
CTRL_REQUEST_TYPE_OUT = 0x21
CTRL_REQUEST = 0x09     # SET_REPORT
CTRL_VALUE = 0x0300     # report type 3 (feature), report id 0
CTRL_INDEX = 0x0003     # interface 3

# =========================================================================
# Interrupt endpoints
# =========================================================================

EP_INTERRUPT_OUT = 0x06
EP_INTERRUPT_IN = 0x86

# libusb treats 0 as "wait forever"
NO_TIMEOUT = 0

# =========================================================================
# Command header
# =========================================================================

HEADER_SIZE = 8

KIND_PRESET = 0x08
KIND_CUSTOM_CONFIG = 0x12
KIND_READ_CONFIG = 0x92

# Mode codes 0x33..0x37 select custom slots 0..4
CUSTOM_SLOT_BASE = 0x33
CUSTOM_SLOT_COUNT = 5

# =========================================================================
# Custom profile
# =========================================================================

PROFILE_SIZE = 512
CHUNK_SIZE = 64
CHUNK_COUNT = PROFILE_SIZE // CHUNK_SIZE  # 8, also the header length field

# =========================================================================
# Value ranges accepted by the firmware
# =========================================================================

MAX_BRIGHTNESS = 50
MAX_SPEED = 10

DEFAULT_BRIGHTNESS = 25    # half of MAX_BRIGHTNESS (0.1.x defaulted to 0x50 / 3 = 26)
DEFAULT_SPEED = 5
