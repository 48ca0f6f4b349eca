"""
Command header codec.

Every control transfer to the keyboard carries one 8-byte header::

    offset  field             meaning
    0       kind              0x08 select preset / 0x12 upload / 0x92 read
    1       reserved          0
    2       mode              preset code, 0x33+slot, or raw slot index
    3       speed_or_length   effect speed, or 8 (chunks that follow)
    4       brightness        0-50
    5       color             color code, 0 = random/cycle
    6       reserved2         0
    7       checksum          0xFF - (sum(bytes[0:7]) & 0xFF)

All fields are single bytes, so the wire form is simply the fields in
declared order.
"""

from __future__ import annotations

from dataclasses import dataclass

from .constants import HEADER_SIZE

_CHECKSUM_SPAN = HEADER_SIZE - 1


def checksum(data) -> int:
    """One's complement of the wrapping sum of the first seven bytes."""
    return 0xFF - (sum(data[:_CHECKSUM_SPAN]) & 0xFF)


@dataclass(frozen=True)
class CommandHeader:
    """Immutable 8-byte command header.  Use :meth:`build` to construct."""
    kind: int
    mode: int
    speed_or_length: int
    brightness: int
    color: int
    reserved: int = 0
    reserved2: int = 0
    checksum: int = 0

    @classmethod
    def build(cls, kind: int, mode: int, speed_or_length: int,
              brightness: int, color: int) -> CommandHeader:
        """Build a header with zeroed reserved bytes and a valid checksum.

        Inputs are trusted to be in range; nothing is validated here.
        """
        raw = bytes([kind, 0, mode, speed_or_length, brightness, color, 0])
        return cls(
            kind=kind,
            mode=mode,
            speed_or_length=speed_or_length,
            brightness=brightness,
            color=color,
            checksum=checksum(raw),
        )

    @classmethod
    def from_bytes(cls, raw: bytes) -> CommandHeader:
        """Parse a captured 8-byte header.

        Raises:
            ValueError: Wrong length or checksum mismatch.
        """
        if len(raw) != HEADER_SIZE:
            raise ValueError(f"header must be {HEADER_SIZE} bytes, got {len(raw)}")
        expected = checksum(raw)
        if raw[7] != expected:
            raise ValueError(
                f"header checksum mismatch: got 0x{raw[7]:02x}, expected 0x{expected:02x}"
            )
        return cls(
            kind=raw[0],
            reserved=raw[1],
            mode=raw[2],
            speed_or_length=raw[3],
            brightness=raw[4],
            color=raw[5],
            reserved2=raw[6],
            checksum=raw[7],
        )

    def to_bytes(self) -> bytes:
        return bytes([
            self.kind,
            self.reserved,
            self.mode,
            self.speed_or_length,
            self.brightness,
            self.color,
            self.reserved2,
            self.checksum,
        ])

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def hex(self) -> str:
        return self.to_bytes().hex(' ')


def build_header(kind: int, mode: int, speed_or_length: int,
                 brightness: int, color: int) -> CommandHeader:
    return CommandHeader.build(kind, mode, speed_or_length, brightness, color)


def serialize_header(header: CommandHeader) -> bytes:
    return header.to_bytes()
