"""
Built-in lighting presets and predefined colors.

Both tables are closed enumerations whose values are the one-byte codes the
firmware expects in the command header.  Human-readable names are the
snake_case member names; the random/cycle color also answers to
``rainbow`` and ``cycle``.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Dict, FrozenSet, List

from .errors import UnknownColorName, UnknownPresetName


class Preset(IntEnum):
    """Built-in effects (header mode byte)."""
    STATIC = 0x01
    BREATHING = 0x02
    WAVE = 0x03
    FADE_ON_KEYPRESS = 0x04
    MARQUEE = 0x05
    RIPPLE = 0x06
    FLASH_ON_KEYPRESS = 0x07
    NEON = 0x08
    RAINBOW_MARQUEE = 0x09
    RAINDROP = 0x0a
    CIRCLE_MARQUEE = 0x0b
    HEDGE = 0x0c
    ROTATE = 0x0d

    @property
    def label(self) -> str:
        return self.name.lower()

    @property
    def takes_color(self) -> bool:
        """Whether the effect uses the color byte at all."""
        return self not in COLORLESS_PRESETS


class Color(IntEnum):
    """Predefined colors (header color byte).  0 cycles through all colors."""
    RAND = 0x00
    RED = 0x01
    GREEN = 0x02
    YELLOW = 0x03
    BLUE = 0x04
    ORANGE = 0x05
    PURPLE = 0x06
    WHITE = 0x07

    @property
    def label(self) -> str:
        return self.name.lower()


# Wave and neon always cycle through the spectrum
COLORLESS_PRESETS: FrozenSet[Preset] = frozenset({Preset.WAVE, Preset.NEON})

COLOR_ALIASES: Dict[str, Color] = {
    'rand': Color.RAND,
    'rainbow': Color.RAND,
    'cycle': Color.RAND,
}

_PRESETS_BY_NAME: Dict[str, Preset] = {p.label: p for p in Preset}
_COLORS_BY_NAME: Dict[str, Color] = {
    **{c.label: c for c in Color},
    **COLOR_ALIASES,
}


def _normalize(name: str) -> str:
    return name.strip().lower().replace('-', '_')


def parse_preset(name: str) -> Preset:
    """Map a human-readable preset name to its Preset.

    Raises:
        UnknownPresetName: If the name is not a known preset.
    """
    try:
        return _PRESETS_BY_NAME[_normalize(name)]
    except KeyError:
        raise UnknownPresetName(name) from None


def parse_color(name: str) -> Color:
    """Map a human-readable color name (or alias) to its Color.

    Raises:
        UnknownColorName: If the name is not a known color or alias.
    """
    try:
        return _COLORS_BY_NAME[_normalize(name)]
    except KeyError:
        raise UnknownColorName(name) from None


def preset_names() -> List[str]:
    return list(_PRESETS_BY_NAME)


def color_names() -> List[str]:
    """All accepted color names, aliases included."""
    return list(_COLORS_BY_NAME)
