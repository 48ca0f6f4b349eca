"""
Protocol variants.

Firmware revisions of the Fusion keyboard disagree on two details:

* Preset switching: some revisions apply the preset header directly, others
  only apply it reliably after a "priming" selection of custom slot 0x33.
* Custom profiles: newer tools address all five slots, the first tool
  always wrote and selected slot 0.

Each detail is a small strategy object; a ``ProtocolVariant`` bundles one of
each under a name that can be picked from the config file or the CLI.
There is no firmware detection, the variant is configuration.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from .constants import CUSTOM_SLOT_BASE, KIND_PRESET
from .header import CommandHeader
from .lighting import Color, Preset


# =========================================================================
# Preset sequencing
# =========================================================================

class PresetSequence(ABC):
    """Produces the control-transfer headers for one preset switch."""

    name: str = ""

    @abstractmethod
    def headers(self, preset: Preset, speed: int, brightness: int,
                color: Color) -> List[CommandHeader]:
        ...


class DirectPresetSequence(PresetSequence):
    """One transfer carrying the preset header."""

    name = "direct"

    def headers(self, preset, speed, brightness, color):
        return [CommandHeader.build(KIND_PRESET, int(preset), speed, brightness, int(color))]


class PrimedPresetSequence(PresetSequence):
    """Select custom slot 0x33 first, then the preset.

    The priming selection is overridden immediately by the second header,
    so the visible result is the same as :class:`DirectPresetSequence`.
    """

    name = "primed"

    def headers(self, preset, speed, brightness, color):
        priming = CommandHeader.build(KIND_PRESET, CUSTOM_SLOT_BASE, 0, brightness, 0)
        return [priming] + DirectPresetSequence().headers(preset, speed, brightness, color)


# =========================================================================
# Variants
# =========================================================================

@dataclass(frozen=True)
class ProtocolVariant:
    """A named combination of preset sequencing and custom-slot policy.

    Attributes:
        name: Config/CLI name.
        presets: Preset sequencing strategy.
        fixed_slot: When set, every custom-profile operation targets this
            slot regardless of the slot the caller asked for.
        description: One-line help text.
    """
    name: str
    presets: PresetSequence
    fixed_slot: Optional[int] = None
    description: str = ""

    def resolve_slot(self, slot: int) -> int:
        return self.fixed_slot if self.fixed_slot is not None else slot

    def preset_headers(self, preset: Preset, speed: int, brightness: int,
                       color: Color) -> List[CommandHeader]:
        return self.presets.headers(preset, speed, brightness, color)


PRIMED = ProtocolVariant(
    "primed", PrimedPresetSequence(),
    description="priming slot select before each preset (most reliable)",
)
DIRECT = ProtocolVariant(
    "direct", DirectPresetSequence(),
    description="single control transfer per preset",
)
LEGACY = ProtocolVariant(
    "legacy", DirectPresetSequence(), fixed_slot=0,
    description="single transfer presets, custom profiles always in slot 0",
)

VARIANTS: Dict[str, ProtocolVariant] = {v.name: v for v in (PRIMED, DIRECT, LEGACY)}
DEFAULT_VARIANT = PRIMED


def get_variant(name: str) -> ProtocolVariant:
    """Look up a variant by name.

    Raises:
        ValueError: Unknown variant name.
    """
    try:
        return VARIANTS[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"unknown protocol variant {name!r} (choose from {', '.join(VARIANTS)})"
        ) from None
