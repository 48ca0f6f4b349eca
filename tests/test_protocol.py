"""Tests for protocol variants (preset sequencing and slot policy)."""

import pytest

from fusion_kbd.constants import CUSTOM_SLOT_BASE, KIND_PRESET
from fusion_kbd.lighting import Color, Preset
from fusion_kbd.protocol import (
    DEFAULT_VARIANT,
    DIRECT,
    LEGACY,
    PRIMED,
    VARIANTS,
    DirectPresetSequence,
    PrimedPresetSequence,
    get_variant,
)


class TestDirectPresetSequence:

    def test_single_header(self):
        headers = DirectPresetSequence().headers(Preset.RIPPLE, 5, 25, Color.BLUE)
        assert len(headers) == 1
        h = headers[0]
        assert (h.kind, h.mode, h.speed_or_length, h.brightness, h.color) == (
            KIND_PRESET, 0x06, 5, 25, 0x04,
        )


class TestPrimedPresetSequence:

    def test_priming_then_preset(self):
        headers = PrimedPresetSequence().headers(Preset.STATIC, 3, 40, Color.RED)
        assert len(headers) == 2
        priming, preset = headers
        assert priming.kind == KIND_PRESET
        assert priming.mode == CUSTOM_SLOT_BASE
        assert priming.speed_or_length == 0
        assert priming.color == 0
        assert priming.brightness == 40
        assert preset.mode == Preset.STATIC

    def test_second_header_matches_direct(self):
        primed = PrimedPresetSequence().headers(Preset.HEDGE, 2, 10, Color.WHITE)
        direct = DirectPresetSequence().headers(Preset.HEDGE, 2, 10, Color.WHITE)
        assert primed[1] == direct[0]


class TestVariants:

    def test_registry(self):
        assert set(VARIANTS) == {"primed", "direct", "legacy"}

    def test_default_is_primed(self):
        assert DEFAULT_VARIANT is PRIMED

    def test_slot_based_variants_pass_slot_through(self):
        assert PRIMED.resolve_slot(4) == 4
        assert DIRECT.resolve_slot(2) == 2

    def test_legacy_fixes_slot_zero(self):
        assert LEGACY.resolve_slot(3) == 0

    def test_preset_headers_delegate(self):
        assert len(PRIMED.preset_headers(Preset.WAVE, 5, 25, Color.RAND)) == 2
        assert len(DIRECT.preset_headers(Preset.WAVE, 5, 25, Color.RAND)) == 1

    def test_get_variant_case_insensitive(self):
        assert get_variant(" Direct ") is DIRECT

    def test_get_variant_unknown(self):
        with pytest.raises(ValueError, match="unknown protocol variant"):
            get_variant("turbo")
