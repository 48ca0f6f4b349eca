"""Tests for conf -- settings persistence and coercion."""

import json

import pytest

from fusion_kbd import conf
from fusion_kbd.conf import Settings, coerce_setting, load_config, save_config


class TestConfigFile:

    def test_missing_file_is_empty(self):
        assert load_config() == {}

    def test_round_trip(self, _isolated_config):
        save_config({'brightness': 10})
        assert load_config() == {'brightness': 10}
        assert (_isolated_config / "config.json").exists()

    def test_corrupt_file_is_empty(self, _isolated_config):
        _isolated_config.mkdir(parents=True)
        (_isolated_config / "config.json").write_text("{not json")
        assert load_config() == {}

    def test_non_dict_is_empty(self, _isolated_config):
        _isolated_config.mkdir(parents=True)
        (_isolated_config / "config.json").write_text("[1, 2]")
        assert load_config() == {}


class TestCoerce:

    def test_brightness_clamped(self):
        assert coerce_setting('brightness', 80) == 50
        assert coerce_setting('brightness', -3) == 0
        assert coerce_setting('brightness', "12") == 12

    def test_speed_clamped(self):
        assert coerce_setting('speed', 11) == 10

    def test_bad_int_falls_back(self):
        assert coerce_setting('speed', "fast") == conf.DEFAULTS['speed']

    @pytest.mark.parametrize("raw,expected", [
        ("true", True), ("on", True), ("0", False), ("no", False), (1, True),
    ])
    def test_bool(self, raw, expected):
        assert coerce_setting('strict_transfers', raw) is expected

    def test_variant(self):
        assert coerce_setting('variant', "Legacy") == "legacy"
        with pytest.raises(ValueError):
            coerce_setting('variant', "warp")

    def test_unknown_key(self):
        with pytest.raises(KeyError):
            coerce_setting('colour', 1)


class TestSettings:

    def test_defaults(self):
        s = Settings()
        assert s.variant == "primed"
        assert s.strict_transfers is False
        assert s.brightness == 25
        assert s.speed == 5

    def test_reads_file(self):
        save_config({'variant': 'direct', 'brightness': 40, 'unrelated': 1})
        s = Settings()
        assert s.variant == "direct"
        assert s.brightness == 40
        assert 'unrelated' not in s.as_dict()

    def test_invalid_variant_in_file_uses_default(self, caplog):
        save_config({'variant': 'warp'})
        assert Settings().variant == "primed"
        assert "unknown protocol variant" in caplog.text

    def test_set_persists(self, _isolated_config):
        s = Settings()
        assert s.set('speed', "8") == 8
        stored = json.loads((_isolated_config / "config.json").read_text())
        assert stored == {'speed': 8}
        assert Settings().speed == 8

    def test_set_without_persist(self):
        s = Settings()
        s.set('brightness', 3, persist=False)
        assert s.brightness == 3
        assert load_config() == {}
