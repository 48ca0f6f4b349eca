"""Shared fixtures: keep every test away from the real config file."""
import pytest


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    """Point fusion_kbd.conf at a per-test config directory."""
    config_dir = tmp_path / "fusion-kbd"
    monkeypatch.setattr("fusion_kbd.conf.CONFIG_DIR", str(config_dir))
    monkeypatch.setattr("fusion_kbd.conf.CONFIG_PATH", str(config_dir / "config.json"))
    yield config_dir
