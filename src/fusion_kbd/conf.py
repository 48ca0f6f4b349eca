"""Settings and config persistence for fusion-kbd.

Config is stored at ~/.config/fusion-kbd/config.json (XDG-compliant).

Usage:
    from fusion_kbd.conf import Settings

    settings = Settings()
    settings.variant            # ProtocolVariant name ("primed")
    settings.strict_transfers   # raise on short interrupt writes
    settings.brightness         # default brightness 0-50
    settings.speed              # default effect speed 0-10

    # Low-level config access
    from fusion_kbd.conf import load_config, save_config
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any

from .constants import DEFAULT_BRIGHTNESS, DEFAULT_SPEED, MAX_BRIGHTNESS, MAX_SPEED
from .protocol import DEFAULT_VARIANT, VARIANTS

log = logging.getLogger(__name__)

# =========================================================================
# Config file location (XDG-compliant)
# =========================================================================

_XDG_CONFIG = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
CONFIG_DIR = os.path.join(_XDG_CONFIG, 'fusion-kbd')
CONFIG_PATH = os.path.join(CONFIG_DIR, 'config.json')

DEFAULTS: dict[str, Any] = {
    'variant': DEFAULT_VARIANT.name,
    'strict_transfers': False,
    'brightness': DEFAULT_BRIGHTNESS,
    'speed': DEFAULT_SPEED,
}


# =========================================================================
# Low-level config persistence
# =========================================================================

def load_config() -> dict:
    """Load user config from disk. Returns empty dict on missing/corrupt file."""
    try:
        with open(CONFIG_PATH, 'r') as f:
            data = json.load(f)
    except FileNotFoundError:
        return {}
    except (json.JSONDecodeError, OSError) as e:
        log.warning("Ignoring unreadable config %s: %s", CONFIG_PATH, e)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(config: dict):
    """Save user config to disk."""
    os.makedirs(CONFIG_DIR, exist_ok=True)
    with open(CONFIG_PATH, 'w') as f:
        json.dump(config, f, indent=2)


# =========================================================================
# Value coercion
# =========================================================================

def _clamp_int(value: Any, default: int, upper: int) -> int:
    try:
        return max(0, min(upper, int(value)))
    except (TypeError, ValueError):
        return default


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def coerce_setting(key: str, value: Any) -> Any:
    """Convert a raw (possibly string) value for *key* to its stored type.

    Raises:
        KeyError: Unknown setting.
        ValueError: Unknown protocol variant name.
    """
    if key not in DEFAULTS:
        raise KeyError(key)
    if key == 'variant':
        name = str(value).strip().lower()
        if name not in VARIANTS:
            raise ValueError(
                f"unknown protocol variant {value!r} (choose from {', '.join(VARIANTS)})"
            )
        return name
    if key == 'strict_transfers':
        return _to_bool(value)
    if key == 'brightness':
        return _clamp_int(value, DEFAULT_BRIGHTNESS, MAX_BRIGHTNESS)
    return _clamp_int(value, DEFAULT_SPEED, MAX_SPEED)


# =========================================================================
# Settings
# =========================================================================

class Settings:
    """Typed view of the config file, falling back to DEFAULTS."""

    def __init__(self) -> None:
        raw = load_config()
        self._values: dict[str, Any] = dict(DEFAULTS)
        for key, value in raw.items():
            if key not in DEFAULTS:
                continue
            try:
                self._values[key] = coerce_setting(key, value)
            except ValueError as e:
                log.warning("Config: %s; using %r", e, DEFAULTS[key])

    @property
    def variant(self) -> str:
        return self._values['variant']

    @property
    def strict_transfers(self) -> bool:
        return self._values['strict_transfers']

    @property
    def brightness(self) -> int:
        return self._values['brightness']

    @property
    def speed(self) -> int:
        return self._values['speed']

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def set(self, key: str, value: Any, persist: bool = True) -> Any:
        """Update one setting and (by default) write it to the config file."""
        coerced = coerce_setting(key, value)
        self._values[key] = coerced
        if persist:
            config = load_config()
            config[key] = coerced
            save_config(config)
        log.info("Settings: %s = %r", key, coerced)
        return coerced
