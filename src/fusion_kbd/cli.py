#!/usr/bin/env python3
"""
fusion-kbd - Command Line Interface

Entry point for controlling the Aero 15X Fusion RGB keyboard.  Argument
parsing and validation live here; everything that touches the device goes
through KeyboardSession.
"""

import argparse
import logging
import os
import subprocess
import sys
from pathlib import Path

from fusion_kbd.__version__ import __version__
from fusion_kbd.conf import Settings
from fusion_kbd.constants import (
    CUSTOM_SLOT_COUNT,
    FUSION_PID,
    FUSION_VID,
    MAX_BRIGHTNESS,
    MAX_SPEED,
    PROFILE_SIZE,
)
from fusion_kbd.errors import (
    DeviceAccessDenied,
    DeviceNotFound,
    FusionKbdError,
)
from fusion_kbd.lighting import Color, Preset, color_names, parse_color, parse_preset
from fusion_kbd.protocol import VARIANTS, get_variant
from fusion_kbd.session import KeyboardSession

log = logging.getLogger(__name__)

UDEV_RULES_PATH = "/etc/udev/rules.d/99-fusion-kbd.rules"

_PERMISSION_HINT = (
    "Are you running as root? Install the udev rule with "
    "'sudo fusion-kbd setup-udev' to run unprivileged."
)


# =========================================================================
# Argument types
# =========================================================================

def _ranged_int(upper: int, what: str):
    def convert(text):
        try:
            value = int(text)
        except ValueError:
            raise argparse.ArgumentTypeError(f"{what} must be a number from 0 - {upper}") from None
        if not 0 <= value <= upper:
            raise argparse.ArgumentTypeError(f"{what} must be a number from 0 - {upper}")
        return value
    convert.__name__ = what
    return convert


_brightness = _ranged_int(MAX_BRIGHTNESS, "brightness")
_speed = _ranged_int(MAX_SPEED, "speed")
_slot = _ranged_int(CUSTOM_SLOT_COUNT - 1, "slot")


def _preset_arg(text):
    try:
        return parse_preset(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _color_arg(text):
    try:
        return parse_color(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _setup_logging(verbose: int) -> None:
    if verbose >= 2:
        logging.basicConfig(level=logging.DEBUG, format='[%(levelname)s] %(name)s: %(message)s')
        logging.getLogger('usb').setLevel(logging.INFO)
    elif verbose == 1:
        logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
    else:
        logging.basicConfig(level=logging.WARNING, format='[%(levelname)s] %(message)s')


# =========================================================================
# Parser
# =========================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fusion-kbd",
        description="Control the Fusion RGB keyboard on the Gigabyte Aero 15X",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    fusion-kbd list                       Show presets, colors and variants
    fusion-kbd preset ripple blue -s 7    Ripple effect in blue
    fusion-kbd preset wave -b 50          Wave effect, full brightness
    fusion-kbd custom layout.bin --slot 2 Upload a 512-byte profile and use it
    fusion-kbd slot 2                     Switch to custom slot 2
    fusion-kbd dump backup.bin --slot 0   Save custom slot 0 to a file
        """
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v, -vv)"
    )
    parser.add_argument(
        "--variant",
        choices=sorted(VARIANTS),
        help="Protocol variant (default from config, else 'primed')"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Fail on short interrupt transfers instead of warning"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("list", help="List presets, colors and protocol variants")

    preset_parser = subparsers.add_parser("preset", help="Set lighting from a built-in preset")
    preset_parser.add_argument("preset", type=_preset_arg, help="Preset name (see 'list')")
    preset_parser.add_argument("color", nargs="?", type=_color_arg,
                               help="Color name; rand/rainbow/cycle for all colors")
    preset_parser.add_argument("--speed", "-s", type=_speed, help="Effect speed (0 - 10)")
    preset_parser.add_argument("--brightness", "-b", type=_brightness,
                               help="Keyboard brightness (0 - 50)")

    custom_parser = subparsers.add_parser("custom", help="Upload a custom lighting profile")
    custom_parser.add_argument("config", help="RGB configuration file (512-byte binary)")
    custom_parser.add_argument("--slot", type=_slot, default=0, help="Custom slot (0 - 4)")
    custom_parser.add_argument("--brightness", "-b", type=_brightness,
                               help="Keyboard brightness (0 - 50)")
    custom_parser.add_argument("--no-switch", action="store_true",
                               help="Upload only, keep the current lighting")

    slot_parser = subparsers.add_parser("slot", help="Switch to a custom slot")
    slot_parser.add_argument("slot", type=_slot, help="Custom slot (0 - 4)")
    slot_parser.add_argument("--brightness", "-b", type=_brightness,
                             help="Keyboard brightness (0 - 50)")

    dump_parser = subparsers.add_parser("dump", help="Save a custom slot to a file")
    dump_parser.add_argument("output", help="Output file (512-byte binary)")
    dump_parser.add_argument("--slot", type=_slot, default=0, help="Custom slot (0 - 4)")

    config_parser = subparsers.add_parser("config", help="Show or change saved defaults")
    config_parser.add_argument("key", nargs="?", help="Setting name")
    config_parser.add_argument("value", nargs="?", help="New value")

    udev_parser = subparsers.add_parser("setup-udev", help="Install udev rule for keyboard access")
    udev_parser.add_argument("--dry-run", action="store_true", help="Print rule without installing")

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)
    log.debug("fusion-kbd %s, command=%s", __version__, args.command)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "list":
        return list_options()
    if args.command == "config":
        return configure(args.key, args.value)
    if args.command == "setup-udev":
        return setup_udev(dry_run=args.dry_run)

    settings = Settings()
    if args.command == "preset":
        if args.color is None and args.preset.takes_color:
            parser.error(f"color must be specified for preset '{args.preset.label}'")
        return set_preset(
            settings, args,
            preset=args.preset,
            color=args.color if args.color is not None else Color.RAND,
            speed=args.speed if args.speed is not None else settings.speed,
            brightness=_pick_brightness(args, settings),
        )
    if args.command == "custom":
        return upload_custom(
            settings, args, args.config, args.slot,
            brightness=_pick_brightness(args, settings),
            switch=not args.no_switch,
        )
    if args.command == "slot":
        return select_slot(settings, args, args.slot, _pick_brightness(args, settings))
    if args.command == "dump":
        return dump_custom(settings, args, args.output, args.slot)

    return 0


def _pick_brightness(args, settings) -> int:
    return args.brightness if args.brightness is not None else settings.brightness


# =========================================================================
# Device commands
# =========================================================================

def _variant(settings, args):
    return get_variant(args.variant or settings.variant)


def _target_slot(settings, args, slot: int) -> int:
    """Slot the session will actually address under the active variant."""
    variant = _variant(settings, args)
    target = variant.resolve_slot(slot)
    if target != slot:
        log.warning("variant %s uses fixed slot %d; ignoring slot %d",
                    variant.name, target, slot)
    return target


def _make_session(settings, args) -> KeyboardSession:
    variant = _variant(settings, args)
    strict = args.strict if args.strict is not None else settings.strict_transfers
    return KeyboardSession(variant=variant, strict=strict)


def _report(e: FusionKbdError) -> int:
    print(f"Error: {e}", file=sys.stderr)
    if isinstance(e, (DeviceNotFound, DeviceAccessDenied)):
        print(_PERMISSION_HINT, file=sys.stderr)
    return 1


def set_preset(settings, args, preset, color, speed, brightness):
    """Switch to a built-in preset."""
    try:
        with _make_session(settings, args) as kbd:
            kbd.set_preset(preset, speed, brightness, color)
    except FusionKbdError as e:
        return _report(e)
    print(f"Preset: {preset.label} color={color.label} speed={speed} brightness={brightness}")
    return 0


def upload_custom(settings, args, path, slot, brightness, switch=True):
    """Upload a 512-byte profile file and optionally switch to it."""
    try:
        profile = Path(path).read_bytes()
    except OSError as e:
        print(f"couldn't open '{path}': {e.strerror or e}", file=sys.stderr)
        return 1
    if len(profile) != PROFILE_SIZE:
        print(f"'{path}' must be exactly {PROFILE_SIZE} bytes (got {len(profile)})",
              file=sys.stderr)
        return 1

    try:
        with _make_session(settings, args) as kbd:
            if switch:
                kbd.apply_custom(slot, profile, brightness)
            else:
                kbd.upload_custom(slot, profile)
    except FusionKbdError as e:
        return _report(e)
    target = _target_slot(settings, args, slot)
    print(f"Uploaded '{path}' to slot {target}" + (" (active)" if switch else ""))
    return 0


def select_slot(settings, args, slot, brightness):
    """Switch to a previously uploaded custom slot."""
    try:
        with _make_session(settings, args) as kbd:
            kbd.set_custom_slot(slot, brightness)
    except FusionKbdError as e:
        return _report(e)
    print(f"Custom slot {_target_slot(settings, args, slot)} active")
    return 0


def dump_custom(settings, args, path, slot):
    """Read a custom slot back into a file."""
    try:
        with _make_session(settings, args) as kbd:
            data = kbd.download_custom(slot)
    except FusionKbdError as e:
        return _report(e)
    try:
        Path(path).write_bytes(data)
    except OSError as e:
        print(f"couldn't write '{path}': {e.strerror or e}", file=sys.stderr)
        return 1
    print(f"Saved slot {_target_slot(settings, args, slot)} to '{path}'")
    return 0


# =========================================================================
# Offline commands
# =========================================================================

def list_options():
    """Print presets, colors and protocol variants."""
    print("Presets:")
    for preset in Preset:
        note = "" if preset.takes_color else "  (color optional)"
        print(f"  {preset.label:<20} 0x{preset.value:02x}{note}")
    print("\nColors:")
    for name in color_names():
        print(f"  {name:<20} 0x{parse_color(name).value:02x}")
    print("\nProtocol variants:")
    for name, variant in VARIANTS.items():
        print(f"  {name:<20} {variant.description}")
    return 0


def configure(key=None, value=None):
    """Show all settings, one setting, or update one setting."""
    settings = Settings()
    values = settings.as_dict()
    if key is None:
        for k, v in values.items():
            print(f"{k} = {v}")
        return 0
    if key not in values:
        print(f"Unknown setting '{key}' (choose from {', '.join(values)})", file=sys.stderr)
        return 1
    if value is None:
        print(f"{key} = {values[key]}")
        return 0
    try:
        stored = settings.set(key, value)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"{key} = {stored}")
    return 0


def udev_rule() -> str:
    return (
        "# Gigabyte Aero 15X Fusion RGB keyboard, auto-generated by fusion-kbd setup-udev\n"
        f'SUBSYSTEM=="usb", ATTRS{{idVendor}}=="{FUSION_VID:04x}", '
        f'ATTRS{{idProduct}}=="{FUSION_PID:04x}", MODE="0666", TAG+="uaccess"\n'
    )


def setup_udev(dry_run=False):
    """Install a udev rule so the keyboard can be driven without root."""
    rules_content = udev_rule()

    if dry_run:
        print(rules_content)
        print(f"# Would write to {UDEV_RULES_PATH}")
        return 0

    if os.geteuid() != 0:
        print("Error: root required. Run with:", file=sys.stderr)
        print("  sudo fusion-kbd setup-udev", file=sys.stderr)
        print("\nOr preview first:", file=sys.stderr)
        print("  fusion-kbd setup-udev --dry-run", file=sys.stderr)
        return 1

    try:
        with open(UDEV_RULES_PATH, "w") as f:
            f.write(rules_content)
    except OSError as e:
        print(f"Error writing {UDEV_RULES_PATH}: {e}", file=sys.stderr)
        return 1
    print(f"Wrote {UDEV_RULES_PATH}")

    subprocess.run(["udevadm", "control", "--reload-rules"], check=False)
    subprocess.run(["udevadm", "trigger"], check=False)
    print("\nDone. Replug the keyboard (or reboot) for changes to take effect.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
