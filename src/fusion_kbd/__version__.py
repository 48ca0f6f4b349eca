"""fusion-kbd version information."""

__version__ = "0.3.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Version history:
# 0.1.0 - Initial release: preset switching, custom profile upload (slot 0)
# 0.2.0 - All five custom slots, 'slot' command, priming transfer before presets
# 0.3.0 - Protocol variants (primed/direct/legacy), slot read-back ('dump'),
#         config file, udev rule helper, logging via -v/-vv
