"""
Debug output for the calendar backend.

Modules print timestamped lines to stderr through debug_print(). Output is
disabled until set_debug(True) is called (or the configuration enables it).
"""

import sys
from datetime import datetime


_debug_enabled: bool = False


def set_debug(enabled: bool):
    """Enable or disable debug output for the whole backend."""
    global _debug_enabled
    _debug_enabled = enabled


def is_debug_enabled() -> bool:
    return _debug_enabled


def debug_print(tag: str, message: str) -> None:
    """Print '[HH:MM:SS] TAG: message' to stderr when debugging is on."""
    if not _debug_enabled:
        return
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] {tag}: {message}", file=sys.stderr)
