"""Platform-related utility functions."""

import os

from gi.repository import GLib

APP_ID = "com.github.mfat.ports-info"
APP_NAME = "ports-info"


def get_config_dir() -> str:
    """Return the per-user configuration directory for Ports Info."""
    return os.path.join(GLib.get_user_config_dir(), APP_NAME)


def get_data_dir() -> str:
    """Return the per-user data directory (logs live here)."""
    return os.path.join(GLib.get_user_data_dir(), APP_NAME)
