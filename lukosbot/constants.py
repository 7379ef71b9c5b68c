"""Shared constants for lukosbot."""

import os
from pathlib import Path

__all__ = [
    "CONFIG_FILE",
    "DEFAULT_PREFIX",
    "DICE_MAX_COUNT",
    "LANE_IDLE_TIMEOUT",
    "MEDIA_OUTPUT_DIR",
]

# Config file paths - use XDG_CONFIG_HOME with fallback to ~/.config
_xdg_config_home = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
CONFIG_FILE = _xdg_config_home / "lukosbot" / "config.toml"

DEFAULT_PREFIX = "/"

# Seconds a chat lane stays alive without messages
LANE_IDLE_TIMEOUT = 300.0

DICE_MAX_COUNT = 100_000

# Where the console adapter writes images and files
MEDIA_OUTPUT_DIR = Path(os.environ.get("XDG_CACHE_HOME") or Path.home() / ".cache") / "lukosbot" / "media"
