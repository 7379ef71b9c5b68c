"""Configuration file loading utilities.

This module handles loading, parsing, and merging TOML configuration files.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .config import merge
from .constants import CONFIG_FILE
from .models import ConfigError

if TYPE_CHECKING:
    import logging

__all__ = ["ConfigLoader", "expand_path"]


def expand_path(name: str | Path, relative_to: Path | None = None) -> Path:
    """Expand ``~`` and environment variables; relative paths are taken from `relative_to`."""
    path = Path(os.path.expandvars(str(name))).expanduser()
    if relative_to is not None and not path.is_absolute():
        path = relative_to / path
    return path


class ConfigLoader:
    """Handles loading and merging configuration files.

    Supports:
    - TOML configuration files
    - Directory-based config (every .toml file merged, in name order)
    - Include directives (``[lukosbot] include = [...]``) for modular configuration
    """

    def __init__(self, log: logging.Logger) -> None:
        """Initialize the config loader.

        Args:
            log: Logger instance for status and error messages
        """
        self.log = log
        self._config: dict[str, Any] = {}
        self._seen: set[Path] = set()

    @property
    def config(self) -> dict[str, Any]:
        """Return the loaded configuration."""
        return self._config

    @property
    def sources(self) -> list[Path]:
        """Files read so far."""
        return sorted(self._seen)

    async def load(self, config_filename: str | Path = "") -> dict[str, Any]:
        """Load configuration from file or directory.

        Args:
            config_filename: Optional path to config file or directory.
                           If empty, uses default CONFIG_FILE location.

        Returns:
            The loaded and merged configuration dictionary.

        Raises:
            ConfigError: If config file not found or has syntax errors.
        """
        return self.load_sync(config_filename)

    def load_sync(self, config_filename: str | Path = "") -> dict[str, Any]:
        """Same as `load`, for callers without an event loop."""
        fname = expand_path(config_filename) if config_filename else CONFIG_FILE
        merge(self._config, self._open_config(fname))
        return self._config

    def _open_config(self, fname: Path) -> dict[str, Any]:
        if fname.is_dir():
            config = self._load_config_directory(fname)
            base = fname
        else:
            config = self._load_config_file(fname)
            base = fname.parent

        includes = config.get("lukosbot", {}).get("include", [])
        if not isinstance(includes, list):
            includes = [includes]
        for extra_config in list(includes):
            extra = expand_path(extra_config, base)
            if extra.resolve() in self._seen:
                self.log.warning("Skipping %s: already included", extra)
                continue
            merge(config, self._open_config(extra))
        return config

    def _load_config_directory(self, directory: Path) -> dict[str, Any]:
        """Load and merge all .toml files from a directory.

        Args:
            directory: Path to directory containing .toml files

        Returns:
            Merged configuration from all files
        """
        config: dict[str, Any] = {}
        for toml_file in sorted(f.name for f in directory.iterdir()):
            if not toml_file.endswith(".toml"):
                continue
            merge(config, self._load_config_file(directory / toml_file))
        return config

    def _load_config_file(self, fname: Path) -> dict[str, Any]:
        """Load a single configuration file.

        Raises:
            ConfigError: If file not found or has syntax errors
        """
        if not fname.exists():
            self.log.critical("Config file not found! Please create %s", fname)
            raise ConfigError(f"Config file not found: {fname}")
        self.log.info("Loading %s", fname)
        self._seen.add(fname.resolve())
        with fname.open("rb") as f:
            try:
                return tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                self.log.critical("Problem reading %s: %s", fname, e)
                raise ConfigError(f"Problem reading {fname}: {e}") from e
