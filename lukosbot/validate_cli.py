"""CLI validation entry point for lukosbot configuration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .config_loader import ConfigLoader
from .logging_setup import get_logger
from .models import ConfigError, ExitCode
from .schema import validate_config

if TYPE_CHECKING:
    from pathlib import Path

__all__ = ["run_validate"]


def run_validate(config_filename: str | Path = "") -> ExitCode:
    """Validate the configuration file without starting the bot.

    Prints every error and warning found.

    Returns:
        SUCCESS when the configuration has no error, CONFIG_ERROR otherwise
    """
    log = get_logger("validate")
    try:
        config = ConfigLoader(log).load_sync(config_filename)
    except ConfigError as e:
        print(f"ERROR: {e}")
        return ExitCode.CONFIG_ERROR

    silent_logger = logging.getLogger("lukosbot.validate.schema")
    silent_logger.addHandler(logging.NullHandler())
    silent_logger.propagate = False
    errors, warnings = validate_config(config, silent_logger)

    for error in errors:
        print(f"ERROR: {error}")
    for warning in warnings:
        print(f"WARNING: {warning}")

    if not errors and not warnings:
        print("Configuration is valid!")
        return ExitCode.SUCCESS
    if errors:
        print(f"Found {len(errors)} error(s) and {len(warnings)} warning(s)")
        return ExitCode.CONFIG_ERROR
    print(f"Found {len(warnings)} warning(s)")
    return ExitCode.SUCCESS
