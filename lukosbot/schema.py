"""Configuration schema of the bot.

The configuration file has three sections::

    [lukosbot]
    prefix = "/"
    duplicate_commands = "reject"
    disabled_commands = ["coin"]

    [usage_image]
    enabled = true
    max_width = 900

    [platforms.console]
    enabled = true
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .constants import DEFAULT_PREFIX, LANE_IDLE_TIMEOUT
from .message.address import ChatPlatform
from .models import DuplicatePolicy
from .validation import ConfigField, ConfigItems, ConfigValidator, format_config_error

if TYPE_CHECKING:
    import logging

__all__ = ["BOT_SCHEMA", "PLATFORM_SCHEMA", "SECTIONS", "USAGE_IMAGE_SCHEMA", "validate_config"]


def _check_prefix(value: Any) -> list[str]:  # noqa: ANN401
    if not str(value).strip():
        return ["Prefix must not be blank"]
    if any(c.isspace() for c in str(value)):
        return ["Prefix must not contain whitespace"]
    return []


def _check_positive(value: Any) -> list[str]:  # noqa: ANN401
    return [] if float(value) > 0 else [f"Must be greater than 0, got {value}"]


def _check_platforms(value: dict) -> list[str]:
    known = [p.value for p in ChatPlatform]
    return [f"Unknown platform '{name}', expected one of: {', '.join(known)}" for name in value if name not in known]


BOT_SCHEMA = ConfigItems(
    ConfigField("prefix", str, default=DEFAULT_PREFIX, description="Text starting a command", validator=_check_prefix),
    ConfigField(
        "duplicate_commands",
        str,
        default=DuplicatePolicy.REJECT.value,
        description="What to do when a command name is registered twice",
        choices=[p.value for p in DuplicatePolicy],
    ),
    ConfigField("disabled_commands", list, default=[], description="Built-in commands not to register"),
    ConfigField("include", list, default=[], description="Extra configuration files or directories to merge"),
    ConfigField(
        "lane_idle_timeout",
        (int, float),
        default=LANE_IDLE_TIMEOUT,
        description="Seconds before an idle chat lane is dropped",
        validator=_check_positive,
    ),
    ConfigField("failure_reply", str, description="Reply sent when a command crashes"),
)

USAGE_IMAGE_SCHEMA = ConfigItems(
    ConfigField("enabled", bool, default=True, description="Allow usage pages to be sent as images"),
    ConfigField("max_width", int, default=900, description="Maximum image width in pixels", validator=_check_positive),
    ConfigField("min_width", int, default=420, description="Minimum image width in pixels", validator=_check_positive),
    ConfigField("padding", int, default=20, description="Margin around the text in pixels"),
    ConfigField("line_spacing", float, default=1.25, description="Line height relative to the font height", validator=_check_positive),
    ConfigField("fonts", list, default=[], description="Font files tried before the default text fonts"),
    ConfigField("mono_fonts", list, default=[], description="Font files tried before the default code fonts"),
)

PLATFORM_SCHEMA = ConfigItems(
    ConfigField("enabled", bool, default=True, description="Start this platform"),
)

ROOT_SCHEMA = ConfigItems(
    ConfigField("lukosbot", dict),
    ConfigField("usage_image", dict),
    ConfigField("platforms", dict, children=PLATFORM_SCHEMA, children_allow_extra=True, validator=_check_platforms),
)

SECTIONS: dict[str, ConfigItems] = {
    "lukosbot": BOT_SCHEMA,
    "usage_image": USAGE_IMAGE_SCHEMA,
}


def validate_config(config: dict[str, Any], log: logging.Logger) -> tuple[list[str], list[str]]:
    """Check a full configuration.

    Args:
        config: The loaded configuration
        log: Logger receiving unknown-key warnings

    Returns:
        A tuple of (errors, warnings)
    """
    root = ConfigValidator(config, "root", log)
    errors = root.validate(ROOT_SCHEMA)
    warnings = root.warn_unknown_keys(ROOT_SCHEMA)
    for name, schema in SECTIONS.items():
        section = config.get(name, {})
        if not isinstance(section, dict):
            continue
        validator = ConfigValidator(section, name, log)
        errors.extend(validator.validate(schema))
        warnings.extend(validator.warn_unknown_keys(schema))

    image = config.get("usage_image", {})
    if isinstance(image, dict):
        low, high = image.get("min_width"), image.get("max_width")
        if isinstance(low, int) and isinstance(high, int) and low > high:
            errors.append(format_config_error("usage_image", "min_width", f"{low} is larger than max_width ({high})"))
    return errors, warnings
