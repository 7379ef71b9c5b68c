"""Configuration schemas and their validation.

Schemas are declared as `ConfigItems` lists of `ConfigField`; a
`ConfigValidator` checks a section against one and suggests fixes for
typos (fuzzy matching of unknown keys).

Used by:
- `LukosBot` at startup, to report configuration problems
- the ``lukosbot validate`` command
"""

from __future__ import annotations

import difflib
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, cast

from .config import BOOL_STRINGS

if TYPE_CHECKING:
    import logging

__all__ = [
    "ConfigField",
    "ConfigItems",
    "ConfigValidator",
    "format_config_error",
]


@dataclass
class ConfigField:
    """Describes an expected configuration field.

    Attributes:
        name: The configuration key name
        field_type: Expected type (str, int, float, bool, list, dict) or tuple of types for union
        required: Whether the field is required
        default: Default value if not provided
        description: Human-readable description
        choices: Valid values for enum-like fields
        validator: Custom validator returning a list of error messages
        children: Schema of each table inside a dict field (e.g. ``[platforms.<name>]``)
        children_allow_extra: If True, unknown keys in children are not reported
    """

    name: str
    field_type: type | tuple[type, ...] = str
    required: bool = False
    default: Any = None
    description: str = ""
    choices: list | None = None
    validator: Callable[[Any], list[str]] | None = None
    children: ConfigItems | None = None
    children_allow_extra: bool = False

    @property
    def type_name(self) -> str:
        """Human-readable type name, e.g. 'int or float'."""
        if isinstance(self.field_type, tuple):
            return " or ".join(typ.__name__ for typ in self.field_type)
        return self.field_type.__name__


class ConfigItems(list):
    """A list of ConfigField items with lookup by name."""

    def __init__(self, *args: ConfigField) -> None:
        super().__init__(args)

    def get(self, name: str) -> ConfigField | None:
        for prop in self:
            if prop.name == name:
                return cast("ConfigField", prop)
        return None


def _find_similar_key(unknown_key: str, known_keys: list[str]) -> str | None:
    matches = difflib.get_close_matches(unknown_key, known_keys, n=1)
    return matches[0] if matches else None


def format_config_error(section: str, field: str, message: str, suggestion: str = "") -> str:
    """Format a configuration error message.

    Args:
        section: Section name, e.g. "lukosbot" or "platforms.console"
        field: Field name that has the error
        message: Error description
        suggestion: Optional hint to fix the error
    """
    msg = f"[{section}] Config error for '{field}': {message}"
    if suggestion:
        msg += f" -> {suggestion}"
    return msg


class ConfigValidator:
    """Validates one configuration section against a schema."""

    def __init__(self, config: dict, section: str, logger: logging.Logger) -> None:
        """Initialize the validator.

        Args:
            config: The section to validate
            section: Name of the section, for messages
            logger: Logger receiving unknown-key warnings
        """
        self.config = config
        self.section = section
        self.log = logger

    def validate(self, schema: ConfigItems) -> list[str]:
        """Validate the section.

        Returns:
            Error messages (empty if validation passed)
        """
        errors: list[str] = []
        for field_def in schema:
            value = self.config.get(field_def.name)

            if field_def.required and value is None:
                errors.append(format_config_error(self.section, field_def.name, "Missing required field", f"Add '{field_def.name}' to [{self.section}]"))
                continue
            if value is None:
                continue

            type_error = self._check_type(field_def, value)
            if type_error:
                errors.append(type_error)
                continue

            if field_def.choices is not None and field_def.validator is None and value not in field_def.choices:
                choices_str = ", ".join(repr(c) for c in field_def.choices)
                errors.append(format_config_error(self.section, field_def.name, f"Invalid value {value!r}", f"Valid options: {choices_str}"))
            if field_def.validator:
                errors.extend(format_config_error(self.section, field_def.name, e) for e in field_def.validator(value))
        return errors

    def _check_type(self, field_def: ConfigField, value: Any) -> str | None:  # noqa: ANN401
        expected = field_def.field_type
        if isinstance(expected, tuple):
            for single_type in expected:
                if self._check_type(ConfigField(field_def.name, single_type), value) is None:
                    return None
            return format_config_error(self.section, field_def.name, f"Expected {field_def.type_name}, got {type(value).__name__}")

        if expected is bool:
            if isinstance(value, bool) or (isinstance(value, str) and value.lower() in BOOL_STRINGS):
                return None
            return format_config_error(self.section, field_def.name, f"Expected bool, got {type(value).__name__}", "Use true/false (without quotes)")
        if expected in (int, float):
            if isinstance(value, int | float) and not isinstance(value, bool):
                return None
            try:
                expected(value)
            except (ValueError, TypeError):
                return format_config_error(
                    self.section,
                    field_def.name,
                    f"Expected {expected.__name__}, got {type(value).__name__}",
                    f"Use {field_def.name} = 42 (without quotes)",
                )
            return None
        if expected is str and not isinstance(value, str):
            return format_config_error(self.section, field_def.name, f"Expected str, got {type(value).__name__}", f'Use {field_def.name} = "value"')
        if expected is list and not isinstance(value, list):
            return format_config_error(self.section, field_def.name, f"Expected list, got {type(value).__name__}", f'Use {field_def.name} = ["item1", "item2"]')
        if expected is dict:
            if not isinstance(value, dict):
                return format_config_error(self.section, field_def.name, f"Expected dict/section, got {type(value).__name__}")
            if field_def.children is not None:
                child_errors = self._validate_children(field_def, value)
                if child_errors:
                    return "\n".join(child_errors)
        return None

    def _validate_children(self, field_def: ConfigField, value: dict) -> list[str]:
        errors: list[str] = []
        children_schema = cast("ConfigItems", field_def.children)
        for key, child_value in value.items():
            if not isinstance(child_value, dict):
                errors.append(format_config_error(f"{self.section}.{field_def.name}", key, f"Expected dict, got {type(child_value).__name__}"))
                continue
            child_validator = ConfigValidator(child_value, f"{field_def.name}.{key}", self.log)
            errors.extend(child_validator.validate(children_schema))
            if not field_def.children_allow_extra:
                errors.extend(child_validator.warn_unknown_keys(children_schema))
        return errors

    def warn_unknown_keys(self, schema: ConfigItems) -> list[str]:
        """Log and return a warning for each key the schema does not know."""
        warnings = []
        known_keys = [f.name for f in schema]
        for key in self.config:
            if key in known_keys:
                continue
            similar = _find_similar_key(key, known_keys)
            if similar:
                msg = f"[{self.section}] Unknown option '{key}' (did you mean '{similar}'?)"
            else:
                msg = f"[{self.section}] Unknown option '{key}' - will be ignored"
            self.log.warning(msg)
            warnings.append(msg)
        return warnings
