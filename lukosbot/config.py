"""Configuration wrapper providing typed access and schema defaults."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import logging
    from collections.abc import Iterator

    from .validation import ConfigItems

__all__ = ["BOOL_FALSE_STRINGS", "BOOL_STRINGS", "BOOL_TRUE_STRINGS", "Configuration", "coerce_to_bool", "merge"]

ConfigValueType = float | bool | str | list | dict

BOOL_TRUE_STRINGS = frozenset({"true", "yes", "on", "1", "enabled"})
BOOL_FALSE_STRINGS = frozenset({"false", "no", "off", "0", "disabled"})
BOOL_STRINGS = BOOL_TRUE_STRINGS | BOOL_FALSE_STRINGS


def merge(merged: dict[str, Any], other: dict[str, Any]) -> dict[str, Any]:
    """Deep merge `other` into `merged`.

    Nested dicts are merged, lists are concatenated, anything else is replaced.

    Eg:
        merge({"a": {"b": 1}}, {"a": {"c": 2}}) == {"a": {"b": 1, "c": 2}}
    """
    for key, value in other.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merge(merged[key], value)
        elif key in merged and isinstance(merged[key], list) and isinstance(value, list):
            merged[key] += value
        else:
            merged[key] = value
    return merged


def coerce_to_bool(value: ConfigValueType | None, default: bool = False) -> bool:
    """Coerce a loosely typed value to boolean.

    Args:
        value: The value to coerce
        default: Returned when value is None

    Behavior:
        - None → default
        - Empty string → False
        - "false", "no", "off", "0", "disabled" (any case) → False
        - Any other string → True
        - Non-string values → bool(value)
    """
    if value is None:
        return default
    if isinstance(value, str):
        if not value.strip():
            return False
        return value.lower().strip() not in BOOL_FALSE_STRINGS
    return bool(value)


class Configuration(dict):
    """A configuration section with typed accessors.

    Values missing from the section fall back to the defaults of the schema
    given at construction, then to the caller's default.
    """

    def __init__(self, *args: Any, logger: logging.Logger, schema: ConfigItems | None = None, **kwargs: Any) -> None:  # noqa: ANN401
        """Initialize the configuration object.

        Args:
            *args: Arguments for dict
            logger: Logger used to report invalid values
            schema: ConfigField definitions providing defaults
            **kwargs: Keyword arguments for dict
        """
        super().__init__(*args, **kwargs)
        self.log = logger
        self._schema_defaults: dict[str, ConfigValueType] = {}
        if schema:
            self.set_schema(schema)

    def set_schema(self, schema: ConfigItems) -> None:
        """Use the defaults of `schema` for missing keys."""
        self._schema_defaults = {field.name: field.default for field in schema if field.default is not None}

    def get(self, name: str, default: ConfigValueType | None = None) -> ConfigValueType | None:  # type: ignore[override]
        """Get a value, else its schema default, else `default`."""
        if name in self:
            return dict.get(self, name)
        return self._schema_defaults.get(name, default)

    def get_bool(self, name: str, default: bool = False) -> bool:
        return coerce_to_bool(self.get(name), default)

    def get_int(self, name: str, default: int = 0) -> int:
        """Get an integer; invalid values are logged and replaced by `default`."""
        value = self.get(name)
        if value is None:
            return default
        try:
            return int(value)  # type: ignore[arg-type]
        except (ValueError, TypeError):
            self.log.warning("Invalid integer value for %s: %s", name, value)
            return default

    def get_float(self, name: str, default: float = 0.0) -> float:
        """Get a float; invalid values are logged and replaced by `default`."""
        value = self.get(name)
        if value is None:
            return default
        try:
            return float(value)  # type: ignore[arg-type]
        except (ValueError, TypeError):
            self.log.warning("Invalid float value for %s: %s", name, value)
            return default

    def get_str(self, name: str, default: str = "") -> str:
        value = self.get(name)
        if value is None:
            return default
        return str(value)

    def get_list(self, name: str) -> list[Any]:
        """Get a list; a single scalar is wrapped in a list."""
        value = self.get(name)
        if value is None:
            return []
        if isinstance(value, list):
            return list(value)
        return [value]

    def has_explicit(self, name: str) -> bool:
        """True if `name` is set in the file rather than coming from a default."""
        return name in self

    def iter_subsections(self) -> Iterator[tuple[str, dict[str, Any]]]:
        """Yield the (key, value) pairs whose value is a table."""
        for key, value in self.items():
            if isinstance(value, dict):
                yield key, value
