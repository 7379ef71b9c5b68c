"""Common types and errors."""

from enum import IntEnum, StrEnum

__all__ = [
    "CommandSyntaxError",
    "ConfigError",
    "DuplicateCommandError",
    "DuplicatePolicy",
    "ExitCode",
    "GrammarError",
    "LukosError",
    "RenderError",
    "ReturnCode",
    "UnknownCommandError",
]

CARET_CONTEXT_LIMIT = 40


class LukosError(Exception):
    """Base class for errors raised by lukosbot."""


class GrammarError(LukosError, ValueError):
    """A command grammar or usage tree was built with invalid pieces."""


class DuplicateCommandError(LukosError):
    """A top-level command name is already registered."""


class RenderError(LukosError):
    """Usage image rendering or encoding failed."""


class ConfigError(LukosError):
    """Configuration could not be loaded; already logged."""


class CommandSyntaxError(LukosError):
    """No path of the execution tree matches the input, or an argument failed to parse.

    Attributes:
        message: Human readable reason
        input: The command line being parsed (may be empty)
        cursor: Position in `input` where parsing failed, -1 if unknown
    """

    def __init__(self, message: str, input: str = "", cursor: int = -1) -> None:  # noqa: A002
        super().__init__(message)
        self.message = message
        self.input = input
        self.cursor = cursor

    def context(self) -> str:
        """Return the input with a caret under the failing position."""
        if not self.input or self.cursor < 0:
            return ""
        cursor = min(self.cursor, len(self.input))
        start = max(0, cursor - CARET_CONTEXT_LIMIT)
        shown = self.input[start:]
        prefix = "..." if start else ""
        return f"{prefix}{shown}\n{' ' * (len(prefix) + cursor - start)}^"

    def __str__(self) -> str:
        ctx = self.context()
        return f"{self.message}\n{ctx}" if ctx else self.message


class UnknownCommandError(CommandSyntaxError):
    """The leading token is not a registered command."""


class ReturnCode(IntEnum):
    """Status returned by command actions and the dispatcher."""

    SUCCESS = 1
    FAILURE = 0  # handled failure, already reported to the user
    NOT_FOUND = -1  # not a command for this bot


class DuplicatePolicy(StrEnum):
    """What to do when a top-level command name is registered twice."""

    REJECT = "reject"
    REPLACE = "replace"


class ExitCode(IntEnum):
    """Exit codes for the command line client."""

    SUCCESS = 0
    USAGE_ERROR = 1
    CONFIG_ERROR = 2
    RUNTIME_ERROR = 3
