"""Bot commands and the registry feeding them to the dispatcher."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..logging_setup import get_logger
from .usage import UsageNode
from .usage_output import UsageOutput, UseMode, parse_mode

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .dispatcher import CommandDispatcher
    from .source import CommandSource

__all__ = ["BotCommand", "CommandRegistry"]


class BotCommand:
    """Base class for commands.

    Subclasses set `name` and `description`, describe themselves in `usage`
    and add their execution tree in `register`.
    """

    name: str = ""
    description: str = ""
    visible: bool = True
    " listed by the help command "

    def __init__(self, output: UsageOutput | None = None) -> None:
        self.output = output or UsageOutput()
        self.log = get_logger(f"command.{self.name or type(self).__name__}")

    def usage(self) -> UsageNode:
        """Usage tree shown by help. Defaults to the bare command."""
        return UsageNode.root(self.name).description(self.description).build()

    def register(self, dispatcher: CommandDispatcher) -> None:
        """Add this command's execution tree to `dispatcher`."""
        raise NotImplementedError

    def send_usage(self, source: CommandSource, mode: UseMode | str | None = None) -> None:
        """Reply with this command's usage page."""
        resolved = mode if isinstance(mode, UseMode) else parse_mode(mode)
        self.output.send_usage(source, self.usage(), resolved, title_name=self.name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class CommandRegistry:
    """The commands of the bot, in registration order."""

    def __init__(self, commands: Iterable[BotCommand] = ()) -> None:
        self._commands = list(commands)
        self.log = get_logger("registry")

    def all(self) -> list[BotCommand]:
        return list(self._commands)

    def visible(self) -> list[BotCommand]:
        """Commands shown in the help listing."""
        return [c for c in self._commands if c.visible]

    def get(self, name: str | None) -> BotCommand | None:
        """Find a command by name, ignoring case."""
        if not name:
            return None
        wanted = name.strip().lower()
        for command in self._commands:
            if command.name.lower() == wanted:
                return command
        return None

    def add(self, command: BotCommand) -> None:
        self._commands.append(command)

    def register_all(self, dispatcher: CommandDispatcher) -> list[str]:
        """Register every command. A command failing to register is logged and skipped.

        Returns:
            Names of the registered commands
        """
        registered: list[str] = []
        for command in self._commands:
            try:
                command.register(dispatcher)
            except Exception:  # pylint: disable=W0718
                self.log.exception("Failed to register command %s", command.name)
                continue
            self.log.info("Registered command: %s", command.name)
            registered.append(command.name)
        return registered

    def list_commands(self) -> str:
        """Space separated command names."""
        return " ".join(c.name for c in self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self):  # noqa: ANN204
        return iter(self._commands)
