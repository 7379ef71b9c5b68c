"""Execution tree and argument dispatcher.

Commands are registered as trees of literal and argument nodes::

    dispatcher.register(
        literal("dice")
        .executes(roll_once)
        .then(argument("count", integer(min=1)).executes(roll_many))
    )

`CommandDispatcher.execute` reads the leading token to select the command,
then walks the tree one token at a time. At each step an exact literal match
wins over the argument child. When the input is exhausted, the action of the
reached node runs.
"""

from __future__ import annotations

import math
import re
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, cast

from ..logging_setup import get_logger
from ..models import CommandSyntaxError, DuplicateCommandError, DuplicatePolicy, GrammarError, ReturnCode, UnknownCommandError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from .source import CommandSource

    Action = Callable[["CommandContext"], int | bool | None]

__all__ = [
    "ArgumentNode",
    "ArgumentType",
    "CommandContext",
    "CommandDispatcher",
    "CommandNode",
    "LiteralNode",
    "RootNode",
    "StringReader",
    "argument",
    "boolean",
    "floating",
    "greedy_string",
    "integer",
    "literal",
    "string",
    "word",
]

DEFAULT_FAILURE_REPLY = "Command failed, please try again later."

INCORRECT_ARGUMENT = "Incorrect argument for command"
INCOMPLETE_COMMAND = "Unknown or incomplete command"

_QUOTE = '"'
_ESCAPE = "\\"
_INTEGER = re.compile(r"[+-]?[0-9]+")


class StringReader:
    """Cursor over a command line."""

    def __init__(self, string: str, cursor: int = 0) -> None:
        self.string = string
        self.cursor = cursor

    def can_read(self, length: int = 1) -> bool:
        """Return True if at least `length` characters are left."""
        return self.cursor + length <= len(self.string)

    def peek(self) -> str:
        """Return the current character without consuming it."""
        return self.string[self.cursor]

    def skip_whitespace(self) -> None:
        """Advance past any whitespace."""
        while self.can_read() and self.peek().isspace():
            self.cursor += 1

    def peek_token(self) -> str:
        """Return the next whitespace delimited token without consuming it."""
        end = self.cursor
        while end < len(self.string) and not self.string[end].isspace():
            end += 1
        return self.string[self.cursor : end]

    def read_word(self) -> str:
        """Consume and return the next whitespace delimited token."""
        token = self.peek_token()
        self.cursor += len(token)
        return token

    def read_remaining(self) -> str:
        """Consume the rest of the line."""
        rest = self.string[self.cursor :]
        self.cursor = len(self.string)
        return rest

    def read_quoted(self) -> str:
        """Consume a double quoted string, handling backslash escapes."""
        start = self.cursor
        if not self.can_read() or self.peek() != _QUOTE:
            raise CommandSyntaxError("Expected quote to start a string", self.string, start)
        self.cursor += 1
        chars: list[str] = []
        escaped = False
        while self.can_read():
            char = self.peek()
            self.cursor += 1
            if escaped:
                if char not in (_QUOTE, _ESCAPE):
                    self.cursor -= 1
                    raise CommandSyntaxError(f"Invalid escape sequence '{char}' in quoted string", self.string, self.cursor)
                chars.append(char)
                escaped = False
            elif char == _ESCAPE:
                escaped = True
            elif char == _QUOTE:
                return "".join(chars)
            else:
                chars.append(char)
        raise CommandSyntaxError("Unclosed quoted string", self.string, start)


class ArgumentType:
    """Base class for argument parsers.

    Subclasses consume their value from a `StringReader` and raise
    `CommandSyntaxError` (with the cursor at the offending token) on bad input.
    """

    greedy = False

    def parse(self, reader: StringReader) -> Any:  # noqa: ANN401
        """Read a value from `reader`."""
        raise NotImplementedError


class _WordType(ArgumentType):
    def parse(self, reader: StringReader) -> str:
        return reader.read_word()

    def __repr__(self) -> str:
        return "word()"


class _StringType(ArgumentType):
    def parse(self, reader: StringReader) -> str:
        if reader.can_read() and reader.peek() == _QUOTE:
            return reader.read_quoted()
        return reader.read_word()

    def __repr__(self) -> str:
        return "string()"


class _GreedyStringType(ArgumentType):
    greedy = True

    def parse(self, reader: StringReader) -> str:
        return reader.read_remaining().strip()

    def __repr__(self) -> str:
        return "greedy_string()"


class _NumberType(ArgumentType):
    kind = "number"

    def __init__(self, minimum: float | None = None, maximum: float | None = None) -> None:
        if minimum is not None and maximum is not None and minimum > maximum:
            raise GrammarError(f"min ({minimum}) is greater than max ({maximum})")
        self.minimum = minimum
        self.maximum = maximum

    def convert(self, token: str) -> float:
        raise NotImplementedError

    def parse(self, reader: StringReader) -> float:
        start = reader.cursor
        token = reader.read_word()
        if not token:
            raise CommandSyntaxError(f"Expected {self.kind}", reader.string, start)
        try:
            value = self.convert(token)
        except ValueError:
            reader.cursor = start
            raise CommandSyntaxError(f"Invalid {self.kind} '{token}'", reader.string, start) from None
        if self.minimum is not None and value < self.minimum:
            reader.cursor = start
            raise CommandSyntaxError(f"{self.kind.capitalize()} must not be less than {self.minimum}, found {value}", reader.string, start)
        if self.maximum is not None and value > self.maximum:
            reader.cursor = start
            raise CommandSyntaxError(f"{self.kind.capitalize()} must not be more than {self.maximum}, found {value}", reader.string, start)
        return value

    def __repr__(self) -> str:
        return f"{type(self).__name__}(min={self.minimum}, max={self.maximum})"


class _IntegerType(_NumberType):
    kind = "integer"

    def convert(self, token: str) -> int:
        if not _INTEGER.fullmatch(token):
            raise ValueError(token)
        return int(token)


class _FloatType(_NumberType):
    kind = "float"

    def convert(self, token: str) -> float:
        value = float(token)
        if not math.isfinite(value):
            raise ValueError(token)
        return value


class _BoolType(ArgumentType):
    def parse(self, reader: StringReader) -> bool:
        start = reader.cursor
        token = reader.read_word()
        lowered = token.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        reader.cursor = start
        raise CommandSyntaxError(f"Invalid bool, expected true or false but found '{token}'", reader.string, start)

    def __repr__(self) -> str:
        return "boolean()"


def word() -> ArgumentType:
    """A single token."""
    return _WordType()


def string() -> ArgumentType:
    """A single token or a double quoted phrase."""
    return _StringType()


def greedy_string() -> ArgumentType:
    """The rest of the line, spaces included. Must be the last node of a path."""
    return _GreedyStringType()


def integer(min: int | None = None, max: int | None = None) -> ArgumentType:  # noqa: A002
    """An integer, optionally bounded (inclusive)."""
    return _IntegerType(min, max)


def floating(min: float | None = None, max: float | None = None) -> ArgumentType:  # noqa: A002
    """A float, optionally bounded (inclusive)."""
    return _FloatType(min, max)


def boolean() -> ArgumentType:
    """``true`` or ``false``, case insensitive."""
    return _BoolType()


class CommandNode:
    """A node of the execution tree."""

    def __init__(self, name: str, action: Action | None = None) -> None:
        self.name = name
        self.action = action
        self.literals: dict[str, LiteralNode] = {}
        self.argument: ArgumentNode | None = None

    @property
    def children(self) -> list[CommandNode]:
        """Literal children in insertion order, then the argument child."""
        result: list[CommandNode] = list(self.literals.values())
        if self.argument is not None:
            result.append(self.argument)
        return result

    @property
    def usage_label(self) -> str:
        """Text shown for this node in usage lines."""
        return self.name

    def add_child(self, child: CommandNode) -> None:
        """Attach `child`, merging it into an existing literal of the same name."""
        if self.is_greedy:
            raise GrammarError(f"greedy argument '{self.usage_label}' cannot have children")
        if isinstance(child, LiteralNode):
            existing = self.literals.get(child.name)
            if existing is None:
                self.literals[child.name] = child
                return
            if child.action is not None:
                existing.action = child.action
            for grandchild in child.children:
                existing.add_child(grandchild)
        elif isinstance(child, ArgumentNode):
            if self.argument is not None:
                raise GrammarError(f"'{self.usage_label}' already has an argument child ({self.argument.usage_label})")
            self.argument = child
        else:
            raise GrammarError(f"cannot attach {child!r}")

    @property
    def is_greedy(self) -> bool:
        """True if this node swallows the rest of the line."""
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.usage_label!r})"


class RootNode(CommandNode):
    """Invisible parent of every registered command."""

    def __init__(self) -> None:
        super().__init__("")


class LiteralNode(CommandNode):
    """Matches an exact, case sensitive token."""


class ArgumentNode(CommandNode):
    """Captures a value parsed by its `ArgumentType`."""

    def __init__(self, name: str, type: ArgumentType, action: Action | None = None) -> None:  # noqa: A002
        super().__init__(name, action)
        self.type = type

    @property
    def usage_label(self) -> str:
        return f"<{self.name}>"

    @property
    def is_greedy(self) -> bool:
        return self.type.greedy


class _Builder:
    """Fluent construction of an execution tree."""

    def __init__(self, name: str) -> None:
        if name is None or not name.strip():
            raise GrammarError("node name cannot be blank")
        self.name = name.strip()
        self._action: Action | None = None
        self._children: list[_Builder | CommandNode] = []
        self._has_argument = False

    def _is_greedy(self) -> bool:
        return False

    def then(self, child: _Builder | CommandNode) -> _Builder:
        """Add a child node and return self."""
        if self._is_greedy():
            raise GrammarError(f"greedy argument '{self.name}' cannot have children")
        if isinstance(child, ArgumentBuilder | ArgumentNode):
            if self._has_argument:
                raise GrammarError(f"'{self.name}' already has an argument child")
            self._has_argument = True
        self._children.append(child)
        return self

    def executes(self, action: Action) -> _Builder:
        """Set the action run when the input ends at this node."""
        self._action = action
        return self

    def _make_node(self) -> CommandNode:
        raise NotImplementedError

    def build(self) -> CommandNode:
        """Freeze the builder into a node tree."""
        node = self._make_node()
        for child in self._children:
            node.add_child(child.build() if isinstance(child, _Builder) else child)
        return node


class LiteralBuilder(_Builder):
    """Builder for `LiteralNode`."""

    def _make_node(self) -> LiteralNode:
        return LiteralNode(self.name, self._action)

    def build(self) -> LiteralNode:
        return cast(LiteralNode, super().build())


class ArgumentBuilder(_Builder):
    """Builder for `ArgumentNode`."""

    def __init__(self, name: str, type: ArgumentType) -> None:  # noqa: A002
        super().__init__(name)
        self.type = type

    def _is_greedy(self) -> bool:
        return self.type.greedy

    def _make_node(self) -> ArgumentNode:
        return ArgumentNode(self.name, self.type, self._action)


def literal(name: str) -> LiteralBuilder:
    """Start a literal node."""
    return LiteralBuilder(name)


def argument(name: str, type: ArgumentType) -> ArgumentBuilder:  # noqa: A002
    """Start an argument node parsed with `type`."""
    return ArgumentBuilder(name, type)


@dataclass
class CommandContext:
    """State accumulated while walking the tree for one invocation.

    Attributes:
        source: The caller
        input: The raw command line
        arguments: Bound argument values, in match order
        nodes: Matched path, starting with the command's literal
        remaining: Unconsumed input (empty once matched)
    """

    source: CommandSource
    input: str
    arguments: dict[str, Any] = field(default_factory=dict)
    nodes: list[CommandNode] = field(default_factory=list)
    remaining: str = ""

    @property
    def command(self) -> str:
        """Name of the top-level command."""
        return self.nodes[0].name if self.nodes else ""

    @property
    def node(self) -> CommandNode | None:
        """Last matched node."""
        return self.nodes[-1] if self.nodes else None

    def get(self, name: str, default: Any = None) -> Any:  # noqa: ANN401
        """Return a bound argument or `default`."""
        return self.arguments.get(name, default)

    def __getitem__(self, name: str) -> Any:  # noqa: ANN401
        return self.arguments[name]

    def __contains__(self, name: str) -> bool:
        return name in self.arguments


def coerce_result(result: object) -> int:
    """Turn an action result into a status code."""
    if result is None:
        return ReturnCode.SUCCESS
    if isinstance(result, bool):
        return ReturnCode.SUCCESS if result else ReturnCode.FAILURE
    if isinstance(result, int):
        return int(result)
    return ReturnCode.SUCCESS


class CommandDispatcher:
    """Holds registered commands and runs command lines against them.

    The command table is replaced atomically on every (un)registration, so
    callers on other threads always see either the old or the new table.
    """

    def __init__(self, duplicates: DuplicatePolicy = DuplicatePolicy.REJECT, failure_reply: str = DEFAULT_FAILURE_REPLY) -> None:
        self.duplicates = DuplicatePolicy(duplicates)
        self.failure_reply = failure_reply
        self.log = get_logger("dispatcher")
        self._lock = threading.Lock()
        self._roots: Mapping[str, LiteralNode] = MappingProxyType({})

    def register(self, command: LiteralBuilder | LiteralNode) -> LiteralNode:
        """Add a top-level command.

        Args:
            command: Literal builder (or built node) of the command

        Returns:
            The registered node

        Raises:
            DuplicateCommandError: when the name exists and the policy is REJECT
            GrammarError: when the tree is invalid
        """
        node = command.build() if isinstance(command, LiteralBuilder) else command
        if not isinstance(node, LiteralNode):
            raise GrammarError("top-level commands must be literals")
        with self._lock:
            if node.name in self._roots:
                if self.duplicates == DuplicatePolicy.REJECT:
                    raise DuplicateCommandError(f"command '{node.name}' is already registered")
                self.log.warning("Replacing already registered command '%s'", node.name)
            table = dict(self._roots)
            table[node.name] = node
            self._roots = MappingProxyType(table)
        self.log.debug("Registered command '%s'", node.name)
        return node

    def unregister(self, name: str) -> bool:
        """Remove a top-level command. Returns False if it was not registered."""
        with self._lock:
            if name not in self._roots:
                return False
            table = dict(self._roots)
            del table[name]
            self._roots = MappingProxyType(table)
        self.log.debug("Unregistered command '%s'", name)
        return True

    def get_root(self, name: str) -> LiteralNode | None:
        """Return the node registered as `name`."""
        return self._roots.get(name)

    def roots(self) -> list[str]:
        """Return the registered command names, in registration order."""
        return list(self._roots)

    def parse(self, command_line: str, source: CommandSource) -> CommandContext:
        """Walk the tree for `command_line` without running any action.

        Raises:
            UnknownCommandError: the leading token is not registered
            CommandSyntaxError: no path matches, or an argument is invalid
        """
        roots = self._roots
        reader = StringReader(command_line)
        reader.skip_whitespace()
        start = reader.cursor
        name = reader.read_word()
        node: CommandNode | None = roots.get(name)
        if node is None:
            raise UnknownCommandError(f"Unknown command '{name}'", command_line, start)

        context = CommandContext(source=source, input=command_line, nodes=[node])
        while True:
            reader.skip_whitespace()
            if not reader.can_read():
                break
            start = reader.cursor
            token = reader.peek_token()
            child: CommandNode | None = node.literals.get(token)
            if child is not None:
                reader.read_word()
            elif node.argument is not None:
                child = node.argument
                context.arguments[child.name] = child.type.parse(reader)
                if reader.can_read() and not reader.peek().isspace():
                    raise CommandSyntaxError("Expected whitespace to end one argument, but found trailing data", command_line, reader.cursor)
            else:
                context.remaining = command_line[start:]
                raise CommandSyntaxError(INCORRECT_ARGUMENT, command_line, start)
            node = child
            context.nodes.append(node)

        if node.action is None:
            raise CommandSyntaxError(INCOMPLETE_COMMAND, command_line, len(command_line))
        return context

    def execute(self, command_line: str, source: CommandSource) -> int:
        """Parse `command_line` and run the matched action.

        Args:
            command_line: Command line without the bot prefix
            source: The caller, used for replies

        Returns:
            The action's status, `ReturnCode.NOT_FOUND` for unknown commands or
            `ReturnCode.FAILURE` when the action raised

        Raises:
            CommandSyntaxError: the input does not match the command's tree
        """
        try:
            context = self.parse(command_line, source)
        except UnknownCommandError as e:
            self.log.debug("Not a command: %s", e.message)
            return ReturnCode.NOT_FOUND

        node = context.node
        if node is None or node.action is None:
            raise CommandSyntaxError(INCOMPLETE_COMMAND, command_line, len(command_line))
        try:
            result = node.action(context)
        except Exception:  # pylint: disable=W0718
            self.log.exception(
                "Command '%s' failed (input=%r, address=%s)",
                context.command,
                command_line,
                getattr(source, "address", None),
            )
            self._reply_failure(source)
            return ReturnCode.FAILURE
        return coerce_result(result)

    def _reply_failure(self, source: CommandSource) -> None:
        try:
            source.reply(self.failure_reply)
        except Exception:  # pylint: disable=W0718
            self.log.exception("Could not send the failure reply")

    def smart_usage(self, name: str) -> list[str]:
        """Return compact one-line usages for a command, e.g. ``dice [<count>]``.

        One line per branch of the command, with the bare command first when
        it is executable on its own. Returns an empty list for unknown names.
        """
        root = self._roots.get(name)
        if root is None:
            return []
        children = root.children
        if len(children) <= 1:
            return [_compact_usage(root)]
        lines = [root.name] if root.action is not None else []
        lines.extend(f"{root.name} {_compact_usage(child)}" for child in children)
        return lines


def _compact_usage(node: CommandNode) -> str:
    label = node.usage_label
    children = node.children
    if not children:
        return label
    if len(children) == 1:
        tail = _compact_usage(children[0])
    else:
        tail = "(" + "|".join(child.usage_label for child in children) + ")"
    if node.action is not None:
        return f"{label} [{tail}]"
    return f"{label} {tail}"
