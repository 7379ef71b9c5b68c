"""Usage trees: the help-time description of a command.

A `UsageNode` describes one command (or subcommand) for the help system:
syntax lines, parameters, options, examples, notes and nested subcommands.
Syntax lines are built from `grammar` nodes so brackets never have to be
written by hand::

    usage = (
        UsageNode.root("dice")
        .description("Roll dice")
        .syntax("Roll once")
        .syntax("Roll several dice", arg("count"))
        .param("count", "How many dice, at least 1")
        .example("dice 3")
        .build()
    )

Usage trees are documentation only. They are never used to parse input.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..models import GrammarError
from .grammar import GrammarNode, Literal, arg, render_node, render_nodes

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = ["Option", "Parameter", "Syntax", "UsageBuilder", "UsageNode"]


def _require_name(name: str | None, what: str = "name") -> str:
    if name is None or not name.strip():
        raise GrammarError(f"{what} cannot be blank")
    return name.strip()


def _clean(text: str | None) -> str:
    return (text or "").strip()


@dataclass(frozen=True, slots=True)
class Syntax:
    """One way to invoke a node: the part after the command path, and what it does.

    `tail` is either grammar nodes, or raw text for legacy usage strings.
    """

    tail: tuple[GrammarNode, ...] | str = ()
    description: str = ""

    def __post_init__(self) -> None:
        tail = self.tail.strip() if isinstance(self.tail, str) else tuple(self.tail)
        object.__setattr__(self, "tail", tail)
        object.__setattr__(self, "description", _clean(self.description))

    def tail_text(self) -> str:
        if isinstance(self.tail, str):
            return self.tail
        return render_nodes(self.tail)


@dataclass(frozen=True, slots=True)
class Parameter:
    """A placeholder used in syntax lines."""

    token: GrammarNode
    description: str = ""

    def __post_init__(self) -> None:
        if self.token is None:
            raise GrammarError("parameter token cannot be empty")
        object.__setattr__(self, "description", _clean(self.description))

    def token_text(self) -> str:
        return render_node(self.token)


@dataclass(frozen=True, slots=True)
class Option:
    """A flag or switch."""

    token: GrammarNode
    description: str = ""

    def __post_init__(self) -> None:
        if self.token is None:
            raise GrammarError("option token cannot be empty")
        object.__setattr__(self, "description", _clean(self.description))

    def token_text(self) -> str:
        return render_node(self.token)


@dataclass(frozen=True, slots=True)
class UsageNode:
    """Immutable usage description of a command node. Use `UsageNode.root` to build one."""

    name: str
    description: str = ""
    syntaxes: tuple[Syntax, ...] = ()
    parameters: tuple[Parameter, ...] = ()
    options: tuple[Option, ...] = ()
    examples: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()
    children: tuple[UsageNode, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _require_name(self.name))
        object.__setattr__(self, "description", _clean(self.description))
        for attr in ("syntaxes", "parameters", "options", "examples", "notes", "children"):
            object.__setattr__(self, attr, tuple(getattr(self, attr) or ()))

    @staticmethod
    def root(name: str) -> UsageBuilder:
        """Start building a node named `name` (without any command prefix)."""
        return UsageBuilder(name)


class UsageBuilder:
    """Accumulates the pieces of a `UsageNode`."""

    def __init__(self, name: str) -> None:
        self._name = _require_name(name)
        self._description = ""
        self._syntaxes: list[Syntax] = []
        self._parameters: list[Parameter] = []
        self._options: list[Option] = []
        self._examples: list[str] = []
        self._notes: list[str] = []
        self._children: list[UsageNode] = []

    def description(self, description: str | None) -> UsageBuilder:
        self._description = _clean(description)
        return self

    def syntax(self, description: str | None, *tail: GrammarNode | str) -> UsageBuilder:
        """Add a syntax line; `tail` follows the command path.

        Plain strings in `tail` are literals.
        """
        nodes = tuple(Literal(item) if isinstance(item, str) else item for item in tail)
        self._syntaxes.append(Syntax(nodes, description or ""))
        return self

    def raw_syntax(self, tail: str, description: str | None = None) -> UsageBuilder:
        """Add a syntax line written as plain text."""
        self._syntaxes.append(Syntax(tail or "", description or ""))
        return self

    def param(self, name: str, description: str | None = None) -> UsageBuilder:
        """Document the placeholder ``<name>``."""
        return self.parameter(arg(name), description)

    def parameter(self, token: GrammarNode, description: str | None = None) -> UsageBuilder:
        self._parameters.append(Parameter(token, description or ""))
        return self

    def option(self, token: GrammarNode | str, description: str | None = None) -> UsageBuilder:
        """Document a flag; a string is taken as a literal token."""
        node = Literal(token) if isinstance(token, str) else token
        self._options.append(Option(node, description or ""))
        return self

    def example(self, *examples: str | None) -> UsageBuilder:
        """Add example command lines. Blank entries are skipped."""
        self._examples.extend(e.strip() for e in examples if e and e.strip())
        return self

    def note(self, *notes: str | None) -> UsageBuilder:
        """Add free-form notes. Blank entries are skipped."""
        self._notes.extend(n.strip() for n in notes if n and n.strip())
        return self

    def child(self, *nodes: UsageNode | None) -> UsageBuilder:
        self._children.extend(n for n in nodes if n is not None)
        return self

    def subcommand(self, name: str, description: str | None, spec: Callable[[UsageBuilder], object] | None = None) -> UsageBuilder:
        """Add a nested node configured by `spec`."""
        builder = UsageBuilder(name).description(description)
        if spec is not None:
            spec(builder)
        self._children.append(builder.build())
        return self

    def build(self) -> UsageNode:
        return UsageNode(
            name=self._name,
            description=self._description,
            syntaxes=tuple(self._syntaxes),
            parameters=tuple(self._parameters),
            options=tuple(self._options),
            examples=tuple(self._examples),
            notes=tuple(self._notes),
            children=tuple(self._children),
        )
