"""Syntax description nodes used to document commands.

These nodes only describe what a command accepts, for help output. They are
independent from the execution tree built in `dispatcher`.

Rendering rules:
- Literal: the text as-is
- Argument: ``<name>``
- Sequence: children separated by spaces
- Concat: children joined without spaces (``--top=<n>``)
- OneOf: ``(a|b)``, or ``[a|b]`` when optional
- Optional: ``[inner]``
"""

from __future__ import annotations

from dataclasses import dataclass

from ..models import GrammarError

__all__ = [
    "Argument",
    "Concat",
    "GrammarNode",
    "Literal",
    "OneOf",
    "Optional",
    "Sequence",
    "arg",
    "concat",
    "group",
    "literal",
    "one_of",
    "opt",
    "opt_one_of",
    "render_node",
    "render_nodes",
]


@dataclass(frozen=True, slots=True)
class Literal:
    """A token typed as-is."""

    text: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "text", (self.text or "").strip())


@dataclass(frozen=True, slots=True)
class Argument:
    """A named placeholder, rendered as ``<name>``."""

    name: str

    def __post_init__(self) -> None:
        if self.name is None or not self.name.strip():
            raise GrammarError("argument name cannot be blank")
        object.__setattr__(self, "name", self.name.strip())


@dataclass(frozen=True, slots=True)
class Sequence:
    """Children which must all appear, in order."""

    children: tuple[GrammarNode, ...] = ()


@dataclass(frozen=True, slots=True)
class Concat:
    """Children glued into a single token."""

    children: tuple[GrammarNode, ...] = ()


@dataclass(frozen=True, slots=True)
class OneOf:
    """Exactly one of the alternatives (or none of them if `optional`)."""

    alternatives: tuple[GrammarNode, ...]
    optional: bool = False

    def __post_init__(self) -> None:
        if len(self.alternatives) < 2:  # noqa: PLR2004
            raise GrammarError("a choice requires at least 2 alternatives")


@dataclass(frozen=True, slots=True)
class Optional:
    """An item which may be omitted."""

    inner: GrammarNode

    def __post_init__(self) -> None:
        if self.inner is None:
            raise GrammarError("optional item cannot be empty")


GrammarNode = Literal | Argument | Sequence | Concat | OneOf | Optional


def _coerce(node: GrammarNode | str) -> GrammarNode:
    """Promote plain strings to literals."""
    if isinstance(node, str):
        return Literal(node)
    if not isinstance(node, Literal | Argument | Sequence | Concat | OneOf | Optional):
        raise GrammarError(f"not a grammar node: {node!r}")
    return node


def literal(text: str) -> Literal:
    """Create a literal token."""
    return Literal(text)


def arg(name: str) -> Argument:
    """Create a placeholder rendered as ``<name>``."""
    return Argument(name)


def opt(node: GrammarNode | str) -> Optional:
    """Mark `node` as optional, rendered as ``[node]``."""
    return Optional(_coerce(node))


def one_of(*nodes: GrammarNode | str) -> OneOf:
    """Required choice between two or more items, rendered as ``(a|b)``."""
    return OneOf(tuple(_coerce(n) for n in nodes))


def opt_one_of(*nodes: GrammarNode | str) -> OneOf:
    """Optional choice between two or more items, rendered as ``[a|b]``."""
    return OneOf(tuple(_coerce(n) for n in nodes), optional=True)


def group(*nodes: GrammarNode | str) -> Sequence:
    """Space separated sequence, handy inside `opt` or `one_of`."""
    return Sequence(tuple(_coerce(n) for n in nodes))


def concat(*nodes: GrammarNode | str) -> Concat:
    """Glue items without spaces, e.g. ``concat("--top=", arg("n"))``."""
    return Concat(tuple(_coerce(n) for n in nodes))


def render_node(node: GrammarNode | None) -> str:
    """Render a single node to its syntax text."""
    match node:
        case None:
            return ""
        case Literal(text=text):
            return text
        case Argument(name=name):
            return f"<{name}>"
        case Optional(inner=inner):
            return f"[{render_node(inner)}]"
        case OneOf(alternatives=alternatives, optional=optional):
            body = "|".join(s for s in map(render_node, alternatives) if s.strip())
            return f"[{body}]" if optional else f"({body})"
        case Sequence(children=children):
            return render_nodes(children)
        case Concat(children=children):
            return "".join(s for s in map(render_node, children) if s.strip())
    raise GrammarError(f"not a grammar node: {node!r}")


def render_nodes(nodes: tuple[GrammarNode, ...] | list[GrammarNode]) -> str:
    """Render nodes as a space separated sequence, skipping blank renderings."""
    return " ".join(s for s in map(render_node, nodes or ()) if s.strip()).strip()
