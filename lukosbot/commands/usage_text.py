"""Render usage trees to styled lines, plain text and markdown."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from .grammar import render_node

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from .usage import UsageNode

__all__ = ["LineKind", "RenderOptions", "RenderResult", "RenderedLine", "render"]

BULLET = "• "


class LineKind(StrEnum):
    """Style of a rendered line."""

    TITLE = "title"
    HEADING = "heading"
    TEXT = "text"
    CODE = "code"
    BLANK = "blank"


@dataclass(frozen=True, slots=True)
class RenderedLine:
    """A line in two flavours: markdown (with backticks) and plain."""

    kind: LineKind
    markdown: str
    plain: str

    @classmethod
    def blank(cls) -> RenderedLine:
        return cls(LineKind.BLANK, "", "")

    @classmethod
    def text(cls, kind: LineKind, text: str) -> RenderedLine:
        return cls(kind, text, text)


@dataclass(frozen=True)
class RenderOptions:
    """Which sections to render, and how.

    Attributes:
        prefix: Command prefix prepended to invocations (e.g. "/")
        markdown_backticks: Wrap code tokens in backticks in the markdown flavour
        include_header: Emit the title line
        include_description_in_header: Emit the description under the title
        include_usage: Emit the usage section
        include_parameters: Emit the parameters section
        include_options: Emit the options section
        include_examples: Emit the examples section
        include_notes: Emit the notes section
        include_subcommands: Emit the direct subcommands section
        max_depth: How deep to look into nested subcommands
        auto_prefix_examples: Prepend `prefix` to examples lacking it
    """

    prefix: str = ""
    markdown_backticks: bool = True
    include_header: bool = True
    include_description_in_header: bool = True
    include_usage: bool = True
    include_parameters: bool = True
    include_options: bool = True
    include_examples: bool = True
    include_notes: bool = True
    include_subcommands: bool = True
    max_depth: int = 8
    auto_prefix_examples: bool = True

    @classmethod
    def for_help(cls, prefix: str = "") -> RenderOptions:
        """Full page, as shown by the help command."""
        return cls(prefix=prefix)

    @classmethod
    def for_command(cls, prefix: str = "") -> RenderOptions:
        """Compact page without header, as shown after a command misuse."""
        return cls(prefix=prefix, include_header=False, include_description_in_header=False, max_depth=6)


@dataclass(frozen=True)
class RenderResult:
    """Rendered lines of a usage page."""

    lines: tuple[RenderedLine, ...]

    def plain_text(self) -> str:
        return "\n".join(line.plain for line in self.lines).strip()

    def markdown_text(self) -> str:
        return "\n".join(line.markdown for line in self.lines).strip()

    def char_count(self) -> int:
        return len(self.plain_text())

    def line_count(self) -> int:
        return len(self.lines)


def _join_invocation(prefix: str, path: list[str], tail: str = "") -> str:
    invocation = (prefix or "") + " ".join(path)
    if tail and tail.strip():
        invocation = f"{invocation} {tail.strip()}"
    return invocation.strip()


class _Renderer:
    def __init__(self, options: RenderOptions) -> None:
        self.options = options
        self.lines: list[RenderedLine] = []

    def code_token(self, token: str) -> str:
        return f"`{token}`" if self.options.markdown_backticks else token

    def code_line(self, invocation: str, description: str = "") -> RenderedLine:
        comment = f"  # {description}" if description and description.strip() else ""
        return RenderedLine(LineKind.CODE, (self.code_token(invocation) + comment).strip(), (invocation + comment).strip())

    def bullet_line(self, key: str, value: str) -> RenderedLine:
        suffix = f": {value}" if value and value.strip() else ""
        return RenderedLine(LineKind.TEXT, BULLET + self.code_token(key) + suffix, BULLET + key + suffix)

    def walk(self, node: UsageNode, path: list[str], depth: int = 0) -> Iterator[tuple[list[str], UsageNode]]:
        """Yield (path, node) depth first, down to `max_depth`."""
        if depth > self.options.max_depth:
            return
        yield path, node
        for child in node.children:
            yield from self.walk(child, [*path, child.name], depth + 1)

    def example_line(self, example: str) -> str:
        text = example.strip()
        prefix = self.options.prefix or ""
        if not self.options.auto_prefix_examples or not prefix.strip() or text.startswith(prefix):
            return text
        return prefix + text

    def section(self, root: UsageNode, heading: str, has_items: Callable[[UsageNode], bool], emit: Callable[[UsageNode], None]) -> None:
        """Emit a heading, then each node's items grouped under its path."""
        matching = [(path, node) for path, node in self.walk(root, [root.name]) if has_items(node)]
        if not matching:
            return
        self.lines.append(RenderedLine.text(LineKind.HEADING, heading))
        for path, node in matching:
            if len(path) > 1:
                invocation = _join_invocation(self.options.prefix, path)
                self.lines.append(RenderedLine(LineKind.TEXT, f"Under {self.code_token(invocation)}:", f"Under {invocation}:"))
            emit(node)
        self.lines.append(RenderedLine.blank())

    def render(self, node: UsageNode) -> RenderResult:
        opts = self.options
        lines = self.lines
        prefix = opts.prefix

        if opts.include_header:
            lines.append(RenderedLine.text(LineKind.TITLE, f"Command: {_join_invocation(prefix, [node.name])}"))
            if opts.include_description_in_header and node.description:
                lines.append(RenderedLine.text(LineKind.TEXT, node.description))
            lines.append(RenderedLine.blank())

        if opts.include_usage:
            lines.append(RenderedLine.text(LineKind.HEADING, "Usage:"))
            entries = [(path, syntax) for path, n in self.walk(node, [node.name]) for syntax in n.syntaxes]
            if entries:
                lines.extend(self.code_line(_join_invocation(prefix, path, s.tail_text()), s.description) for path, s in entries)
            else:
                lines.append(self.code_line(_join_invocation(prefix, [node.name])))
            lines.append(RenderedLine.blank())

        if opts.include_parameters:
            self.section(
                node,
                "Parameters:",
                lambda n: bool(n.parameters),
                lambda n: lines.extend(self.bullet_line(render_node(p.token), p.description) for p in n.parameters),
            )
        if opts.include_options:
            self.section(
                node,
                "Options:",
                lambda n: bool(n.options),
                lambda n: lines.extend(self.bullet_line(render_node(o.token), o.description) for o in n.options),
            )
        if opts.include_examples:
            self.section(
                node,
                "Examples:",
                lambda n: bool(n.examples),
                lambda n: lines.extend(self.code_line(self.example_line(e)) for e in n.examples),
            )
        if opts.include_notes:
            self.section(
                node,
                "Notes:",
                lambda n: bool(n.notes),
                lambda n: lines.extend(RenderedLine.text(LineKind.TEXT, BULLET + note) for note in n.notes),
            )

        if opts.include_subcommands and node.children:
            lines.append(RenderedLine.text(LineKind.HEADING, "Subcommands:"))
            lines.extend(self.code_line(_join_invocation(prefix, [node.name, c.name]), c.description) for c in node.children)
            lines.append(RenderedLine.blank())

        while lines and lines[-1].kind == LineKind.BLANK:
            lines.pop()
        return RenderResult(tuple(lines))


def render(node: UsageNode | None, options: RenderOptions | None = None) -> RenderResult:
    """Render `node` to lines.

    Output only depends on `node` and `options`, with items kept in insertion order.

    Args:
        node: The usage tree (None renders nothing)
        options: Sections to include, defaults to `RenderOptions.for_help()`
    """
    if node is None:
        return RenderResult(())
    return _Renderer(options or RenderOptions.for_help()).render(node)
