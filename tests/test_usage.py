"""Tests for usage trees and their text rendering."""

import pytest

from lukosbot.commands.grammar import Literal, arg, one_of, opt
from lukosbot.commands.usage import Syntax, UsageNode
from lukosbot.commands.usage_text import LineKind, RenderOptions, render
from lukosbot.models import GrammarError


def dice_usage():
    return (
        UsageNode.root("dice")
        .description("Roll dice")
        .syntax("Roll once")
        .syntax("Roll several dice", arg("count"))
        .param("count", "How many dice")
        .example("dice 3", "/dice 4")
        .build()
    )


def nested_usage():
    return (
        UsageNode.root("cfg")
        .description("Settings")
        .subcommand(
            "set",
            "Change a value",
            lambda b: b.syntax("Set key", arg("key"), opt(arg("value"))).param("key", "Setting name").note("Values are strings"),
        )
        .subcommand("list", "Show all values", lambda b: b.syntax(None))
        .option("--verbose", "More details")
        .build()
    )


class TestUsageBuilder:
    """Tests for building usage nodes."""

    def test_blank_name(self):
        with pytest.raises(GrammarError):
            UsageNode.root(" ")

    def test_strings_in_syntax_are_literals(self):
        node = UsageNode.root("mode").syntax("Switch", one_of("on", "off"), "now").build()
        assert node.syntaxes[0].tail[1] == Literal("now")
        assert node.syntaxes[0].tail_text() == "(on|off) now"

    def test_raw_syntax(self):
        node = UsageNode.root("legacy").raw_syntax("  <a> [b]  ", "Old style").build()
        assert node.syntaxes[0] == Syntax("<a> [b]", "Old style")

    def test_blank_examples_and_notes_skipped(self):
        node = UsageNode.root("x").example("", "  ", " x 1 ").note(None, "n").build()
        assert node.examples == ("x 1",)
        assert node.notes == ("n",)

    def test_nodes_are_immutable(self):
        node = dice_usage()
        with pytest.raises(AttributeError):
            node.name = "other"

    def test_child(self):
        child = UsageNode.root("sub").build()
        node = UsageNode.root("top").child(child, None).build()
        assert node.children == (child,)


class TestRenderText:
    """Tests for the text renderer."""

    def test_help_page(self):
        result = render(dice_usage(), RenderOptions.for_help("/"))
        assert result.plain_text().splitlines() == [
            "Command: /dice",
            "Roll dice",
            "",
            "Usage:",
            "/dice  # Roll once",
            "/dice <count>  # Roll several dice",
            "",
            "Parameters:",
            "• <count>: How many dice",
            "",
            "Examples:",
            "/dice 3",
            "/dice 4",
        ]

    def test_markdown_flavour(self):
        text = render(dice_usage(), RenderOptions.for_help("/")).markdown_text()
        assert "`/dice <count>`  # Roll several dice" in text
        assert "• `<count>`: How many dice" in text

    def test_line_kinds(self):
        result = render(dice_usage(), RenderOptions.for_help("/"))
        assert result.lines[0].kind == LineKind.TITLE
        assert result.lines[2].kind == LineKind.BLANK
        assert result.lines[3].kind == LineKind.HEADING
        assert result.lines[4].kind == LineKind.CODE
        assert result.lines[-1].kind != LineKind.BLANK

    def test_command_page_has_no_header(self):
        text = render(dice_usage(), RenderOptions.for_command("/")).plain_text()
        assert text.startswith("Usage:")

    def test_bare_invocation_without_syntaxes(self):
        node = UsageNode.root("ping").build()
        assert render(node, RenderOptions.for_help("!")).plain_text().splitlines()[-1] == "!ping"

    def test_nested_sections(self):
        text = render(nested_usage(), RenderOptions.for_help("/")).plain_text()
        lines = text.splitlines()
        assert "/cfg set <key> [<value>]  # Set key" in lines
        assert "/cfg list" in lines
        assert "Under /cfg set:" in lines
        assert "• <key>: Setting name" in lines
        assert "• --verbose: More details" in lines
        assert "• Values are strings" in lines
        subcommands = lines.index("Subcommands:")
        assert lines[subcommands + 1 :] == ["/cfg set  # Change a value", "/cfg list  # Show all values"]

    def test_max_depth(self):
        deep = UsageNode.root("c").syntax("deepest").build()
        for name in ("b", "a"):
            deep = UsageNode.root(name).child(deep).build()
        options = RenderOptions(prefix="/", max_depth=1)
        text = render(deep, options).plain_text()
        assert "/a b c" not in text

    def test_sections_can_be_disabled(self):
        options = RenderOptions(include_examples=False, include_parameters=False)
        text = render(dice_usage(), options).plain_text()
        assert "Examples:" not in text
        assert "Parameters:" not in text

    def test_deterministic(self):
        options = RenderOptions.for_help("/")
        assert render(nested_usage(), options) == render(nested_usage(), options)

    def test_none(self):
        assert render(None).lines == ()

    def test_counts(self):
        result = render(dice_usage(), RenderOptions.for_help("/"))
        assert result.line_count() == 13
        assert result.char_count() == len(result.plain_text())
