"""Tests for the execution tree and the dispatcher."""

import threading

import pytest

from lukosbot.commands.dispatcher import (
    DEFAULT_FAILURE_REPLY,
    CommandDispatcher,
    LiteralNode,
    StringReader,
    argument,
    boolean,
    floating,
    greedy_string,
    integer,
    literal,
    string,
    word,
)
from lukosbot.models import (
    CommandSyntaxError,
    DuplicateCommandError,
    DuplicatePolicy,
    GrammarError,
    ReturnCode,
    UnknownCommandError,
)


class Recorder:
    "Callable action remembering the contexts it was called with"

    def __init__(self, result=None):
        self.calls = []
        self.result = result

    def __call__(self, ctx):
        self.calls.append(ctx)
        return self.result


class TestStringReader:
    """Tests for StringReader."""

    def test_read_word(self):
        reader = StringReader("hello world")
        assert reader.read_word() == "hello"
        reader.skip_whitespace()
        assert reader.read_word() == "world"
        assert not reader.can_read()

    def test_read_quoted(self):
        reader = StringReader('"a \\"quoted\\" \\\\ text" rest')
        assert reader.read_quoted() == 'a "quoted" \\ text'
        assert reader.string[reader.cursor :] == " rest"

    def test_unclosed_quote(self):
        with pytest.raises(CommandSyntaxError, match="Unclosed quoted string"):
            StringReader('"abc').read_quoted()

    def test_invalid_escape(self):
        with pytest.raises(CommandSyntaxError, match="Invalid escape"):
            StringReader('"a\\nb"').read_quoted()


class TestArgumentTypes:
    """Tests for the bundled argument types."""

    def test_integer_bounds(self):
        parser = integer(min=1, max=10)
        assert parser.parse(StringReader("7")) == 7
        with pytest.raises(CommandSyntaxError, match="must not be less than 1, found 0"):
            parser.parse(StringReader("0"))
        with pytest.raises(CommandSyntaxError, match="must not be more than 10"):
            parser.parse(StringReader("11"))

    def test_invalid_integer(self):
        with pytest.raises(CommandSyntaxError) as info:
            integer().parse(StringReader("abc"))
        assert info.value.message == "Invalid integer 'abc'"
        assert info.value.cursor == 0

    def test_min_greater_than_max(self):
        with pytest.raises(GrammarError):
            integer(min=5, max=1)

    def test_floating(self):
        assert floating(min=0.0).parse(StringReader("2.5")) == 2.5

    def test_floating_rejects_non_finite(self):
        parser = floating(min=0, max=10)
        for token in ("nan", "inf", "-inf", "NaN"):
            with pytest.raises(CommandSyntaxError) as info:
                parser.parse(StringReader(token))
            assert info.value.message == f"Invalid float '{token}'"

    def test_floating_bounds_through_dispatcher(self, source):
        action = Recorder()
        dispatcher = CommandDispatcher()
        dispatcher.register(literal("f").then(argument("x", floating(min=0, max=10)).executes(action)))
        with pytest.raises(CommandSyntaxError):
            dispatcher.execute("f nan", source)
        assert action.calls == []

    def test_integer_ascii_digits_only(self):
        parser = integer()
        assert parser.parse(StringReader("+12")) == 12
        assert parser.parse(StringReader("-3")) == -3
        for token in ("\u0661\u0662", "1_0", "\uff11"):
            with pytest.raises(CommandSyntaxError, match="Invalid integer"):
                parser.parse(StringReader(token))

    def test_boolean(self):
        assert boolean().parse(StringReader("TRUE")) is True
        assert boolean().parse(StringReader("false")) is False
        with pytest.raises(CommandSyntaxError):
            boolean().parse(StringReader("maybe"))

    def test_string_quoted_or_word(self):
        assert string().parse(StringReader('"two words"')) == "two words"
        assert string().parse(StringReader("single rest")) == "single"

    def test_greedy_takes_rest(self):
        reader = StringReader("hello big world  ")
        assert greedy_string().parse(reader) == "hello big world"
        assert not reader.can_read()


class TestTreeValidation:
    """Tests for rules enforced while building trees."""

    def test_greedy_argument_cannot_have_children(self):
        with pytest.raises(GrammarError):
            argument("text", greedy_string()).then(literal("more"))

    def test_single_argument_child(self):
        with pytest.raises(GrammarError):
            literal("cmd").then(argument("a", word())).then(argument("b", word()))

    def test_literal_builder_builds_literal_node(self):
        node = literal("cfg").then(literal("show").executes(Recorder())).build()
        assert isinstance(node, LiteralNode)
        assert isinstance(node.literals["show"], LiteralNode)

    def test_blank_literal_name(self):
        with pytest.raises(GrammarError):
            literal("  ")

    def test_duplicate_literal_children_merge(self, dispatcher, source):
        first, second = Recorder(), Recorder()
        node = (
            literal("cfg")
            .then(literal("set").then(argument("key", word()).executes(first)))
            .then(literal("set").executes(second))
            .build()
        )
        assert list(node.literals) == ["set"]
        dispatcher.register(node)
        dispatcher.execute("cfg set", source)
        dispatcher.execute("cfg set name", source)
        assert len(first.calls) == len(second.calls) == 1


class TestRegistration:
    """Tests for duplicate handling and unregistration."""

    def test_duplicate_rejected_by_default(self, dispatcher):
        dispatcher.register(literal("ping").executes(Recorder()))
        with pytest.raises(DuplicateCommandError):
            dispatcher.register(literal("ping").executes(Recorder()))

    def test_duplicate_replaced(self, source):
        dispatcher = CommandDispatcher(DuplicatePolicy.REPLACE)
        old, new = Recorder(), Recorder()
        dispatcher.register(literal("ping").executes(old))
        dispatcher.register(literal("ping").executes(new))
        dispatcher.execute("ping", source)
        assert not old.calls
        assert len(new.calls) == 1

    def test_unregister(self, dispatcher, source):
        dispatcher.register(literal("ping").executes(Recorder()))
        assert dispatcher.unregister("ping") is True
        assert dispatcher.unregister("ping") is False
        assert dispatcher.execute("ping", source) == ReturnCode.NOT_FOUND

    def test_roots_in_order(self, dispatcher):
        for name in ("b", "a", "c"):
            dispatcher.register(literal(name).executes(Recorder()))
        assert dispatcher.roots() == ["b", "a", "c"]

    def test_concurrent_registration(self):
        dispatcher = CommandDispatcher()

        def register(start):
            for i in range(start, start + 50):
                dispatcher.register(literal(f"cmd{i}").executes(Recorder()))

        threads = [threading.Thread(target=register, args=(n * 50,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(dispatcher.roots()) == 200


class TestExecution:
    """Tests for matching and running actions."""

    def test_argument_bound(self, dispatcher, source):
        action = Recorder(result=1)
        dispatcher.register(literal("ip").then(argument("target", word()).executes(action)))
        assert dispatcher.execute("ip 1.1.1.1", source) == 1
        assert action.calls[0]["target"] == "1.1.1.1"

    def test_bare_command(self, dispatcher, source):
        bare, with_arg = Recorder(), Recorder()
        dispatcher.register(literal("ip").executes(bare).then(argument("target", word()).executes(with_arg)))
        assert dispatcher.execute("ip", source) == ReturnCode.SUCCESS
        assert len(bare.calls) == 1
        assert not with_arg.calls

    def test_out_of_range_runs_nothing(self, dispatcher, source):
        action = Recorder()
        dispatcher.register(literal("page").then(argument("n", integer(min=1)).executes(action)))
        with pytest.raises(CommandSyntaxError) as info:
            dispatcher.execute("page 0", source)
        assert info.value.cursor == 5
        assert not action.calls

    def test_literal_beats_argument(self, dispatcher, source):
        lit, arg_action = Recorder(), Recorder()
        dispatcher.register(
            literal("x")
            .then(literal("foo").executes(lit))
            .then(argument("value", word()).executes(arg_action))
        )
        dispatcher.execute("x foo", source)
        dispatcher.execute("x bar", source)
        assert len(lit.calls) == 1
        assert [c["value"] for c in arg_action.calls] == ["bar"]

    def test_literals_are_case_sensitive(self, dispatcher, source):
        dispatcher.register(literal("x").then(literal("foo").executes(Recorder())))
        with pytest.raises(CommandSyntaxError):
            dispatcher.execute("x FOO", source)

    def test_greedy_binds_rest(self, dispatcher, source):
        action = Recorder()
        dispatcher.register(literal("say").then(argument("text", greedy_string()).executes(action)))
        dispatcher.execute("say hello world", source)
        assert action.calls[0]["text"] == "hello world"

    def test_quoted_argument(self, dispatcher, source):
        action = Recorder()
        dispatcher.register(literal("tag").then(argument("name", string()).then(argument("n", integer()).executes(action))))
        dispatcher.execute('tag "my tag" 3', source)
        assert action.calls[0].arguments == {"name": "my tag", "n": 3}

    def test_trailing_data_after_argument(self, dispatcher, source):
        dispatcher.register(literal("tag").then(argument("name", string()).executes(Recorder())))
        with pytest.raises(CommandSyntaxError, match="Expected whitespace"):
            dispatcher.execute('tag "a"b', source)

    def test_unknown_command(self, dispatcher, source):
        assert dispatcher.execute("nothing here", source) == ReturnCode.NOT_FOUND

    def test_parse_unknown_raises(self, dispatcher, source):
        with pytest.raises(UnknownCommandError):
            dispatcher.parse("nothing", source)

    def test_incomplete_command(self, dispatcher, source):
        dispatcher.register(literal("cfg").then(literal("set").executes(Recorder())))
        with pytest.raises(CommandSyntaxError) as info:
            dispatcher.execute("cfg", source)
        assert info.value.message == "Unknown or incomplete command"
        assert info.value.cursor == 3

    def test_incorrect_argument(self, dispatcher, source):
        dispatcher.register(literal("cfg").executes(Recorder()))
        with pytest.raises(CommandSyntaxError) as info:
            dispatcher.execute("cfg extra", source)
        assert info.value.message == "Incorrect argument for command"
        assert info.value.cursor == 4

    def test_context(self, dispatcher, source):
        action = Recorder()
        dispatcher.register(literal("a").then(literal("b").then(argument("c", integer()).executes(action))))
        dispatcher.execute("  a b 5", source)
        ctx = action.calls[0]
        assert ctx.command == "a"
        assert [n.usage_label for n in ctx.nodes] == ["a", "b", "<c>"]
        assert ctx.source is source
        assert "c" in ctx
        assert ctx.get("missing", "dflt") == "dflt"

    @pytest.mark.parametrize(
        ("result", "expected"),
        [(None, ReturnCode.SUCCESS), (True, ReturnCode.SUCCESS), (False, ReturnCode.FAILURE), (5, 5), ("text", ReturnCode.SUCCESS)],
    )
    def test_result_coercion(self, dispatcher, source, result, expected):
        dispatcher.register(literal("r").executes(Recorder(result)))
        assert dispatcher.execute("r", source) == expected

    def test_action_exception_is_contained(self, dispatcher, source, sink):
        def boom(_ctx):
            raise RuntimeError("boom")

        dispatcher.register(literal("crash").executes(boom))
        assert dispatcher.execute("crash", source) == ReturnCode.FAILURE
        assert sink.texts == [DEFAULT_FAILURE_REPLY]

    def test_custom_failure_reply(self, source, sink):
        dispatcher = CommandDispatcher(failure_reply="Oops")

        def boom(_ctx):
            raise ValueError("bad")

        dispatcher.register(literal("crash").executes(boom))
        dispatcher.execute("crash", source)
        assert sink.texts == ["Oops"]


class TestSmartUsage:
    """Tests for compact usage lines."""

    def test_optional_argument(self, dispatcher):
        dispatcher.register(literal("dice").executes(Recorder()).then(argument("count", integer()).executes(Recorder())))
        assert dispatcher.smart_usage("dice") == ["dice [<count>]"]

    def test_branches(self, dispatcher):
        dispatcher.register(
            literal("cfg")
            .then(literal("get").then(argument("key", word()).executes(Recorder())))
            .then(literal("list").executes(Recorder()))
        )
        assert dispatcher.smart_usage("cfg") == ["cfg get <key>", "cfg list"]

    def test_unknown(self, dispatcher):
        assert dispatcher.smart_usage("nope") == []
