from lukosbot.config import Configuration, coerce_to_bool, merge
from lukosbot.schema import BOT_SCHEMA, validate_config
from lukosbot.validation import ConfigField, ConfigItems, ConfigValidator, _find_similar_key, format_config_error


def test_config_access(test_logger):
    conf = Configuration({"a": 1, "b": "test"}, logger=test_logger)
    assert conf["a"] == 1
    assert conf.get("b") == "test"
    assert conf.get("c", 3) == 3


def test_get_bool(test_logger):
    conf = Configuration(
        {
            "t1": True,
            "t2": "true",
            "t3": "yes",
            "t4": "on",
            "t5": "1",
            "f1": False,
            "f2": "false",
            "f3": "no",
            "f4": "off",
            "f5": "0",
            "invalid": "foo",
            "empty": "",
        },
        logger=test_logger,
    )

    for name in ("t1", "t2", "t3", "t4", "t5"):
        assert conf.get_bool(name) is True
    for name in ("f1", "f2", "f3", "f4", "f5"):
        assert conf.get_bool(name) is False

    # Non-empty unrecognized strings are truthy
    assert conf.get_bool("invalid") is True
    assert conf.get_bool("empty") is False

    assert conf.get_bool("missing", default=True) is True
    assert conf.get_bool("missing", default=False) is False


def test_get_int(test_logger):
    conf = Configuration({"a": 1, "b": "2", "c": "invalid"}, logger=test_logger)
    assert conf.get_int("a") == 1
    assert conf.get_int("b") == 2
    assert conf.get_int("c", default=10) == 10
    assert conf.get_int("missing", default=5) == 5


def test_get_float_and_str(test_logger):
    conf = Configuration({"a": "1.5", "b": "x", "c": 3}, logger=test_logger)
    assert conf.get_float("a") == 1.5
    assert conf.get_float("b", default=2.0) == 2.0
    assert conf.get_str("c") == "3"
    assert conf.get_str("missing", "dflt") == "dflt"


def test_get_list(test_logger):
    conf = Configuration({"many": ["a", "b"], "one": "a"}, logger=test_logger)
    assert conf.get_list("many") == ["a", "b"]
    assert conf.get_list("one") == ["a"]
    assert conf.get_list("missing") == []


def test_schema_defaults(test_logger):
    conf = Configuration({"prefix": "!"}, logger=test_logger, schema=BOT_SCHEMA)
    assert conf.get_str("prefix") == "!"
    assert conf.get_str("duplicate_commands") == "reject"
    assert conf.get_float("lane_idle_timeout") == 300.0
    assert conf.has_explicit("prefix")
    assert not conf.has_explicit("duplicate_commands")


def test_iter_subsections(test_logger):
    conf = Configuration({"a": {"x": 1}, "b": 2, "c": {}}, logger=test_logger)
    assert dict(conf.iter_subsections()) == {"a": {"x": 1}, "c": {}}


def test_coerce_to_bool():
    assert coerce_to_bool(None, default=True) is True
    assert coerce_to_bool(" Disabled ") is False
    assert coerce_to_bool(0) is False


def test_merge():
    merged = merge({"a": {"b": 1}, "l": [1], "s": "x"}, {"a": {"c": 2}, "l": [2], "s": "y"})
    assert merged == {"a": {"b": 1, "c": 2}, "l": [1, 2], "s": "y"}


class TestValidator:
    """Tests for ConfigValidator."""

    def test_types(self, test_logger):
        schema = ConfigItems(
            ConfigField("count", int),
            ConfigField("ratio", float),
            ConfigField("name", str),
            ConfigField("items", list),
            ConfigField("flag", bool),
            ConfigField("either", (int, str)),
        )
        config = {"count": "x", "ratio": 1, "name": 3, "items": "a", "flag": "maybe", "either": 2}
        errors = ConfigValidator(config, "test", test_logger).validate(schema)
        assert len(errors) == 4
        assert any("'count'" in e and "Expected int" in e for e in errors)
        assert any("'name'" in e for e in errors)
        assert any("'items'" in e for e in errors)
        assert any("'flag'" in e for e in errors)

    def test_required(self, test_logger):
        errors = ConfigValidator({}, "test", test_logger).validate(ConfigItems(ConfigField("token", str, required=True)))
        assert errors == ["[test] Config error for 'token': Missing required field -> Add 'token' to [test]"]

    def test_choices(self, test_logger):
        schema = ConfigItems(ConfigField("mode", str, choices=["a", "b"]))
        assert ConfigValidator({"mode": "a"}, "t", test_logger).validate(schema) == []
        (error,) = ConfigValidator({"mode": "c"}, "t", test_logger).validate(schema)
        assert "Valid options: 'a', 'b'" in error

    def test_children(self, test_logger):
        schema = ConfigItems(ConfigField("items", dict, children=ConfigItems(ConfigField("size", int))))
        errors = ConfigValidator({"items": {"one": {"size": "big"}, "two": 3}}, "t", test_logger).validate(schema)
        assert len(errors) == 1
        assert "[items.one]" in errors[0]
        assert "[t.items] Config error for 'two'" in errors[0]

    def test_unknown_keys(self, test_logger):
        schema = ConfigItems(ConfigField("prefix", str))
        warnings = ConfigValidator({"prefx": "/", "zzz": 1}, "lukosbot", test_logger).warn_unknown_keys(schema)
        assert warnings == [
            "[lukosbot] Unknown option 'prefx' (did you mean 'prefix'?)",
            "[lukosbot] Unknown option 'zzz' - will be ignored",
        ]

    def test_find_similar_key(self):
        assert _find_similar_key("disabled_comands", ["disabled_commands", "prefix"]) == "disabled_commands"
        assert _find_similar_key("qqq", ["prefix"]) is None

    def test_format_config_error(self):
        assert format_config_error("s", "f", "bad") == "[s] Config error for 'f': bad"
        assert format_config_error("s", "f", "bad", "fix") == "[s] Config error for 'f': bad -> fix"


class TestSchema:
    """Tests for the bot configuration schema."""

    def test_valid(self, test_logger):
        config = {
            "lukosbot": {"prefix": "!", "duplicate_commands": "replace", "disabled_commands": ["coin"]},
            "usage_image": {"enabled": False, "max_width": 800},
            "platforms": {"console": {"enabled": True, "output_dir": "/tmp"}},
        }
        assert validate_config(config, test_logger) == ([], [])

    def test_empty(self, test_logger):
        assert validate_config({}, test_logger) == ([], [])

    def test_errors(self, test_logger):
        config = {
            "lukosbot": {"prefix": "a b", "duplicate_commands": "ignore", "lane_idle_timeout": 0},
            "usage_image": {"min_width": 900, "max_width": 400},
            "platforms": {"irc": {}},
        }
        errors, _ = validate_config(config, test_logger)
        assert len(errors) == 5
        assert any("whitespace" in e for e in errors)
        assert any("'duplicate_commands'" in e for e in errors)
        assert any("greater than 0" in e for e in errors)
        assert any("larger than max_width" in e for e in errors)
        assert any("Unknown platform 'irc'" in e for e in errors)

    def test_warnings(self, test_logger):
        _, warnings = validate_config({"lukosbot": {"prefx": "!"}, "extra": {}}, test_logger)
        assert warnings == [
            "[root] Unknown option 'extra' - will be ignored",
            "[lukosbot] Unknown option 'prefx' (did you mean 'prefix'?)",
        ]
