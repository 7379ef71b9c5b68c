"""Tests for configuration loading and the validate command."""

import pytest

from lukosbot.config_loader import ConfigLoader, expand_path
from lukosbot.models import ConfigError, ExitCode
from lukosbot.validate_cli import run_validate


def write(path, text):
    path.write_text(text, encoding="utf-8")
    return path


class TestConfigLoader:
    """Tests for ConfigLoader."""

    def test_single_file(self, tmp_path, test_logger):
        fname = write(tmp_path / "config.toml", '[lukosbot]\nprefix = "!"\n')
        config = ConfigLoader(test_logger).load_sync(fname)
        assert config == {"lukosbot": {"prefix": "!"}}

    @pytest.mark.asyncio
    async def test_async_load(self, tmp_path, test_logger):
        fname = write(tmp_path / "config.toml", "[usage_image]\nenabled = false\n")
        loader = ConfigLoader(test_logger)
        assert await loader.load(str(fname)) == {"usage_image": {"enabled": False}}
        assert loader.config == {"usage_image": {"enabled": False}}

    def test_directory_merged_in_order(self, tmp_path, test_logger):
        write(tmp_path / "b.toml", '[lukosbot]\nprefix = "b"\ndisabled_commands = ["coin"]\n')
        write(tmp_path / "a.toml", '[lukosbot]\nprefix = "a"\ndisabled_commands = ["dice"]\n')
        write(tmp_path / "notes.txt", "not toml")
        config = ConfigLoader(test_logger).load_sync(tmp_path)
        assert config["lukosbot"]["prefix"] == "b"
        assert config["lukosbot"]["disabled_commands"] == ["dice", "coin"]

    def test_include_relative_to_file(self, tmp_path, test_logger):
        (tmp_path / "extra").mkdir()
        write(tmp_path / "extra" / "platforms.toml", "[platforms.console]\nenabled = false\n")
        fname = write(tmp_path / "config.toml", '[lukosbot]\ninclude = ["extra/platforms.toml"]\n')
        loader = ConfigLoader(test_logger)
        config = loader.load_sync(fname)
        assert config["platforms"]["console"]["enabled"] is False
        assert len(loader.sources) == 2

    def test_include_loop(self, tmp_path, test_logger):
        write(tmp_path / "a.toml", '[lukosbot]\ninclude = ["b.toml"]\n')
        write(tmp_path / "b.toml", '[lukosbot]\ninclude = ["a.toml"]\nprefix = "!"\n')
        config = ConfigLoader(test_logger).load_sync(tmp_path / "a.toml")
        assert config["lukosbot"]["prefix"] == "!"

    def test_missing_file(self, tmp_path, test_logger):
        with pytest.raises(ConfigError):
            ConfigLoader(test_logger).load_sync(tmp_path / "nope.toml")

    def test_syntax_error(self, tmp_path, test_logger):
        fname = write(tmp_path / "bad.toml", "[lukosbot\nprefix = \n")
        with pytest.raises(ConfigError, match="Problem reading"):
            ConfigLoader(test_logger).load_sync(fname)

    def test_expand_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LUKOS_TEST_DIR", str(tmp_path))
        assert expand_path("$LUKOS_TEST_DIR/x.toml") == tmp_path / "x.toml"
        assert expand_path("y.toml", tmp_path) == tmp_path / "y.toml"


class TestRunValidate:
    """Tests for the validate command."""

    def test_valid(self, tmp_path, capsys):
        fname = write(tmp_path / "config.toml", '[lukosbot]\nprefix = "!"\n')
        assert run_validate(fname) == ExitCode.SUCCESS
        assert "Configuration is valid!" in capsys.readouterr().out

    def test_errors(self, tmp_path, capsys):
        fname = write(tmp_path / "config.toml", '[lukosbot]\nduplicate_commands = "sometimes"\n')
        assert run_validate(fname) == ExitCode.CONFIG_ERROR
        out = capsys.readouterr().out
        assert "ERROR: [lukosbot] Config error for 'duplicate_commands'" in out
        assert "Found 1 error(s) and 0 warning(s)" in out

    def test_warnings_only(self, tmp_path, capsys):
        fname = write(tmp_path / "config.toml", '[lukosbot]\nprefx = "!"\n')
        assert run_validate(fname) == ExitCode.SUCCESS
        assert "Found 1 warning(s)" in capsys.readouterr().out

    def test_missing(self, tmp_path, capsys):
        assert run_validate(tmp_path / "nope.toml") == ExitCode.CONFIG_ERROR
        assert "ERROR: Config file not found" in capsys.readouterr().out
