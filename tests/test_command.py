"""Tests for the lukosbot command line."""

import sys

import pytest

from lukosbot import command
from lukosbot.models import ExitCode


@pytest.fixture
def config_file(tmp_path):
    fname = tmp_path / "config.toml"
    fname.write_text("", encoding="utf-8")
    return fname


def test_use_param(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["lukosbot", "--config", "x.toml", "help"])
    assert command.use_param("--config") == "x.toml"
    assert sys.argv == ["lukosbot", "help"]
    assert command.use_param("--config") == ""


def test_use_param_missing_value(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["lukosbot", "--log"])
    with pytest.raises(SystemExit):
        command.use_param("--log")


def test_use_flag(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["lukosbot", "--debug", "validate"])
    assert command.use_flag("--debug") is True
    assert command.use_flag("--debug") is False
    assert sys.argv == ["lukosbot", "validate"]


class TestRun:
    """Tests for the command actions."""

    def test_help_list(self, config_file, capsys):
        config_file.write_text('[lukosbot]\nprefix = "!"\n', encoding="utf-8")
        assert command.run(["help"], str(config_file)) == ExitCode.SUCCESS
        out = capsys.readouterr().out
        assert "!dice" in out
        assert "Roll dice, optionally several at once" in out

    def test_help_command(self, config_file, capsys):
        assert command.run(["help", "echo"], str(config_file)) == ExitCode.SUCCESS
        assert capsys.readouterr().out.startswith("Command: /echo\n")

    def test_help_png(self, config_file, tmp_path):
        target = tmp_path / "dice.png"
        assert command.run(["help", "dice"], str(config_file), str(target)) == ExitCode.SUCCESS
        assert target.read_bytes().startswith(b"\x89PNG")

    def test_help_unknown(self, config_file, capsys):
        assert command.run(["help", "nope"], str(config_file)) == ExitCode.USAGE_ERROR
        assert "Unknown command: nope" in capsys.readouterr().out

    def test_unknown_action(self, config_file, capsys):
        assert command.run(["dance"], str(config_file)) == ExitCode.USAGE_ERROR
        assert "Syntax: lukosbot" in capsys.readouterr().out

    def test_cli_help(self, capsys):
        assert command.run(["--help"]) == ExitCode.SUCCESS
        assert "validate" in capsys.readouterr().out

    def test_validate(self, config_file):
        assert command.run(["validate"], str(config_file)) == ExitCode.SUCCESS


class TestMain:
    """Tests for the exit codes of main."""

    @pytest.fixture(autouse=True)
    def quiet_logger(self, monkeypatch):
        monkeypatch.setattr(command, "init_logger", lambda **_: None)

    def test_config_error(self, config_file, monkeypatch):
        config_file.write_text('[lukosbot]\nduplicate_commands = "never"\n', encoding="utf-8")
        monkeypatch.setattr(sys, "argv", ["lukosbot", "--debug", "--config", str(config_file), "validate"])
        with pytest.raises(SystemExit) as info:
            command.main()
        assert info.value.code == ExitCode.CONFIG_ERROR

    def test_missing_config(self, tmp_path, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["lukosbot", "--config", str(tmp_path / "absent.toml"), "help"])
        with pytest.raises(SystemExit) as info:
            command.main()
        assert info.value.code == ExitCode.CONFIG_ERROR

    def test_success(self, config_file, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["lukosbot", "--config", str(config_file), "help"])
        with pytest.raises(SystemExit) as info:
            command.main()
        assert info.value.code == ExitCode.SUCCESS
