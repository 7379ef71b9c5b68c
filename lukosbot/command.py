"""LukosBot - command line entry point."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from .commands.usage_image import render_usage_png
from .commands.usage_text import RenderOptions, render
from .logging_setup import get_logger, init_logger
from .manager import LukosBot
from .models import ConfigError, ExitCode, RenderError
from .validate_cli import run_validate

__all__ = ["main"]

CLI_HELP = """Syntax: lukosbot [--config PATH] [--debug] [--log FILE] [command]

Commands:
 console              Chat with the bot in the terminal (default)
 help [<name>]        List the bot commands, or show the usage of one
                      (add --png FILE to write the usage image)
 validate             Check the configuration file
"""


def use_param(txt: str) -> str:
    """Check if parameter `txt` is in sys.argv.

    if found, removes it from sys.argv & returns the argument value
    """
    v = ""
    if txt in sys.argv:
        i = sys.argv.index(txt)
        if i + 1 >= len(sys.argv):
            raise SystemExit(f"Missing value for {txt}")
        v = sys.argv[i + 1]
        del sys.argv[i : i + 2]
    return v


def use_flag(txt: str) -> bool:
    """Remove the flag `txt` from sys.argv, returning whether it was there."""
    if txt in sys.argv:
        sys.argv.remove(txt)
        return True
    return False


def print_help(bot: LukosBot, name: str, png: str) -> ExitCode:
    """Print the command list, or the usage page of `name`."""
    prefix = bot.output.prefix
    if not name:
        for command in bot.registry.visible():
            print(f" {prefix}{command.name:20s} {command.description}")
        return ExitCode.SUCCESS

    command = bot.registry.get(name)
    if command is None:
        print(f"Unknown command: {name}")
        return ExitCode.USAGE_ERROR
    options = RenderOptions.for_help(prefix)
    if png:
        image = render_usage_png(f"usage-{command.name}", command.usage(), options, bot.image_style())
        Path(png).expanduser().write_bytes(image.data)
        print(f"Wrote {png}")
    else:
        print(render(command.usage(), options).plain_text())
    return ExitCode.SUCCESS


def run(args: list[str], config_filename: str = "", png: str = "") -> ExitCode:
    """Run the command given in `args`.

    Args:
        args: Command and its arguments
        config_filename: Configuration file or directory, default location when empty
        png: For ``help <name>``, file receiving the usage image
    """
    action = args[0] if args else "console"
    if action in {"--help", "-h"}:
        print(CLI_HELP)
        return ExitCode.SUCCESS
    if action == "validate":
        return run_validate(config_filename)

    bot = LukosBot(config_filename)
    asyncio.run(bot.load_config())
    bot.setup()
    match action:
        case "help":
            return print_help(bot, args[1] if len(args) > 1 else "", png)
        case "console":
            asyncio.run(bot.run_console())
            return ExitCode.SUCCESS
        case _:
            print(f"Unknown command: {action}\n")
            print(CLI_HELP)
            return ExitCode.USAGE_ERROR


def main() -> None:
    """Run the command."""
    debug = use_flag("--debug")
    init_logger(filename=use_param("--log") or None, force_debug=debug)
    log = get_logger("startup")
    config_override = use_param("--config")
    png = use_param("--png")

    try:
        code = run(sys.argv[1:], config_override, png)
    except KeyboardInterrupt:
        code = ExitCode.SUCCESS
    except ConfigError:
        log.critical("Invalid configuration.")
        code = ExitCode.CONFIG_ERROR
    except (RenderError, OSError) as e:
        log.critical("Command failed: %s", e)
        code = ExitCode.RUNTIME_ERROR
    except Exception:  # pylint: disable=W0718
        log.critical("Unhandled exception:", exc_info=True)
        code = ExitCode.RUNTIME_ERROR
    sys.exit(code)


if __name__ == "__main__":
    main()
