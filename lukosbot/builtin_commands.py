"""Commands shipped with the bot: help, echo, dice and coin."""

from __future__ import annotations

import random
from collections import Counter
from typing import TYPE_CHECKING

from .commands.dispatcher import argument, greedy_string, integer, literal, word
from .commands.grammar import arg, opt, opt_one_of
from .commands.registry import BotCommand
from .commands.usage import UsageNode
from .commands.usage_output import parse_mode
from .constants import DICE_MAX_COUNT
from .models import ReturnCode

if TYPE_CHECKING:
    from .commands.dispatcher import CommandContext, CommandDispatcher
    from .commands.registry import CommandRegistry
    from .commands.usage_output import UsageOutput

__all__ = ["CoinCommand", "DiceCommand", "EchoCommand", "HelpCommand", "builtin_commands"]

DIE_FACES = 6
FACE_NAMES = ("ones", "twos", "threes", "fours", "fives", "sixes")
# heads, tails, edge
COIN_WEIGHTS = (0.499999999999, 0.499999999999, 0.000000000002)


class HelpCommand(BotCommand):
    """List commands, or show the usage of one of them."""

    name = "help"
    description = "List available commands or show how to use one"

    def __init__(self, registry: CommandRegistry, output: UsageOutput | None = None) -> None:
        super().__init__(output)
        self.registry = registry

    def usage(self) -> UsageNode:
        return (
            UsageNode.root(self.name)
            .description(self.description)
            .syntax("List all available commands")
            .syntax("Show the usage of a command, optionally forcing the output", arg("command"), opt_one_of("img", "text"))
            .param("command", "Command name without prefix, e.g. dice")
            .note(
                "Output modes:",
                "img: always answer with an image",
                "text: always answer with text",
                "Without a mode, long pages are sent as images",
            )
            .example("help", "help dice", "help dice img")
            .build()
        )

    def register(self, dispatcher: CommandDispatcher) -> None:
        dispatcher.register(
            literal(self.name)
            .executes(self.list_commands)
            .then(
                argument("command", word())
                .executes(lambda ctx: self.show_usage(ctx, ctx["command"], None))
                .then(argument("mode", word()).executes(lambda ctx: self.show_usage(ctx, ctx["command"], ctx["mode"])))
            )
        )

    def list_commands(self, ctx: CommandContext) -> int:
        prefix = self.output.prefix
        lines = ["Available commands:"]
        lines.extend(f"{prefix}{c.name} - {c.description}" for c in self.registry.visible())
        lines.append("")
        lines.append(f"Use `{prefix}{self.name} <command>` to see how to use a command.")
        ctx.source.reply("\n".join(lines))
        return ReturnCode.SUCCESS

    def show_usage(self, ctx: CommandContext, command_name: str, mode: str | None) -> int:
        command = self.registry.get(command_name)
        if command is None or not command.visible:
            prefix = self.output.prefix
            ctx.source.reply(f"Unknown command: {command_name}\nUse `{prefix}{self.name}` to list the available commands.")
            return ReturnCode.FAILURE
        self.output.send_usage(ctx.source, command.usage(), parse_mode(mode), title_name=command.name)
        return ReturnCode.SUCCESS


class EchoCommand(BotCommand):
    """Repeat the given text."""

    name = "echo"
    description = "Send back the given text"

    def usage(self) -> UsageNode:
        return (
            UsageNode.root(self.name)
            .description(self.description)
            .syntax("Echo the text", arg("text"))
            .param("text", "Text to send back, spaces allowed")
            .example("echo Hello world")
            .build()
        )

    def register(self, dispatcher: CommandDispatcher) -> None:
        dispatcher.register(
            literal(self.name)
            .executes(lambda ctx: self.send_usage(ctx.source))
            .then(argument("text", greedy_string()).executes(lambda ctx: ctx.source.reply(ctx["text"])))
        )


class _RandomCommand(BotCommand):
    def __init__(self, output: UsageOutput | None = None, rng: random.Random | None = None) -> None:
        super().__init__(output)
        self.rng = rng or random.Random()


class DiceCommand(_RandomCommand):
    """Roll six-sided dice."""

    name = "dice"
    description = "Roll dice, optionally several at once"

    def usage(self) -> UsageNode:
        return (
            UsageNode.root(self.name)
            .description(self.description)
            .syntax("Roll dice (one by default)", opt(arg("count")))
            .param("count", f"Number of dice, from 1 to {DICE_MAX_COUNT}")
            .example("dice", "dice 3")
            .build()
        )

    def register(self, dispatcher: CommandDispatcher) -> None:
        dispatcher.register(
            literal(self.name)
            .executes(lambda ctx: ctx.source.reply(self.roll(1)))
            .then(argument("count", integer(min=1, max=DICE_MAX_COUNT)).executes(lambda ctx: ctx.source.reply(self.roll(ctx["count"]))))
        )

    def roll(self, count: int) -> str:
        """Roll `count` dice and describe the outcome."""
        faces = Counter(self.rng.choices(range(1, DIE_FACES + 1), k=count))
        if count == 1:
            (face,) = faces
            return f"You rolled 1 die.\nIt landed on... {face}!"
        detail = ", ".join(f"{label}: {faces[i + 1]}" for i, label in enumerate(FACE_NAMES))
        total = sum(face * n for face, n in faces.items())
        return f"You rolled {count} dice.\n{detail}.\nThe total is {total}!"


class CoinCommand(_RandomCommand):
    """Flip coins."""

    name = "coin"
    description = "Flip coins"

    def usage(self) -> UsageNode:
        return (
            UsageNode.root(self.name)
            .description(self.description)
            .syntax("Flip coins", arg("count"))
            .param("count", f"Number of coins, from 1 to {DICE_MAX_COUNT}")
            .example("coin 10")
            .build()
        )

    def register(self, dispatcher: CommandDispatcher) -> None:
        dispatcher.register(
            literal(self.name)
            .executes(lambda ctx: self.send_usage(ctx.source))
            .then(argument("count", integer(min=1, max=DICE_MAX_COUNT)).executes(lambda ctx: ctx.source.reply(self.flip(ctx["count"]))))
        )

    def flip(self, count: int) -> str:
        """Flip `count` coins and describe the outcome."""
        sides = Counter(self.rng.choices(("heads", "tails", "edge"), weights=COIN_WEIGHTS, k=count))
        text = f"You flipped {count} coin{'s' if count > 1 else ''}.\nHeads: {sides['heads']}, tails: {sides['tails']}."
        if sides["edge"]:
            text += f"\nAnd {sides['edge']} landed on the edge!"
        return text


def builtin_commands(registry: CommandRegistry, output: UsageOutput | None = None, rng: random.Random | None = None) -> list[BotCommand]:
    """Create the built-in commands; `registry` is what help lists."""
    return [
        HelpCommand(registry, output),
        EchoCommand(output),
        DiceCommand(output, rng),
        CoinCommand(output, rng),
    ]
