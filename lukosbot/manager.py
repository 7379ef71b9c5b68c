"""LukosBot manager - wires configuration, commands and platforms together."""

from __future__ import annotations

import random
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .adapters.console import ConsoleAdapter, ConsoleSender, open_stdin
from .builtin_commands import builtin_commands
from .commands.dispatcher import DEFAULT_FAILURE_REPLY, CommandDispatcher
from .commands.registry import CommandRegistry
from .commands.usage_image import ImageStyle
from .commands.usage_output import UsageOutput
from .config import Configuration
from .config_loader import ConfigLoader
from .constants import CONFIG_FILE, DEFAULT_PREFIX, LANE_IDLE_TIMEOUT, MEDIA_OUTPUT_DIR
from .dispatch import MessageDispatcher
from .logging_setup import get_logger
from .message.address import ChatPlatform
from .models import ConfigError, DuplicatePolicy
from .processor import CommandProcessor
from .schema import BOT_SCHEMA, PLATFORM_SCHEMA, USAGE_IMAGE_SCHEMA, validate_config
from .senders import SenderHub

if TYPE_CHECKING:
    import asyncio
    from typing import TextIO

    from .commands.registry import BotCommand
    from .commands.usage_image import FontSpec

__all__ = ["LukosBot"]


def _with_fonts(spec: FontSpec, extra: list[str]) -> FontSpec:
    if not extra:
        return spec
    return replace(spec, families=(*extra, *spec.families))


class LukosBot:  # pylint: disable=too-many-instance-attributes
    """Main app object.

    Call `load_config` (or set `config`) then `setup` before feeding messages.

    Args:
        config_filename: Configuration file or directory, default location when empty
        rng: Random generator of the dice and coin commands
    """

    def __init__(self, config_filename: str | Path = "", rng: random.Random | None = None) -> None:
        self.config_filename = config_filename
        self.config: dict[str, Any] = {}
        self.rng = rng
        self.log = get_logger()
        self.hub = SenderHub()
        self.registry = CommandRegistry()
        self.dispatcher = CommandDispatcher()
        self.output = UsageOutput()
        self.processor = CommandProcessor(self.dispatcher)
        self.messages = MessageDispatcher(self.processor, self.hub)
        self.config_errors: list[str] = []

    async def load_config(self) -> None:
        """Load and validate the configuration.

        Problems found by validation are logged; the bot still starts with
        defaults for the faulty values.

        Raises:
            ConfigError: If an explicit file is missing or unreadable
        """
        if not self.config_filename and not CONFIG_FILE.exists():
            self.log.info("No configuration at %s, using defaults", CONFIG_FILE)
            self.config = {}
        else:
            self.config = await ConfigLoader(self.log).load(self.config_filename)
        self.config_errors, _warnings = validate_config(self.config, self.log)
        for error in self.config_errors:
            self.log.error(error)

    def section(self, name: str) -> Configuration:
        """Return a configuration section with its schema defaults."""
        schemas = {"lukosbot": BOT_SCHEMA, "usage_image": USAGE_IMAGE_SCHEMA}
        value = self.config.get(name, {})
        return Configuration(value if isinstance(value, dict) else {}, logger=self.log, schema=schemas.get(name))

    def platform_config(self, platform: ChatPlatform) -> Configuration:
        platforms = self.config.get("platforms", {})
        value = platforms.get(platform.value, {}) if isinstance(platforms, dict) else {}
        return Configuration(value if isinstance(value, dict) else {}, logger=self.log, schema=PLATFORM_SCHEMA)

    def image_style(self) -> ImageStyle:
        """Build the usage image style from ``[usage_image]``."""
        conf = self.section("usage_image")
        default = ImageStyle()
        fonts = [str(f) for f in conf.get_list("fonts")]
        mono_fonts = [str(f) for f in conf.get_list("mono_fonts")]
        return replace(
            default,
            max_width=conf.get_int("max_width", default.max_width),
            min_width=conf.get_int("min_width", default.min_width),
            padding=conf.get_int("padding", default.padding),
            line_spacing=conf.get_float("line_spacing", default.line_spacing),
            title_font=_with_fonts(default.title_font, fonts),
            heading_font=_with_fonts(default.heading_font, fonts),
            body_font=_with_fonts(default.body_font, fonts),
            code_font=_with_fonts(default.code_font, mono_fonts),
        )

    def _duplicate_policy(self, conf: Configuration) -> DuplicatePolicy:
        raw = conf.get_str("duplicate_commands", DuplicatePolicy.REJECT.value).strip().lower()
        try:
            return DuplicatePolicy(raw)
        except ValueError:
            self.log.warning("Invalid duplicate_commands value %r, using %s", raw, DuplicatePolicy.REJECT.value)
            return DuplicatePolicy.REJECT

    def setup(self, extra_commands: list[BotCommand] | None = None) -> list[str]:
        """Build the command pipeline from the loaded configuration.

        Args:
            extra_commands: Commands registered after the built-in ones

        Returns:
            Names of the registered commands
        """
        conf = self.section("lukosbot")
        prefix = conf.get_str("prefix", DEFAULT_PREFIX).strip() or DEFAULT_PREFIX
        images = self.section("usage_image").get_bool("enabled", True)

        self.output = UsageOutput(prefix, self.image_style(), images=images)
        self.dispatcher = CommandDispatcher(self._duplicate_policy(conf), conf.get_str("failure_reply", DEFAULT_FAILURE_REPLY))
        self.registry = CommandRegistry()

        commands = builtin_commands(self.registry, self.output, self.rng)
        for command in extra_commands or []:
            command.output = self.output
            commands.append(command)

        disabled = {str(name).strip().lower() for name in conf.get_list("disabled_commands")}
        for command in commands:
            if command.name.lower() in disabled:
                self.log.info("Command %s is disabled", command.name)
                continue
            self.registry.add(command)

        registered = self.registry.register_all(self.dispatcher)
        self.processor = CommandProcessor(self.dispatcher, prefix)
        self.messages = MessageDispatcher(self.processor, self.hub, conf.get_float("lane_idle_timeout", LANE_IDLE_TIMEOUT))
        self.log.debug("[ commands: %s ]", self.registry.list_commands())
        return registered

    async def run_console(
        self,
        reader: asyncio.StreamReader | None = None,
        stream: TextIO | None = None,
        output_dir: Path | None = None,
    ) -> int:
        """Chat with the bot in the terminal until end of input.

        Args:
            reader: Input lines, stdin when None
            stream: Where replies are printed, stdout when None
            output_dir: Where images and files are written

        Returns:
            Number of messages read
        """
        platform = self.platform_config(ChatPlatform.CONSOLE)
        if not platform.get_bool("enabled", True):
            raise ConfigError("The console platform is disabled in [platforms.console]")
        directory = output_dir or Path(platform.get_str("output_dir", str(MEDIA_OUTPUT_DIR))).expanduser()
        self.hub.register(ConsoleSender(directory, stream))
        adapter = ConsoleAdapter(self.messages)
        try:
            return await adapter.read_loop(reader or await open_stdin())
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Stop every chat lane."""
        await self.messages.stop()
