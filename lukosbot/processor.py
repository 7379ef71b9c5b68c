"""Turn inbound messages into command executions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .commands.source import CommandSource
from .constants import DEFAULT_PREFIX
from .logging_setup import get_logger
from .message.inbound import primary_text
from .models import CommandSyntaxError, ReturnCode

if TYPE_CHECKING:
    from .commands.dispatcher import CommandDispatcher
    from .message.inbound import InboundMessage
    from .message.outbound import OutboundMessage

__all__ = ["CommandProcessor", "syntax_error_reply"]


def syntax_error_reply(error: CommandSyntaxError, command_line: str) -> str:
    """User facing text for a syntax error, with a caret under the failing position."""
    if not error.input:
        error = CommandSyntaxError(error.message, command_line, error.cursor)
    context = error.context()
    body = f"{context}\n{error.message}" if context else error.message
    return f"Command syntax error:\n{body}"


class CommandProcessor:
    """Runs prefixed messages through the dispatcher.

    Messages not starting with the prefix, and unknown commands, produce no
    output.
    """

    def __init__(self, dispatcher: CommandDispatcher, prefix: str = DEFAULT_PREFIX) -> None:
        self.dispatcher = dispatcher
        self.prefix = prefix.strip() if prefix and prefix.strip() else DEFAULT_PREFIX
        self.log = get_logger("processor")

    def command_line(self, msg: InboundMessage | None) -> str | None:
        """Return the command line of `msg` without the prefix, or None if it is not a command."""
        if msg is None:
            return None
        raw = primary_text(msg).strip()
        if not raw.startswith(self.prefix):
            return None
        line = raw[len(self.prefix) :].strip()
        return line or None

    def handle(self, msg: InboundMessage | None) -> list[OutboundMessage]:
        """Process one message and return the replies it produced."""
        line = self.command_line(msg)
        if line is None or msg is None:
            return []
        outs: list[OutboundMessage] = []
        source = CommandSource.for_inbound(msg, outs.append)
        try:
            status = self.dispatcher.execute(line, source)
        except CommandSyntaxError as e:
            self.log.debug("Syntax error in %r: %s", line, e.message)
            source.reply(syntax_error_reply(e, line))
            return outs
        if status == ReturnCode.NOT_FOUND:
            self.log.debug("Ignoring unknown command %r from %s", line, msg.address.chat_key())
        return outs
