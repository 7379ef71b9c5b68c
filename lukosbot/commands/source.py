"""Capability handle given to command actions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..message.inbound import Chat, InboundMessage, MessageMeta, Sender, primary_text
from ..message.outbound import Attachment, OutboundMessage, OutFile, OutImage, OutText

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from ..message.address import Address
    from ..message.inbound import InPart
    from ..message.media import MediaRef
    from ..message.outbound import OutPart

    MessageSink = Callable[[OutboundMessage], None]

__all__ = ["CommandSource"]


class CommandSource:
    """Who issued a command, and how to answer.

    Every outgoing message goes to `sink`. Platform specific sending happens
    behind the sink, so actions never touch a platform SDK.
    """

    def __init__(self, address: Address, inbound: InboundMessage | None, sink: MessageSink) -> None:
        self._address = address
        self._inbound = inbound
        self._sink = sink

    @classmethod
    def for_inbound(cls, msg: InboundMessage, sink: MessageSink) -> CommandSource:
        """Source replying to the chat `msg` came from."""
        return cls(msg.address, msg, sink)

    @classmethod
    def for_address(cls, address: Address, sink: MessageSink) -> CommandSource:
        """Source with no inbound message, e.g. for scheduled jobs."""
        return cls(address, None, sink)

    @property
    def address(self) -> Address:
        return self._address

    @property
    def inbound(self) -> InboundMessage | None:
        return self._inbound

    @property
    def chat(self) -> Chat:
        if self._inbound is not None and self._inbound.chat is not None:
            return self._inbound.chat
        return Chat(self._address)

    @property
    def meta(self) -> MessageMeta:
        return self._inbound.meta if self._inbound is not None else MessageMeta()

    @property
    def parts(self) -> tuple[InPart, ...]:
        return self._inbound.parts if self._inbound is not None else ()

    @property
    def sender(self) -> Sender:
        return self._inbound.sender if self._inbound is not None else Sender.unknown()

    @property
    def user_id_or_none(self) -> int | None:
        return self.sender.user_id

    @property
    def user_id(self) -> int:
        """Sender id, 0 when unknown."""
        user_id = self.sender.user_id
        return 0 if user_id is None else user_id

    @property
    def chat_id(self) -> int:
        return self._address.chat_id

    @property
    def is_group(self) -> bool:
        return self._address.group

    def primary_text(self) -> str:
        """Text used for command parsing, see `message.inbound.primary_text`."""
        return primary_text(self._inbound)

    def reply(self, message: str | OutboundMessage | None) -> None:
        """Send text or a full message to the current chat. None is ignored."""
        if message is None:
            return
        if isinstance(message, OutboundMessage):
            self._sink(message.to(self._address))
        else:
            self._sink(OutboundMessage.text(self._address, message))

    def reply_parts(self, parts: Iterable[OutPart]) -> None:
        """Send several parts as one message."""
        message = OutboundMessage(self._address, tuple(parts))
        if message.parts:
            self._sink(message)

    def reply_image(self, ref: MediaRef, caption: str | None = None) -> None:
        self._sink(OutboundMessage(self._address, (OutImage(ref, caption=caption),)))

    def reply_file(self, ref: MediaRef, name: str | None = None, caption: str | None = None) -> None:
        self._sink(OutboundMessage(self._address, (OutFile(ref, caption=caption, name=name),)))

    def send_image_png(self, filename: str, data: bytes, caption: str | None = None) -> None:
        """Send PNG bytes to the current chat."""
        self._sink(OutboundMessage(self._address, (Attachment.image_bytes(filename, data, caption=caption),)))

    def send(self, to: Address, message: str | OutboundMessage) -> None:
        """Send to another chat."""
        if isinstance(message, OutboundMessage):
            self._sink(message.to(to))
        else:
            self._sink(OutboundMessage(to, (OutText(message),)))

    def __repr__(self) -> str:
        return f"CommandSource({self._address.chat_key()}, user={self.user_id_or_none})"
