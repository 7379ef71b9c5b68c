"""Route outbound messages to the sender of their platform."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from .logging_setup import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .message.address import ChatPlatform
    from .message.outbound import OutboundMessage

__all__ = ["MessageSender", "SenderHub"]


class MessageSender(Protocol):
    """Delivers messages to one chat platform."""

    platform: ChatPlatform

    async def send(self, message: OutboundMessage) -> None:
        """Deliver `message`."""


class SenderHub:
    """One sender per platform."""

    def __init__(self) -> None:
        self._senders: dict[ChatPlatform, MessageSender] = {}
        self.log = get_logger("senders")

    def register(self, sender: MessageSender) -> None:
        if sender.platform in self._senders:
            self.log.warning("Replacing sender for %s", sender.platform)
        self._senders[sender.platform] = sender

    def unregister(self, platform: ChatPlatform) -> None:
        self._senders.pop(platform, None)

    def get(self, platform: ChatPlatform) -> MessageSender | None:
        return self._senders.get(platform)

    async def send(self, message: OutboundMessage) -> bool:
        """Send one message. Returns False if it was dropped or delivery failed."""
        if message.is_empty:
            self.log.debug("Dropping empty message to %s", message.address.chat_key())
            return False
        sender = self._senders.get(message.address.platform)
        if sender is None:
            self.log.warning("No sender for platform %s, dropping message to %s", message.address.platform, message.address.chat_key())
            return False
        try:
            await sender.send(message)
        except Exception:  # pylint: disable=W0718
            self.log.exception("Failed to send message to %s", message.address.chat_key())
            return False
        return True

    async def send_batch(self, messages: Iterable[OutboundMessage]) -> int:
        """Send messages in order. Returns how many were delivered."""
        delivered = 0
        for message in messages:
            if await self.send(message):
                delivered += 1
        return delivered
