"""Chat platform and conversation address."""

from dataclasses import dataclass
from enum import StrEnum

__all__ = ["Address", "ChatPlatform"]


class ChatPlatform(StrEnum):
    """Supported chat backends."""

    TELEGRAM = "telegram"
    ONEBOT = "onebot"  # QQ-compatible protocol
    DISCORD = "discord"
    CONSOLE = "console"


@dataclass(frozen=True, slots=True)
class Address:
    """Where a message comes from or goes to.

    Attributes:
        platform: The chat backend
        chat_id: Group/channel id or user id for private chats
        group: True for group chats, False for private conversations
    """

    platform: ChatPlatform
    chat_id: int
    group: bool = False

    def chat_key(self) -> str:
        """Return a stable key identifying the conversation, e.g. ``telegram:g:42``."""
        return f"{self.platform.value}:{'g' if self.group else 'p'}:{self.chat_id}"
