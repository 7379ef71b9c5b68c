"""Messages received from a chat platform."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .address import Address
from .media import MediaRef, blank_to_none

__all__ = [
    "Chat",
    "InFile",
    "InImage",
    "InPart",
    "InText",
    "InboundMessage",
    "MessageMeta",
    "Sender",
    "all_text",
    "primary_text",
]


@dataclass(frozen=True, slots=True)
class Sender:
    """Author of an inbound message.

    `user_id` is None for system messages or when the platform hides it.
    """

    user_id: int | None = None
    username: str | None = None
    display_name: str | None = None
    bot: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "username", blank_to_none(self.username))
        object.__setattr__(self, "display_name", blank_to_none(self.display_name))

    @classmethod
    def unknown(cls) -> Sender:
        """Return a sender with no information."""
        return cls()

    @property
    def label(self) -> str:
        """Best human-readable name for the sender."""
        if self.display_name:
            return self.display_name
        if self.username:
            return self.username
        return str(self.user_id) if self.user_id is not None else "unknown"


@dataclass(frozen=True, slots=True)
class Chat:
    """Conversation an inbound message belongs to."""

    address: Address
    title: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "title", blank_to_none(self.title))


@dataclass(frozen=True, slots=True)
class MessageMeta:
    """Optional platform metadata; every field may be missing."""

    message_id: str | None = None
    timestamp_ms: int | None = None
    reply_to_message_id: str | None = None
    raw_type: str | None = None


@dataclass(frozen=True, slots=True)
class InText:
    """Plain text segment."""

    text: str


@dataclass(frozen=True, slots=True)
class InImage:
    """Image segment."""

    ref: MediaRef
    caption: str | None = None
    name: str | None = None
    mime: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "caption", blank_to_none(self.caption))
        object.__setattr__(self, "name", blank_to_none(self.name))
        object.__setattr__(self, "mime", blank_to_none(self.mime))


@dataclass(frozen=True, slots=True)
class InFile:
    """File segment, `size` in bytes when known."""

    ref: MediaRef
    name: str | None = None
    mime: str | None = None
    size: int | None = None
    caption: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", blank_to_none(self.name))
        object.__setattr__(self, "mime", blank_to_none(self.mime))
        object.__setattr__(self, "caption", blank_to_none(self.caption))


InPart = InText | InImage | InFile


@dataclass(frozen=True)
class InboundMessage:
    """A message received from a platform, as an ordered list of parts."""

    address: Address
    parts: tuple[InPart, ...] = ()
    sender: Sender = field(default_factory=Sender.unknown)
    chat: Chat | None = None
    meta: MessageMeta = field(default_factory=MessageMeta)
    ext: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "parts", tuple(self.parts))
        if self.chat is None:
            object.__setattr__(self, "chat", Chat(self.address))

    @classmethod
    def text(cls, address: Address, text: str, sender: Sender | None = None) -> InboundMessage:
        """Build a text-only inbound message."""
        return cls(address, (InText(text),), sender=sender or Sender.unknown())


def primary_text(msg: InboundMessage | None) -> str:
    """Extract the text used for command parsing.

    Order of preference: first non-blank text part, then the first non-blank
    image caption, then the first non-blank file caption.
    """
    if msg is None or not msg.parts:
        return ""
    for part in msg.parts:
        if isinstance(part, InText) and part.text and part.text.strip():
            return part.text.strip()
    for wanted in (InImage, InFile):
        for part in msg.parts:
            if isinstance(part, wanted) and part.caption:
                return part.caption.strip()
    return ""


def all_text(msg: InboundMessage | None) -> str:
    """Return every visible text (texts and captions), one per line."""
    if msg is None:
        return ""
    lines: list[str] = []
    for part in msg.parts:
        match part:
            case InText(text=text):
                value = text
            case InImage(caption=caption) | InFile(caption=caption):
                value = caption
            case _:
                value = None
        if value and value.strip():
            lines.append(value.strip())
    return "\n".join(lines)
