"""Messages to send to a chat platform."""

from __future__ import annotations

from dataclasses import dataclass, field

from .address import Address
from .media import BytesRef, MediaRef, blank_to_none

__all__ = [
    "Attachment",
    "DeliveryHints",
    "OutFile",
    "OutImage",
    "OutPart",
    "OutText",
    "OutboundMessage",
]

PNG_MIME = "image/png"


@dataclass(frozen=True, slots=True)
class OutText:
    """Plain text to send."""

    text: str


@dataclass(frozen=True, slots=True)
class OutImage:
    """Image to send. Platforms supporting it show `caption` under the image."""

    ref: MediaRef
    caption: str | None = None
    name: str | None = None
    mime: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "caption", blank_to_none(self.caption))
        object.__setattr__(self, "name", blank_to_none(self.name))
        object.__setattr__(self, "mime", blank_to_none(self.mime))


@dataclass(frozen=True, slots=True)
class OutFile:
    """File to send."""

    ref: MediaRef
    caption: str | None = None
    name: str | None = None
    mime: str | None = None
    size: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "caption", blank_to_none(self.caption))
        object.__setattr__(self, "name", blank_to_none(self.name))
        object.__setattr__(self, "mime", blank_to_none(self.mime))


OutPart = OutText | OutImage | OutFile


@dataclass(frozen=True, slots=True)
class DeliveryHints:
    """Optional hints for platform senders planning the delivery."""

    preserve_order: bool = True
    prefer_single_message: bool = False
    prefer_caption: bool = True


class Attachment:
    """Shortcuts building attachment parts from in-memory bytes."""

    @staticmethod
    def image_bytes(name: str | None, data: bytes, mime: str | None = PNG_MIME, caption: str | None = None) -> OutImage:
        """Return an image part holding `data`."""
        return OutImage(BytesRef(data, name, mime), caption=caption, name=name, mime=mime)

    @staticmethod
    def file_bytes(name: str | None, data: bytes, mime: str | None = None, caption: str | None = None) -> OutFile:
        """Return a file part holding `data`."""
        return OutFile(BytesRef(data, name, mime), caption=caption, name=name, mime=mime, size=len(data))


@dataclass(frozen=True)
class OutboundMessage:
    """A message to send: an address and an ordered list of parts.

    An empty message is valid but senders should avoid producing one.
    """

    address: Address
    parts: tuple[OutPart, ...] = ()
    hints: DeliveryHints = field(default_factory=DeliveryHints)

    def __post_init__(self) -> None:
        object.__setattr__(self, "parts", tuple(self.parts))

    @classmethod
    def text(cls, address: Address, text: str) -> OutboundMessage:
        """Build a text message."""
        return cls(address, (OutText(text),))

    @classmethod
    def image_png(cls, address: Address, data: bytes, name: str | None = None, caption: str | None = None) -> OutboundMessage:
        """Build a message holding a single PNG image."""
        return cls(address, (Attachment.image_bytes(name, data, PNG_MIME, caption),))

    def with_part(self, part: OutPart) -> OutboundMessage:
        """Return a copy of this message with `part` appended."""
        return OutboundMessage(self.address, (*self.parts, part), self.hints)

    def to(self, address: Address) -> OutboundMessage:
        """Return the same content addressed to `address`."""
        return OutboundMessage(address, self.parts, self.hints)

    @property
    def is_empty(self) -> bool:
        """True if the message has no part worth sending."""
        return not any(not isinstance(p, OutText) or p.text.strip() for p in self.parts)

    def text_content(self) -> str:
        """Concatenate the text parts, one per line."""
        return "\n".join(p.text for p in self.parts if isinstance(p, OutText))
