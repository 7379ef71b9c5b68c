"""Send a usage page as text or as an image."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from ..logging_setup import get_logger
from ..message.outbound import Attachment, OutboundMessage
from ..models import RenderError
from .usage_image import FontResolver, GlyphCoverageCache, ImageStyle, render_lines_png
from .usage_text import RenderOptions, RenderResult, render

if TYPE_CHECKING:
    from .source import CommandSource
    from .usage import UsageNode

__all__ = ["AUTO_IMAGE_MAX_CHARS", "AUTO_IMAGE_MAX_LINES", "UsageOutput", "UseMode", "parse_mode", "should_auto_use_image"]

AUTO_IMAGE_MAX_CHARS = 1400
AUTO_IMAGE_MAX_LINES = 32

IMAGE_WORDS = frozenset({"img", "image", "pic", "png"})
TEXT_WORDS = frozenset({"text", "txt", "raw"})


class UseMode(StrEnum):
    """How to deliver a usage page."""

    AUTO = "auto"
    TEXT = "text"
    IMAGE = "image"


def parse_mode(raw: str | None) -> UseMode:
    """Read a user supplied mode word; anything unknown means AUTO."""
    word = (raw or "").strip().lower()
    if word in IMAGE_WORDS:
        return UseMode.IMAGE
    if word in TEXT_WORDS:
        return UseMode.TEXT
    return UseMode.AUTO


def should_auto_use_image(result: RenderResult | None) -> bool:
    """True when a page is too long to read comfortably as a chat message."""
    if result is None:
        return False
    return len(result.markdown_text()) > AUTO_IMAGE_MAX_CHARS or result.line_count() > AUTO_IMAGE_MAX_LINES


class UsageOutput:
    """Delivers usage pages, keeping fonts and glyph coverage across renders.

    Args:
        prefix: Command prefix shown in invocations
        style: Image style
        images: Set to False to always answer with text
    """

    def __init__(self, prefix: str = "/", style: ImageStyle | None = None, images: bool = True) -> None:
        self.prefix = prefix.strip() if prefix and prefix.strip() else "/"
        self.style = style or ImageStyle()
        self.images = images
        self.cache = GlyphCoverageCache()
        self.resolver = FontResolver()
        self.log = get_logger("usage")

    def wants_image(self, result: RenderResult, mode: UseMode) -> bool:
        if not self.images:
            return False
        match mode:
            case UseMode.IMAGE:
                return True
            case UseMode.TEXT:
                return False
            case _:
                return should_auto_use_image(result)

    def send_usage(
        self,
        source: CommandSource,
        node: UsageNode,
        mode: UseMode = UseMode.AUTO,
        options: RenderOptions | None = None,
        title_name: str | None = None,
    ) -> None:
        """Render `node` and reply with text or a PNG image.

        When the image cannot be rendered, the text version is sent with a
        short notice instead.

        Args:
            source: Where to reply
            node: The usage tree
            mode: Text, image, or decided from the page size
            options: Render options, defaults to the help page layout
            title_name: Command name used in the caption and file name
        """
        options = options or RenderOptions.for_help(self.prefix)
        name = (title_name or "").strip() or node.name
        result = render(node, options)
        if not self.wants_image(result, UseMode(mode)):
            source.reply(result.markdown_text())
            return
        try:
            image = render_lines_png(f"usage-{name}", result.lines, self.style, self.cache, self.resolver)
        except (RenderError, OSError, ValueError) as e:
            self.log.warning("Failed to render usage image for %s: %s", name, e)
            source.reply(f"{result.markdown_text()}\n\n(Image rendering failed, showing text instead: {e})")
            return
        part = Attachment.image_bytes(image.filename, image.data, image.mime, caption=f"Usage: {self.prefix}{name}")
        source.reply(OutboundMessage(source.address, (part,)))
