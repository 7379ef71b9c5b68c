"""Render usage lines to a PNG image.

Lines are drawn with one font per line kind. Characters the primary font
cannot draw (typically CJK in a Latin font) are drawn with a fallback font,
so each line is split into runs of characters sharing a font. Whether a font
covers a character is asked once and remembered in a `GlyphCoverageCache`.
"""

from __future__ import annotations

import functools
import io
import re
import threading
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from PIL import Image, ImageDraw, ImageFont

from ..logging_setup import get_logger
from ..models import RenderError
from .usage_text import LineKind, RenderOptions, render

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .usage import UsageNode
    from .usage_text import RenderedLine

    GlyphProbe = Callable[[ImageFont.FreeTypeFont, str], bool]

__all__ = [
    "FontResolver",
    "FontSpec",
    "GlyphCoverageCache",
    "ImageStyle",
    "RenderedImage",
    "TextRun",
    "ellipsize",
    "measure_text",
    "render_lines_png",
    "render_usage_png",
    "sanitize_filename_base",
    "split_runs",
    "wrap_text",
]

PNG_MIME = "image/png"
DEFAULT_FILENAME_BASE = "usage"
MAX_FILENAME_BASE = 64
MIN_CONTENT_WIDTH = 100
MIN_HEIGHT = 120
BLANK_LINE_RATIO = 0.6
TAB = "    "
ELLIPSIS = "…"

_INVALID_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")
# Private use code point: never mapped by text fonts, so it draws the .notdef glyph
_NOTDEF_PROBE = "\U0010fffd"

SANS_FAMILIES = ("DejaVuSans.ttf", "LiberationSans-Regular.ttf", "Arial.ttf", "arial.ttf")
MONO_FAMILIES = ("DejaVuSansMono.ttf", "LiberationMono-Regular.ttf", "CascadiaCode.ttf", "consola.ttf")
CJK_FAMILIES = (
    "NotoSansCJK-Regular.ttc",
    "NotoSansSC-Regular.otf",
    "SourceHanSansSC-Regular.otf",
    "wqy-microhei.ttc",
    "msyh.ttc",
    "simsun.ttc",
)


@dataclass(frozen=True, slots=True)
class FontSpec:
    """Font wish list: font files (names or paths) tried in order, and a size.

    With `bold`, a bold variant of each file (``-Bold`` suffix) is tried first.
    """

    families: tuple[str, ...]
    size: int
    bold: bool = False

    def candidates(self) -> list[str]:
        """Font files to try, in order."""
        result: list[str] = []
        for family in self.families:
            if self.bold:
                result.append(_bold_variant(family))
            result.append(family)
        return result


def _bold_variant(family: str) -> str:
    if "-Regular" in family:
        return family.replace("-Regular", "-Bold")
    stem, dot, ext = family.rpartition(".")
    return f"{stem}-Bold.{ext}" if dot else f"{family}-Bold"


@dataclass(frozen=True)
class ImageStyle:
    """Canvas size, palette and fonts of usage images."""

    max_width: int = 900
    min_width: int = 420
    padding: int = 20
    line_spacing: float = 1.25
    background: tuple[int, int, int] = (255, 255, 255)
    foreground: tuple[int, int, int] = (0, 0, 0)
    title_font: FontSpec = field(default_factory=lambda: FontSpec(SANS_FAMILIES, 20, bold=True))
    heading_font: FontSpec = field(default_factory=lambda: FontSpec(SANS_FAMILIES, 16, bold=True))
    body_font: FontSpec = field(default_factory=lambda: FontSpec(SANS_FAMILIES, 14))
    code_font: FontSpec = field(default_factory=lambda: FontSpec(MONO_FAMILIES, 14))
    fallback_font: FontSpec = field(default_factory=lambda: FontSpec(CJK_FAMILIES, 14))

    def font_for(self, kind: LineKind) -> FontSpec:
        """Primary font spec of a line kind."""
        match kind:
            case LineKind.TITLE:
                return self.title_font
            case LineKind.HEADING:
                return self.heading_font
            case LineKind.CODE:
                return self.code_font
            case _:
                return self.body_font

    def fallback_for(self, kind: LineKind) -> FontSpec:
        """Fallback font spec of a line kind, sized like its primary font."""
        primary = self.font_for(kind)
        return replace(self.fallback_font, size=primary.size, bold=primary.bold)


class FontResolver:
    """Loads the first available font file of a `FontSpec`.

    When no candidate can be loaded, Pillow's bundled font is used at the
    requested size. Resolved fonts are kept for the resolver's lifetime.
    """

    def __init__(self) -> None:
        self.log = get_logger("fonts")
        self._lock = threading.Lock()
        self._fonts: dict[FontSpec, ImageFont.FreeTypeFont] = {}

    def resolve(self, spec: FontSpec) -> ImageFont.FreeTypeFont:
        with self._lock:
            font = self._fonts.get(spec)
            if font is None:
                font = self._load(spec)
                self._fonts[spec] = font
            return font

    def _load(self, spec: FontSpec) -> ImageFont.FreeTypeFont:
        for candidate in spec.candidates():
            try:
                return ImageFont.truetype(candidate, spec.size)
            except OSError:
                continue
        self.log.debug("None of %s found, using the bundled font", ", ".join(spec.families))
        font = ImageFont.load_default(size=spec.size)
        if not isinstance(font, ImageFont.FreeTypeFont):
            raise RenderError("Pillow was built without FreeType support")
        return font


def font_key(font: ImageFont.FreeTypeFont) -> tuple[str, str, int]:
    """Identity of a font for coverage lookups: (family, style, size)."""
    family, style = font.getname()
    return (family or "", style or "", int(font.size))


def _bitmap(font: ImageFont.FreeTypeFont, text: str) -> bytes:
    side = max(1, int(font.size)) * 2
    canvas = Image.new("L", (side, side), 0)
    ImageDraw.Draw(canvas).text((0, 0), text, font=font, fill=255)
    return canvas.tobytes()


@functools.lru_cache(maxsize=64)
def _notdef_bitmap(font: ImageFont.FreeTypeFont) -> bytes:
    return _bitmap(font, _NOTDEF_PROBE)


def pillow_glyph_probe(font: ImageFont.FreeTypeFont, char: str) -> bool:
    """Tell whether `font` has a glyph for `char`.

    Pillow has no direct coverage query. A character is considered missing
    when it draws nothing, or the same pixels as the .notdef glyph.
    """
    if char.isspace():
        return True
    drawn = _bitmap(font, char)
    if not any(drawn):
        return False
    return drawn != _notdef_bitmap(font)


class GlyphCoverageCache:
    """Remembers which characters each font can draw.

    Keyed by (family, style, size) then character. Entries are only ever
    added, and a lock makes it safe to share between threads.
    """

    def __init__(self, probe: GlyphProbe = pillow_glyph_probe) -> None:
        self._probe = probe
        self._lock = threading.Lock()
        self._coverage: dict[tuple[str, str, int], dict[str, bool]] = {}

    def can_draw(self, font: ImageFont.FreeTypeFont | None, char: str) -> bool:
        if font is None:
            return False
        key = font_key(font)
        with self._lock:
            known = self._coverage.setdefault(key, {})
            if char in known:
                return known[char]
        result = bool(self._probe(font, char))
        with self._lock:
            return self._coverage[key].setdefault(char, result)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(chars) for chars in self._coverage.values())


@dataclass(frozen=True, slots=True)
class TextRun:
    """Consecutive characters drawn with the same font."""

    text: str
    font: ImageFont.FreeTypeFont


def _choose_font(char: str, primary: ImageFont.FreeTypeFont, fallback: ImageFont.FreeTypeFont, cache: GlyphCoverageCache) -> ImageFont.FreeTypeFont:
    if cache.can_draw(primary, char):
        return primary
    if cache.can_draw(fallback, char):
        return fallback
    return primary


def split_runs(
    text: str,
    primary: ImageFont.FreeTypeFont,
    fallback: ImageFont.FreeTypeFont,
    cache: GlyphCoverageCache,
) -> list[TextRun]:
    """Split `text` into maximal runs sharing a font.

    Each character uses the primary font when it can draw it, else the
    fallback, else the primary anyway.
    """
    runs: list[TextRun] = []
    buffer: list[str] = []
    current: ImageFont.FreeTypeFont | None = None
    for char in text:
        chosen = _choose_font(char, primary, fallback, cache)
        if current is None:
            current = chosen
        elif chosen is not current and font_key(chosen) != font_key(current):
            runs.append(TextRun("".join(buffer), current))
            buffer.clear()
            current = chosen
        buffer.append(char)
    if buffer and current is not None:
        runs.append(TextRun("".join(buffer), current))
    return runs


def measure_text(
    text: str,
    primary: ImageFont.FreeTypeFont,
    fallback: ImageFont.FreeTypeFont,
    cache: GlyphCoverageCache,
) -> int:
    """Width in pixels of `text` drawn run by run."""
    return sum(round(run.font.getlength(run.text)) for run in split_runs(text, primary, fallback, cache))


def wrap_text(
    text: str,
    primary: ImageFont.FreeTypeFont,
    fallback: ImageFont.FreeTypeFont,
    cache: GlyphCoverageCache,
    max_width: int,
) -> list[str]:
    """Hard-wrap `text` to `max_width` pixels.

    Breaks after the last character that fits, regardless of words. Tabs
    become four spaces, newlines always break, and a space falling on a
    wrap point is dropped.
    """
    text = text.replace("\t", TAB)
    if not text:
        return [""]
    if "\n" not in text and measure_text(text, primary, fallback, cache) <= max_width:
        return [text]
    out: list[str] = []
    line = ""
    for char in text:
        if char == "\n":
            out.append(line)
            line = ""
            continue
        candidate = line + char
        if measure_text(candidate, primary, fallback, cache) > max_width:
            if line:
                out.append(line)
            line = "" if char == " " else char
        else:
            line = candidate
    if line:
        out.append(line)
    return out


def ellipsize(
    text: str,
    max_width: int,
    primary: ImageFont.FreeTypeFont,
    fallback: ImageFont.FreeTypeFont,
    cache: GlyphCoverageCache,
) -> str:
    """Cut `text` so that it fits `max_width` pixels, ending with an ellipsis."""
    if measure_text(text, primary, fallback, cache) <= max_width:
        return text
    low, high = 0, len(text)
    while low < high:
        mid = (low + high) // 2
        if measure_text(text[:mid] + ELLIPSIS, primary, fallback, cache) <= max_width:
            low = mid + 1
        else:
            high = mid
    return text[: max(0, low - 1)] + ELLIPSIS


def sanitize_filename_base(base: str | None) -> str:
    """Make `base` safe as a file name (without extension).

    Characters outside ``[A-Za-z0-9._-]`` become ``_`` and the result is cut
    to 64 characters. Returns "usage" when nothing usable is left.
    """
    text = (base or "").strip()
    if not text or not _INVALID_FILENAME_CHARS.sub("", text):
        return DEFAULT_FILENAME_BASE
    return _INVALID_FILENAME_CHARS.sub("_", text)[:MAX_FILENAME_BASE]


def font_ascent(font: ImageFont.FreeTypeFont) -> int:
    return font.getmetrics()[0]


def font_height(font: ImageFont.FreeTypeFont) -> int:
    ascent, descent = font.getmetrics()
    return ascent + descent


@dataclass(frozen=True)
class RenderedImage:
    """An encoded image, ready to attach to a message."""

    filename: str
    data: bytes
    mime: str = PNG_MIME


@dataclass(slots=True)
class _DrawLine:
    height: int
    text: str = ""
    font: ImageFont.FreeTypeFont | None = None
    fallback: ImageFont.FreeTypeFont | None = None


def render_lines_png(
    filename_base: str | None,
    lines: Iterable[RenderedLine] | None,
    style: ImageStyle | None = None,
    cache: GlyphCoverageCache | None = None,
    resolver: FontResolver | None = None,
) -> RenderedImage:
    """Lay out and paint `lines`, then encode them as PNG.

    Args:
        filename_base: Name of the image, sanitized, without extension
        lines: Lines to draw (plain flavour is used)
        style: Canvas and fonts, defaults to `ImageStyle()`
        cache: Glyph coverage cache to share between renders
        resolver: Font resolver to share between renders

    Raises:
        RenderError: when the image cannot be encoded
    """
    style = style or ImageStyle()
    if cache is None:
        cache = GlyphCoverageCache()
    if resolver is None:
        resolver = FontResolver()
    filename = f"{sanitize_filename_base(filename_base)}.png"

    content_width = max(MIN_CONTENT_WIDTH, style.max_width - style.padding * 2)
    body_height = font_height(resolver.resolve(style.body_font))

    draw_lines: list[_DrawLine] = []
    max_line_width = 0
    total_height = style.padding * 2
    for line in lines or ():
        if line.kind == LineKind.BLANK or not line.plain.strip():
            height = round(body_height * style.line_spacing * BLANK_LINE_RATIO)
            draw_lines.append(_DrawLine(height))
            total_height += height
            continue
        primary = resolver.resolve(style.font_for(line.kind))
        fallback = resolver.resolve(style.fallback_for(line.kind))
        height = round(font_height(primary) * style.line_spacing)
        for part in wrap_text(line.plain, primary, fallback, cache, content_width):
            max_line_width = max(max_line_width, measure_text(part, primary, fallback, cache))
            draw_lines.append(_DrawLine(height, part, primary, fallback))
            total_height += height

    width = min(style.max_width, max(style.min_width, max_line_width + style.padding * 2))
    height = max(MIN_HEIGHT, total_height)

    image = Image.new("RGB", (width, height), style.background)
    draw = ImageDraw.Draw(image)
    y = style.padding
    for draw_line in draw_lines:
        if draw_line.font is None or draw_line.fallback is None:
            y += draw_line.height
            continue
        ascent = font_ascent(draw_line.font)
        baseline = y + ascent
        x = style.padding
        for run in split_runs(draw_line.text, draw_line.font, draw_line.fallback, cache):
            draw.text((x, baseline), run.text, font=run.font, fill=style.foreground, anchor="ls")
            x += round(run.font.getlength(run.text))
        y = baseline + (draw_line.height - ascent)

    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG")
    except (OSError, ValueError) as e:
        raise RenderError(f"Render usage PNG failed: {e}") from e
    return RenderedImage(filename, buffer.getvalue(), PNG_MIME)


def render_usage_png(
    filename_base: str | None,
    node: UsageNode,
    options: RenderOptions | None = None,
    style: ImageStyle | None = None,
    cache: GlyphCoverageCache | None = None,
    resolver: FontResolver | None = None,
) -> RenderedImage:
    """Render a usage tree straight to PNG."""
    result = render(node, options or RenderOptions.for_help())
    return render_lines_png(filename_base, result.lines, style, cache, resolver)
