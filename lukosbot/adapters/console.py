"""Terminal chat: stdin lines in, replies on stdout.

Images and files are written to a directory; the printed reply shows where.
"""

from __future__ import annotations

import asyncio
import itertools
import sys
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

import aiofiles
import aiofiles.os

from ..commands.usage_image import sanitize_filename_base
from ..logging_setup import get_logger
from ..message.address import Address, ChatPlatform
from ..message.inbound import InboundMessage, Sender
from ..message.media import BytesRef, PlatformFileRef, UrlRef
from ..message.outbound import OutFile, OutImage, OutText

if TYPE_CHECKING:
    from ..dispatch import MessageDispatcher
    from ..message.media import MediaRef
    from ..message.outbound import OutboundMessage

__all__ = ["CONSOLE_ADDRESS", "ConsoleAdapter", "ConsoleSender", "describe_ref", "open_stdin"]

CONSOLE_ADDRESS = Address(ChatPlatform.CONSOLE, 0)
CONSOLE_USER = Sender(user_id=0, username="console")


def describe_ref(ref: MediaRef) -> str:
    """Short text standing for media that is not stored locally."""
    match ref:
        case UrlRef(url=url):
            return url
        case PlatformFileRef(platform=platform, file_id=file_id):
            return f"{platform}:{file_id}"
        case BytesRef(name=name, data=data):
            return f"{name or 'data'} ({len(data)} bytes)"
        case _:
            return repr(ref)


def _split_name(name: str | None, default_ext: str) -> tuple[str, str]:
    path = Path(name or "")
    ext = path.suffix or default_ext
    return sanitize_filename_base(path.stem or "attachment"), ext


class ConsoleSender:
    """Prints messages and stores their attachments in `output_dir`.

    Args:
        output_dir: Where images and files are written
        stream: Text output, defaults to stdout
    """

    platform = ChatPlatform.CONSOLE

    def __init__(self, output_dir: Path, stream: TextIO | None = None) -> None:
        self.output_dir = Path(output_dir)
        self.stream = stream
        self.log = get_logger("console")
        self._counter = itertools.count(1)

    def _print(self, text: str) -> None:
        print(text, file=self.stream or sys.stdout, flush=True)

    async def save(self, ref: BytesRef, name: str | None, default_ext: str) -> Path:
        """Write in-memory media to a new file of the output directory."""
        await aiofiles.os.makedirs(self.output_dir, exist_ok=True)
        stem, ext = _split_name(name or ref.name, default_ext)
        path = self.output_dir / f"{next(self._counter):04d}-{stem}{ext}"
        async with aiofiles.open(path, "wb") as f:
            await f.write(ref.data)
        self.log.debug("Wrote %d bytes to %s", len(ref.data), path)
        return path

    async def send(self, message: OutboundMessage) -> None:
        for part in message.parts:
            match part:
                case OutText(text=text):
                    self._print(text)
                case OutImage(ref=BytesRef() as ref, caption=caption, name=name):
                    path = await self.save(ref, name, ".png")
                    self._print(f"[image: {path}]" + (f" {caption}" if caption else ""))
                case OutFile(ref=BytesRef() as ref, caption=caption, name=name):
                    path = await self.save(ref, name, ".bin")
                    self._print(f"[file: {path}]" + (f" {caption}" if caption else ""))
                case OutImage(ref=ref, caption=caption) | OutFile(ref=ref, caption=caption):
                    kind = "image" if isinstance(part, OutImage) else "file"
                    self._print(f"[{kind}: {describe_ref(ref)}]" + (f" {caption}" if caption else ""))


class ConsoleAdapter:
    """Feeds terminal lines to the bot, one CONSOLE message per line.

    Args:
        dispatcher: Receives the inbound messages
        address: Chat the lines come from
        sender: Author of the lines
    """

    def __init__(self, dispatcher: MessageDispatcher, address: Address = CONSOLE_ADDRESS, sender: Sender = CONSOLE_USER) -> None:
        self.dispatcher = dispatcher
        self.address = address
        self.sender = sender
        self.log = get_logger("console")

    def to_inbound(self, line: str) -> InboundMessage | None:
        """Wrap a line into a message; blank lines give None."""
        text = line.rstrip("\r\n")
        if not text.strip():
            return None
        return InboundMessage.text(self.address, text, self.sender)

    async def read_loop(self, reader: asyncio.StreamReader) -> int:
        """Read lines until end of input, then wait for every reply.

        Returns:
            Number of messages received
        """
        count = 0
        while True:
            try:
                data = await reader.readline()
            except (RuntimeError, ValueError):
                self.log.exception("Aborting console input")
                break
            if not data:
                break
            msg = self.to_inbound(data.decode(errors="replace"))
            if msg is None:
                continue
            self.dispatcher.receive(msg)
            count += 1
        await self.dispatcher.drain()
        return count


async def open_stdin() -> asyncio.StreamReader:
    """Return a stream reader over stdin."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    return reader
