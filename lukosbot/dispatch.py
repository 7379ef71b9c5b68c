"""Per-chat message lanes.

Each conversation gets its own queue and worker task, so messages of one
chat are handled in arrival order while different chats progress
concurrently. Command processing is synchronous and runs in a thread to keep
the event loop responsive.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from .constants import LANE_IDLE_TIMEOUT
from .logging_setup import get_logger

if TYPE_CHECKING:
    from .message.inbound import InboundMessage
    from .processor import CommandProcessor
    from .senders import SenderHub

__all__ = ["MessageDispatcher"]


class MessageDispatcher:
    """Feeds inbound messages to the processor and sends the replies.

    Args:
        processor: Turns a message into replies
        hub: Delivers the replies
        idle_timeout: Seconds before an idle lane is dropped
    """

    def __init__(self, processor: CommandProcessor, hub: SenderHub, idle_timeout: float = LANE_IDLE_TIMEOUT) -> None:
        self.processor = processor
        self.hub = hub
        self.idle_timeout = idle_timeout
        self.log = get_logger("dispatch")
        self._queues: dict[str, asyncio.Queue[InboundMessage]] = {}
        self._workers: dict[str, asyncio.Task] = {}
        self._pending = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def lanes(self) -> list[str]:
        """Keys of the chats currently having a lane."""
        return list(self._queues)

    def receive(self, msg: InboundMessage | None) -> None:
        """Queue `msg` on the lane of its chat. Must be called from the event loop."""
        if msg is None:
            return
        key = msg.address.chat_key()
        queue = self._queues.get(key)
        if queue is None:
            queue = asyncio.Queue()
            self._queues[key] = queue
            self._workers[key] = asyncio.create_task(self._lane_loop(key, queue), name=f"lane-{key}")
        self._pending += 1
        self._idle.clear()
        queue.put_nowait(msg)

    async def handle(self, msg: InboundMessage) -> None:
        """Process one message and send what it produced."""
        try:
            outs = await asyncio.to_thread(self.processor.handle, msg)
        except Exception:  # pylint: disable=W0718
            self.log.exception("Processing failed for message from %s", msg.address.chat_key())
            return
        if outs:
            await self.hub.send_batch(outs)

    async def _lane_loop(self, key: str, queue: asyncio.Queue[InboundMessage]) -> None:
        try:
            while True:
                try:
                    msg = await asyncio.wait_for(queue.get(), timeout=self.idle_timeout)
                except TimeoutError:
                    if queue.empty():
                        self.log.debug("Closing idle lane %s", key)
                        return
                    continue
                try:
                    await self.handle(msg)
                finally:
                    queue.task_done()
                    self._done()
        finally:
            if self._queues.get(key) is queue:
                del self._queues[key]
                self._workers.pop(key, None)

    async def drain(self) -> None:
        """Wait until every queued message has been handled, including messages queued meanwhile."""
        while self._pending:
            await self._idle.wait()

    def _done(self) -> None:
        self._pending -= 1
        if self._pending <= 0:
            self._pending = 0
            self._idle.set()

    async def stop(self) -> None:
        """Cancel every lane; queued messages are discarded."""
        workers = list(self._workers.values())
        for worker in workers:
            worker.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        self._queues.clear()
        self._workers.clear()
        self._pending = 0
        self._idle.set()
