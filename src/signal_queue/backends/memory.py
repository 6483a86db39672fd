"""
Module: memory.py
Description: In-process backend for tests and local development.

Implements the Backend contract with asyncio queues. Delayed messages
are scheduled on the running event loop. Nothing survives the process.
"""

import asyncio
from typing import Dict, List, Sequence
from uuid import uuid4

from signal_queue.backends.base import Payload
from signal_queue.config.settings import Settings
from signal_queue.models.message import ReceivedMessage
from signal_queue.utils.batch_helpers import MAX_BATCH_SIZE, to_body
from signal_queue.utils.logger import get_logger

logger = get_logger(__name__)

MESSAGE_QUEUE = "memory://messages"
DELAY_QUEUE = "memory://delay"

# Same upper bound SQS enforces on DelaySeconds
MAX_DELAY_SECONDS = 900


class MemoryBackend:
    """
    Backend that keeps messages in asyncio queues.

    Each recv() hands out fresh receipt handles; delete() forgets the
    matching in-flight deliveries and ignores handles it does not know.
    Unacknowledged messages are not redelivered.

    Example:
        >>> backend = MemoryBackend(settings)
        >>> await backend.send(["signal-1"])
        >>> messages = await backend.recv("memory://messages")
        >>> await backend.delete("memory://messages", messages)
    """

    def __init__(self, settings: Settings):
        """
        Initialize memory backend.

        Args:
            settings: Backend settings; queue names are fixed and not read from it
        """
        self.settings = settings
        self._queues: Dict[str, asyncio.Queue] = {}
        self._in_flight: Dict[str, Dict[str, ReceivedMessage]] = {}

    async def init(self) -> None:
        """Create the message and delay queues. Calling init() again does nothing."""
        if self._queues:
            return

        for queue in self.queues():
            self._queues[queue] = asyncio.Queue()
            self._in_flight[queue] = {}

        logger.info(
            "Memory backend initialized",
            message_queue=MESSAGE_QUEUE,
            delay_queue=DELAY_QUEUE
        )

    def queues(self) -> List[str]:
        """Return ["memory://messages", "memory://delay"]."""
        return [MESSAGE_QUEUE, DELAY_QUEUE]

    def _queue(self, queue: str) -> asyncio.Queue:
        try:
            return self._queues[queue]
        except KeyError:
            raise ValueError(f"queue is not managed by this backend: {queue}") from None

    def pending(self, queue: str) -> int:
        """Number of messages waiting to be received on queue."""
        return self._queue(queue).qsize()

    def in_flight(self, queue: str) -> int:
        """Number of received messages not yet deleted on queue."""
        self._queue(queue)
        return len(self._in_flight[queue])

    async def send(self, messages: Sequence[Payload]) -> None:
        """
        Append messages to the message queue in order.

        Args:
            messages: Payloads to enqueue, in delivery order

        Raises:
            ValueError: If a payload is empty or not str/bytes
        """
        bodies = [to_body(message) for message in messages]
        if not bodies:
            return

        await self.init()
        queue = self._queue(MESSAGE_QUEUE)
        for body in bodies:
            queue.put_nowait(body)

        logger.debug("Messages sent to memory queue", queue=MESSAGE_QUEUE, messages=bodies)

    async def send_after(self, message: Payload, delay_seconds: int) -> None:
        """
        Put one message on the delay queue after delay_seconds.

        Args:
            message: Payload to enqueue
            delay_seconds: Seconds before the message becomes visible, 0 to 900

        Raises:
            ValueError: If the payload is invalid or the delay is out of range
        """
        body = to_body(message)
        if isinstance(delay_seconds, bool) or not isinstance(delay_seconds, int):
            raise ValueError("delay_seconds must be a non-negative integer")
        if not 0 <= delay_seconds <= MAX_DELAY_SECONDS:
            raise ValueError(f"delay_seconds must be between 0 and {MAX_DELAY_SECONDS}")

        await self.init()
        queue = self._queue(DELAY_QUEUE)
        if delay_seconds == 0:
            queue.put_nowait(body)
        else:
            asyncio.get_running_loop().call_later(delay_seconds, queue.put_nowait, body)

        logger.debug(
            "Delayed message scheduled on memory queue",
            queue=DELAY_QUEUE,
            message=body,
            delay_seconds=delay_seconds
        )

    async def recv(self, queue: str) -> List[ReceivedMessage]:
        """
        Wait for at least one message and return up to 10.

        Args:
            queue: Queue from queues()

        Returns:
            Non-empty list of messages in the order they were sent

        Raises:
            ValueError: If queue is not managed by this backend
        """
        await self.init()
        pending = self._queue(queue)

        bodies = [await pending.get()]
        while len(bodies) < MAX_BATCH_SIZE:
            try:
                bodies.append(pending.get_nowait())
            except asyncio.QueueEmpty:
                break

        received = [
            ReceivedMessage(message_id=uuid4().hex, receipt_handle=uuid4().hex, body=body)
            for body in bodies
        ]
        for message in received:
            self._in_flight[queue][message.receipt_handle] = message

        logger.debug("Messages received from memory queue", queue=queue, count=len(received))
        return received

    async def delete(self, queue: str, messages: Sequence[ReceivedMessage]) -> None:
        """
        Forget in-flight deliveries. Unknown or stale receipt handles are ignored.

        Args:
            queue: Queue the messages were received from
            messages: Messages exactly as returned by recv()

        Raises:
            ValueError: If queue is not managed by this backend
        """
        await self.init()
        self._queue(queue)

        in_flight = self._in_flight[queue]
        handles = [message.receipt_handle for message in messages]
        for handle in handles:
            in_flight.pop(handle, None)

        logger.debug("Messages deleted from memory queue", queue=queue, receipt_handles=handles)
