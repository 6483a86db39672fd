"""
Module: poller.py
Description: Receive/dispatch/acknowledge loop on top of a Backend.

Backends never retry. The poller is the caller that owns the retry
policy: transport errors from recv() and delete() are retried with
exponential backoff before they are allowed to stop the loop.

Key Components:
- Poller: One queue, one task, recv -> handler -> delete
- run_pollers(): One Poller task per backend queue
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from botocore.exceptions import BotoCoreError, ClientError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from signal_queue.backends.base import Backend
from signal_queue.exceptions import PartialBatchError
from signal_queue.models.message import ReceivedMessage
from signal_queue.utils.logger import get_logger

logger = get_logger(__name__)

Handler = Callable[[str, List[ReceivedMessage]], Awaitable[None]]

TRANSPORT_ERRORS = (ClientError, BotoCoreError)


class Poller:
    """
    Polls one queue and dispatches each received batch to a handler.

    A batch is deleted only after the handler returns. If the handler
    raises, the batch is left on the queue for redelivery.

    Attributes:
        backend: Backend to poll
        queue: Queue reference from backend.queues()
        handler: Coroutine called with (queue, messages)
    """

    def __init__(
        self,
        backend: Backend,
        queue: str,
        handler: Handler,
        max_attempts: int = 5,
        min_wait: float = 1,
        max_wait: float = 30
    ):
        """
        Initialize poller.

        Args:
            backend: Backend to poll
            queue: Queue reference from backend.queues()
            handler: Coroutine called with (queue, messages)
            max_attempts: Attempts per recv/delete before the error propagates
            min_wait: Minimum backoff between attempts in seconds
            max_wait: Maximum backoff between attempts in seconds
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.backend = backend
        self.queue = queue
        self.handler = handler
        self._retry = retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
            retry=retry_if_exception_type(TRANSPORT_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True
        )

    async def poll_once(self) -> int:
        """
        Receive one batch, dispatch it and delete it.

        Returns:
            Number of messages acknowledged

        Raises:
            ClientError, BotoCoreError: If recv/delete keep failing after retries
        """
        messages = await self._retry(self.backend.recv)(self.queue)

        try:
            await self.handler(self.queue, messages)
        except Exception as e:
            logger.error(
                "Signal handler failed, leaving messages for redelivery",
                queue=self.queue,
                count=len(messages),
                error=str(e),
                error_type=type(e).__name__
            )
            return 0

        try:
            await self._retry(self.backend.delete)(self.queue, messages)
        except PartialBatchError as e:
            logger.warning(
                "Some messages were not deleted and will be redelivered",
                queue=self.queue,
                failed=len(e.failed),
                deleted=len(e.successful)
            )
            return len(e.successful)

        return len(messages)

    async def run(self) -> None:
        """Poll until cancelled or until a transport error outlasts the retries."""
        logger.info("Poller started", queue=self.queue)
        try:
            while True:
                await self.poll_once()
        finally:
            logger.info("Poller stopped", queue=self.queue)


async def run_pollers(
    backend: Backend,
    handler: Handler,
    queues: Optional[List[str]] = None,
    **poller_options
) -> None:
    """
    Run one Poller task per queue until one of them fails or all are cancelled.

    Args:
        backend: Backend to poll
        handler: Coroutine called with (queue, messages)
        queues: Queues to poll, defaults to backend.queues()
        **poller_options: Passed to Poller (max_attempts, min_wait, max_wait)
    """
    await backend.init()

    tasks = [
        asyncio.create_task(Poller(backend, queue, handler, **poller_options).run(), name=f"poller:{queue}")
        for queue in (queues or backend.queues())
    ]

    try:
        await asyncio.gather(*tasks)
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
