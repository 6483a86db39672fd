"""
Module: sqs.py
Description: Amazon SQS backend.

Maps the Backend contract onto SQS: immediate sends go to a FIFO queue
with one constant message group and a fresh deduplication id per
message, delayed sends go to a standard queue with DelaySeconds, recv()
long-polls until messages arrive, and delete() acknowledges in batches.

Transport errors are logged and re-raised unchanged. Nothing here
retries; that policy belongs to the caller (see signal_queue.poller).

Key Components:
- SQSBackend: The adapter
- ConnectionNotice: Dropped-connection notice recorded by botocore hooks

Dependencies: aioboto3, botocore, asyncio
"""

import asyncio
from dataclasses import dataclass
from functools import partial
from typing import Any, Dict, List, Optional, Sequence

from aioboto3 import Session
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from signal_queue.backends.base import Payload
from signal_queue.config.settings import Settings, is_queue_url
from signal_queue.exceptions import BackendNotInitializedError, PartialBatchError
from signal_queue.models.message import ReceivedMessage
from signal_queue.utils.batch_helpers import (
    MAX_BATCH_SIZE,
    build_delete_entries,
    build_send_entries,
    chunk_list,
    new_dedup_id,
    to_body,
)
from signal_queue.utils.logger import get_logger

logger = get_logger(__name__)

# Errors botocore reports when a pooled connection was dropped under it
DISCONNECT_ERRORS = (ConnectionClosedError, EndpointConnectionError, ReadTimeoutError)

MAX_PENDING_NOTICES = 100


@dataclass(frozen=True)
class ConnectionNotice:
    """A dropped connection observed while talking to a queue."""

    queue: str
    error: str
    attempts: Optional[int] = None


class SQSBackend:
    """
    SQS implementation of the Backend contract.

    Queue URLs are resolved once by init() and are immutable afterwards.
    A client is opened per operation, so the backend holds no connection
    state and can be shared by any number of tasks.

    Attributes:
        settings: Backend settings
        session: aioboto3 session used to open SQS clients
        client_config: botocore client configuration

    Example:
        >>> backend = SQSBackend(settings)
        >>> await backend.init()
        >>> await backend.send(["signal-1", "signal-2"])
        >>> messages = await backend.recv(backend.queues()[0])
        >>> await backend.delete(backend.queues()[0], messages)
    """

    def __init__(self, settings: Settings, session: Optional[Session] = None):
        """
        Initialize SQS backend.

        Args:
            settings: Backend settings (queues, region, polling)
            session: Optional aioboto3 session, a new one is created if omitted
        """
        self.settings = settings
        self.session = session or Session()
        self.client_config = Config(
            region_name=settings.aws_region,
            connect_timeout=settings.connect_timeout,
            read_timeout=settings.read_timeout,
            retries={'max_attempts': settings.max_attempts, 'mode': 'standard'},
        )

        self._message_queue: Optional[str] = None
        self._delay_queue: Optional[str] = None
        self._notices: Dict[str, asyncio.Queue] = {}

    def _client(self):
        return self.session.client(
            'sqs',
            region_name=self.settings.aws_region,
            endpoint_url=self.settings.endpoint_url,
            config=self.client_config,
        )

    async def init(self) -> None:
        """
        Resolve the message and delay queue URLs.

        Configured URLs are used verbatim; names are resolved with
        GetQueueUrl. Calling init() again after success does nothing.

        Raises:
            ClientError: If a queue name cannot be resolved
        """
        if self._message_queue is not None and self._delay_queue is not None:
            return

        message_queue = self.settings.message_queue
        delay_queue = self.settings.delay_queue

        if not (is_queue_url(message_queue) and is_queue_url(delay_queue)):
            try:
                async with self._client() as sqs:
                    message_queue = await self._resolve(sqs, message_queue)
                    delay_queue = await self._resolve(sqs, delay_queue)
            except (ClientError, BotoCoreError) as e:
                _log_transport_error(
                    "Failed to resolve SQS queue URLs",
                    e,
                    message_queue=self.settings.message_queue,
                    delay_queue=self.settings.delay_queue,
                )
                raise

        self._message_queue = message_queue
        self._delay_queue = delay_queue

        logger.info(
            "SQS backend initialized",
            message_queue=message_queue,
            delay_queue=delay_queue,
            region=self.settings.aws_region
        )

    @staticmethod
    async def _resolve(sqs, queue: str) -> str:
        if is_queue_url(queue):
            return queue
        response = await sqs.get_queue_url(QueueName=queue)
        return response['QueueUrl']

    def queues(self) -> List[str]:
        """
        Return [message queue URL, delay queue URL].

        Raises:
            BackendNotInitializedError: If init() has not completed
        """
        if self._message_queue is None or self._delay_queue is None:
            raise BackendNotInitializedError("SQS backend queues are not resolved, call init() first")
        return [self._message_queue, self._delay_queue]

    def _check_queue(self, queue: str) -> None:
        if queue not in self.queues():
            raise ValueError(f"queue is not managed by this backend: {queue}")

    async def send(self, messages: Sequence[Payload]) -> None:
        """
        Send messages to the FIFO message queue.

        One message uses SendMessage; several use SendMessageBatch in
        batches of 10, sent in order. Every message carries the shared
        message group id and its own deduplication id.

        Args:
            messages: Payloads to enqueue, in delivery order

        Raises:
            ClientError, BotoCoreError: If SQS rejects the request
            PartialBatchError: If some entries of a batch were rejected; every
                body is reported as failed, successful or unsent
            ValueError: If a payload is empty or not str/bytes
        """
        bodies = [to_body(message) for message in messages]
        if not bodies:
            return

        await self.init()
        queue = self._message_queue

        try:
            async with self._client() as sqs:
                if len(bodies) == 1:
                    await self._send_one(sqs, queue, bodies[0])
                else:
                    await self._send_batches(sqs, queue, bodies)
        except (ClientError, BotoCoreError) as e:
            _log_transport_error("Failed to send messages to SQS", e, queue=queue, messages=bodies)
            raise

    async def _send_one(self, sqs, queue: str, body: str) -> None:
        response = await sqs.send_message(
            QueueUrl=queue,
            MessageBody=body,
            MessageGroupId=self.settings.message_group_id,
            MessageDeduplicationId=new_dedup_id(),
        )
        logger.debug("Message sent to SQS", queue=queue, message=body, response=response)

    async def _send_batches(self, sqs, queue: str, bodies: List[str]) -> None:
        batches = chunk_list(bodies, MAX_BATCH_SIZE)
        sent: List[str] = []

        for index, batch in enumerate(batches):
            entries = build_send_entries(batch, self.settings.message_group_id)
            response = await sqs.send_message_batch(QueueUrl=queue, Entries=entries)
            logger.debug("Message batch sent to SQS", queue=queue, messages=batch, response=response)

            sent.extend(_successful_items(response, batch))
            failed = _failed_entries(response, batch)
            if failed:
                # Later batches are held back so nothing overtakes a rejected message
                unsent = [body for later in batches[index + 1:] for body in later]
                logger.error(
                    "SQS message batch partially failed",
                    queue=queue,
                    messages=batch,
                    failed=failed,
                    sent=len(sent),
                    unsent=len(unsent)
                )
                raise PartialBatchError(queue, 'SendMessageBatch', failed, sent, unsent)

    async def send_after(self, message: Payload, delay_seconds: int) -> None:
        """
        Send one message to the delay queue.

        The delay is passed to SQS as DelaySeconds without clamping;
        SQS rejects values above its maximum (900 seconds).

        Args:
            message: Payload to enqueue
            delay_seconds: Seconds before the message becomes visible

        Raises:
            ClientError, BotoCoreError: If SQS rejects the request
            ValueError: If the payload or delay is invalid
        """
        body = to_body(message)
        if isinstance(delay_seconds, bool) or not isinstance(delay_seconds, int) or delay_seconds < 0:
            raise ValueError("delay_seconds must be a non-negative integer")

        await self.init()
        queue = self._delay_queue

        try:
            async with self._client() as sqs:
                response = await sqs.send_message(
                    QueueUrl=queue,
                    MessageBody=body,
                    DelaySeconds=delay_seconds,
                )
        except (ClientError, BotoCoreError) as e:
            _log_transport_error(
                "Failed to send delayed message to SQS",
                e,
                queue=queue,
                message=body,
                delay_seconds=delay_seconds
            )
            raise

        logger.debug(
            "Delayed message sent to SQS",
            queue=queue,
            message=body,
            delay_seconds=delay_seconds,
            response=response
        )

    async def recv(self, queue: str) -> List[ReceivedMessage]:
        """
        Receive up to 10 messages, polling until at least one arrives.

        Stale connection notices for the queue are discarded first. Empty
        responses are re-polled immediately; each ReceiveMessage call
        long-polls for wait_time_seconds so the loop never spins.

        Args:
            queue: Queue URL from queues()

        Returns:
            Non-empty list of messages in the order SQS returned them

        Raises:
            ClientError, BotoCoreError: If SQS rejects the request
        """
        await self.init()
        self._check_queue(queue)
        self.drain_connection_notices(queue)

        params: Dict[str, Any] = {
            'QueueUrl': queue,
            'MaxNumberOfMessages': MAX_BATCH_SIZE,
            'WaitTimeSeconds': self.settings.wait_time_seconds,
            'AttributeNames': ['All'],
            'MessageAttributeNames': ['All'],
        }
        if self.settings.visibility_timeout is not None:
            params['VisibilityTimeout'] = self.settings.visibility_timeout

        try:
            async with self._client() as sqs:
                sqs.meta.events.register('needs-retry.sqs', partial(self._record_disconnect, queue))

                while True:
                    response = await sqs.receive_message(**params)
                    raw_messages = response.get('Messages') or []

                    if raw_messages:
                        logger.debug(
                            "Messages received from SQS",
                            queue=queue,
                            count=len(raw_messages),
                            messages=raw_messages
                        )
                        return [ReceivedMessage.from_sqs(raw) for raw in raw_messages]

                    logger.debug("Empty receive from SQS, polling again", queue=queue)

        except (ClientError, BotoCoreError) as e:
            _log_transport_error("Failed to receive messages from SQS", e, queue=queue)
            raise

    async def delete(self, queue: str, messages: Sequence[ReceivedMessage]) -> None:
        """
        Delete received messages with DeleteMessageBatch.

        Entry ids are "0", "1", ... in list order within each batch of 10.
        All batches are attempted before per-entry failures are reported.

        Args:
            queue: Queue URL the messages were received from
            messages: Messages exactly as returned by recv()

        Raises:
            ClientError, BotoCoreError: If SQS rejects the request
            PartialBatchError: If some messages could not be deleted
        """
        messages = list(messages)
        if not messages:
            return

        await self.init()
        self._check_queue(queue)

        failed: List[Dict[str, Any]] = []
        successful: List[ReceivedMessage] = []
        receipt_handles = [message.receipt_handle for message in messages]

        try:
            async with self._client() as sqs:
                for batch in chunk_list(messages, MAX_BATCH_SIZE):
                    entries = build_delete_entries([message.receipt_handle for message in batch])
                    response = await sqs.delete_message_batch(QueueUrl=queue, Entries=entries)
                    logger.debug(
                        "Message batch deleted from SQS",
                        queue=queue,
                        receipt_handles=[entry['ReceiptHandle'] for entry in entries],
                        response=response
                    )
                    failed.extend(_failed_entries(response, batch))
                    successful.extend(_successful_items(response, batch))
        except (ClientError, BotoCoreError) as e:
            _log_transport_error(
                "Failed to delete messages from SQS",
                e,
                queue=queue,
                receipt_handles=receipt_handles
            )
            raise

        if failed:
            logger.error(
                "SQS message batch delete partially failed",
                queue=queue,
                failed=[{k: v for k, v in entry.items() if k != 'Item'} for entry in failed]
            )
            raise PartialBatchError(queue, 'DeleteMessageBatch', failed, successful)

    def _notices_for(self, queue: str) -> asyncio.Queue:
        if queue not in self._notices:
            self._notices[queue] = asyncio.Queue(maxsize=MAX_PENDING_NOTICES)
        return self._notices[queue]

    def _record_disconnect(
        self,
        queue: str,
        caught_exception: Optional[Exception] = None,
        attempts: Optional[int] = None,
        **kwargs
    ) -> None:
        """botocore needs-retry handler; records dropped connections, never decides retries."""
        if not isinstance(caught_exception, DISCONNECT_ERRORS):
            return None

        notices = self._notices_for(queue)
        if not notices.full():
            notices.put_nowait(ConnectionNotice(queue, str(caught_exception), attempts))
        return None

    def drain_connection_notices(self, queue: str) -> int:
        """
        Discard every connection notice currently pending for queue.

        Never waits; returns as soon as the channel is empty.

        Returns:
            Number of notices discarded
        """
        notices = self._notices.get(queue)
        if notices is None:
            return 0

        drained = 0
        while True:
            try:
                notices.get_nowait()
            except asyncio.QueueEmpty:
                break
            drained += 1

        if drained:
            logger.debug("Discarded stale connection notices", queue=queue, count=drained)
        return drained


def _log_transport_error(event: str, error: Exception, **context) -> None:
    if isinstance(error, ClientError):
        logger.error(
            event,
            error_code=error.response.get('Error', {}).get('Code'),
            error_message=error.response.get('Error', {}).get('Message'),
            error=str(error),
            **context
        )
    else:
        logger.error(
            event,
            error=str(error),
            error_type=type(error).__name__,
            **context
        )


def _failed_entries(response: Dict[str, Any], items: Sequence[Any]) -> List[Dict[str, Any]]:
    """Attach the original item to each Failed entry of a batch response."""
    failed = sorted(response.get('Failed') or [], key=lambda entry: int(entry['Id']))
    return [{**entry, 'Item': items[int(entry['Id'])]} for entry in failed]


def _successful_items(response: Dict[str, Any], items: Sequence[Any]) -> List[Any]:
    return [items[int(entry['Id'])] for entry in response.get('Successful') or []]
