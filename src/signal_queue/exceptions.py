"""
Module: exceptions.py
Description: Errors raised by the signal queue layer itself.

Transport failures are not wrapped: botocore's ClientError and
BotoCoreError propagate to the caller unchanged.
"""

from typing import Any, Dict, List, Sequence


class SignalQueueError(Exception):
    """Base class for errors raised by this package."""


class BackendNotInitializedError(SignalQueueError):
    """Raised when queues() is used before init() resolved the queues."""


class UnsupportedBackendError(SignalQueueError, ValueError):
    """Raised when configuration names a backend that does not exist."""


class PartialBatchError(SignalQueueError):
    """
    A batch call succeeded for some entries and failed for others.

    Every item of the call is in exactly one of failed, successful
    or unsent.

    Attributes:
        queue: Queue the batch was sent to
        operation: Transport operation name (SendMessageBatch, DeleteMessageBatch)
        failed: One dict per failed entry: Id, Code, Message, SenderFault
            and Item, the original body or ReceivedMessage
        successful: Items (bodies or messages) the transport accepted
        unsent: Items never submitted because an earlier batch failed
    """

    def __init__(
        self,
        queue: str,
        operation: str,
        failed: List[Dict[str, Any]],
        successful: Sequence[Any] = (),
        unsent: Sequence[Any] = ()
    ):
        self.queue = queue
        self.operation = operation
        self.failed = failed
        self.successful = list(successful)
        self.unsent = list(unsent)
        total = len(failed) + len(self.successful) + len(self.unsent)
        super().__init__(
            f"{operation} on {queue}: {len(failed)} of {total} entries failed, "
            f"{len(self.unsent)} not sent"
        )

    @property
    def failed_items(self) -> List[Any]:
        """The original items (bodies or messages) whose entries failed."""
        return [entry['Item'] for entry in self.failed]

    @property
    def retryable_items(self) -> List[Any]:
        """Failed and unsent items, in their original order."""
        return self.failed_items + self.unsent
