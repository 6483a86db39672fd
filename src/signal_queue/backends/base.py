"""
Module: base.py
Description: Backend capability contract.

Any queue backend (SQS, in-memory, ...) satisfies this Protocol. Callers
depend on the Protocol only; the concrete class is chosen by
backends.factory.create_backend() from configuration.
"""

from typing import List, Protocol, Sequence, Union, runtime_checkable

from signal_queue.models.message import ReceivedMessage

Payload = Union[str, bytes]


@runtime_checkable
class Backend(Protocol):
    """
    Queue backend contract.

    queues() returns the message queue first and the delay queue last.
    All operations raise on failure and return None on success, except
    recv(), which never returns an empty list.
    """

    async def init(self) -> None:
        """Prepare the backend. Idempotent; called before first use."""
        ...

    def queues(self) -> List[str]:
        """Return every queue this backend manages, message queue first."""
        ...

    async def send(self, messages: Sequence[Payload]) -> None:
        """Enqueue messages on the ordered, deduplicated message queue."""
        ...

    async def send_after(self, message: Payload, delay_seconds: int) -> None:
        """Enqueue one message on the delay queue, visible after delay_seconds."""
        ...

    async def recv(self, queue: str) -> List[ReceivedMessage]:
        """Wait until at least one message is available on queue and return it."""
        ...

    async def delete(self, queue: str, messages: Sequence[ReceivedMessage]) -> None:
        """Acknowledge messages previously returned by recv(queue)."""
        ...
