"""
Package: signal_queue
Description: Pluggable message-queue client for application signals.

Delivers opaque payloads through an ordered, deduplicated message queue
and a delay queue. Amazon SQS in production, asyncio queues in tests.
"""

from .backends import Backend, MemoryBackend, SQSBackend, create_backend
from .exceptions import (
    BackendNotInitializedError,
    PartialBatchError,
    SignalQueueError,
    UnsupportedBackendError,
)
from .models import ReceivedMessage
from .poller import Poller, run_pollers

__version__ = "0.1.0"

__all__ = [
    "Backend",
    "BackendNotInitializedError",
    "MemoryBackend",
    "PartialBatchError",
    "Poller",
    "ReceivedMessage",
    "SQSBackend",
    "SignalQueueError",
    "UnsupportedBackendError",
    "create_backend",
    "run_pollers",
]
