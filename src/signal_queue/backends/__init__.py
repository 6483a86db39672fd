"""
Package: backends
Description: Queue backends for signal delivery.

- base: Backend capability Protocol
- sqs: Amazon SQS implementation
- memory: In-process implementation for tests and local runs
- factory: create_backend() selection from settings
"""

from .base import Backend
from .factory import create_backend
from .memory import MemoryBackend
from .sqs import SQSBackend

__all__ = [
    "Backend",
    "MemoryBackend",
    "SQSBackend",
    "create_backend",
]
