"""Backend factory: selects the implementation from configuration. Only place that imports concrete backends."""

from typing import Optional

from signal_queue.backends.base import Backend
from signal_queue.backends.memory import MemoryBackend
from signal_queue.backends.sqs import SQSBackend
from signal_queue.config.settings import Settings, settings as default_settings
from signal_queue.exceptions import UnsupportedBackendError


def create_backend(settings: Optional[Settings] = None) -> Backend:
    settings = settings or default_settings
    backend = settings.backend.strip().lower()

    if backend == "sqs":
        return SQSBackend(settings)
    if backend == "memory":
        return MemoryBackend(settings)

    raise UnsupportedBackendError(f"Unsupported queue backend: {backend}")
