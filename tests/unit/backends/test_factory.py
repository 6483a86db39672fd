"""
Module: test_factory.py
Description: Unit tests for backend selection from settings.
"""

import pytest

from signal_queue.backends.factory import create_backend
from signal_queue.backends.memory import MemoryBackend
from signal_queue.backends.sqs import SQSBackend
from signal_queue.config.settings import Settings
from signal_queue.exceptions import UnsupportedBackendError

from tests.conftest import make_settings


class TestCreateBackend:
    """Test cases for create_backend()."""

    def test_sqs_backend(self):
        """Test the sqs setting builds an SQSBackend."""
        settings = make_settings(backend="sqs")

        backend = create_backend(settings)

        assert isinstance(backend, SQSBackend)
        assert backend.settings is settings

    def test_memory_backend(self):
        """Test the memory setting builds a MemoryBackend."""
        backend = create_backend(make_settings(backend="Memory"))

        assert isinstance(backend, MemoryBackend)

    def test_unsupported_backend(self):
        """Test unknown backends are rejected."""
        settings = Settings.model_construct(backend="kafka")

        with pytest.raises(UnsupportedBackendError, match="kafka"):
            create_backend(settings)

    def test_default_settings(self):
        """Test the module settings are used when none are given."""
        assert isinstance(create_backend(), (SQSBackend, MemoryBackend))
