"""
Module: test_settings.py
Description: Unit tests for backend settings validation.
"""

import pytest
from pydantic import ValidationError

from signal_queue.config.settings import Settings, is_queue_url

from tests.conftest import MESSAGE_QUEUE_URL


class TestSettings:
    """Test cases for Settings."""

    def test_defaults(self, monkeypatch):
        """Test default queue and polling settings."""
        monkeypatch.delenv("SIGNAL_QUEUE_LOG_LEVEL", raising=False)

        settings = Settings(_env_file=None)

        assert settings.backend == "sqs"
        assert settings.aws_region == "us-west-2"
        assert settings.message_queue.endswith(".fifo")
        assert settings.message_group_id == "signals"
        assert settings.wait_time_seconds == 20
        assert settings.visibility_timeout is None
        assert settings.log_level == "INFO"

    def test_environment_variables(self, monkeypatch):
        """Test settings are read from SIGNAL_QUEUE_* variables."""
        monkeypatch.setenv("SIGNAL_QUEUE_BACKEND", "memory")
        monkeypatch.setenv("SIGNAL_QUEUE_MESSAGE_QUEUE", "orders.fifo")
        monkeypatch.setenv("SIGNAL_QUEUE_DELAY_QUEUE", "orders-delay")
        monkeypatch.setenv("SIGNAL_QUEUE_AWS_REGION", "eu-west-1")

        settings = Settings(_env_file=None)

        assert settings.backend == "memory"
        assert settings.message_queue == "orders.fifo"
        assert settings.delay_queue == "orders-delay"
        assert settings.aws_region == "eu-west-1"

    def test_message_queue_must_be_fifo(self):
        """Test a standard queue name is rejected for the message queue."""
        with pytest.raises(ValidationError, match="FIFO"):
            Settings(_env_file=None, message_queue="orders")

    def test_queue_urls_pass_through(self):
        """Test queue URLs skip name validation."""
        settings = Settings(_env_file=None, message_queue=MESSAGE_QUEUE_URL)

        assert settings.message_queue == MESSAGE_QUEUE_URL
        assert is_queue_url(settings.message_queue)
        assert not is_queue_url("orders.fifo")

    def test_invalid_queue_name(self):
        """Test queue names with invalid characters are rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, delay_queue="orders/delay")

    def test_invalid_backend(self):
        """Test unknown backends are rejected."""
        with pytest.raises(ValidationError, match="backend"):
            Settings(_env_file=None, backend="kafka")

    def test_wait_time_bounds(self):
        """Test the long-poll wait is limited to 0..20 seconds."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, wait_time_seconds=21)

    def test_read_timeout_must_exceed_wait(self):
        """Test the read timeout must outlast a long poll."""
        with pytest.raises(ValidationError, match="read_timeout"):
            Settings(_env_file=None, wait_time_seconds=20, read_timeout=20)

    def test_log_level_normalized(self):
        """Test log levels are validated and upper-cased."""
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="verbose")
