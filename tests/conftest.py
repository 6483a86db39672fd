"""
Module: conftest.py
Description: Shared pytest fixtures for signal queue tests.

Provides test settings, a mocked aioboto3 session whose SQS client is
an AsyncMock per operation, raw SQS message factories and ClientError
builders. No AWS calls are made.
"""

import os

# Debug logs are asserted on; must be set before signal_queue is imported
os.environ.setdefault("SIGNAL_QUEUE_LOG_LEVEL", "DEBUG")

import pytest
from unittest.mock import AsyncMock, MagicMock
from botocore.exceptions import ClientError

from signal_queue.backends.memory import MemoryBackend
from signal_queue.backends.sqs import SQSBackend
from signal_queue.config.settings import Settings
from signal_queue.models.message import ReceivedMessage

MESSAGE_QUEUE_URL = "https://sqs.us-west-2.amazonaws.com/123456789012/signal-queue-messages-test.fifo"
DELAY_QUEUE_URL = "https://sqs.us-west-2.amazonaws.com/123456789012/signal-queue-delay-test"


def make_settings(**overrides) -> Settings:
    """Build Settings without reading .env files."""
    values = {
        "message_queue": MESSAGE_QUEUE_URL,
        "delay_queue": DELAY_QUEUE_URL,
        "aws_region": "us-west-2",
        "log_level": "DEBUG",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def test_settings():
    """
    Provide test configuration settings.

    Queue values are URLs so init() needs no GetQueueUrl call.
    """
    return make_settings()


@pytest.fixture
def sqs_client():
    """
    Provide the mocked SQS client yielded by the session.

    Every transport operation is an AsyncMock returning a successful,
    empty-ish response; tests override return_value/side_effect.
    """
    sqs = MagicMock()
    sqs.get_queue_url = AsyncMock()
    sqs.send_message = AsyncMock(return_value={"MessageId": "msg-1"})
    sqs.send_message_batch = AsyncMock(return_value={"Successful": [], "Failed": []})
    sqs.receive_message = AsyncMock(return_value={"Messages": []})
    sqs.delete_message_batch = AsyncMock(return_value={"Successful": [], "Failed": []})
    return sqs


@pytest.fixture
def sqs_session(sqs_client):
    """Provide an aioboto3-like session whose client() context yields sqs_client."""
    session = MagicMock()
    session.client.return_value.__aenter__.return_value = sqs_client
    session.client.return_value.__aexit__.return_value = False
    return session


@pytest.fixture
def sqs_backend(test_settings, sqs_session):
    """Provide an SQSBackend wired to the mocked session."""
    return SQSBackend(test_settings, session=sqs_session)


@pytest.fixture
def memory_backend(test_settings):
    """Provide a fresh in-memory backend."""
    return MemoryBackend(test_settings)


@pytest.fixture
def raw_message():
    """Factory for raw ReceiveMessage entries."""
    def _make(index: int = 0, body: str = None):
        return {
            "MessageId": f"msg-{index}",
            "ReceiptHandle": f"rh-{index}",
            "MD5OfBody": "d41d8cd98f00b204e9800998ecf8427e",
            "Body": body if body is not None else f"signal-{index}",
            "Attributes": {"MessageGroupId": "signals"},
        }
    return _make


@pytest.fixture
def received_messages(raw_message):
    """Factory for lists of ReceivedMessage."""
    def _make(count: int):
        return [ReceivedMessage.from_sqs(raw_message(i)) for i in range(count)]
    return _make


@pytest.fixture
def client_error():
    """Factory for botocore ClientError instances."""
    def _make(code: str = "AWS.SimpleQueueService.NonExistentQueue",
              operation: str = "SendMessage",
              message: str = "Test error"):
        return ClientError(
            error_response={"Error": {"Code": code, "Message": message}},
            operation_name=operation
        )
    return _make
