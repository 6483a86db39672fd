"""
Module: settings.py
Description: Backend configuration using pydantic-settings.

Loads queue identifiers, region/endpoint and polling parameters from
SIGNAL_QUEUE_* environment variables with validation and defaults.
Supports .env files for local development.
"""

from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def is_queue_url(value: str) -> bool:
    """Return True when a configured queue value is already a URL."""
    return value.startswith(('http://', 'https://'))


class Settings(BaseSettings):
    """Signal queue settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SIGNAL_QUEUE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    log_level: str = Field(default="INFO", description="Logging level")

    # Backend selection
    backend: str = Field(
        default="sqs",
        description="Backend implementation (sqs or memory)"
    )

    # AWS settings
    aws_region: str = Field(default="us-west-2", description="AWS region")
    endpoint_url: Optional[str] = Field(
        default=None,
        description="Override SQS endpoint (LocalStack, VPC endpoint)"
    )

    # Queue settings
    message_queue: str = Field(
        default="signal-queue-messages.fifo",
        description="Name or URL of the ordered, deduplicated message queue"
    )
    delay_queue: str = Field(
        default="signal-queue-delay",
        description="Name or URL of the delay queue"
    )
    message_group_id: str = Field(
        default="signals",
        min_length=1,
        max_length=128,
        description="Message group shared by every message queue producer"
    )

    # Polling settings
    wait_time_seconds: int = Field(
        default=20,
        ge=0,
        le=20,
        description="Long-poll wait for each ReceiveMessage call"
    )
    visibility_timeout: Optional[int] = Field(
        default=None,
        ge=0,
        le=43200,
        description="Visibility timeout for received messages (queue default if unset)"
    )

    # Transport client settings
    connect_timeout: int = Field(
        default=5,
        ge=1,
        le=60,
        description="Connect timeout in seconds"
    )
    read_timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Read timeout in seconds, must exceed the long-poll wait"
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts made by the botocore retry handler"
    )

    @field_validator('backend')
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate and normalize the backend name."""
        normalized = v.strip().lower()
        if normalized not in ('sqs', 'memory'):
            raise ValueError("backend must be one of: sqs, memory")
        return normalized

    @field_validator('message_queue', 'delay_queue')
    @classmethod
    def validate_queue_names(cls, v: str) -> str:
        """Validate SQS queue names (URLs are passed through)."""
        if not v or not isinstance(v, str):
            raise ValueError("Queue name must be a non-empty string")
        if is_queue_url(v):
            return v

        import re
        if not re.match(r'^[a-zA-Z0-9_-]{1,75}(\.fifo)?$', v):
            raise ValueError(
                "Queue name must contain only letters, numbers, hyphens, and underscores"
            )

        return v

    @field_validator('message_queue')
    @classmethod
    def validate_message_queue_is_fifo(cls, v: str) -> str:
        """The message queue must be a FIFO queue."""
        if not is_queue_url(v) and not v.endswith('.fifo'):
            raise ValueError("message_queue must be a FIFO queue (name ending in .fifo)")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v.upper()

    @model_validator(mode='after')
    def validate_read_timeout(self) -> 'Settings':
        """A long poll must finish before the socket read times out."""
        if self.read_timeout <= self.wait_time_seconds:
            raise ValueError("read_timeout must be greater than wait_time_seconds")
        return self


# Global settings instance
settings = Settings()
