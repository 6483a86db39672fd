"""
Module: models
Description: Package initialization for Pydantic data models.

This package contains the data models shared by all backends:
- ReceivedMessage: One delivered message with its receipt handle
"""

from .message import ReceivedMessage

__all__ = [
    "ReceivedMessage",
]
