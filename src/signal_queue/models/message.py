"""
Module: message.py
Description: Message models for signal queue backends.

Defines ReceivedMessage, the normalized form of one delivery returned by
Backend.recv() and handed back to Backend.delete() for acknowledgement.

Key Components:
- ReceivedMessage: One delivery attempt with its receipt handle
- ReceivedMessage.from_sqs(): Build from a raw ReceiveMessage entry

Dependencies: pydantic, typing
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ReceivedMessage(BaseModel):
    """
    A message as delivered by a backend.

    The receipt handle identifies this delivery attempt only. Deleting
    with a handle from an earlier delivery is a no-op or a transport
    error, so dispatchers must pass back exactly what recv() returned.

    Attributes:
        message_id: Transport-assigned message id
        receipt_handle: Opaque token used to delete this delivery
        body: Message payload
        md5_of_body: Transport checksum of the body, when provided
        attributes: System attributes (SentTimestamp, MessageGroupId, ...)
        message_attributes: User message attributes
    """

    model_config = ConfigDict(frozen=True)

    message_id: str = Field(..., description="Transport message id")
    receipt_handle: str = Field(..., min_length=1, description="Delivery receipt handle")
    body: str = Field(..., description="Message payload")
    md5_of_body: Optional[str] = Field(default=None, description="MD5 of the body")
    attributes: Dict[str, str] = Field(default_factory=dict)
    message_attributes: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_sqs(cls, raw: Dict[str, Any]) -> "ReceivedMessage":
        """
        Build a ReceivedMessage from one entry of a ReceiveMessage response.

        Args:
            raw: Entry of response['Messages']

        Returns:
            ReceivedMessage with the transport fields copied as-is
        """
        return cls(
            message_id=raw['MessageId'],
            receipt_handle=raw['ReceiptHandle'],
            body=raw['Body'],
            md5_of_body=raw.get('MD5OfBody'),
            attributes=raw.get('Attributes', {}),
            message_attributes=raw.get('MessageAttributes', {}),
        )
