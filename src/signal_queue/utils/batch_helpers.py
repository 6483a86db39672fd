"""
Module: batch_helpers.py
Description: Helpers for building SQS batch requests.

Splits message lists into transport-sized batches, generates
deduplication ids and builds the per-entry request dictionaries
for SendMessageBatch and DeleteMessageBatch.

Key Components:
- chunk_list(): Split lists into smaller chunks
- new_dedup_id(): Fresh deduplication id per message
- build_send_entries() / build_delete_entries(): Batch entry builders

Dependencies: typing, uuid
"""

from typing import Any, Dict, List, Sequence, TypeVar, Union
from uuid import uuid4

T = TypeVar('T')

# SQS accepts at most 10 entries per batch call and per receive
MAX_BATCH_SIZE = 10


def chunk_list(items: Sequence[T], chunk_size: int = MAX_BATCH_SIZE) -> List[List[T]]:
    """
    Split a sequence into smaller chunks of specified size.

    Args:
        items: Sequence to split into chunks
        chunk_size: Maximum size of each chunk

    Returns:
        List of chunks, where each chunk is a list of items

    Raises:
        ValueError: If chunk_size is not positive

    Example:
        >>> chunk_list([1, 2, 3, 4, 5], 2)
        [[1, 2], [3, 4], [5]]
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    items = list(items)
    return [items[i:i + chunk_size] for i in range(0, len(items), chunk_size)]


def new_dedup_id() -> str:
    """Return a deduplication id that is unique per call, never content-derived."""
    return uuid4().hex


def to_body(message: Union[str, bytes]) -> str:
    """
    Normalize an outgoing payload to an SQS message body.

    Raises:
        ValueError: If the payload is not str/bytes or is empty
    """
    if isinstance(message, bytes):
        message = message.decode('utf-8')
    if not isinstance(message, str):
        raise ValueError("message must be str or bytes")
    if not message:
        raise ValueError("message must be non-empty")
    return message


def build_send_entries(bodies: Sequence[str], group_id: str) -> List[Dict[str, Any]]:
    """
    Build SendMessageBatch entries for one batch.

    Entry ids are "0", "1", ... in list order and only correlate
    per-entry results. Each entry gets its own deduplication id.

    Example:
        >>> build_send_entries(["a", "b"], "signals")[1]["Id"]
        '1'
    """
    return [
        {
            'Id': str(index),
            'MessageBody': body,
            'MessageGroupId': group_id,
            'MessageDeduplicationId': new_dedup_id(),
        }
        for index, body in enumerate(bodies)
    ]


def build_delete_entries(receipt_handles: Sequence[str]) -> List[Dict[str, str]]:
    """Build DeleteMessageBatch entries, ids "0", "1", ... in list order."""
    return [
        {'Id': str(index), 'ReceiptHandle': handle}
        for index, handle in enumerate(receipt_handles)
    ]
