"""Concrete QueueService implementation over a boto3 SQS client.

boto3 is blocking, so each call runs in a worker thread via asyncio.to_thread. Awaiting
callers can abandon a call promptly; the thread finishes on its own.
"""
from __future__ import annotations

import asyncio
from typing import Any, Mapping, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from sns_listener.app.constants import QUEUE_ATTRIBUTE
from sns_listener.app.domain.models import QueueMessage
from sns_listener.app.infrastructure.aws.client_errors import error_code
from sns_listener.app.ports.queue_service import QueueDoesNotExistError, QueueServiceError

_MISSING_QUEUE_CODES = frozenset(
    {
        "AWS.SimpleQueueService.NonExistentQueue",
        "QueueDoesNotExist",
    }
)


def _map_error(action: str, exc: Exception) -> QueueServiceError:
    if error_code(exc) in _MISSING_QUEUE_CODES:
        return QueueDoesNotExistError(f"{action} failed: {exc}")
    return QueueServiceError(f"{action} failed: {exc}")


class SqsQueueService:
    """QueueService implementation using a boto3 SQS client."""

    def __init__(self, client: Any) -> None:
        self._client = client

    async def create_queue(self, name: str, attributes: Mapping[str, str]) -> str:
        try:
            response = await asyncio.to_thread(
                self._client.create_queue,
                QueueName=name,
                Attributes=dict(attributes),
            )
        except (ClientError, BotoCoreError) as exc:
            raise _map_error(f"create queue {name}", exc) from exc
        return response["QueueUrl"]

    async def delete_queue(self, queue_url: str) -> None:
        try:
            await asyncio.to_thread(self._client.delete_queue, QueueUrl=queue_url)
        except (ClientError, BotoCoreError) as exc:
            raise _map_error(f"delete queue {queue_url}", exc) from exc

    async def get_queue_arn(self, queue_url: str) -> str:
        try:
            response = await asyncio.to_thread(
                self._client.get_queue_attributes,
                QueueUrl=queue_url,
                AttributeNames=[QUEUE_ATTRIBUTE.QUEUE_ARN],
            )
        except (ClientError, BotoCoreError) as exc:
            raise _map_error(f"get attributes of {queue_url}", exc) from exc
        return response.get("Attributes", {}).get(QUEUE_ATTRIBUTE.QUEUE_ARN, "")

    async def receive_messages(
        self,
        queue_url: str,
        *,
        max_messages: int,
        visibility_timeout_seconds: int,
    ) -> Sequence[QueueMessage]:
        try:
            response = await asyncio.to_thread(
                self._client.receive_message,
                QueueUrl=queue_url,
                MaxNumberOfMessages=max_messages,
                VisibilityTimeout=visibility_timeout_seconds,
                MessageAttributeNames=["All"],
            )
        except (ClientError, BotoCoreError) as exc:
            raise _map_error(f"receive from {queue_url}", exc) from exc
        return [
            QueueMessage(
                message_id=raw["MessageId"],
                receipt_handle=raw["ReceiptHandle"],
                body=raw.get("Body", ""),
            )
            for raw in response.get("Messages", [])
        ]

    async def delete_message(self, queue_url: str, receipt_handle: str) -> None:
        try:
            await asyncio.to_thread(
                self._client.delete_message,
                QueueUrl=queue_url,
                ReceiptHandle=receipt_handle,
            )
        except (ClientError, BotoCoreError) as exc:
            raise _map_error(f"delete message from {queue_url}", exc) from exc

    async def close(self) -> None:
        self._client.close()
