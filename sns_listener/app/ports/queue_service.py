"""Queue service port: create, inspect, receive from and delete a queue.

Application code depends on this port; infrastructure (e.g. boto3 SQS) implements it.
"""
from __future__ import annotations

from typing import Mapping, Protocol, Sequence, runtime_checkable

from sns_listener.app.domain.models import QueueMessage


class QueueServiceError(Exception):
    """Base for queue service failures."""


class QueueDoesNotExistError(QueueServiceError):
    """Raised when the target queue is not there."""


@runtime_checkable
class QueueService(Protocol):
    """Port: queue operations. Implementations live in infrastructure."""

    async def create_queue(self, name: str, attributes: Mapping[str, str]) -> str:
        """Create the queue and return its URL."""
        ...

    async def delete_queue(self, queue_url: str) -> None: ...

    async def get_queue_arn(self, queue_url: str) -> str: ...

    async def receive_messages(
        self,
        queue_url: str,
        *,
        max_messages: int,
        visibility_timeout_seconds: int,
    ) -> Sequence[QueueMessage]: ...

    async def delete_message(self, queue_url: str, receipt_handle: str) -> None: ...

    async def close(self) -> None:
        """Release resources. No-op allowed if nothing to close."""
        ...
