"""Port: topic subscription management. Implementations live in infrastructure."""
from __future__ import annotations

from typing import Protocol, runtime_checkable


class TopicServiceError(Exception):
    """Base for topic service failures."""


@runtime_checkable
class TopicService(Protocol):
    async def subscribe(self, topic_arn: str, endpoint_arn: str, *, protocol: str) -> str:
        """Subscribe endpoint to topic; returns the subscription ARN without a confirmation step."""
        ...

    async def unsubscribe(self, subscription_arn: str) -> None: ...

    async def close(self) -> None: ...
