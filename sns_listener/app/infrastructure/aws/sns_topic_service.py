"""Concrete TopicService implementation over a boto3 SNS client."""
from __future__ import annotations

import asyncio
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from sns_listener.app.ports.topic_service import TopicServiceError


class SnsTopicService:
    """TopicService implementation using a boto3 SNS client."""

    def __init__(self, client: Any) -> None:
        self._client = client

    async def subscribe(self, topic_arn: str, endpoint_arn: str, *, protocol: str) -> str:
        try:
            response = await asyncio.to_thread(
                self._client.subscribe,
                TopicArn=topic_arn,
                Protocol=protocol,
                Endpoint=endpoint_arn,
                ReturnSubscriptionArn=True,
            )
        except (ClientError, BotoCoreError) as exc:
            raise TopicServiceError(f"subscribe {endpoint_arn} to {topic_arn} failed: {exc}") from exc
        return response.get("SubscriptionArn", "")

    async def unsubscribe(self, subscription_arn: str) -> None:
        try:
            await asyncio.to_thread(self._client.unsubscribe, SubscriptionArn=subscription_arn)
        except (ClientError, BotoCoreError) as exc:
            raise TopicServiceError(f"unsubscribe {subscription_arn} failed: {exc}") from exc

    async def close(self) -> None:
        self._client.close()
