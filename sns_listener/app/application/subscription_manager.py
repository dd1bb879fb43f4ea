from __future__ import annotations

from sns_listener.app.constants import SQS_PROTOCOL
from sns_listener.app.core.telemetry import Telemetry
from sns_listener.app.domain.errors import SubscriptionError, TeardownError
from sns_listener.app.domain.models import Subscription
from sns_listener.app.ports.topic_service import TopicService, TopicServiceError


class SubscriptionManager:
    """Subscribes the listener queue to the topic and removes the subscription on teardown.

    Queue endpoints are authorized by the queue policy, so the subscription ARN comes
    back synchronously with no confirmation handshake.
    """

    def __init__(self, topic_service: TopicService, telemetry: Telemetry) -> None:
        self._topic_service = topic_service
        self._telemetry = telemetry

    async def subscribe(self, topic_arn: str, queue_arn: str) -> Subscription:
        with self._telemetry.span("subscribe_to_topic", topic_arn=topic_arn, queue_arn=queue_arn) as span:
            self._telemetry.event("subscription_creating", topic_arn=topic_arn, queue_arn=queue_arn)
            try:
                subscription_arn = await self._topic_service.subscribe(
                    topic_arn,
                    queue_arn,
                    protocol=SQS_PROTOCOL,
                )
            except TopicServiceError as exc:
                raise SubscriptionError(f"unable to subscribe to topic {topic_arn}: {exc}") from exc

            if not subscription_arn:
                raise SubscriptionError(f"topic {topic_arn} returned no subscription ARN")

            Telemetry.annotate(span, subscription_arn=subscription_arn)
            self._telemetry.event("subscription_created", subscription_arn=subscription_arn)
            return Subscription(arn=subscription_arn)

    async def unsubscribe(self, subscription_arn: str) -> TeardownError | None:
        """Remove the subscription. Failures are returned, not raised."""
        with self._telemetry.span("unsubscribe_from_topic", subscription_arn=subscription_arn) as span:
            self._telemetry.event("subscription_removing", subscription_arn=subscription_arn)
            try:
                await self._topic_service.unsubscribe(subscription_arn)
            except Exception as exc:
                self._telemetry.warning("unable to unsubscribe {}: {}", subscription_arn, exc)
                Telemetry.record_error(span, exc)
                error = TeardownError(f"unable to unsubscribe {subscription_arn}: {exc}", [exc])
                error.__cause__ = exc
                return error

            self._telemetry.event("subscription_removed", subscription_arn=subscription_arn)
            return None
