"""Queue provisioner: creates the listener's queue and authorizes the topic to publish into it.

The queue name defaults to QUEUE_NAME_PREFIX plus a v4 UUID. A topic ARN ending in
".fifo" gets a FIFO queue with content-based deduplication, and the ".fifo" suffix is
appended to the name. Every queue carries a policy that lets the SNS service principal
send messages only when the source ARN is the topic.
"""
from __future__ import annotations

import json
import re
import uuid
from dataclasses import dataclass, field

from sns_listener.app.constants import (
    FIFO_SUFFIX,
    QUEUE_ATTRIBUTE,
    QUEUE_NAME_PATTERN,
    QUEUE_NAME_PREFIX,
    SNS_SERVICE_PRINCIPAL,
)
from sns_listener.app.core.telemetry import Telemetry
from sns_listener.app.domain.errors import ProvisioningError, TeardownError
from sns_listener.app.domain.models import ProvisionedQueue, is_fifo_topic
from sns_listener.app.ports.queue_service import (
    QueueDoesNotExistError,
    QueueService,
    QueueServiceError,
)

_QUEUE_NAME_RE = re.compile(QUEUE_NAME_PATTERN)


@dataclass(frozen=True)
class QueueRequest:
    """Name and creation attributes for a queue subscribed to topic_arn."""

    name: str
    topic_arn: str
    is_fifo: bool
    attributes: dict[str, str] = field(default_factory=dict)


def generate_queue_name() -> str:
    return QUEUE_NAME_PREFIX + str(uuid.uuid4())


def build_queue_policy(topic_arn: str) -> str:
    return json.dumps(
        {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Principal": {"Service": SNS_SERVICE_PRINCIPAL},
                    "Action": "sqs:SendMessage",
                    "Resource": "*",
                    "Condition": {"ArnEquals": {"aws:SourceArn": topic_arn}},
                }
            ],
        }
    )


def build_queue_request(name: str, topic_arn: str) -> QueueRequest:
    is_fifo = is_fifo_topic(topic_arn)
    queue_name = name or generate_queue_name()
    attributes = {QUEUE_ATTRIBUTE.POLICY: build_queue_policy(topic_arn)}

    if is_fifo:
        queue_name += FIFO_SUFFIX
        attributes[QUEUE_ATTRIBUTE.FIFO_QUEUE] = "true"
        attributes[QUEUE_ATTRIBUTE.CONTENT_BASED_DEDUPLICATION] = "true"

    return QueueRequest(name=queue_name, topic_arn=topic_arn, is_fifo=is_fifo, attributes=attributes)


def is_valid_queue_name(name: str) -> bool:
    return _QUEUE_NAME_RE.fullmatch(name) is not None


class QueueProvisioner:
    """Creates and destroys the listener queue through the QueueService port."""

    def __init__(self, queue_service: QueueService, telemetry: Telemetry) -> None:
        self._queue_service = queue_service
        self._telemetry = telemetry

    async def provision(self, name: str, topic_arn: str) -> ProvisionedQueue:
        """Create the queue. The returned queue has no ARN yet; see fetch_arn."""
        request = build_queue_request(name, topic_arn)

        with self._telemetry.span(
            "create_queue",
            queue_name=request.name,
            topic_arn=topic_arn,
            is_fifo=request.is_fifo,
        ) as span:
            if not is_valid_queue_name(request.name):
                raise ProvisioningError(f"invalid queue name: {request.name}")

            self._telemetry.event(
                "queue_creating",
                queue_name=request.name,
                topic_arn=topic_arn,
                is_fifo=request.is_fifo,
            )
            try:
                queue_url = await self._queue_service.create_queue(request.name, request.attributes)
            except QueueServiceError as exc:
                raise ProvisioningError(f"unable to create queue {request.name}: {exc}") from exc

            Telemetry.annotate(span, queue_url=queue_url)
            self._telemetry.event("queue_created", queue_name=request.name, queue_url=queue_url)

        return ProvisionedQueue(name=request.name, url=queue_url, arn="", is_fifo=request.is_fifo)

    async def fetch_arn(self, queue_url: str) -> str:
        with self._telemetry.span("get_queue_arn", queue_url=queue_url) as span:
            try:
                queue_arn = await self._queue_service.get_queue_arn(queue_url)
            except QueueDoesNotExistError as exc:
                raise ProvisioningError(f"queue {queue_url} does not exist") from exc
            except QueueServiceError as exc:
                raise ProvisioningError(f"unable to read ARN of queue {queue_url}: {exc}") from exc

            if not queue_arn:
                raise ProvisioningError(f"queue {queue_url} has no ARN attribute")

            Telemetry.annotate(span, queue_arn=queue_arn)
            return queue_arn

    async def teardown(self, queue_url: str) -> TeardownError | None:
        """Delete the queue. Failures are returned, not raised."""
        with self._telemetry.span("delete_queue", queue_url=queue_url) as span:
            self._telemetry.event("queue_deleting", queue_url=queue_url)
            try:
                await self._queue_service.delete_queue(queue_url)
            except Exception as exc:
                self._telemetry.warning("unable to delete queue {}: {}", queue_url, exc)
                Telemetry.record_error(span, exc)
                error = TeardownError(f"unable to delete queue {queue_url}: {exc}", [exc])
                error.__cause__ = exc
                return error

            self._telemetry.event("queue_deleted", queue_url=queue_url)
            return None
