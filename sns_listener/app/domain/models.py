"""Domain models."""
from __future__ import annotations

from dataclasses import dataclass

from sns_listener.app.constants import DEFAULT_POLLING_INTERVAL_SECONDS, FIFO_SUFFIX


@dataclass(frozen=True)
class ListenerConfig:
    """What to listen to and how often to poll.

    parameter_path, when set, wins over topic_arn: the listener resolves it during
    setup and uses the stored value as the topic ARN.
    """

    topic_arn: str = ""
    parameter_path: str = ""
    queue_name: str = ""
    polling_interval_seconds: float = DEFAULT_POLLING_INTERVAL_SECONDS
    verbose: bool = False

    def __post_init__(self) -> None:
        if not self.topic_arn and not self.parameter_path:
            raise ValueError("either topic_arn or parameter_path must be set")


def is_fifo_topic(topic_arn: str) -> bool:
    return topic_arn.endswith(FIFO_SUFFIX)


@dataclass(frozen=True)
class ProvisionedQueue:
    """A queue created for one listener run."""

    name: str
    url: str
    arn: str
    is_fifo: bool


@dataclass(frozen=True)
class Subscription:
    arn: str


@dataclass(frozen=True)
class QueueMessage:
    """Raw message as returned by a receive call."""

    message_id: str
    receipt_handle: str
    body: str


@dataclass(frozen=True)
class MessageContent:
    """Body and ID of a received message. For an SNS subscription the body is the full notification."""

    body: str
    id: str

    @staticmethod
    def from_queue_message(message: QueueMessage) -> "MessageContent":
        return MessageContent(body=message.body, id=message.message_id)
