"""Listener-level constants shared across modules."""
from __future__ import annotations

from enum import Enum

QUEUE_NAME_PREFIX = "sns-listener-"
FIFO_SUFFIX = ".fifo"
QUEUE_NAME_PATTERN = r"^([A-Za-z0-9_-]{1,80}|[A-Za-z0-9_-]{1,75}\.fifo)$"

DEFAULT_POLLING_INTERVAL_SECONDS = 1.0
MAX_MESSAGES_PER_RECEIVE = 1
VISIBILITY_TIMEOUT_SECONDS = 60

SNS_SERVICE_PRINCIPAL = "sns.amazonaws.com"
SQS_PROTOCOL = "sqs"

TRACE_NAMESPACE = "sns_listener"


class QUEUE_ATTRIBUTE:
    POLICY = "Policy"
    FIFO_QUEUE = "FifoQueue"
    CONTENT_BASED_DEDUPLICATION = "ContentBasedDeduplication"
    QUEUE_ARN = "QueueArn"


class ListenerState(str, Enum):
    IDLE = "IDLE"
    RESOLVING = "RESOLVING"
    PROVISIONING = "PROVISIONING"
    SUBSCRIBING = "SUBSCRIBING"
    LISTENING = "LISTENING"
    TEARING_DOWN = "TEARING_DOWN"
    DONE = "DONE"
    FAILED = "FAILED"


class PollState(str, Enum):
    POLLING = "POLLING"
    STOPPED = "STOPPED"
