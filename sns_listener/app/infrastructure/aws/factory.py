"""AWS adapter factory: the only place that builds boto3 clients and concrete services."""
from __future__ import annotations

from typing import Any

import boto3

from sns_listener.app.config.settings import Settings
from sns_listener.app.infrastructure.aws.sns_topic_service import SnsTopicService
from sns_listener.app.infrastructure.aws.sqs_queue_service import SqsQueueService
from sns_listener.app.infrastructure.aws.ssm_parameter_store import SsmParameterStore
from sns_listener.app.ports.parameter_store import ParameterStore
from sns_listener.app.ports.queue_service import QueueService
from sns_listener.app.ports.topic_service import TopicService


def create_session(settings: Settings) -> boto3.session.Session:
    """Default credential chain; the region falls back to the SDK's own resolution when unset."""
    return boto3.session.Session(region_name=settings.aws_region or None)


def _client(session: boto3.session.Session, service: str, settings: Settings) -> Any:
    return session.client(service, endpoint_url=settings.aws_endpoint_url or None)


def create_queue_service(settings: Settings, session: boto3.session.Session) -> QueueService:
    return SqsQueueService(_client(session, "sqs", settings))


def create_topic_service(settings: Settings, session: boto3.session.Session) -> TopicService:
    return SnsTopicService(_client(session, "sns", settings))


def create_parameter_store(settings: Settings, session: boto3.session.Session) -> ParameterStore:
    return SsmParameterStore(_client(session, "ssm", settings))
