"""Service factory: selects the cloud backend from config. Only place that imports concrete adapters."""
from __future__ import annotations

from dataclasses import dataclass

from sns_listener.app.config.settings import Settings
from sns_listener.app.infrastructure.aws.factory import (
    create_parameter_store,
    create_queue_service,
    create_session,
    create_topic_service,
)
from sns_listener.app.ports.parameter_store import ParameterStore
from sns_listener.app.ports.queue_service import QueueService
from sns_listener.app.ports.topic_service import TopicService


@dataclass
class CloudServices:
    queue_service: QueueService
    topic_service: TopicService
    parameter_store: ParameterStore | None = None


def create_cloud_services(settings: Settings) -> CloudServices:
    backend = settings.service_backend.strip().lower()

    if backend == "aws":
        session = create_session(settings)
        return CloudServices(
            queue_service=create_queue_service(settings, session),
            topic_service=create_topic_service(settings, session),
            parameter_store=create_parameter_store(settings, session) if settings.parameter_path else None,
        )

    raise ValueError(f"Unsupported service backend: {backend}")
