"""Wires settings, telemetry and AWS services into a TopicListener, and closes them on exit.

The only module above infrastructure that knows which backend and tracer are in use.
"""
from __future__ import annotations

from loguru import logger
from opentelemetry.sdk.trace import TracerProvider

from sns_listener.app.application.topic_listener import TopicListener
from sns_listener.app.config.settings import Settings
from sns_listener.app.core.telemetry import Telemetry
from sns_listener.app.domain.models import ListenerConfig
from sns_listener.app.infrastructure.factory import CloudServices, create_cloud_services
from sns_listener.app.infrastructure.tracing.otlp import create_tracer_provider, get_tracer


def build_listener_config(settings: Settings) -> ListenerConfig:
    return ListenerConfig(
        topic_arn=settings.topic_arn.strip(),
        parameter_path=settings.parameter_path.strip(),
        queue_name=settings.queue_name.strip(),
        polling_interval_seconds=settings.polling_interval_ms / 1000,
        verbose=settings.verbose,
    )


class ListenerDependencies:
    """Holds wired listener dependencies and their lifecycle."""

    def __init__(self, *, settings: Settings) -> None:
        self._settings = settings
        self._services: CloudServices | None = None
        self._tracer_provider: TracerProvider | None = None
        self._listener: TopicListener | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def listener(self) -> TopicListener:
        if self._listener is None:
            raise RuntimeError("listener is not initialized")
        return self._listener

    def connect(self) -> None:
        telemetry = Telemetry(verbose=self._settings.verbose)
        if self._settings.otlp_enabled:
            self._tracer_provider = create_tracer_provider(self._settings.otel_service_name)
            telemetry = Telemetry(
                verbose=self._settings.verbose,
                tracer=get_tracer(self._tracer_provider),
            )

        self._services = create_cloud_services(self._settings)
        self._listener = TopicListener(
            build_listener_config(self._settings),
            self._services.queue_service,
            self._services.topic_service,
            self._services.parameter_store,
            telemetry=telemetry,
        )

    async def close(self) -> None:
        if self._services is not None:
            try:
                await self._services.queue_service.close()
            except Exception as exc:
                logger.warning("queue service close failed: {}", exc)
            try:
                await self._services.topic_service.close()
            except Exception as exc:
                logger.warning("topic service close failed: {}", exc)
            if self._services.parameter_store is not None:
                try:
                    await self._services.parameter_store.close()
                except Exception as exc:
                    logger.warning("parameter store close failed: {}", exc)
            self._services = None

        if self._tracer_provider is not None:
            try:
                self._tracer_provider.shutdown()
            except Exception as exc:
                logger.warning("tracer provider shutdown failed: {}", exc)
            self._tracer_provider = None

        self._listener = None


def create_listener_dependencies(settings: Settings | None = None) -> ListenerDependencies:
    return ListenerDependencies(settings=settings or Settings())
