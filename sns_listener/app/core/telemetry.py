"""Injectable logging and tracing for the listener core.

The listener never configures loguru sinks or the global tracer provider. Callers hand
it a Telemetry; the default instance drops log events and traces with a no-op tracer.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from loguru import logger as default_logger
from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode, Tracer

from sns_listener.app.constants import TRACE_NAMESPACE
from sns_listener.app.core import SERVICE_NAME


class Telemetry:
    """Log events and spans for one listener instance."""

    def __init__(
        self,
        *,
        verbose: bool = False,
        tracer: Tracer | None = None,
        logger: Any | None = None,
    ) -> None:
        self._verbose = verbose
        self._tracer = tracer if tracer is not None else trace.NoOpTracer()
        self._logger = logger if logger is not None else default_logger

    @property
    def verbose(self) -> bool:
        return self._verbose

    def event(self, event: str, **kwargs: Any) -> None:
        if self._verbose:
            self._logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")

    def warning(self, message: str, *args: Any) -> None:
        if self._verbose:
            self._logger.warning(message, *args)

    @staticmethod
    def annotate(span: Span, **attributes: Any) -> None:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(f"{TRACE_NAMESPACE}.{key}", value)

    @staticmethod
    def record_error(span: Span, exc: BaseException) -> None:
        span.record_exception(exc)
        span.set_status(Status(StatusCode.ERROR, str(exc)))

    @contextmanager
    def span(self, name: str, **attributes: Any) -> Iterator[Span]:
        """Open a span; exceptions escaping the block mark it as failed."""
        with self._tracer.start_as_current_span(
            name,
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            self.annotate(span, **attributes)
            try:
                yield span
            except Exception as exc:
                self.record_error(span, exc)
                raise
            if not _has_error_status(span):
                span.set_status(Status(StatusCode.OK))


def _has_error_status(span: Span) -> bool:
    status = getattr(span, "status", None)
    return status is not None and status.status_code is StatusCode.ERROR
