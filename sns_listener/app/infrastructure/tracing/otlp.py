"""OpenTelemetry bootstrap: OTLP gRPC span exporter over insecure transport.

The exporter destination follows the standard OTEL_EXPORTER_OTLP_* environment variables.
The provider is returned rather than installed globally; callers pass its tracer to the listener.
"""
from __future__ import annotations

from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Tracer

TRACER_NAME = "sns_listener"


def create_tracer_provider(service_name: str) -> TracerProvider:
    resource = Resource.create({"service.name": service_name})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(insecure=True)))
    return provider


def get_tracer(provider: TracerProvider) -> Tracer:
    return provider.get_tracer(TRACER_NAME)
