"""OpenTelemetry tracing helpers for the poll loop and publisher.

The queue client only uses the OpenTelemetry API, so spans are no-ops until
a process calls ``start_tracing``, which installs an SDK provider that
exports spans to the console.
"""

from __future__ import annotations

from opentelemetry import trace  # type: ignore
from opentelemetry.sdk.resources import Resource  # type: ignore
from opentelemetry.sdk.trace import TracerProvider  # type: ignore
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor  # type: ignore
from opentelemetry.trace import Tracer  # type: ignore


TRACER_NAME = "sqs-commons"


def start_tracing(service_name: str = TRACER_NAME) -> Tracer:
    """Initialize a TracerProvider with a console exporter."""
    resource = Resource.create({"service.name": service_name})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)
    return trace.get_tracer(service_name)


def get_tracer(service_name: str = TRACER_NAME) -> Tracer:
    return trace.get_tracer(service_name)
