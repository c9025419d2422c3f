"""OpenTelemetry setup and span helpers for the gateway."""

from contextlib import contextmanager

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

from bookpay.common.config import settings


tracer = trace.get_tracer("bookpay")


def setup_tracing(service_name: str) -> None:
    """Register a tracer provider with OTLP HTTP exporter when enabled."""

    if not settings.otel_enabled:
        return
    resource = Resource.create({"service.name": service_name})
    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)


def instrument_app(app: FastAPI) -> None:
    """Attach FastAPI auto-instrumentation for request spans."""

    if settings.otel_enabled:
        FastAPIInstrumentor.instrument_app(app)


@contextmanager
def external_call_span(system: str, operation: str, **attributes):
    """Wrap one outbound call to the processor or the store in a client span."""

    with tracer.start_as_current_span(
        f"{system}.{operation}", kind=trace.SpanKind.CLIENT
    ) as span:
        span.set_attribute("peer.service", system)
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)
        yield span
