"""OpenTelemetry tracing configuration for Replica Store."""

from __future__ import annotations

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)

from replica_store import __version__
from replica_store.infrastructure.config import Config, get_config


def span_processor(config: Config) -> SpanProcessor:
    """Build the span processor for the configured exporter.

    OTLP export is batched. Console export is synchronous so nothing is left
    in a worker queue when stdout closes at interpreter exit.
    """
    if config.observability.otlp_endpoint:
        otlp_exporter = OTLPSpanExporter(
            endpoint=config.observability.otlp_endpoint,
            insecure=True,
        )
        return BatchSpanProcessor(otlp_exporter)
    return SimpleSpanProcessor(ConsoleSpanExporter())


def setup_tracing(config: Config | None = None) -> trace.Tracer:
    """Configure OpenTelemetry tracing for the replica store.

    Spans go to the OTLP collector when an endpoint is configured and to the
    console otherwise. The global provider is installed once per process;
    later calls reuse whatever SDK provider is already in place.

    Args:
        config: Configuration. Defaults to the cached process configuration.

    Returns:
        Tracer for replica store spans.
    """
    if isinstance(trace.get_tracer_provider(), TracerProvider):
        return trace.get_tracer("replica_store")

    config = config or get_config()

    resource = Resource.create(
        {
            "service.name": "replica_store",
            "service.version": __version__,
            "deployment.environment": config.observability.environment,
        }
    )

    provider = TracerProvider(resource=resource)
    provider.add_span_processor(span_processor(config))
    trace.set_tracer_provider(provider)

    return trace.get_tracer("replica_store")


def get_tracer(name: str = "replica_store") -> trace.Tracer:
    """Get a tracer instance."""
    return trace.get_tracer(name)
