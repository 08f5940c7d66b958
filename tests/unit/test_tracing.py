"""Unit tests for tracing setup."""

import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor

from replica_store.adapters.outbound.memory_blob_client import InMemoryBlobNodeClient
from replica_store.infrastructure.config import Config, ObservabilityConfig
from replica_store.infrastructure.container import Container
from replica_store.infrastructure.tracing import setup_tracing, span_processor


@pytest.mark.unit
class TestTracing:
    """Test tracer provider installation."""

    def test_console_export_is_synchronous(self):
        """Test that console spans bypass the batch worker."""
        processor = span_processor(Config())
        assert isinstance(processor, SimpleSpanProcessor)

    def test_otlp_export_is_batched(self):
        """Test that collector export keeps batching."""
        config = Config(observability=ObservabilityConfig(otlp_endpoint="localhost:4317"))
        processor = span_processor(config)
        try:
            assert isinstance(processor, BatchSpanProcessor)
        finally:
            processor.shutdown()

    def test_provider_installed_once(self):
        """Test that repeated setup keeps the first global provider."""
        setup_tracing(Config())
        provider = trace.get_tracer_provider()
        assert isinstance(provider, TracerProvider)

        setup_tracing(Config())
        Container.create(blob_client=InMemoryBlobNodeClient())
        assert trace.get_tracer_provider() is provider
