"""
Test helpers for the observability stack.

In-memory span capture and metric lookups so tests can assert on what the
fetch cycle and the scheduler emitted.
"""

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from prometheus_client import REGISTRY


def setup_test_tracing(service_name: str = "test-service") -> InMemorySpanExporter:
    """
    Install a TracerProvider that records finished spans in memory.

    Replaces any provider installed earlier in the session, so each test
    gets its own exporter.
    """
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    exporter = InMemorySpanExporter()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    # bypass the set-once guard
    trace._TRACER_PROVIDER = None
    trace._TRACER_PROVIDER_SET_ONCE._done = False
    trace.set_tracer_provider(provider)
    return exporter


def get_spans_by_name(exporter: InMemorySpanExporter, name: str) -> list[ReadableSpan]:
    """Finished spans with the given operation name."""
    return [s for s in exporter.get_finished_spans() if s.name == name]


def sample_value(name: str, labels: dict[str, str] | None = None) -> float:
    """Current value of a sample in the default registry, ``0.0`` when absent."""
    value = REGISTRY.get_sample_value(name, labels or {})
    return value if value is not None else 0.0
