"""Tracer provider setup for provider spans.

Providers open ``llm.generate`` spans through the global tracer; until
init_telemetry() installs a provider those spans are no-ops.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter

from .. import __version__
from ..config import TelemetryConfig

DEFAULT_OTLP_ENDPOINT = "http://localhost:4317"

_provider: Optional[TracerProvider] = None


def _otlp_exporter(config: TelemetryConfig) -> SpanExporter:
    endpoint = config.otlp_endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", DEFAULT_OTLP_ENDPOINT)
    return OTLPSpanExporter(endpoint=endpoint, insecure=not endpoint.startswith("https://"))


def init_telemetry(
    config: Optional[TelemetryConfig] = None,
    exporter: Optional[SpanExporter] = None,
) -> TracerProvider:
    """Install a tracer provider that batches provider spans to an exporter.

    Args:
        config: [telemetry] settings (service name, endpoint, batching)
        exporter: Span exporter to use instead of OTLP (e.g. an in-memory exporter)

    Returns:
        The installed provider; later calls return it unchanged
    """
    global _provider
    if _provider is not None:
        return _provider

    config = config or TelemetryConfig()
    provider = TracerProvider(
        resource=Resource.create(
            {"service.name": config.service_name, "service.version": __version__}
        )
    )
    provider.add_span_processor(
        BatchSpanProcessor(
            exporter or _otlp_exporter(config),
            max_queue_size=config.max_queue_size,
            schedule_delay_millis=config.schedule_delay_ms,
            max_export_batch_size=config.max_export_batch_size,
        )
    )
    trace.set_tracer_provider(provider)

    _provider = provider
    logging.info("[shuttle.tracing] Tracing enabled for service %s", config.service_name)
    return provider


def shutdown_telemetry() -> None:
    """Flush pending spans and stop the provider installed by init_telemetry()."""
    global _provider
    if _provider is None:
        return
    _provider.shutdown()
    _provider = None
    logging.info("[shuttle.tracing] Tracing stopped")


__all__ = ["init_telemetry", "shutdown_telemetry"]
