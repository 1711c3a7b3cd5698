"""Tracer provider setup for run tracing."""

import logging
from pathlib import Path

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor

from verdict.tracing.exporters import StreamingFileSpanExporter


logger = logging.getLogger(__name__)

_exporter: StreamingFileSpanExporter | None = None


def init_tracing(
    *,
    service_name: str = "verdict",
    output_path: Path | str = "traces.jsonl",
) -> StreamingFileSpanExporter:
    """Install a tracer provider that streams spans to ``output_path``.

    OpenTelemetry accepts a global provider only once per process, so later
    calls keep the provider and redirect its exporter to the new file.
    """
    global _exporter

    if _exporter is not None:
        _exporter.redirect(output_path)
        logger.debug("Redirected spans to %s", output_path)
        return _exporter

    _exporter = StreamingFileSpanExporter(output_path)
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(SimpleSpanProcessor(_exporter))
    trace.set_tracer_provider(provider)
    logger.debug("Tracing spans to %s", output_path)
    return _exporter


def get_tracer(name: str = "verdict") -> trace.Tracer:
    return trace.get_tracer(name)
