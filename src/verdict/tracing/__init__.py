from verdict.tracing.exporters import StreamingFileSpanExporter
from verdict.tracing.lifecycle import get_tracer, init_tracing

__all__ = [
    "StreamingFileSpanExporter",
    "get_tracer",
    "init_tracing",
]
