"""JSONL span exporter for run and case spans."""

import json
import logging
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult


logger = logging.getLogger(__name__)


class StreamingFileSpanExporter(SpanExporter):
    """Appends each finished span as one JSON line.

    The target file is truncated when the exporter is created and whenever it
    is redirected, so a file only ever holds the spans of one CLI invocation.
    """

    def __init__(self, output_path: Path | str) -> None:
        self._lock = threading.Lock()
        self._closed = False
        self.output_path = self._prepare(output_path)

    @staticmethod
    def _prepare(output_path: Path | str) -> Path:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("", encoding="utf-8")
        return path

    def redirect(self, output_path: Path | str) -> None:
        """Send later spans to ``output_path`` (emptied first)."""
        with self._lock:
            self.output_path = self._prepare(output_path)

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        if self._closed:
            return SpanExportResult.FAILURE
        lines = [json.dumps(span_to_record(span), default=str) for span in spans]
        with self._lock:
            try:
                with self.output_path.open("a", encoding="utf-8") as f:
                    f.writelines(line + "\n" for line in lines)
            except OSError as e:
                logger.error("Could not write %d spans to %s: %s", len(lines), self.output_path, e)
                return SpanExportResult.FAILURE
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        self._closed = True

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        # every batch is written and closed inside export
        return True


def span_to_record(span: ReadableSpan) -> dict[str, Any]:
    """Flatten a finished span into the JSON shape written per line."""
    context = span.context
    return {
        "traceId": format(context.trace_id, "032x"),
        "spanId": format(context.span_id, "016x"),
        "parentSpanId": format(span.parent.span_id, "016x") if span.parent else None,
        "name": span.name,
        "startTimeUnixNano": span.start_time,
        "endTimeUnixNano": span.end_time,
        "attributes": dict(span.attributes or {}),
        "status": {
            "code": span.status.status_code.name,
            "description": span.status.description,
        },
        "events": [
            {"name": event.name, "timeUnixNano": event.timestamp, "attributes": dict(event.attributes or {})}
            for event in span.events
        ],
    }
