"""Run tracer - optional OpenTelemetry spans around runs and cases."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from opentelemetry.trace import Span, StatusCode

from verdict.tracing import get_tracer


if TYPE_CHECKING:
    from verdict.models import TestCase, TestCaseResult, TestResults, TestSuite


def _truncate(text: str, max_len: int = 1000) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


@dataclass
class RunTracer:
    """Opens ``suite.<name>`` and ``case.<name>`` spans when enabled.

    ``include_content`` copies each case input into its span.
    """

    enabled: bool = False
    include_content: bool = True

    @contextmanager
    def suite_span(self, suite: TestSuite) -> Iterator[Span | None]:
        if not self.enabled:
            yield None
            return

        with get_tracer().start_as_current_span(f"suite.{suite.name}") as span:
            span.set_attribute("suite.id", suite.id)
            span.set_attribute("suite.target_type", suite.target_type.value)
            span.set_attribute("suite.target_id", suite.target_id)
            span.set_attribute("suite.parallel", suite.configuration.parallel)
            yield span

    @contextmanager
    def case_span(self, case: TestCase) -> Iterator[Span | None]:
        if not self.enabled:
            yield None
            return

        with get_tracer().start_as_current_span(f"case.{case.name}") as span:
            span.set_attribute("case.id", case.id)
            span.set_attribute("case.type", case.type.value)
            span.set_attribute("case.timeout_ms", case.timeout)
            if case.tags:
                span.set_attribute("case.tags", list(case.tags))
            if self.include_content:
                span.set_attribute("case.input", _truncate(case.input.to_json()))
            yield span

    def record_case(self, span: Span | None, result: TestCaseResult, error: BaseException | None = None) -> None:
        if not span:
            return
        span.set_attribute("case.status", result.status.value)
        span.set_attribute("case.duration_ms", result.duration)
        span.set_attribute("case.attempts", result.attempts)
        if error is not None:
            span.set_status(StatusCode.ERROR, str(error))
            span.record_exception(error)

    def record_suite(self, span: Span | None, results: TestResults) -> None:
        if not span:
            return
        span.set_attribute("suite.status", results.status.value)
        span.set_attribute("suite.duration_ms", results.duration)
        span.set_attribute("suite.total", results.summary.total)
        span.set_attribute("suite.pass_rate", results.summary.pass_rate)

    def get_trace_id(self, span: Span | None) -> str | None:
        if not span:
            return None
        ctx = span.get_span_context()
        return format(ctx.trace_id, "032x") if ctx.trace_id else None
