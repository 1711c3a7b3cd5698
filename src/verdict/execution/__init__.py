"""Suite execution: the engine, the per-case runner and run tracing."""

from verdict.execution.case_runner import CaseRunner, error_result, skipped_result
from verdict.execution.engine import DEFAULT_MAX_CONCURRENCY, ExecutionEngine
from verdict.execution.tracer import RunTracer


__all__ = [
    "DEFAULT_MAX_CONCURRENCY",
    "CaseRunner",
    "ExecutionEngine",
    "RunTracer",
    "error_result",
    "skipped_result",
]
