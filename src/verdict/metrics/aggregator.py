"""Suite-level statistics over case results."""

from __future__ import annotations

import math
from collections.abc import Sequence

from verdict.models import (
    ResponseTimeStats,
    ResultStatus,
    TestCaseResult,
    TestMetrics,
    TestSummary,
)


def nearest_rank(sorted_values: Sequence[float], p: float) -> float:
    """Value at index ``floor(n * p)`` of an ascending sample.

    >>> nearest_rank([10, 20, 30, 40, 100], 0.95)
    100
    """
    if not sorted_values:
        return 0
    index = min(math.floor(len(sorted_values) * p), len(sorted_values) - 1)
    return sorted_values[index]


def response_time_stats(durations: Sequence[float]) -> ResponseTimeStats:
    """min / max / avg / p95 / p99 of ``durations``; all zero when empty."""
    if not durations:
        return ResponseTimeStats()

    ordered = sorted(durations)
    return ResponseTimeStats(
        min=ordered[0],
        max=ordered[-1],
        avg=math.fsum(ordered) / len(ordered),
        p95=nearest_rank(ordered, 0.95),
        p99=nearest_rank(ordered, 0.99),
    )


def summarize(case_results: Sequence[TestCaseResult]) -> TestSummary:
    """Count outcomes and compute the pass rate as a percentage."""
    total = len(case_results)
    passed = sum(1 for r in case_results if r.status == ResultStatus.PASSED)
    return TestSummary(
        total=total,
        passed=passed,
        failed=sum(1 for r in case_results if r.status == ResultStatus.FAILED),
        errors=sum(1 for r in case_results if r.status == ResultStatus.ERROR),
        skipped=sum(1 for r in case_results if r.status == ResultStatus.SKIPPED),
        pass_rate=passed / total * 100 if total else 0,
    )


def overall_status(summary: TestSummary) -> ResultStatus:
    """Any error wins over any failure, which wins over a pass."""
    if summary.errors > 0:
        return ResultStatus.ERROR
    if summary.failed > 0:
        return ResultStatus.FAILED
    return ResultStatus.PASSED


def aggregate(
    case_results: Sequence[TestCaseResult],
    wall_duration_ms: float = 0,
    summary: TestSummary | None = None,
) -> TestMetrics:
    """Reduce case results into run metrics.

    Skipped cases never reached the subject, so they are left out of the
    response time sample and the throughput count.
    """
    summary = summary or summarize(case_results)
    executed = [r for r in case_results if r.status != ResultStatus.SKIPPED]

    error_rate = (summary.failed + summary.errors) / summary.total * 100 if summary.total else 0
    throughput = len(executed) / (wall_duration_ms / 1000) if wall_duration_ms > 0 else 0

    return TestMetrics(
        response_time=response_time_stats([r.duration for r in executed]),
        throughput=throughput,
        error_rate=error_rate,
    )
