"""Case runner - executes one test case against its target."""

from __future__ import annotations

import logging
import time
from typing import Any

from verdict.adapters import CancelToken, Deadline, TargetAdapter
from verdict.evaluation import CustomPredicateRegistry, evaluate_case, to_structured
from verdict.execution.tracer import RunTracer
from verdict.models import (
    CaseMetrics,
    LogEntry,
    ResultStatus,
    TargetType,
    TestCase,
    TestCaseResult,
    utcnow,
)


logger = logging.getLogger(__name__)


def skipped_result(case: TestCase, reason: str) -> TestCaseResult:
    """Result for a case that never reached the target."""
    now = utcnow()
    return TestCaseResult(
        case_id=case.id,
        name=case.name,
        status=ResultStatus.SKIPPED,
        input=case.input,
        expected_output=case.expected_output,
        logs=[LogEntry(timestamp=now, level="info", message=f"Skipped: {reason}")],
        started_at=now,
        completed_at=now,
        duration=0,
        attempts=0,
    )


def error_result(case: TestCase, error: BaseException) -> TestCaseResult:
    """Result for a case whose execution blew up outside the adapter call."""
    now = utcnow()
    message = str(error) or type(error).__name__
    return TestCaseResult(
        case_id=case.id,
        name=case.name,
        status=ResultStatus.ERROR,
        input=case.input,
        expected_output=case.expected_output,
        error=message,
        logs=[LogEntry(timestamp=now, level="error", message=message, metadata={"errorType": type(error).__name__})],
        started_at=now,
        completed_at=now,
        duration=0,
    )


class CaseRunner:
    """Runs a single enabled case, with retries, and never raises.

    The case's ``timeout`` becomes the adapter deadline; the runner keeps
    no timer of its own. Only the final attempt is returned.
    """

    def __init__(
        self,
        adapter: TargetAdapter,
        *,
        registry: CustomPredicateRegistry | None = None,
        tracer: RunTracer | None = None,
    ) -> None:
        self.adapter = adapter
        self.registry = registry
        self.tracer = tracer or RunTracer()

    async def run(
        self,
        case: TestCase,
        target_type: TargetType,
        target_id: str,
        cancel: CancelToken,
    ) -> TestCaseResult:
        """Run ``case`` until it passes or its retry budget is spent."""
        try:
            return await self._run_with_retries(case, target_type, target_id, cancel)
        except Exception as e:  # noqa: BLE001
            logger.exception("Unexpected failure while running case %s", case.name)
            return error_result(case, e)

    async def _run_with_retries(
        self,
        case: TestCase,
        target_type: TargetType,
        target_id: str,
        cancel: CancelToken,
    ) -> TestCaseResult:
        result: TestCaseResult | None = None
        retries_left = case.retries
        attempt = 0

        while True:
            if cancel.cancelled:
                if result is None:
                    return skipped_result(case, cancel.reason or "run cancelled")
                return result

            attempt += 1
            result = await self._attempt(case, target_type, target_id, cancel, attempt)

            if result.status == ResultStatus.PASSED or retries_left <= 0:
                return result

            retries_left -= 1
            logger.info(
                "Case %s %s on attempt %d, retrying (%d left)",
                case.name,
                result.status.value,
                attempt,
                retries_left,
            )

    async def _attempt(
        self,
        case: TestCase,
        target_type: TargetType,
        target_id: str,
        cancel: CancelToken,
        attempt: int,
    ) -> TestCaseResult:
        started_at = utcnow()
        start = time.perf_counter()
        logs = [LogEntry(timestamp=started_at, level="info", message=f"Executing case '{case.name}' (attempt {attempt})")]

        with self.tracer.case_span(case) as span:
            if trace_id := self.tracer.get_trace_id(span):
                logs[0].metadata = {"traceId": trace_id}

            error: Exception | None = None
            output: Any = None
            try:
                raw = await self.adapter.execute(
                    target_type, target_id, case.input, Deadline.after(case.timeout), cancel
                )
            except Exception as e:  # noqa: BLE001
                error = e

            if error is None:
                output = to_structured(raw)
                verdict = evaluate_case(output, case.assertions, case.expected_output, self.registry)
                status = ResultStatus.PASSED if verdict.passed else ResultStatus.FAILED
                assertions = verdict.assertions
                for failed in (a for a in assertions if not a.passed):
                    logs.append(LogEntry(level="warn", message=failed.message))
                message = None
            else:
                status = ResultStatus.ERROR
                assertions = []
                message = str(error) or type(error).__name__
                logs.append(
                    LogEntry(level="error", message=message, metadata={"errorType": type(error).__name__})
                )
                logger.debug("Case %s errored: %s", case.name, message)

            duration = (time.perf_counter() - start) * 1000
            result = TestCaseResult(
                case_id=case.id,
                name=case.name,
                status=status,
                input=case.input,
                actual_output=output,
                expected_output=case.expected_output,
                assertions=assertions,
                error=message,
                logs=logs,
                metrics=CaseMetrics(response_time=duration),
                started_at=started_at,
                completed_at=utcnow(),
                duration=duration,
                attempts=attempt,
            )
            self.tracer.record_case(span, result, error)

        return result
