"""Execution engine - owns the suite lifecycle for each run."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from pathlib import Path

from verdict.adapters import CancelToken, TargetAdapter
from verdict.errors import (
    ExecutionError,
    StoreError,
    SuiteBusyError,
    SuiteNotFoundError,
    SuiteNotRunningError,
    VerdictError,
)
from verdict.evaluation import CustomPredicateRegistry
from verdict.execution.case_runner import CaseRunner, error_result, skipped_result
from verdict.execution.tracer import RunTracer
from verdict.metrics import aggregate, overall_status, summarize
from verdict.models import (
    ResultStatus,
    SuiteStatus,
    TestCase,
    TestCaseResult,
    TestResults,
    TestSuite,
    utcnow,
)
from verdict.notifications import Notifier, should_notify
from verdict.reports import ArtifactWriter, Reporter
from verdict.storage import SuiteStore


logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 10


class ExecutionEngine:
    """Runs suites loaded from a store against a target adapter.

    At most one run per suite is in flight per engine; different suites may
    run concurrently. Each run gets a ``CancelToken`` registered under the
    suite id until the run finishes.

    Args:
        store: Where suites are loaded from and results are written to.
        adapter: Executes case inputs against the suite's subject.
        notifier: Announces finished runs when the suite asks for it.
        registry: Custom assertion predicates, keyed by operator name.
        tracer: Span recorder; disabled by default.
        reporter: Receives lifecycle events, e.g. a ``ConsoleReporter``.
        artifacts_dir: Root directory for report files. Reports are only
            written when this is set and the suite enables reporting.
        default_max_concurrency: Cap used in parallel mode when a suite's
            ``max_concurrency`` is not positive.
    """

    def __init__(
        self,
        store: SuiteStore,
        adapter: TargetAdapter,
        notifier: Notifier | None = None,
        *,
        registry: CustomPredicateRegistry | None = None,
        tracer: RunTracer | None = None,
        reporter: Reporter | None = None,
        artifacts_dir: str | Path | None = None,
        default_max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        self.store = store
        self.adapter = adapter
        self.notifier = notifier
        self.tracer = tracer or RunTracer()
        self.reporter = reporter
        self.artifacts = ArtifactWriter(artifacts_dir) if artifacts_dir else None
        self.default_max_concurrency = max(1, default_max_concurrency)
        self.case_runner = CaseRunner(adapter, registry=registry, tracer=self.tracer)
        self._running: dict[str, CancelToken] = {}

    def is_running(self, suite_id: str) -> bool:
        return suite_id in self._running

    async def run(self, suite_id: str) -> TestResults:
        """Run every enabled case of a suite and return the composed results.

        Raises:
            SuiteNotFoundError: The suite does not exist.
            SuiteBusyError: The suite has a run in flight here or is stored
                as ``running`` by another engine. See `reset`.
            StoreError: The store failed before the run started. The suite
                status is left unchanged.
            ExecutionError: The run failed outside of any single case. The
                suite is marked ``failed``.
        """
        suite, token = self._admit(suite_id)
        logger.info("Starting run of suite %s (%s)", suite.name, suite_id)

        try:
            results = await self._execute(suite, token)
        except Exception as e:
            logger.exception("Run of suite %s failed", suite_id)
            self._mark_failed(suite)
            raise ExecutionError(f"Run of suite {suite_id} failed: {e}") from e
        finally:
            self._running.pop(suite_id, None)

        logger.info(
            "Finished run of suite %s: %s (%d/%d passed) in %.0fms",
            suite_id,
            results.status.value,
            results.summary.passed,
            results.summary.total,
            results.duration,
        )
        await self._notify(suite, results)
        return results

    def cancel(self, suite_id: str, reason: str = "Test aborted") -> None:
        """Signal the in-flight run of ``suite_id`` to stop.

        In-flight adapter calls observe the token; cases not yet started are
        recorded as skipped.
        """
        token = self._running.get(suite_id)
        if token is None:
            raise SuiteNotRunningError(suite_id)
        logger.info("Cancelling run of suite %s", suite_id)
        token.cancel(reason)

    def reset(self, suite_id: str) -> TestSuite:
        """Mark a suite left ``running`` by a lost run as ``failed``.

        A run that died with its process never reaches a terminal state, and
        the stored ``running`` status then rejects every new run. Suites not
        stored as ``running`` are returned unchanged.

        Raises:
            SuiteNotFoundError: The suite does not exist.
            SuiteBusyError: This engine still has a run of the suite in flight.
        """
        if suite_id in self._running:
            raise SuiteBusyError(suite_id)
        try:
            suite = self.store.load(suite_id)
        except VerdictError:
            raise
        except Exception as e:
            raise StoreError(f"Could not load suite {suite_id}: {e}") from e
        if suite is None:
            raise SuiteNotFoundError(suite_id)
        if suite.status != SuiteStatus.RUNNING:
            return suite

        logger.warning("Resetting suite %s: stored as running with no run in this engine", suite_id)
        suite.transition(SuiteStatus.FAILED)
        try:
            self.store.update_status(suite_id, SuiteStatus.FAILED)
        except Exception as e:
            raise StoreError(f"Could not reset suite {suite_id}: {e}") from e
        return suite

    def _admit(self, suite_id: str) -> tuple[TestSuite, CancelToken]:
        try:
            suite = self.store.load(suite_id)
        except VerdictError:
            raise
        except Exception as e:
            raise StoreError(f"Could not load suite {suite_id}: {e}") from e
        if suite is None:
            raise SuiteNotFoundError(suite_id)

        # the stored status covers runs owned by other engines on the same store
        if suite_id in self._running or suite.status == SuiteStatus.RUNNING:
            logger.warning("Rejected run of suite %s: already running", suite_id)
            raise SuiteBusyError(suite_id)

        token = CancelToken()
        self._running[suite_id] = token
        try:
            suite.transition(SuiteStatus.RUNNING)
            suite.last_run_at = utcnow()
            self.store.update_status(suite_id, SuiteStatus.RUNNING)
        except VerdictError:
            self._running.pop(suite_id, None)
            raise
        except Exception as e:
            self._running.pop(suite_id, None)
            raise StoreError(f"Could not mark suite {suite_id} as running: {e}") from e
        return suite, token

    async def _execute(self, suite: TestSuite, token: CancelToken) -> TestResults:
        config = suite.configuration
        cases = suite.enabled_cases
        started_at = utcnow()
        start = time.perf_counter()

        if self.reporter:
            await self.reporter.on_run_start(suite)

        with self.tracer.suite_span(suite) as span:
            if config.parallel:
                case_results = await self._run_parallel(suite, cases, token)
            else:
                case_results = await self._run_sequential(suite, cases, token)

            duration = (time.perf_counter() - start) * 1000
            summary = summarize(case_results)
            results = TestResults(
                suite_id=suite.id,
                status=overall_status(summary),
                summary=summary,
                case_results=case_results,
                metrics=aggregate(case_results, duration, summary),
                started_at=started_at,
                completed_at=utcnow(),
                duration=duration,
            )
            self.tracer.record_suite(span, results)

        if self.artifacts:
            try:
                results.artifacts = self.artifacts.write(suite, results)
            except OSError as e:
                logger.warning("Could not write reports for suite %s: %s", suite.id, e)

        suite.transition(SuiteStatus.CANCELLED if token.cancelled else SuiteStatus.COMPLETED)
        suite.results = results
        suite.updated_at = utcnow()
        self._persist(suite, results)
        await self._report_completion(suite, results, token.cancelled)
        return results

    async def _run_sequential(
        self, suite: TestSuite, cases: Sequence[TestCase], token: CancelToken
    ) -> list[TestCaseResult]:
        results: list[TestCaseResult] = []
        fail_fast = suite.configuration.fail_fast

        for index, case in enumerate(cases):
            if token.cancelled:
                results.extend(await self._skip_rest(cases[index:], token.reason or "run cancelled"))
                break

            result = await self.case_runner.run(case, suite.target_type, suite.target_id, token)
            results.append(result)
            if self.reporter:
                await self.reporter.on_case_complete(result)

            if fail_fast and result.status == ResultStatus.FAILED:
                logger.info("Fail-fast: stopping suite %s after case %s failed", suite.id, case.name)
                results.extend(await self._skip_rest(cases[index + 1 :], f"fail-fast after '{case.name}'"))
                break

        return results

    async def _run_parallel(
        self, suite: TestSuite, cases: Sequence[TestCase], token: CancelToken
    ) -> list[TestCaseResult]:
        """Fan out every case under a semaphore. Fail-fast does not apply here."""
        limit = suite.configuration.max_concurrency
        semaphore = asyncio.Semaphore(limit if limit > 0 else self.default_max_concurrency)

        async def run_one(case: TestCase) -> TestCaseResult:
            async with semaphore:
                result = await self.case_runner.run(case, suite.target_type, suite.target_id, token)
            if self.reporter:
                await self.reporter.on_case_complete(result)
            return result

        gathered = await asyncio.gather(*(run_one(case) for case in cases), return_exceptions=True)

        # gather keeps declared order; an exception still yields a result slot
        results = []
        for case, outcome in zip(cases, gathered, strict=True):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.error("Case %s raised outside the case runner: %s", case.name, outcome)
                outcome = error_result(case, outcome)
            results.append(outcome)
        return results

    async def _skip_rest(self, cases: Sequence[TestCase], reason: str) -> list[TestCaseResult]:
        skipped = [skipped_result(case, reason) for case in cases]
        if self.reporter:
            for result in skipped:
                await self.reporter.on_case_complete(result)
        return skipped

    def _persist(self, suite: TestSuite, results: TestResults) -> None:
        try:
            self.store.save_results(results)
            self.store.save(suite)
        except Exception as e:
            logger.error("Could not persist results %s for suite %s: %s", results.id, suite.id, e)
            results.persistence_error = str(e) or type(e).__name__

    async def _report_completion(self, suite: TestSuite, results: TestResults, cancelled: bool) -> None:
        # results are already persisted; a reporter failure must not undo the run
        if self.reporter is None:
            return
        try:
            if cancelled:
                await self.reporter.on_run_cancelled(suite)
            await self.reporter.on_run_complete(suite, results)
        except Exception as e:
            logger.warning("Reporter failed after run of suite %s: %s", suite.id, e)

    def _mark_failed(self, suite: TestSuite) -> None:
        if not suite.status.can_transition_to(SuiteStatus.FAILED):
            logger.warning("Suite %s already left running as %s, not marking failed", suite.id, suite.status.value)
            return
        suite.transition(SuiteStatus.FAILED)
        try:
            self.store.update_status(suite.id, SuiteStatus.FAILED)
        except Exception as e:
            logger.error("Could not mark suite %s as failed: %s", suite.id, e)

    async def _notify(self, suite: TestSuite, results: TestResults) -> None:
        if self.notifier is None or not should_notify(suite.configuration.notifications, results.status):
            return
        try:
            await self.notifier.notify(suite, results)
        except Exception as e:
            logger.warning("Notification for suite %s failed: %s", suite.id, e)
