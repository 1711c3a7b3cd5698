"""Tests for verdict.execution.engine module."""

import asyncio
import time

import pytest
from rich.console import Console

from fakes import FailingStore, RecordingNotifier, ScriptedAdapter, make_case, make_suite
from verdict.errors import (
    AdapterError,
    ExecutionError,
    StoreError,
    SuiteBusyError,
    SuiteNotFoundError,
    SuiteNotRunningError,
)
from verdict.execution import ExecutionEngine
from verdict.models import ResultStatus, SuiteStatus, TestAssertion
from verdict.reports import ConsoleReporter
from verdict.storage import InMemorySuiteStore


def stored(store, suite):
    store.save(suite)
    return suite


def equals_ok() -> list[TestAssertion]:
    return [TestAssertion(type="equals", field="content", value="ok")]


class TestSequentialRuns:
    @pytest.mark.asyncio
    async def test_results_follow_declared_order(self):
        store = InMemorySuiteStore()
        cases = [make_case(f"case-{i}") for i in range(5)]
        cases[2].enabled = False
        suite = stored(store, make_suite(cases))
        engine = ExecutionEngine(store, ScriptedAdapter())

        results = await engine.run(suite.id)

        assert [r.case_id for r in results.case_results] == [c.id for c in suite.enabled_cases]
        assert results.status == ResultStatus.PASSED
        assert results.summary.total == 4
        assert results.summary.pass_rate == 100

    @pytest.mark.asyncio
    async def test_fail_fast_skips_remaining_cases(self):
        store = InMemorySuiteStore()
        cases = [make_case(name, assertions=equals_ok()) for name in ("first", "second", "third")]
        suite = stored(store, make_suite(cases, fail_fast=True))
        adapter = ScriptedAdapter({"second": {"content": "ok"}, "third": {"content": "ok"}})

        results = await ExecutionEngine(store, adapter).run(suite.id)

        statuses = [r.status for r in results.case_results]
        assert statuses == [ResultStatus.FAILED, ResultStatus.SKIPPED, ResultStatus.SKIPPED]
        assert adapter.calls == ["first"]
        assert results.summary.skipped == 2
        assert results.status == ResultStatus.FAILED

    @pytest.mark.asyncio
    async def test_error_does_not_trigger_fail_fast(self):
        store = InMemorySuiteStore()
        suite = stored(store, make_suite([make_case("a"), make_case("b")], fail_fast=True))
        adapter = ScriptedAdapter({"a": AdapterError("down")})

        results = await ExecutionEngine(store, adapter).run(suite.id)

        assert [r.status for r in results.case_results] == [ResultStatus.ERROR, ResultStatus.PASSED]
        assert results.status == ResultStatus.ERROR

    @pytest.mark.asyncio
    async def test_empty_suite_completes(self):
        store = InMemorySuiteStore()
        suite = stored(store, make_suite([make_case("off", enabled=False)]))

        results = await ExecutionEngine(store, ScriptedAdapter()).run(suite.id)

        assert results.summary.total == 0
        assert results.summary.pass_rate == 0
        assert results.metrics.error_rate == 0
        assert results.case_results == []
        assert store.load(suite.id).status == SuiteStatus.COMPLETED


class TestParallelRuns:
    @pytest.mark.asyncio
    async def test_every_enabled_case_has_a_result(self):
        store = InMemorySuiteStore()
        cases = [make_case(f"case-{i}", assertions=equals_ok()) for i in range(6)]
        suite = stored(store, make_suite(cases, parallel=True, max_concurrency=3))
        adapter = ScriptedAdapter({"case-1": {"content": "ok"}, "case-4": AdapterError("boom")})

        results = await ExecutionEngine(store, adapter).run(suite.id)

        assert len(results.case_results) == 6
        assert [r.case_id for r in results.case_results] == [c.id for c in cases]
        assert results.summary.passed == 1
        assert results.summary.errors == 1
        assert results.summary.failed == 4

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        store = InMemorySuiteStore()
        suite = stored(store, make_suite([make_case(f"c{i}") for i in range(5)], parallel=True, max_concurrency=2))
        adapter = ScriptedAdapter(delay=0.1)

        start = time.perf_counter()
        results = await ExecutionEngine(store, adapter).run(suite.id)
        elapsed = time.perf_counter() - start

        assert adapter.max_in_flight == 2
        assert elapsed >= 0.3
        assert results.summary.passed == 5

    @pytest.mark.asyncio
    async def test_non_positive_limit_uses_engine_default(self):
        store = InMemorySuiteStore()
        suite = stored(store, make_suite([make_case(f"c{i}") for i in range(6)], parallel=True, max_concurrency=0))
        adapter = ScriptedAdapter(delay=0.05)

        await ExecutionEngine(store, adapter, default_max_concurrency=3).run(suite.id)

        assert adapter.max_in_flight == 3

    @pytest.mark.asyncio
    async def test_fail_fast_is_ignored(self):
        store = InMemorySuiteStore()
        cases = [make_case(f"c{i}", assertions=equals_ok()) for i in range(3)]
        suite = stored(store, make_suite(cases, parallel=True, max_concurrency=1, fail_fast=True))

        results = await ExecutionEngine(store, ScriptedAdapter()).run(suite.id)

        assert results.summary.failed == 3
        assert results.summary.skipped == 0


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_after_first_case(self):
        store = InMemorySuiteStore()
        suite = stored(store, make_suite([make_case("one"), make_case("two"), make_case("three")]))
        engine = ExecutionEngine(store, ScriptedAdapter())

        def cancel_after_first(test_input, call_number):
            engine.cancel(suite.id)
            return {"content": "done"}

        engine.adapter.behaviors["one"] = cancel_after_first
        results = await engine.run(suite.id)

        assert engine.adapter.calls == ["one"]
        assert [r.status for r in results.case_results] == [
            ResultStatus.PASSED,
            ResultStatus.SKIPPED,
            ResultStatus.SKIPPED,
        ]
        saved = store.load(suite.id)
        assert saved.status == SuiteStatus.CANCELLED
        assert saved.results.id == results.id
        assert not engine.is_running(suite.id)

    @pytest.mark.asyncio
    async def test_cancel_interrupts_in_flight_call(self):
        store = InMemorySuiteStore()
        suite = stored(store, make_suite([make_case("slow"), make_case("next")]))
        adapter = ScriptedAdapter(delay=5.0)
        engine = ExecutionEngine(store, adapter)

        task = asyncio.create_task(engine.run(suite.id))
        await adapter.started.wait()
        engine.cancel(suite.id)
        results = await asyncio.wait_for(task, timeout=2)

        assert [r.status for r in results.case_results] == [ResultStatus.ERROR, ResultStatus.SKIPPED]
        assert results.case_results[0].error == "Test aborted"
        assert store.load(suite.id).status == SuiteStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_parallel_run_skips_queued_cases(self):
        store = InMemorySuiteStore()
        cases = [make_case("one"), make_case("two"), make_case("three")]
        suite = stored(store, make_suite(cases, parallel=True, max_concurrency=1))
        engine = ExecutionEngine(store, ScriptedAdapter())

        def cancel_during_first(test_input, call_number):
            engine.cancel(suite.id)
            return {"content": "done"}

        engine.adapter.behaviors["one"] = cancel_during_first
        results = await engine.run(suite.id)

        assert engine.adapter.calls == ["one"]
        assert [r.case_id for r in results.case_results] == [c.id for c in cases]
        assert [r.status for r in results.case_results] == [
            ResultStatus.PASSED,
            ResultStatus.SKIPPED,
            ResultStatus.SKIPPED,
        ]
        assert store.load(suite.id).status == SuiteStatus.CANCELLED
        assert not engine.is_running(suite.id)

    def test_cancel_without_run_raises(self):
        engine = ExecutionEngine(InMemorySuiteStore(), ScriptedAdapter())
        with pytest.raises(SuiteNotRunningError):
            engine.cancel("nope")


class TestAdmission:
    @pytest.mark.asyncio
    async def test_unknown_suite(self):
        with pytest.raises(SuiteNotFoundError):
            await ExecutionEngine(InMemorySuiteStore(), ScriptedAdapter()).run("missing")

    @pytest.mark.asyncio
    async def test_busy_suite_is_rejected(self):
        store = InMemorySuiteStore()
        suite = stored(store, make_suite([make_case("slow")]))
        adapter = ScriptedAdapter(delay=0.2)
        engine = ExecutionEngine(store, adapter)

        task = asyncio.create_task(engine.run(suite.id))
        await adapter.started.wait()
        with pytest.raises(SuiteBusyError):
            await engine.run(suite.id)
        results = await task

        assert results.status == ResultStatus.PASSED
        assert len(adapter.calls) == 1

    @pytest.mark.asyncio
    async def test_second_engine_on_same_store_is_rejected(self):
        store = InMemorySuiteStore()
        suite = stored(store, make_suite([make_case("slow")]))
        adapter = ScriptedAdapter(delay=0.2)
        first = ExecutionEngine(store, adapter)
        second = ExecutionEngine(store, adapter)

        task = asyncio.create_task(first.run(suite.id))
        await adapter.started.wait()
        with pytest.raises(SuiteBusyError):
            await second.run(suite.id)
        results = await task

        assert adapter.calls == ["slow"]
        assert results.status == ResultStatus.PASSED
        assert store.load(suite.id).status == SuiteStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_stuck_running_suite_runs_after_reset(self):
        store = InMemorySuiteStore()
        suite = stored(store, make_suite([make_case("a")]))
        store.update_status(suite.id, SuiteStatus.RUNNING)
        engine = ExecutionEngine(store, ScriptedAdapter())

        with pytest.raises(SuiteBusyError):
            await engine.run(suite.id)
        assert engine.reset(suite.id).status == SuiteStatus.FAILED
        assert store.load(suite.id).status == SuiteStatus.FAILED

        results = await engine.run(suite.id)

        assert results.status == ResultStatus.PASSED
        assert store.load(suite.id).status == SuiteStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_reset_refuses_run_in_flight(self):
        store = InMemorySuiteStore()
        suite = stored(store, make_suite([make_case("slow")]))
        adapter = ScriptedAdapter(delay=0.1)
        engine = ExecutionEngine(store, adapter)

        task = asyncio.create_task(engine.run(suite.id))
        await adapter.started.wait()
        with pytest.raises(SuiteBusyError):
            engine.reset(suite.id)
        await task

        assert store.load(suite.id).status == SuiteStatus.COMPLETED

    def test_reset_leaves_idle_suite_alone(self):
        store = InMemorySuiteStore()
        suite = stored(store, make_suite([make_case("a")]))

        assert ExecutionEngine(store, ScriptedAdapter()).reset(suite.id).status == SuiteStatus.DRAFT
        with pytest.raises(SuiteNotFoundError):
            ExecutionEngine(store, ScriptedAdapter()).reset("missing")

    @pytest.mark.asyncio
    async def test_different_suites_run_concurrently(self):
        store = InMemorySuiteStore()
        first = stored(store, make_suite([make_case("a")]))
        second = stored(store, make_suite([make_case("b")]))
        adapter = ScriptedAdapter(delay=0.1)
        engine = ExecutionEngine(store, adapter)

        results = await asyncio.gather(engine.run(first.id), engine.run(second.id))

        assert [r.suite_id for r in results] == [first.id, second.id]
        assert adapter.max_in_flight == 2

    @pytest.mark.asyncio
    async def test_store_failure_on_load(self):
        store = FailingStore({"load"})
        with pytest.raises(StoreError):
            await ExecutionEngine(store, ScriptedAdapter()).run("any")

    @pytest.mark.asyncio
    async def test_store_failure_on_start_leaves_status_and_releases_suite(self):
        store = FailingStore({"update_status"})
        suite = stored(store, make_suite([make_case("a")]))
        engine = ExecutionEngine(store, ScriptedAdapter())

        with pytest.raises(StoreError):
            await engine.run(suite.id)

        assert store.load(suite.id).status == SuiteStatus.DRAFT
        assert not engine.is_running(suite.id)

    @pytest.mark.asyncio
    async def test_rerun_from_terminal_state(self):
        store = InMemorySuiteStore()
        suite = stored(store, make_suite([make_case("a")]))
        engine = ExecutionEngine(store, ScriptedAdapter())

        first = await engine.run(suite.id)
        second = await engine.run(suite.id)

        assert first.id != second.id
        assert store.load(suite.id).results.id == second.id
        assert len(store.list_results(suite.id)) == 2


class TestCompletion:
    @pytest.mark.asyncio
    async def test_suite_completed_even_when_cases_fail(self):
        store = InMemorySuiteStore()
        suite = stored(store, make_suite([make_case("a", assertions=equals_ok())]))

        results = await ExecutionEngine(store, ScriptedAdapter()).run(suite.id)

        saved = store.load(suite.id)
        assert results.status == ResultStatus.FAILED
        assert saved.status == SuiteStatus.COMPLETED
        assert saved.last_run_at is not None
        assert store.load_results(results.id).status == ResultStatus.FAILED

    @pytest.mark.asyncio
    async def test_persistence_failure_is_reported_on_results(self):
        store = FailingStore({"save_results"})
        suite = stored(store, make_suite([make_case("a")]))

        results = await ExecutionEngine(store, ScriptedAdapter()).run(suite.id)

        assert results.status == ResultStatus.PASSED
        assert results.persistence_error == "save_results unavailable"

    @pytest.mark.asyncio
    async def test_unexpected_failure_marks_suite_failed(self):
        class ExplodingReporter(ConsoleReporter):
            async def on_run_start(self, suite):
                raise RuntimeError("reporter exploded")

        store = InMemorySuiteStore()
        suite = stored(store, make_suite([make_case("a")]))
        engine = ExecutionEngine(store, ScriptedAdapter(), reporter=ExplodingReporter(Console(quiet=True)))

        with pytest.raises(ExecutionError, match="reporter exploded"):
            await engine.run(suite.id)

        assert store.load(suite.id).status == SuiteStatus.FAILED
        assert not engine.is_running(suite.id)

    @pytest.mark.asyncio
    async def test_reporter_failure_after_persist_keeps_results(self):
        class ExplodingReporter(ConsoleReporter):
            async def on_run_complete(self, suite, results):
                raise RuntimeError("terminal closed")

        store = InMemorySuiteStore()
        suite = stored(store, make_suite([make_case("a")], notifications={"enabled": True, "onSuccess": True}))
        notifier = RecordingNotifier()
        reporter = ExplodingReporter(Console(quiet=True))
        engine = ExecutionEngine(store, ScriptedAdapter(), notifier, reporter=reporter)

        results = await engine.run(suite.id)

        saved = store.load(suite.id)
        assert results.status == ResultStatus.PASSED
        assert results.persistence_error is None
        assert saved.status == SuiteStatus.COMPLETED
        assert saved.results.id == results.id
        assert store.load_results(results.id).status == ResultStatus.PASSED
        assert notifier.notified == [(suite.id, "passed")]
        assert not engine.is_running(suite.id)

    @pytest.mark.asyncio
    async def test_reporter_sees_every_case(self):
        events = []

        class RecordingReporter(ConsoleReporter):
            async def on_case_complete(self, result):
                events.append(result.status)

        store = InMemorySuiteStore()
        cases = [make_case("a", assertions=equals_ok()), make_case("b")]
        suite = stored(store, make_suite(cases, fail_fast=True))
        reporter = RecordingReporter(Console(quiet=True))

        await ExecutionEngine(store, ScriptedAdapter(), reporter=reporter).run(suite.id)

        assert events == [ResultStatus.FAILED, ResultStatus.SKIPPED]


class TestNotifications:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("notifications", "adapter_output", "expected"),
        [
            ({"enabled": True, "onFailure": True}, {"content": "nope"}, [ResultStatus.FAILED.value]),
            ({"enabled": True, "onSuccess": False}, {"content": "ok"}, []),
            ({"enabled": True, "onSuccess": True}, {"content": "ok"}, [ResultStatus.PASSED.value]),
            ({"enabled": False, "onFailure": True}, {"content": "nope"}, []),
        ],
    )
    async def test_notifies_when_outcome_matches(self, notifications, adapter_output, expected):
        store = InMemorySuiteStore()
        suite = stored(store, make_suite([make_case("a", assertions=equals_ok())], notifications=notifications))
        notifier = RecordingNotifier()

        await ExecutionEngine(store, ScriptedAdapter({"a": adapter_output}), notifier).run(suite.id)

        assert [status for _, status in notifier.notified] == expected

    @pytest.mark.asyncio
    async def test_notifier_failure_does_not_fail_run(self):
        store = InMemorySuiteStore()
        suite = stored(store, make_suite([make_case("a")], notifications={"enabled": True, "onSuccess": True}))
        notifier = RecordingNotifier(error=RuntimeError("smtp down"))

        results = await ExecutionEngine(store, ScriptedAdapter(), notifier).run(suite.id)

        assert results.status == ResultStatus.PASSED
        assert notifier.notified == [(suite.id, "passed")]
