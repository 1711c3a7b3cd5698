"""Transport-independent API over the store and the execution engine."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from verdict.errors import ResultsNotFoundError, StoreError, SuiteBusyError, SuiteNotFoundError, VerdictError
from verdict.execution import ExecutionEngine
from verdict.models import (
    SuiteStatus,
    TargetType,
    TestCase,
    TestConfiguration,
    TestResults,
    TestSuite,
    utcnow,
)
from verdict.storage import SuiteStore
from verdict.templates import TemplateRegistry, TestTemplate


logger = logging.getLogger(__name__)

CasePayload = TestCase | Mapping[str, Any]


def _build_cases(test_cases: Sequence[CasePayload], configuration: TestConfiguration) -> list[TestCase]:
    """Validate case payloads, filling ``timeout`` and ``retries`` from the configuration."""
    cases = []
    for payload in test_cases:
        if isinstance(payload, TestCase):
            cases.append(payload.model_copy(deep=True))
            continue
        data = dict(payload)
        data.setdefault("timeout", configuration.timeout)
        data.setdefault("retries", configuration.retries)
        cases.append(TestCase.model_validate(data))
    return cases


def _build_configuration(configuration: TestConfiguration | Mapping[str, Any] | None) -> TestConfiguration:
    if configuration is None:
        return TestConfiguration()
    if isinstance(configuration, TestConfiguration):
        return configuration.model_copy(deep=True)
    return TestConfiguration.model_validate(dict(configuration))


class TestingService:
    """Suite CRUD, runs, cancellation and result lookup.

    Example:
        >>> store = InMemorySuiteStore()
        >>> engine = ExecutionEngine(store, SimulatedTargetAdapter())
        >>> service = TestingService(store, engine)
        >>> suite = service.create_suite("alice", "smoke", "agent", "agent-1", [{"name": "hi"}])
        >>> results = await service.run_suite(suite.id)
    """

    __test__ = False

    def __init__(
        self,
        store: SuiteStore,
        engine: ExecutionEngine,
        templates: TemplateRegistry | None = None,
    ) -> None:
        self.store = store
        self.engine = engine
        self.templates = templates or TemplateRegistry()

    def create_suite(
        self,
        owner: str,
        name: str,
        target_type: TargetType | str,
        target_id: str,
        test_cases: Sequence[CasePayload],
        configuration: TestConfiguration | Mapping[str, Any] | None = None,
        description: str | None = None,
    ) -> TestSuite:
        """Validate and store a new suite in ``draft`` status."""
        config = _build_configuration(configuration)
        suite = TestSuite(
            owner=owner,
            name=name,
            description=description,
            target_type=TargetType(target_type),
            target_id=target_id,
            test_cases=_build_cases(test_cases, config),
            configuration=config,
        )
        self._save(suite)
        logger.info("Created suite %s (%s) for %s", suite.name, suite.id, owner)
        return suite

    def get_suite(self, suite_id: str) -> TestSuite:
        suite = self._load(suite_id)
        if suite is None:
            raise SuiteNotFoundError(suite_id)
        return suite

    def list_suites(self, owner: str) -> list[TestSuite]:
        """Suites of ``owner``, newest first."""
        try:
            return self.store.list_by_owner(owner)
        except VerdictError:
            raise
        except Exception as e:
            raise StoreError(f"Could not list suites for {owner}: {e}") from e

    async def run_suite(self, suite_id: str) -> TestResults:
        return await self.engine.run(suite_id)

    def cancel_suite(self, suite_id: str) -> bool:
        self.engine.cancel(suite_id)
        return True

    def reset_suite(self, suite_id: str) -> TestSuite:
        """Recover a suite stuck in ``running`` after its run was lost."""
        return self.engine.reset(suite_id)

    def get_results(self, results_id: str) -> TestResults:
        try:
            results = self.store.load_results(results_id)
        except VerdictError:
            raise
        except Exception as e:
            raise StoreError(f"Could not load results {results_id}: {e}") from e
        if results is None:
            raise ResultsNotFoundError(results_id)
        return results

    def list_results(self, suite_id: str, limit: int = 10) -> list[TestResults]:
        self.get_suite(suite_id)
        return self.store.list_results(suite_id, limit)

    def update_suite(
        self,
        suite_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        test_cases: Sequence[CasePayload] | None = None,
        configuration: TestConfiguration | Mapping[str, Any] | None = None,
    ) -> TestSuite:
        """Edit a suite that is not running. A ``ready`` suite drops back to ``draft``."""
        suite = self.get_suite(suite_id)
        if self.engine.is_running(suite_id) or suite.status == SuiteStatus.RUNNING:
            raise SuiteBusyError(suite_id)

        if name is not None:
            suite.name = name
        if description is not None:
            suite.description = description
        if configuration is not None:
            suite.configuration = _build_configuration(configuration)
        if test_cases is not None:
            suite.test_cases = _build_cases(test_cases, suite.configuration)
        if suite.status == SuiteStatus.READY:
            suite.transition(SuiteStatus.DRAFT)
        suite.updated_at = utcnow()
        self._save(suite)
        return suite

    def mark_ready(self, suite_id: str) -> TestSuite:
        suite = self.get_suite(suite_id)
        suite.transition(SuiteStatus.READY)
        self._save(suite)
        return suite

    def list_templates(self) -> list[TestTemplate]:
        return self.templates.list_all()

    def create_suite_from_template(
        self,
        owner: str,
        template_id: str,
        target_id: str,
        name: str | None = None,
    ) -> TestSuite:
        template = self.templates.use(template_id)
        return self.create_suite(
            owner=owner,
            name=name or template.name,
            target_type=template.target_type,
            target_id=target_id,
            test_cases=template.test_cases,
            configuration=template.configuration,
            description=template.description,
        )

    def _load(self, suite_id: str) -> TestSuite | None:
        try:
            return self.store.load(suite_id)
        except VerdictError:
            raise
        except Exception as e:
            raise StoreError(f"Could not load suite {suite_id}: {e}") from e

    def _save(self, suite: TestSuite) -> None:
        try:
            self.store.save(suite)
        except VerdictError:
            raise
        except Exception as e:
            raise StoreError(f"Could not save suite {suite.id}: {e}") from e
