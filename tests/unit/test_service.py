"""Tests for verdict.service module."""

import pydantic
import pytest

from fakes import ScriptedAdapter
from verdict.errors import (
    InvalidTransitionError,
    ResultsNotFoundError,
    SuiteBusyError,
    SuiteNotFoundError,
    SuiteNotRunningError,
    TemplateNotFoundError,
)
from verdict.execution import ExecutionEngine
from verdict.models import ResultStatus, SuiteStatus, TargetType, TestCase
from verdict.service import TestingService
from verdict.storage import InMemorySuiteStore
from verdict.templates import TemplateRegistry, TestTemplate


@pytest.fixture
def service() -> TestingService:
    store = InMemorySuiteStore()
    return TestingService(store, ExecutionEngine(store, ScriptedAdapter()))


def create(service: TestingService, **kwargs):
    defaults = {
        "owner": "alice",
        "name": "smoke",
        "target_type": "agent",
        "target_id": "agent-1",
        "test_cases": [{"name": "greet", "input": {"content": "Hello"}}],
    }
    defaults.update(kwargs)
    return service.create_suite(**defaults)


class TestCreateSuite:
    def test_creates_draft_suite(self, service):
        suite = create(service, description="first")

        assert suite.status == SuiteStatus.DRAFT
        assert suite.target_type == TargetType.AGENT
        assert suite.description == "first"
        assert service.get_suite(suite.id) == suite

    def test_configuration_defaults_fill_case_payloads(self, service):
        suite = create(
            service,
            test_cases=[{"name": "a"}, {"name": "b", "timeout": 100, "retries": 0}],
            configuration={"timeout": 5000, "retries": 2},
        )
        assert [(c.timeout, c.retries) for c in suite.test_cases] == [(5000, 2), (100, 0)]

    def test_accepts_case_models(self, service):
        case = TestCase(name="model case")
        suite = create(service, test_cases=[case])
        assert suite.test_cases[0].id == case.id

    def test_invalid_payload_is_rejected(self, service):
        with pytest.raises(pydantic.ValidationError):
            create(service, test_cases=[{"name": "bad", "timeout": -5}])
        with pytest.raises(ValueError):
            create(service, target_type="robot")

    def test_list_suites_by_owner(self, service):
        create(service, name="one")
        create(service, name="two")
        create(service, owner="bob")
        assert {s.name for s in service.list_suites("alice")} == {"one", "two"}


class TestRunAndResults:
    @pytest.mark.asyncio
    async def test_run_and_fetch_results(self, service):
        suite = create(service)

        results = await service.run_suite(suite.id)

        assert results.status == ResultStatus.PASSED
        assert service.get_results(results.id) == results
        assert service.get_suite(suite.id).status == SuiteStatus.COMPLETED
        assert [r.id for r in service.list_results(suite.id)] == [results.id]

    @pytest.mark.asyncio
    async def test_run_unknown_suite(self, service):
        with pytest.raises(SuiteNotFoundError):
            await service.run_suite("missing")

    def test_missing_lookups(self, service):
        with pytest.raises(SuiteNotFoundError):
            service.get_suite("missing")
        with pytest.raises(ResultsNotFoundError):
            service.get_results("missing")

    def test_cancel_idle_suite(self, service):
        suite = create(service)
        with pytest.raises(SuiteNotRunningError):
            service.cancel_suite(suite.id)

    @pytest.mark.asyncio
    async def test_reset_stuck_suite_allows_new_run(self, service):
        suite = create(service)
        service.store.update_status(suite.id, SuiteStatus.RUNNING)
        with pytest.raises(SuiteBusyError):
            await service.run_suite(suite.id)

        assert service.reset_suite(suite.id).status == SuiteStatus.FAILED
        results = await service.run_suite(suite.id)

        assert results.status == ResultStatus.PASSED
        assert service.get_suite(suite.id).status == SuiteStatus.COMPLETED


class TestEditing:
    def test_mark_ready_then_edit_returns_to_draft(self, service):
        suite = create(service)
        assert service.mark_ready(suite.id).status == SuiteStatus.READY

        updated = service.update_suite(suite.id, name="renamed", test_cases=[{"name": "new"}])

        assert updated.status == SuiteStatus.DRAFT
        assert updated.name == "renamed"
        assert [c.name for c in service.get_suite(suite.id).test_cases] == ["new"]

    def test_mark_ready_from_completed_is_invalid(self, service):
        suite = create(service)
        service.store.update_status(suite.id, SuiteStatus.COMPLETED)
        with pytest.raises(InvalidTransitionError):
            service.mark_ready(suite.id)

    def test_cannot_edit_running_suite(self, service):
        suite = create(service)
        service.store.update_status(suite.id, SuiteStatus.RUNNING)
        with pytest.raises(SuiteBusyError):
            service.update_suite(suite.id, name="x")


class TestTemplates:
    def test_builtin_templates(self, service):
        templates = {t.id: t for t in service.list_templates()}
        assert set(templates) == {"basic-agent", "performance"}
        assert templates["performance"].target_type == TargetType.DEPLOYMENT
        assert templates["performance"].configuration.parallel is True

    def test_create_from_template(self, service):
        first = service.create_suite_from_template("alice", "basic-agent", "agent-9")
        second = service.create_suite_from_template("alice", "basic-agent", "agent-9", name="custom")

        assert first.name == "Basic Agent Test"
        assert second.name == "custom"
        assert first.target_id == "agent-9"
        assert first.test_cases[0].retries == 2
        assert first.test_cases[0].id != second.test_cases[0].id
        assert {t.id: t.usage_count for t in service.list_templates()}["basic-agent"] == 2

    def test_unknown_template(self, service):
        with pytest.raises(TemplateNotFoundError):
            service.create_suite_from_template("alice", "nope", "x")

    def test_custom_template_registry(self):
        registry = TemplateRegistry([])
        registry.add(
            TestTemplate(
                id="persona-tone",
                name="Persona tone",
                description="Tone checks",
                category="persona",
                target_type=TargetType.PERSONA,
                test_cases=[{"name": "tone", "assertions": [{"type": "equals", "field": "personality.tone", "value": "professional"}]}],
            )
        )
        store = InMemorySuiteStore()
        service = TestingService(store, ExecutionEngine(store, ScriptedAdapter()), templates=registry)

        suite = service.create_suite_from_template("alice", "persona-tone", "persona-1")

        assert [t.id for t in service.list_templates()] == ["persona-tone"]
        assert suite.target_type == TargetType.PERSONA
        assert suite.test_cases[0].assertions[0].field == "personality.tone"
