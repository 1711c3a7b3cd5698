"""Suite definition models: suites, cases, inputs, expectations, configuration."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal
from uuid import uuid4

from pydantic import Field

from verdict.errors import InvalidTransitionError
from verdict.models.base import RecordModel, utcnow


if TYPE_CHECKING:
    from verdict.models.result import TestResults


class TargetType(Enum):
    """Kind of subject a suite is bound to."""

    AGENT = "agent"
    WORKFLOW = "workflow"
    DEPLOYMENT = "deployment"
    PERSONA = "persona"


class TestType(Enum):
    """Informational case category. Does not change how a case runs."""

    __test__ = False  # Prevent pytest from collecting this as a test class

    UNIT = "unit"
    INTEGRATION = "integration"
    END_TO_END = "end-to-end"
    PERFORMANCE = "performance"
    SECURITY = "security"
    ACCESSIBILITY = "accessibility"
    USABILITY = "usability"
    REGRESSION = "regression"


class Priority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SuiteStatus(Enum):
    """Lifecycle state of a suite.

    ``completed`` means the run finished, not that it succeeded. The outcome
    of a run lives in ``TestResults.status``.
    """

    DRAFT = "draft"
    READY = "ready"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL

    def can_transition_to(self, target: SuiteStatus) -> bool:
        return target in _TRANSITIONS[self]


_TERMINAL = frozenset({SuiteStatus.COMPLETED, SuiteStatus.FAILED, SuiteStatus.CANCELLED})

_TRANSITIONS: dict[SuiteStatus, frozenset[SuiteStatus]] = {
    SuiteStatus.DRAFT: frozenset({SuiteStatus.READY, SuiteStatus.RUNNING}),
    SuiteStatus.READY: frozenset({SuiteStatus.DRAFT, SuiteStatus.RUNNING}),
    SuiteStatus.RUNNING: _TERMINAL,
    SuiteStatus.COMPLETED: frozenset({SuiteStatus.RUNNING}),
    SuiteStatus.FAILED: frozenset({SuiteStatus.RUNNING}),
    SuiteStatus.CANCELLED: frozenset({SuiteStatus.RUNNING}),
}


class TestInput(RecordModel):
    """Input handed verbatim to the target adapter."""

    __test__ = False

    type: Literal["text", "voice", "image", "file", "structured"] = "text"
    content: Any = None
    metadata: dict[str, Any] | None = None
    context: dict[str, Any] | None = None
    variables: dict[str, Any] | None = None


class ExpectedOutput(RecordModel):
    """Expectations checked by the implicit output validation pass.

    ``contains`` / ``not_contains`` are substring lists and ``patterns`` are
    regular expressions, all tested against the stringified output.
    ``content``, ``metadata`` and ``actions`` are descriptive only.
    """

    type: Literal["text", "voice", "image", "file", "structured", "action"] | None = None
    content: Any = None
    patterns: list[str] | None = None
    contains: list[str] | None = None
    not_contains: list[str] | None = None
    metadata: dict[str, Any] | None = None
    actions: list[str] | None = None


class TestAssertion(RecordModel):
    """A declared check against one field of the actual output."""

    __test__ = False

    type: Literal["equals", "contains", "matches", "range", "custom"]
    field: str
    operator: str = ""
    value: Any = None
    message: str | None = None


class TestCase(RecordModel):
    """One executable scenario."""

    __test__ = False

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    description: str | None = None
    type: TestType = TestType.UNIT
    input: TestInput = Field(default_factory=TestInput)
    expected_output: ExpectedOutput = Field(default_factory=ExpectedOutput)
    assertions: list[TestAssertion] = Field(default_factory=list)
    timeout: int = Field(default=30_000, gt=0, description="Deadline for one attempt, in milliseconds")
    retries: int = Field(default=0, ge=0)
    tags: list[str] = Field(default_factory=list)
    priority: Priority = Priority.MEDIUM
    enabled: bool = True


class ReportingConfig(RecordModel):
    enabled: bool = False
    formats: list[Literal["json", "html", "xml", "csv"]] = Field(default_factory=lambda: ["json"])
    include_screenshots: bool = False
    include_logs: bool = True
    include_metrics: bool = True


class NotificationConfig(RecordModel):
    enabled: bool = False
    channels: list[Literal["email", "slack", "webhook"]] = Field(default_factory=list)
    on_success: bool = False
    on_failure: bool = True
    on_error: bool = True


class TestConfiguration(RecordModel):
    """Run-time configuration owned by a suite.

    ``timeout`` and ``retries`` are the defaults applied to case payloads
    that omit their own values when a suite is created.
    """

    __test__ = False

    environment: Literal["development", "staging", "production"] = "development"
    parallel: bool = False
    max_concurrency: int = 1
    timeout: int = Field(default=30_000, gt=0)
    retries: int = Field(default=0, ge=0)
    fail_fast: bool = False
    coverage: bool = False
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)


class TestSuite(RecordModel):
    """A named collection of test cases bound to one subject."""

    __test__ = False

    id: str = Field(default_factory=lambda: str(uuid4()))
    owner: str
    name: str
    description: str | None = None
    target_type: TargetType
    target_id: str
    test_cases: list[TestCase] = Field(default_factory=list)
    configuration: TestConfiguration = Field(default_factory=TestConfiguration)
    status: SuiteStatus = SuiteStatus.DRAFT
    results: TestResults | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    last_run_at: datetime | None = None

    @property
    def enabled_cases(self) -> list[TestCase]:
        return [case for case in self.test_cases if case.enabled]

    def transition(self, target: SuiteStatus) -> None:
        """Move to ``target`` or raise InvalidTransitionError."""
        if not self.status.can_transition_to(target):
            raise InvalidTransitionError(self.status.value, target.value)
        self.status = target
        self.updated_at = utcnow()
