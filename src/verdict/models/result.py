"""Result models produced by a suite run."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal
from uuid import uuid4

from pydantic import Field

from verdict.models.base import RecordModel, utcnow
from verdict.models.suite import ExpectedOutput, TestAssertion, TestInput


class ResultStatus(Enum):
    """Outcome of a single case or of a whole run."""

    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"
    SKIPPED = "skipped"

    @property
    def is_failure(self) -> bool:
        """Check if this status represents a failure."""
        return self in {ResultStatus.FAILED, ResultStatus.ERROR}


class AssertionResult(RecordModel):
    assertion: TestAssertion
    passed: bool
    message: str
    actual: Any = None
    expected: Any = None


class LogEntry(RecordModel):
    timestamp: datetime = Field(default_factory=utcnow)
    level: Literal["debug", "info", "warn", "error"] = "info"
    message: str
    metadata: dict[str, Any] | None = None


class CaseResourceUsage(RecordModel):
    cpu: float = 0
    memory: float = 0


class CaseMetrics(RecordModel):
    response_time: float = 0
    resource_usage: CaseResourceUsage = Field(default_factory=CaseResourceUsage)
    network_calls: int = 0
    data_transferred: int = 0


class TestCaseResult(RecordModel):
    """Outcome of the final attempt of one test case."""

    __test__ = False

    case_id: str
    name: str
    status: ResultStatus
    input: TestInput
    actual_output: Any = None
    expected_output: ExpectedOutput
    assertions: list[AssertionResult] = Field(default_factory=list)
    error: str | None = None
    logs: list[LogEntry] = Field(default_factory=list)
    metrics: CaseMetrics = Field(default_factory=CaseMetrics)
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime = Field(default_factory=utcnow)
    duration: float = 0
    attempts: int = 1


class TestSummary(RecordModel):
    __test__ = False

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    errors: int = 0
    pass_rate: float = 0
    coverage: float | None = None


class ResponseTimeStats(RecordModel):
    min: float = 0
    max: float = 0
    avg: float = 0
    p95: float = 0
    p99: float = 0


class ResourceUsage(RecordModel):
    cpu: float = 0
    memory: float = 0
    network: float = 0


class TestMetrics(RecordModel):
    __test__ = False

    response_time: ResponseTimeStats = Field(default_factory=ResponseTimeStats)
    throughput: float = 0
    error_rate: float = 0
    resource_usage: ResourceUsage = Field(default_factory=ResourceUsage)


class TestArtifact(RecordModel):
    __test__ = False

    type: Literal["screenshot", "video", "log", "report", "data"]
    name: str
    url: str
    size: int = 0
    created_at: datetime = Field(default_factory=utcnow)


class TestResults(RecordModel):
    """Record of one completed run of a suite.

    ``persistence_error`` is set when the run finished but the store
    rejected the write; the record is still returned to the caller.
    """

    __test__ = False

    id: str = Field(default_factory=lambda: str(uuid4()))
    suite_id: str
    status: ResultStatus = ResultStatus.PASSED
    summary: TestSummary = Field(default_factory=TestSummary)
    case_results: list[TestCaseResult] = Field(default_factory=list)
    metrics: TestMetrics = Field(default_factory=TestMetrics)
    artifacts: list[TestArtifact] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime = Field(default_factory=utcnow)
    duration: float = 0
    persistence_error: str | None = None

    def result_for(self, case_id: str) -> TestCaseResult | None:
        for result in self.case_results:
            if result.case_id == case_id:
                return result
        return None
