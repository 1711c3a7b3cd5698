"""Suite and result records."""

from verdict.models.base import RecordModel, utcnow
from verdict.models.result import (
    AssertionResult,
    CaseMetrics,
    CaseResourceUsage,
    LogEntry,
    ResourceUsage,
    ResponseTimeStats,
    ResultStatus,
    TestArtifact,
    TestCaseResult,
    TestMetrics,
    TestResults,
    TestSummary,
)
from verdict.models.suite import (
    ExpectedOutput,
    NotificationConfig,
    Priority,
    ReportingConfig,
    SuiteStatus,
    TargetType,
    TestAssertion,
    TestCase,
    TestConfiguration,
    TestInput,
    TestSuite,
    TestType,
)


TestSuite.model_rebuild()


__all__ = [
    "AssertionResult",
    "CaseMetrics",
    "CaseResourceUsage",
    "ExpectedOutput",
    "LogEntry",
    "NotificationConfig",
    "Priority",
    "RecordModel",
    "ReportingConfig",
    "ResourceUsage",
    "ResponseTimeStats",
    "ResultStatus",
    "SuiteStatus",
    "TargetType",
    "TestArtifact",
    "TestAssertion",
    "TestCase",
    "TestCaseResult",
    "TestConfiguration",
    "TestInput",
    "TestMetrics",
    "TestResults",
    "TestSuite",
    "TestSummary",
    "TestType",
    "utcnow",
]
