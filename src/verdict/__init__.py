"""Verdict - test-suite execution engine for agents, workflows, deployments and personas."""

from .adapters import DispatchingTargetAdapter, HTTPTargetAdapter, SimulatedTargetAdapter, TargetAdapter
from .config import VerdictSettings
from .evaluation import CustomPredicateRegistry
from .execution import ExecutionEngine, RunTracer
from .models import (
    ResultStatus,
    SuiteStatus,
    TargetType,
    TestAssertion,
    TestCase,
    TestConfiguration,
    TestResults,
    TestSuite,
)
from .notifications import LoggingNotifier, WebhookNotifier
from .reports import ConsoleReporter
from .service import TestingService
from .storage import InMemorySuiteStore, SQLiteSuiteStore, SuiteStore
from .tracing import init_tracing
from .version import __version__


__all__ = [
    # Service and engine
    "TestingService",
    "ExecutionEngine",
    "VerdictSettings",
    # Models
    "TestSuite",
    "TestCase",
    "TestAssertion",
    "TestConfiguration",
    "TestResults",
    "TargetType",
    "SuiteStatus",
    "ResultStatus",
    # Adapters
    "TargetAdapter",
    "DispatchingTargetAdapter",
    "SimulatedTargetAdapter",
    "HTTPTargetAdapter",
    # Collaborators
    "SuiteStore",
    "InMemorySuiteStore",
    "SQLiteSuiteStore",
    "LoggingNotifier",
    "WebhookNotifier",
    "ConsoleReporter",
    "CustomPredicateRegistry",
    # Tracing
    "RunTracer",
    "init_tracing",
    "__version__",
]
