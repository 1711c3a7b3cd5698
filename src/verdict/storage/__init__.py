"""Storage backends for suites and run results."""

from verdict.storage.base import SuiteStore
from verdict.storage.memory import InMemorySuiteStore
from verdict.storage.sqlite import SQLiteSuiteStore


__all__ = ["InMemorySuiteStore", "SQLiteSuiteStore", "SuiteStore"]
