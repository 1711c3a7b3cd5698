"""In-process suite store."""

import threading

from verdict.models import SuiteStatus, TestResults, TestSuite, utcnow
from verdict.storage.base import SuiteStore


class InMemorySuiteStore(SuiteStore):
    """Dictionary-backed store.

    Records are deep-copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self) -> None:
        self._suites: dict[str, TestSuite] = {}
        self._results: dict[str, TestResults] = {}
        self._lock = threading.RLock()

    def save(self, suite: TestSuite) -> None:
        with self._lock:
            self._suites[suite.id] = suite.model_copy(deep=True)

    def load(self, suite_id: str) -> TestSuite | None:
        with self._lock:
            suite = self._suites.get(suite_id)
            return suite.model_copy(deep=True) if suite else None

    def list_by_owner(self, owner: str) -> list[TestSuite]:
        with self._lock:
            suites = [s.model_copy(deep=True) for s in self._suites.values() if s.owner == owner]
        return sorted(suites, key=lambda s: s.created_at, reverse=True)

    def update_status(self, suite_id: str, status: SuiteStatus) -> None:
        with self._lock:
            suite = self._suites.get(suite_id)
            if suite is not None:
                suite.status = status
                suite.updated_at = utcnow()

    def save_results(self, results: TestResults) -> None:
        with self._lock:
            self._results[results.id] = results.model_copy(deep=True)

    def load_results(self, results_id: str) -> TestResults | None:
        with self._lock:
            results = self._results.get(results_id)
            return results.model_copy(deep=True) if results else None

    def list_results(self, suite_id: str, limit: int = 10) -> list[TestResults]:
        with self._lock:
            matching = [r.model_copy(deep=True) for r in self._results.values() if r.suite_id == suite_id]
        matching.sort(key=lambda r: r.started_at, reverse=True)
        return matching[:limit]
