"""Abstract base class for suite storage backends."""

from abc import ABC, abstractmethod

from verdict.models import SuiteStatus, TestResults, TestSuite


class SuiteStore(ABC):
    """System of record for suites and their run results between runs.

    Implementations raise ``StoreError`` when the backend is unavailable.
    """

    @abstractmethod
    def save(self, suite: TestSuite) -> None:
        """Insert or replace a suite."""

    @abstractmethod
    def load(self, suite_id: str) -> TestSuite | None:
        """Retrieve a suite by ID."""

    @abstractmethod
    def list_by_owner(self, owner: str) -> list[TestSuite]:
        """List an owner's suites, newest first."""

    @abstractmethod
    def update_status(self, suite_id: str, status: SuiteStatus) -> None:
        """Persist a status change for an existing suite."""

    @abstractmethod
    def save_results(self, results: TestResults) -> None:
        """Append a run's results to the suite's history."""

    @abstractmethod
    def load_results(self, results_id: str) -> TestResults | None:
        """Retrieve results by ID."""

    @abstractmethod
    def list_results(self, suite_id: str, limit: int = 10) -> list[TestResults]:
        """List a suite's results, most recent first."""
