"""Reporter hooks invoked by the execution engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from verdict.models import TestCaseResult, TestResults, TestSuite


class Reporter(ABC):
    """Receives run lifecycle events. Hooks are awaited in order by the engine."""

    @abstractmethod
    async def on_run_start(self, suite: TestSuite) -> None:
        pass

    @abstractmethod
    async def on_case_complete(self, result: TestCaseResult) -> None:
        pass

    @abstractmethod
    async def on_run_complete(self, suite: TestSuite, results: TestResults) -> None:
        pass

    async def on_run_cancelled(self, suite: TestSuite) -> None:
        pass

    async def on_tracing_enabled(self, output_path: Path) -> None:
        pass
