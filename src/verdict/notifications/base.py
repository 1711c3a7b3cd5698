"""Notifier contract and the rule deciding when a run is announced."""

from __future__ import annotations

from typing import Protocol

from verdict.models import NotificationConfig, ResultStatus, TestResults, TestSuite


class Notifier(Protocol):
    """Announces a finished run. Failures are logged by the engine, never raised to callers."""

    async def notify(self, suite: TestSuite, results: TestResults) -> None: ...


def should_notify(config: NotificationConfig, status: ResultStatus) -> bool:
    """Whether a run ending in ``status`` should be announced under ``config``."""
    if not config.enabled:
        return False
    match status:
        case ResultStatus.PASSED:
            return config.on_success
        case ResultStatus.FAILED:
            return config.on_failure
        case ResultStatus.ERROR:
            return config.on_error
        case _:
            return False


def summary_line(suite: TestSuite, results: TestResults) -> str:
    s = results.summary
    return (
        f"Suite '{suite.name}' {results.status.value}: "
        f"{s.passed}/{s.total} passed, {s.failed} failed, {s.errors} errors, {s.skipped} skipped "
        f"({results.duration:.0f}ms)"
    )
