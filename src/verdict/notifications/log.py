"""Notifier that writes run announcements to the application log."""

import logging

from verdict.models import ResultStatus, TestResults, TestSuite
from verdict.notifications.base import summary_line


logger = logging.getLogger(__name__)


class LoggingNotifier:
    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log or logger

    async def notify(self, suite: TestSuite, results: TestResults) -> None:
        level = logging.INFO if results.status == ResultStatus.PASSED else logging.WARNING
        self.log.log(level, summary_line(suite, results), extra={"suite_id": suite.id, "results_id": results.id})
