"""Webhook notifier posting run summaries as JSON."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from verdict.models import TestResults, TestSuite
from verdict.notifications.base import summary_line


logger = logging.getLogger(__name__)


class WebhookNotifier:
    """POSTs a compact run summary to ``url``.

    Only the ``webhook`` channel is delivered here; suites whose
    notification channels do not include it are ignored.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self._owns_client = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout, headers=headers)

    def payload(self, suite: TestSuite, results: TestResults) -> dict[str, Any]:
        return {
            "text": summary_line(suite, results),
            "suiteId": suite.id,
            "suiteName": suite.name,
            "owner": suite.owner,
            "resultsId": results.id,
            "status": results.status.value,
            "summary": results.summary.to_dict(),
            "duration": results.duration,
        }

    async def notify(self, suite: TestSuite, results: TestResults) -> None:
        if "webhook" not in suite.configuration.notifications.channels:
            logger.debug("Suite %s has no webhook channel, skipping", suite.id)
            return
        response = await self._http.post(self.url, json=self.payload(suite, results))
        response.raise_for_status()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()
