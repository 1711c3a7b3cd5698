"""HTTP target adapter backed by httpx."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from pydantic import Field, HttpUrl, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from verdict.adapters.base import CancelToken, Deadline, run_within_deadline
from verdict.errors import AdapterError, AdapterTimeoutError
from verdict.models import TargetType, TestInput


logger = logging.getLogger(__name__)


class HTTPAdapterSettings(BaseSettings):
    """Configuration for `HTTPTargetAdapter`.

    Attributes
    ----------
    base_url
        Root URL of the subject executors (from ``VERDICT_ADAPTER_BASE_URL``).
    api_key
        Optional bearer token (from ``VERDICT_ADAPTER_API_KEY``).
    connect_timeout
        Upper bound for establishing a connection, in seconds. The overall
        request timeout always comes from the case deadline.
    max_connections, max_keepalive_connections
        Connection pool limits for the underlying `httpx.AsyncClient`.
    """

    base_url: HttpUrl = Field(validation_alias="VERDICT_ADAPTER_BASE_URL")
    api_key: SecretStr | None = Field(default=None, validation_alias="VERDICT_ADAPTER_API_KEY")
    connect_timeout: float = 5.0
    max_connections: int = 100
    max_keepalive_connections: int = 20

    model_config = SettingsConfigDict(extra="ignore", env_prefix="", populate_by_name=True)


class HTTPTargetAdapter:
    """POSTs test inputs to ``{base_url}/{target_type}s/{target_id}/execute``.

    The response body is returned as parsed JSON when the subject answers
    with JSON, otherwise as text.
    """

    def __init__(self, settings: HTTPAdapterSettings, http: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._owns_http = http is None
        self._http = http or self._build_client(settings)
        self._lock = asyncio.Lock()

    @staticmethod
    def _build_client(settings: HTTPAdapterSettings) -> httpx.AsyncClient:
        headers = {"Accept": "application/json"}
        if settings.api_key is not None:
            headers["Authorization"] = f"Bearer {settings.api_key.get_secret_value()}"
        return httpx.AsyncClient(
            base_url=str(settings.base_url).rstrip("/") + "/",
            headers=headers,
            limits=httpx.Limits(
                max_connections=settings.max_connections,
                max_keepalive_connections=settings.max_keepalive_connections,
            ),
        )

    async def execute(
        self,
        target_type: TargetType,
        target_id: str,
        test_input: TestInput,
        deadline: Deadline,
        cancel: CancelToken,
    ) -> Any:
        path = f"{target_type.value}s/{target_id}/execute"
        remaining = deadline.remaining()
        timeout = httpx.Timeout(remaining, connect=min(self._settings.connect_timeout, remaining))

        try:
            resp = await run_within_deadline(
                self._http.post(path, json={"input": test_input.to_dict()}, timeout=timeout),
                deadline,
                cancel,
            )
        except httpx.TimeoutException as e:
            raise AdapterTimeoutError(f"Target call exceeded {deadline.timeout_ms}ms deadline") from e
        except httpx.TransportError as e:
            raise AdapterError(f"Target unreachable: {e}") from e

        if resp.is_error:
            logger.debug("Target %s/%s answered HTTP %s", target_type.value, target_id, resp.status_code)
            raise AdapterError(f"Target returned HTTP {resp.status_code}: {resp.text[:200]}")

        if resp.headers.get("content-type", "").startswith("application/json"):
            return resp.json()
        return resp.text

    async def aclose(self) -> None:
        """Close the HTTP client if this adapter created it."""
        async with self._lock:
            if self._owns_http and not self._http.is_closed:
                await self._http.aclose()
