"""Tests for verdict.adapters module."""

import asyncio
import json

import httpx
import pytest

from verdict.adapters import (
    CancelToken,
    Deadline,
    DispatchingTargetAdapter,
    HTTPAdapterSettings,
    HTTPTargetAdapter,
    SimulatedTargetAdapter,
    run_within_deadline,
)
from verdict.errors import AdapterError, AdapterTimeoutError, RunCancelledError, UnsupportedTargetError
from verdict.models import TargetType, TestInput


class TestDeadline:
    def test_remaining_never_negative(self):
        deadline = Deadline(expires_at=0, timeout_ms=10)
        assert deadline.expired
        assert deadline.remaining() == 0

    def test_after(self):
        deadline = Deadline.after(1000)
        assert not deadline.expired
        assert 0 < deadline.remaining() <= 1


class TestRunWithinDeadline:
    @pytest.mark.asyncio
    async def test_returns_result(self):
        async def work():
            return 42

        assert await run_within_deadline(work(), Deadline.after(1000), CancelToken()) == 42

    @pytest.mark.asyncio
    async def test_times_out(self):
        with pytest.raises(AdapterTimeoutError, match="20ms"):
            await run_within_deadline(asyncio.sleep(1), Deadline.after(20), CancelToken())

    @pytest.mark.asyncio
    async def test_expired_deadline_fails_fast(self):
        with pytest.raises(AdapterTimeoutError):
            await run_within_deadline(asyncio.sleep(1), Deadline(expires_at=0, timeout_ms=5), CancelToken())

    @pytest.mark.asyncio
    async def test_cancel_token_aborts(self):
        cancel = CancelToken()
        asyncio.get_running_loop().call_later(0.02, cancel.cancel)
        with pytest.raises(RunCancelledError, match="Test aborted"):
            await run_within_deadline(asyncio.sleep(5), Deadline.after(5000), cancel)

    @pytest.mark.asyncio
    async def test_work_exceptions_propagate(self):
        async def work():
            raise ValueError("bad")

        with pytest.raises(ValueError, match="bad"):
            await run_within_deadline(work(), Deadline.after(1000), CancelToken())


class TestSimulatedTargetAdapter:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("target_type", "key"),
        [
            (TargetType.AGENT, "content"),
            (TargetType.WORKFLOW, "finalOutput"),
            (TargetType.DEPLOYMENT, "responseTime"),
            (TargetType.PERSONA, "personality"),
        ],
    )
    async def test_shapes(self, target_type, key):
        adapter = SimulatedTargetAdapter(seed=1)
        output = await adapter.execute(target_type, "t-1", TestInput(content="Hi"), Deadline.after(1000), CancelToken())
        assert key in output

    @pytest.mark.asyncio
    async def test_agent_echoes_text(self):
        adapter = SimulatedTargetAdapter()
        output = await adapter.execute(
            TargetType.AGENT, "a", TestInput(content="Hi"), Deadline.after(1000), CancelToken()
        )
        assert output["content"] == "Agent response to: Hi"

    @pytest.mark.asyncio
    async def test_latency_respects_deadline(self):
        adapter = SimulatedTargetAdapter(latency_ms=(500, 500))
        with pytest.raises(AdapterTimeoutError):
            await adapter.execute(TargetType.AGENT, "a", TestInput(), Deadline.after(20), CancelToken())


class TestDispatchingTargetAdapter:
    @pytest.mark.asyncio
    async def test_routes_by_target_type(self):
        dispatcher = DispatchingTargetAdapter({TargetType.PERSONA: SimulatedTargetAdapter()})
        output = await dispatcher.execute(
            TargetType.PERSONA, "p-1", TestInput(content="x"), Deadline.after(1000), CancelToken()
        )
        assert output["personaId"] == "p-1"

    @pytest.mark.asyncio
    async def test_unknown_target_type(self):
        dispatcher = DispatchingTargetAdapter()
        with pytest.raises(UnsupportedTargetError, match="workflow"):
            await dispatcher.execute(TargetType.WORKFLOW, "w", TestInput(), Deadline.after(1000), CancelToken())


def http_adapter(handler) -> HTTPTargetAdapter:
    settings = HTTPAdapterSettings(base_url="http://subjects.test")
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://subjects.test/")
    return HTTPTargetAdapter(settings, http=client)


class TestHTTPTargetAdapter:
    @pytest.mark.asyncio
    async def test_posts_input_and_parses_json(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"content": "Hello there"})

        adapter = http_adapter(handler)
        output = await adapter.execute(
            TargetType.WORKFLOW, "wf-1", TestInput(content="Hello"), Deadline.after(1000), CancelToken()
        )

        assert output == {"content": "Hello there"}
        assert seen["path"] == "/workflows/wf-1/execute"
        assert seen["body"]["input"]["content"] == "Hello"

    @pytest.mark.asyncio
    async def test_text_response(self):
        adapter = http_adapter(lambda request: httpx.Response(200, text="plain"))
        output = await adapter.execute(TargetType.AGENT, "a", TestInput(), Deadline.after(1000), CancelToken())
        assert output == "plain"

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        adapter = http_adapter(lambda request: httpx.Response(503, text="unavailable"))
        with pytest.raises(AdapterError, match="HTTP 503"):
            await adapter.execute(TargetType.AGENT, "a", TestInput(), Deadline.after(1000), CancelToken())

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        adapter = http_adapter(handler)
        with pytest.raises(AdapterError, match="unreachable"):
            await adapter.execute(TargetType.AGENT, "a", TestInput(), Deadline.after(1000), CancelToken())

    @pytest.mark.asyncio
    async def test_transport_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        adapter = http_adapter(handler)
        with pytest.raises(AdapterTimeoutError):
            await adapter.execute(TargetType.AGENT, "a", TestInput(), Deadline.after(1000), CancelToken())

    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_client_open(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        adapter = HTTPTargetAdapter(HTTPAdapterSettings(base_url="http://subjects.test"), http=client)
        await adapter.aclose()
        assert not client.is_closed
        await client.aclose()
