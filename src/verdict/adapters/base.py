"""Target adapter contract, deadlines and cancellation tokens."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from verdict.errors import AdapterTimeoutError, RunCancelledError, UnsupportedTargetError
from verdict.models import TargetType, TestInput


T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Deadline:
    """Hard cutoff for one target call, on the monotonic clock."""

    expires_at: float
    timeout_ms: int

    @classmethod
    def after(cls, timeout_ms: int) -> Deadline:
        return cls(expires_at=time.monotonic() + timeout_ms / 1000, timeout_ms=timeout_ms)

    def remaining(self) -> float:
        """Seconds left before the deadline, never negative."""
        return max(0.0, self.expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at


class CancelToken:
    """Cooperative cancellation signal shared by every case of one run."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    def cancel(self, reason: str | None = None) -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


class TargetAdapter(Protocol):
    """Executes one test input against one subject.

    Implementations must give up with ``AdapterTimeoutError`` once the
    deadline passes and with ``RunCancelledError`` once the token is set.
    Any exception raised is recorded as a case-level error.
    """

    async def execute(
        self,
        target_type: TargetType,
        target_id: str,
        test_input: TestInput,
        deadline: Deadline,
        cancel: CancelToken,
    ) -> Any:
        """Return the raw output produced by the subject."""
        ...


async def run_within_deadline(work: Awaitable[T], deadline: Deadline, cancel: CancelToken) -> T:
    """Await ``work`` until it finishes, the deadline passes, or the run is cancelled.

    The losing side is cancelled, so adapters can wrap any awaitable
    without leaking tasks.
    """
    work_task = asyncio.ensure_future(work)
    if cancel.cancelled or deadline.expired:
        work_task.cancel()
        await asyncio.gather(work_task, return_exceptions=True)
        if cancel.cancelled:
            raise RunCancelledError()
        raise AdapterTimeoutError(f"Target call exceeded {deadline.timeout_ms}ms deadline")

    cancel_task = asyncio.create_task(cancel.wait())
    try:
        done, _ = await asyncio.wait(
            {work_task, cancel_task},
            timeout=deadline.remaining(),
            return_when=asyncio.FIRST_COMPLETED,
        )
    finally:
        cancel_task.cancel()
        if not work_task.done():
            work_task.cancel()
            await asyncio.gather(work_task, return_exceptions=True)

    if work_task in done:
        return work_task.result()
    if cancel.cancelled:
        raise RunCancelledError()
    raise AdapterTimeoutError(f"Target call exceeded {deadline.timeout_ms}ms deadline")


class DispatchingTargetAdapter:
    """Routes each call to the adapter registered for its target type."""

    def __init__(self, adapters: Mapping[TargetType, TargetAdapter] | None = None) -> None:
        self._adapters: dict[TargetType, TargetAdapter] = dict(adapters or {})

    def register(self, target_type: TargetType, adapter: TargetAdapter) -> None:
        self._adapters[target_type] = adapter

    async def execute(
        self,
        target_type: TargetType,
        target_id: str,
        test_input: TestInput,
        deadline: Deadline,
        cancel: CancelToken,
    ) -> Any:
        adapter = self._adapters.get(target_type)
        if adapter is None:
            raise UnsupportedTargetError(target_type.value)
        return await adapter.execute(target_type, target_id, test_input, deadline, cancel)
