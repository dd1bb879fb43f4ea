"""Cancellable execution context shared by the poll loop, the consumer and the caller."""
from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from sns_listener.app.domain.errors import OperationCancelledError

T = TypeVar("T")


class ListenContext:
    """Cooperative cancellation signal for one listen run.

    cancel() is idempotent. Waiting and guarded calls observe it and return promptly;
    nothing is preempted.
    """

    def __init__(self) -> None:
        self._stopped = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._stopped.is_set()

    def cancel(self) -> None:
        self._stopped.set()

    async def wait(self) -> None:
        await self._stopped.wait()

    async def sleep(self, seconds: float) -> bool:
        """Sleep for seconds or until cancelled. Returns True if cancellation came first."""
        if self.cancelled:
            return True
        try:
            await asyncio.wait_for(self._stopped.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def guard(self, call: Awaitable[T]) -> T:
        """Await call, abandoning it with OperationCancelledError if the context is cancelled first."""
        if self.cancelled:
            if asyncio.iscoroutine(call):
                call.close()
            raise OperationCancelledError("context cancelled before call started")

        call_task = asyncio.ensure_future(call)
        stop_task = asyncio.ensure_future(self._stopped.wait())
        try:
            done, _ = await asyncio.wait(
                {call_task, stop_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            call_task.cancel()
            raise
        finally:
            stop_task.cancel()

        if call_task in done:
            return call_task.result()

        call_task.cancel()
        await asyncio.gather(call_task, return_exceptions=True)
        raise OperationCancelledError("context cancelled while call was in flight")
