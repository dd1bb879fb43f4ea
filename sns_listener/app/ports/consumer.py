"""Port: caller-supplied message consumer driven by the poll loop."""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from sns_listener.app.domain.listen_context import ListenContext
from sns_listener.app.domain.models import MessageContent


@runtime_checkable
class Consumer(Protocol):
    """Receives messages and non-fatal errors while the listener runs.

    Both methods get the listen context, so an implementation can cancel the run.
    """

    async def on_message(self, ctx: ListenContext, message: MessageContent) -> None:
        """Called once per received message. Not called when a poll returns nothing."""
        ...

    async def on_error(self, ctx: ListenContext, error: Exception) -> None:
        """Called when receiving or deleting a message fails for a reason other than cancellation."""
        ...
