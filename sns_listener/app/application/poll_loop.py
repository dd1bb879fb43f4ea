"""
Poll loop: receive at most one message per interval and hand it to the consumer.

States: POLLING -> STOPPED. The only way out is cancellation of the listen context,
either observed while waiting for the interval or reported by an in-flight receive
or delete call. Any other receive/delete failure goes to Consumer.on_error as a
PollError and polling continues after the next interval.

A message whose delete call fails is still delivered: the consumer may see it again
once the visibility timeout expires, but a received message is never dropped silently.
"""
from __future__ import annotations

from sns_listener.app.constants import (
    MAX_MESSAGES_PER_RECEIVE,
    VISIBILITY_TIMEOUT_SECONDS,
    PollState,
)
from sns_listener.app.core.telemetry import Telemetry
from sns_listener.app.domain.errors import OperationCancelledError, PollError
from sns_listener.app.domain.listen_context import ListenContext
from sns_listener.app.domain.models import MessageContent, QueueMessage
from sns_listener.app.ports.consumer import Consumer
from sns_listener.app.ports.queue_service import QueueService


def _poll_error(message: str, exc: Exception) -> PollError:
    error = PollError(message)
    error.__cause__ = exc
    return error


class PollLoop:
    """Single-task receive/delete/deliver loop over one queue."""

    def __init__(
        self,
        queue_service: QueueService,
        telemetry: Telemetry,
        *,
        polling_interval_seconds: float,
    ) -> None:
        self._queue_service = queue_service
        self._telemetry = telemetry
        self._polling_interval_seconds = polling_interval_seconds
        self._state = PollState.STOPPED

    @property
    def state(self) -> PollState:
        return self._state

    async def run(self, ctx: ListenContext, queue_url: str, consumer: Consumer) -> None:
        self._state = PollState.POLLING
        self._telemetry.event(
            "listening_started",
            queue_url=queue_url,
            polling_interval_seconds=self._polling_interval_seconds,
        )
        try:
            while self._state is PollState.POLLING:
                if await ctx.sleep(self._polling_interval_seconds):
                    self._telemetry.event("listen_context_cancelled", queue_url=queue_url)
                    break
                if not await self._poll_once(ctx, queue_url, consumer):
                    self._telemetry.event("listen_stopped_in_flight", queue_url=queue_url)
                    break
        finally:
            self._state = PollState.STOPPED
        self._telemetry.event("listening_stopped", queue_url=queue_url)

    async def _poll_once(self, ctx: ListenContext, queue_url: str, consumer: Consumer) -> bool:
        """One receive cycle. Returns False when the context was cancelled mid-call."""
        with self._telemetry.span(
            "listen_to_queue",
            queue_url=queue_url,
            polling_interval_seconds=self._polling_interval_seconds,
        ) as span:
            try:
                messages = await ctx.guard(
                    self._queue_service.receive_messages(
                        queue_url,
                        max_messages=MAX_MESSAGES_PER_RECEIVE,
                        visibility_timeout_seconds=VISIBILITY_TIMEOUT_SECONDS,
                    )
                )
            except OperationCancelledError:
                return False
            except Exception as exc:
                error = _poll_error(f"unable to receive messages from {queue_url}: {exc}", exc)
                Telemetry.record_error(span, error)
                await consumer.on_error(ctx, error)
                return True

            Telemetry.annotate(span, messages_received=len(messages))
            for message in messages:
                if not await self._process_message(ctx, queue_url, message, consumer):
                    return False
            return True

    async def _process_message(
        self,
        ctx: ListenContext,
        queue_url: str,
        message: QueueMessage,
        consumer: Consumer,
    ) -> bool:
        with self._telemetry.span(
            "process_message",
            queue_url=queue_url,
            message_id=message.message_id,
        ) as span:
            try:
                await ctx.guard(self._queue_service.delete_message(queue_url, message.receipt_handle))
            except OperationCancelledError:
                return False
            except Exception as exc:
                error = _poll_error(f"unable to delete message {message.message_id}: {exc}", exc)
                Telemetry.record_error(span, error)
                await consumer.on_error(ctx, error)

            self._telemetry.event("message_received", queue_url=queue_url, message_id=message.message_id)
            await consumer.on_message(ctx, MessageContent.from_queue_message(message))
            return True
