"""
Topic listener: provisions a queue, subscribes it to a topic, polls it, and cleans up.

Lifecycle:
  IDLE -> RESOLVING (only with a parameter path) -> PROVISIONING -> SUBSCRIBING ->
  LISTENING -> TEARING_DOWN -> DONE.
  A failure or cancellation during resolving, provisioning or subscribing moves to FAILED after the
  resources created so far have been unwound.

Every created resource pushes its cleanup step onto a rollback stack. A failed setup
and a normal teardown both unwind that stack in reverse order; every step runs even
if an earlier one failed, and their failures are combined into one TeardownError.
Cleanup never uses the listen context, so the cancellation that stopped polling does
not abort it.
"""
from __future__ import annotations

import asyncio
from dataclasses import replace
from functools import partial
from typing import Awaitable, Callable

from sns_listener.app.application.parameter_resolver import ParameterResolver
from sns_listener.app.application.poll_loop import PollLoop
from sns_listener.app.application.queue_provisioner import QueueProvisioner
from sns_listener.app.application.subscription_manager import SubscriptionManager
from sns_listener.app.constants import DEFAULT_POLLING_INTERVAL_SECONDS, ListenerState
from sns_listener.app.core.telemetry import Telemetry
from sns_listener.app.domain.errors import ResolutionError, StartupError, TeardownError
from sns_listener.app.domain.listen_context import ListenContext
from sns_listener.app.domain.models import ListenerConfig, ProvisionedQueue, Subscription
from sns_listener.app.ports.consumer import Consumer
from sns_listener.app.ports.parameter_store import ParameterStore
from sns_listener.app.ports.queue_service import QueueService
from sns_listener.app.ports.topic_service import TopicService

RollbackStep = Callable[[], Awaitable[TeardownError | None]]


class TopicListener:
    """Owns one queue and one subscription for the duration of a single run."""

    def __init__(
        self,
        config: ListenerConfig,
        queue_service: QueueService,
        topic_service: TopicService,
        parameter_store: ParameterStore | None = None,
        *,
        telemetry: Telemetry | None = None,
    ) -> None:
        self._telemetry = telemetry if telemetry is not None else Telemetry(verbose=config.verbose)
        if config.polling_interval_seconds <= 0:
            self._telemetry.warning(
                "polling interval {}s is not positive, using {}s",
                config.polling_interval_seconds,
                DEFAULT_POLLING_INTERVAL_SECONDS,
            )
            config = replace(config, polling_interval_seconds=DEFAULT_POLLING_INTERVAL_SECONDS)
        self._config = config

        self._resolver = (
            ParameterResolver(parameter_store, self._telemetry) if parameter_store is not None else None
        )
        self._provisioner = QueueProvisioner(queue_service, self._telemetry)
        self._subscriptions = SubscriptionManager(topic_service, self._telemetry)
        self._poll_loop = PollLoop(
            queue_service,
            self._telemetry,
            polling_interval_seconds=config.polling_interval_seconds,
        )

        self._state = ListenerState.IDLE
        self._topic_arn = config.topic_arn
        self._queue: ProvisionedQueue | None = None
        self._subscription: Subscription | None = None
        self._rollback: list[tuple[str, RollbackStep]] = []

    @property
    def config(self) -> ListenerConfig:
        return self._config

    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def topic_arn(self) -> str:
        return self._topic_arn

    @property
    def queue(self) -> ProvisionedQueue | None:
        return self._queue

    @property
    def subscription(self) -> Subscription | None:
        return self._subscription

    def _set_state(self, state: ListenerState) -> None:
        self._state = state
        self._telemetry.event("listener_state_changed", state=state.value)

    async def setup(self) -> None:
        """Resolve, provision and subscribe. On failure, unwind and re-raise the startup error."""
        if self._state is not ListenerState.IDLE:
            raise RuntimeError(f"setup requires state {ListenerState.IDLE.value}, not {self._state.value}")

        with self._telemetry.span("startup"):
            try:
                await self._setup_resources()
            except StartupError as exc:
                self._set_state(ListenerState.FAILED)
                exc.rollback_error = await self._unwind()
                if exc.rollback_error is not None:
                    self._telemetry.warning("rollback after failed startup was incomplete: {}", exc.rollback_error)
                raise
            except (Exception, asyncio.CancelledError):
                self._set_state(ListenerState.FAILED)
                rollback_error = await self._unwind()
                if rollback_error is not None:
                    self._telemetry.warning("rollback after failed startup was incomplete: {}", rollback_error)
                raise

        self._set_state(ListenerState.LISTENING)

    async def _setup_resources(self) -> None:
        if self._config.parameter_path:
            self._set_state(ListenerState.RESOLVING)
            if self._resolver is None:
                raise ResolutionError(
                    f"parameter path {self._config.parameter_path} is set but no parameter store was given"
                )
            self._topic_arn = await self._resolver.resolve(self._config.parameter_path)

        self._set_state(ListenerState.PROVISIONING)
        queue = await self._provisioner.provision(self._config.queue_name, self._topic_arn)
        self._queue = queue
        self._rollback.append(("delete_queue", partial(self._provisioner.teardown, queue.url)))

        queue_arn = await self._provisioner.fetch_arn(queue.url)
        self._queue = replace(queue, arn=queue_arn)

        self._set_state(ListenerState.SUBSCRIBING)
        subscription = await self._subscriptions.subscribe(self._topic_arn, queue_arn)
        self._subscription = subscription
        self._rollback.append(("unsubscribe", partial(self._subscriptions.unsubscribe, subscription.arn)))

    async def listen(self, ctx: ListenContext, consumer: Consumer) -> None:
        """Poll the queue until ctx is cancelled."""
        if self._state is not ListenerState.LISTENING or self._queue is None:
            raise RuntimeError("listener is not set up")
        await self._poll_loop.run(ctx, self._queue.url, consumer)

    async def teardown(self) -> None:
        """Unsubscribe and delete the queue, raising a combined TeardownError if either failed."""
        if self._state in (ListenerState.DONE, ListenerState.FAILED):
            return
        if self._state is not ListenerState.LISTENING:
            raise RuntimeError(f"teardown is not possible in state {self._state.value}")

        self._set_state(ListenerState.TEARING_DOWN)
        try:
            error = await self._unwind()
        finally:
            self._set_state(ListenerState.DONE)
        if error is not None:
            raise error

    async def run(self, ctx: ListenContext, consumer: Consumer) -> None:
        """Setup, listen until ctx is cancelled, then tear down."""
        await self.setup()
        try:
            await self.listen(ctx, consumer)
        finally:
            await self.teardown()

    async def _unwind(self) -> TeardownError | None:
        errors: list[TeardownError] = []
        while self._rollback:
            name, step = self._rollback.pop()
            self._telemetry.event("rollback_step", step=name)
            error = await step()
            if error is not None:
                errors.append(error)
        return TeardownError.combine(errors)
