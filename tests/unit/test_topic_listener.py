"""Unit tests for the listener lifecycle: setup, rollback on partial failure, teardown aggregation."""
from __future__ import annotations

import asyncio
import re

import pytest

from sns_listener.app.application.topic_listener import TopicListener
from sns_listener.app.constants import ListenerState
from sns_listener.app.domain.errors import (
    ProvisioningError,
    ResolutionError,
    SubscriptionError,
    TeardownError,
)
from sns_listener.app.domain.listen_context import ListenContext
from sns_listener.app.domain.models import ListenerConfig
from sns_listener.app.ports.queue_service import QueueServiceError
from sns_listener.app.ports.topic_service import TopicServiceError
from tests.fakes import (
    FIFO_TOPIC_ARN,
    TOPIC_ARN,
    FakeParameterStore,
    FakeQueueService,
    FakeTopicService,
    RecordingConsumer,
    queue_message,
)

GENERATED_NAME = re.compile(
    r"^sns-listener-[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)


def _config(**kwargs) -> ListenerConfig:
    values = {"topic_arn": TOPIC_ARN, "polling_interval_seconds": 0.01}
    values.update(kwargs)
    return ListenerConfig(**values)


@pytest.mark.asyncio
async def test_run_with_generated_queue_name_and_clean_teardown():
    queue_service = FakeQueueService(receive_results=[[queue_message("m1")]])
    topic_service = FakeTopicService()
    consumer = RecordingConsumer(cancel_on_message=True)
    listener = TopicListener(_config(queue_name=""), queue_service, topic_service)

    await asyncio.wait_for(listener.run(ListenContext(), consumer), timeout=5)

    assert listener.queue is not None
    assert GENERATED_NAME.match(listener.queue.name)
    assert listener.queue.arn.endswith(listener.queue.name)
    assert listener.subscription is not None and listener.subscription.arn
    assert consumer.calls == ["on_message"]
    assert queue_service.deleted_queues == [listener.queue.url]
    assert topic_service.unsubscribed == [listener.subscription.arn]
    assert listener.state is ListenerState.DONE


@pytest.mark.asyncio
async def test_setup_subscribes_queue_arn_to_topic():
    queue_service = FakeQueueService()
    topic_service = FakeTopicService()
    listener = TopicListener(_config(queue_name="listener"), queue_service, topic_service)

    await listener.setup()

    assert listener.state is ListenerState.LISTENING
    assert topic_service.subscribe_calls == [
        (TOPIC_ARN, "arn:aws:sqs:eu-west-1:123456789012:listener", "sqs"),
    ]


@pytest.mark.asyncio
async def test_parameter_path_is_resolved_and_wins_over_topic_arn():
    store = FakeParameterStore({"/listener/topic": FIFO_TOPIC_ARN})
    queue_service = FakeQueueService()
    topic_service = FakeTopicService()
    listener = TopicListener(
        _config(topic_arn=TOPIC_ARN, parameter_path="/listener/topic", queue_name="listener"),
        queue_service,
        topic_service,
        store,
    )

    await listener.setup()

    assert listener.topic_arn == FIFO_TOPIC_ARN
    assert listener.queue is not None
    assert listener.queue.name == "listener.fifo"
    assert listener.queue.is_fifo is True
    assert topic_service.subscribe_calls[0][0] == FIFO_TOPIC_ARN


@pytest.mark.asyncio
async def test_resolution_failure_creates_nothing():
    queue_service = FakeQueueService()
    topic_service = FakeTopicService()
    listener = TopicListener(
        ListenerConfig(parameter_path="/missing"),
        queue_service,
        topic_service,
        FakeParameterStore(),
    )

    with pytest.raises(ResolutionError):
        await listener.setup()

    assert queue_service.create_calls == []
    assert topic_service.subscribe_calls == []
    assert listener.state is ListenerState.FAILED


@pytest.mark.asyncio
async def test_parameter_path_without_store_is_resolution_error():
    queue_service = FakeQueueService()
    listener = TopicListener(ListenerConfig(parameter_path="/listener/topic"), queue_service, FakeTopicService())

    with pytest.raises(ResolutionError, match="no parameter store"):
        await listener.setup()
    assert queue_service.create_calls == []


@pytest.mark.asyncio
async def test_invalid_queue_name_fails_before_any_resource_exists():
    queue_service = FakeQueueService()
    topic_service = FakeTopicService()
    listener = TopicListener(_config(queue_name="not a valid name"), queue_service, topic_service)

    with pytest.raises(ProvisioningError) as excinfo:
        await listener.setup()

    assert excinfo.value.rollback_error is None
    assert listener.queue is None
    assert queue_service.create_calls == []
    assert queue_service.deleted_queues == []
    assert topic_service.subscribe_calls == []


@pytest.mark.asyncio
async def test_arn_lookup_failure_deletes_created_queue():
    queue_service = FakeQueueService(raise_on_get_arn=QueueServiceError("AccessDenied"))
    topic_service = FakeTopicService()
    listener = TopicListener(_config(queue_name="listener"), queue_service, topic_service)

    with pytest.raises(ProvisioningError):
        await listener.setup()

    assert queue_service.events == ["create_queue", "get_queue_arn", "delete_queue"]
    assert topic_service.subscribe_calls == []


@pytest.mark.asyncio
async def test_subscription_failure_still_deletes_created_queue():
    queue_service = FakeQueueService()
    topic_service = FakeTopicService(raise_on_subscribe=TopicServiceError("AuthorizationError"))
    listener = TopicListener(_config(queue_name="listener"), queue_service, topic_service)

    with pytest.raises(SubscriptionError) as excinfo:
        await listener.setup()

    assert excinfo.value.rollback_error is None
    assert queue_service.deleted_queues == [
        "https://sqs.eu-west-1.amazonaws.com/123456789012/listener",
    ]
    assert topic_service.unsubscribed == []
    assert listener.state is ListenerState.FAILED

    await listener.teardown()
    assert len(queue_service.deleted_queues) == 1


@pytest.mark.asyncio
async def test_failed_rollback_is_attached_to_startup_error():
    queue_service = FakeQueueService(raise_on_delete_queue=QueueServiceError("AccessDenied"))
    topic_service = FakeTopicService(raise_on_subscribe=TopicServiceError("AuthorizationError"))
    listener = TopicListener(_config(queue_name="listener"), queue_service, topic_service)

    with pytest.raises(SubscriptionError) as excinfo:
        await listener.setup()

    assert isinstance(excinfo.value.rollback_error, TeardownError)
    assert "AccessDenied" in str(excinfo.value.rollback_error)


@pytest.mark.asyncio
async def test_teardown_unsubscribes_before_deleting_queue():
    events: list[str] = []
    queue_service = FakeQueueService(events=events)
    topic_service = FakeTopicService(events=events)
    listener = TopicListener(_config(), queue_service, topic_service)

    await listener.setup()
    await listener.teardown()

    assert events == ["create_queue", "get_queue_arn", "subscribe", "unsubscribe", "delete_queue"]
    assert listener.state is ListenerState.DONE


@pytest.mark.asyncio
async def test_teardown_failures_are_combined():
    queue_service = FakeQueueService(raise_on_delete_queue=QueueServiceError("queue denied"))
    topic_service = FakeTopicService(raise_on_unsubscribe=TopicServiceError("topic denied"))
    listener = TopicListener(_config(), queue_service, topic_service)
    await listener.setup()

    with pytest.raises(TeardownError) as excinfo:
        await listener.teardown()

    assert len(excinfo.value.errors) == 2
    assert "topic denied" in str(excinfo.value)
    assert "queue denied" in str(excinfo.value)
    assert listener.state is ListenerState.DONE


@pytest.mark.asyncio
async def test_unsubscribe_failure_does_not_skip_queue_deletion():
    queue_service = FakeQueueService()
    topic_service = FakeTopicService(raise_on_unsubscribe=TopicServiceError("topic denied"))
    listener = TopicListener(_config(), queue_service, topic_service)
    await listener.setup()

    with pytest.raises(TeardownError) as excinfo:
        await listener.teardown()

    assert len(excinfo.value.errors) == 1
    assert len(queue_service.deleted_queues) == 1


@pytest.mark.asyncio
async def test_consumer_failure_still_tears_down():
    class ExplodingConsumer(RecordingConsumer):
        async def on_message(self, ctx, message):
            raise RuntimeError("consumer bug")

    queue_service = FakeQueueService(receive_results=[[queue_message()]])
    topic_service = FakeTopicService()
    listener = TopicListener(_config(), queue_service, topic_service)

    with pytest.raises(RuntimeError, match="consumer bug"):
        await asyncio.wait_for(listener.run(ListenContext(), ExplodingConsumer()), timeout=5)

    assert len(queue_service.deleted_queues) == 1
    assert len(topic_service.unsubscribed) == 1


@pytest.mark.asyncio
async def test_listen_before_setup_is_rejected():
    listener = TopicListener(_config(), FakeQueueService(), FakeTopicService())

    with pytest.raises(RuntimeError, match="not set up"):
        await listener.listen(ListenContext(), RecordingConsumer())


@pytest.mark.asyncio
async def test_setup_twice_is_rejected():
    listener = TopicListener(_config(), FakeQueueService(), FakeTopicService())
    await listener.setup()

    with pytest.raises(RuntimeError):
        await listener.setup()


@pytest.mark.parametrize("interval", [0, -5.0])
def test_non_positive_polling_interval_falls_back_to_one_second(interval):
    listener = TopicListener(
        _config(polling_interval_seconds=interval),
        FakeQueueService(),
        FakeTopicService(),
    )

    assert listener.config.polling_interval_seconds == 1.0


def test_config_needs_a_topic_source():
    with pytest.raises(ValueError):
        ListenerConfig()


def test_verbose_config_enables_default_telemetry(queue_service, topic_service):
    listener = TopicListener(_config(verbose=True), queue_service, topic_service)
    quiet = TopicListener(_config(), queue_service, topic_service)

    assert listener._telemetry.verbose is True
    assert quiet._telemetry.verbose is False


@pytest.mark.asyncio
async def test_cancelled_setup_deletes_created_queue(queue_service):
    topic_service = FakeTopicService(block_subscribe=True)
    listener = TopicListener(_config(queue_name="listener"), queue_service, topic_service)

    setup_task = asyncio.create_task(listener.setup())
    await asyncio.wait_for(topic_service.subscribe_started.wait(), timeout=5)
    setup_task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await setup_task

    assert listener.state is ListenerState.FAILED
    assert len(queue_service.create_calls) == 1
    assert queue_service.deleted_queues == [listener.queue.url]
    assert topic_service.unsubscribed == []
    await listener.teardown()
    assert queue_service.deleted_queues == [listener.queue.url]
