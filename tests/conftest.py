from __future__ import annotations

import pytest

from tests.fakes import FakeParameterStore, FakeQueueService, FakeTopicService, RecordingConsumer


@pytest.fixture()
def queue_service() -> FakeQueueService:
    return FakeQueueService()


@pytest.fixture()
def topic_service() -> FakeTopicService:
    return FakeTopicService()


@pytest.fixture()
def parameter_store() -> FakeParameterStore:
    return FakeParameterStore()


@pytest.fixture()
def consumer() -> RecordingConsumer:
    return RecordingConsumer()
