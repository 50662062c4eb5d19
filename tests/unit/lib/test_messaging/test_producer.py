"""Tests for ExportCreatedProducer."""

from unittest.mock import AsyncMock, Mock

import pytest
from aiokafka.errors import KafkaTimeoutError

from dataset_export.core.errors import MessagingError
from dataset_export.lib.messaging import ExportCreated, ExportCreatedProducer

TOPIC = "export_service_export_created"


def _make_kafka_mock():
    mock = Mock()
    mock.start = AsyncMock()
    mock.stop = AsyncMock()
    mock.send_and_wait = AsyncMock()
    return mock


class TestExportCreatedProducer:
    async def test_publish_sends_payload_keyed_by_export_id(self) -> None:
        kafka = _make_kafka_mock()
        producer = ExportCreatedProducer(TOPIC, producer=kafka)
        await producer.start()

        await producer.publish(ExportCreated(export_id=5))

        kafka.send_and_wait.assert_awaited_once_with(TOPIC, value=b'{"exportId":5}', key=b"5")

    async def test_publish_before_start_raises(self) -> None:
        producer = ExportCreatedProducer(TOPIC, producer=_make_kafka_mock())

        with pytest.raises(MessagingError, match="not started"):
            await producer.publish(ExportCreated(export_id=5))

    async def test_kafka_error_is_wrapped(self) -> None:
        kafka = _make_kafka_mock()
        kafka.send_and_wait.side_effect = KafkaTimeoutError()
        producer = ExportCreatedProducer(TOPIC, producer=kafka)
        await producer.start()

        with pytest.raises(MessagingError, match=TOPIC):
            await producer.publish(ExportCreated(export_id=5))

    async def test_start_and_stop_are_idempotent(self) -> None:
        kafka = _make_kafka_mock()
        producer = ExportCreatedProducer(TOPIC, producer=kafka)

        await producer.start()
        await producer.start()
        await producer.stop()
        await producer.stop()

        kafka.start.assert_awaited_once()
        kafka.stop.assert_awaited_once()
