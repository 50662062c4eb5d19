"""Unit tests for service wiring."""

from unittest.mock import AsyncMock, patch

import pytest

from dataset_export.core.components import build_components
from dataset_export.core.config import Settings
from dataset_export.core.database import get_engine
from dataset_export.lib.messaging import ExportCreated
from dataset_export.models.export import ExportType


class TestBuildComponents:
    async def test_wires_services_and_releases_resources(self, settings: Settings) -> None:
        with patch("dataset_export.lib.messaging.producer.AIOKafkaProducer") as producer_cls:
            producer_cls.return_value.start = AsyncMock()
            producer_cls.return_value.stop = AsyncMock()

            async with build_components(settings) as components:
                assert components.settings is settings
                assert components.blob_store.bucket == settings.s3_export_bucket
                assert get_engine() is not None
                assert set(components.operator._builders) == set(ExportType)

            producer_cls.return_value.start.assert_awaited_once()
            producer_cls.return_value.stop.assert_awaited_once()

        with pytest.raises(RuntimeError, match="not initialized"):
            get_engine()

    async def test_consumer_handler_runs_operator(self, settings: Settings) -> None:
        with (
            patch("dataset_export.lib.messaging.producer.AIOKafkaProducer"),
            patch("dataset_export.lib.messaging.consumer.AIOKafkaConsumer") as consumer_cls,
        ):
            async with build_components(settings, start_producer=False) as components:
                components.operator.process_export = AsyncMock()
                consumer = components.create_consumer()

                await consumer.handle_message(ExportCreated(export_id=8).to_bytes())

            components.operator.process_export.assert_awaited_once_with(8)
            assert consumer_cls.call_args.args == (settings.kafka_export_created_topic,)
            assert consumer_cls.call_args.kwargs["group_id"] == "export_service"
            assert consumer_cls.call_args.kwargs["enable_auto_commit"] is False
