"""Kafka consumer that drives export processing from export-created events.

Offsets are committed only after the handler returns, so an event whose
handling fails is delivered again once the consumer group resumes. Handler
failures are re-raised from :meth:`ExportCreatedConsumer.run` and are never
swallowed here.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from aiokafka import AIOKafkaConsumer
from loguru import logger
from pydantic import ValidationError

from dataset_export.lib.messaging.events import ExportCreated

ExportCreatedHandler = Callable[[ExportCreated], Awaitable[None]]


class ExportCreatedConsumer:
    """Consumes export-created events and hands each one to ``handler``.

    Args:
        topic: Topic name.
        handler: Coroutine function invoked once per decoded event.
        bootstrap_servers: Kafka bootstrap servers.
        group_id: Consumer group.
        client_id: Client ID reported to the brokers.
        consumer: Pre-built consumer; one is created from the other
            arguments when omitted.
    """

    def __init__(
        self,
        topic: str,
        handler: ExportCreatedHandler,
        *,
        bootstrap_servers: list[str] | str | None = None,
        group_id: str = "export_service",
        client_id: str = "dataset-export",
        consumer: Any | None = None,
    ) -> None:
        self.topic = topic
        self._handler = handler
        if consumer is None:
            consumer = AIOKafkaConsumer(
                topic,
                bootstrap_servers=bootstrap_servers,
                group_id=group_id,
                client_id=client_id,
                enable_auto_commit=False,
                auto_offset_reset="earliest",
            )
        self._consumer = consumer

    async def run(self) -> None:
        """Consume until cancelled or until a handler fails."""
        await self._consumer.start()
        logger.info("Export-created consumer started for topic {}", self.topic)
        try:
            async for message in self._consumer:
                await self.handle_message(message.value, partition=message.partition, offset=message.offset)
                await self._consumer.commit()
        finally:
            await self._consumer.stop()
            logger.info("Export-created consumer stopped")

    async def handle_message(self, value: bytes | None, *, partition: int = -1, offset: int = -1) -> None:
        """Decode one message and run the handler on it.

        Null or undecodable payloads are logged and skipped.
        """
        if value is None:
            logger.error("Null message at {}:{}@{}, skipping", self.topic, partition, offset)
            return
        try:
            event = ExportCreated.from_bytes(value)
        except ValidationError as e:
            logger.error("Undecodable message at {}:{}@{}, skipping: {}", self.topic, partition, offset, e)
            return

        try:
            await self._handler(event)
        except Exception:
            logger.exception(
                "Failed to handle {} message for export {} at partition {} offset {}",
                self.topic,
                event.export_id,
                partition,
                offset,
            )
            raise
