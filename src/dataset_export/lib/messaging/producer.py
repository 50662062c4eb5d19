"""Kafka producer for export-created trigger events."""

from typing import Any

from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaError
from loguru import logger

from dataset_export.core.errors import MessagingError
from dataset_export.lib.messaging.events import ExportCreated


class ExportCreatedProducer:
    """Publishes ``ExportCreated`` events to the export-created topic.

    Args:
        topic: Topic name.
        bootstrap_servers: Kafka bootstrap servers.
        client_id: Client ID reported to the brokers.
        producer: Pre-built producer; one is created from the other
            arguments when omitted.
    """

    def __init__(
        self,
        topic: str,
        *,
        bootstrap_servers: list[str] | str | None = None,
        client_id: str = "dataset-export",
        request_timeout_ms: int = 30000,
        producer: Any | None = None,
    ) -> None:
        self.topic = topic
        if producer is None:
            producer = AIOKafkaProducer(
                bootstrap_servers=bootstrap_servers,
                client_id=client_id,
                acks="all",
                enable_idempotence=True,
                request_timeout_ms=request_timeout_ms,
            )
        self._producer = producer
        self._started = False

    async def start(self) -> None:
        if self._started:
            logger.warning("Producer already started, ignoring duplicate start call")
            return
        await self._producer.start()
        self._started = True
        logger.info("Export-created producer started for topic {}", self.topic)

    async def stop(self) -> None:
        if not self._started:
            logger.debug("Producer already stopped")
            return
        try:
            await self._producer.stop()
            logger.info("Export-created producer stopped")
        finally:
            self._started = False

    async def publish(self, event: ExportCreated) -> None:
        """Publish an event and wait for the broker acknowledgement.

        Raises:
            MessagingError: If the producer is not started or the send fails.
        """
        if not self._started:
            msg = "Producer not started. Call start() first."
            raise MessagingError(msg)
        try:
            await self._producer.send_and_wait(
                self.topic,
                value=event.to_bytes(),
                key=str(event.export_id).encode("utf-8"),
            )
        except KafkaError as e:
            logger.error("Failed to publish {} message for export {}: {}", self.topic, event.export_id, e)
            raise MessagingError(f"failed to create {self.topic} message") from e
        logger.debug("Published {} message for export {}", self.topic, event.export_id)
