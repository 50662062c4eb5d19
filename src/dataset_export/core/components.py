"""Explicit construction of the export service object graph.

Everything the API, the consumer and the CLI jobs need is built here from
``Settings`` and torn down in reverse order when the context exits.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

import httpx
from loguru import logger

from dataset_export.core.config import Settings
from dataset_export.core.database import dispose_engine, get_session_factory, init_engine
from dataset_export.lib.exporter import create_builders
from dataset_export.lib.image_service import DatasetMetadataProvider, ImageServiceClient, UserServiceClient
from dataset_export.lib.messaging import ExportCreated, ExportCreatedConsumer, ExportCreatedProducer
from dataset_export.lib.storage import BlobStore, create_s3_client
from dataset_export.services.export_management import ExportManagement
from dataset_export.services.export_operator import ExportOperator
from dataset_export.services.export_store import ExportStore


@dataclass
class Components:
    """Wired service objects sharing one engine, HTTP client and producer."""

    settings: Settings
    store: ExportStore
    blob_store: BlobStore
    producer: ExportCreatedProducer
    management: ExportManagement
    operator: ExportOperator

    def create_consumer(self) -> ExportCreatedConsumer:
        """Create a consumer that runs the operator for every export-created event."""

        async def handle(event: ExportCreated) -> None:
            await self.operator.process_export(event.export_id)

        return ExportCreatedConsumer(
            self.settings.kafka_export_created_topic,
            handle,
            bootstrap_servers=self.settings.kafka_bootstrap_server_list,
            group_id=self.settings.kafka_consumer_group,
            client_id=self.settings.kafka_client_id,
        )


@asynccontextmanager
async def build_components(settings: Settings, *, start_producer: bool = True) -> AsyncIterator[Components]:
    """Build the service object graph and release its resources on exit.

    Args:
        settings: Application settings.
        start_producer: Connect the trigger event producer. Commands that
            never publish can skip it.

    Yields:
        The wired components.
    """
    init_engine(
        settings.database_url,
        schema=settings.database_schema,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    http_client = httpx.AsyncClient(timeout=settings.image_service_timeout)
    producer = ExportCreatedProducer(
        settings.kafka_export_created_topic,
        bootstrap_servers=settings.kafka_bootstrap_server_list,
        client_id=settings.kafka_client_id,
        request_timeout_ms=settings.kafka_request_timeout_ms,
    )

    try:
        store = ExportStore(get_session_factory())
        blob_store = BlobStore(
            create_s3_client(
                endpoint_url=settings.s3_endpoint_url,
                access_key_id=settings.s3_access_key_id,
                secret_access_key=settings.s3_secret_access_key,
                region_name=settings.s3_region,
            ),
            settings.s3_export_bucket,
        )
        metadata_provider = DatasetMetadataProvider(
            ImageServiceClient(http_client, settings.image_service_url),
            batch_size=settings.image_list_batch_size,
        )
        builders = create_builders(
            image_files=metadata_provider,
            users=UserServiceClient(http_client, settings.user_service_url),
        )
        operator = ExportOperator(
            store,
            metadata_provider,
            builders,
            blob_store,
            expire_time_ms=settings.export_expire_time_ms,
            scratch_root=Path(settings.export_scratch_dir) if settings.export_scratch_dir else None,
        )
        management = ExportManagement(
            store,
            producer,
            blob_store,
            republish_after_ms=settings.republish_after_ms,
        )

        if start_producer:
            await producer.start()

        logger.debug("Export service components ready")
        yield Components(
            settings=settings,
            store=store,
            blob_store=blob_store,
            producer=producer,
            management=management,
            operator=operator,
        )
    finally:
        await producer.stop()
        await http_client.aclose()
        await dispose_engine()
