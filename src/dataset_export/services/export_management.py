"""Export management — user-facing operations on export records.

Creation commits the REQUESTED record before its trigger event is published.
If publishing fails the record stays REQUESTED, and
:meth:`ExportManagement.republish_requested_exports` sends the event again
once the record is older than ``republish_after_ms``.
"""

from typing import Any

from loguru import logger

from dataset_export.core.errors import ExportNotFoundError, ExportNotReadyError
from dataset_export.core.timer import Clock, current_time_ms
from dataset_export.lib.image_service import encode_filter_options
from dataset_export.lib.messaging import ExportCreated, ExportCreatedProducer
from dataset_export.lib.storage import BlobReader, BlobStore
from dataset_export.models.export import Export, ExportStatus, ExportType
from dataset_export.services.export_store import CreateExportArguments, ExportStore

REPUBLISH_BATCH_SIZE = 100


class ExportManagement:
    """Create, inspect, download and delete exports.

    Args:
        store: Export record store.
        producer: Publisher of export-created trigger events.
        blob_store: Storage holding finished export files.
        republish_after_ms: Minimum age of a REQUESTED export before its
            trigger event is republished.
        clock: Time source in epoch milliseconds.
    """

    def __init__(
        self,
        store: ExportStore,
        producer: ExportCreatedProducer,
        blob_store: BlobStore,
        *,
        republish_after_ms: int = 10 * 60 * 1000,
        clock: Clock = current_time_ms,
    ) -> None:
        self._store = store
        self._producer = producer
        self._blob_store = blob_store
        self._republish_after_ms = republish_after_ms
        self._clock = clock

    async def create_export(
        self,
        requested_by_user_id: int,
        export_type: ExportType,
        filter_options: dict[str, Any] | None = None,
    ) -> Export:
        """Queue a new export and publish its trigger event.

        Args:
            requested_by_user_id: Owner of the export.
            export_type: Kind of file to produce.
            filter_options: Image filter forwarded to the image service.

        Returns:
            The new export record, REQUESTED with no file and no expiry.

        Raises:
            ExportStoreError: If the record cannot be inserted.
            MessagingError: If the trigger event cannot be published. The
                record is kept and picked up by the republish job.
        """
        export_id = await self._store.create(
            CreateExportArguments(
                requested_by_user_id=requested_by_user_id,
                request_time=self._clock(),
                type=export_type,
                filter_options=encode_filter_options(filter_options),
            )
        )
        # Read back before publishing; a consumer may claim it right after
        export = await self.get_export(export_id)
        logger.info("Created export {} (type={}) for user {}", export_id, export_type.name, requested_by_user_id)
        await self._producer.publish(ExportCreated(export_id=export_id))
        return export

    async def get_export(self, export_id: int) -> Export:
        """Return an export record.

        Raises:
            ExportNotFoundError: If the export does not exist.
        """
        export = await self._store.get(export_id)
        if export is None:
            raise ExportNotFoundError(export_id)
        return export

    async def list_exports(self, requested_by_user_id: int, offset: int, limit: int) -> tuple[int, list[Export]]:
        """List a user's unexpired exports, newest first.

        Returns:
            Tuple of (total count, page of exports).
        """
        now = self._clock()
        total = await self._store.count(requested_by_user_id, now)
        exports = await self._store.list_exports(requested_by_user_id, now, offset, limit)
        return total, exports

    async def get_export_file(self, export_id: int) -> tuple[Export, BlobReader]:
        """Open the finished file of an export for reading.

        Returns:
            The export record and a reader over its file. The caller closes
            the reader.

        Raises:
            ExportNotFoundError: If the export does not exist.
            ExportNotReadyError: If the export is not DONE yet.
            BlobNotFoundError: If the file is missing from storage.
        """
        export = await self.get_export(export_id)
        if export.status != ExportStatus.DONE:
            raise ExportNotReadyError(export_id)
        reader = await self._blob_store.download_stream(export.exported_file_filename)
        return export, reader

    async def delete_export(self, export_id: int) -> None:
        """Delete an export record. The stored file is left to bucket lifecycle rules."""
        await self._store.delete(export_id)
        logger.info("Deleted export {}", export_id)

    async def delete_expired_exports(self) -> int:
        """Delete every export whose expire time has passed."""
        deleted = await self._store.delete_expired(self._clock())
        logger.info("Deleted {} expired exports", deleted)
        return deleted

    async def republish_requested_exports(self) -> int:
        """Republish trigger events of exports stuck in REQUESTED.

        Only exports requested more than ``republish_after_ms`` ago are
        considered, so a freshly created export is not sent twice.

        Returns:
            Number of events published.
        """
        cutoff = self._clock() - self._republish_after_ms
        published = 0
        last_id = 0
        while True:
            batch = await self._store.list_requested_before(cutoff, REPUBLISH_BATCH_SIZE, after_id=last_id)
            if not batch:
                break
            for export in batch:
                await self._producer.publish(ExportCreated(export_id=export.id))
                published += 1
            last_id = batch[-1].id
            if len(batch) < REPUBLISH_BATCH_SIZE:
                break
        logger.info("Republished {} requested exports", published)
        return published
