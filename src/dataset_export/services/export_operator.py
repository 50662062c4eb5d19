"""Export operator — turns a REQUESTED export into an uploaded file.

Processing runs in four steps:

1. Claim: lock the row, move REQUESTED to PROCESSING, commit.
2. Fetch: page the dataset out of the image service, plus the publish and
   verify region snapshots of every image. No transaction is open.
3. Build: write the file into a per-run scratch directory and upload it.
4. Finalize: lock the row again and mark it DONE with the filename and
   expire time.

Only one invocation per export gets past the claim, and a DONE row is never
written again, so duplicate trigger events are harmless. A run that fails
after the claim leaves the row in PROCESSING; nothing retries it. When the
row is gone or already DONE by finalize time, the uploaded file is deleted.
"""

import tempfile
from collections.abc import Mapping
from pathlib import Path

from loguru import logger

from dataset_export.core.timer import Clock, current_time_ms
from dataset_export.lib.exporter import ExportBuilder, ExportSource
from dataset_export.lib.image_service import STATUS_PUBLISHED, STATUS_VERIFIED, DatasetMetadataProvider
from dataset_export.lib.storage import BlobStore
from dataset_export.models.export import Export, ExportStatus, ExportType
from dataset_export.services.export_store import ExportStore


class ExportOperator:
    """Runs the export pipeline for one export id at a time.

    Args:
        store: Export record store.
        metadata_provider: Image service access for dataset metadata.
        builders: Export file builder for each export type.
        blob_store: Destination of finished export files.
        expire_time_ms: How long a finished export stays available.
        scratch_root: Parent directory of per-run scratch directories;
            the system temp directory when None.
        clock: Time source in epoch milliseconds.
    """

    def __init__(
        self,
        store: ExportStore,
        metadata_provider: DatasetMetadataProvider,
        builders: Mapping[ExportType, ExportBuilder],
        blob_store: BlobStore,
        *,
        expire_time_ms: int,
        scratch_root: Path | None = None,
        clock: Clock = current_time_ms,
    ) -> None:
        self._store = store
        self._metadata_provider = metadata_provider
        self._builders = builders
        self._blob_store = blob_store
        self._expire_time_ms = expire_time_ms
        self._scratch_root = scratch_root
        self._clock = clock

    async def process_export(self, export_id: int) -> None:
        """Process the export with the given id.

        Returns without doing anything when the export does not exist or was
        already claimed by another run.

        Raises:
            ExportServiceError: If fetching, building or uploading fails. The
                export is left in PROCESSING.
        """
        claimed = await self._store.run_in_transaction(lambda store: self._claim(store, export_id))
        if claimed is None:
            return

        export_type = ExportType(claimed.type)
        logger.info("Processing export {} (type={})", export_id, export_type.name)

        source = await self._fetch_source(claimed.filter_options)
        filename = await self._build_and_upload(export_type, source)

        finalized = await self._store.run_in_transaction(lambda store: self._finalize(store, export_id, filename))
        if not finalized:
            logger.warning("Export {} was not finalized, removing uploaded file {}", export_id, filename)
            await self._blob_store.delete(filename)

    async def _claim(self, store: ExportStore, export_id: int) -> Export | None:
        export = await store.get_with_lock(export_id)
        if export is None:
            logger.info("Export {} no longer exists, skipping", export_id)
            return None
        if export.status == ExportStatus.DONE:
            logger.info("Export {} is already done, skipping", export_id)
            return None
        if export.status == ExportStatus.PROCESSING:
            logger.info("Export {} is already being processed, skipping", export_id)
            return None

        export.status = ExportStatus.PROCESSING
        await store.update(export)
        return export

    async def _fetch_source(self, filter_options: bytes) -> ExportSource:
        metadata = await self._metadata_provider.fetch_all(filter_options)

        publish_snapshots = []
        verify_snapshots = []
        for image in metadata.image_list:
            publish_snapshots.append(await self._metadata_provider.fetch_region_snapshot(image.id, STATUS_PUBLISHED))
            verify_snapshots.append(await self._metadata_provider.fetch_region_snapshot(image.id, STATUS_VERIFIED))

        return ExportSource(
            image_list=metadata.image_list,
            image_tag_list=metadata.image_tag_list,
            region_list=metadata.region_list,
            publish_snapshot_list=publish_snapshots,
            verify_snapshot_list=verify_snapshots,
        )

    async def _build_and_upload(self, export_type: ExportType, source: ExportSource) -> str:
        builder = self._builders.get(export_type)
        if builder is None:
            msg = f"No builder registered for export type {export_type.name}"
            raise ValueError(msg)

        with tempfile.TemporaryDirectory(prefix="export-", dir=self._scratch_root) as scratch_dir:
            file_path = await builder.build(source, Path(scratch_dir))
            await self._blob_store.upload_file(file_path.name, file_path)
        return file_path.name

    async def _finalize(self, store: ExportStore, export_id: int, filename: str) -> bool:
        export = await store.get_with_lock(export_id)
        if export is None:
            logger.info("Export {} was deleted while processing, skipping finalize", export_id)
            return False
        if export.status == ExportStatus.DONE:
            logger.info("Export {} is already done, skipping finalize", export_id)
            return False

        export.status = ExportStatus.DONE
        export.exported_file_filename = filename
        export.expire_time = self._clock() + self._expire_time_ms
        await store.update(export)
        logger.info("Export {} done, file {}", export_id, filename)
        return True
