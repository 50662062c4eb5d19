"""Dataset metadata provider — pages through every image matching an export's filter."""

import json
from typing import Any

from loguru import logger

from dataset_export.lib.image_service.client import ImageServiceClient
from dataset_export.lib.image_service.types import DatasetMetadata, RegionInfo

DEFAULT_BATCH_SIZE = 100

# Image statuses that have region snapshots
STATUS_PUBLISHED = "PUBLISHED"
STATUS_VERIFIED = "VERIFIED"


def encode_filter_options(filter_options: dict[str, Any] | None) -> bytes:
    """Encode an image filter for storage on an export record."""
    return json.dumps(filter_options or {}, separators=(",", ":"), sort_keys=True).encode("utf-8")


def decode_filter_options(data: bytes) -> dict[str, Any]:
    """Decode a stored image filter for the image service request body."""
    if not data:
        return {}
    return json.loads(data.decode("utf-8"))


class DatasetMetadataProvider:
    """Fetches the full image/tag/region set of an export from the image service.

    Args:
        client: Image service client.
        batch_size: Images requested per page.
    """

    def __init__(self, client: ImageServiceClient, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size <= 0:
            msg = f"batch_size must be positive, got {batch_size}"
            raise ValueError(msg)
        self._client = client
        self._batch_size = batch_size

    async def fetch_all(self, filter_options: bytes) -> DatasetMetadata:
        """Fetch every image matching ``filter_options`` with its tags and regions.

        Pages in ascending id order until a page comes back empty.
        Any service error aborts the whole fetch.

        Args:
            filter_options: Encoded filter stored on the export record.

        Returns:
            All matching images with parallel tag and region lists.
        """
        decoded_filter = decode_filter_options(filter_options)
        metadata = DatasetMetadata()

        while True:
            batch = await self._client.get_image_list(
                decoded_filter,
                offset=len(metadata.image_list),
                limit=self._batch_size,
                with_image_tag=True,
                with_region=True,
            )
            batch_size = len(batch.image_list)
            if batch_size == 0:
                break

            metadata.image_list.extend(batch.image_list)
            metadata.image_tag_list.extend(
                self._pad([t.image_tag_list for t in batch.image_tag_list_of_image_list], batch_size)
            )
            metadata.region_list.extend(
                self._pad([r.region_list for r in batch.region_list_of_image_list], batch_size)
            )
            logger.debug("Fetched image batch of {} (total {})", batch_size, len(metadata.image_list))

        logger.info("Fetched {} images for export", len(metadata.image_list))
        return metadata

    async def fetch_region_snapshot(self, image_id: int, at_status: str) -> list[RegionInfo]:
        """Fetch an image's regions as of the last time it reached ``at_status``.

        Returns:
            The snapshot regions, or an empty list when no snapshot exists.
        """
        return await self._client.get_region_snapshot_list(image_id, at_status)

    async def fetch_image_file(self, image_id: int) -> bytes:
        """Fetch the original bytes of an image."""
        return await self._client.get_image_file(image_id)

    @staticmethod
    def _pad(lists: list[list[Any]], size: int) -> list[list[Any]]:
        # Keep tag/region lists parallel to the image list when the service omits them
        return (lists + [[] for _ in range(size - len(lists))])[:size]
