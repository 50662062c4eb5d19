"""Dataset archive writer — zip of original images plus per-image JSON metadata.

Archive layout::

    images/<image_id>.jpeg
    metadata/<image_id>.json
"""

import json
import zipfile
from dataclasses import asdict
from pathlib import Path
from typing import Any, Protocol

from loguru import logger

from dataset_export.core.timer import Clock, current_time_ms
from dataset_export.lib.exporter.converters import (
    UserResolver,
    UserSource,
    to_image,
    to_image_tag,
    to_region_list,
)
from dataset_export.lib.exporter.filenames import exported_image_filename, make_export_filename
from dataset_export.lib.exporter.models import ExportSource

ARCHIVE_EXTENSION = "zip"
ARCHIVE_COMPRESS_LEVEL = 9


class ImageFileSource(Protocol):
    """Anything that can fetch the original bytes of an image."""

    async def fetch_image_file(self, image_id: int) -> bytes: ...


def image_entry_name(image_id: int) -> str:
    return f"images/{exported_image_filename(image_id)}"


def metadata_entry_name(image_id: int) -> str:
    return f"metadata/{image_id}.json"


async def build_image_metadata(source: ExportSource, index: int, users: UserResolver) -> dict[str, Any]:
    """Build the JSON metadata document of the image at ``index``."""
    image = await to_image(source.image_list[index], users)
    regions = await to_region_list(source.region_list[index], users)
    publish_snapshot = await to_region_list(source.publish_snapshot_list[index], users)
    verify_snapshot = await to_region_list(source.verify_snapshot_list[index], users)
    return {
        "image": asdict(image),
        "image_tag_list": [asdict(to_image_tag(tag)) for tag in source.image_tag_list[index]],
        "region_list": [asdict(r) for r in regions],
        "region_snapshot_list_at_publish_time": [asdict(r) for r in publish_snapshot],
        "region_snapshot_list_at_verify_time": [asdict(r) for r in verify_snapshot],
    }


class DatasetArchiveBuilder:
    """Builds the zip archive for DATASET exports.

    Args:
        image_files: Source of original image bytes.
        users: User lookup for uploader, publisher, verifier and region authors.
        clock: Time source for the generated filename.
    """

    def __init__(self, image_files: ImageFileSource, users: UserSource, clock: Clock = current_time_ms) -> None:
        self._image_files = image_files
        self._users = users
        self._clock = clock

    async def build(self, source: ExportSource, output_dir: Path) -> Path:
        """Write the archive for ``source`` into ``output_dir``.

        Any fetch or write error aborts the build; the partially written
        archive stays in ``output_dir`` for the caller to discard.

        Args:
            source: Images, tags, regions and snapshots to export.
            output_dir: Directory to write the archive into.

        Returns:
            Path of the written archive.
        """
        output_path = output_dir / make_export_filename("Dataset", ARCHIVE_EXTENSION, self._clock)
        users = UserResolver(self._users)

        with zipfile.ZipFile(
            output_path,
            mode="w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=ARCHIVE_COMPRESS_LEVEL,
        ) as archive:
            for index, image_info in enumerate(source.image_list):
                image_bytes = await self._image_files.fetch_image_file(image_info.id)
                archive.writestr(image_entry_name(image_info.id), image_bytes)

                metadata = await build_image_metadata(source, index, users)
                archive.writestr(
                    metadata_entry_name(image_info.id),
                    json.dumps(metadata, ensure_ascii=False, indent=2),
                )

        logger.info("Wrote dataset archive {} with {} images", output_path.name, len(source.image_list))
        return output_path
