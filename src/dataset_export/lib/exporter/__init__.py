"""Exporter library — public API for building export files.

Provides the dataset archive and spreadsheet builders and a registry keyed
by export type.
"""

from pathlib import Path
from typing import Protocol

from dataset_export.core.timer import Clock, current_time_ms
from dataset_export.lib.exporter.archive_writer import (
    ARCHIVE_COMPRESS_LEVEL,
    DatasetArchiveBuilder,
    ImageFileSource,
    image_entry_name,
    metadata_entry_name,
)
from dataset_export.lib.exporter.converters import UserResolver, UserSource
from dataset_export.lib.exporter.models import ExportSource
from dataset_export.lib.exporter.spreadsheet_writer import COLUMNS, ExcelBuilder
from dataset_export.models.export import ExportType


class ExportBuilder(Protocol):
    """Writes one export file for a fetched dataset into a directory."""

    async def build(self, source: ExportSource, output_dir: Path) -> Path: ...


def create_builders(
    image_files: ImageFileSource,
    users: UserSource,
    clock: Clock = current_time_ms,
) -> dict[ExportType, ExportBuilder]:
    """Create one builder per export type.

    Args:
        image_files: Source of original image bytes for dataset archives.
        users: User lookup for resolving actor ids.
        clock: Time source for generated filenames.

    Returns:
        Mapping of export type to its builder.
    """
    return {
        ExportType.DATASET: DatasetArchiveBuilder(image_files, users, clock),
        ExportType.EXCEL: ExcelBuilder(users, clock),
    }


__all__ = [
    "ARCHIVE_COMPRESS_LEVEL",
    "COLUMNS",
    "DatasetArchiveBuilder",
    "ExcelBuilder",
    "ExportBuilder",
    "ExportSource",
    "UserResolver",
    "create_builders",
    "image_entry_name",
    "metadata_entry_name",
]
