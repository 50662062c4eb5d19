"""Spreadsheet writer — one worksheet, one row per image."""

from datetime import datetime
from pathlib import Path

from loguru import logger
from openpyxl import Workbook
from openpyxl.styles import Font

from dataset_export.core.timer import Clock, current_time_ms
from dataset_export.lib.exporter.converters import UserResolver, UserSource, to_image, to_region_list
from dataset_export.lib.exporter.filenames import exported_image_filename, make_export_filename
from dataset_export.lib.exporter.models import ExportSource, Image, Region, User

SPREADSHEET_EXTENSION = "xlsx"
SHEET_TITLE = "Dataset Information"
NO_IMAGE_TYPE = "No type"

# Characters that trigger formula execution in spreadsheet applications
_FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")

COLUMNS = [
    "Original File Name",
    "Exported File Name",
    "Uploaded By",
    "Upload Time",
    "Published By",
    "Publish Time",
    "Verified By",
    "Verify Time",
    "Image Type",
    "Status",
    "Region Labels",
    "Region Labels At Publish Time",
    "Region Labels At Verify Time",
    "Image Tags",
    "Description",
]


def _sanitize_cell(value: str) -> str:
    """Prefix values starting with formula-triggering characters with a single quote."""
    if value and value[0] in _FORMULA_PREFIXES:
        return f"'{value}"
    return value


def format_time(epoch_ms: int) -> str:
    """Format epoch milliseconds as a locale date and time, blank for 0."""
    if not epoch_ms:
        return ""
    return datetime.fromtimestamp(epoch_ms / 1000).strftime("%c")


def _user_display_name(user: User | None) -> str:
    return user.display_name if user is not None else ""


def _label_names(regions: list[Region]) -> str:
    return ", ".join(r.label.display_name for r in regions if r.label is not None)


def build_row(
    image: Image,
    tag_names: list[str],
    regions: list[Region],
    publish_snapshot: list[Region],
    verify_snapshot: list[Region],
) -> list[str]:
    """Build the worksheet row of one image, in ``COLUMNS`` order."""
    row = [
        image.original_file_name,
        exported_image_filename(image.id),
        _user_display_name(image.uploaded_by_user),
        format_time(image.upload_time),
        _user_display_name(image.published_by_user),
        format_time(image.publish_time),
        _user_display_name(image.verified_by_user),
        format_time(image.verify_time),
        image.image_type.display_name if image.image_type is not None else NO_IMAGE_TYPE,
        image.status.display_name,
        _label_names(regions),
        _label_names(publish_snapshot),
        _label_names(verify_snapshot),
        ", ".join(tag_names),
        image.description,
    ]
    return [_sanitize_cell(value) for value in row]


class ExcelBuilder:
    """Builds the ``.xlsx`` workbook for EXCEL exports.

    Args:
        users: User lookup for uploader, publisher and verifier ids.
        clock: Time source for the generated filename.
    """

    def __init__(self, users: UserSource, clock: Clock = current_time_ms) -> None:
        self._users = users
        self._clock = clock

    async def build(self, source: ExportSource, output_dir: Path) -> Path:
        """Write the workbook for ``source`` into ``output_dir``.

        Returns:
            Path of the written workbook.
        """
        output_path = output_dir / make_export_filename(SHEET_TITLE, SPREADSHEET_EXTENSION, self._clock)
        users = UserResolver(self._users)

        workbook = Workbook()
        sheet = workbook.active
        sheet.title = SHEET_TITLE  # type: ignore[union-attr]
        sheet.append(COLUMNS)  # type: ignore[union-attr]
        for cell in sheet[1]:  # type: ignore[index]
            cell.font = Font(bold=True)
        sheet.freeze_panes = "A2"  # type: ignore[union-attr]

        for index, image_info in enumerate(source.image_list):
            image = await to_image(image_info, users)
            row = build_row(
                image,
                [tag.display_name for tag in source.image_tag_list[index]],
                await to_region_list(source.region_list[index], users),
                await to_region_list(source.publish_snapshot_list[index], users),
                await to_region_list(source.verify_snapshot_list[index], users),
            )
            sheet.append(row)  # type: ignore[union-attr]

        workbook.save(output_path)
        logger.info("Wrote spreadsheet {} with {} rows", output_path.name, len(source.image_list))
        return output_path
