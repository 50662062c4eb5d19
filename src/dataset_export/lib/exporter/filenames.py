"""Generated names for export files."""

import uuid

from dataset_export.core.timer import Clock, current_time_ms


def make_export_filename(prefix: str, extension: str, clock: Clock = current_time_ms) -> str:
    """Return ``<prefix>-<timestamp>-<unique id>.<extension>``.

    The timestamp is epoch milliseconds; the unique id keeps names of
    exports finished in the same millisecond apart.
    """
    return f"{prefix}-{clock()}-{uuid.uuid4().hex}.{extension}"


def exported_image_filename(image_id: int) -> str:
    """Name of an image's file inside a dataset archive."""
    return f"{image_id}.jpeg"
